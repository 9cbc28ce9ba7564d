"""Shared domain models for dig-node-setup."""

import os
from dataclasses import dataclass
from typing import Optional

from .constants import (
    CA_CERT_FILE_NAME,
    CA_KEY_FILE_NAME,
    CLIENT_CERT_FILE_NAME,
    CLIENT_KEY_FILE_NAME,
    COMPOSE_FILE_NAME,
    CONTENT_PORT,
    CONTENT_SERVICE,
    DEFAULT_DISK_SPACE_LIMIT_BYTES,
    NOT_PROVIDED,
    PROXY_ROUTE_FILE_NAME,
    SERVICE_NAME_TEMPLATE,
    SYSTEMD_UNIT_DIR,
)


@dataclass(frozen=True)
class CredentialPair:
    """Authentication secret shared with the deployed services."""

    username: str
    password: str


@dataclass(frozen=True)
class RunConfig:
    """Operator-supplied and derived settings for one provisioning run."""

    user_name: str
    user_home: str
    working_dir: str
    credentials: CredentialPair
    trusted_fullnode: str = NOT_PROVIDED
    public_ip: str = NOT_PROVIDED
    mercenary_mode: bool = False
    disk_space_limit_bytes: int = DEFAULT_DISK_SPACE_LIMIT_BYTES
    include_proxy: bool = False
    open_firewall: bool = False

    @property
    def service_name(self) -> str:
        return SERVICE_NAME_TEMPLATE.format(user=self.user_name)


@dataclass(frozen=True)
class ProxySettings:
    """Hostname and TLS choices collected while provisioning the reverse proxy."""

    use_hostname: bool = False
    hostname: Optional[str] = None
    use_letsencrypt: bool = False


@dataclass(frozen=True)
class NodePaths:
    """Fixed on-disk locations used by a run."""

    data_dir: str
    nginx_conf_dir: str
    nginx_certs_dir: str
    compose_file: str
    ca_dir: str
    unit_dir: str = SYSTEMD_UNIT_DIR

    @classmethod
    def for_run(
        cls,
        user_home: str,
        working_dir: str,
        ca_dir: Optional[str] = None,
        unit_dir: str = SYSTEMD_UNIT_DIR,
    ) -> "NodePaths":
        data_dir = os.path.join(user_home, ".dig", "remote")
        return cls(
            data_dir=data_dir,
            nginx_conf_dir=os.path.join(data_dir, ".nginx", "conf.d"),
            nginx_certs_dir=os.path.join(data_dir, ".nginx", "certs"),
            compose_file=os.path.join(working_dir, COMPOSE_FILE_NAME),
            ca_dir=ca_dir or os.path.join(working_dir, "ssl", "ca"),
            unit_dir=unit_dir,
        )

    @property
    def ca_cert(self) -> str:
        return os.path.join(self.ca_dir, CA_CERT_FILE_NAME)

    @property
    def ca_key(self) -> str:
        return os.path.join(self.ca_dir, CA_KEY_FILE_NAME)

    @property
    def proxy_route_file(self) -> str:
        return os.path.join(self.nginx_conf_dir, PROXY_ROUTE_FILE_NAME)

    def unit_file(self, service_name: str) -> str:
        return os.path.join(self.unit_dir, service_name)


@dataclass(frozen=True)
class TLSClientIdentity:
    """Client certificate the proxy presents to the content service."""

    key_path: str
    cert_path: str
    ca_bundle_path: str

    @classmethod
    def in_directory(cls, certs_dir: str) -> "TLSClientIdentity":
        return cls(
            key_path=os.path.join(certs_dir, CLIENT_KEY_FILE_NAME),
            cert_path=os.path.join(certs_dir, CLIENT_CERT_FILE_NAME),
            ca_bundle_path=os.path.join(certs_dir, CA_CERT_FILE_NAME),
        )


@dataclass(frozen=True)
class ProxyRoute:
    """Reverse-proxy virtual host definition."""

    server_name: str
    listen: str
    tls_mode: str = "plain"
    upstream_host: str = CONTENT_SERVICE
    upstream_port: int = CONTENT_PORT

    @property
    def upstream(self) -> str:
        return f"{self.upstream_host}:{self.upstream_port}"


@dataclass(frozen=True)
class CertificateLease:
    """Publicly trusted certificate obtained for the node hostname."""

    domain: str
    fullchain_path: str
    privkey_path: str
