"""nginx route rendering for the reverse proxy."""

import posixpath
from typing import Optional

from dignode.constants import (
    CA_CERT_FILE_NAME,
    CLIENT_CERT_FILE_NAME,
    CLIENT_KEY_FILE_NAME,
    CONTAINER_NGINX_CERTS_DIR,
    FULLCHAIN_FILE_NAME,
    HTTP_PORT,
    HTTPS_PORT,
    PRIVKEY_FILE_NAME,
)
from dignode.errors import ProvisioningError
from dignode.models import NodePaths, ProxyRoute
from dignode.services.validation import ValidationService

CATCH_ALL_SERVER_NAME = "_"
TLS_PROTOCOLS = "TLSv1.2 TLSv1.3"
TLS_CIPHERS = "HIGH:!aNULL:!MD5"
UPSTREAM_SCHEME = "http"


def _container_cert(file_name: str) -> str:
    return posixpath.join(CONTAINER_NGINX_CERTS_DIR, file_name)


class ProxyConfigService:
    """Renders the three mutually exclusive forms of ``default.conf``."""

    def __init__(self, logger, console, filesystem_service, validation_service: Optional[ValidationService] = None):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service
        self.validation = validation_service or ValidationService()

    def plain_route(self, hostname: Optional[str] = None) -> ProxyRoute:
        if not hostname:
            return ProxyRoute(
                server_name=CATCH_ALL_SERVER_NAME,
                listen=f"{HTTP_PORT} default_server",
            )
        return ProxyRoute(server_name=self.validation.ensure_hostname(hostname), listen=str(HTTP_PORT))

    def tls_route(self, hostname: str) -> ProxyRoute:
        return ProxyRoute(
            server_name=self.validation.ensure_hostname(hostname),
            listen=f"{HTTPS_PORT} ssl",
            tls_mode="letsencrypt",
        )

    def _location_block(self, route: ProxyRoute) -> str:
        return f"""    location / {{
        proxy_pass {UPSTREAM_SCHEME}://{route.upstream};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_ssl_certificate {_container_cert(CLIENT_CERT_FILE_NAME)};
        proxy_ssl_certificate_key {_container_cert(CLIENT_KEY_FILE_NAME)};
        proxy_ssl_trusted_certificate {_container_cert(CA_CERT_FILE_NAME)};
        proxy_ssl_verify off;
    }}"""

    def render(self, route: ProxyRoute) -> str:
        if route.tls_mode == "plain":
            return f"""server {{
    listen {route.listen};
    server_name {route.server_name};

{self._location_block(route)}
}}
"""

        if route.tls_mode == "letsencrypt":
            return f"""server {{
    listen {HTTP_PORT};
    server_name {route.server_name};
    return 301 https://$host$request_uri;
}}

server {{
    listen {route.listen};
    server_name {route.server_name};

    ssl_certificate {_container_cert(FULLCHAIN_FILE_NAME)};
    ssl_certificate_key {_container_cert(PRIVKEY_FILE_NAME)};

    ssl_protocols       {TLS_PROTOCOLS};
    ssl_ciphers         {TLS_CIPHERS};

{self._location_block(route)}
}}
"""

        raise ProvisioningError(f"Unsupported proxy TLS mode: {route.tls_mode}")

    def write_route(self, route: ProxyRoute, paths: NodePaths) -> str:
        self.filesystem_service.write_text(paths.proxy_route_file, self.render(route))
        self.logger.info("Proxy route (%s) written to %s", route.tls_mode, paths.proxy_route_file)
        return paths.proxy_route_file
