"""Compose descriptor generation for the DIG Node services."""

from typing import Any, Dict, List

import yaml

from dignode.constants import (
    COMPOSE_FILE_VERSION,
    CONTAINER_DIG_FOLDER,
    CONTAINER_NGINX_CERTS_DIR,
    CONTAINER_NGINX_CONF_DIR,
    CONTENT_PORT,
    CONTENT_SERVICE,
    DEFAULT_IMAGE_TAG,
    HTTP_PORT,
    HTTPS_PORT,
    IMAGE_REPOSITORY,
    INCENTIVE_PORT,
    INCENTIVE_SERVICE,
    NETWORK_NAME,
    PROPAGATION_PORT,
    PROPAGATION_SERVICE,
    PROXY_IMAGE,
    PROXY_SERVICE,
)
from dignode.models import NodePaths, RunConfig


class _QuotedString(str):
    pass


class ComposeDumper(yaml.SafeDumper):
    """Indents sequences under their key and double-quotes port mappings."""

    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


ComposeDumper.add_representer(
    _QuotedString,
    lambda dumper, data: dumper.represent_scalar("tag:yaml.org,2002:str", data, style='"'),
)


def _port_mapping(port: int) -> _QuotedString:
    return _QuotedString(f"{port}:{port}")


class ComposeBuilder:
    """Builds the multi-service descriptor consumed by docker-compose."""

    def __init__(self, logger, console, filesystem_service, image_tag: str = DEFAULT_IMAGE_TAG):
        self.logger = logger
        self.console = console
        self.filesystem_service = filesystem_service
        self.image_tag = image_tag

    def image(self, service_name: str) -> str:
        return f"{IMAGE_REPOSITORY}/dig-{service_name}:{self.image_tag}"

    def _common_environment(self, run_config: RunConfig, port: int) -> List[str]:
        return [
            f"DIG_FOLDER_PATH={CONTAINER_DIG_FOLDER}",
            f"PORT={port}",
            "REMOTE_NODE=1",
            f"TRUSTED_FULLNODE={run_config.trusted_fullnode}",
        ]

    def _credential_environment(self, run_config: RunConfig) -> List[str]:
        return [
            f"DIG_USERNAME={run_config.credentials.username}",
            f"DIG_PASSWORD={run_config.credentials.password}",
        ]

    def _dig_service(
        self,
        service_name: str,
        port: int,
        environment: List[str],
        paths: NodePaths,
    ) -> Dict[str, Any]:
        return {
            "image": self.image(service_name),
            "ports": [_port_mapping(port)],
            "volumes": [f"{paths.data_dir}:{CONTAINER_DIG_FOLDER}"],
            "environment": environment,
            "restart": "always",
            "networks": [NETWORK_NAME],
        }

    def _proxy_service(self, paths: NodePaths) -> Dict[str, Any]:
        return {
            "image": PROXY_IMAGE,
            "ports": [_port_mapping(HTTP_PORT), _port_mapping(HTTPS_PORT)],
            "volumes": [
                f"{paths.nginx_conf_dir}:{CONTAINER_NGINX_CONF_DIR}",
                f"{paths.nginx_certs_dir}:{CONTAINER_NGINX_CERTS_DIR}",
            ],
            "depends_on": [CONTENT_SERVICE],
            "networks": [NETWORK_NAME],
            "restart": "always",
        }

    def build(self, run_config: RunConfig, paths: NodePaths) -> Dict[str, Any]:
        propagation_env = (
            self._credential_environment(run_config)
            + self._common_environment(run_config, PROPAGATION_PORT)
        )
        content_env = self._common_environment(run_config, CONTENT_PORT)
        incentive_env = (
            self._credential_environment(run_config)
            + self._common_environment(run_config, INCENTIVE_PORT)
            + [
                f"PUBLIC_IP={run_config.public_ip}",
                f"DISK_SPACE_LIMIT_BYTES={run_config.disk_space_limit_bytes}",
                f"MERCENARY_MODE={str(run_config.mercenary_mode).lower()}",
            ]
        )

        services: Dict[str, Any] = {
            PROPAGATION_SERVICE: self._dig_service(
                PROPAGATION_SERVICE, PROPAGATION_PORT, propagation_env, paths
            ),
            CONTENT_SERVICE: self._dig_service(CONTENT_SERVICE, CONTENT_PORT, content_env, paths),
            INCENTIVE_SERVICE: self._dig_service(
                INCENTIVE_SERVICE, INCENTIVE_PORT, incentive_env, paths
            ),
        }
        if run_config.include_proxy:
            services[PROXY_SERVICE] = self._proxy_service(paths)

        return {
            "version": COMPOSE_FILE_VERSION,
            "services": services,
            "networks": {NETWORK_NAME: {"driver": "bridge"}},
        }

    def render(self, run_config: RunConfig, paths: NodePaths) -> str:
        return yaml.dump(
            self.build(run_config, paths),
            Dumper=ComposeDumper,
            sort_keys=False,
            default_flow_style=False,
        )

    def write(self, run_config: RunConfig, paths: NodePaths) -> str:
        self.console.print(f"\n[blue]Creating docker-compose.yml at {paths.compose_file}...[/blue]")
        self.filesystem_service.write_text(paths.compose_file, self.render(run_config, paths))
        self.logger.info("Compose descriptor written to %s", paths.compose_file)
        self.console.print("[green]docker-compose.yml created successfully.[/green]")
        return paths.compose_file
