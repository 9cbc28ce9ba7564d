"""Docker Compose runtime helpers for dig-node-setup."""

import shlex
import shutil
import subprocess
from typing import Callable, List, Optional

from dignode.errors import ProvisioningError


class DockerRuntimeService:
    """Detects the compose command and drives the lifecycle of single services."""

    def __init__(
        self,
        logger,
        console,
        command_runner,
        subprocess_module=subprocess,
        which: Callable[[str], Optional[str]] = shutil.which,
    ):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.subprocess = subprocess_module
        self.which = which
        self._compose_cmd: Optional[List[str]] = None

    def get_docker_compose_cmd(self) -> List[str]:
        if self._compose_cmd is not None:
            return self._compose_cmd

        try:
            self.subprocess.run(["docker", "compose", "version"], check=True, capture_output=True)
            self._compose_cmd = ["docker", "compose"]
        except (self.subprocess.CalledProcessError, FileNotFoundError):
            try:
                self.subprocess.run(["docker-compose", "--version"], check=True, capture_output=True)
                self._compose_cmd = ["docker-compose"]
            except (self.subprocess.CalledProcessError, FileNotFoundError):
                raise ProvisioningError(
                    "Docker Compose is not available. Install Docker Compose v2 (`docker compose`) "
                    "or v1 (`docker-compose`) and try again."
                )
        return self._compose_cmd

    def absolute_compose_cmd(self) -> List[str]:
        """Compose command with its executable resolved, as needed by unit files and cron."""
        cmd = list(self.get_docker_compose_cmd())
        resolved = self.which(cmd[0])
        if resolved:
            cmd[0] = resolved
        return cmd

    def compose_command_line(self, compose_file: str, *args: str) -> str:
        cmd = self.absolute_compose_cmd() + ["-f", compose_file, *args]
        return " ".join(shlex.quote(part) for part in cmd)

    def _compose(self, compose_file: str, *args: str, check: bool = True):
        cmd = self.get_docker_compose_cmd() + ["-f", compose_file, *args]
        return self.command_runner.run(cmd, check=check)

    def pull_images(self, compose_file: str):
        self.console.print("\n[blue]Pulling the latest Docker images...[/blue]")
        self._compose(compose_file, "pull")

    def stop_service(self, compose_file: str, service_name: str):
        self.logger.info("Stopping compose service %s", service_name)
        self._compose(compose_file, "stop", service_name, check=False)

    def start_service(self, compose_file: str, service_name: str):
        self.logger.info("Starting compose service %s", service_name)
        self._compose(compose_file, "up", "-d", service_name)
