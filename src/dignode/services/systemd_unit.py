"""systemd unit installation for the DIG Node compose stack."""

from typing import List

from dignode.constants import DOCKER_GROUP, UNIT_STOP_TIMEOUT_SECONDS
from dignode.models import NodePaths, RunConfig


class SystemdUnitService:
    """Renders, registers and starts ``dig@<user>.service``."""

    def __init__(self, logger, console, command_runner, filesystem_service):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.filesystem_service = filesystem_service

    def is_active(self, service_name: str) -> bool:
        return self.command_runner.succeeds(["systemctl", "is-active", "--quiet", service_name])

    def stop_existing(self, service_name: str):
        if not self.is_active(service_name):
            return

        self.console.print(f"\n[yellow]Stopping the existing service {service_name}...[/yellow]")
        self.command_runner.run(["systemctl", "stop", service_name])
        self.console.print(f"[green]Service {service_name} stopped.[/green]")

    def render_unit(self, run_config: RunConfig, compose_cmd: List[str]) -> str:
        compose = " ".join(compose_cmd)
        return f"""[Unit]
Description=Dig Node Docker Compose
Documentation=https://dig.net
After=network.target docker.service
Requires=docker.service

[Service]
WorkingDirectory={run_config.working_dir}
ExecStart={compose} up
ExecStop={compose} down
Restart=always

User={run_config.user_name}
Group={DOCKER_GROUP}

# Time to wait before forcefully stopping the container
TimeoutStopSec={UNIT_STOP_TIMEOUT_SECONDS}

[Install]
WantedBy=multi-user.target
"""

    def install(self, run_config: RunConfig, paths: NodePaths, compose_cmd: List[str]) -> str:
        service_name = run_config.service_name
        unit_file = paths.unit_file(service_name)

        self.console.print(f"\n[blue]Creating systemd service file at {unit_file}...[/blue]")
        self.filesystem_service.write_text(unit_file, self.render_unit(run_config, compose_cmd))

        self.console.print("\n[blue]Reloading systemd daemon...[/blue]")
        self.command_runner.run(["systemctl", "daemon-reload"])

        self.console.print(f"\n[blue]Enabling and starting {service_name} service...[/blue]")
        self.command_runner.run(["systemctl", "enable", service_name])
        self.command_runner.run(["systemctl", "start", service_name])

        self.console.print("\n[blue]Checking the status of the service...[/blue]")
        status = self.command_runner.run(
            ["systemctl", "--no-pager", "status", service_name],
            check=False,
            capture_output=True,
        )
        if status.stdout:
            self.console.print(status.stdout.rstrip(), markup=False, highlight=False)

        self.logger.info("Installed and started %s", service_name)
        self.console.print(f"\n[green]Service {service_name} installed and activated successfully.[/green]")
        return unit_file
