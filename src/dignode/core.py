import getpass
import logging
import os
import pwd
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from .constants import DEFAULT_IMAGE_TAG, PROXY_SERVICE, SERVICE_NAME_TEMPLATE
from .errors import ProvisioningError
from .models import CertificateLease, NodePaths, ProxySettings, RunConfig
from .services.command_runner import CommandRunner
from .services.compose_builder import ComposeBuilder
from .services.config_collector import ConfigCollector
from .services.credentials import generate_credentials
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.firewall import FirewallService
from .services.letsencrypt import CertbotClient, IssuanceLoop, install_lease
from .services.preflight import PreflightService
from .services.prompts import Prompter
from .services.proxy_config import ProxyConfigService
from .services.systemd_unit import SystemdUnitService
from .services.tls_identity import TLSIdentityService
from .services.validation import ValidationService

console = Console()
logger = logging.getLogger("dignode")


def resolve_user_name() -> str:
    return os.environ.get("SUDO_USER") or getpass.getuser()


def resolve_user_home(user_name: str) -> str:
    try:
        return pwd.getpwnam(user_name).pw_dir
    except KeyError:
        return os.path.expanduser(f"~{user_name}")


class NodeProvisioner:
    """Runs the DIG Node provisioning pipeline, one stage after another."""

    def __init__(
        self,
        working_dir: Optional[str] = None,
        ca_dir: Optional[str] = None,
        image_tag: str = DEFAULT_IMAGE_TAG,
        user_name: Optional[str] = None,
        user_home: Optional[str] = None,
    ):
        self.user_name = user_name or resolve_user_name()
        self.user_home = user_home or resolve_user_home(self.user_name)
        self.working_dir = os.path.abspath(working_dir or os.getcwd())
        self.service_name = SERVICE_NAME_TEMPLATE.format(user=self.user_name)
        self.paths = NodePaths.for_run(self.user_home, self.working_dir, ca_dir=ca_dir)

        self.validation_service = ValidationService()
        self.prompter = Prompter(console=console)
        self.command_runner = CommandRunner(logger=logger)
        self.filesystem_service = FileSystemService(logger=logger, console=console)
        self.preflight_service = PreflightService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
        )
        self.config_collector = ConfigCollector(
            console=console,
            prompter=self.prompter,
            validation_service=self.validation_service,
        )
        self.compose_builder = ComposeBuilder(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
            image_tag=image_tag,
        )
        self.docker_runtime_service = DockerRuntimeService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
        )
        self.tls_identity_service = TLSIdentityService(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
        )
        self.proxy_config_service = ProxyConfigService(
            logger=logger,
            console=console,
            filesystem_service=self.filesystem_service,
            validation_service=self.validation_service,
        )
        self.certbot_client = CertbotClient(logger=logger, command_runner=self.command_runner)
        self.issuance_loop = IssuanceLoop(
            logger=logger,
            console=console,
            prompter=self.prompter,
            certbot_client=self.certbot_client,
            docker_runtime_service=self.docker_runtime_service,
            validation_service=self.validation_service,
        )
        self.firewall_service = FirewallService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
        )
        self.systemd_unit_service = SystemdUnitService(
            logger=logger,
            console=console,
            command_runner=self.command_runner,
            filesystem_service=self.filesystem_service,
        )

    def run_preflight(self):
        self.preflight_service.ensure_root()
        self.preflight_service.ensure_required_software()
        self.firewall_service.ensure_daemon_running()
        self.systemd_unit_service.stop_existing(self.service_name)
        self.preflight_service.ensure_docker_group(self.user_name, self.prompter)

    def collect_configuration(self) -> RunConfig:
        console.print("\n[blue]Generating high-entropy DIG_USERNAME and DIG_PASSWORD...[/blue]")
        credentials = generate_credentials()
        console.print("[green]Credentials generated successfully.[/green]")

        return self.config_collector.collect(
            user_name=self.user_name,
            user_home=self.user_home,
            working_dir=self.working_dir,
            credentials=credentials,
        )

    def configure_firewall(self, run_config: RunConfig):
        if not run_config.open_firewall:
            console.print("[yellow]Skipping firewalld port configuration.[/yellow]")
            return
        self.firewall_service.open_ports(run_config.include_proxy, self.prompter)

    def provision_proxy(self) -> ProxySettings:
        console.print("\n[blue]Setting up Nginx reverse-proxy...[/blue]")
        self.filesystem_service.ensure_dir(self.paths.nginx_conf_dir)
        self.filesystem_service.ensure_dir(self.paths.nginx_certs_dir)

        self.tls_identity_service.create_client_identity(self.paths)

        settings = self.config_collector.collect_proxy_settings()
        hostname = settings.hostname if settings.use_hostname else None
        route_file = self.proxy_config_service.write_route(
            self.proxy_config_service.plain_route(hostname),
            self.paths,
        )
        console.print(f"[green]Nginx configuration has been set up at {route_file}[/green]")

        if hostname and settings.use_letsencrypt:
            self.setup_letsencrypt(hostname)
        return settings

    def setup_letsencrypt(self, hostname: str) -> Optional[CertificateLease]:
        lease = self.issuance_loop.run(hostname, self.paths.compose_file)
        if lease is None:
            console.print("[yellow]Skipping Let's Encrypt setup. The HTTP route stays in place.[/yellow]")
            return None

        try:
            console.print("[blue]Copying SSL certificates to Nginx certs directory...[/blue]")
            installed = install_lease(lease, self.paths, self.filesystem_service)

            console.print("[blue]Updating Nginx configuration for SSL...[/blue]")
            self.proxy_config_service.write_route(
                self.proxy_config_service.tls_route(hostname),
                self.paths,
            )
            console.print("[green]Nginx configuration updated for SSL.[/green]")

            console.print("[blue]Starting Nginx container...[/blue]")
            self.docker_runtime_service.start_service(self.paths.compose_file, PROXY_SERVICE)
        except ProvisioningError as exc:
            logger.warning("Let's Encrypt activation incomplete: %s", exc)
            console.print(f"[red]Could not finish Let's Encrypt setup:[/red] {escape(str(exc))}")
            return None

        self.register_renewal()
        console.print("[green]Let's Encrypt SSL setup complete.[/green]")
        return installed

    def register_renewal(self):
        console.print(
            "\n[blue]Would you like to set up automatic certificate renewal for Let's Encrypt?[/blue]"
        )
        if not self.prompter.confirm("Set up automatic renewal?"):
            console.print("[yellow]Skipping automatic certificate renewal setup.[/yellow]")
            return

        console.print("[blue]Setting up cron job for certificate renewal...[/blue]")
        compose_file = self.paths.compose_file
        try:
            self.certbot_client.register_renewal(
                pre_hook=self.docker_runtime_service.compose_command_line(
                    compose_file, "stop", PROXY_SERVICE
                ),
                post_hook=self.docker_runtime_service.compose_command_line(
                    compose_file, "up", "-d", PROXY_SERVICE
                ),
            )
        except ProvisioningError as exc:
            logger.warning("Could not register certificate renewal: %s", exc)
            console.print(f"[red]Could not set up automatic renewal:[/red] {escape(str(exc))}")
            return
        console.print("[green]Automatic certificate renewal has been set up.[/green]")

    def install_service(self, run_config: RunConfig) -> bool:
        try:
            self.docker_runtime_service.pull_images(self.paths.compose_file)
        except ProvisioningError as exc:
            logger.warning("Image pull failed: %s", exc)
            console.print(f"[red]Could not pull the latest Docker images:[/red] {escape(str(exc))}")

        if not self.prompter.confirm("Do you want to create and enable the systemd service for DIG Node?"):
            console.print(
                "[yellow]Skipping systemd service creation. You can manually start the DIG Node "
                "using 'docker-compose up'[/yellow]"
            )
            return False

        try:
            compose_cmd = self.docker_runtime_service.absolute_compose_cmd() + [
                "-f",
                self.paths.compose_file,
            ]
            self.systemd_unit_service.install(run_config, self.paths, compose_cmd)
        except ProvisioningError as exc:
            logger.warning("Service installation incomplete: %s", exc)
            console.print(f"[red]Could not install {run_config.service_name}:[/red] {escape(str(exc))}")
            return False
        return True

    def run(self) -> int:
        try:
            logger.info("Starting DIG Node setup for user %s", self.user_name)
            console.print("[bold green]DIG Node Setup Script with SSL and Let's Encrypt[/bold green]")

            self.run_preflight()
            run_config = self.collect_configuration()
            self.configure_firewall(run_config)
            self.compose_builder.write(run_config, self.paths)
            if run_config.include_proxy:
                self.provision_proxy()
            self.install_service(run_config)

            console.print(
                "\n[yellow]Please log out and log back in for the Docker group changes to take effect.[/yellow]"
            )
            console.print("[green]Your DIG Node setup is complete![/green]")
            return 0

        except (KeyboardInterrupt, click.Abort):
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except ProvisioningError as exc:
            console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {escape(str(exc))}")
            logger.exception("Unexpected error")
            return 1
