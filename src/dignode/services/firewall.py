"""firewalld provisioning for dig-node-setup."""

from typing import List, Tuple

from rich.markup import escape

from dignode.constants import (
    CONTENT_PORT,
    HTTP_PORT,
    HTTPS_PORT,
    INCENTIVE_PORT,
    PROPAGATION_PORT,
    SSH_PORT,
)
from dignode.errors import ProvisioningError

BASE_PORTS: Tuple[Tuple[int, str], ...] = (
    (PROPAGATION_PORT, "Propagation Server"),
    (INCENTIVE_PORT, "Incentive Server"),
    (CONTENT_PORT, "Content Server"),
    (SSH_PORT, "SSH (for remote access)"),
)
PROXY_PORTS: Tuple[Tuple[int, str], ...] = (
    (HTTP_PORT, "Reverse Proxy (HTTP)"),
    (HTTPS_PORT, "Reverse Proxy (HTTPS)"),
)


class FirewallService:
    """Opens the node ports in firewalld and keeps the daemon running."""

    ZONE = "public"

    def __init__(self, logger, console, command_runner):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner

    def ensure_daemon_running(self):
        if self.command_runner.succeeds(["systemctl", "is-active", "--quiet", "firewalld"]):
            return

        self.console.print("\n[blue]Starting and enabling firewalld...[/blue]")
        self.command_runner.run(["systemctl", "start", "firewalld"])
        self.command_runner.run(["systemctl", "enable", "firewalld"])

    @staticmethod
    def port_descriptions(include_proxy: bool) -> List[Tuple[int, str]]:
        ports = list(BASE_PORTS)
        if include_proxy:
            ports.extend(PROXY_PORTS)
        return ports

    @classmethod
    def required_ports(cls, include_proxy: bool) -> List[int]:
        return sorted(port for port, _ in cls.port_descriptions(include_proxy))

    def open_ports(self, include_proxy: bool, prompter) -> bool:
        """Asks for confirmation and opens the ports; failures are reported, not rolled back."""
        self.console.print("\n[blue]This setup uses the following ports:[/blue]")
        for port, role in self.port_descriptions(include_proxy):
            self.console.print(f" - Port {port}: {role}")

        ports = self.required_ports(include_proxy)
        port_list = " ".join(str(port) for port in ports)
        if not prompter.confirm(f"Do you want to open these ports ({port_list}) using firewalld?"):
            self.console.print("[yellow]Skipping firewalld port opening.[/yellow]")
            return False

        self.console.print(f"\n[blue]Opening ports: {port_list}...[/blue]")
        try:
            for port in ports:
                self.command_runner.run(
                    [
                        "firewall-cmd",
                        f"--zone={self.ZONE}",
                        f"--add-port={port}/tcp",
                        "--permanent",
                    ]
                )
            self.command_runner.run(["firewall-cmd", "--reload"])
        except ProvisioningError as exc:
            self.logger.warning("Firewall configuration incomplete: %s", exc)
            self.console.print(f"[red]Could not open all ports:[/red] {escape(str(exc))}")
            return False

        self.logger.info("Opened firewall ports: %s", port_list)
        self.console.print("[green]Ports have been opened in firewalld.[/green]")
        return True
