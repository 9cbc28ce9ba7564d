"""Interactive collection of operator choices."""

from typing import Optional

from dignode.constants import DEFAULT_DISK_SPACE_LIMIT_BYTES, NOT_PROVIDED
from dignode.models import CredentialPair, ProxySettings, RunConfig
from dignode.services.validation import ValidationService


class ConfigCollector:
    """Builds a RunConfig and ProxySettings from terminal answers."""

    def __init__(self, console, prompter, validation_service: Optional[ValidationService] = None):
        self.console = console
        self.prompter = prompter
        self.validation = validation_service or ValidationService()

    def collect(
        self,
        user_name: str,
        user_home: str,
        working_dir: str,
        credentials: CredentialPair,
    ) -> RunConfig:
        self.console.print("\n[blue]Please enter the TRUSTED_FULLNODE (optional):[/blue]")
        trusted_fullnode = self.prompter.ask_validated(
            "Your personal full node's public IP for better performance (press Enter to skip)",
            lambda value: self.validation.ensure_address_token(value, "TRUSTED_FULLNODE"),
            default=NOT_PROVIDED,
        )

        self.console.print("\n[blue]If needed, enter a PUBLIC_IP override (optional):[/blue]")
        public_ip = self.prompter.ask_validated(
            "Leave blank for auto-detection",
            lambda value: self.validation.ensure_address_token(value, "PUBLIC_IP"),
            default=NOT_PROVIDED,
        )

        self.console.print("\n[blue]Enable Mercenary Mode?[/blue]")
        self.console.print("This allows your node to hunt for mirror offers to earn rewards.")
        mercenary_mode = self.prompter.confirm("Do you want to enable Mercenary Mode?")

        self.console.print("\n[blue]Enter DISK_SPACE_LIMIT_BYTES (optional):[/blue]")
        disk_space_limit_bytes = self.prompter.ask_validated(
            "Leave blank for default (1 TB)",
            lambda value: self.validation.ensure_positive_int(value, "DISK_SPACE_LIMIT_BYTES"),
            default=DEFAULT_DISK_SPACE_LIMIT_BYTES,
        )

        self._print_summary(
            credentials,
            trusted_fullnode,
            public_ip,
            mercenary_mode,
            disk_space_limit_bytes,
        )

        self.console.print("\n[blue]Would you like to include the Nginx reverse-proxy container?[/blue]")
        include_proxy = self.prompter.confirm("Include reverse proxy?")
        if not include_proxy:
            self.console.print(
                "\n[yellow]Warning:[/yellow] You have chosen not to include the Nginx reverse-proxy container."
            )
            self.console.print(
                "[yellow]Unless you plan on exposing port 80/443 in another way, your DIG Node's "
                "content server will be inaccessible to the browser.[/yellow]"
            )

        open_firewall = self.prompter.confirm(
            "Do you want to configure firewalld to open necessary ports?"
        )

        return RunConfig(
            user_name=user_name,
            user_home=user_home,
            working_dir=working_dir,
            credentials=credentials,
            trusted_fullnode=trusted_fullnode,
            public_ip=public_ip,
            mercenary_mode=mercenary_mode,
            disk_space_limit_bytes=disk_space_limit_bytes,
            include_proxy=include_proxy,
            open_firewall=open_firewall,
        )

    def collect_proxy_settings(self) -> ProxySettings:
        self.console.print("\n[blue]Would you like to set a hostname for your server?[/blue]")
        if not self.prompter.confirm("Set a hostname?"):
            return ProxySettings()

        hostname = self.prompter.ask_validated(
            "Please enter your hostname (e.g., example.com)",
            self.validation.ensure_hostname,
        )

        self.console.print(
            "\n[blue]Would you like to set up Let's Encrypt SSL certificates for your hostname?[/blue]"
        )
        use_letsencrypt = self.prompter.confirm("Use Let's Encrypt?")
        return ProxySettings(use_hostname=True, hostname=hostname, use_letsencrypt=use_letsencrypt)

    def _print_summary(
        self,
        credentials: CredentialPair,
        trusted_fullnode: str,
        public_ip: str,
        mercenary_mode: bool,
        disk_space_limit_bytes: int,
    ):
        rows = (
            ("DIG_USERNAME", credentials.username),
            ("DIG_PASSWORD", credentials.password),
            ("TRUSTED_FULLNODE", trusted_fullnode),
            ("PUBLIC_IP", public_ip),
            ("MERCENARY_MODE", str(mercenary_mode).lower()),
            ("DISK_SPACE_LIMIT_BYTES", str(disk_space_limit_bytes)),
        )
        self.console.print("\n[green]Configuration Summary:[/green]")
        self.console.print("----------------------")
        for name, value in rows:
            self.console.print(f"{name + ':':<24}[yellow]{value}[/yellow]")
        self.console.print("----------------------")

        self.console.print("\n[blue]Note:[/blue]")
        self.console.print(
            " - TRUSTED_FULLNODE is optional. It can be your own full node's public IP for better performance."
        )
        self.console.print(" - PUBLIC_IP should be set if your network setup requires an IP override.")
