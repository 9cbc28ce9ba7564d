"""Let's Encrypt certificate issuance for the reverse proxy.

Issuance is modelled as a small state machine so the operator-driven retry
loop can be exercised without a terminal::

    AWAIT_CONFIRMATION --confirmed--------> ISSUING
    AWAIT_CONFIRMATION --skip-------------> ABANDONED
    AWAIT_CONFIRMATION --not ready--------> AWAIT_CONFIRMATION
    ISSUING            --issued-----------> SUCCEEDED
    ISSUING            --failed, give up--> ABANDONED
    ISSUING            --failed, retry----> AWAIT_CONFIRMATION
"""

import enum
import os
import shlex
from typing import Dict, List, Optional, Tuple

from rich.markup import escape

from dignode.constants import (
    FULLCHAIN_FILE_NAME,
    LETSENCRYPT_LIVE_DIR,
    PRIVKEY_FILE_NAME,
    PROXY_SERVICE,
    RENEWAL_SCHEDULE,
    SECRET_FILE_MODE,
)
from dignode.errors import ProvisioningError
from dignode.errors_catalog import actionable_error
from dignode.models import CertificateLease, NodePaths
from dignode.services.validation import ValidationService


class IssuanceState(enum.Enum):
    AWAIT_CONFIRMATION = "await_confirmation"
    ISSUING = "issuing"
    SUCCEEDED = "succeeded"
    ABANDONED = "abandoned"


class IssuanceEvent(enum.Enum):
    CONFIRMED = "confirmed"
    NOT_READY = "not_ready"
    SKIP = "skip"
    ISSUED = "issued"
    FAILED_RETRY = "failed_retry"
    FAILED_ABANDON = "failed_abandon"


_TRANSITIONS: Dict[Tuple[IssuanceState, IssuanceEvent], IssuanceState] = {
    (IssuanceState.AWAIT_CONFIRMATION, IssuanceEvent.CONFIRMED): IssuanceState.ISSUING,
    (IssuanceState.AWAIT_CONFIRMATION, IssuanceEvent.NOT_READY): IssuanceState.AWAIT_CONFIRMATION,
    (IssuanceState.AWAIT_CONFIRMATION, IssuanceEvent.SKIP): IssuanceState.ABANDONED,
    (IssuanceState.ISSUING, IssuanceEvent.ISSUED): IssuanceState.SUCCEEDED,
    (IssuanceState.ISSUING, IssuanceEvent.FAILED_RETRY): IssuanceState.AWAIT_CONFIRMATION,
    (IssuanceState.ISSUING, IssuanceEvent.FAILED_ABANDON): IssuanceState.ABANDONED,
}

TERMINAL_STATES = (IssuanceState.SUCCEEDED, IssuanceState.ABANDONED)


def next_state(state: IssuanceState, event: IssuanceEvent) -> IssuanceState:
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise ProvisioningError(
            f"Invalid certificate issuance transition: {state.value} on {event.value}"
        ) from None


class CertbotClient:
    """Thin wrapper around the certbot CLI and the root crontab."""

    def __init__(self, logger, command_runner, live_dir: str = LETSENCRYPT_LIVE_DIR):
        self.logger = logger
        self.command_runner = command_runner
        self.live_dir = live_dir

    def issue(self, hostname: str, email: str) -> bool:
        result = self.command_runner.run(
            [
                "certbot",
                "certonly",
                "--standalone",
                "-d",
                hostname,
                "--non-interactive",
                "--agree-tos",
                "--email",
                email,
            ],
            check=False,
        )
        return result.returncode == 0

    def lease(self, hostname: str) -> CertificateLease:
        domain_dir = os.path.join(self.live_dir, hostname)
        return CertificateLease(
            domain=hostname,
            fullchain_path=os.path.join(domain_dir, FULLCHAIN_FILE_NAME),
            privkey_path=os.path.join(domain_dir, PRIVKEY_FILE_NAME),
        )

    def renewal_entry(self, pre_hook: str, post_hook: str) -> str:
        return (
            f"{RENEWAL_SCHEDULE} certbot renew "
            f"--pre-hook {shlex.quote(pre_hook)} --post-hook {shlex.quote(post_hook)}"
        )

    def register_renewal(self, pre_hook: str, post_hook: str) -> bool:
        """Appends the renewal job to the crontab; returns False when it was already present."""
        entry = self.renewal_entry(pre_hook, post_hook)
        current = self.command_runner.run(["crontab", "-l"], check=False, capture_output=True)
        lines: List[str] = []
        if current.returncode == 0 and current.stdout:
            lines = current.stdout.splitlines()

        if entry in lines:
            self.logger.info("Certificate renewal job already registered")
            return False

        lines.append(entry)
        self.command_runner.run(["crontab", "-"], input_text="\n".join(lines) + "\n")
        self.logger.info("Registered certificate renewal job: %s", entry)
        return True


class IssuanceLoop:
    """Drives certificate issuance with explicit operator confirmation gates."""

    def __init__(
        self,
        logger,
        console,
        prompter,
        certbot_client: CertbotClient,
        docker_runtime_service,
        validation_service: Optional[ValidationService] = None,
    ):
        self.logger = logger
        self.console = console
        self.prompter = prompter
        self.certbot = certbot_client
        self.docker_runtime = docker_runtime_service
        self.validation = validation_service or ValidationService()
        self.attempts = 0

    def _print_prerequisites(self, hostname: str):
        self.console.print(
            "\n[yellow]To successfully obtain Let's Encrypt SSL certificates, "
            "please ensure the following:[/yellow]"
        )
        self.console.print(
            f"1. Your domain name ({hostname}) must be correctly configured to point to "
            "your server's public IP address."
        )
        self.console.print("2. Ports 80 and 443 must be open and accessible from the internet.")
        self.console.print(
            "3. No other service is running on port 80 (e.g., Apache, another Nginx instance)."
        )
        self.console.print("\nPlease make sure these requirements are met before proceeding.")

    def _await_confirmation(self, hostname: str) -> IssuanceEvent:
        self._print_prerequisites(hostname)
        if self.prompter.confirm("Have you completed these steps?"):
            return IssuanceEvent.CONFIRMED

        self.console.print("[red]Please complete the required steps before proceeding.[/red]")
        if self.prompter.confirm("Would you like to skip Let's Encrypt setup?"):
            return IssuanceEvent.SKIP
        return IssuanceEvent.NOT_READY

    def _issue(self, hostname: str, compose_file: str) -> IssuanceEvent:
        email = self.prompter.ask_validated(
            "Please enter your email address for Let's Encrypt notifications",
            self.validation.ensure_email,
        )

        self.console.print("\n[blue]Stopping Nginx container to set up Let's Encrypt...[/blue]")
        self.docker_runtime.stop_service(compose_file, PROXY_SERVICE)

        self.console.print(f"[blue]Obtaining SSL certificate for {hostname}...[/blue]")
        self.attempts += 1
        if self.certbot.issue(hostname, email):
            self.console.print("[green]SSL certificate obtained successfully.[/green]")
            return IssuanceEvent.ISSUED

        message = actionable_error("certificate_issuance_failed", hostname=hostname)
        self.logger.warning(message)
        self.console.print(f"[red]{escape(message)}[/red]")
        if self.prompter.declines("Would you like to try setting up Let's Encrypt again?"):
            return IssuanceEvent.FAILED_ABANDON
        return IssuanceEvent.FAILED_RETRY

    def run(self, hostname: str, compose_file: str) -> Optional[CertificateLease]:
        self.attempts = 0
        state = IssuanceState.AWAIT_CONFIRMATION
        while state not in TERMINAL_STATES:
            if state is IssuanceState.AWAIT_CONFIRMATION:
                event = self._await_confirmation(hostname)
            else:
                event = self._issue(hostname, compose_file)
            new_state = next_state(state, event)
            self.logger.debug("Issuance %s --%s--> %s", state.value, event.value, new_state.value)
            state = new_state

        if state is IssuanceState.ABANDONED:
            self.logger.info("Let's Encrypt setup abandoned after %s attempt(s)", self.attempts)
            return None
        return self.certbot.lease(hostname)


def install_lease(lease: CertificateLease, paths: NodePaths, filesystem_service) -> CertificateLease:
    """Copies the issued chain and key into the nginx certificate directory."""
    installed = CertificateLease(
        domain=lease.domain,
        fullchain_path=os.path.join(paths.nginx_certs_dir, FULLCHAIN_FILE_NAME),
        privkey_path=os.path.join(paths.nginx_certs_dir, PRIVKEY_FILE_NAME),
    )
    filesystem_service.copy_file(lease.fullchain_path, installed.fullchain_path)
    filesystem_service.copy_file(lease.privkey_path, installed.privkey_path, mode=SECRET_FILE_MODE)
    return installed
