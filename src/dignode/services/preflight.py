"""Host precondition checks for dig-node-setup."""

import grp
import os
import pwd
import shutil
from typing import Callable, Iterable, List, Optional

from dignode.constants import DOCKER_GROUP, REQUIRED_SOFTWARE
from dignode.errors import PreconditionError
from dignode.errors_catalog import actionable_error

COMPOSE_DOWNLOAD_URL = (
    "https://github.com/docker/compose/releases/download/v2.21.0/"
    "docker-compose-$(uname -s)-$(uname -m)"
)

_YUM_INSTRUCTIONS = {
    "docker": ["sudo amazon-linux-extras install docker -y"],
    "docker-compose": [
        f"sudo curl -L '{COMPOSE_DOWNLOAD_URL}' -o /usr/local/bin/docker-compose",
        "sudo chmod +x /usr/local/bin/docker-compose",
    ],
    "firewalld": [
        "sudo yum install firewalld -y",
        "sudo systemctl start firewalld",
        "sudo systemctl enable firewalld",
    ],
    "certbot": ["sudo yum install certbot -y"],
}


class PreflightService:
    """Verifies privilege level, required tools and docker group membership."""

    def __init__(
        self,
        logger,
        console,
        command_runner,
        which: Callable[[str], Optional[str]] = shutil.which,
        geteuid: Callable[[], int] = os.geteuid,
    ):
        self.logger = logger
        self.console = console
        self.command_runner = command_runner
        self.which = which
        self.geteuid = geteuid

    def ensure_root(self):
        if self.geteuid() != 0:
            raise PreconditionError(actionable_error("not_root"))

    def find_missing(self, tools: Iterable[str] = REQUIRED_SOFTWARE) -> List[str]:
        return [tool for tool in tools if self.which(tool) is None]

    def installation_instructions(self, missing: Iterable[str]) -> List[str]:
        if self.which("yum") is None:
            return []

        commands: List[str] = []
        for tool in missing:
            commands.extend(_YUM_INSTRUCTIONS.get(tool, [f"sudo yum install {tool} -y"]))
        return commands

    def ensure_required_software(self, tools: Iterable[str] = REQUIRED_SOFTWARE):
        self.console.print("[blue]Checking for required software...[/blue]")
        missing = self.find_missing(tools)
        if not missing:
            self.console.print("[green]All required software is installed.[/green]")
            return

        self.console.print("\n[red]The following required software is missing:[/red]")
        for tool in missing:
            self.console.print(f" - {tool}")

        commands = self.installation_instructions(missing)
        if commands:
            self.console.print("\n[yellow]To install missing software on Amazon Linux 2, run:[/yellow]")
            for command in commands:
                self.console.print(command, markup=False)
        else:
            self.console.print(
                "[red]Package manager not detected. Please manually install the missing software.[/red]"
            )

        raise PreconditionError(actionable_error("missing_software", tools=", ".join(missing)))

    def is_in_group(self, user_name: str, group_name: str = DOCKER_GROUP) -> bool:
        try:
            group_id = grp.getgrnam(group_name).gr_gid
            primary_gid = pwd.getpwnam(user_name).pw_gid
        except KeyError:
            return False
        return group_id in os.getgrouplist(user_name, primary_gid)

    def ensure_docker_group(self, user_name: str, prompter):
        if self.is_in_group(user_name):
            self.console.print(f"\n[green]User {user_name} is already in the docker group.[/green]")
            return

        self.console.print("\n[yellow]To work properly, your user must be added to the docker group.[/yellow]")
        if not prompter.confirm(f"Would you like to add {user_name} to the docker group now?"):
            raise PreconditionError(actionable_error("docker_group_declined", user=user_name))

        self.command_runner.run(["usermod", "-aG", DOCKER_GROUP, user_name])
        if not self.is_in_group(user_name):
            raise PreconditionError(actionable_error("docker_group_failed", user=user_name))

        self.logger.info("Added %s to the docker group", user_name)
        self.console.print(f"[green]User {user_name} is now in the docker group.[/green]")
