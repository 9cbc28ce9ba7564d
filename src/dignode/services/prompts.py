"""Terminal prompt protocol for dig-node-setup."""

from typing import Callable, Optional, TypeVar

import click
from rich.markup import escape

from dignode.errors import ProvisioningError

T = TypeVar("T")

AFFIRMATIVE = ("y", "Y")
NEGATIVE = ("n", "N")


class Prompter:
    """Asks the operator questions.

    Yes/no questions only accept a single ``y``/``Y`` as affirmative; any other
    reply, including an empty one, counts as "no".
    """

    def __init__(self, console, prompt_func: Callable[..., str] = click.prompt):
        self.console = console
        self.prompt_func = prompt_func

    def _read(self, question: str) -> str:
        try:
            reply = self.prompt_func(question, default="", show_default=False)
        except UnicodeDecodeError:
            return ""
        return (reply or "").strip()

    def confirm(self, question: str) -> bool:
        return self._read(f"{question} (y/n)") in AFFIRMATIVE

    def declines(self, question: str) -> bool:
        """Returns True only for an explicit ``n``/``N`` reply."""
        return self._read(f"{question} (y/n)") in NEGATIVE

    def ask(self, question: str, default: str = "") -> str:
        reply = self._read(question)
        return reply if reply else default

    def ask_validated(
        self,
        question: str,
        parse: Callable[[str], T],
        default: Optional[T] = None,
    ) -> T:
        """Re-asks until ``parse`` accepts the reply; an empty reply returns ``default`` when given."""
        while True:
            reply = self._read(question)
            if not reply and default is not None:
                return default
            try:
                return parse(reply)
            except ProvisioningError as exc:
                self.console.print(f"[red]{escape(str(exc))}[/red]")
