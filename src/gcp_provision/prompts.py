from __future__ import annotations

from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt


class Prompter:
    """Operator interaction used by the pipeline.

    Every call blocks until the operator answers.
    """

    def select(self, message: str, options: Sequence[str], default: int = 0) -> int:
        """Return the zero-based index of the chosen option."""
        raise NotImplementedError

    def text(
        self,
        message: str,
        default: Optional[str] = None,
        *,
        password: bool = False,
        allow_blank: bool = False,
    ) -> str:
        raise NotImplementedError

    def confirm(self, message: str, default: bool = False) -> bool:
        raise NotImplementedError


class RichPrompter(Prompter):
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def select(self, message: str, options: Sequence[str], default: int = 0) -> int:
        if not options:
            raise ValueError("select() needs at least one option")
        self.console.print(f"\n[bold]{escape(message)}[/bold]")
        for idx, label in enumerate(options, start=1):
            self.console.print(f"  [cyan]{idx}[/cyan]) {escape(label)}", highlight=False)

        default_idx = str(min(max(default, 0), len(options) - 1) + 1)
        while True:
            ans = Prompt.ask("Select", default=default_idx, console=self.console)
            try:
                i = int(ans)
            except (TypeError, ValueError):
                i = 0
            if 1 <= i <= len(options):
                return i - 1
            self.console.print(f"[red]Invalid selection: {ans}[/red]")

    def text(
        self,
        message: str,
        default: Optional[str] = None,
        *,
        password: bool = False,
        allow_blank: bool = False,
    ) -> str:
        while True:
            if default:
                v = Prompt.ask(message, default=default, password=password, console=self.console)
            else:
                v = Prompt.ask(message, password=password, console=self.console)
            v = (v or "").strip()
            if v or allow_blank:
                return v
            self.console.print("[red]A value is required.[/red]")

    def confirm(self, message: str, default: bool = False) -> bool:
        return bool(Confirm.ask(message, default=default, console=self.console))
