from __future__ import annotations

from typing import Optional, Sequence, TextIO

from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.theme import Theme

THEME = Theme(
    {
        "success": "green",
        "failure": "bold red",
        "info": "yellow",
    }
)


class Reporter:
    """Operator-facing progress lines with colored pass/fail markers."""

    def __init__(self, console: Optional[Console] = None, *, file: Optional[TextIO] = None) -> None:
        self.console = console or Console(theme=THEME, highlight=False, markup=False, emoji=False, file=file)

    def begin(self, title: str) -> None:
        self.console.print(f"{title}...", end="")

    def ok(self, msg: str = "OK") -> None:
        self.console.print(msg, style="success")

    def fail(self, msg: str) -> None:
        self.console.print(msg, style="failure")

    def info(self, msg: str) -> None:
        self.console.print(msg, style="info")

    def line(self, msg: str = "") -> None:
        self.console.print(msg)

    def check(self, result) -> None:
        self.begin(result.check)
        if result.success:
            self.ok(result.message)
        else:
            self.fail(result.message)

    def rule(self, title: str) -> None:
        self.console.print(Rule(title), style="success")

    def table(self, title: str, columns: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        table = Table(title=title)
        for c in columns:
            table.add_column(c)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)
