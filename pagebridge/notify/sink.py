"""User-facing notifications.

Pipelines report outcomes through a NotificationSink so that the host decides
how they look. RichNotificationSink prints them to a terminal.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol

from rich.console import Console
from rich.markup import escape as rich_escape


class NotificationLevel(Enum):
    """Severity of a notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """A message for the user, with optional suggested actions."""

    level: NotificationLevel
    title: str
    message: str
    actions: list[str] = field(default_factory=list)

    def send(self, sink: NotificationSink | None) -> None:
        if sink is not None:
            sink.show(self.level, self.title, self.message, self.actions or None)


class NotificationSink(Protocol):
    """Where notifications go."""

    def show(
        self,
        level: NotificationLevel,
        title: str,
        message: str,
        actions: list[str] | None = None,
    ) -> None: ...


# ANSI escape sequences and C0 control characters (except \n, \t, \r)
_ANSI_ESCAPE = re.compile(
    r"\x1b\[[0-9;]*[ABCDEFGHJKSTfmnsu]|"
    r"\x1b\[\?[0-9;]*[hl]|"
    r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)|"
    r"\x1b[PX^_][^\x1b]*\x1b\\"
)
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_for_display(text: str) -> str:
    """Strip terminal escapes and escape Rich markup in untrusted text."""
    text = _ANSI_ESCAPE.sub("", text)
    text = _CONTROL_CHARS.sub("", text)
    return rich_escape(text)


@dataclass
class Theme:
    """Gumballs and styles per notification level."""

    gumballs: dict[NotificationLevel, str] = field(default_factory=lambda: {
        NotificationLevel.SUCCESS: "[green]●[/]",
        NotificationLevel.INFO: "[cyan]●[/]",
        NotificationLevel.WARNING: "[yellow]●[/]",
        NotificationLevel.ERROR: "[red]●[/]",
    })
    title: str = "bold"
    action: str = "dim"

    def gumball(self, level: NotificationLevel) -> str:
        return self.gumballs.get(level, "○")


class RichNotificationSink:
    """Prints notifications with gumball indicators on a Rich console.

    Titles and messages often quote page content, so they are treated as
    untrusted and escaped before printing.
    """

    def __init__(self, console: Console | None = None, theme: Theme | None = None) -> None:
        self.console = console or Console(highlight=False, markup=True)
        self.theme = theme or Theme()

    def show(
        self,
        level: NotificationLevel,
        title: str,
        message: str,
        actions: list[str] | None = None,
    ) -> None:
        gumball = self.theme.gumball(level)
        self.console.print(
            f"{gumball} [{self.theme.title}]{sanitize_for_display(title)}[/]"
        )
        if message:
            self.console.print(f"  {sanitize_for_display(message)}")
        for action in actions or []:
            self.console.print(f"  [{self.theme.action}]→ {sanitize_for_display(action)}[/]")
