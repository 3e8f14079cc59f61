"""Console rendering of check-in notices."""

from __future__ import annotations

import os
import sys
from typing import Dict, List, Optional, Tuple

from rich.console import Console
from rich.text import Text

from ..core.reporter import Notice, Severity

__all__ = ["ConsoleNotifier", "RecordingNotifier"]


class ConsoleNotifier:
    """Print notices the way a toast would show them: icon, colour, message."""

    STYLES: Dict[Severity, Tuple[str, str]] = {
        Severity.INFO: ("•", "bold"),
        Severity.SUCCESS: ("✓", "bold green"),
        Severity.WARNING: ("!", "bold yellow"),
        Severity.DANGER: ("✗", "bold red"),
    }

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(
            file=sys.stdout,
            no_color=os.getenv("NO_COLOR") is not None,
            highlight=False,
        )

    def __call__(self, notice: Notice) -> None:
        icon, style = self.STYLES.get(notice.severity, self.STYLES[Severity.INFO])
        line = Text(f"{icon} ", style=style)
        line.append(notice.message, style="" if notice.severity is Severity.INFO else style)
        self.console.print(line)


class RecordingNotifier:
    """Collect notices in memory; handy for scripted runs and tests."""

    def __init__(self) -> None:
        self.notices: List[Notice] = []

    def __call__(self, notice: Notice) -> None:
        self.notices.append(notice)
