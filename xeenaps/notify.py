from __future__ import annotations

import logging
from typing import Literal, Protocol

from rich.console import Console

Level = Literal["success", "error", "info", "warning"]

_STYLES: dict[str, str] = {
    "success": "green",
    "error": "red",
    "info": "cyan",
    "warning": "yellow",
}
_LOG_LEVELS: dict[str, int] = {
    "success": logging.INFO,
    "error": logging.ERROR,
    "info": logging.INFO,
    "warning": logging.WARNING,
}

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, level: Level, message: str) -> None: ...


class ConsoleNotifier:
    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def notify(self, level: Level, message: str) -> None:
        logger.log(_LOG_LEVELS.get(level, logging.INFO), message, extra={"notify_level": level})
        style = _STYLES.get(level, "white")
        self.console.print(message, style=style, markup=False)
