from __future__ import annotations

import logging
from io import StringIO

import pytest
from rich.console import Console

from xeenaps.notify import ConsoleNotifier


def _notifier() -> tuple[ConsoleNotifier, StringIO]:
    buffer = StringIO()
    return ConsoleNotifier(Console(file=buffer, width=200)), buffer


@pytest.mark.parametrize(
    "message",
    [
        "Exported to notes [/old]",
        "Imported from [Draft] study",
        "Saved [bold]",
    ],
)
def test_console_notifier_prints_brackets_verbatim(message: str) -> None:
    notifier, buffer = _notifier()

    notifier.notify("success", message)

    assert buffer.getvalue().strip() == message


def test_console_notifier_logs_level(caplog: pytest.LogCaptureFixture) -> None:
    notifier, _buffer = _notifier()

    with caplog.at_level(logging.INFO, logger="xeenaps.notify"):
        notifier.notify("error", "Export failed")

    assert caplog.records[-1].levelno == logging.ERROR
    assert caplog.records[-1].notify_level == "error"
