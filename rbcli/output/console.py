"""Console output abstraction.

Services report progress and warnings through ``ConsoleProtocol`` instead
of printing. Production code hands them a ``RichConsole``; tests hand them
a ``MockConsole`` and assert on what was captured.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()

    def __str__(self) -> str:
        return self.name.lower()


# Leading label and rich markup per style; DEFAULT and DIM carry no label.
_LABELS: dict[Style, tuple[str, str]] = {
    Style.SUCCESS: ("OK", "green"),
    Style.ERROR: ("error:", "red bold"),
    Style.WARNING: ("warning:", "yellow"),
    Style.INFO: ("info:", "cyan"),
}
_DIAGNOSTICS = frozenset({Style.ERROR, Style.WARNING})


class ConsoleProtocol(Protocol):
    """Styled, line-oriented output."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class _LabelledConsole:
    """Routes the labelled shorthands through ``_emit``."""

    def _emit(self, message: str, style: Style) -> None:
        raise NotImplementedError

    def success(self, message: str) -> None:
        self._emit(message, Style.SUCCESS)

    def error(self, message: str) -> None:
        self._emit(message, Style.ERROR)

    def warning(self, message: str) -> None:
        self._emit(message, Style.WARNING)

    def info(self, message: str) -> None:
        self._emit(message, Style.INFO)


class RichConsole(_LabelledConsole):
    """Console backed by Rich.

    Warnings and errors go to stderr so stdout stays clean when piped.
    """

    def __init__(self) -> None:
        from rich.console import Console

        self._console = Console()
        self._err_console = Console(stderr=True)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        if style is Style.DIM:
            self._console.print(message, style="dim", highlight=False)
        elif style in _LABELS:
            self._emit(message, style)
        else:
            self._console.print(message, highlight=False)

    def _emit(self, message: str, style: Style) -> None:
        label, markup = _LABELS[style]
        target = self._err_console if style in _DIAGNOSTICS else self._console
        target.print(f"[{markup}]{label}[/{markup}] {message}", highlight=False)


@dataclass
class OutputRecord:
    message: str
    style: Style


@dataclass
class MockConsole(_LabelledConsole):
    """Console that captures output for tests."""

    outputs: list[OutputRecord] = field(default_factory=list)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def _emit(self, message: str, style: Style) -> None:
        label, _ = _LABELS[style]
        self.outputs.append(OutputRecord(f"{label} {message}", style))

    def clear(self) -> None:
        self.outputs.clear()

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def has_warning(self) -> bool:
        return any(o.style == Style.WARNING for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        """Outputs whose message contains ``substring``."""
        return [o for o in self.outputs if substring in o.message]

    def count(self, style: Style) -> int:
        return sum(1 for o in self.outputs if o.style == style)
