"""Error payload for the lifecycle bounded context."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

LifecycleErrorKind = Literal[
    "ambiguous_input",
    "missing_input",
    "unsupported_input",
    "unsupported_version",
    "resolution_failed",
    "invalid_input",
    "network",
    "io",
]


@dataclass(frozen=True, slots=True)
class LifecycleError:
    """Canonical lifecycle error.

    ``message`` is a full sentence meant for the user; ``hint`` carries
    extra context (a path, a server response) when there is one.
    """

    kind: LifecycleErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message

    def join(self, other: LifecycleError) -> LifecycleError:
        """Combine two failures, keeping the first one's kind."""
        hint = "\n".join(h for h in (self.hint, other.hint) if h) or None
        return LifecycleError(
            kind=self.kind,
            message=f"{self.message}\n{other.message}",
            hint=hint,
        )
