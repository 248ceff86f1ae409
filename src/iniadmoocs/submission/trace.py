"""Step traces and the final verdict of a submission."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from iniadmoocs.errors import ConfirmationAbsentError, ConfirmationError, ConfirmationMismatchError


class DialogVerdict(Enum):
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
    ABSENT = "absent"


@dataclass(frozen=True)
class DialogOutcome:
    """What the dialog arbiter decided, and the raw message if there was one."""

    verdict: DialogVerdict
    message: str | None = None

    @property
    def is_error(self) -> bool:
        return self.verdict is not DialogVerdict.ACCEPTED

    def describe(self) -> str:
        if self.verdict is DialogVerdict.ACCEPTED:
            return f'Dialog accepted automatically: "{self.message}"'
        if self.verdict is DialogVerdict.DISMISSED:
            return f'Dialog dismissed because its message was not a submission confirmation: "{self.message}"'
        return "No confirmation dialog appeared after clicking the submit button"

    def error(self) -> ConfirmationError | None:
        if self.verdict is DialogVerdict.DISMISSED:
            return ConfirmationMismatchError(self.message or "")
        if self.verdict is DialogVerdict.ABSENT:
            return ConfirmationAbsentError("The submission was not confirmed by the platform.")
        return None


@dataclass(frozen=True)
class SubmissionResult:
    """Immutable verdict of one submission run.

    `trace` holds one line per completed step. When a step fails, its message
    is in `error` and is not part of the trace.
    """

    trace: tuple[str, ...]
    is_error: bool
    error: str | None = None

    @property
    def text(self) -> str:
        steps = "\n".join(f"- {line}" for line in self.trace)
        if not self.is_error:
            return f"Successfully performed {len(self.trace)} steps:\n{steps}"
        header = f"Error during assignment submission: {self.error}" if self.error else "Assignment submission failed."
        if not self.trace:
            return header
        return f"{header}\nCompleted steps:\n{steps}"

    def to_tool_result(self) -> dict[str, Any]:
        return {"content": [{"type": "text", "text": self.text}], "isError": self.is_error}


class SubmissionTrace:
    """Append-only record of completed steps, frozen into a SubmissionResult."""

    def __init__(self) -> None:
        self._lines: list[str] = []
        self._frozen = False

    def append(self, line: str) -> None:
        if self._frozen:
            raise RuntimeError("Trace is frozen")
        self._lines.append(line)

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def fail(self, error: Exception | str) -> SubmissionResult:
        """Freeze the trace as a failed run."""
        self._frozen = True
        return SubmissionResult(trace=self.lines, is_error=True, error=str(error))

    def classify(self, outcome: DialogOutcome) -> SubmissionResult:
        """Record the dialog outcome as the final step and freeze the trace."""
        self.append(outcome.describe())
        self._frozen = True
        error = outcome.error()
        return SubmissionResult(trace=self.lines, is_error=outcome.is_error, error=str(error) if error else None)
