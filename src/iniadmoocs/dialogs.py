"""Single-slot register for dialogs raised by the page."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Any, Protocol

from loguru import logger


class DialogLike(Protocol):
    """The subset of `playwright.sync_api.Dialog` used here."""

    @property
    def message(self) -> str: ...

    @property
    def type(self) -> str: ...

    def accept(self, prompt_text: str | None = None) -> None: ...

    def dismiss(self) -> None: ...


class OverflowPolicy(Enum):
    """What to do when a dialog arrives while another one is still pending.

    * OVERWRITE: dismiss the pending dialog and keep the new one.
    * REJECT: dismiss the new dialog and keep the pending one.
    """

    OVERWRITE = "overwrite"
    REJECT = "reject"


class PendingDialogSlot:
    """Capacity-1 register written by the page's dialog event handler.

    The producer is `offer()`, wired to `page.on("dialog", ...)`; the consumer
    is whoever calls `take()` (the dialog arbiter or the manual dialog tool).
    A dialog that loses an overflow is dismissed immediately.
    """

    def __init__(self, policy: OverflowPolicy = OverflowPolicy.OVERWRITE):
        self.policy = policy
        self._dialog: Any = None
        self._lock = threading.Lock()

    def offer(self, dialog: DialogLike) -> None:
        """Store a newly raised dialog, applying the overflow policy."""
        with self._lock:
            pending = self._dialog
            if pending is None:
                self._dialog = dialog
                displaced = None
            elif self.policy is OverflowPolicy.OVERWRITE:
                self._dialog = dialog
                displaced = pending
            else:
                displaced = dialog
        logger.debug(f"Dialog raised ({dialog.type}): {dialog.message!r}")
        if displaced is not None:
            logger.warning(f"Dismissing displaced dialog ({self.policy.value}): {displaced.message!r}")
            displaced.dismiss()

    def peek(self) -> DialogLike | None:
        with self._lock:
            return self._dialog

    def take(self) -> DialogLike | None:
        """Return the pending dialog, if any, and clear the slot."""
        with self._lock:
            dialog, self._dialog = self._dialog, None
        return dialog

    def clear(self) -> None:
        with self._lock:
            self._dialog = None

    def __bool__(self) -> bool:
        return self.peek() is not None
