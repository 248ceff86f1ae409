"""Post-submit confirmation dialog handling."""

from __future__ import annotations

from loguru import logger

from iniadmoocs.clients import SessionHandle
from iniadmoocs.config import Settings
from iniadmoocs.errors import ConfirmationError, MoocsError, translate_playwright_errors
from iniadmoocs.submission.trace import DialogOutcome, DialogVerdict


class DialogArbiter:
    """Accept or dismiss the dialog raised after the submit click.

    A missing dialog is reported as a failure, not as success.
    """

    def __init__(self, session: SessionHandle, settings: Settings):
        self.session = session
        self.settings = settings

    def is_confirmation(self, message: str) -> bool:
        return any(phrase in message for phrase in self.settings.accepted_confirmations)

    def arbitrate(self) -> DialogOutcome:
        """Wait out the grace period, then decide the pending dialog's fate.

        The pending-dialog slot is empty when this returns, whatever happened.

        Raises:
            ConfirmationError: If accepting or dismissing the dialog fails.
        """
        self.session.pause(self.settings.dialog_grace_period)
        dialog = self.session.dialogs.take()
        if dialog is None:
            logger.warning(f"No dialog appeared within {self.settings.dialog_grace_period}ms of submitting")
            return DialogOutcome(DialogVerdict.ABSENT)

        message = dialog.message
        try:
            if self.is_confirmation(message):
                dialog.accept()
                logger.info(f"Accepted confirmation dialog: {message!r}")
                return DialogOutcome(DialogVerdict.ACCEPTED, message)
            dialog.dismiss()
            logger.warning(f"Dismissed unexpected dialog: {message!r}")
            return DialogOutcome(DialogVerdict.DISMISSED, message)
        except Exception as e:
            raise ConfirmationError(f"Failed to handle dialog {message!r}: {e}") from e
        finally:
            leftover = self.session.dialogs.take()
            if leftover is not None:
                logger.warning(f"Dismissing dialog raised during arbitration: {leftover.message!r}")
                try:
                    with translate_playwright_errors("Dismissing leftover dialog"):
                        leftover.dismiss()
                except MoocsError as e:
                    logger.error(f"Could not dismiss leftover dialog: {e}")
