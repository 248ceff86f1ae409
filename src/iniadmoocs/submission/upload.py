"""File uploads through the browser's file chooser."""

from __future__ import annotations

import os
from typing import Any

from loguru import logger

from iniadmoocs.clients import SessionHandle
from iniadmoocs.config import Settings
from iniadmoocs.errors import FileChooserTimeoutError, WaitTimeoutError, translate_playwright_errors
from iniadmoocs.submission.operations import UploadOperation


class UploadCoordinator:
    """Realize an upload operation.

    Clicking an upload control does not set files directly; it makes the
    browser raise a "filechooser" event. The listener must be armed before the
    click.
    """

    def __init__(self, session: SessionHandle, settings: Settings):
        self.session = session
        self.settings = settings

    def upload(self, element: Any, operation: UploadOperation) -> str:
        """Click `element`, wait for the file chooser, and give it the paths.

        Returns:
            The trace line for the completed upload.

        Raises:
            FileChooserTimeoutError: If no file chooser appears within the bound.
            InteractionError: If the click or setting the files fails.
        """
        paths = list(operation.paths)
        relative = [p for p in paths if not os.path.isabs(p)]
        if relative:
            logger.warning(f"Potential relative path detected in file upload: {', '.join(relative)}. Assuming absolute paths.")

        timeout = self.settings.file_chooser_timeout
        clicked = False
        try:
            with self.session.expect_event("filechooser", timeout) as chooser_info:
                with translate_playwright_errors(f'Clicking upload trigger "{operation.element_name}"'):
                    element.click()
                clicked = True
        except WaitTimeoutError as e:
            if not clicked:
                raise
            raise FileChooserTimeoutError(
                f'File chooser did not appear for "{operation.element_name}" within {timeout}ms after clicking.'
            ) from e
        logger.debug(f'File chooser opened for "{operation.element_name}"')

        chooser = chooser_info.value
        with translate_playwright_errors(f'Setting files for "{operation.element_name}"'):
            chooser.set_files(paths)
        logger.info(f'Selected file(s) for "{operation.element_name}": {", ".join(paths)}')
        return f'Uploaded file(s) {", ".join(paths)} via "{operation.element_name}"'
