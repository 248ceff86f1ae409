"""Replay form operations against snapshot references and submit the form."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from iniadmoocs.clients import SessionHandle
from iniadmoocs.config import Settings
from iniadmoocs.errors import MoocsError, ResolutionError, translate_playwright_errors
from iniadmoocs.submission.arbiter import DialogArbiter
from iniadmoocs.submission.operations import (
    CheckOperation,
    ClickOperation,
    Operation,
    SelectOperation,
    SubmissionRequest,
    SubmitTarget,
    TypeOperation,
    UncheckOperation,
    UploadOperation,
    parse_request,
)
from iniadmoocs.submission.trace import SubmissionResult, SubmissionTrace
from iniadmoocs.submission.upload import UploadCoordinator


class OperationSequencer:
    """Apply operations strictly in order, then click the submit target.

    The first failing operation aborts the sequence; nothing after it, the
    submit click included, is attempted.
    """

    def __init__(self, session: SessionHandle, settings: Settings):
        self.session = session
        self.settings = settings
        self.uploads = UploadCoordinator(session, settings)

    def run(self, operations: tuple[Operation, ...], target: SubmitTarget, trace: SubmissionTrace) -> None:
        """Apply `operations` and click `target`, appending one trace line per step.

        Raises:
            MoocsError: The first failure; `trace` holds the steps completed before it.
        """
        if self.session.current_snapshot() is None:
            raise ResolutionError("No snapshot available. Please run browser_snapshot first.")

        for index, operation in enumerate(operations):
            logger.debug(f"Operation {index + 1}/{len(operations)}: {operation.action} {operation.ref}")
            trace.append(self.apply(operation))

        element = self.session.resolve(target.ref)
        with translate_playwright_errors(f'Clicking submit button "{target.element_name}"'):
            element.click(timeout=self.settings.action_timeout)
        logger.info(f'Clicked submit button "{target.element_name}"')
        trace.append(f"Clicked {target.element_name}")

    def apply(self, operation: Operation) -> str:
        """Apply one operation and return its trace line."""
        element = self.session.resolve(operation.ref)
        name = operation.element_name
        timeout = self.settings.action_timeout

        if isinstance(operation, UploadOperation):
            return self.uploads.upload(element, operation)

        with translate_playwright_errors(f'{operation.action.capitalize()} on "{name}"'):
            if isinstance(operation, TypeOperation):
                element.fill(operation.text, timeout=timeout)
                line = f'Typed "{operation.text}" into {name}'
            elif isinstance(operation, ClickOperation):
                element.click(timeout=timeout)
                line = f"Clicked {name}"
            elif isinstance(operation, CheckOperation):
                element.check(timeout=timeout)
                line = f"Checked {name}"
            elif isinstance(operation, UncheckOperation):
                element.uncheck(timeout=timeout)
                line = f"Unchecked {name}"
            elif isinstance(operation, SelectOperation):
                element.select_option(list(operation.values), timeout=timeout)
                line = f'Selected option(s) {", ".join(operation.values)} in {name}'
            else:
                raise TypeError(f"Unsupported operation: {operation!r}")
        logger.info(line)
        return line


def run_submission(session: SessionHandle, request: SubmissionRequest, settings: Settings) -> SubmissionResult:
    """Run the sequencer and the dialog arbiter, and classify the result.

    Never raises for page or browser failures: they become an error result
    carrying the trace of the steps that did complete.
    """
    trace = SubmissionTrace()
    try:
        with session.exclusive():
            stale = session.dialogs.take()
            if stale is not None:
                logger.warning(f"Dismissing dialog left over from before the submission: {stale.message!r}")
                with translate_playwright_errors("Dismissing leftover dialog"):
                    stale.dismiss()
            OperationSequencer(session, settings).run(request.operations, request.submit, trace)
            outcome = DialogArbiter(session, settings).arbitrate()
    except (MoocsError, PlaywrightError) as e:
        logger.error(f"Submission aborted after {len(trace)} step(s): {e}")
        return trace.fail(e)

    result = trace.classify(outcome)
    if result.is_error:
        logger.error(f"Submission not confirmed: {result.error}")
    else:
        logger.success(f"Submission confirmed after {len(request.operations)} input operation(s)")
    return result


def submit_assignment(session: SessionHandle, arguments: Mapping[str, Any], settings: Settings) -> SubmissionResult:
    """Parse a wire request and run the submission pipeline.

    An invalid request fails before the page is touched.
    """
    try:
        request = parse_request(arguments)
    except MoocsError as e:
        logger.error(f"Invalid submission request: {e}")
        return SubmissionTrace().fail(e)
    return run_submission(session, request, settings)
