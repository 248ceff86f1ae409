#!/usr/bin/env python
"""Tests for the assignment submission pipeline."""

import pytest

from fakes import FakeDialog, FakeSession
from iniadmoocs.submission import OperationSequencer, SubmissionTrace, parse_request, submit_assignment
from iniadmoocs.errors import ResolutionError

SAVED = "All your answers have been saved."


def confirming_session(message=SAVED, refs=("r1", "r2")):
    """A session where clicking the last ref raises a dialog with `message`."""
    session = FakeSession()
    for ref in refs[:-1]:
        session.add_element(ref)
    session.add_element(refs[-1], on_click=lambda: session.dialogs.offer(FakeDialog(message)))
    return session


class TestSubmitAssignment:
    """Test the submit_assignment pipeline end to end against a fake session."""

    def test_type_then_submit_is_confirmed(self, settings):
        """Test the basic type-and-submit scenario with an accepted confirmation."""
        session = confirming_session()
        request = {"operations": [{"action": "type", "ref": "r1", "value": "hello"}], "submitButtonRef": "r2"}

        result = submit_assignment(session, request, settings)

        assert result.is_error is False
        assert result.trace == (
            'Typed "hello" into element with reference r1',
            "Clicked element with reference r2",
            f'Dialog accepted automatically: "{SAVED}"',
        )
        assert session.elements["r1"].calls == [("fill", "hello")]
        assert result.error is None

    def test_trace_has_one_line_per_operation_plus_two(self, settings):
        """Test that a successful run records every operation, the submit and the dialog."""
        session = confirming_session(refs=("a", "b", "c", "d", "go"))
        request = {
            "operations": [
                {"action": "type", "ref": "a", "value": "x", "element": "Answer"},
                {"action": "check", "ref": "b"},
                {"action": "uncheck", "ref": "c"},
                {"action": "select", "ref": "d", "value": ["1", "2"]},
            ],
            "submitButtonRef": "go",
            "submitButtonElement": "Submit",
        }

        result = submit_assignment(session, request, settings)

        assert not result.is_error
        assert len(result.trace) == 4 + 2
        assert result.trace[0] == 'Typed "x" into Answer'
        assert result.trace[4] == "Clicked Submit"
        assert [action for _, action, *_ in session.actions] == ["fill", "check", "uncheck", "select_option", "click"]

    def test_operations_run_in_request_order(self, settings):
        """Test that operations are applied strictly in the order given."""
        session = confirming_session(refs=("r3", "r1", "r2", "go"))
        request = {
            "operations": [{"action": "click", "ref": ref} for ref in ("r3", "r1", "r2")],
            "submitButtonRef": "go",
        }

        submit_assignment(session, request, settings)

        assert session.resolved == ["r3", "r1", "r2", "go"]

    def test_empty_operations_only_submit(self, settings):
        """Test that a request with no operations still clicks submit."""
        session = confirming_session(refs=("go",))

        result = submit_assignment(session, {"operations": [], "submitButtonRef": "go"}, settings)

        assert not result.is_error
        assert len(result.trace) == 2

    def test_failure_stops_sequence(self, settings):
        """Test that the first failing operation aborts everything after it."""
        session = FakeSession()
        session.add_element("r1")
        session.add_element("r2", fail_on={"click"})
        session.add_element("r3")
        submit = session.add_element("r4")
        request = {
            "operations": [
                {"action": "type", "ref": "r1", "value": "ok"},
                {"action": "click", "ref": "r2"},
                {"action": "check", "ref": "r3"},
            ],
            "submitButtonRef": "r4",
        }

        result = submit_assignment(session, request, settings)

        assert result.is_error
        assert len(result.trace) == 1
        assert session.resolved == ["r1", "r2"]
        assert session.elements["r3"].calls == []
        assert submit.calls == []
        assert "click failed on r2" in result.error
        assert "Completed steps:" in result.text

    def test_unknown_reference_fails_at_its_index(self, settings):
        """Test that a reference missing from the snapshot fails that operation."""
        session = FakeSession()
        session.add_element("r1")
        session.add_element("go")
        request = {
            "operations": [{"action": "click", "ref": "r1"}, {"action": "click", "ref": "zz"}],
            "submitButtonRef": "go",
        }

        result = submit_assignment(session, request, settings)

        assert result.is_error
        assert result.trace == ("Clicked element with reference r1",)
        assert "'zz'" in result.error

    def test_no_snapshot(self, settings):
        """Test that nothing is resolved when no snapshot exists."""
        session = FakeSession(has_snapshot=False)

        result = submit_assignment(
            session, {"operations": [{"action": "click", "ref": "r1"}], "submitButtonRef": "r2"}, settings
        )

        assert result.is_error
        assert result.trace == ()
        assert session.resolved == []
        assert "No snapshot available" in result.error

    def test_invalid_request_touches_nothing(self, settings):
        """Test that a malformed value is rejected before any page interaction."""
        session = confirming_session()
        request = {
            "operations": [
                {"action": "click", "ref": "r1"},
                {"action": "type", "ref": "r1", "value": ["not", "a", "string"]},
            ],
            "submitButtonRef": "r2",
        }

        result = submit_assignment(session, request, settings)

        assert result.is_error
        assert result.trace == ()
        assert session.resolved == []
        assert session.actions == []
        assert "Invalid value type for 'type' action" in result.error

    def test_unexpected_dialog_is_dismissed(self, settings):
        """Test that a dialog without an accepted phrase is dismissed and reported."""
        dialog = FakeDialog("Are you sure you want to leave?")
        session = FakeSession()
        session.add_element("go", on_click=lambda: session.dialogs.offer(dialog))

        result = submit_assignment(session, {"submitButtonRef": "go"}, settings)

        assert result.is_error
        assert dialog.dismissed and not dialog.accepted
        assert len(result.trace) == 2
        assert "Are you sure you want to leave?" in result.error

    def test_missing_dialog_is_an_error(self, settings):
        """Test that a submit with no confirmation dialog is not reported as success."""
        session = FakeSession()
        session.add_element("go")

        result = submit_assignment(session, {"submitButtonRef": "go"}, settings)

        assert result.is_error
        assert result.trace[-1] == "No confirmation dialog appeared after clicking the submit button"
        assert session.pauses == [settings.dialog_grace_period]

    def test_japanese_confirmation_is_accepted(self, settings):
        """Test that the Japanese confirmation phrase is accepted."""
        session = confirming_session(message="解答を保存しました。", refs=("go",))

        result = submit_assignment(session, {"submitButtonRef": "go"}, settings)

        assert not result.is_error

    def test_dialog_raised_during_grace_period(self, settings):
        """Test that a dialog arriving after the click but within the grace period is handled."""
        dialog = FakeDialog(SAVED)
        session = FakeSession()
        session.add_element("go")
        session.on_pause = lambda: session.dialogs.offer(dialog)

        result = submit_assignment(session, {"submitButtonRef": "go"}, settings)

        assert not result.is_error
        assert dialog.accepted

    def test_stale_dialog_is_not_taken_as_confirmation(self, settings):
        """Test that a dialog pending before the run is dismissed, not accepted."""
        old = FakeDialog(SAVED)
        session = FakeSession()
        session.add_element("go")
        session.dialogs.offer(old)

        result = submit_assignment(session, {"submitButtonRef": "go"}, settings)

        assert old.dismissed and not old.accepted
        assert result.is_error

    def test_busy_session_is_rejected(self, settings):
        """Test that a second run on a busy session fails without touching the page."""
        session = confirming_session(refs=("go",))

        with session.exclusive():
            result = submit_assignment(session, {"submitButtonRef": "go"}, settings)

        assert result.is_error
        assert "already running" in result.error
        assert session.resolved == []

    def test_slot_is_empty_afterwards(self, settings):
        """Test that no dialog stays pending after the pipeline returns."""
        session = confirming_session(refs=("go",))

        submit_assignment(session, {"submitButtonRef": "go"}, settings)

        assert session.dialogs.peek() is None

    def test_tool_result_shape(self, settings):
        """Test the MCP-style result produced for callers."""
        session = confirming_session(refs=("go",))

        result = submit_assignment(session, {"submitButtonRef": "go"}, settings).to_tool_result()

        assert result["isError"] is False
        assert result["content"][0]["type"] == "text"
        assert result["content"][0]["text"].startswith("Successfully performed 2 steps:")


class TestOperationSequencer:
    """Test the OperationSequencer directly."""

    def test_select_with_bare_string(self, settings):
        """Test that a single select value is applied as a one-element list."""
        session = FakeSession()
        element = session.add_element("s")
        session.add_element("go")
        request = parse_request({"operations": [{"action": "select", "ref": "s", "value": "b"}], "submitButtonRef": "go"})
        trace = SubmissionTrace()

        OperationSequencer(session, settings).run(request.operations, request.submit, trace)

        assert element.calls == [("select_option", ["b"])]
        assert trace.lines[0] == "Selected option(s) b in element with reference s"

    def test_run_raises_on_failure(self, settings):
        """Test that the sequencer raises and leaves completed steps in the trace."""
        session = FakeSession()
        session.add_element("a")
        request = parse_request(
            {"operations": [{"action": "check", "ref": "a"}, {"action": "check", "ref": "missing"}], "submitButtonRef": "go"}
        )
        trace = SubmissionTrace()

        with pytest.raises(ResolutionError):
            OperationSequencer(session, settings).run(request.operations, request.submit, trace)

        assert trace.lines == ("Checked element with reference a",)
