#!/usr/bin/env python
"""Tests for file uploads through the file chooser."""

import pytest

from fakes import FakeDialog, FakeFileChooser, FakeSession
from iniadmoocs.errors import FileChooserTimeoutError, InteractionError
from iniadmoocs.submission import UploadCoordinator, UploadOperation, submit_assignment


def upload_session():
    session = FakeSession()
    chooser = FakeFileChooser()
    session.add_element("u", on_click=lambda: session.emit("filechooser", chooser))
    return session, chooser


class TestUploadCoordinator:
    """Test the UploadCoordinator class."""

    def test_single_file(self, settings):
        """Test that a single path reaches the file chooser."""
        session, chooser = upload_session()
        op = UploadOperation(ref="u", label="Report", paths=("/home/me/report.pdf",))

        line = UploadCoordinator(session, settings).upload(session.elements["u"], op)

        assert chooser.files == ["/home/me/report.pdf"]
        assert line == 'Uploaded file(s) /home/me/report.pdf via "Report"'

    def test_multiple_files_keep_order(self, settings):
        """Test that multiple paths are passed on in the given order."""
        session, chooser = upload_session()
        paths = ("/tmp/b.txt", "/tmp/a.txt", "/tmp/c.txt")
        op = UploadOperation(ref="u", paths=paths)

        line = UploadCoordinator(session, settings).upload(session.elements["u"], op)

        assert chooser.files == list(paths)
        assert "/tmp/b.txt, /tmp/a.txt, /tmp/c.txt" in line

    def test_relative_path_is_allowed(self, settings):
        """Test that relative paths only produce a warning."""
        session, chooser = upload_session()
        op = UploadOperation(ref="u", paths=("notes.txt",))

        UploadCoordinator(session, settings).upload(session.elements["u"], op)

        assert chooser.files == ["notes.txt"]

    def test_no_file_chooser(self, settings):
        """Test that a click without a file chooser times out with a dedicated error."""
        session = FakeSession()
        element = session.add_element("u")
        op = UploadOperation(ref="u", label="Attachment", paths=("/tmp/a.txt",))

        with pytest.raises(FileChooserTimeoutError, match='File chooser did not appear for "Attachment" within 5000ms'):
            UploadCoordinator(session, settings).upload(element, op)

        assert element.calls == [("click",)]

    def test_click_failure_is_not_a_chooser_timeout(self, settings):
        """Test that a failing click is reported as an interaction error."""
        session = FakeSession()
        element = session.add_element("u", fail_on={"click"})
        op = UploadOperation(ref="u", paths=("/tmp/a.txt",))

        with pytest.raises(InteractionError):
            UploadCoordinator(session, settings).upload(element, op)


class TestUploadInPipeline:
    """Test uploads as part of a submission."""

    def test_upload_then_submit(self, settings):
        """Test an upload followed by a confirmed submit."""
        session, chooser = upload_session()
        session.add_element("go", on_click=lambda: session.dialogs.offer(FakeDialog("All your answers have been saved.")))
        request = {
            "operations": [{"action": "upload", "ref": "u", "value": ["/tmp/x.py", "/tmp/y.py"]}],
            "submitButtonRef": "go",
        }

        result = submit_assignment(session, request, settings)

        assert not result.is_error
        assert chooser.files == ["/tmp/x.py", "/tmp/y.py"]
        assert result.trace[0] == 'Uploaded file(s) /tmp/x.py, /tmp/y.py via "element with reference u"'

    def test_chooser_timeout_aborts_submission(self, settings):
        """Test that a missing file chooser stops the run before the submit click."""
        session = FakeSession()
        session.add_element("u")
        submit = session.add_element("go")
        request = {"operations": [{"action": "upload", "ref": "u", "value": "/tmp/x.py"}], "submitButtonRef": "go"}

        result = submit_assignment(session, request, settings)

        assert result.is_error
        assert result.trace == ()
        assert submit.calls == []
        assert "File chooser did not appear" in result.error
