#!/usr/bin/env python
"""Tests for command registration on the main app."""

import pytest
from typer.testing import CliRunner

from iniadmoocs import app

runner = CliRunner()


@pytest.mark.parametrize(
    "group,commands",
    [
        ("moocs", ["login", "courses", "lectures", "slides", "snapshot"]),
        ("submission", ["submit"]),
    ],
)
def test_subcommand_groups(group, commands):
    """Test that each subpackage registers its commands under its own group."""
    result = runner.invoke(app, [group, "--help"])
    assert result.exit_code == 0
    for command in commands:
        assert command in result.output


def test_serve_on_main_app():
    """Test that the server command stays at the top level."""
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "serve" in result.output
    assert "moocs" in result.output
