import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from iniadmoocs.config import Settings  # noqa: E402


@pytest.fixture
def settings(tmp_path):
    """Settings with short waits and an auth state file under tmp_path."""
    return Settings(auth_state_path=tmp_path / "moocs_auth.json", dialog_grace_period=10)
