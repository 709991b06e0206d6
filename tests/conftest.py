"""Pytest configuration and fixtures.

Provides environment isolation and shared records. Isolation fixtures are
autouse; opt out with the markers noted on each.
"""

from __future__ import annotations

from contextlib import suppress
import os
from typing import Any

import pytest

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_rowwrap_env(request, monkeypatch, tmp_path):
    """Clear ROWWRAP_* variables and point settings at an empty project file.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("ROWWRAP_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ROWWRAP_PYPROJECT_PATH", str(tmp_path / "missing.toml"))


# =============================================================================
# Shared records
# =============================================================================


@pytest.fixture
def user_record() -> dict[str, Any]:
    return {
        "id": 1,
        "name": "Joe",
        "contact_email": "a@b.com",
        "contact_skype": "joe",
    }
