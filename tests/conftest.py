"""Test configuration and fixtures for the streaming client test suite."""

import os
import sys
from pathlib import Path

import pytest
from dotenv import load_dotenv


# Add the project root to the Python path
@pytest.fixture(scope="session", autouse=True)
def setup_path() -> None:
    """Add the project root to the Python path."""
    project_root = Path(__file__).parent.parent
    sys.path.insert(0, str(project_root))

    # Load environment variables from .env file
    load_dotenv()


@pytest.fixture(autouse=True)
def isolate_stream_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep STREAM_* settings from the developer's shell out of unit tests."""
    for key in list(os.environ):
        if key.startswith("STREAM_"):
            monkeypatch.delenv(key)
