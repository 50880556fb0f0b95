"""Pytest configuration and shared fixtures."""
import io

import pytest

from kvshell.engine.in_memory import forget_homes
from kvshell.terminal.writer import RenderWriter


class RecordingHandler:
    """Collects executor messages in delivery order."""

    def __init__(self):
        self.messages = []

    async def handle_message(self, message):
        self.messages.append(message)

    def texts(self):
        return [str(m) for m in self.messages]


@pytest.fixture(autouse=True)
def clean_memory_homes():
    """Give every test fresh in-memory databases."""
    yield
    forget_homes()


@pytest.fixture
def out():
    """Return a text buffer standing in for the terminal."""
    return io.StringIO()


@pytest.fixture
def writer(out):
    """Return a render writer over the test buffer."""
    return RenderWriter(out)


@pytest.fixture
def recorder():
    """Return a message handler that records what it receives."""
    return RecordingHandler()
