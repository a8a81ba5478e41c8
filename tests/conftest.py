"""Test configuration and fixtures."""
import pytest

from directory import UserDirectory
from hub import ConnectionHub
from messages import MessageFactory
from protocol import ProtocolHandler

FIXED_TIME = 1_700_000_000_000
BANNED_WORDS = {"darn", "heck"}


def fake_is_profane(text: str) -> bool:
    return any(word in text.lower().split() for word in BANNED_WORDS)


def drain(outbox):
    """Pop every queued frame from an outbox."""
    frames = []
    while not outbox.empty():
        frames.append(outbox.get_nowait())
    return frames


@pytest.fixture
def directory():
    return UserDirectory()


@pytest.fixture
def hub(directory):
    return ConnectionHub(directory)


@pytest.fixture
def message_factory():
    return MessageFactory(clock=lambda: FIXED_TIME)


@pytest.fixture
def connect(directory, hub, message_factory):
    """Open a fake connection: returns (handler, outbox)."""

    def _connect(connection_id: str):
        outbox = hub.register(connection_id)
        handler = ProtocolHandler(
            connection_id,
            directory,
            hub,
            message_factory=message_factory,
            is_profane=fake_is_profane,
        )
        return handler, outbox

    return _connect
