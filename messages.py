import time
from typing import Callable

from schemas.chat import Message, MessageKind


def _now_ms() -> int:
    return int(time.time() * 1000)


class MessageFactory:
    """Builds immutable chat messages stamped with the server clock."""

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self.clock = clock

    def make_text_message(self, author: str, body: str) -> Message:
        return Message(kind=MessageKind.TEXT, author=author, body=body, created_at=self.clock())

    def make_location_message(self, author: str, url: str) -> Message:
        return Message(kind=MessageKind.LOCATION, author=author, location=url, created_at=self.clock())
