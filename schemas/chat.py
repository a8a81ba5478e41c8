from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageKind(str, Enum):
    TEXT = "text"
    LOCATION = "location"


class User(BaseModel):
    model_config = ConfigDict(frozen=True)

    connection_id: str
    username: str
    room: str


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: MessageKind
    author: str
    body: Optional[str] = None
    location: Optional[str] = None
    created_at: int  # milliseconds since the epoch

    @property
    def event(self) -> str:
        return "locationMessage" if self.kind == MessageKind.LOCATION else "message"

    def to_payload(self) -> dict:
        if self.kind == MessageKind.LOCATION:
            return {"username": self.author, "location": self.location, "createdAt": self.created_at}
        return {"username": self.author, "text": self.body, "createdAt": self.created_at}


class RosterEntry(BaseModel):
    username: str


class RoomData(BaseModel):
    room: str
    users: list[RosterEntry]


class JoinPayload(BaseModel):
    username: Optional[str] = None
    room: Optional[str] = None


class LocationPayload(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class InboundFrame(BaseModel):
    event: str
    data: Any = None
    ack: Optional[int] = None
