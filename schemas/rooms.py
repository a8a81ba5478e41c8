from pydantic import BaseModel

from schemas.chat import RosterEntry


class RoomSummary(BaseModel):
    room: str
    online_users_count: int

class RoomListResponse(BaseModel):
    rooms: list[RoomSummary]

class RoomDetailsResponse(BaseModel):
    room: str
    online_users_count: int
    users: list[RosterEntry]
