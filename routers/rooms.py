from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import RoomDetailsResponse, RoomListResponse, RoomSummary
from schemas.chat import RosterEntry
from directory import normalize_room
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/", response_model=RoomListResponse)
async def list_rooms(request: Request):
    directory = request.app.state.directory
    rooms = [RoomSummary(room=room, online_users_count=count) for room, count in directory.list_rooms()]
    logger.debug(f"Listing {len(rooms)} active rooms")
    return RoomListResponse(rooms=rooms)


@rooms_router.get("/{room}", response_model=RoomDetailsResponse)
async def get_room_details(room: str, request: Request):
    """
    Get the live roster of a room.

    Room names are matched case-insensitively. A room with nobody in it
    does not exist.
    """
    directory = request.app.state.directory
    users = directory.get_users_in_room(room)
    if not users:
        logger.info(f"Room details failed: Room {room} has no members")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        room=normalize_room(room),
        online_users_count=len(users),
        users=[RosterEntry(username=user.username) for user in users],
    )
