import threading
from typing import Dict, List, Optional, Tuple

from errors import DuplicateUsernameError, ValidationError
from logging_config import get_logger
from schemas.chat import User

logger = get_logger(__name__)


def normalize_room(room) -> str:
    return room.strip().lower() if isinstance(room, str) else ""


def normalize_username(username) -> str:
    return username.strip() if isinstance(username, str) else ""


class UserDirectory:
    """In-memory registry of joined connections.

    Maps connection_id -> User. Room membership is derived by scanning the
    map, so an empty room simply has no matching users. Every method holds
    the lock for its whole body.
    """

    def __init__(self):
        self._users: Dict[str, User] = {}
        self._lock = threading.RLock()
        logger.info("Initializing in-memory UserDirectory")

    def __len__(self) -> int:
        with self._lock:
            return len(self._users)

    def add_user(self, connection_id: str, username, room) -> User:
        """Register a connection under a display name in a room.

        Raises ValidationError when any field is missing or blank and
        DuplicateUsernameError when the name (case-insensitive) is already
        taken in that room. State is untouched on failure.
        """
        username = normalize_username(username)
        room = normalize_room(room)
        if not connection_id or not username or not room:
            logger.warning(f"Rejected join for connection {connection_id}: missing username or room")
            raise ValidationError()

        with self._lock:
            if connection_id in self._users:
                raise ValidationError("Connection has already joined a room")

            taken = username.lower()
            for user in self._users.values():
                if user.room == room and user.username.lower() == taken:
                    logger.warning(f"Rejected join for connection {connection_id}: '{username}' already in room {room}")
                    raise DuplicateUsernameError()

            user = User(connection_id=connection_id, username=username, room=room)
            self._users[connection_id] = user

        logger.debug(f"User {connection_id} ({username}) added to room {room}")
        return user

    def remove_user(self, connection_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.pop(connection_id, None)
        if user:
            logger.debug(f"User {connection_id} ({user.username}) removed from room {user.room}")
        return user

    def get_user(self, connection_id: str) -> Optional[User]:
        with self._lock:
            return self._users.get(connection_id)

    def get_users_in_room(self, room) -> List[User]:
        """Current members of a room in join order; empty for unknown rooms."""
        room = normalize_room(room)
        if not room:
            return []
        with self._lock:
            return [user for user in self._users.values() if user.room == room]

    def list_rooms(self) -> List[Tuple[str, int]]:
        counts: Dict[str, int] = {}
        with self._lock:
            for user in self._users.values():
                counts[user.room] = counts.get(user.room, 0) + 1
        return list(counts.items())
