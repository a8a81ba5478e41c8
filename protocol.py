from enum import Enum
from typing import Any, Callable, Optional

from better_profanity import profanity
from pydantic import ValidationError as PydanticValidationError

from constants import ADMIN_NAME, MAP_URL_TEMPLATE, WELCOME_TEXT
from directory import UserDirectory
from errors import ChatError, ProfanityError, ValidationError
from hub import ConnectionHub
from logging_config import get_logger
from messages import MessageFactory
from schemas.chat import InboundFrame, JoinPayload, LocationPayload, RoomData, RosterEntry, User

logger = get_logger(__name__)

Ack = Callable[[Optional[str]], None]


def _no_ack(error: Optional[str] = None):
    pass


def _format_coordinate(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else repr(value)


class ConnectionState(str, Enum):
    ANONYMOUS = "anonymous"
    JOINED = "joined"
    CLOSED = "closed"


class ProtocolHandler:
    """State machine for a single connection.

    Anonymous -> Joined on a successful join, and either state -> Closed on
    disconnect. Caller-local failures are turned into ack error strings;
    nothing raised by a client frame escapes this class.
    """

    def __init__(
        self,
        connection_id: str,
        directory: UserDirectory,
        hub: ConnectionHub,
        message_factory: Optional[MessageFactory] = None,
        is_profane: Optional[Callable[[str], bool]] = None,
        admin_name: str = ADMIN_NAME,
        map_url_template: str = MAP_URL_TEMPLATE,
    ):
        self.connection_id = connection_id
        self.directory = directory
        self.hub = hub
        self.message_factory = message_factory or MessageFactory()
        self.is_profane = is_profane or profanity.contains_profanity
        self.admin_name = admin_name
        self.map_url_template = map_url_template
        self.state = ConnectionState.ANONYMOUS

    def dispatch(self, raw: str):
        """Parse one inbound text frame and route it to its transition."""
        if self.state == ConnectionState.CLOSED:
            return
        try:
            frame = InboundFrame.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning(f"Dropping malformed frame from connection {self.connection_id}")
            return

        logger.debug(f"Received '{frame.event}' from connection {self.connection_id}")
        ack = self._make_ack(frame.ack)
        handlers = {
            "join": self.join,
            "sendMessage": self.send_message,
            "locationMessage": self.location_message,
        }
        handler = handlers.get(frame.event)
        if handler is None:
            logger.warning(f"Unknown event '{frame.event}' from connection {self.connection_id}")
            ack(f"Unknown event: {frame.event}")
            return
        handler(frame.data, ack)

    def join(self, payload: Any, ack: Ack = _no_ack):
        if self.state == ConnectionState.JOINED:
            ack("You have already joined a room")
            return
        if self.state != ConnectionState.ANONYMOUS:
            return

        try:
            try:
                request = JoinPayload.model_validate(payload or {})
            except PydanticValidationError:
                raise ValidationError() from None
            user = self.directory.add_user(self.connection_id, request.username, request.room)
        except ChatError as e:
            ack(e.message)
            return

        self.hub.subscribe(self.connection_id, user.room)
        self.state = ConnectionState.JOINED
        logger.info(f"User {self.connection_id} ({user.username}) joined room {user.room}")

        welcome = self.message_factory.make_text_message(self.admin_name, WELCOME_TEXT)
        self.hub.send(self.connection_id, welcome.event, welcome.to_payload())

        notice = self.message_factory.make_text_message(self.admin_name, f"{user.username} has joined!")
        self.hub.broadcast(user.room, notice.event, notice.to_payload(), exclude=self.connection_id)

        self._broadcast_roster(user.room)
        ack(None)

    def send_message(self, text: Any, ack: Ack = _no_ack):
        user = self._current_user()
        if user is None:
            return

        try:
            if not isinstance(text, str):
                raise ValidationError("Message must be text")
            if not text.strip():
                raise ValidationError("Message cannot be empty")
            if self.is_profane(text):
                raise ProfanityError()
        except ChatError as e:
            logger.warning(f"Rejected message from {user.username} in room {user.room}: {e.message}")
            ack(e.message)
            return

        message = self.message_factory.make_text_message(user.username, text)
        self.hub.broadcast(user.room, message.event, message.to_payload())
        ack(None)

    def location_message(self, coordinates: Any, ack: Ack = _no_ack):
        user = self._current_user()
        if user is None:
            return

        try:
            location = LocationPayload.model_validate(coordinates)
        except PydanticValidationError:
            ack("Location is required")
            return

        url = self.map_url_template.format(
            latitude=_format_coordinate(location.latitude),
            longitude=_format_coordinate(location.longitude),
        )
        message = self.message_factory.make_location_message(user.username, url)
        self.hub.broadcast(user.room, message.event, message.to_payload())
        ack(None)

    def disconnect(self):
        if self.state == ConnectionState.CLOSED:
            return
        self.state = ConnectionState.CLOSED
        self.hub.unsubscribe(self.connection_id)

        user = self.directory.remove_user(self.connection_id)
        if user is None:
            logger.debug(f"Connection {self.connection_id} closed before joining")
            return

        logger.info(f"User {self.connection_id} ({user.username}) left room {user.room}")
        notice = self.message_factory.make_text_message(self.admin_name, f"{user.username} has left!")
        self.hub.broadcast(user.room, notice.event, notice.to_payload())
        self._broadcast_roster(user.room)

    def _current_user(self) -> Optional[User]:
        # A message can race a disconnect; a missing identity means "ignore".
        if self.state != ConnectionState.JOINED:
            logger.debug(f"Ignoring event from connection {self.connection_id} in state {self.state.value}")
            return None
        return self.directory.get_user(self.connection_id)

    def _broadcast_roster(self, room: str):
        roster = RoomData(
            room=room,
            users=[RosterEntry(username=user.username) for user in self.directory.get_users_in_room(room)],
        )
        self.hub.broadcast(room, "roomData", roster.model_dump())

    def _make_ack(self, ack_id: Optional[int]) -> Ack:
        if ack_id is None:
            return _no_ack

        def ack(error: Optional[str] = None):
            self.hub.ack(self.connection_id, ack_id, error)

        return ack
