"""
Message protocol module for RelayChat application.

Defines the history message model, the named events exchanged with clients
and the validation of inbound frames.

Every WebSocket frame is a JSON object ``{"event": <name>, "data": <payload>}``.
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from RelayChat.core.exceptions import ProtocolError


class MessageKind(Enum):
    """
    Discriminates the entries of the shared history.
    """
    CHAT = "chat"  # Plain text message
    FILE = "file"  # Reference to an uploaded file


class EventName(str, Enum):
    """
    Names of the events carried in the ``event`` field of a frame.
    """
    # Inbound
    USER_LOGIN = "user login"
    CHAT_MESSAGE = "chat message"
    FILE_MESSAGE = "file message"
    USER_LOGOUT = "user logout"
    # Outbound
    USER_COUNT = "user count"
    CHAT_HISTORY = "chat history"
    USER_LOGGED_OUT = "user logged out"
    MESSAGES_CLEARED = "messages cleared"
    ERROR = "error"


INBOUND_EVENTS = frozenset({
    EventName.USER_LOGIN,
    EventName.CHAT_MESSAGE,
    EventName.FILE_MESSAGE,
    EventName.USER_LOGOUT,
})


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """
    Format a moment as ISO-8601 UTC with millisecond precision.

    Args:
        moment: Time to format (defaults to now)

    Returns:
        str: e.g. ``2024-05-01T12:00:00.000Z``
    """
    moment = moment or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Message:
    """
    One entry of the shared chat history.

    Attributes:
        kind (MessageKind): Chat or file
        author_name (str): Display name supplied by the sender
        origin_connection (str): Connection the message arrived on
        timestamp (str): Server receipt time, ISO-8601 UTC
        text (str, optional): Body of a chat message
        file_ref (dict, optional): Upload descriptor of a file message, kept as received
    """
    kind: MessageKind
    author_name: str
    origin_connection: str
    timestamp: str
    text: Optional[str] = None
    file_ref: Optional[Dict[str, Any]] = None

    @classmethod
    def chat(cls, text: str, author_name: str, origin_connection: str, timestamp: str) -> 'Message':
        return cls(MessageKind.CHAT, author_name, origin_connection, timestamp, text=text)

    @classmethod
    def file(cls, file_ref: Dict[str, Any], author_name: str, origin_connection: str,
             timestamp: str) -> 'Message':
        return cls(MessageKind.FILE, author_name, origin_connection, timestamp, file_ref=file_ref)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the message to its wire representation.

        Returns:
            dict: JSON-ready mapping
        """
        data: Dict[str, Any] = {"type": self.kind.value}
        if self.kind is MessageKind.CHAT:
            data["text"] = self.text
        else:
            data["fileRef"] = self.file_ref
        data.update({
            "authorName": self.author_name,
            "originConnection": self.origin_connection,
            "timestamp": self.timestamp,
        })
        return data

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> 'Message':
        """
        Create a Message from its wire representation.

        Args:
            obj (dict): Mapping produced by ``to_dict``

        Returns:
            Message: Rebuilt message
        """
        return cls(
            kind=MessageKind(obj["type"]),
            author_name=obj["authorName"],
            origin_connection=obj["originConnection"],
            timestamp=obj["timestamp"],
            text=obj.get("text"),
            file_ref=obj.get("fileRef"),
        )


@dataclass(frozen=True)
class Event:
    """
    An outbound named event.

    Attributes:
        name (EventName): Event name
        payload: JSON-compatible payload (Message objects are converted on serialization)
    """
    name: EventName
    payload: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"event": self.name.value, "data": _jsonable(self.payload)}

    def serialize(self) -> str:
        """
        Serialize the event to a JSON frame.

        Returns:
            str: JSON text
        """
        return json.dumps(self.to_dict())


def _jsonable(value: Any) -> Any:
    if isinstance(value, Message):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


class FileRef(BaseModel):
    """Descriptor returned by the upload endpoint for a stored file."""
    model_config = ConfigDict(populate_by_name=True)

    stored_name: str = Field(alias="storedName")
    original_name: str = Field(alias="originalName")
    public_path: str = Field(alias="publicPath")
    mime_type: str = Field(alias="mimeType")
    size_bytes: int = Field(alias="sizeBytes")


class LoginPayload(BaseModel):
    username: str


class ChatPayload(BaseModel):
    text: str
    username: str


class FilePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Opaque to the relay; any object is accepted and passed through
    file_data: Dict[str, Any] = Field(alias="fileData")
    username: str


class LogoutPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    # Sent by older clients; logout always applies to the sending connection
    socket_id: Optional[str] = Field(default=None, alias="socketId")


InboundPayload = Union[LoginPayload, ChatPayload, FilePayload, LogoutPayload]

_PAYLOAD_MODELS = {
    EventName.USER_LOGIN: LoginPayload,
    EventName.CHAT_MESSAGE: ChatPayload,
    EventName.FILE_MESSAGE: FilePayload,
    EventName.USER_LOGOUT: LogoutPayload,
}


@dataclass(frozen=True)
class InboundEvent:
    """A validated event received from a connection."""
    name: EventName
    connection: str
    payload: InboundPayload


def parse_frame(raw: Union[str, bytes], connection: str) -> InboundEvent:
    """
    Validate a raw frame and turn it into a typed inbound event.

    Args:
        raw: Frame text as received from the transport
        connection: Id of the connection the frame arrived on

    Returns:
        InboundEvent: Typed event

    Raises:
        ProtocolError: If the frame is not JSON, names an unknown event or
            carries a payload of the wrong shape
    """
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolError("Frame is not valid JSON") from e

    if not isinstance(obj, dict) or not isinstance(obj.get("event"), str):
        raise ProtocolError("Frame must be an object with an 'event' name")

    try:
        name = EventName(obj["event"])
    except ValueError:
        raise ProtocolError(f"Unknown event: {obj['event']}") from None
    if name not in INBOUND_EVENTS:
        raise ProtocolError(f"Event not accepted from clients: {name.value}")

    data = obj.get("data")
    # Clients may send the bare username for a login
    if name is EventName.USER_LOGIN and isinstance(data, str):
        data = {"username": data}
    if not isinstance(data, dict):
        raise ProtocolError(f"Payload of '{name.value}' must be an object")

    try:
        payload = _PAYLOAD_MODELS[name].model_validate(data)
    except ValidationError as e:
        raise ProtocolError(
            f"Invalid payload for '{name.value}'",
            details={"errors": [err["msg"] for err in e.errors()]}
        ) from e

    return InboundEvent(name=name, connection=connection, payload=payload)
