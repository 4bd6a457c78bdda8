"""Server-to-client websocket events.

Every frame on the wire is ``{"event": <name>, "data": {...}}``. Each event is a
frozen dataclass tagged with its wire name; ``to_data`` produces the JSON-safe
``data`` object.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional
from uuid import UUID


def _jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


@dataclass(frozen=True)
class ServerEvent:
    event: ClassVar[str] = ''

    def to_data(self) -> Dict[str, Any]:
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class Connected(ServerEvent):
    event: ClassVar[str] = 'connected'
    user_id: str
    message: str = 'Connected to chat server'


@dataclass(frozen=True)
class UserJoined(ServerEvent):
    event: ClassVar[str] = 'userJoined'
    user_id: str
    room: str
    user_name: str = ''


@dataclass(frozen=True)
class UserLeft(ServerEvent):
    event: ClassVar[str] = 'userLeft'
    user_id: str
    room: str


@dataclass(frozen=True)
class RoomHistory(ServerEvent):
    event: ClassVar[str] = 'roomHistory'
    room: str
    messages: List[dict] = field(default_factory=list)


@dataclass(frozen=True)
class NewMessage(ServerEvent):
    event: ClassVar[str] = 'newMessage'
    room: str
    message: dict


@dataclass(frozen=True)
class MessageSent(ServerEvent):
    event: ClassVar[str] = 'messageSent'
    room: str
    message: dict
    moderation: Optional[dict] = None


@dataclass(frozen=True)
class UserTyping(ServerEvent):
    event: ClassVar[str] = 'userTyping'
    user_id: str
    room: str


@dataclass(frozen=True)
class UserStopTyping(ServerEvent):
    event: ClassVar[str] = 'userStopTyping'
    user_id: str
    room: str


@dataclass(frozen=True)
class MessageRead(ServerEvent):
    event: ClassVar[str] = 'messageRead'
    message_id: str
    read_by: str
    room: Optional[str] = None


@dataclass(frozen=True)
class SystemMessage(ServerEvent):
    event: ClassVar[str] = 'systemMessage'
    room: str
    content: str
    timestamp: datetime


@dataclass(frozen=True)
class NotificationPushed(ServerEvent):
    event: ClassVar[str] = 'notification'
    notification: dict


@dataclass(frozen=True)
class NewMeeting(ServerEvent):
    event: ClassVar[str] = 'newMeeting'
    meeting_id: str
    group_id: str
    title: str
    scheduled_start_time: datetime
    created_by: str


@dataclass(frozen=True)
class MeetingStarted(ServerEvent):
    event: ClassVar[str] = 'meetingStarted'
    meeting_id: str
    group_id: str
    title: str
    started_at: datetime


@dataclass(frozen=True)
class MeetingEnded(ServerEvent):
    event: ClassVar[str] = 'meetingEnded'
    meeting_id: str
    group_id: str
    title: str
    ended_at: datetime
    summary_pdf_url: Optional[str] = None


@dataclass(frozen=True)
class NewGroupMember(ServerEvent):
    event: ClassVar[str] = 'newGroupMember'
    group_id: str
    user_id: str
    display_name: str


@dataclass(frozen=True)
class NewResource(ServerEvent):
    event: ClassVar[str] = 'newResource'
    resource_id: str
    topic_id: str
    title: str
    resource_type: str


@dataclass(frozen=True)
class ErrorEvent(ServerEvent):
    event: ClassVar[str] = 'error'
    message: str
    code: str = 'error'


def frame(evt: ServerEvent) -> Dict[str, Any]:
    return {'event': evt.event, 'data': evt.to_data()}
