"""Room naming, access checks and message persistence shared by the gateway and REST views."""

import logging
import uuid
from typing import Optional, Tuple

from django.conf import settings
from django.db.models import Q

from chat_api.models import Message, MessageType, Session
from groups_api.models import Group, GroupMember
from meetings_api.models import Meeting
from peerconnect_server.exceptions import BadRequestError, ForbiddenError, NotFoundError
from user_mang.models.custom_user import Custom_User

logger = logging.getLogger('chat_api')

SESSION = 'SESSION'
GROUP = 'GROUP'
MEETING = 'MEETING'
DIRECT = 'DIRECT'
ROOM_TYPES = (SESSION, GROUP, MEETING, DIRECT)

# SYSTEM messages are written by the server only
USER_MESSAGE_TYPES = (MessageType.TEXT, MessageType.FILE, MessageType.IMAGE)


def room_name(room_type: str, room_id, user_id=None) -> str:
    """``<type lower>_<id>``; direct rooms use the sorted pair of user ids."""
    room_type = (room_type or '').upper()
    if room_type not in ROOM_TYPES:
        raise BadRequestError(f'Unknown room type: {room_type}')
    if room_type == DIRECT:
        if user_id is None:
            raise BadRequestError('Direct rooms need both user ids')
        low, high = sorted([str(user_id), str(room_id)])
        return f'direct_{low}_{high}'
    return f'{room_type.lower()}_{room_id}'


def parse_room_name(name: str) -> Tuple[str, str]:
    """Inverse of ``room_name`` for non-direct rooms: ``('GROUP', '<id>')``."""
    prefix, _, rest = (name or '').partition('_')
    room_type = prefix.upper()
    if room_type not in ROOM_TYPES or not rest:
        raise BadRequestError(f'Invalid room: {name}')
    return room_type, rest


def check_room_access(user, room_type: str, room_id) -> None:
    """Raise NotFoundError / ForbiddenError unless ``user`` may join the room."""
    room_type = (room_type or '').upper()
    try:
        uuid.UUID(str(room_id))
    except ValueError as e:
        raise BadRequestError(f'Invalid room id: {room_id}') from e
    if room_type == SESSION:
        session = Session.objects.filter(session_id=room_id).first()
        if session is None:
            raise NotFoundError('Session not found')
        if not session.is_participant(user):
            raise ForbiddenError('You are not a participant of this session')
    elif room_type == GROUP:
        if not Group.objects.filter(group_id=room_id).exists():
            raise NotFoundError('Group not found')
        if not GroupMember.objects.filter(group_id=room_id, user=user).exists():
            raise ForbiddenError('You are not a member of this group')
    elif room_type == MEETING:
        meeting = Meeting.objects.filter(meeting_id=room_id).first()
        if meeting is None:
            raise NotFoundError('Meeting not found')
        if not GroupMember.objects.filter(group_id=meeting.group_id, user=user).exists():
            raise ForbiddenError('You are not a member of this meeting\'s group')
    elif room_type == DIRECT:
        if str(room_id) == str(user.pk):
            raise BadRequestError('Cannot open a direct room with yourself')
        if not Custom_User.objects.filter(user_id=room_id).exists():
            raise NotFoundError('User not found')
    else:
        raise BadRequestError(f'Unknown room type: {room_type}')


def _room_filter(room_type: str, room_id) -> dict:
    room_type = room_type.upper()
    if room_type == SESSION:
        return {'session_id': room_id}
    if room_type == GROUP:
        return {'group_id': room_id}
    if room_type == MEETING:
        return {'meeting_id': room_id}
    return {}


def room_messages(user, room_type: str, room_id, limit: Optional[int] = None):
    """The newest ``limit`` messages of a room, oldest first."""
    limit = limit or getattr(settings, 'CHAT_HISTORY_LIMIT', 50)
    qs = Message.objects.select_related('sender')
    if room_type.upper() == DIRECT:
        qs = qs.filter(
            Q(sender=user, receiver_id=room_id) | Q(sender_id=room_id, receiver=user)
        )
    else:
        qs = qs.filter(**_room_filter(room_type, room_id))
    newest = list(qs.order_by('-created_at')[:limit])
    newest.reverse()
    return newest


def serialize_message(message: Message) -> dict:
    sender = message.sender
    return {
        'message_id': str(message.message_id),
        'sender_id': str(message.sender_id),
        'sender_name': sender.full_name if sender else '',
        'receiver_id': str(message.receiver_id) if message.receiver_id else None,
        'group_id': str(message.group_id) if message.group_id else None,
        'session_id': str(message.session_id) if message.session_id else None,
        'meeting_id': str(message.meeting_id) if message.meeting_id else None,
        'content': message.content,
        'message_type': message.message_type,
        'file_url': message.file_url,
        'is_read': message.is_read,
        'created_at': message.created_at.isoformat() if message.created_at else None,
    }


def persist_message(user, room_type: str, room_id, content: str,
                    message_type: str = MessageType.TEXT, file_url: Optional[str] = None) -> Message:
    """Store a message for a non-group room. Group messages go through moderation instead."""
    room_type = room_type.upper()
    if room_type == GROUP:
        raise BadRequestError('Group messages must be sent through the group service')
    if message_type not in USER_MESSAGE_TYPES:
        raise BadRequestError(f'Invalid message type: {message_type}')
    if not (content or '').strip() and not file_url:
        raise BadRequestError('Message content is required')
    fields = {'receiver_id': room_id} if room_type == DIRECT else _room_filter(room_type, room_id)
    return Message.objects.create(
        sender=user, content=content or '', message_type=message_type, file_url=file_url, **fields
    )


def mark_message_read(user, message_id) -> Message:
    message = Message.objects.filter(message_id=message_id).first()
    if message is None:
        raise NotFoundError('Message not found')
    if message.sender_id == user.pk:
        return message
    if message.receiver_id and message.receiver_id != user.pk:
        raise ForbiddenError('You cannot mark this message as read')
    if message.session_id:
        check_room_access(user, SESSION, message.session_id)
    elif message.group_id:
        check_room_access(user, GROUP, message.group_id)
    elif message.meeting_id:
        check_room_access(user, MEETING, message.meeting_id)
    if not message.is_read:
        message.is_read = True
        message.save(update_fields=['is_read'])
    return message
