"""Server-side pushes into the websocket gateway.

These helpers are called from synchronous service code (REST views, management
commands) and hand events to the connection registry through ``async_to_sync``.
Realtime delivery is best effort: failures are logged and never propagate to
the caller.
"""

import logging
from typing import Iterable

from asgiref.sync import async_to_sync
from django.utils import timezone

from chat_api import events
from chat_api.models import Message, MessageType
from chat_api.registry import get_connection_registry
from chat_api.rooms import GROUP, MEETING, SESSION, room_name, serialize_message
from groups_api.models import GroupMember
from user_mang.models.custom_user import Custom_User

logger = logging.getLogger('chat_api.realtime')


def broadcast(room: str, evt: events.ServerEvent) -> None:
    try:
        async_to_sync(get_connection_registry().broadcast)(room, evt.event, evt.to_data())
    except Exception as e:
        logger.warning(f"[realtime] Broadcast of {evt.event} to {room} failed: {e}")


def send_to_users(user_ids: Iterable, evt: events.ServerEvent) -> None:
    registry = get_connection_registry()
    data = evt.to_data()
    for user_id in user_ids:
        try:
            async_to_sync(registry.send_to_user)(user_id, evt.event, data)
        except Exception as e:
            logger.warning(f"[realtime] Delivery of {evt.event} to user {user_id} failed: {e}")


def push_notification(user_id, notification: dict) -> None:
    send_to_users([user_id], events.NotificationPushed(notification=notification))


def send_system_message(room_type: str, room_id, content: str, sender) -> Message:
    """Persist a SYSTEM message authored by ``sender`` and broadcast it to the room."""
    room = room_name(room_type, room_id)
    field = {SESSION: 'session_id', GROUP: 'group_id', MEETING: 'meeting_id'}[room_type.upper()]
    message = Message.objects.create(
        sender=sender, content=content, message_type=MessageType.SYSTEM, **{field: room_id}
    )
    broadcast(room, events.SystemMessage(room=room, content=content, timestamp=message.created_at))
    broadcast(room, events.NewMessage(room=room, message=serialize_message(message)))
    logger.info(f"[realtime] System message sent to {room}: {content}")
    return message


def _group_member_ids(group_id):
    return list(GroupMember.objects.filter(group_id=group_id).values_list('user_id', flat=True))


def notify_new_meeting(meeting) -> None:
    send_to_users(
        _group_member_ids(meeting.group_id),
        events.NewMeeting(
            meeting_id=str(meeting.meeting_id),
            group_id=str(meeting.group_id),
            title=meeting.title,
            scheduled_start_time=meeting.scheduled_start_time,
            created_by=str(meeting.created_by_id),
        ),
    )


def notify_meeting_started(meeting) -> None:
    evt = events.MeetingStarted(
        meeting_id=str(meeting.meeting_id),
        group_id=str(meeting.group_id),
        title=meeting.title,
        started_at=meeting.actual_start_time or timezone.now(),
    )
    send_to_users(_group_member_ids(meeting.group_id), evt)
    try:
        send_system_message(MEETING, meeting.meeting_id, f'Meeting "{meeting.title}" has started', meeting.created_by)
    except Exception as e:
        logger.warning(f"[realtime] Meeting start system message failed for {meeting.meeting_id}: {e}")


def notify_meeting_ended(meeting, ended_by=None) -> None:
    evt = events.MeetingEnded(
        meeting_id=str(meeting.meeting_id),
        group_id=str(meeting.group_id),
        title=meeting.title,
        ended_at=meeting.actual_end_time or timezone.now(),
        summary_pdf_url=meeting.summary_pdf_url,
    )
    send_to_users(_group_member_ids(meeting.group_id), evt)
    try:
        send_system_message(
            MEETING, meeting.meeting_id, f'Meeting "{meeting.title}" has ended', ended_by or meeting.created_by
        )
    except Exception as e:
        logger.warning(f"[realtime] Meeting end system message failed for {meeting.meeting_id}: {e}")


def notify_new_group_member(group, user, display_name: str) -> None:
    broadcast(
        room_name(GROUP, group.group_id),
        events.NewGroupMember(group_id=str(group.group_id), user_id=str(user.pk), display_name=display_name),
    )


def notify_new_resource(resource) -> None:
    user_ids = Custom_User.objects.filter(topics=resource.topic_id).values_list('user_id', flat=True)
    send_to_users(
        list(user_ids),
        events.NewResource(
            resource_id=str(resource.resource_id),
            topic_id=str(resource.topic_id),
            title=resource.title,
            resource_type=resource.type,
        ),
    )


def notify_message_read(room: str, message_id, reader_id) -> None:
    broadcast(room, events.MessageRead(message_id=str(message_id), read_by=str(reader_id), room=room))


def get_room_stats(room_type: str, room_id, user_id=None) -> dict:
    room = room_name(room_type, room_id, user_id)
    field = {'SESSION': 'session_id', 'GROUP': 'group_id', 'MEETING': 'meeting_id'}.get(room_type.upper())
    message_count = Message.objects.filter(**{field: room_id}).count() if field else None
    online = async_to_sync(get_connection_registry().room_size)(room)
    return {
        'room': room,
        'room_type': room_type.upper(),
        'message_count': message_count,
        'online_count': online,
        'timestamp': timezone.now().isoformat(),
    }
