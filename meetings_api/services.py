"""Group meetings: scheduling, the SCHEDULED -> ACTIVE -> COMPLETED lifecycle and summaries."""

import logging

from django.contrib.auth import get_user_model
from django.utils import timezone

from chat_api import realtime
from chat_api.models import Message
from groups_api.models import Group, GroupMember
from meetings_api.models import Meeting
from notifications_api import services as notifications
from notifications_api.payloads import MeetingUpdatePayload
from peerconnect_server.exceptions import ForbiddenError, NotFoundError
from summaries_api import services as summaries
from summaries_api.models import GroupSummary

logger = logging.getLogger('meetings_api')

User = get_user_model()

UPDATABLE_FIELDS = (
    'title', 'description', 'type', 'scheduled_start_time', 'scheduled_end_time',
    'agenda', 'max_participants', 'notes_template',
)


def can_manage_group(group: Group, user) -> bool:
    """The group leader or a group ADMIN member."""
    if group.leader_id == user.pk:
        return True
    return GroupMember.objects.filter(group=group, user=user, role=GroupMember.Role.ADMIN).exists()


def get_meeting(meeting_id) -> Meeting:
    meeting = Meeting.objects.select_related('group', 'created_by').filter(meeting_id=meeting_id).first()
    if meeting is None:
        raise NotFoundError('Meeting not found')
    return meeting


def _managed_meeting(meeting_id, user, action: str) -> Meeting:
    meeting = get_meeting(meeting_id)
    if not can_manage_group(meeting.group, user):
        raise ForbiddenError(f'You cannot {action} this meeting')
    return meeting


def _notify_members(meeting: Meeting, change: str) -> None:
    users = User.objects.filter(group_memberships__group=meeting.group)
    notifications.create_bulk_notifications(
        users,
        [MeetingUpdatePayload(
            meeting_id=str(meeting.meeting_id),
            meeting_title=meeting.title,
            group_name=meeting.group.name,
            change=change,
            scheduled_start_time=meeting.scheduled_start_time,
        )],
    )


def create_meeting(user, data: dict) -> Meeting:
    group = Group.objects.filter(group_id=data['group_id']).first()
    if group is None:
        raise NotFoundError('Group not found')
    if not can_manage_group(group, user):
        raise ForbiddenError('Only group leaders and admins can create meetings')
    meeting = Meeting.objects.create(
        group=group,
        title=data['title'],
        description=data.get('description') or '',
        type=data.get('type') or Meeting.Type.DISCUSSION,
        scheduled_start_time=data['scheduled_start_time'],
        scheduled_end_time=data.get('scheduled_end_time'),
        agenda=data.get('agenda') or [],
        max_participants=data.get('max_participants'),
        notes_template=data.get('notes_template'),
        created_by=user,
    )
    logger.info(f"[meetings] Created meeting {meeting.meeting_id} for group {group.group_id}")
    try:
        _notify_members(meeting, 'SCHEDULED')
    except Exception as e:
        logger.error(f"[meetings] Failed to notify group members for {meeting.meeting_id}: {e}")
    realtime.notify_new_meeting(meeting)
    return meeting


def start_meeting(meeting_id, user) -> Meeting:
    meeting = _managed_meeting(meeting_id, user, 'start')
    if meeting.status != Meeting.Status.SCHEDULED:
        raise ForbiddenError('Meeting cannot be started in its current status')
    meeting.status = Meeting.Status.ACTIVE
    meeting.actual_start_time = timezone.now()
    meeting.save(update_fields=['status', 'actual_start_time', 'updated_at'])
    logger.info(f"[meetings] Started meeting {meeting_id} by user {user.user_id}")
    realtime.notify_meeting_started(meeting)
    return meeting


def end_meeting(meeting_id, user) -> Meeting:
    """Complete an ACTIVE meeting, then summarise its transcript.

    The meeting stays COMPLETED whether or not the summary succeeds.
    """
    meeting = _managed_meeting(meeting_id, user, 'end')
    if meeting.status != Meeting.Status.ACTIVE:
        raise ForbiddenError('Meeting is not active')
    meeting.status = Meeting.Status.COMPLETED
    meeting.actual_end_time = timezone.now()
    meeting.save(update_fields=['status', 'actual_end_time', 'updated_at'])

    contents = list(
        Message.objects.filter(meeting=meeting).order_by('created_at').values_list('content', flat=True)
    )
    summaries.generate_meeting_summary(meeting, contents)
    logger.info(f"[meetings] Ended meeting {meeting_id} by user {user.user_id}")
    realtime.notify_meeting_ended(meeting, ended_by=user)
    return meeting


def list_group_meetings(group_id):
    if not Group.objects.filter(group_id=group_id).exists():
        raise NotFoundError('Group not found')
    return Meeting.objects.select_related('group', 'created_by').filter(group_id=group_id).order_by('-scheduled_start_time')


def update_meeting(meeting_id, user, data: dict) -> Meeting:
    meeting = _managed_meeting(meeting_id, user, 'update')
    changed = [name for name in UPDATABLE_FIELDS if name in data]
    for name in changed:
        setattr(meeting, name, data[name])
    if changed:
        meeting.save(update_fields=changed + ['updated_at'])
        logger.info(f"[meetings] Updated meeting {meeting_id}: {', '.join(changed)}")
    return meeting


def delete_meeting(meeting_id, user) -> None:
    meeting = _managed_meeting(meeting_id, user, 'delete')
    meeting.delete()
    logger.info(f"[meetings] Deleted meeting {meeting_id} by user {user.user_id}")


def meeting_summary(meeting_id) -> dict:
    meeting = get_meeting(meeting_id)
    summary = GroupSummary.objects.filter(group_id=meeting.group_id).first()
    return {
        'meeting_id': str(meeting.meeting_id),
        'summary_pdf_url': meeting.summary_pdf_url,
        'group_summary': summary,
    }
