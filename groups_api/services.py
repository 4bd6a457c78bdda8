"""Group membership, moderated group messaging and listener escalations.

Every function raises the typed errors from ``peerconnect_server.exceptions`` so
the REST views and the websocket gateway share the same behaviour.
"""

import hashlib
import logging
from typing import Optional, Tuple

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from chat_api import realtime
from chat_api.models import Message, MessageType
from groups_api.content_filter import ACTION_BAN, ACTION_LISTENER_RESPONSE, ContentFilterResult, filter_content
from groups_api.models import Group, GroupMember, ListenerResponse
from notifications_api import services as notifications
from notifications_api.payloads import GeneralPayload
from peerconnect_server.exceptions import BadRequestError, ForbiddenError, NotFoundError
from peerconnect_server.utils.pagination import paginate
from topics_api.models import Topic

logger = logging.getLogger('groups_api')

User = get_user_model()

# Roles allowed to post while a group is inactive (locked)
LOCKED_GROUP_ROLES = (GroupMember.Role.ADMIN, GroupMember.Role.HEAD)
# Group roles allowed to answer an escalation besides platform listeners / admins
RESPONDER_GROUP_ROLES = (GroupMember.Role.ADMIN, GroupMember.Role.HEAD, GroupMember.Role.MODERATOR)

ANONYMOUS_ADJECTIVES = ('Mysterious', 'Curious', 'Wise', 'Brave', 'Calm', 'Eager', 'Gentle', 'Happy')
ANONYMOUS_NOUNS = ('Explorer', 'Thinker', 'Dreamer', 'Creator', 'Learner', 'Helper', 'Friend', 'Guide')


def _get_group(group_id) -> Group:
    group = Group.objects.select_related('topic', 'leader').filter(group_id=group_id).first()
    if group is None:
        raise NotFoundError('Group not found')
    return group


def _membership(group_id, user) -> Optional[GroupMember]:
    return GroupMember.objects.filter(group_id=group_id, user=user).first()


def create_group(creator, name: str, description: str, topic_id, max_members: int = 100) -> Group:
    topic = Topic.objects.filter(topic_id=topic_id).first()
    if topic is None:
        raise NotFoundError('Topic not found')
    with transaction.atomic():
        group = Group.objects.create(
            name=name,
            description=description or '',
            topic=topic,
            leader=creator,
            max_members=max_members,
        )
        GroupMember.objects.create(group=group, user=creator, role=GroupMember.Role.ADMIN)
    logger.info(f"[groups] Group {group.group_id} created by {creator.user_id}")
    return group


def list_groups(topic_id=None, mine_for=None):
    qs = Group.objects.select_related('topic', 'leader').annotate(members_total=Count('members'))
    if topic_id:
        qs = qs.filter(topic_id=topic_id)
    if mine_for is not None:
        qs = qs.filter(group_id__in=GroupMember.objects.filter(user=mine_for).values('group_id'))
    return qs.order_by('-created_at')


def get_group(group_id) -> Group:
    group = _get_group(group_id)
    # Prefetched so serializers can list members without extra queries
    group.member_list = list(group.members.select_related('user').order_by('joined_at'))
    return group


def join_group(group_id, user) -> GroupMember:
    group = _get_group(group_id)
    if not group.is_active:
        raise ForbiddenError('Group is not active')
    if _membership(group_id, user) is not None:
        raise ForbiddenError('User is already a member of this group')
    with transaction.atomic():
        # Hold the group row while counting members
        Group.objects.select_for_update().filter(group_id=group.group_id).first()
        if group.is_full:
            raise ForbiddenError('Group is full')
        member = GroupMember.objects.create(group=group, user=user, role=GroupMember.Role.MEMBER)
    logger.info(f"[groups] User {user.user_id} joined group {group_id}")
    realtime.notify_new_group_member(group, user, generate_anonymous_name(user.user_id, group.group_id))
    return member


def leave_group(group_id, user) -> None:
    group = _get_group(group_id)
    member = _membership(group_id, user)
    if member is None:
        raise NotFoundError('User is not a member of this group')
    if group.leader_id == user.pk:
        raise ForbiddenError('Group leader cannot leave the group')
    member.delete()
    logger.info(f"[groups] User {user.user_id} left group {group_id}")


def can_send_message(group_id, user) -> Tuple[bool, str]:
    group = Group.objects.filter(group_id=group_id).first()
    if group is None:
        return False, 'Group not found'
    member = _membership(group_id, user)
    if member is None:
        return False, 'User is not a member of this group'
    if not group.is_active and member.role not in LOCKED_GROUP_ROLES:
        return False, 'Group is inactive. Only admins and leads can send messages.'
    return True, ''


def _escalation_recipients(group):
    """Platform listeners who belong to the group plus the group's admins and head."""
    return User.objects.filter(
        Q(group_memberships__group=group)
        & (
            Q(role__in=[User.Role.LISTENER, User.Role.ADMIN])
            | Q(group_memberships__role__in=LOCKED_GROUP_ROLES)
        )
    ).distinct()


def _escalate(group, user, message: Message, result: ContentFilterResult) -> ListenerResponse:
    logger.warning(
        f"[groups] High-severity content detected in group {group.group_id}. Notifying listeners for response."
    )
    escalation = ListenerResponse.objects.create(
        group=group,
        flagged_user=user,
        message=message,
        content=message.content,
        flagged_terms=list(result.flagged_terms),
        severity=result.severity,
    )
    recipients = [u for u in _escalation_recipients(group) if u.pk != user.pk]
    notifications.notify_listener_escalation(group, escalation, recipients)
    return escalation


def send_group_message(group_id, user, content: str) -> Tuple[Message, ContentFilterResult]:
    group = _get_group(group_id)
    allowed, reason = can_send_message(group_id, user)
    if not allowed:
        raise ForbiddenError(reason)
    if not (content or '').strip():
        raise BadRequestError('Message content is required')

    result = filter_content(content, 'MESSAGE')
    if result.suggested_action == ACTION_BAN:
        logger.warning(f"[groups] Blocked message from {user.user_id} in group {group_id}: {result.flagged_terms}")
        raise ForbiddenError('Message blocked due to scam/illicit content')

    message = Message.objects.create(sender=user, group=group, content=content, message_type=MessageType.TEXT)
    if result.suggested_action == ACTION_LISTENER_RESPONSE:
        _escalate(group, user, message, result)
    logger.info(f"[groups] Message sent in group {group_id} by user {user.user_id}")
    return message, result


def get_group_messages(group_id, user, page: int = 1, limit: int = 50):
    _get_group(group_id)
    if user.role != User.Role.ADMIN and _membership(group_id, user) is None:
        raise ForbiddenError('You are not a member of this group')
    qs = Message.objects.select_related('sender').filter(group_id=group_id).order_by('-created_at')
    return paginate(qs, page, limit)


def _can_respond(group_id, responder) -> bool:
    if responder.role in (User.Role.LISTENER, User.Role.ADMIN):
        return True
    member = _membership(group_id, responder)
    return member is not None and member.role in RESPONDER_GROUP_ROLES


def create_listener_response(group_id, flagged_user_id, responder, data: dict) -> ListenerResponse:
    """Record a responder's answer to flagged content and tell the flagged user.

    ``data`` carries ``response_content``, ``response_type``, ``follow_up_required``,
    ``follow_up_notes`` and optionally ``message_id`` of the flagged message; when
    a pending record exists for that message it is updated in place.
    """
    group = _get_group(group_id)
    if not _can_respond(group_id, responder):
        raise ForbiddenError('Only admins and listeners can respond to flagged content')
    flagged_user = User.objects.filter(user_id=flagged_user_id).first()
    if flagged_user is None:
        raise NotFoundError('User not found')

    record = None
    message_id = data.get('message_id')
    if message_id:
        record = ListenerResponse.objects.filter(
            group=group, flagged_user=flagged_user, message_id=message_id, status=ListenerResponse.Status.PENDING
        ).first()
    if record is None:
        record = ListenerResponse(group=group, flagged_user=flagged_user, severity='HIGH')
        if message_id:
            message = Message.objects.filter(message_id=message_id, group=group).first()
            if message is not None:
                record.message = message
                record.content = message.content

    record.listener = responder
    record.response_content = data['response_content']
    record.response_type = data['response_type']
    record.follow_up_required = data.get('follow_up_required', False)
    record.follow_up_notes = data.get('follow_up_notes')
    record.status = ListenerResponse.Status.IN_PROGRESS
    record.responded_at = timezone.now()
    record.save()

    logger.info(
        f"[groups] Listener {responder.user_id} responded to flagged content from user {flagged_user_id} "
        f"in group {group_id}"
    )
    notifications.create_notification(
        flagged_user,
        GeneralPayload(
            title_text='A listener reached out',
            message_text=f'A listener responded to your message in group "{group.name}": {record.response_content}',
            related=str(record.response_id),
        ),
    )
    return record


def generate_anonymous_name(user_id, group_id) -> str:
    """Stable per-group alias such as ``CalmHelper42``."""
    digest = hashlib.sha256(f'{user_id}:{group_id}'.encode()).digest()
    adjective = ANONYMOUS_ADJECTIVES[digest[0] % len(ANONYMOUS_ADJECTIVES)]
    noun = ANONYMOUS_NOUNS[digest[1] % len(ANONYMOUS_NOUNS)]
    number = int.from_bytes(digest[2:4], 'big') % 1000
    return f'{adjective}{noun}{number}'
