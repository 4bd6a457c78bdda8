"""Notification persistence, delivery side effects and scheduled scans."""

import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from django.db.models import Count
from django.utils import timezone

from chat_api import realtime
from chat_api.models import Session
from notifications_api.models import EmailOutbox, Notification, NotificationType
from notifications_api.outbox import queue_and_dispatch
from notifications_api.payloads import (
    GroupActivityPayload,
    ListenerEscalationPayload,
    NewResourcePayload,
    NotificationPayload,
    SessionReminderPayload,
)
from peerconnect_server.exceptions import NotFoundError
from peerconnect_server.utils.emailer import render_notification_email
from peerconnect_server.utils.pagination import paginate

logger = logging.getLogger('notifications_api')

DUPLICATE_WINDOW = timedelta(hours=24)
REMINDER_LEAD = timedelta(minutes=30)


def serialize_notification(notification: Notification) -> dict:
    return {
        'notification_id': str(notification.notification_id),
        'title': notification.title,
        'message': notification.message,
        'type': notification.type,
        'is_read': notification.is_read,
        'related_id': notification.related_id,
        'data': notification.data,
        'created_at': notification.created_at.isoformat() if notification.created_at else None,
    }


def find_recent_duplicate(user, notification_type: str, related_id: Optional[str]) -> Optional[Notification]:
    return Notification.objects.filter(
        user=user,
        type=notification_type,
        related_id=related_id,
        created_at__gte=timezone.now() - DUPLICATE_WINDOW,
    ).first()


def _send_notification_email(user, title: str, message: str) -> None:
    if not getattr(user, 'email', None):
        logger.warning(f"[notifications] User {user.pk} has no email; skipping notification email")
        return
    subject, text, html = render_notification_email(user.first_name, title, message)
    queue_and_dispatch(user.email, EmailOutbox.Kind.NOTIFICATION, subject, text, html, user=user)


def _push(notification: Notification) -> None:
    try:
        realtime.push_notification(notification.user_id, serialize_notification(notification))
    except Exception as e:
        logger.warning(f"[notifications] Realtime push failed for {notification.notification_id}: {e}")


def create_notification(user, payload: NotificationPayload, send_email: Optional[bool] = None) -> Notification:
    """Persist ``payload`` for ``user`` unless the same notification was created in the last 24 hours.

    Returns the existing row for duplicates. Email and realtime delivery never
    fail the call.
    """
    related_id = payload.related_id()
    existing = find_recent_duplicate(user, payload.type, related_id)
    if existing is not None:
        logger.info(
            f"[notifications] Skipped duplicate for user {user.pk}, type={payload.type}, related_id={related_id}"
        )
        return existing

    notification = Notification.objects.create(
        user=user,
        title=payload.title(),
        message=payload.message(),
        type=payload.type,
        related_id=related_id,
        data=payload.to_data(),
    )
    logger.info(f"[notifications] Created {payload.type} notification for user {user.pk}: {notification.title}")

    if payload.send_email if send_email is None else send_email:
        _send_notification_email(user, notification.title, notification.message)
    _push(notification)
    return notification


def create_bulk_notifications(users: Iterable, payloads: Iterable[NotificationPayload],
                              send_email: Optional[bool] = None) -> List[Notification]:
    """One notification per user per payload; duplicates are skipped, not returned."""
    payloads = list(payloads)
    created = []
    for user in users:
        for payload in payloads:
            if find_recent_duplicate(user, payload.type, payload.related_id()) is not None:
                logger.info(f"[notifications] Skipped duplicate bulk {payload.type} for user {user.pk}")
                continue
            created.append(create_notification(user, payload, send_email=send_email))
    logger.info(f"[notifications] Created {len(created)} bulk notifications")
    return created


def list_notifications(user, page: int = 1, limit: int = 20):
    qs = Notification.objects.filter(user=user).order_by('-created_at')
    return paginate(qs, page, limit)


def unread_count(user) -> int:
    return Notification.objects.filter(user=user, is_read=False).count()


def notification_stats(user) -> dict:
    qs = Notification.objects.filter(user=user)
    by_type = {
        row['type']: row['count']
        for row in qs.values('type').annotate(count=Count('notification_id')).order_by()
    }
    return {
        'total': qs.count(),
        'unread': qs.filter(is_read=False).count(),
        'by_type': by_type,
    }


def _get_own(notification_id, user) -> Notification:
    notification = Notification.objects.filter(notification_id=notification_id, user=user).first()
    if notification is None:
        raise NotFoundError('Notification not found')
    return notification


def mark_read(notification_id, user) -> Notification:
    notification = _get_own(notification_id, user)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read', 'updated_at'])
    logger.info(f"[notifications] Marked {notification_id} read for user {user.pk}")
    return notification


def mark_all_read(user) -> int:
    count = Notification.objects.filter(user=user, is_read=False).update(is_read=True, updated_at=timezone.now())
    logger.info(f"[notifications] Marked {count} notifications read for user {user.pk}")
    return count


def delete_notification(notification_id, user) -> None:
    notification = _get_own(notification_id, user)
    notification.delete()
    logger.info(f"[notifications] Deleted {notification_id} for user {user.pk}")


def send_session_reminder(session) -> Optional[Notification]:
    payload = SessionReminderPayload(
        session_id=str(session.session_id),
        topic_name=session.topic.name,
        listener_name=session.listener.full_name,
        start_time=session.start_time,
    )
    try:
        return create_notification(session.seeker, payload)
    except Exception as e:
        logger.error(f"[notifications] Session reminder failed for {session.session_id}: {e}")
        return None


def notify_new_resource(resource, users: Iterable) -> List[Notification]:
    payload = NewResourcePayload(
        resource_id=str(resource.resource_id),
        resource_title=resource.title,
        topic_name=resource.topic.name,
        uploaded_by_name=resource.uploaded_by.full_name,
    )
    try:
        return create_bulk_notifications(users, [payload])
    except Exception as e:
        logger.error(f"[notifications] New resource notifications failed for {resource.resource_id}: {e}")
        return []


def notify_group_activity(group, activity_description: str, users: Iterable) -> List[Notification]:
    payload = GroupActivityPayload(
        group_id=str(group.group_id),
        group_name=group.name,
        activity_description=activity_description,
    )
    try:
        return create_bulk_notifications(users, [payload])
    except Exception as e:
        logger.error(f"[notifications] Group activity notifications failed for {group.group_id}: {e}")
        return []


def notify_listener_escalation(group, escalation, users: Iterable) -> List[Notification]:
    payload = ListenerEscalationPayload(
        group_id=str(group.group_id),
        group_name=group.name,
        activity_description='Flagged content needs a listener response',
        response_id=str(escalation.response_id),
    )
    try:
        return create_bulk_notifications(users, [payload])
    except Exception as e:
        logger.error(f"[notifications] Escalation notifications failed for {escalation.response_id}: {e}")
        return []


def cleanup_old_notifications(days: int = 30) -> int:
    """Delete read notifications older than ``days``."""
    cutoff = timezone.now() - timedelta(days=days)
    deleted, _ = Notification.objects.filter(created_at__lt=cutoff, is_read=True).delete()
    logger.info(f"[notifications] Cleaned up {deleted} old notifications")
    return deleted


def check_upcoming_sessions(now=None) -> int:
    """Remind seekers of ACTIVE sessions starting 30 to 31 minutes from ``now``."""
    now = now or timezone.now()
    window_start = now + REMINDER_LEAD
    sessions = (
        Session.objects
        .filter(status=Session.Status.ACTIVE, start_time__gte=window_start, start_time__lt=window_start + timedelta(minutes=1))
        .select_related('seeker', 'listener', 'topic')
    )
    sent = 0
    for session in sessions:
        already = Notification.objects.filter(
            related_id=str(session.session_id),
            type=NotificationType.SESSION_REMINDER,
            created_at__gte=now - timedelta(hours=1),
        ).exists()
        if already:
            continue
        if send_session_reminder(session) is not None:
            sent += 1
    logger.info(f"[notifications] Upcoming session scan sent {sent} reminders")
    return sent
