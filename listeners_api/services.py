"""Listener matching by topic overlap and the listener application workflow."""

import logging
from typing import List

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from listeners_api.models import ListenerApplication
from notifications_api import services as notifications
from notifications_api.payloads import ApplicationUpdatePayload
from peerconnect_server.exceptions import BadRequestError, ConflictError, NotFoundError
from topics_api.models import Topic
from topics_api.services import validate_topic_ids

logger = logging.getLogger('listeners_api')

User = get_user_model()

MAX_MATCH_LIMIT = 50
AVAILABLE_STATUSES = (User.Status.ONLINE, User.Status.AVAILABLE)


def clamp_limit(limit, default: int = 10) -> int:
    try:
        limit = int(limit)
    except (TypeError, ValueError):
        limit = default
    return max(1, min(limit, MAX_MATCH_LIMIT))


def _available_listeners():
    return User.objects.filter(
        role=User.Role.LISTENER,
        is_approved=True,
        email_verified=True,
        status__in=AVAILABLE_STATUSES,
    )


def _match(listener, topic_ids) -> dict:
    matching = sorted(t.name for t in listener.topics.all() if t.topic_id in topic_ids)
    return {
        'user_id': str(listener.user_id),
        'first_name': listener.first_name,
        'last_name': listener.last_name,
        'profile_picture': listener.profile_picture,
        'bio': listener.bio,
        'topic_overlap': listener.topic_overlap,
        'matching_topics': matching,
        'session_count': listener.session_count,
    }


def find_listeners_by_topic_overlap(user, limit=10) -> List[dict]:
    """Available listeners sharing at least one topic with ``user``.

    Ordered by shared topic count, then by sessions held, both descending. Ties
    keep sign-up order so the result is stable between calls.
    """
    limit = clamp_limit(limit)
    topic_ids = set(user.topics.values_list('topic_id', flat=True))
    if not topic_ids:
        logger.warning(f"[listeners] User {user.user_id} has no topics selected")
        return []
    listeners = (
        _available_listeners()
        .exclude(user_id=user.user_id)
        .annotate(
            topic_overlap=Count('topics', filter=Q(topics__in=topic_ids), distinct=True),
            session_count=Count('sessions_as_listener', distinct=True),
        )
        .filter(topic_overlap__gt=0)
        .prefetch_related('topics')
        .order_by('-topic_overlap', '-session_count', 'date_joined', 'user_id')[:limit]
    )
    matches = [_match(listener, topic_ids) for listener in listeners]
    logger.info(f"[listeners] Found {len(matches)} listeners for user {user.user_id} with topic overlap")
    return matches


def confidence_score(topic_overlap: int, session_count: int) -> float:
    topic_score = min(topic_overlap / 5, 1)
    experience_score = min(session_count / 100, 0.2)
    return min(topic_score + experience_score, 1)


def _reason(match: dict) -> str:
    topics = ', '.join(match['matching_topics'])
    plural = 's' if match['topic_overlap'] != 1 else ''
    reason = f"Shares {match['topic_overlap']} topic{plural} with you: {topics}"
    if match['session_count']:
        reason += f". Has held {match['session_count']} sessions"
    return reason


def recommendations(user, limit=5) -> List[dict]:
    limit = clamp_limit(limit, default=5)
    matches = find_listeners_by_topic_overlap(user, limit * 2)[:limit]
    result = [
        {
            **match,
            'confidence': confidence_score(match['topic_overlap'], match['session_count']),
            'reason': _reason(match),
        }
        for match in matches
    ]
    logger.info(f"[listeners] Generated {len(result)} recommendations for user {user.user_id}")
    return result


def available_for_topic(topic_id, limit=10) -> List[dict]:
    topic = Topic.objects.filter(topic_id=topic_id).first()
    if topic is None:
        raise NotFoundError('Topic not found')
    listeners = (
        _available_listeners()
        .filter(topics=topic)
        .annotate(
            topic_overlap=Count('topics', filter=Q(topics=topic), distinct=True),
            session_count=Count('sessions_as_listener', distinct=True),
        )
        .prefetch_related('topics')
        .order_by('-session_count', 'date_joined', 'user_id')[:clamp_limit(limit)]
    )
    matches = [_match(listener, {topic.topic_id}) for listener in listeners]
    logger.info(f"[listeners] Found {len(matches)} available listeners for topic {topic_id}")
    return matches


# ---------- Applications ----------

def _applications():
    return ListenerApplication.objects.select_related('user', 'reviewed_by').prefetch_related('topics')


def submit_application(user, data: dict) -> ListenerApplication:
    if ListenerApplication.objects.filter(user=user).exists():
        raise ConflictError('You already have a listener application')
    topics = validate_topic_ids(data.get('topic_ids'))
    with transaction.atomic():
        application = ListenerApplication.objects.create(
            user=user,
            bio=data['bio'],
            experience=data['experience'],
            motivation=data['motivation'],
        )
        application.topics.set(topics)
    logger.info(f"[listeners] Application submitted by user {user.user_id} with {len(topics)} topics")
    return application


def get_my_application(user) -> ListenerApplication:
    application = _applications().filter(user=user).first()
    if application is None:
        raise NotFoundError('Listener application not found')
    return application


def update_application(user, data: dict) -> ListenerApplication:
    application = get_my_application(user)
    if not application.is_pending:
        raise BadRequestError('Cannot update application that is not pending')
    topics = validate_topic_ids(data['topic_ids']) if data.get('topic_ids') is not None else None
    with transaction.atomic():
        for name in ('bio', 'experience', 'motivation'):
            if data.get(name):
                setattr(application, name, data[name])
        application.save()
        if topics is not None:
            application.topics.set(topics)
    logger.info(f"[listeners] Application updated by user {user.user_id}")
    return application


def withdraw_application(user) -> None:
    application = get_my_application(user)
    if not application.is_pending:
        raise BadRequestError('Cannot withdraw application that is not pending')
    application.delete()
    logger.info(f"[listeners] Application withdrawn by user {user.user_id}")


def list_applications(status=None):
    qs = _applications()
    if status:
        if status not in ListenerApplication.Status.values:
            raise BadRequestError(f'Invalid application status: {status}')
        qs = qs.filter(status=status)
    return qs.order_by('-created_at')


def get_application(application_id) -> ListenerApplication:
    application = _applications().filter(application_id=application_id).first()
    if application is None:
        raise NotFoundError('Listener application not found')
    return application


def review_application(admin, application_id, status: str, admin_notes=None) -> ListenerApplication:
    """Approve or reject a pending application.

    Approval turns the applicant into an approved LISTENER with the topics from
    the application. The applicant is notified either way.
    """
    if status not in (ListenerApplication.Status.APPROVED, ListenerApplication.Status.REJECTED):
        raise BadRequestError('Status must be APPROVED or REJECTED')
    application = get_application(application_id)
    if not application.is_pending:
        raise BadRequestError('Application has already been reviewed')

    with transaction.atomic():
        application.status = status
        application.admin_notes = admin_notes
        application.reviewed_by = admin
        application.reviewed_at = timezone.now()
        application.save()
        if status == ListenerApplication.Status.APPROVED:
            applicant = application.user
            applicant.role = User.Role.LISTENER
            applicant.is_approved = True
            applicant.save(update_fields=['role', 'is_approved'])
            applicant.topics.add(*application.topics.all())
    logger.info(f"[listeners] Application {application_id} {status.lower()} by admin {admin.user_id}")

    try:
        notifications.create_notification(
            application.user,
            ApplicationUpdatePayload(
                application_id=str(application.application_id), status=status, admin_notes=admin_notes
            ),
        )
    except Exception as e:
        logger.error(f"[listeners] Application update notification failed for {application_id}: {e}")
    return application


def application_stats() -> dict:
    rows = ListenerApplication.objects.values('status').annotate(n=Count('application_id'))
    counts = {row['status']: row['n'] for row in rows}
    return {
        'total': sum(counts.values()),
        'pending': counts.get(ListenerApplication.Status.PENDING, 0),
        'approved': counts.get(ListenerApplication.Status.APPROVED, 0),
        'rejected': counts.get(ListenerApplication.Status.REJECTED, 0),
    }
