"""One-to-one support sessions: start, list, history and closing with a summary."""

import logging

from django.contrib.auth import get_user_model
from django.db.models import Q
from django.utils import timezone

from chat_api.models import Message, Session
from chat_api.rooms import SESSION, persist_message
from peerconnect_server.exceptions import BadRequestError, ForbiddenError, NotFoundError
from summaries_api import services as summaries
from topics_api.models import Topic

logger = logging.getLogger('chat_api')

User = get_user_model()


def get_session(session_id) -> Session:
    session = Session.objects.select_related('seeker', 'listener', 'topic').filter(session_id=session_id).first()
    if session is None:
        raise NotFoundError('Session not found')
    return session


def _participant_session(session_id, user) -> Session:
    session = get_session(session_id)
    if not session.is_participant(user):
        raise ForbiddenError('You are not a participant of this session')
    return session


def start_session(seeker, listener_id, topic_id, start_time=None) -> Session:
    listener = User.objects.filter(user_id=listener_id).first()
    if listener is None or listener.role != User.Role.LISTENER or not listener.is_approved:
        raise NotFoundError('Approved listener not found')
    if listener.pk == seeker.pk:
        raise BadRequestError('You cannot start a session with yourself')
    topic = Topic.objects.filter(topic_id=topic_id).first()
    if topic is None:
        raise NotFoundError('Topic not found')
    session = Session.objects.create(
        seeker=seeker,
        listener=listener,
        topic=topic,
        start_time=start_time or timezone.now(),
    )
    logger.info(f"[sessions] Session {session.session_id} started by {seeker.user_id} with {listener.user_id}")
    return session


def list_my_sessions(user, status=None):
    qs = Session.objects.select_related('seeker', 'listener', 'topic').filter(Q(seeker=user) | Q(listener=user))
    if status:
        qs = qs.filter(status=status)
    return qs.order_by('-start_time')


def session_messages(session_id, user):
    """Participants only, oldest first."""
    _participant_session(session_id, user)
    return Message.objects.select_related('sender').filter(session_id=session_id).order_by('created_at')


def send_session_message(session_id, user, content, message_type='TEXT', file_url=None) -> Message:
    session = _participant_session(session_id, user)
    if session.status != Session.Status.ACTIVE:
        raise BadRequestError('Session is not active')
    return persist_message(user, SESSION, session_id, content, message_type, file_url)


def end_session_and_generate_summary(session_id, user):
    """Close the session and run the summary pipeline over its transcript.

    Returns ``(summary, pdf_url)``. The session stays COMPLETED even when the
    summary fails; the error propagates to the caller.
    """
    session = _participant_session(session_id, user)
    session.status = Session.Status.COMPLETED
    session.end_time = timezone.now()
    session.save(update_fields=['status', 'end_time', 'updated_at'])
    logger.info(f"[sessions] Ending session {session_id} and generating summary")

    contents = list(
        Message.objects.filter(session_id=session_id).order_by('created_at').values_list('content', flat=True)
    )
    if not contents:
        raise BadRequestError('No messages found for session')
    summary, pdf_url = summaries.generate_and_store_session_summary(session, contents)
    logger.info(f"[sessions] Session {session_id} ended and summary generated")
    return summary, pdf_url
