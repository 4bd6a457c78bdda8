"""Summary pipeline: completion -> stored summary -> rendered PDF -> object storage."""

import logging
from typing import List, Optional, Tuple

from django.contrib.auth import get_user_model

from chat_api.models import Message, Session
from groups_api.models import Group, GroupMember
from peerconnect_server.exceptions import BadRequestError, ForbiddenError, NotFoundError
from peerconnect_server.utils import storage
from summaries_api import ai_client
from summaries_api.models import GroupSummary, SessionSummary
from summaries_api.pdf import render_group_summary_pdf, render_meeting_summary_pdf, render_session_summary_pdf

logger = logging.getLogger('summaries_api')

User = get_user_model()

SESSION_SUMMARY_FOLDER = 'session-summaries'
GROUP_SUMMARY_FOLDER = 'group-summaries'
MEETING_SUMMARY_FOLDER = 'peerconnect/meetings'


def _upload_pdf(data: bytes, folder: str, public_id: str) -> str:
    return storage.upload_bytes(data, folder=folder, public_id=public_id, resource_type='raw')['url']


def generate_and_store_session_summary(session: Session, messages: List[str]) -> Tuple[SessionSummary, str]:
    logger.info(f"[summaries] Generating AI summary for session {session.session_id}")
    data = ai_client.generate_session_summary(messages)
    summary, _ = SessionSummary.objects.update_or_create(
        session=session,
        defaults={**data.to_dict(), 'ai_generated': True},
    )
    pdf_url = _upload_pdf(
        render_session_summary_pdf(summary), SESSION_SUMMARY_FOLDER, f'session-summary-{session.session_id}'
    )
    summary.pdf_url = pdf_url
    summary.save(update_fields=['pdf_url', 'updated_at'])
    logger.info(f"[summaries] Session summary and PDF stored for session {session.session_id}")
    return summary, pdf_url


def _store_group_summary(group: Group, messages: List[str]) -> GroupSummary:
    data = ai_client.generate_group_summary(messages)
    summary, _ = GroupSummary.objects.update_or_create(
        group=group,
        defaults={**data.to_dict(), 'ai_generated': True},
    )
    return summary


def generate_and_store_group_summary(group: Group, messages: List[str]) -> Tuple[GroupSummary, str]:
    logger.info(f"[summaries] Generating AI summary for group {group.group_id}")
    summary = _store_group_summary(group, messages)
    pdf_url = _upload_pdf(render_group_summary_pdf(summary), GROUP_SUMMARY_FOLDER, f'group-summary-{group.group_id}')
    summary.pdf_url = pdf_url
    summary.save(update_fields=['pdf_url', 'updated_at'])
    logger.info(f"[summaries] Group summary and PDF stored for group {group.group_id}")
    return summary, pdf_url


def generate_meeting_summary(meeting, messages: List[str]) -> Optional[str]:
    """Refresh the group summary from a meeting transcript and attach the meeting PDF.

    Returns the PDF URL, or None when generation failed; failures are logged and
    never propagate so the meeting can end without a summary.
    """
    try:
        if not messages:
            raise BadRequestError('No messages found for meeting')
        summary = _store_group_summary(meeting.group, messages)
        pdf_url = _upload_pdf(
            render_meeting_summary_pdf(meeting, summary), MEETING_SUMMARY_FOLDER, f'meeting_{meeting.meeting_id}'
        )
        meeting.summary_pdf_url = pdf_url
        meeting.save(update_fields=['summary_pdf_url', 'updated_at'])
        summary.pdf_url = pdf_url
        summary.save(update_fields=['pdf_url', 'updated_at'])
        logger.info(f"[summaries] Meeting summary generated and PDF uploaded for meeting {meeting.meeting_id}")
        return pdf_url
    except Exception as e:
        logger.error(f"[summaries] Failed to generate meeting summary for {meeting.meeting_id}: {e}")
        return None


def _session_for(session_id, user) -> Session:
    session = Session.objects.select_related('seeker', 'listener', 'topic').filter(session_id=session_id).first()
    if session is None:
        raise NotFoundError('Session not found')
    if user.role != User.Role.ADMIN and not session.is_participant(user):
        raise ForbiddenError('You are not a participant of this session')
    return session


def _group_for(group_id, user) -> Group:
    group = Group.objects.select_related('topic').filter(group_id=group_id).first()
    if group is None:
        raise NotFoundError('Group not found')
    if user.role != User.Role.ADMIN and not GroupMember.objects.filter(group=group, user=user).exists():
        raise ForbiddenError('You are not a member of this group')
    return group


def get_session_summary(session_id, user) -> SessionSummary:
    _session_for(session_id, user)
    summary = SessionSummary.objects.select_related(
        'session__topic', 'session__listener', 'session__seeker'
    ).filter(session_id=session_id).first()
    if summary is None:
        raise NotFoundError('Session summary not found')
    return summary


def get_group_summary(group_id, user) -> GroupSummary:
    _group_for(group_id, user)
    summary = GroupSummary.objects.select_related('group__topic').filter(group_id=group_id).first()
    if summary is None:
        raise NotFoundError('Group summary not found')
    return summary


def session_summary_pdf(session_id, user) -> bytes:
    summary = get_session_summary(session_id, user)
    if not summary.pdf_url:
        raise NotFoundError('PDF not yet generated for this summary')
    return render_session_summary_pdf(summary)


def group_summary_pdf(group_id, user) -> bytes:
    summary = get_group_summary(group_id, user)
    if not summary.pdf_url:
        raise NotFoundError('PDF not yet generated for this summary')
    return render_group_summary_pdf(summary)


def regenerate_session_summary(session_id, user) -> Tuple[SessionSummary, str]:
    session = _session_for(session_id, user)
    contents = list(
        Message.objects.filter(session=session).order_by('created_at').values_list('content', flat=True)
    )
    if not contents:
        raise BadRequestError('No messages found for session')
    return generate_and_store_session_summary(session, contents)


def regenerate_group_summary(group_id, user) -> Tuple[GroupSummary, str]:
    group = _group_for(group_id, user)
    contents = list(
        Message.objects.filter(group=group).order_by('created_at').values_list('content', flat=True)
    )
    if not contents:
        raise BadRequestError('No messages found for group')
    return generate_and_store_group_summary(group, contents)


def summary_info(summary) -> dict:
    if summary is None:
        return {'has_summary': False, 'has_pdf': False, 'pdf_url': None, 'ai_generated': None,
                'created_at': None, 'updated_at': None}
    return {
        'has_summary': True,
        'has_pdf': bool(summary.pdf_url),
        'pdf_url': summary.pdf_url,
        'ai_generated': summary.ai_generated,
        'created_at': summary.created_at.isoformat() if summary.created_at else None,
        'updated_at': summary.updated_at.isoformat() if summary.updated_at else None,
    }


def session_summary_info(session_id, user) -> dict:
    _session_for(session_id, user)
    return summary_info(SessionSummary.objects.filter(session_id=session_id).first())


def group_summary_info(group_id, user) -> dict:
    _group_for(group_id, user)
    return summary_info(GroupSummary.objects.filter(group_id=group_id).first())
