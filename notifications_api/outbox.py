"""Transactional email outbox.

``enqueue_email`` is meant to run inside the caller's ``transaction.atomic()``
block so the email row commits together with the state change that requires
it. ``dispatch`` hands a row to the emailer and records the outcome.
"""

import logging
from typing import Optional

from django.conf import settings
from django.db.models import F, Q
from django.utils import timezone

from notifications_api.models import EmailOutbox
from peerconnect_server.utils.emailer import send_email

logger = logging.getLogger('notifications_api.outbox')


def enqueue_email(recipient: str, kind: str, subject: str, body_text: str,
                  body_html: Optional[str] = None, user=None) -> EmailOutbox:
    return EmailOutbox.objects.create(
        user=user,
        recipient=recipient,
        kind=kind,
        subject=subject,
        body_text=body_text,
        body_html=body_html,
    )


def dispatch(entry: EmailOutbox) -> bool:
    """Try to deliver one outbox row. Returns True when the emailer confirmed delivery."""
    if entry.status == EmailOutbox.Status.SENT:
        return True
    error = None
    try:
        results = send_email(entry.subject, entry.body_text, [entry.recipient], html_message=entry.body_html)
        outcome = results.get(entry.recipient) or {}
        sent = bool(outcome.get('sent'))
        if not sent:
            error = outcome.get('error') or outcome.get('reason') or 'unknown error'
    except Exception as e:
        logger.exception(f"[outbox] Dispatch raised for {entry.outbox_id}: {e}")
        sent = False
        error = str(e)

    EmailOutbox.objects.filter(pk=entry.pk).update(attempts=F('attempts') + 1)
    entry.refresh_from_db(fields=['attempts'])
    if sent:
        entry.status = EmailOutbox.Status.SENT
        entry.sent_at = timezone.now()
        entry.last_error = None
        logger.info(f"[outbox] Sent {entry.kind} email {entry.outbox_id} to {entry.recipient}")
    else:
        entry.status = EmailOutbox.Status.FAILED
        entry.last_error = error
        logger.warning(f"[outbox] Failed {entry.kind} email {entry.outbox_id} to {entry.recipient}: {error}")
    entry.save(update_fields=['status', 'sent_at', 'last_error', 'updated_at'])
    return sent


def queue_and_dispatch(recipient: str, kind: str, subject: str, body_text: str,
                       body_html: Optional[str] = None, user=None) -> Optional[EmailOutbox]:
    """Best-effort email for non-critical side effects; never raises."""
    try:
        entry = enqueue_email(recipient, kind, subject, body_text, body_html, user=user)
        dispatch(entry)
        return entry
    except Exception as e:
        logger.exception(f"[outbox] Could not queue {kind} email to {recipient}: {e}")
        return None


def dispatch_pending(limit: int = 100) -> dict:
    """Retry PENDING and FAILED rows that still have attempts left."""
    max_attempts = getattr(settings, 'EMAIL_OUTBOX_MAX_ATTEMPTS', 5)
    entries = (
        EmailOutbox.objects
        .filter(Q(status=EmailOutbox.Status.PENDING) | Q(status=EmailOutbox.Status.FAILED))
        .filter(attempts__lt=max_attempts)
        .order_by('created_at')[:limit]
    )
    counts = {'sent': 0, 'failed': 0}
    for entry in entries:
        if dispatch(entry):
            counts['sent'] += 1
        else:
            counts['failed'] += 1
    logger.info(f"[outbox] Dispatch run finished: {counts}")
    return counts
