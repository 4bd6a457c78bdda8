import time
import requests
from typing import Iterable, Optional
import logging

from django.conf import settings
from django.core.mail import EmailMessage
from django.utils.html import escape

logger = logging.getLogger("emailer")


class MailerooClient:
    @staticmethod
    def send_email(subject: str, message: str, to_email: str, from_email: Optional[str] = None, html_message: Optional[str] = None, timeout: int = 10) -> dict:
        """
        Send email via Maileroo API.
        Returns dict: { "success": bool, "status_code": int|None, "body": dict|str|None, "error": str|None }
        """
        api_key = getattr(settings, "MAILEROO_API_KEY", None)
        if not api_key:
            return {"success": False, "status_code": None, "body": None, "error": "MAILEROO_API_KEY not configured"}

        payload = {
            "subject": subject,
            "to": to_email,
            "from": from_email or getattr(settings, "DEFAULT_FROM_EMAIL", None),
            "text": message,
        }
        if html_message:
            payload["html"] = html_message

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        try:
            resp = requests.post(settings.MAILEROO_SEND_URL, headers=headers, json=payload, timeout=timeout)
            try:
                body = resp.json()
            except ValueError:
                body = resp.text
            success = 200 <= resp.status_code < 300
            return {"success": success, "status_code": resp.status_code, "body": body, "error": None if success else f"HTTP {resp.status_code}"}
        except requests.RequestException as e:
            logger.exception("Maileroo send_email exception for %s: %s", to_email, e)
            return {"success": False, "status_code": None, "body": None, "error": str(e)}


def send_email(
    subject: str,
    message: str,
    recipient_list: Iterable[str],
    from_email: Optional[str] = None,
    html_message: Optional[str] = None,
    maileroo_max_attempts: int = 3,
    maileroo_backoff_seconds: float = 0.5,
    smtp_max_attempts: int = 2,
    smtp_backoff_seconds: float = 0.5,
) -> dict:
    """
    Deliver one message to each recipient.
      - Maileroo is the primary sender when MAILEROO_API_KEY is configured (with retries).
      - Django's email backend (SMTP in production) is used when Maileroo is not
        configured or has exhausted its attempts.
    Returns a per-recipient dict: { email: {"sent", "attempts", "reason", "error", "maileroo", "smtp"} }
    """
    results = {}
    if not recipient_list:
        return results

    for email in recipient_list:
        r = {"sent": False, "attempts": 0, "reason": None, "error": None, "maileroo": None, "smtp": None}

        # 1) Maileroo: attempt as primary sender if configured
        if getattr(settings, "MAILEROO_API_KEY", None):
            last_maileroo_err = None
            for attempt in range(1, maileroo_max_attempts + 1):
                r["attempts"] = attempt
                maileroo_resp = MailerooClient.send_email(subject, message, email, from_email=from_email, html_message=html_message)
                r["maileroo"] = maileroo_resp
                if maileroo_resp.get("success"):
                    r["sent"] = True
                    logger.info("Maileroo sent to %s (attempt %d)", email, attempt)
                    break
                last_maileroo_err = maileroo_resp.get("error") or f"HTTP {maileroo_resp.get('status_code')}"
                logger.warning("Maileroo response for %s attempt %d: %s", email, attempt, last_maileroo_err)
                if attempt < maileroo_max_attempts:
                    time.sleep(maileroo_backoff_seconds * (2 ** (attempt - 1)))

            if r["sent"]:
                results[email] = r
                continue
            r["reason"] = "Maileroo failed"
            r["error"] = last_maileroo_err

        # 2) Django email backend
        last_smtp_err = None
        for attempt in range(1, smtp_max_attempts + 1):
            try:
                msg = EmailMessage(
                    subject=subject,
                    body=html_message or message,
                    from_email=from_email or getattr(settings, "DEFAULT_FROM_EMAIL", None),
                    to=[email],
                )
                if html_message:
                    msg.content_subtype = "html"
                sent_count = msg.send(fail_silently=False)
                r["smtp"] = {"sent_count": sent_count}
                r["attempts"] += 1
                if sent_count and sent_count > 0:
                    r["sent"] = True
                    logger.info("SMTP sent to %s (attempt %d)", email, attempt)
                    break
                last_smtp_err = "Email backend reported 0 delivered"
                logger.warning("SMTP backend returned 0 for %s on attempt %d", email, attempt)
            except Exception as e:
                last_smtp_err = str(e)
                logger.exception("SMTP exception for %s on attempt %d: %s", email, attempt, e)
            if attempt < smtp_max_attempts:
                time.sleep(smtp_backoff_seconds * (2 ** (attempt - 1)))

        if not r["sent"]:
            r["error"] = r.get("error") or last_smtp_err
            r["reason"] = r.get("reason") or "SMTP failed"
        results[email] = r

    return results


# ------------------------- Message templates -------------------------
# User-supplied values are escaped in the HTML parts only.

def _wrap_html(title: str, body_html: str) -> str:
    return (
        "<div style=\"font-family:Arial,sans-serif;max-width:600px;margin:0 auto;\">"
        f"<h2 style=\"color:#4f46e5;\">{escape(title)}</h2>{body_html}"
        "<p style=\"color:#6b7280;font-size:12px;\">PeerConnect - peer support that listens.</p></div>"
    )


def render_verification_email(first_name: str, code: str) -> tuple:
    subject = "Verify your PeerConnect email"
    text = (
        f"Hi {first_name},\n\nYour verification code is {code}. "
        "It expires in 10 minutes.\n\nIf you did not create an account, ignore this email."
    )
    html = _wrap_html(
        "Verify your email",
        f"<p>Hi {escape(first_name)},</p><p>Your verification code is "
        f"<strong style=\"font-size:22px;letter-spacing:4px;\">{escape(code)}</strong>.</p>"
        "<p>It expires in 10 minutes.</p>",
    )
    return subject, text, html


def render_welcome_email(first_name: str) -> tuple:
    subject = "Welcome to PeerConnect"
    text = f"Hi {first_name},\n\nYour email is verified. Pick your topics and find a listener who gets it."
    html = _wrap_html("Welcome!", f"<p>Hi {escape(first_name)},</p><p>Your email is verified. Pick your topics and find a listener who gets it.</p>")
    return subject, text, html


def render_password_reset_email(first_name: str, reset_token: str) -> tuple:
    reset_url = f"{settings.FRONTEND_URL}/reset-password?token={reset_token}"
    subject = "Reset your PeerConnect password"
    text = f"Hi {first_name},\n\nUse this link to reset your password (valid for 1 hour):\n{reset_url}"
    html = _wrap_html(
        "Password reset",
        f"<p>Hi {escape(first_name)},</p><p><a href=\"{escape(reset_url)}\">Reset your password</a>. The link is valid for 1 hour.</p>",
    )
    return subject, text, html


def render_notification_email(first_name: str, title: str, message: str) -> tuple:
    text = f"Hi {first_name},\n\n{message}"
    html = _wrap_html(title, f"<p>Hi {escape(first_name)},</p><p>{escape(message)}</p>")
    return title, text, html
