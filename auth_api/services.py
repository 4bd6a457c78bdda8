"""Account lifecycle: registration, verification, login, token refresh and password reset.

Registration is two-phase. Phase one creates the unverified user together with
a PENDING verification email row inside one transaction. Phase two dispatches
that email; when delivery fails the user row is deleted again (the outbox row
cascades with it) so an address never ends up registered without a code.
"""

import logging
import secrets
from datetime import timedelta
from typing import Iterable, Optional

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from notifications_api.models import EmailOutbox
from notifications_api.outbox import dispatch, enqueue_email, queue_and_dispatch
from peerconnect_server.exceptions import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from peerconnect_server.utils.emailer import (
    render_password_reset_email,
    render_verification_email,
    render_welcome_email,
)
from topics_api.services import validate_topic_ids
from user_mang.models.custom_user import Custom_User

logger = logging.getLogger('auth_api')

REGISTRABLE_ROLES = (Custom_User.Role.USER, Custom_User.Role.LISTENER)


def generate_verification_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def _code_expiry():
    return timezone.now() + timedelta(seconds=settings.EMAIL_VERIFICATION_CODE_TTL_SECONDS)


def _validate_password(password: str) -> None:
    if not password or len(password) < settings.PASSWORD_MIN_LENGTH:
        raise BadRequestError(f'Password must be at least {settings.PASSWORD_MIN_LENGTH} characters long')


def issue_tokens(user) -> dict:
    refresh = RefreshToken.for_user(user)
    return {
        'access_token': str(refresh.access_token),
        'refresh_token': str(refresh),
        'expires_in': int(settings.SIMPLE_JWT['ACCESS_TOKEN_LIFETIME'].total_seconds()),
    }


def user_payload(user) -> dict:
    return {
        'user_id': str(user.user_id),
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'profile_picture': user.profile_picture,
        'bio': user.bio,
        'role': user.role,
        'status': user.status,
        'email_verified': user.email_verified,
        'is_approved': user.is_approved,
        'profile_completed': user.profile_completed,
    }


def _register(email: str, password: str, first_name: str, last_name: str,
              topic_ids: Optional[Iterable] = None, **extra) -> Custom_User:
    email = (email or '').strip().lower()
    _validate_password(password)
    role = extra.pop('role', None) or Custom_User.Role.USER
    if role not in REGISTRABLE_ROLES:
        raise BadRequestError('Invalid role')
    if Custom_User.objects.filter(email__iexact=email).exists():
        raise ConflictError('User with this email already exists')
    topics = validate_topic_ids(topic_ids) if topic_ids is not None else None

    code = generate_verification_code()
    try:
        with transaction.atomic():
            user = Custom_User.objects.create_user(
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                role=role,
                email_verified=False,
                verification_code=code,
                verification_code_expires=_code_expiry(),
                profile_picture=extra.get('profile_picture') or None,
                bio=extra.get('bio') or None,
            )
            if topics is not None:
                user.topics.set(topics)
                user.profile_completed = True
                user.save(update_fields=['profile_completed', 'last_modified'])
            subject, text, html = render_verification_email(first_name, code)
            entry = enqueue_email(email, EmailOutbox.Kind.VERIFICATION, subject, text, html, user=user)
    except IntegrityError as e:
        raise ConflictError('User with this email already exists') from e

    if not dispatch(entry):
        logger.error(f"[register] Verification email to {email} failed; removing user {user.user_id}")
        user.delete()
        raise InternalError('Failed to send verification email. Please try again later.')

    logger.info(f"[register] Registered {email} ({user.user_id}), verification email sent")
    return user


def register(email: str, password: str, first_name: str, last_name: str, **extra) -> Custom_User:
    return _register(email, password, first_name, last_name, **extra)


def register_with_topics(email: str, password: str, first_name: str, last_name: str,
                         topic_ids: Iterable, **extra) -> Custom_User:
    return _register(email, password, first_name, last_name, topic_ids=list(topic_ids or []), **extra)


def verify_email(email: str, code: str) -> Custom_User:
    user = Custom_User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None or not user.verification_code_valid(code):
        raise BadRequestError('Invalid or expired verification code')
    user.email_verified = True
    user.verification_code = None
    user.verification_code_expires = None
    user.save(update_fields=['email_verified', 'verification_code', 'verification_code_expires', 'last_modified'])

    subject, text, html = render_welcome_email(user.first_name)
    queue_and_dispatch(user.email, EmailOutbox.Kind.WELCOME, subject, text, html, user=user)
    logger.info(f"[verify_email] Email verified for {user.email} ({user.user_id})")
    return user


def resend_verification(email: str) -> None:
    user = Custom_User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None:
        raise NotFoundError('User not found')
    if user.email_verified:
        raise BadRequestError('Email is already verified')
    code = generate_verification_code()
    with transaction.atomic():
        user.verification_code = code
        user.verification_code_expires = _code_expiry()
        user.save(update_fields=['verification_code', 'verification_code_expires', 'last_modified'])
        subject, text, html = render_verification_email(user.first_name, code)
        entry = enqueue_email(user.email, EmailOutbox.Kind.VERIFICATION, subject, text, html, user=user)
    if not dispatch(entry):
        raise InternalError('Failed to send verification email. Please try again later.')
    logger.info(f"[resend_verification] New code sent to {user.email}")


def login(email: str, password: str) -> dict:
    user = Custom_User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None or not user.is_active or not user.check_password(password):
        logger.warning(f"[login] Invalid credentials for {email}")
        raise UnauthorizedError('Invalid credentials')
    if not user.email_verified:
        raise UnauthorizedError('Please verify your email before logging in')
    user.status = Custom_User.Status.ONLINE
    user.last_login = timezone.now()
    user.save(update_fields=['status', 'last_login', 'last_modified'])
    logger.info(f"[login] {user.email} logged in")
    return {**user_payload(user), **issue_tokens(user)}


def logout(user) -> None:
    user.status = Custom_User.Status.OFFLINE
    user.save(update_fields=['status', 'last_modified'])
    logger.info(f"[logout] {user.email} logged out")


def refresh_tokens(refresh_token: str) -> dict:
    try:
        token = RefreshToken(refresh_token)
    except TokenError as e:
        raise UnauthorizedError('Invalid refresh token') from e
    user_id = token.payload.get(settings.SIMPLE_JWT['USER_ID_CLAIM'])
    user = Custom_User.objects.filter(user_id=user_id).first()
    if user is None:
        raise UnauthorizedError('Invalid refresh token')
    if not user.email_verified:
        raise UnauthorizedError('Email not verified')
    return issue_tokens(user)


def forgot_password(email: str) -> None:
    """Issue a reset token when the account exists. Silent otherwise."""
    user = Custom_User.objects.filter(email__iexact=(email or '').strip()).first()
    if user is None:
        logger.info(f"[forgot_password] No account for {email}")
        return
    token = secrets.token_urlsafe(32)
    with transaction.atomic():
        user.reset_token = token
        user.reset_token_expires = timezone.now() + timedelta(seconds=settings.PASSWORD_RESET_TOKEN_TTL_SECONDS)
        user.save(update_fields=['reset_token', 'reset_token_expires', 'last_modified'])
        subject, text, html = render_password_reset_email(user.first_name, token)
        entry = enqueue_email(user.email, EmailOutbox.Kind.PASSWORD_RESET, subject, text, html, user=user)
    dispatch(entry)
    logger.info(f"[forgot_password] Reset token issued for {user.email}")


def reset_password(token: str, new_password: str) -> Custom_User:
    _validate_password(new_password)
    user = Custom_User.objects.filter(reset_token=token).first() if token else None
    if user is None or not user.reset_token_expires or user.reset_token_expires < timezone.now():
        raise BadRequestError('Invalid or expired reset token')
    user.set_password(new_password)
    user.reset_token = None
    user.reset_token_expires = None
    user.save(update_fields=['password', 'reset_token', 'reset_token_expires', 'last_modified'])
    logger.info(f"[reset_password] Password reset for {user.email}")
    return user


def complete_profile(user, topic_ids: Iterable, bio: Optional[str] = None,
                     profile_picture: Optional[str] = None) -> Custom_User:
    if user.profile_completed:
        raise BadRequestError('Profile is already completed')
    topics = validate_topic_ids(topic_ids)
    with transaction.atomic():
        if bio is not None:
            user.bio = bio
        if profile_picture is not None:
            user.profile_picture = profile_picture
        user.profile_completed = True
        user.save()
        user.topics.set(topics)
    logger.info(f"[complete_profile] Profile completed for {user.email}")
    return user


def profile_completion(user) -> dict:
    return {
        'profile_completed': bool(user.profile_completed),
        'email_verified': bool(user.email_verified),
        'has_topics': user.topics.exists(),
        'is_approved': bool(user.is_approved),
    }

