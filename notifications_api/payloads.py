"""Notification payload variants, one dataclass per notification type.

Each variant knows its type tag, how to render its title and message, which
entity it relates to and whether it warrants an email by default.
"""

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import ClassVar, Dict, Optional, Type

from django.utils.dateparse import parse_datetime

from notifications_api.models import NotificationType
from peerconnect_server.exceptions import BadRequestError


@dataclass(frozen=True)
class NotificationPayload:
    type: ClassVar[str] = NotificationType.GENERAL
    send_email: ClassVar[bool] = False

    def title(self) -> str:
        raise NotImplementedError

    def message(self) -> str:
        raise NotImplementedError

    def related_id(self) -> Optional[str]:
        return None

    def to_data(self) -> dict:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
        data['type'] = str(self.type)
        return data


@dataclass(frozen=True)
class GeneralPayload(NotificationPayload):
    title_text: str
    message_text: str
    related: Optional[str] = None

    def title(self):
        return self.title_text

    def message(self):
        return self.message_text

    def related_id(self):
        return self.related


@dataclass(frozen=True)
class SessionReminderPayload(NotificationPayload):
    type: ClassVar[str] = NotificationType.SESSION_REMINDER
    send_email: ClassVar[bool] = True

    session_id: str
    topic_name: str
    listener_name: str
    start_time: datetime

    def title(self):
        return 'Session Reminder'

    def message(self):
        return (
            f'Your session on "{self.topic_name}" with {self.listener_name} starts in 30 minutes '
            f'at {self.start_time.strftime("%H:%M")}.'
        )

    def related_id(self):
        return str(self.session_id)


@dataclass(frozen=True)
class NewResourcePayload(NotificationPayload):
    type: ClassVar[str] = NotificationType.NEW_RESOURCE
    send_email: ClassVar[bool] = True

    resource_id: str
    resource_title: str
    topic_name: str
    uploaded_by_name: str

    def title(self):
        return 'New Resource Available'

    def message(self):
        return (
            f'A new resource "{self.resource_title}" has been added to "{self.topic_name}" '
            f'by {self.uploaded_by_name}.'
        )

    def related_id(self):
        return str(self.resource_id)


@dataclass(frozen=True)
class GroupActivityPayload(NotificationPayload):
    type: ClassVar[str] = NotificationType.GROUP_ACTIVITY

    group_id: str
    group_name: str
    activity_description: str

    def title(self):
        return 'Group Activity Update'

    def message(self):
        return f'{self.activity_description} in group "{self.group_name}".'

    def related_id(self):
        return str(self.group_id)


@dataclass(frozen=True)
class ListenerEscalationPayload(GroupActivityPayload):
    """Flagged group content awaiting a listener, related to the escalation record."""

    response_id: str

    def related_id(self):
        return str(self.response_id)


@dataclass(frozen=True)
class ApplicationUpdatePayload(NotificationPayload):
    type: ClassVar[str] = NotificationType.APPLICATION_UPDATE
    send_email: ClassVar[bool] = True

    application_id: str
    status: str
    admin_notes: Optional[str] = None

    def title(self):
        return 'Listener Application Update'

    def message(self):
        if self.status == 'APPROVED':
            text = 'Your listener application has been approved. Welcome to the listener team!'
        elif self.status == 'REJECTED':
            text = 'Your listener application was not approved this time.'
        else:
            text = f'Your listener application status is now {self.status}.'
        if self.admin_notes:
            text += f' Notes: {self.admin_notes}'
        return text

    def related_id(self):
        return str(self.application_id)


@dataclass(frozen=True)
class MeetingUpdatePayload(NotificationPayload):
    type: ClassVar[str] = NotificationType.MEETING_UPDATE

    meeting_id: str
    meeting_title: str
    group_name: str
    change: str  # SCHEDULED | STARTED | ENDED | UPDATED | CANCELLED
    scheduled_start_time: Optional[datetime] = None

    def title(self):
        return {
            'SCHEDULED': 'New Meeting Scheduled',
            'STARTED': 'Meeting Started',
            'ENDED': 'Meeting Ended',
            'CANCELLED': 'Meeting Cancelled',
        }.get(self.change, 'Meeting Updated')

    def message(self):
        if self.change == 'SCHEDULED' and self.scheduled_start_time:
            when = self.scheduled_start_time.strftime('%Y-%m-%d %H:%M UTC')
            return f'"{self.meeting_title}" in group "{self.group_name}" is scheduled for {when}.'
        return f'"{self.meeting_title}" in group "{self.group_name}" was {self.change.lower()}.'

    def related_id(self):
        return str(self.meeting_id)


@dataclass(frozen=True)
class EmailVerifiedPayload(NotificationPayload):
    type: ClassVar[str] = NotificationType.EMAIL_VERIFICATION

    email: str

    def title(self):
        return 'Email Verified'

    def message(self):
        return f'Your email {self.email} has been verified.'


@dataclass(frozen=True)
class PasswordResetPayload(NotificationPayload):
    type: ClassVar[str] = NotificationType.PASSWORD_RESET

    def title(self):
        return 'Password Changed'

    def message(self):
        return 'Your password was reset. If this was not you, contact support immediately.'


PAYLOAD_TYPES: Dict[str, Type[NotificationPayload]] = {
    str(cls.type): cls
    for cls in (
        GeneralPayload,
        SessionReminderPayload,
        NewResourcePayload,
        GroupActivityPayload,
        ApplicationUpdatePayload,
        MeetingUpdatePayload,
        EmailVerifiedPayload,
        PasswordResetPayload,
    )
}


def build_payload(notification_type: str, data: dict) -> NotificationPayload:
    """Construct the variant tagged ``notification_type`` from loose request data."""
    cls = PAYLOAD_TYPES.get(notification_type)
    if cls is None:
        raise BadRequestError(f'Unknown notification type: {notification_type}')
    kwargs = {}
    for f in fields(cls):
        if f.name in data:
            value = data[f.name]
            if f.type in (datetime, Optional[datetime]) and isinstance(value, str):
                value = parse_datetime(value)
                if value is None:
                    raise BadRequestError(f'Invalid datetime for {f.name}')
            kwargs[f.name] = value
    try:
        return cls(**kwargs)
    except TypeError as e:
        raise BadRequestError(f'Invalid payload for {notification_type}: {e}') from e
