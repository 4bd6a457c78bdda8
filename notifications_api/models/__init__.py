from .notification import Notification, NotificationType
from .email_outbox import EmailOutbox

__all__ = ["Notification", "NotificationType", "EmailOutbox"]
