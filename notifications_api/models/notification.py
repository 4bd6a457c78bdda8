import uuid
from django.db import models
from django.conf import settings


class NotificationType(models.TextChoices):
    SESSION_REMINDER = 'SESSION_REMINDER', 'Session reminder'
    NEW_RESOURCE = 'NEW_RESOURCE', 'New resource'
    GROUP_ACTIVITY = 'GROUP_ACTIVITY', 'Group activity'
    APPLICATION_UPDATE = 'APPLICATION_UPDATE', 'Application update'
    EMAIL_VERIFICATION = 'EMAIL_VERIFICATION', 'Email verification'
    PASSWORD_RESET = 'PASSWORD_RESET', 'Password reset'
    GENERAL = 'GENERAL', 'General'
    MEETING_UPDATE = 'MEETING_UPDATE', 'Meeting update'


class Notification(models.Model):
    notification_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(max_length=32, choices=NotificationType.choices, default=NotificationType.GENERAL)
    is_read = models.BooleanField(default=False)
    related_id = models.CharField(max_length=64, blank=True, null=True)  # id of the session/group/resource/meeting
    data = models.JSONField(default=dict, blank=True)  # serialized payload variant
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read']),
            models.Index(fields=['user', 'type', 'related_id']),
        ]

    def __str__(self):
        return f"Notification {self.notification_id} [{self.type}] for {self.user_id}"
