import uuid
from django.db import models
from django.conf import settings
from django.core.exceptions import ValidationError


class MessageType(models.TextChoices):
    TEXT = 'TEXT', 'Text'
    FILE = 'FILE', 'File'
    IMAGE = 'IMAGE', 'Image'
    SYSTEM = 'SYSTEM', 'System'


ROOM_FIELDS = ('receiver', 'group', 'session', 'meeting')


class Message(models.Model):
    """A chat message addressed to exactly one room: a direct receiver, a group, a session or a meeting.

    Messages are immutable once created apart from ``is_read``; they disappear only
    when the room they belong to is deleted.
    """
    message_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sent_messages')
    receiver = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='received_messages', blank=True, null=True)
    group = models.ForeignKey('groups_api.Group', on_delete=models.CASCADE, related_name='messages', blank=True, null=True)
    session = models.ForeignKey('chat_api.Session', on_delete=models.CASCADE, related_name='messages', blank=True, null=True)
    meeting = models.ForeignKey('meetings_api.Meeting', on_delete=models.CASCADE, related_name='messages', blank=True, null=True)
    content = models.TextField()
    message_type = models.CharField(max_length=16, choices=MessageType.choices, default=MessageType.TEXT)
    file_url = models.URLField(max_length=500, blank=True, null=True)
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Message"
        verbose_name_plural = "Messages"
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['group', 'created_at']),
            models.Index(fields=['session', 'created_at']),
            models.Index(fields=['meeting', 'created_at']),
            models.Index(fields=['sender', 'receiver', 'created_at']),
        ]

    def clean(self):
        super().clean()
        refs = [name for name in ROOM_FIELDS if getattr(self, f'{name}_id') is not None]
        if len(refs) != 1:
            raise ValidationError('A message must reference exactly one of receiver, group, session or meeting.')

    def save(self, *args, **kwargs):
        if self._state.adding:
            self.clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"Message {self.message_id} from {self.sender_id}"
