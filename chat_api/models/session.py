import uuid
from django.db import models
from django.conf import settings


class Session(models.Model):
    """A one-to-one support session between a seeker and a listener on one topic."""

    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE', 'Active'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELLED = 'CANCELLED', 'Cancelled'

    session_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    seeker = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sessions_as_seeker')
    listener = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='sessions_as_listener')
    topic = models.ForeignKey('topics_api.Topic', on_delete=models.PROTECT, related_name='sessions')
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE)
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Session"
        verbose_name_plural = "Sessions"
        ordering = ['-start_time']
        indexes = [
            models.Index(fields=['status', 'start_time']),
        ]

    def is_participant(self, user) -> bool:
        return user is not None and user.pk in (self.seeker_id, self.listener_id)

    def __str__(self):
        return f"Session {self.session_id} [{self.status}] {self.seeker_id} <-> {self.listener_id}"
