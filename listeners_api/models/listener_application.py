import uuid
from django.db import models
from django.conf import settings


class ListenerApplication(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        APPROVED = 'APPROVED', 'Approved'
        REJECTED = 'REJECTED', 'Rejected'

    application_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='listener_application')
    bio = models.TextField()
    experience = models.TextField()
    topics = models.ManyToManyField('topics_api.Topic', related_name='listener_applications')
    motivation = models.TextField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    admin_notes = models.TextField(blank=True, null=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name='reviewed_applications', blank=True, null=True
    )
    reviewed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Listener Application"
        verbose_name_plural = "Listener Applications"
        ordering = ['-created_at']

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING

    def __str__(self):
        return f"Application {self.application_id} by {self.user_id} ({self.status})"
