import uuid
from django.db import models
from django.conf import settings


class Meeting(models.Model):
    """A scheduled live discussion inside a group, summarised when it ends."""

    class Type(models.TextChoices):
        GROUP_THERAPY = 'GROUP_THERAPY', 'Group therapy'
        SUPPORT_GROUP = 'SUPPORT_GROUP', 'Support group'
        WORKSHOP = 'WORKSHOP', 'Workshop'
        DISCUSSION = 'DISCUSSION', 'Discussion'

    class Status(models.TextChoices):
        SCHEDULED = 'SCHEDULED', 'Scheduled'
        ACTIVE = 'ACTIVE', 'Active'
        COMPLETED = 'COMPLETED', 'Completed'
        CANCELLED = 'CANCELLED', 'Cancelled'

    meeting_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey('groups_api.Group', on_delete=models.PROTECT, related_name='meetings')
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    type = models.CharField(max_length=16, choices=Type.choices, default=Type.DISCUSSION)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.SCHEDULED)
    scheduled_start_time = models.DateTimeField()
    scheduled_end_time = models.DateTimeField(blank=True, null=True)
    actual_start_time = models.DateTimeField(blank=True, null=True)
    actual_end_time = models.DateTimeField(blank=True, null=True)
    agenda = models.JSONField(default=list, blank=True)
    max_participants = models.PositiveIntegerField(blank=True, null=True)
    notes_template = models.TextField(blank=True, null=True)
    summary_pdf_url = models.URLField(max_length=500, blank=True, null=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='created_meetings')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Meeting"
        verbose_name_plural = "Meetings"
        ordering = ['-scheduled_start_time']
        indexes = [
            models.Index(fields=['group', 'status']),
        ]

    def __str__(self):
        return f"Meeting {self.title} [{self.status}] ({self.meeting_id})"
