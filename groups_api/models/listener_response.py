import uuid
from django.db import models
from django.conf import settings


class ListenerResponse(models.Model):
    """Escalation record opened when group content needs a listener's attention."""

    class ResponseType(models.TextChoices):
        SUPPORT = 'SUPPORT', 'Support'
        GUIDANCE = 'GUIDANCE', 'Guidance'
        RESOURCE = 'RESOURCE', 'Resource'
        ESCALATION = 'ESCALATION', 'Escalation'
        CLARIFICATION = 'CLARIFICATION', 'Clarification'

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        IN_PROGRESS = 'IN_PROGRESS', 'In progress'
        RESOLVED = 'RESOLVED', 'Resolved'
        ESCALATED = 'ESCALATED', 'Escalated'

    response_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey('groups_api.Group', on_delete=models.CASCADE, related_name='listener_responses')
    flagged_user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='flagged_responses')
    message = models.ForeignKey('chat_api.Message', on_delete=models.SET_NULL, related_name='listener_responses', blank=True, null=True)
    content = models.TextField()
    flagged_terms = models.JSONField(default=list, blank=True)
    severity = models.CharField(max_length=8, default='LOW')
    listener = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name='given_responses', blank=True, null=True)
    response_content = models.TextField(blank=True, null=True)
    response_type = models.CharField(max_length=16, choices=ResponseType.choices, blank=True, null=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    follow_up_required = models.BooleanField(default=False)
    follow_up_notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    responded_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        verbose_name = "Listener response"
        verbose_name_plural = "Listener responses"
        ordering = ['-created_at']
        indexes = [models.Index(fields=['group', 'status'])]

    def __str__(self):
        return f"ListenerResponse {self.response_id} [{self.status}] in {self.group_id}"
