import uuid
from django.db import models


class SessionSummary(models.Model):
    summary_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    session = models.OneToOneField('chat_api.Session', on_delete=models.CASCADE, related_name='summary')
    key_points = models.JSONField(default=list, blank=True)
    emotional_tone = models.TextField()
    action_items = models.JSONField(default=list, blank=True)
    suggested_resources = models.JSONField(default=list, blank=True)
    ai_generated = models.BooleanField(default=True)
    pdf_url = models.URLField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Session summary"
        verbose_name_plural = "Session summaries"
        ordering = ['-created_at']

    def __str__(self):
        return f"SessionSummary for {self.session_id}"
