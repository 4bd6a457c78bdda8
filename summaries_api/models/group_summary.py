import uuid
from django.db import models


class GroupSummary(models.Model):
    """Latest AI summary of a group's discussion; regenerated after each meeting."""
    summary_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.OneToOneField('groups_api.Group', on_delete=models.CASCADE, related_name='summary')
    topics_covered = models.JSONField(default=list, blank=True)
    group_sentiment = models.TextField()
    recommended_resources = models.JSONField(default=list, blank=True)
    ai_generated = models.BooleanField(default=True)
    pdf_url = models.URLField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Group summary"
        verbose_name_plural = "Group summaries"
        ordering = ['-created_at']

    def __str__(self):
        return f"GroupSummary for {self.group_id}"
