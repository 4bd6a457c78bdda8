import uuid
from django.db import models
from django.conf import settings


class Resource(models.Model):
    class Type(models.TextChoices):
        PDF = 'PDF', 'PDF'
        VIDEO = 'VIDEO', 'Video'
        ARTICLE = 'ARTICLE', 'Article'
        AUDIO = 'AUDIO', 'Audio'

    resource_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default='')
    type = models.CharField(max_length=16, choices=Type.choices)
    file_url = models.URLField(max_length=500)
    topic = models.ForeignKey('topics_api.Topic', on_delete=models.PROTECT, related_name='resources')
    uploaded_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='uploaded_resources')
    is_approved = models.BooleanField(default=False)
    download_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Resource"
        verbose_name_plural = "Resources"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['topic', 'is_approved']),
        ]

    def __str__(self):
        return f"{self.title} ({self.type})"
