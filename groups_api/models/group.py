import uuid
from django.db import models
from django.conf import settings


class Group(models.Model):
    group_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    description = models.TextField(blank=True, default='')
    topic = models.ForeignKey('topics_api.Topic', on_delete=models.PROTECT, related_name='groups')
    leader = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, related_name='led_groups', blank=True, null=True)
    is_active = models.BooleanField(default=True)
    max_members = models.PositiveIntegerField(default=100)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Group"
        verbose_name_plural = "Groups"
        ordering = ['-created_at']

    @property
    def member_count(self) -> int:
        return self.members.count()

    @property
    def is_full(self) -> bool:
        return self.member_count >= self.max_members

    def __str__(self):
        return f"Group {self.name} ({self.group_id})"
