import uuid
from django.db import models
from django.conf import settings


class GroupMember(models.Model):
    class Role(models.TextChoices):
        MEMBER = 'MEMBER', 'Member'
        MODERATOR = 'MODERATOR', 'Moderator'
        ADMIN = 'ADMIN', 'Admin'
        HEAD = 'HEAD', 'Head'

    membership_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    group = models.ForeignKey('groups_api.Group', on_delete=models.CASCADE, related_name='members')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='group_memberships')
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.MEMBER)
    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "Group member"
        verbose_name_plural = "Group members"
        ordering = ['joined_at']
        constraints = [
            models.UniqueConstraint(fields=['group', 'user'], name='unique_group_member'),
        ]

    def __str__(self):
        return f"GroupMember {self.user_id} in {self.group_id} [{self.role}]"
