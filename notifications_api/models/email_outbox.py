import uuid
from django.db import models
from django.conf import settings


class EmailOutbox(models.Model):
    """An email written in the same transaction as the change that requires it.

    Rows are dispatched right after commit; PENDING / FAILED rows are retried by
    ``manage.py dispatch_email_outbox``.
    """

    class Kind(models.TextChoices):
        VERIFICATION = 'VERIFICATION', 'Verification'
        WELCOME = 'WELCOME', 'Welcome'
        PASSWORD_RESET = 'PASSWORD_RESET', 'Password reset'
        NOTIFICATION = 'NOTIFICATION', 'Notification'

    class Status(models.TextChoices):
        PENDING = 'PENDING', 'Pending'
        SENT = 'SENT', 'Sent'
        FAILED = 'FAILED', 'Failed'

    outbox_id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='outbox_emails', blank=True, null=True)
    recipient = models.EmailField(max_length=254)
    kind = models.CharField(max_length=32, choices=Kind.choices, default=Kind.NOTIFICATION)
    subject = models.CharField(max_length=255)
    body_text = models.TextField()
    body_html = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    attempts = models.PositiveIntegerField(default=0)
    last_error = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    sent_at = models.DateTimeField(blank=True, null=True)

    class Meta:
        verbose_name = "Email outbox entry"
        verbose_name_plural = "Email outbox"
        ordering = ['created_at']
        indexes = [models.Index(fields=['status', 'created_at'])]

    def __str__(self):
        return f"EmailOutbox {self.outbox_id} [{self.kind}/{self.status}] to {self.recipient}"
