from django.contrib import admin
from .models import EmailOutbox, Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
	list_display = ('notification_id', 'user', 'type', 'title', 'is_read', 'created_at')
	list_filter = ('type', 'is_read')
	search_fields = ('title', 'message', 'user__email', 'related_id')
	readonly_fields = ('notification_id', 'created_at', 'updated_at')
	ordering = ('-created_at',)


@admin.register(EmailOutbox)
class EmailOutboxAdmin(admin.ModelAdmin):
	list_display = ('outbox_id', 'recipient', 'kind', 'status', 'attempts', 'created_at', 'sent_at')
	list_filter = ('kind', 'status')
	search_fields = ('recipient', 'subject')
	readonly_fields = ('outbox_id', 'created_at', 'updated_at', 'sent_at', 'last_error')
	ordering = ('-created_at',)
