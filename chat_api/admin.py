from django.contrib import admin
from .models import Message, Session


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
	list_display = ('session_id', 'seeker', 'listener', 'topic', 'status', 'start_time', 'end_time')
	list_filter = ('status', 'topic')
	search_fields = ('seeker__email', 'listener__email')
	readonly_fields = ('session_id', 'created_at', 'updated_at')
	ordering = ('-start_time',)


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
	list_display = ('message_id', 'sender', 'message_type', 'group', 'session', 'meeting', 'receiver', 'is_read', 'created_at')
	list_filter = ('message_type', 'is_read')
	search_fields = ('content', 'sender__email')
	readonly_fields = ('message_id', 'created_at')
	ordering = ('-created_at',)
