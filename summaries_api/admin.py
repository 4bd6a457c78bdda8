from django.contrib import admin
from .models import GroupSummary, SessionSummary


@admin.register(SessionSummary)
class SessionSummaryAdmin(admin.ModelAdmin):
	list_display = ('summary_id', 'session', 'ai_generated', 'pdf_url', 'created_at')
	list_filter = ('ai_generated',)
	readonly_fields = ('summary_id', 'created_at', 'updated_at')
	ordering = ('-created_at',)


@admin.register(GroupSummary)
class GroupSummaryAdmin(admin.ModelAdmin):
	list_display = ('summary_id', 'group', 'ai_generated', 'pdf_url', 'created_at')
	list_filter = ('ai_generated',)
	readonly_fields = ('summary_id', 'created_at', 'updated_at')
	ordering = ('-created_at',)
