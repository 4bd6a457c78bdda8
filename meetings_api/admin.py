from django.contrib import admin
from .models import Meeting


@admin.register(Meeting)
class MeetingAdmin(admin.ModelAdmin):
	list_display = ('meeting_id', 'title', 'group', 'type', 'status', 'scheduled_start_time', 'created_by')
	list_filter = ('status', 'type')
	search_fields = ('title', 'description', 'group__name')
	readonly_fields = ('meeting_id', 'created_at', 'updated_at', 'actual_start_time', 'actual_end_time', 'summary_pdf_url')
	ordering = ('-scheduled_start_time',)
