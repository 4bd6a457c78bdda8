from django.contrib import admin
from .models import ListenerApplication


@admin.register(ListenerApplication)
class ListenerApplicationAdmin(admin.ModelAdmin):
	list_display = ('application_id', 'user', 'status', 'reviewed_by', 'reviewed_at', 'created_at')
	list_filter = ('status',)
	search_fields = ('user__email', 'user__first_name', 'user__last_name')
	readonly_fields = ('application_id', 'created_at', 'updated_at', 'reviewed_at')
	filter_horizontal = ('topics',)
	ordering = ('-created_at',)
