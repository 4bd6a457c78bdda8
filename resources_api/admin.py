from django.contrib import admin
from .models import Resource


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
	list_display = ('resource_id', 'title', 'type', 'topic', 'uploaded_by', 'is_approved', 'download_count', 'created_at')
	list_filter = ('is_approved', 'type', 'topic')
	search_fields = ('title', 'description', 'uploaded_by__email')
	readonly_fields = ('resource_id', 'download_count', 'created_at', 'updated_at')
	ordering = ('-created_at',)
