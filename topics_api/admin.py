from django.contrib import admin
from .models import Topic


@admin.register(Topic)
class TopicAdmin(admin.ModelAdmin):
	list_display = ('topic_id', 'name', 'created_at')
	search_fields = ('name', 'description')
	ordering = ('name',)
