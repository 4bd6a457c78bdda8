from django.contrib import admin
from .models import Group, GroupMember, ListenerResponse


class GroupMemberInline(admin.TabularInline):
	model = GroupMember
	extra = 0
	fields = ('user', 'role', 'joined_at')
	readonly_fields = ('joined_at',)


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
	list_display = ('group_id', 'name', 'topic', 'leader', 'is_active', 'max_members', 'created_at')
	list_filter = ('is_active', 'topic')
	search_fields = ('name', 'description', 'leader__email')
	readonly_fields = ('group_id', 'created_at', 'updated_at')
	inlines = [GroupMemberInline]
	ordering = ('-created_at',)


@admin.register(ListenerResponse)
class ListenerResponseAdmin(admin.ModelAdmin):
	list_display = ('response_id', 'group', 'flagged_user', 'severity', 'status', 'listener', 'created_at')
	list_filter = ('status', 'severity', 'response_type')
	search_fields = ('content', 'flagged_user__email', 'listener__email')
	readonly_fields = ('response_id', 'created_at', 'responded_at')
	ordering = ('-created_at',)
