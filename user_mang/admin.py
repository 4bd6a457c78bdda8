from django.contrib import admin
from .models.custom_user import Custom_User


@admin.register(Custom_User)
class CustomUserAdmin(admin.ModelAdmin):
	list_display = (
		'user_id', 'email', 'first_name', 'last_name', 'role', 'status',
		'email_verified', 'is_approved', 'profile_completed', 'date_joined'
	)
	list_filter = ('role', 'status', 'email_verified', 'is_approved', 'profile_completed', 'is_active', 'is_staff')
	search_fields = ('email', 'first_name', 'last_name', 'user_id')
	readonly_fields = ('user_id', 'last_login', 'date_joined', 'last_modified')
	ordering = ('-date_joined',)
	filter_horizontal = ('topics',)
	fieldsets = (
		('Account', {'fields': ('user_id', 'email', 'first_name', 'last_name', 'is_active', 'is_staff', 'is_superuser')}),
		('Profile', {'fields': ('profile_picture', 'bio', 'status', 'topics', 'profile_completed')}),
		('Role', {'fields': ('role', 'is_approved')}),
		('Verification', {'fields': ('email_verified', 'verification_code', 'verification_code_expires', 'reset_token', 'reset_token_expires')}),
		('Security', {'fields': ('last_login', 'date_joined', 'last_modified')}),
	)
