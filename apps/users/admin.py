# apps/users/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("id", "email", "full_name", "user_type", "date_joined", "is_active")
    list_filter = ("user_type", "is_active", "date_joined")
    search_fields = ("email", "full_name")
    ordering = ("-date_joined",)
    readonly_fields = ("date_joined", "last_login")

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Marketplace", {"fields": ("user_type", "full_name", "phone")}),
    )
