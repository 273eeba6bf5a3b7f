from django.contrib import admin
from django.contrib.auth.admin import UserAdmin
from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    ordering = ("email",)
    list_display = ("id", "email", "name", "farm_location", "is_active", "last_login", "date_joined")
    search_fields = ("email", "name", "farm_location")
    list_filter = ("is_active", "is_staff")

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Farmer", {"fields": ("name", "farm_location", "phone_number")}),
        ("Permissions", {"fields": ("is_active", "is_staff", "is_superuser", "groups", "user_permissions")}),
        ("Important dates", {"fields": ("last_login", "date_joined")}),
    )

    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("email", "name", "password1", "password2", "is_staff", "is_superuser"),
        }),
    )
