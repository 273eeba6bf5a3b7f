from django.contrib import admin

from .models import Task


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ("id", "description", "crop", "user", "status", "priority", "due_date")
    search_fields = ("description", "user__email")
    list_filter = ("status", "priority", "category")
    ordering = ("due_date",)
    readonly_fields = ("completed_at", "created_at", "updated_at")
