from django.contrib import admin

from .models import Crop


@admin.register(Crop)
class CropAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "variety", "user", "status", "planting_date", "expected_harvest_date")
    search_fields = ("name", "variety", "user__email")
    list_filter = ("status", "name", "area_unit")
    ordering = ("-planting_date",)
