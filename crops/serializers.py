from datetime import date

from django.utils import timezone
from rest_framework import serializers

from .models import Crop

# Frontends post either plain dates or full ISO timestamps from a date picker.
DATE_INPUT_FORMATS = ["iso-8601", "%Y-%m-%dT%H:%M:%S.%fZ", "%Y-%m-%dT%H:%M:%SZ", "%Y-%m-%dT%H:%M:%S"]


def years_from_today(years):
    today = timezone.localdate()
    try:
        return today.replace(year=today.year + years)
    except ValueError:
        # Feb 29 -> Feb 28
        return date(today.year + years, 2, 28)


class CropSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    plantingDate = serializers.DateField(source="planting_date", input_formats=DATE_INPUT_FORMATS)
    expectedHarvestDate = serializers.DateField(
        source="expected_harvest_date", input_formats=DATE_INPUT_FORMATS
    )
    areaUnit = serializers.ChoiceField(
        source="area_unit", choices=Crop.AreaUnit.choices, required=False
    )
    daysUntilHarvest = serializers.IntegerField(source="days_until_harvest", read_only=True)
    growthProgress = serializers.IntegerField(source="growth_progress", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Crop
        fields = [
            "id", "userId", "name", "variety",
            "plantingDate", "expectedHarvestDate",
            "area", "areaUnit", "status", "notes",
            "daysUntilHarvest", "growthProgress",
            "createdAt", "updatedAt",
        ]
        read_only_fields = ["id"]
        extra_kwargs = {
            "name": {"error_messages": {
                "invalid_choice": "Please select a valid crop type",
                "required": "Crop name is required",
            }},
            "notes": {"error_messages": {"max_length": "Notes cannot exceed 500 characters"}},
            "area": {"min_value": 0},
        }

    def validate_plantingDate(self, value):
        if value > years_from_today(2):
            raise serializers.ValidationError("Planting date cannot be more than 2 years in the future")
        return value

    def validate(self, attrs):
        # merged with the stored values so partial edits are checked too
        planting = attrs.get("planting_date", getattr(self.instance, "planting_date", None))
        harvest = attrs.get("expected_harvest_date", getattr(self.instance, "expected_harvest_date", None))
        if planting and harvest and harvest <= planting:
            raise serializers.ValidationError(
                {"expectedHarvestDate": "Expected harvest date must be after planting date"}
            )
        return attrs


class CropSummarySerializer(serializers.ModelSerializer):
    """Compact crop shown inside task payloads."""
    plantingDate = serializers.DateField(source="planting_date", read_only=True)
    expectedHarvestDate = serializers.DateField(source="expected_harvest_date", read_only=True)

    class Meta:
        model = Crop
        fields = ["id", "name", "variety", "status", "plantingDate", "expectedHarvestDate"]
        read_only_fields = fields
