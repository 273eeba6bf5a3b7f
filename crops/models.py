from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Crop(models.Model):
    class CropType(models.TextChoices):
        MAIZE = "Maize", "Maize"
        BEANS = "Beans", "Beans"
        SUKUMA_WIKI = "Sukuma Wiki", "Sukuma Wiki"
        TOMATOES = "Tomatoes", "Tomatoes"
        ONIONS = "Onions", "Onions"
        CARROTS = "Carrots", "Carrots"
        CABBAGE = "Cabbage", "Cabbage"
        OTHER = "Other", "Other"

    class Status(models.TextChoices):
        GROWING = "Growing", "Growing"
        READY = "Ready to Harvest", "Ready to Harvest"
        HARVESTED = "Harvested", "Harvested"

    class AreaUnit(models.TextChoices):
        ACRES = "acres", "Acres"
        HECTARES = "hectares", "Hectares"
        SQUARE_METERS = "square_meters", "Square meters"
        SQUARE_FEET = "square_feet", "Square feet"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="crops"
    )
    name = models.CharField(max_length=32, choices=CropType.choices)
    variety = models.CharField(max_length=100, blank=True, default="")

    planting_date = models.DateField()
    expected_harvest_date = models.DateField()

    area = models.FloatField(blank=True, null=True, validators=[MinValueValidator(0)])
    area_unit = models.CharField(max_length=16, choices=AreaUnit.choices, default=AreaUnit.ACRES)

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.GROWING)
    notes = models.TextField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-planting_date", "-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="crops_crop_user_id_3a8d1c_idx"),
            models.Index(fields=["user", "expected_harvest_date"], name="crops_crop_user_id_7e2b4f_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.user_id})"

    def clean(self):
        if (
            self.planting_date
            and self.expected_harvest_date
            and self.expected_harvest_date <= self.planting_date
        ):
            raise ValidationError(
                {"expected_harvest_date": "Harvest date must be after planting date"}
            )

    @property
    def days_until_harvest(self):
        return (self.expected_harvest_date - timezone.localdate()).days

    @property
    def growth_progress(self):
        total = (self.expected_harvest_date - self.planting_date).days
        if total <= 0:
            return 100
        elapsed = (timezone.localdate() - self.planting_date).days
        progress = min(max(elapsed / total * 100, 0), 100)
        return round(progress)
