from datetime import timedelta

from django.conf import settings
from django.core.validators import MaxValueValidator
from django.db import models
from django.utils import timezone

from crops.models import Crop


class TaskQuerySet(models.QuerySet):
    def for_user(self, user):
        return self.filter(user=user)

    def overdue(self):
        return self.filter(
            status__in=[Task.Status.PENDING, Task.Status.OVERDUE],
            due_date__lt=timezone.localdate(),
        )

    def upcoming(self, days=7):
        today = timezone.localdate()
        return self.filter(
            status=Task.Status.PENDING,
            due_date__gte=today,
            due_date__lte=today + timedelta(days=days),
        )


class Task(models.Model):
    """
    A farm activity scheduled against one of the owner's crops.
    `completed_at` is kept in step with `status` on every save.
    """

    class Status(models.TextChoices):
        PENDING = "Pending", "Pending"
        COMPLETED = "Completed", "Completed"
        OVERDUE = "Overdue", "Overdue"

    class Priority(models.TextChoices):
        LOW = "Low", "Low"
        MEDIUM = "Medium", "Medium"
        HIGH = "High", "High"
        CRITICAL = "Critical", "Critical"

    class Category(models.TextChoices):
        PLANTING = "Planting", "Planting"
        WATERING = "Watering", "Watering"
        FERTILIZING = "Fertilizing", "Fertilizing"
        PEST_CONTROL = "Pest Control", "Pest Control"
        HARVESTING = "Harvesting", "Harvesting"
        MAINTENANCE = "Maintenance", "Maintenance"
        OTHER = "Other", "Other"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="tasks"
    )
    crop = models.ForeignKey(Crop, on_delete=models.CASCADE, related_name="tasks")

    description = models.CharField(max_length=200)
    due_date = models.DateField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    priority = models.CharField(max_length=16, choices=Priority.choices, default=Priority.MEDIUM)
    category = models.CharField(max_length=16, choices=Category.choices, default=Category.OTHER)
    estimated_duration = models.PositiveIntegerField(
        blank=True, null=True, validators=[MaxValueValidator(1440)]
    )
    notes = models.TextField(max_length=1000, blank=True, default="")

    completed_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TaskQuerySet.as_manager()

    class Meta:
        ordering = ["due_date", "created_at"]
        indexes = [
            models.Index(fields=["user", "status", "due_date"], name="tasks_task_user_id_9f4c2a_idx"),
            models.Index(fields=["crop", "due_date"], name="tasks_task_crop_id_5b1e7d_idx"),
        ]

    def __str__(self):
        return f"Task<{self.description} due {self.due_date}>"

    def save(self, *args, **kwargs):
        if self.status == self.Status.COMPLETED:
            if self.completed_at is None:
                self.completed_at = timezone.now()
        else:
            self.completed_at = None
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "status" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"completed_at"}
        super().save(*args, **kwargs)

    @property
    def days_until_due(self):
        return (self.due_date - timezone.localdate()).days

    @property
    def is_overdue(self):
        if self.status == self.Status.COMPLETED:
            return False
        return self.due_date < timezone.localdate()
