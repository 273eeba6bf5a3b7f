from django.utils import timezone
from rest_framework import serializers

from crops.models import Crop
from crops.serializers import DATE_INPUT_FORMATS, CropSummarySerializer, years_from_today
from .models import Task


class OwnedCropField(serializers.PrimaryKeyRelatedField):
    """Only resolves crops that belong to the requesting user."""
    default_error_messages = {
        "required": "Associated crop is required",
        "does_not_exist": "Invalid crop selected or you do not have permission to use this crop.",
        "incorrect_type": "Valid crop ID is required",
    }

    def get_queryset(self):
        request = self.context.get("request")
        if request is None or not request.user.is_authenticated:
            return Crop.objects.none()
        return Crop.objects.filter(user=request.user)


class TaskSerializer(serializers.ModelSerializer):
    userId = serializers.IntegerField(source="user_id", read_only=True)
    cropId = OwnedCropField(source="crop")
    crop = CropSummarySerializer(read_only=True)
    dueDate = serializers.DateField(source="due_date", input_formats=DATE_INPUT_FORMATS)
    estimatedDuration = serializers.IntegerField(
        source="estimated_duration", required=False, allow_null=True, min_value=0, max_value=1440,
        error_messages={
            "min_value": "Estimated duration must be between 0 and 1440 minutes",
            "max_value": "Estimated duration must be between 0 and 1440 minutes",
        },
    )
    completedAt = serializers.DateTimeField(source="completed_at", read_only=True)
    daysUntilDue = serializers.IntegerField(source="days_until_due", read_only=True)
    isOverdue = serializers.BooleanField(source="is_overdue", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Task
        fields = [
            "id", "userId", "cropId", "crop",
            "description", "dueDate", "status", "priority", "category",
            "estimatedDuration", "notes", "completedAt",
            "daysUntilDue", "isOverdue", "createdAt", "updatedAt",
        ]
        read_only_fields = ["id"]
        extra_kwargs = {
            "description": {"error_messages": {
                "required": "Task description is required",
                "blank": "Task description is required",
                "max_length": "Description cannot exceed 200 characters",
            }},
            "status": {"error_messages": {
                "invalid_choice": "Status must be Pending, Completed, or Overdue",
            }},
            "notes": {"error_messages": {"max_length": "Notes cannot exceed 1000 characters"}},
        }

    def validate(self, attrs):
        due = attrs.get("due_date")
        if due is not None:
            if due > years_from_today(2):
                raise serializers.ValidationError(
                    {"dueDate": "Due date cannot be more than 2 years in the future"}
                )
            # an edit that completes the task may keep a past due date
            completing = self.instance is not None and attrs.get("status") == Task.Status.COMPLETED
            if due < timezone.localdate() and not completing:
                raise serializers.ValidationError({"dueDate": "Due date cannot be in the past"})
        return attrs


class CompleteTaskSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, max_length=1000)
