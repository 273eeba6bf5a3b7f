import logging

from django.db.models import Case, Count, IntegerField, Value, When
from django.http import Http404
from django.utils import timezone
from rest_framework import viewsets
from rest_framework import status as http_status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from config.api import FarmLinkPagination, envelope
from config.exceptions import BadRequest
from .models import Task
from .serializers import CompleteTaskSerializer, TaskSerializer

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "dueDate": "due_date",
    "priority": "priority_rank",
    "status": "status",
    "createdAt": "created_at",
    "description": "description",
}

PRIORITY_RANK = Case(
    When(priority=Task.Priority.LOW, then=Value(0)),
    When(priority=Task.Priority.MEDIUM, then=Value(1)),
    When(priority=Task.Priority.HIGH, then=Value(2)),
    When(priority=Task.Priority.CRITICAL, then=Value(3)),
    output_field=IntegerField(),
)


def _grouped(qs, field):
    return [
        {field: row[field], "count": row["count"]}
        for row in qs.values(field).annotate(count=Count("id")).order_by(field)
    ]


class TaskViewSet(viewsets.ModelViewSet):
    serializer_class = TaskSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = FarmLinkPagination
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        return Task.objects.for_user(self.request.user).select_related("crop")

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound("Task not found")

    def _check_choice(self, name, value, choices):
        if value not in choices.values:
            raise BadRequest(f"{name} must be one of: " + ", ".join(choices.values))

    def list(self, request, *args, **kwargs):
        params = request.query_params
        qs = self.get_queryset()

        for param, choices in (
            ("status", Task.Status),
            ("priority", Task.Priority),
            ("category", Task.Category),
        ):
            value = params.get(param)
            if value:
                self._check_choice(param.capitalize(), value, choices)
                qs = qs.filter(**{param: value})

        crop_id = params.get("cropId")
        if crop_id:
            if not crop_id.isdigit():
                raise BadRequest("Valid crop ID is required")
            qs = qs.filter(crop_id=int(crop_id))

        search = (params.get("search") or "").strip()
        if search:
            qs = qs.filter(description__icontains=search)

        sort_field = SORT_FIELDS.get(params.get("sortBy") or "dueDate", "due_date")
        if sort_field == "priority_rank":
            qs = qs.annotate(priority_rank=PRIORITY_RANK)
        prefix = "-" if params.get("sortOrder") == "desc" else ""
        qs = qs.order_by(f"{prefix}{sort_field}", "id")

        page = self.paginate_queryset(qs)
        return envelope("Tasks retrieved successfully", {
            "tasks": self.get_serializer(page, many=True).data,
            "pagination": self.paginator.get_pagination_block(),
        })

    def retrieve(self, request, *args, **kwargs):
        task = self.get_object()
        return envelope("Task retrieved successfully", {"task": self.get_serializer(task).data})

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        task = ser.save(user=request.user)
        logger.info("Task created: id=%s user=%s crop=%s", task.id, request.user.id, task.crop_id)
        return envelope("Task created successfully", {"task": ser.data}, http_status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        task = self.get_object()
        ser = self.get_serializer(task, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return envelope("Task updated successfully", {"task": ser.data})

    def destroy(self, request, *args, **kwargs):
        task = self.get_object()
        task_id = task.id
        task.delete()
        logger.info("Task deleted: id=%s user=%s", task_id, request.user.id)
        return envelope("Task deleted successfully")

    # PATCH /api/tasks/{id}/complete/
    @action(detail=True, methods=["patch"], url_path="complete")
    def complete(self, request, pk=None):
        task = self.get_object()
        ser = CompleteTaskSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        task.status = Task.Status.COMPLETED
        task.completed_at = timezone.now()
        if ser.validated_data.get("notes"):
            task.notes = ser.validated_data["notes"]
        task.save()
        return envelope("Task marked as completed successfully", {"task": self.get_serializer(task).data})

    # GET /api/tasks/upcoming/dashboard/
    @action(detail=False, methods=["get"], url_path="upcoming/dashboard")
    def upcoming_dashboard(self, request):
        qs = self.get_queryset()
        today = timezone.localdate()
        upcoming = qs.upcoming(7).order_by("due_date")
        overdue = qs.filter(status=Task.Status.PENDING, due_date__lt=today).order_by("due_date")

        return envelope("Upcoming tasks retrieved successfully", {
            "upcomingTasks": self.get_serializer(upcoming[:5], many=True).data,
            "overdueTasks": self.get_serializer(overdue[:5], many=True).data,
            "counts": {
                "upcoming": upcoming.count(),
                "overdue": overdue.count(),
            },
        })

    # GET /api/tasks/upcoming/?days=N
    @action(detail=False, methods=["get"], url_path="upcoming")
    def upcoming(self, request):
        raw = request.query_params.get("days", "7")
        try:
            days = int(raw)
        except (TypeError, ValueError):
            raise BadRequest("Days must be between 1 and 365")
        if not 1 <= days <= 365:
            raise BadRequest("Days must be between 1 and 365")

        tasks = self.get_queryset().upcoming(days).order_by("due_date")
        data = self.get_serializer(tasks, many=True).data
        return envelope("Upcoming tasks retrieved successfully", {
            "tasks": data,
            "count": len(data),
            "days": days,
        })

    # GET /api/tasks/overdue/
    @action(detail=False, methods=["get"], url_path="overdue")
    def overdue(self, request):
        tasks = self.get_queryset().overdue().order_by("due_date")
        data = self.get_serializer(tasks, many=True).data
        return envelope("Overdue tasks retrieved successfully", {"tasks": data, "count": len(data)})

    # GET /api/tasks/stats/
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        qs = self.get_queryset()
        month_start = timezone.now().replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        this_month = qs.filter(created_at__gte=month_start)
        month_total = this_month.count()
        month_completed = this_month.filter(status=Task.Status.COMPLETED).count()
        rate = round(month_completed / month_total * 100, 1) if month_total else 0

        return envelope("Task statistics retrieved successfully", {
            "totalTasks": qs.count(),
            "statusStats": _grouped(qs, "status"),
            "priorityStats": _grouped(qs, "priority"),
            "categoryStats": _grouped(qs, "category"),
            "overdueCount": qs.overdue().count(),
            "upcomingCount": qs.upcoming(7).count(),
            "thisMonthStats": {
                "total": month_total,
                "completed": month_completed,
                "completionRate": rate,
            },
        })
