import logging
from datetime import timedelta

from django.conf import settings
from django.db.models import Count, Sum
from django.http import Http404
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated

from config.api import FarmLinkPagination, envelope
from config.exceptions import BadRequest
from tasks.serializers import TaskSerializer
from .models import Crop
from .serializers import CropSerializer

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    "plantingDate": "planting_date",
    "expectedHarvestDate": "expected_harvest_date",
    "createdAt": "created_at",
    "name": "name",
    "status": "status",
}


def parse_sort(raw, default):
    """'-plantingDate' -> '-planting_date'; unknown keys fall back to the default."""
    raw = (raw or "").strip()
    descending = raw.startswith("-")
    field = SORT_FIELDS.get(raw.lstrip("-"))
    if field is None:
        return default
    return f"-{field}" if descending else field


class CropViewSet(viewsets.ModelViewSet):
    serializer_class = CropSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = FarmLinkPagination
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        # owner-scoped: other users' crops behave as missing (404)
        return Crop.objects.filter(user=self.request.user)

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound("Crop not found or you do not have permission to access it.")

    def list(self, request, *args, **kwargs):
        qs = self.get_queryset()

        status_filter = request.query_params.get("status")
        if status_filter:
            if status_filter not in Crop.Status.values:
                raise BadRequest(
                    "Status must be one of: " + ", ".join(Crop.Status.values)
                )
            qs = qs.filter(status=status_filter)

        qs = qs.order_by(parse_sort(request.query_params.get("sort"), "-planting_date"), "-id")

        page = self.paginate_queryset(qs)
        crops = self.get_serializer(page, many=True).data
        return envelope("Crops retrieved successfully", {
            "count": len(crops),
            "crops": crops,
            "pagination": self.paginator.get_pagination_block(),
        })

    def retrieve(self, request, *args, **kwargs):
        crop = self.get_object()
        tasks = crop.tasks.select_related("crop").order_by("due_date")
        data = self.get_serializer(crop).data
        data["taskCount"] = tasks.count()
        return envelope("Crop retrieved successfully", {
            "crop": data,
            "tasks": TaskSerializer(tasks, many=True, context=self.get_serializer_context()).data,
        })

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        crop = ser.save(user=request.user)
        logger.info("Crop created: id=%s user=%s name=%s", crop.id, request.user.id, crop.name)
        return envelope("Crop created successfully", {"crop": ser.data}, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):
        # PUT behaves like PATCH: only submitted fields change
        crop = self.get_object()
        ser = self.get_serializer(crop, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return envelope("Crop updated successfully", {"crop": ser.data})

    def destroy(self, request, *args, **kwargs):
        crop = self.get_object()
        task_count = crop.tasks.count()
        cascade = settings.FARMLINK.get("CROP_DELETE_CASCADE", False)
        if task_count and not cascade:
            raise BadRequest("Cannot delete crop with associated tasks. Please delete tasks first.")

        crop_id = crop.id
        crop.delete()
        logger.info(
            "Crop deleted: id=%s user=%s tasks_removed=%s", crop_id, request.user.id, task_count
        )
        return envelope("Crop deleted successfully")

    # GET /api/crops/stats/
    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request):
        qs = self.get_queryset()
        status_stats = [
            {"status": row["status"], "count": row["count"]}
            for row in qs.values("status").annotate(count=Count("id")).order_by("status")
        ]
        area_stats = [
            {"areaUnit": row["area_unit"], "totalArea": row["total_area"], "count": row["count"]}
            for row in (
                qs.filter(area__isnull=False)
                .values("area_unit")
                .annotate(total_area=Sum("area"), count=Count("id"))
                .order_by("area_unit")
            )
        ]
        this_year = qs.filter(planting_date__year=timezone.localdate().year).count()

        return envelope("Crop statistics retrieved successfully", {
            "statusStats": status_stats,
            "areaStats": area_stats,
            "thisYearCrops": this_year,
            "totalCrops": qs.count(),
        })

    # GET /api/crops/stats/dashboard/
    @action(detail=False, methods=["get"], url_path="stats/dashboard")
    def dashboard(self, request):
        qs = self.get_queryset()
        today = timezone.localdate()

        status_counts = {value: 0 for value in Crop.Status.values}
        for row in qs.values("status").annotate(count=Count("id")).order_by("status"):
            status_counts[row["status"]] = row["count"]

        upcoming = qs.filter(
            status=Crop.Status.GROWING,
            expected_harvest_date__gte=today,
            expected_harvest_date__lte=today + timedelta(days=30),
        ).count()

        by_type = {
            row["name"]: row["count"]
            for row in qs.values("name").annotate(count=Count("id")).order_by("name")
        }

        return envelope("Dashboard stats retrieved successfully", {
            "stats": {
                "totalCrops": qs.count(),
                "statusCounts": status_counts,
                "upcomingHarvests": upcoming,
                "cropsByType": by_type,
            }
        })
