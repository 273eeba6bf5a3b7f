from django.conf import settings
from django.utils import timezone
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from config.api import envelope
from .health import database_status, generate_report, health_check, memory_usage
from .metrics import metrics


class HealthView(APIView):
    """Unthrottled liveness check; 503 when the database is unreachable."""
    authentication_classes = []
    permission_classes = [AllowAny]

    def get(self, request):
        body, status_code = health_check()
        return Response(body, status=status_code)


class MonitoringView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "monitoring"


class MetricsView(MonitoringView):
    def get(self, request):
        memory = memory_usage()
        data = metrics.snapshot()
        data["current"] = {
            "memory": {"rss": memory["rss"], "total": memory["total"]},
            "uptime": round(metrics.uptime, 3),
            "database": database_status(),
        }
        return Response(data)


class StatusView(MonitoringView):
    def get(self, request):
        memory = memory_usage()
        return envelope("System status retrieved successfully", {
            "service": "FarmLink Backend",
            "version": settings.FARMLINK_VERSION,
            "environment": settings.FARMLINK_ENVIRONMENT,
            "timestamp": timezone.now().isoformat(),
            "uptime": round(metrics.uptime, 3),
            "memory": {
                "rss": memory["rss"],
                "total": memory["total"],
                "free": memory["free"],
            },
            "database": database_status(),
        })


class PerformanceView(MonitoringView):
    def get(self, request):
        snap = metrics.snapshot()
        rt = snap["responseTime"]
        return envelope("Performance metrics retrieved successfully", {
            "requests": {
                "total": snap["requests"]["total"],
                "byMethod": snap["requests"]["byMethod"],
                "byStatus": snap["requests"]["byStatus"],
            },
            "responseTime": {"min": rt["min"], "max": rt["max"], "avg": rt["avg"]},
            "errors": {
                "total": snap["errors"]["total"],
                "byType": snap["errors"]["byType"],
            },
            "database": {
                "operations": snap["database"]["operations"],
                "slowQueries": len(snap["database"]["slowQueries"]),
            },
        })


class ErrorsView(MonitoringView):
    def get(self, request):
        errors = metrics.snapshot()["errors"]
        return envelope("Error summary retrieved successfully", {
            "total": errors["total"],
            "byType": errors["byType"],
            "byRoute": errors["byRoute"],
        })


class ReportView(MonitoringView):
    def get(self, request):
        return envelope("Monitoring report generated successfully", generate_report())
