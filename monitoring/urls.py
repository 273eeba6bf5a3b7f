from django.urls import path

from .views import (
    ErrorsView,
    HealthView,
    MetricsView,
    PerformanceView,
    ReportView,
    StatusView,
)

urlpatterns = [
    path("health/", HealthView.as_view(), name="monitoring-health"),
    path("metrics/", MetricsView.as_view(), name="monitoring-metrics"),
    path("status/", StatusView.as_view(), name="monitoring-status"),
    path("performance/", PerformanceView.as_view(), name="monitoring-performance"),
    path("errors/", ErrorsView.as_view(), name="monitoring-errors"),
    path("report/", ReportView.as_view(), name="monitoring-report"),
]
