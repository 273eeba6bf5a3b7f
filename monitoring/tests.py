from unittest import mock

from django.core.cache import cache
from django.db import OperationalError
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework.throttling import ScopedRateThrottle

from .health import check_system_health, database_status, generate_report
from .metrics import MetricsRegistry, metrics


class MetricsRegistryTests(SimpleTestCase):
    def setUp(self):
        self.registry = MetricsRegistry()

    def test_empty_response_times_report_zero_min(self):
        summary = self.registry.response_time_summary()
        self.assertEqual(summary["min"], 0)
        self.assertEqual(summary["avg"], 0)

    def test_request_and_response_time_counters(self):
        self.registry.record_request("GET", "/api/crops/", 200)
        self.registry.record_request("POST", "/api/crops/", 201)
        self.registry.record_response_time(10)
        self.registry.record_response_time(30)

        snap = self.registry.snapshot()
        self.assertEqual(snap["requests"]["total"], 2)
        self.assertEqual(snap["requests"]["byMethod"], {"GET": 1, "POST": 1})
        self.assertEqual(snap["requests"]["byRoute"], {"/api/crops/": 2})
        self.assertEqual(snap["requests"]["byStatus"], {"200": 1, "201": 1})
        self.assertEqual(snap["responseTime"]["min"], 10)
        self.assertEqual(snap["responseTime"]["max"], 30)
        self.assertEqual(snap["responseTime"]["avg"], 20)

    def test_response_time_window_is_bounded(self):
        for i in range(1005):
            self.registry.record_response_time(i)
        self.assertEqual(self.registry.response_time_summary()["samples"], 1000)

    def test_only_slow_queries_are_kept(self):
        self.registry.record_db_op("SELECT", 5)
        self.registry.record_db_op("UPDATE", 150)
        snap = self.registry.snapshot()
        self.assertEqual(snap["database"]["operations"], 2)
        self.assertEqual([q["operation"] for q in snap["database"]["slowQueries"]], ["UPDATE"])

    def test_memory_sampling_is_rate_limited(self):
        read = mock.Mock(return_value={"rss": 1, "total": 2, "ratio": 0.5})
        self.assertTrue(self.registry.sample_memory(read))
        self.assertFalse(self.registry.sample_memory(read))
        self.assertTrue(self.registry.sample_memory(read, force=True))
        self.assertEqual(read.call_count, 2)
        self.assertEqual(len(self.registry.snapshot()["memory"]["samples"]), 2)


class HealthEvaluationTests(SimpleTestCase):
    def snapshot(self, avg=0, requests=100, errors=0):
        return {
            "requests": {"total": requests, "byRoute": {}},
            "responseTime": {"avg": avg},
            "errors": {"total": errors, "byType": {}},
            "database": {"operations": 0, "slowQueries": []},
        }

    def test_healthy(self):
        health = check_system_health(self.snapshot(), memory={"ratio": 0.2})
        self.assertEqual(health, {"status": "healthy", "warnings": [], "critical": []})

    def test_warning_thresholds(self):
        health = check_system_health(self.snapshot(avg=1500, errors=6), memory={"ratio": 0.85})
        self.assertEqual(health["status"], "warning")
        self.assertEqual(len(health["warnings"]), 3)

    def test_critical_wins_over_warning(self):
        health = check_system_health(self.snapshot(avg=1500, errors=20), memory={"ratio": 0.2})
        self.assertEqual(health["status"], "critical")
        self.assertEqual(len(health["critical"]), 1)
        self.assertEqual(len(health["warnings"]), 1)

    def test_report_ranks_routes_and_errors(self):
        registry = MetricsRegistry()
        for i in range(12):
            for _ in range(i + 1):
                registry.record_request("GET", f"/r{i}/", 200)
        for name, n in (("HTTPError", 4), ("ValidationError", 2), ("A", 1), ("B", 1), ("C", 1), ("D", 1)):
            for _ in range(n):
                registry.record_error(name, "/x/")

        report = generate_report(registry.snapshot())
        self.assertEqual(len(report["topRoutes"]), 10)
        self.assertEqual(report["topRoutes"][0], {"route": "/r11/", "count": 12})
        self.assertEqual(len(report["topErrors"]), 5)
        self.assertEqual(report["topErrors"][0], {"type": "HTTPError", "count": 4})
        self.assertEqual(report["summary"]["totalErrors"], 10)

    def test_database_status_reports_failure(self):
        with mock.patch("monitoring.health.connection") as conn:
            conn.ensure_connection.side_effect = OperationalError("down")
            self.assertEqual(database_status()["status"], "disconnected")


class MonitoringEndpointTests(TestCase):
    def setUp(self):
        metrics.reset()
        cache.clear()
        self.client = APIClient()

    def test_health(self):
        r = self.client.get("/api/monitoring/health/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertIn(r.data["status"], ("healthy", "warning"))
        self.assertEqual(r.data["database"]["status"], "connected")
        self.assertIn("uptime", r.data)

    def test_health_unhealthy_without_database(self):
        with mock.patch(
            "monitoring.health.database_status", return_value={"status": "disconnected"}
        ):
            r = self.client.get("/api/monitoring/health/")
        self.assertEqual(r.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(r.data["status"], "unhealthy")

    def test_health_warns_on_high_memory(self):
        reading = {"rss": 95, "total": 100, "free": 5, "ratio": 0.95}
        with mock.patch("monitoring.health.memory_usage", return_value=reading):
            r = self.client.get("/api/monitoring/health/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["status"], "warning")
        self.assertEqual(r.data["memory"]["warning"], "High memory usage")

    def test_middleware_counts_requests_and_errors(self):
        self.client.get("/api/monitoring/status/")
        self.client.get("/api/definitely-missing/")

        snap = metrics.snapshot()
        self.assertEqual(snap["requests"]["total"], 2)
        self.assertEqual(snap["requests"]["byRoute"].get("/api/monitoring/status/"), 1)
        self.assertEqual(snap["requests"]["byStatus"].get("404"), 1)
        self.assertEqual(snap["errors"]["byType"].get("HTTPError"), 1)
        # the status view checks the database through the wrapped connection
        self.assertGreaterEqual(snap["database"]["operations"], 1)

    def test_enveloped_endpoints(self):
        for name in ("status", "performance", "errors", "report"):
            r = self.client.get(f"/api/monitoring/{name}/")
            self.assertEqual(r.status_code, status.HTTP_200_OK, name)
            self.assertTrue(r.data["success"], name)

        r = self.client.get("/api/monitoring/status/")
        self.assertEqual(r.data["data"]["service"], "FarmLink Backend")

    def test_performance_min_is_zero_without_samples(self):
        r = self.client.get("/api/monitoring/performance/")
        self.assertEqual(r.data["data"]["responseTime"]["min"], 0)

    def test_metrics_is_raw(self):
        r = self.client.get("/api/monitoring/metrics/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertIn("requests", r.data)
        self.assertIn("current", r.data)
        self.assertNotIn("success", r.data)

    def test_throttled_except_health(self):
        with mock.patch.object(ScopedRateThrottle, "THROTTLE_RATES", {"monitoring": "2/min"}):
            for _ in range(2):
                self.assertEqual(self.client.get("/api/monitoring/errors/").status_code, 200)
            r = self.client.get("/api/monitoring/errors/")
            self.assertEqual(r.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
            self.assertFalse(r.data["success"])

            for _ in range(3):
                self.assertEqual(self.client.get("/api/monitoring/health/").status_code, 200)
