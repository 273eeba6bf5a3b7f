import logging
import os
import platform
import resource
import sys

from django.conf import settings
from django.db import DatabaseError, connection
from django.utils import timezone

from .metrics import metrics

logger = logging.getLogger("farmlink.monitoring")

MB = 1024 * 1024


def _thresholds():
    return settings.FARMLINK["MONITORING"]["THRESHOLDS"]


def total_memory():
    try:
        return os.sysconf("SC_PHYS_PAGES") * os.sysconf("SC_PAGE_SIZE")
    except (ValueError, OSError, AttributeError):
        return 0


def free_memory():
    try:
        return os.sysconf("SC_AVPHYS_PAGES") * os.sysconf("SC_PAGE_SIZE")
    except (ValueError, OSError, AttributeError):
        return 0


def current_rss():
    """Resident set size in bytes; peak RSS where /proc is unavailable."""
    try:
        with open("/proc/self/statm") as fh:
            pages = int(fh.read().split()[1])
        return pages * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError):
        peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
        # ru_maxrss is bytes on macOS, kilobytes elsewhere
        return peak if sys.platform == "darwin" else peak * 1024


def memory_usage():
    rss = current_rss()
    total = total_memory()
    return {
        "rss": rss,
        "total": total,
        "free": free_memory(),
        "ratio": rss / total if total else 0.0,
    }


def database_status():
    try:
        connection.ensure_connection()
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError as exc:
        logger.error("Database health check failed: %s", exc)
        return {"status": "disconnected", "vendor": connection.vendor, "error": str(exc)}
    return {"status": "connected", "vendor": connection.vendor}


def health_check():
    """Liveness document plus the HTTP status it should be served with."""
    memory = memory_usage()
    database = database_status()
    body = {
        "status": "healthy",
        "timestamp": timezone.now().isoformat(),
        "uptime": round(metrics.uptime, 3),
        "memory": {
            "rss": memory["rss"],
            "total": memory["total"],
            "percentage": round(memory["ratio"] * 100, 2),
        },
        "database": database,
        "system": {
            "platform": sys.platform,
            "arch": platform.machine(),
            "pythonVersion": platform.python_version(),
            "cpuUsage": list(os.getloadavg()) if hasattr(os, "getloadavg") else [],
            "freeMemory": memory["free"],
            "totalMemory": memory["total"],
        },
    }

    if memory["ratio"] > _thresholds()["MEMORY_CRITICAL"]:
        body["status"] = "warning"
        body["memory"]["warning"] = "High memory usage"

    if database["status"] != "connected":
        body["status"] = "unhealthy"

    return body, 503 if body["status"] == "unhealthy" else 200


def check_system_health(snapshot, memory=None):
    """Compare a metrics snapshot against the configured thresholds."""
    limits = _thresholds()
    memory = memory or memory_usage()
    health = {"status": "healthy", "warnings": [], "critical": []}

    def flag(level, text):
        if level == "critical":
            health["status"] = "critical"
            health["critical"].append(text)
        else:
            if health["status"] != "critical":
                health["status"] = "warning"
            health["warnings"].append(text)

    avg = snapshot["responseTime"]["avg"]
    if avg > limits["RESPONSE_TIME_CRITICAL_MS"]:
        flag("critical", f"Average response time ({avg:.2f}ms) exceeds critical threshold")
    elif avg > limits["RESPONSE_TIME_WARNING_MS"]:
        flag("warning", f"Average response time ({avg:.2f}ms) exceeds warning threshold")

    error_rate = snapshot["errors"]["total"] / max(snapshot["requests"]["total"], 1)
    if error_rate > limits["ERROR_RATE_CRITICAL"]:
        flag("critical", f"Error rate ({error_rate * 100:.2f}%) exceeds critical threshold")
    elif error_rate > limits["ERROR_RATE_WARNING"]:
        flag("warning", f"Error rate ({error_rate * 100:.2f}%) exceeds warning threshold")

    ratio = memory["ratio"]
    if ratio > limits["MEMORY_CRITICAL"]:
        flag("critical", f"Memory usage ({ratio * 100:.2f}%) exceeds critical threshold")
    elif ratio > limits["MEMORY_WARNING"]:
        flag("warning", f"Memory usage ({ratio * 100:.2f}%) exceeds warning threshold")

    return health


def _top(counter, limit, key_name):
    ranked = sorted(counter.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [{key_name: key, "count": count} for key, count in ranked]


def generate_report(snapshot=None):
    snapshot = snapshot or metrics.snapshot()
    memory = memory_usage()
    total_requests = snapshot["requests"]["total"]
    total_errors = snapshot["errors"]["total"]

    return {
        "timestamp": timezone.now().isoformat(),
        "health": check_system_health(snapshot, memory),
        "summary": {
            "uptime": round(metrics.uptime, 3),
            "totalRequests": total_requests,
            "totalErrors": total_errors,
            "errorRate": round(total_errors / total_requests * 100, 2) if total_requests else 0,
            "avgResponseTime": round(snapshot["responseTime"]["avg"], 2),
            "memoryUsage": {
                "used": f"{memory['rss'] / MB:.2f} MB",
                "total": f"{memory['total'] / MB:.2f} MB",
                "percentage": f"{memory['ratio'] * 100:.2f}%",
            },
            "databaseOperations": snapshot["database"]["operations"],
            "slowQueries": len(snapshot["database"]["slowQueries"]),
        },
        "topRoutes": _top(snapshot["requests"]["byRoute"], 10, "route"),
        "topErrors": _top(snapshot["errors"]["byType"], 5, "type"),
    }
