"""
In-process request, error, memory and database counters.

One `metrics` instance lives per worker process; every mutation goes through
the registry lock because Django may serve requests from several threads.
"""
import copy
import threading
import time
from collections import deque

from django.conf import settings


def _monitoring_setting(name, default):
    return getattr(settings, "FARMLINK", {}).get("MONITORING", {}).get(name, default)


class MetricsRegistry:
    def __init__(self):
        self._lock = threading.Lock()
        self.started_at = time.monotonic()
        self.reset()

    def reset(self):
        with self._lock:
            self._requests = {"total": 0, "byMethod": {}, "byRoute": {}, "byStatus": {}}
            self._response_times = deque(maxlen=_monitoring_setting("RESPONSE_TIME_SAMPLES", 1000))
            self._rt_min = None
            self._rt_max = 0.0
            self._errors = {"total": 0, "byType": {}, "byRoute": {}}
            self._memory_samples = deque(maxlen=_monitoring_setting("MEMORY_SAMPLES", 100))
            self._last_memory_sample = None
            self._db_operations = 0
            self._slow_queries = deque(maxlen=_monitoring_setting("SLOW_QUERY_SAMPLES", 50))

    @property
    def uptime(self):
        return time.monotonic() - self.started_at

    @staticmethod
    def _bump(counter, key):
        counter[key] = counter.get(key, 0) + 1

    def record_request(self, method, route, status_code):
        with self._lock:
            self._requests["total"] += 1
            self._bump(self._requests["byMethod"], method)
            self._bump(self._requests["byRoute"], route)
            self._bump(self._requests["byStatus"], str(status_code))

    def record_response_time(self, duration_ms):
        with self._lock:
            self._response_times.append(duration_ms)
            if self._rt_min is None or duration_ms < self._rt_min:
                self._rt_min = duration_ms
            self._rt_max = max(self._rt_max, duration_ms)

    def record_error(self, error_type, route):
        with self._lock:
            self._errors["total"] += 1
            self._bump(self._errors["byType"], error_type or "Unknown")
            self._bump(self._errors["byRoute"], route)

    def record_db_op(self, operation, duration_ms):
        with self._lock:
            self._db_operations += 1
            if duration_ms > _monitoring_setting("SLOW_QUERY_MS", 100):
                self._slow_queries.append({
                    "operation": operation,
                    "duration": round(duration_ms, 2),
                    "timestamp": time.time(),
                })

    def sample_memory(self, read, force=False):
        """Call `read()` and store its result, at most once per MEMORY_SAMPLE_INTERVAL seconds."""
        now = time.monotonic()
        interval = _monitoring_setting("MEMORY_SAMPLE_INTERVAL", 30)
        with self._lock:
            if (
                not force
                and self._last_memory_sample is not None
                and now - self._last_memory_sample < interval
            ):
                return False
            self._last_memory_sample = now
        reading = read()
        with self._lock:
            self._memory_samples.append({"timestamp": time.time(), **reading})
        return True

    def response_time_summary(self):
        with self._lock:
            samples = list(self._response_times)
            return {
                "min": self._rt_min if self._rt_min is not None else 0,
                "max": self._rt_max,
                "avg": sum(samples) / len(samples) if samples else 0,
                "samples": len(samples),
            }

    def snapshot(self):
        """Deep copy of every counter, safe to serialize outside the lock."""
        rt = self.response_time_summary()
        with self._lock:
            return {
                "requests": copy.deepcopy(self._requests),
                "responseTime": rt,
                "errors": copy.deepcopy(self._errors),
                "memory": {"samples": list(self._memory_samples)},
                "database": {
                    "operations": self._db_operations,
                    "slowQueries": list(self._slow_queries),
                },
            }


metrics = MetricsRegistry()
