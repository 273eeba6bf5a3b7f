import logging
import os
import tempfile

from django.test import SimpleTestCase, TestCase
from rest_framework.test import APIClient

from .log_handlers import LazyRotatingFileHandler


class RootTests(TestCase):
    def setUp(self):
        self.client = APIClient()

    def test_banner(self):
        r = self.client.get("/")
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["version"], "1.0.0")
        self.assertEqual(body["endpoints"]["crops"], "/api/crops")

    def test_unknown_route_is_json_404(self):
        r = self.client.get("/api/nothing-here/")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["error"], "Route /api/nothing-here/ not found")

    def test_validation_errors_are_flattened(self):
        r = self.client.post("/api/auth/register/", {"email": "x"}, format="json")
        self.assertEqual(r.status_code, 400)
        body = r.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["message"], "Validation failed")
        fields = {e["field"] for e in body["errors"]}
        self.assertTrue({"email", "password", "name"} <= fields)


class LazyRotatingFileHandlerTests(SimpleTestCase):
    def test_directory_is_created_on_first_write(self):
        with tempfile.TemporaryDirectory() as tmp:
            log_dir = os.path.join(tmp, "nested", "logs")
            handler = LazyRotatingFileHandler(os.path.join(log_dir, "combined.log"), maxBytes=1024, backupCount=1)
            try:
                self.assertFalse(os.path.exists(log_dir))
                handler.emit(logging.LogRecord("farmlink", logging.INFO, __file__, 1, "hello", None, None))
                self.assertTrue(os.path.isfile(os.path.join(log_dir, "combined.log")))
            finally:
                handler.close()
