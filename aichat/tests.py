from unittest import mock

import requests
from django.conf import settings
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import CustomUser


def with_api_key(key):
    return override_settings(
        FARMLINK={**settings.FARMLINK, "AI_CHAT": {**settings.FARMLINK["AI_CHAT"], "API_KEY": key}}
    )


def completion(text):
    resp = mock.Mock()
    resp.raise_for_status.return_value = None
    resp.json.return_value = {"choices": [{"message": {"role": "assistant", "content": text}}]}
    return resp


class AiChatTests(TestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(
            email="james@farmlink.ke", password="pass1234", name="James Mwangi"
        )
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def test_requires_authentication(self):
        r = APIClient().post("/api/ai-chat/", {"message": "Hello"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_rejects_short_or_missing_message(self):
        for payload in ({}, {"message": "a"}, {"message": 42}):
            r = self.client.post("/api/ai-chat/", payload, format="json")
            self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST, payload)
            self.assertEqual(r.data, {"error": "A valid message is required."})

    @with_api_key("")
    def test_missing_key(self):
        r = self.client.post("/api/ai-chat/", {"message": "When do I plant maize?"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(r.data, {"error": "OPENAI_API_KEY missing"})

    @with_api_key("sk-test")
    @mock.patch("aichat.views.requests.post")
    def test_forwards_message_and_returns_answer(self, post):
        post.return_value = completion("Plant at the onset of the long rains.")
        r = self.client.post("/api/ai-chat/", {"message": "When do I plant maize?"}, format="json")

        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data, {"answer": "Plant at the onset of the long rains."})

        _, kwargs = post.call_args
        self.assertEqual(kwargs["json"]["messages"], [{"role": "user", "content": "When do I plant maize?"}])
        self.assertEqual(kwargs["json"]["max_tokens"], 256)
        self.assertEqual(kwargs["json"]["temperature"], 0.7)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer sk-test")
        self.assertEqual(kwargs["timeout"], 20)

    @with_api_key("sk-test")
    @mock.patch("aichat.views.requests.post")
    def test_upstream_failure(self, post):
        post.side_effect = requests.Timeout("read timed out")
        r = self.client.post("/api/ai-chat/", {"message": "Is it going to rain?"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(r.data["error"], "AI service error")
        self.assertIn("timed out", r.data["details"])

    @with_api_key("sk-test")
    @mock.patch("aichat.views.requests.post")
    def test_malformed_upstream_payload(self, post):
        resp = completion("unused")
        resp.json.return_value = {"choices": []}
        post.return_value = resp
        r = self.client.post("/api/ai-chat/", {"message": "Hello there"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_502_BAD_GATEWAY)

    @with_api_key("sk-test")
    @mock.patch("aichat.views.requests.post")
    def test_non_object_upstream_payload(self, post):
        for payload in (["unexpected"], {"choices": ["x"]}, {"choices": [{"message": None}]}, "text"):
            resp = completion("unused")
            resp.json.return_value = payload
            post.return_value = resp
            r = self.client.post("/api/ai-chat/", {"message": "Hello there"}, format="json")
            self.assertEqual(r.status_code, status.HTTP_502_BAD_GATEWAY, payload)
            self.assertEqual(r.data["error"], "AI service error")
