from unittest import mock

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from .models import CustomUser, CustomUserManager


def auth_client(user):
    client = APIClient()
    r = client.post("/api/auth/login/", {"email": user.email, "password": "pass1234"}, format="json")
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['data']['token']}")
    return client


class RegisterTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.payload = {
            "name": "Test Farmer",
            "email": "Farmer@Example.com",
            "password": "pass1234",
            "farmLocation": "Kisumu County",
            "phoneNumber": "+254 712 345678",
        }

    def test_register_returns_user_and_tokens(self):
        r = self.client.post("/api/auth/register/", self.payload, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertTrue(r.data["success"])
        self.assertEqual(r.data["message"], "User registered successfully")

        data = r.data["data"]
        self.assertIn("token", data)
        self.assertIn("refresh", data)
        self.assertEqual(data["user"]["email"], "farmer@example.com")
        self.assertEqual(data["user"]["farmLocation"], "Kisumu County")
        self.assertNotIn("password", data["user"])

        user = CustomUser.objects.get(email="farmer@example.com")
        self.assertTrue(user.check_password("pass1234"))

    def test_duplicate_email_rejected(self):
        self.client.post("/api/auth/register/", self.payload, format="json")
        r = self.client.post(
            "/api/auth/register/", {**self.payload, "email": "farmer@example.com"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(r.data["success"])
        self.assertEqual(r.data["message"], "User with this email already exists")

    def test_duplicate_email_that_slips_past_the_lookup(self):
        CustomUser.objects.create_user(email="farmer@example.com", password="pass1234", name="First")
        with mock.patch.object(CustomUserManager, "find_by_email", return_value=None):
            r = self.client.post("/api/auth/register/", self.payload, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["message"], "User with this email already exists")
        self.assertEqual(CustomUser.objects.filter(email="farmer@example.com").count(), 1)

    def test_invalid_email_rejected(self):
        r = self.client.post(
            "/api/auth/register/", {**self.payload, "email": "not-an-email"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["message"], "Validation failed")
        self.assertIn("email", [e["field"] for e in r.data["errors"]])

    def test_weak_password_rejected(self):
        r = self.client.post(
            "/api/auth/register/", {**self.payload, "password": "12345"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("password", [e["field"] for e in r.data["errors"]])

    def test_bad_phone_rejected(self):
        r = self.client.post(
            "/api/auth/register/", {**self.payload, "phoneNumber": "call me maybe"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("phoneNumber", [e["field"] for e in r.data["errors"]])


class LoginTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = CustomUser.objects.create_user(
            email="james@farmlink.ke", password="pass1234", name="James Mwangi"
        )

    def test_login_stamps_last_login(self):
        self.assertIsNone(self.user.last_login)
        r = self.client.post(
            "/api/auth/login/", {"email": "JAMES@farmlink.ke", "password": "pass1234"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["message"], "Login successful")
        self.assertIn("token", r.data["data"])
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login)

    def test_wrong_password(self):
        r = self.client.post(
            "/api/auth/login/", {"email": "james@farmlink.ke", "password": "nope1234"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(r.data["message"], "Invalid email or password")

    def test_unknown_email(self):
        r = self.client.post(
            "/api/auth/login/", {"email": "ghost@farmlink.ke", "password": "pass1234"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(r.data["message"], "Invalid email or password")

    def test_deactivated_account(self):
        self.user.is_active = False
        self.user.save()
        r = self.client.post(
            "/api/auth/login/", {"email": "james@farmlink.ke", "password": "pass1234"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(r.data["message"], "Account is deactivated. Please contact support.")

    def test_djoser_jwt_create(self):
        r = self.client.post(
            "/api/auth/jwt/create/", {"email": "james@farmlink.ke", "password": "pass1234"}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertIn("access", r.data)
        self.assertIn("refresh", r.data)


class ProfileTests(TestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(
            email="grace@farmlink.ke", password="pass1234", name="Grace Wanjiku"
        )
        self.client = auth_client(self.user)

    def test_profile_requires_token(self):
        r = APIClient().get("/api/auth/profile/")
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(r.data["message"], "Access token is required")

    def test_profile_rejects_garbage_token(self):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION="Bearer not.a.token")
        r = client.get("/api/auth/profile/")
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(r.data["message"], "Invalid token")

    def test_get_profile(self):
        r = self.client.get("/api/auth/profile/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["data"]["user"]["email"], "grace@farmlink.ke")

    def test_update_profile_ignores_email(self):
        r = self.client.put(
            "/api/auth/profile/",
            {"name": "Grace W.", "farmLocation": "Nakuru County", "email": "other@farmlink.ke"},
            format="json",
        )
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, "Grace W.")
        self.assertEqual(self.user.farm_location, "Nakuru County")
        self.assertEqual(self.user.email, "grace@farmlink.ke")

    def test_change_password(self):
        r = self.client.post(
            "/api/auth/change-password/",
            {"currentPassword": "pass1234", "newPassword": "newpass99"},
            format="json",
        )
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("newpass99"))

    def test_change_password_wrong_current(self):
        r = self.client.post(
            "/api/auth/change-password/",
            {"currentPassword": "wrong123", "newPassword": "newpass99"},
            format="json",
        )
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["message"], "Current password is incorrect")

    def test_deactivate_then_token_stops_working(self):
        r = self.client.post("/api/auth/deactivate/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertFalse(self.user.is_active)

        r = self.client.get("/api/auth/profile/")
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)
