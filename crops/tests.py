from datetime import timedelta
from io import StringIO

from django.conf import settings
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import CustomUser
from tasks.models import Task
from .models import Crop


def days(n):
    return timezone.localdate() + timedelta(days=n)


class CropTestCase(TestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(
            email="james@farmlink.ke", password="pass1234", name="James Mwangi"
        )
        self.other = CustomUser.objects.create_user(
            email="grace@farmlink.ke", password="pass1234", name="Grace Wanjiku"
        )
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def make_crop(self, user=None, **kwargs):
        fields = {
            "name": Crop.CropType.MAIZE,
            "planting_date": days(-30),
            "expected_harvest_date": days(60),
        }
        fields.update(kwargs)
        return Crop.objects.create(user=user or self.user, **fields)


class CropCrudTests(CropTestCase):
    def test_requires_authentication(self):
        r = APIClient().get("/api/crops/")
        self.assertEqual(r.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_crop(self):
        r = self.client.post("/api/crops/", {
            "name": "Beans",
            "variety": "Rosecoco",
            "plantingDate": str(days(-10)),
            "expectedHarvestDate": str(days(80)),
            "area": 1.5,
            "notes": "Intercropped with maize.",
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        crop = r.data["data"]["crop"]
        self.assertEqual(crop["name"], "Beans")
        self.assertEqual(crop["status"], "Growing")
        self.assertEqual(crop["areaUnit"], "acres")
        self.assertEqual(crop["userId"], self.user.id)
        self.assertEqual(crop["daysUntilHarvest"], 80)

    def test_create_accepts_iso_timestamps(self):
        r = self.client.post("/api/crops/", {
            "name": "Onions",
            "plantingDate": f"{days(-1)}T00:00:00.000Z",
            "expectedHarvestDate": f"{days(90)}T00:00:00.000Z",
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)

    def test_harvest_must_follow_planting(self):
        r = self.client.post("/api/crops/", {
            "name": "Maize",
            "plantingDate": str(days(10)),
            "expectedHarvestDate": str(days(5)),
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["message"], "Validation failed")
        self.assertEqual(r.data["errors"][0]["field"], "expectedHarvestDate")

    def test_unknown_crop_type_rejected(self):
        r = self.client.post("/api/crops/", {
            "name": "Coffee",
            "plantingDate": str(days(-1)),
            "expectedHarvestDate": str(days(30)),
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["errors"][0]["message"], "Please select a valid crop type")

    def test_planting_date_too_far_ahead(self):
        r = self.client.post("/api/crops/", {
            "name": "Maize",
            "plantingDate": str(days(365 * 3)),
            "expectedHarvestDate": str(days(365 * 3 + 90)),
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_is_owner_scoped_and_paginated(self):
        for i in range(12):
            self.make_crop(planting_date=days(-40 + i))
        self.make_crop(user=self.other)

        r = self.client.get("/api/crops/", {"limit": 5, "page": 2})
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        data = r.data["data"]
        self.assertEqual(data["count"], 5)
        self.assertEqual(data["pagination"], {
            "currentPage": 2, "totalPages": 3, "totalItems": 12, "itemsPerPage": 5,
        })

    def test_page_past_the_end_is_empty(self):
        for _ in range(3):
            self.make_crop()

        r = self.client.get("/api/crops/", {"page": 5})
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        data = r.data["data"]
        self.assertEqual(data["count"], 0)
        self.assertEqual(data["crops"], [])
        self.assertEqual(data["pagination"], {
            "currentPage": 5, "totalPages": 1, "totalItems": 3, "itemsPerPage": 10,
        })

    def test_invalid_page_and_limit_rejected(self):
        self.make_crop()
        for limit in ("0", "500", "abc", "-3"):
            r = self.client.get("/api/crops/", {"limit": limit})
            self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST, limit)
            self.assertEqual(r.data["message"], "Limit must be between 1 and 100")
        for page in ("0", "abc", "-1"):
            r = self.client.get("/api/crops/", {"page": page})
            self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST, page)
            self.assertEqual(r.data["message"], "Page must be a positive integer")

        r = self.client.get("/api/crops/", {"limit": 100, "page": 1})
        self.assertEqual(r.status_code, status.HTTP_200_OK)

    def test_list_filters_and_sorts(self):
        self.make_crop(name="Beans", status=Crop.Status.HARVESTED)
        self.make_crop(name="Tomatoes", planting_date=days(-5))
        self.make_crop(name="Cabbage", planting_date=days(-50))

        r = self.client.get("/api/crops/", {"status": "Growing", "sort": "plantingDate"})
        names = [c["name"] for c in r.data["data"]["crops"]]
        self.assertEqual(names, ["Cabbage", "Tomatoes"])

    def test_list_rejects_unknown_status(self):
        r = self.client.get("/api/crops/", {"status": "Dead"})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_detail_includes_tasks(self):
        crop = self.make_crop()
        Task.objects.create(user=self.user, crop=crop, description="Weed", due_date=days(3))
        Task.objects.create(user=self.user, crop=crop, description="Water", due_date=days(1))

        r = self.client.get(f"/api/crops/{crop.id}/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["data"]["crop"]["taskCount"], 2)
        self.assertEqual([t["description"] for t in r.data["data"]["tasks"]], ["Water", "Weed"])

    def test_other_users_crop_is_404(self):
        crop = self.make_crop(user=self.other)
        for method in ("get", "put", "delete"):
            r = getattr(self.client, method)(f"/api/crops/{crop.id}/", {}, format="json")
            self.assertEqual(r.status_code, status.HTTP_404_NOT_FOUND, method)
        self.assertTrue(Crop.objects.filter(pk=crop.pk).exists())

    def test_put_is_partial_and_rechecks_dates(self):
        crop = self.make_crop()
        r = self.client.put(f"/api/crops/{crop.id}/", {"status": "Ready to Harvest"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["data"]["crop"]["status"], "Ready to Harvest")

        r = self.client.patch(
            f"/api/crops/{crop.id}/", {"expectedHarvestDate": str(days(-40))}, format="json"
        )
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_without_tasks(self):
        crop = self.make_crop()
        r = self.client.delete(f"/api/crops/{crop.id}/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["message"], "Crop deleted successfully")
        self.assertFalse(Crop.objects.exists())

    def test_delete_with_tasks_rejected(self):
        crop = self.make_crop()
        Task.objects.create(user=self.user, crop=crop, description="Weed", due_date=days(3))
        r = self.client.delete(f"/api/crops/{crop.id}/")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            r.data["message"],
            "Cannot delete crop with associated tasks. Please delete tasks first.",
        )

    def test_delete_with_tasks_cascades_when_enabled(self):
        crop = self.make_crop()
        Task.objects.create(user=self.user, crop=crop, description="Weed", due_date=days(3))
        with override_settings(FARMLINK={**settings.FARMLINK, "CROP_DELETE_CASCADE": True}):
            r = self.client.delete(f"/api/crops/{crop.id}/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertFalse(Task.objects.exists())


class CropStatsTests(CropTestCase):
    def test_stats(self):
        self.make_crop(area=2, area_unit="acres")
        self.make_crop(area=1.5, area_unit="acres", status=Crop.Status.HARVESTED)
        self.make_crop(area=0.5, area_unit="hectares")
        self.make_crop(user=self.other, area=10)

        r = self.client.get("/api/crops/stats/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        data = r.data["data"]
        self.assertEqual(data["totalCrops"], 3)
        self.assertEqual(
            data["statusStats"],
            [{"status": "Growing", "count": 2}, {"status": "Harvested", "count": 1}],
        )
        acres = next(a for a in data["areaStats"] if a["areaUnit"] == "acres")
        self.assertEqual(acres["totalArea"], 3.5)
        self.assertEqual(acres["count"], 2)

    def test_dashboard(self):
        self.make_crop(expected_harvest_date=days(10))
        self.make_crop(name="Beans", expected_harvest_date=days(45))
        self.make_crop(name="Beans", status=Crop.Status.READY, expected_harvest_date=days(5))

        r = self.client.get("/api/crops/stats/dashboard/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        stats = r.data["data"]["stats"]
        self.assertEqual(stats["totalCrops"], 3)
        self.assertEqual(stats["statusCounts"], {"Growing": 2, "Ready to Harvest": 1, "Harvested": 0})
        self.assertEqual(stats["upcomingHarvests"], 1)
        self.assertEqual(stats["cropsByType"], {"Beans": 2, "Maize": 1})


class CropModelTests(CropTestCase):
    def test_growth_progress_is_clamped(self):
        crop = self.make_crop(planting_date=days(-100), expected_harvest_date=days(-10))
        self.assertEqual(crop.growth_progress, 100)
        crop = self.make_crop(planting_date=days(10), expected_harvest_date=days(40))
        self.assertEqual(crop.growth_progress, 0)
        crop = self.make_crop(planting_date=days(-50), expected_harvest_date=days(50))
        self.assertEqual(crop.growth_progress, 50)


class SeedCommandTests(TestCase):
    def test_seed_and_reset(self):
        out = StringIO()
        call_command("seed_farmlink", stdout=out)
        james = CustomUser.objects.get(email="james@farmlink.ke")
        self.assertTrue(james.check_password("password123"))
        self.assertEqual(james.crops.count(), 4)
        self.assertEqual(james.tasks.count(), 5)
        self.assertEqual(Crop.objects.count(), 5)

        call_command("seed_farmlink", stdout=out)
        self.assertEqual(Crop.objects.count(), 5)

        call_command("seed_farmlink", "--reset", stdout=out)
        self.assertEqual(Crop.objects.count(), 5)
        self.assertEqual(Task.objects.count(), 6)
        completed = Task.objects.get(status=Task.Status.COMPLETED)
        self.assertIsNotNone(completed.completed_at)
