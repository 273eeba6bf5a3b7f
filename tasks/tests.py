from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import CustomUser
from crops.models import Crop
from .models import Task


def days(n):
    return timezone.localdate() + timedelta(days=n)


class TaskTestCase(TestCase):
    def setUp(self):
        self.user = CustomUser.objects.create_user(
            email="james@farmlink.ke", password="pass1234", name="James Mwangi"
        )
        self.other = CustomUser.objects.create_user(
            email="grace@farmlink.ke", password="pass1234", name="Grace Wanjiku"
        )
        self.crop = Crop.objects.create(
            user=self.user, name="Maize", planting_date=days(-30), expected_harvest_date=days(60)
        )
        self.other_crop = Crop.objects.create(
            user=self.other, name="Beans", planting_date=days(-30), expected_harvest_date=days(60)
        )
        self.client = APIClient()
        self.client.force_authenticate(self.user)

    def make_task(self, **kwargs):
        fields = {
            "user": self.user,
            "crop": self.crop,
            "description": "Weed the field",
            "due_date": days(3),
        }
        fields.update(kwargs)
        return Task.objects.create(**fields)


class TaskModelTests(TaskTestCase):
    def test_completed_at_follows_status(self):
        task = self.make_task()
        self.assertIsNone(task.completed_at)

        task.status = Task.Status.COMPLETED
        task.save()
        stamp = task.completed_at
        self.assertIsNotNone(stamp)

        task.notes = "done early"
        task.save()
        self.assertEqual(task.completed_at, stamp)

        task.status = Task.Status.PENDING
        task.save(update_fields=["status"])
        task.refresh_from_db()
        self.assertIsNone(task.completed_at)

    def test_overdue_and_upcoming_querysets(self):
        late = self.make_task(due_date=days(-2))
        soon = self.make_task(due_date=days(2))
        self.make_task(due_date=days(20))
        self.make_task(due_date=days(-5), status=Task.Status.COMPLETED)

        self.assertEqual(list(Task.objects.overdue()), [late])
        self.assertEqual(list(Task.objects.upcoming(7)), [soon])
        self.assertTrue(late.is_overdue)
        self.assertEqual(soon.days_until_due, 2)


class TaskCrudTests(TaskTestCase):
    def test_create_task(self):
        r = self.client.post("/api/tasks/", {
            "cropId": self.crop.id,
            "description": "  Apply top dressing  ",
            "dueDate": str(days(5)),
            "priority": "High",
            "category": "Fertilizing",
            "estimatedDuration": 90,
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        task = r.data["data"]["task"]
        self.assertEqual(task["description"], "Apply top dressing")
        self.assertEqual(task["status"], "Pending")
        self.assertEqual(task["crop"]["name"], "Maize")
        self.assertEqual(task["daysUntilDue"], 5)
        self.assertFalse(task["isOverdue"])

    def test_create_defaults(self):
        r = self.client.post("/api/tasks/", {
            "cropId": self.crop.id, "description": "Scout for pests", "dueDate": str(days(1)),
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_201_CREATED)
        self.assertEqual(r.data["data"]["task"]["priority"], "Medium")
        self.assertEqual(r.data["data"]["task"]["category"], "Other")

    def test_create_against_someone_elses_crop(self):
        r = self.client.post("/api/tasks/", {
            "cropId": self.other_crop.id, "description": "Sneaky", "dueDate": str(days(1)),
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(
            r.data["errors"][0]["message"],
            "Invalid crop selected or you do not have permission to use this crop.",
        )

    def test_create_requires_crop(self):
        r = self.client.post("/api/tasks/", {
            "description": "No crop", "dueDate": str(days(1)),
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["errors"][0]["message"], "Associated crop is required")

    def test_due_date_rules(self):
        past = self.client.post("/api/tasks/", {
            "cropId": self.crop.id, "description": "Late", "dueDate": str(days(-1)),
        }, format="json")
        self.assertEqual(past.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(past.data["errors"][0]["message"], "Due date cannot be in the past")

        far = self.client.post("/api/tasks/", {
            "cropId": self.crop.id, "description": "Far", "dueDate": str(days(365 * 3)),
        }, format="json")
        self.assertEqual(far.status_code, status.HTTP_400_BAD_REQUEST)

    def test_estimated_duration_bounds(self):
        r = self.client.post("/api/tasks/", {
            "cropId": self.crop.id, "description": "Long", "dueDate": str(days(1)),
            "estimatedDuration": 2000,
        }, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_past_due_only_when_completing(self):
        task = self.make_task()
        r = self.client.patch(f"/api/tasks/{task.id}/", {"dueDate": str(days(-3))}, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

        r = self.client.put(
            f"/api/tasks/{task.id}/",
            {"dueDate": str(days(-3)), "status": "Completed"},
            format="json",
        )
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(r.data["data"]["task"]["completedAt"])

    def test_update_crop_rechecks_ownership(self):
        task = self.make_task()
        r = self.client.patch(f"/api/tasks/{task.id}/", {"cropId": self.other_crop.id}, format="json")
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        task.refresh_from_db()
        self.assertEqual(task.crop_id, self.crop.id)

    def test_other_users_task_is_404(self):
        task = self.make_task(user=self.other, crop=self.other_crop)
        self.assertEqual(self.client.get(f"/api/tasks/{task.id}/").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/tasks/{task.id}/").status_code, 404)
        self.assertTrue(Task.objects.filter(pk=task.pk).exists())

    def test_delete(self):
        task = self.make_task()
        r = self.client.delete(f"/api/tasks/{task.id}/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["message"], "Task deleted successfully")
        self.assertFalse(Task.objects.exists())

    def test_complete_with_notes(self):
        task = self.make_task()
        r = self.client.patch(f"/api/tasks/{task.id}/complete/", {"notes": "All weeded"}, format="json")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        self.assertEqual(task.status, Task.Status.COMPLETED)
        self.assertEqual(task.notes, "All weeded")
        self.assertIsNotNone(task.completed_at)


class TaskListTests(TaskTestCase):
    def setUp(self):
        super().setUp()
        self.make_task(description="Water seedlings", due_date=days(4), priority="Low", category="Watering")
        self.make_task(description="Spray for aphids", due_date=days(1), priority="Critical",
                       category="Pest Control")
        self.make_task(description="Weed beans", due_date=days(2), priority="High")
        self.make_task(user=self.other, crop=self.other_crop, description="Water beans")

    def test_default_sort_is_due_date(self):
        r = self.client.get("/api/tasks/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        names = [t["description"] for t in r.data["data"]["tasks"]]
        self.assertEqual(names, ["Spray for aphids", "Weed beans", "Water seedlings"])
        self.assertEqual(r.data["data"]["pagination"]["totalItems"], 3)

    def test_priority_sort_uses_rank(self):
        r = self.client.get("/api/tasks/", {"sortBy": "priority", "sortOrder": "desc"})
        priorities = [t["priority"] for t in r.data["data"]["tasks"]]
        self.assertEqual(priorities, ["Critical", "High", "Low"])

    def test_filters_and_search(self):
        r = self.client.get("/api/tasks/", {"category": "Watering"})
        self.assertEqual(len(r.data["data"]["tasks"]), 1)

        r = self.client.get("/api/tasks/", {"search": "WATER"})
        self.assertEqual([t["description"] for t in r.data["data"]["tasks"]], ["Water seedlings"])

        r = self.client.get("/api/tasks/", {"cropId": self.other_crop.id})
        self.assertEqual(r.data["data"]["tasks"], [])

    def test_invalid_filter_value(self):
        r = self.client.get("/api/tasks/", {"priority": "Urgent"})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)

    def test_page_past_the_end_is_empty(self):
        r = self.client.get("/api/tasks/", {"page": 3, "limit": 2})
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["data"]["tasks"], [])
        self.assertEqual(r.data["data"]["pagination"], {
            "currentPage": 3, "totalPages": 2, "totalItems": 3, "itemsPerPage": 2,
        })

    def test_invalid_page_and_limit_rejected(self):
        r = self.client.get("/api/tasks/", {"limit": 101})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["message"], "Limit must be between 1 and 100")

        r = self.client.get("/api/tasks/", {"page": "two"})
        self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(r.data["message"], "Page must be a positive integer")


class TaskEmptyListTests(TaskTestCase):
    def test_second_page_of_nothing(self):
        r = self.client.get("/api/tasks/", {"page": 2})
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        self.assertEqual(r.data["data"]["tasks"], [])
        self.assertEqual(r.data["data"]["pagination"], {
            "currentPage": 2, "totalPages": 0, "totalItems": 0, "itemsPerPage": 10,
        })


class TaskDashboardTests(TaskTestCase):
    def test_upcoming_days_validation(self):
        self.make_task(due_date=days(10))
        r = self.client.get("/api/tasks/upcoming/")
        self.assertEqual(r.data["data"]["count"], 0)
        self.assertEqual(r.data["data"]["days"], 7)

        r = self.client.get("/api/tasks/upcoming/", {"days": 14})
        self.assertEqual(r.data["data"]["count"], 1)

        for bad in ("0", "366", "soon"):
            r = self.client.get("/api/tasks/upcoming/", {"days": bad})
            self.assertEqual(r.status_code, status.HTTP_400_BAD_REQUEST, bad)

    def test_overdue(self):
        self.make_task(due_date=days(-1))
        self.make_task(due_date=days(-3), status=Task.Status.OVERDUE)
        self.make_task(due_date=days(-3), status=Task.Status.COMPLETED)
        r = self.client.get("/api/tasks/overdue/")
        self.assertEqual(r.data["data"]["count"], 2)

    def test_upcoming_dashboard_caps_lists(self):
        for i in range(7):
            self.make_task(due_date=days(i % 7))
            self.make_task(due_date=days(-(i + 1)))

        r = self.client.get("/api/tasks/upcoming/dashboard/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        data = r.data["data"]
        self.assertEqual(len(data["upcomingTasks"]), 5)
        self.assertEqual(len(data["overdueTasks"]), 5)
        self.assertEqual(data["counts"], {"upcoming": 7, "overdue": 7})

    def test_stats(self):
        self.make_task(priority="High")
        self.make_task(status=Task.Status.COMPLETED)
        self.make_task(due_date=days(-2))
        self.make_task(user=self.other, crop=self.other_crop)

        r = self.client.get("/api/tasks/stats/")
        self.assertEqual(r.status_code, status.HTTP_200_OK)
        data = r.data["data"]
        self.assertEqual(data["totalTasks"], 3)
        self.assertEqual(data["overdueCount"], 1)
        self.assertEqual(data["upcomingCount"], 1)
        self.assertIn({"priority": "High", "count": 1}, data["priorityStats"])
        self.assertEqual(data["thisMonthStats"], {"total": 3, "completed": 1, "completionRate": 33.3})
