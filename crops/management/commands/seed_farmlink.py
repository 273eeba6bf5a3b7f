from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from crops.models import Crop
from tasks.models import Task

SAMPLE_PASSWORD = "password123"

SAMPLE_USERS = [
    {"name": "James Mwangi", "email": "james@farmlink.ke", "farm_location": "Kisumu County"},
    {"name": "Grace Wanjiku", "email": "grace@farmlink.ke", "farm_location": "Nakuru County"},
]

# (name, planted days ago, harvest in days, status, notes)
JAMES_CROPS = [
    ("Maize", 60, 60, Crop.Status.GROWING, "Planted with DAP fertilizer. Good rainfall this season."),
    ("Beans", 45, 25, Crop.Status.GROWING, "Intercropped with maize. Using improved seeds."),
    ("Sukuma Wiki", 55, 5, Crop.Status.READY, "For daily consumption and local market sales."),
    ("Tomatoes", 120, -30, Crop.Status.HARVESTED, "Previous harvest completed. Good yield of 500kg."),
]

# (description, due in days, status, priority); crops assigned round-robin
JAMES_TASKS = [
    ("Apply second fertilizer application to maize", 6, Task.Status.PENDING, Task.Priority.HIGH),
    ("Weed beans field thoroughly", 4, Task.Status.PENDING, Task.Priority.MEDIUM),
    ("Harvest mature sukuma wiki leaves", 1, Task.Status.PENDING, Task.Priority.HIGH),
    ("Spray pesticides on tomato seedlings", 11, Task.Status.PENDING, Task.Priority.MEDIUM),
    ("Prepare land for next planting season", -4, Task.Status.COMPLETED, Task.Priority.LOW),
]


class Command(BaseCommand):
    help = "Create two sample farmers with crops and tasks."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reset",
            action="store_true",
            help="Delete the sample farmers (and their crops/tasks) before seeding.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()
        emails = [u["email"] for u in SAMPLE_USERS]

        if options["reset"]:
            deleted, _ = User.objects.filter(email__in=emails).delete()
            self.stdout.write(f"Removed {deleted} existing sample rows")

        if User.objects.filter(email__in=emails).exists():
            self.stdout.write(self.style.WARNING("Sample farmers already exist; use --reset to recreate them."))
            return

        today = timezone.localdate()
        users = []
        for data in SAMPLE_USERS:
            user = User.objects.create_user(password=SAMPLE_PASSWORD, **data)
            users.append(user)
            self.stdout.write(f"Created user: {user.name} ({user.email})")

        james, grace = users
        crops = []
        for name, planted_ago, harvest_in, status, notes in JAMES_CROPS:
            crop = Crop.objects.create(
                user=james,
                name=name,
                planting_date=today - timedelta(days=planted_ago),
                expected_harvest_date=today + timedelta(days=harvest_in),
                status=status,
                notes=notes,
            )
            crops.append(crop)
            self.stdout.write(f"Created crop: {crop.name} ({crop.status})")

        for i, (description, due_in, status, priority) in enumerate(JAMES_TASKS):
            task = Task.objects.create(
                user=james,
                crop=crops[i % len(crops)],
                description=description,
                due_date=today + timedelta(days=due_in),
                status=status,
                priority=priority,
            )
            self.stdout.write(f"Created task: {task.description} ({task.status})")

        grace_crop = Crop.objects.create(
            user=grace,
            name=Crop.CropType.MAIZE,
            planting_date=today - timedelta(days=20),
            expected_harvest_date=today + timedelta(days=100),
            status=Crop.Status.GROWING,
            notes="First time farmer. Using hybrid seeds.",
        )
        Task.objects.create(
            user=grace,
            crop=grace_crop,
            description="Learn about proper spacing for maize",
            due_date=today + timedelta(days=2),
            priority=Task.Priority.HIGH,
        )

        self.stdout.write(self.style.SUCCESS(
            f"Seeded users={User.objects.filter(email__in=emails).count()} "
            f"crops={Crop.objects.filter(user__in=users).count()} "
            f"tasks={Task.objects.filter(user__in=users).count()}"
        ))
        for data in SAMPLE_USERS:
            self.stdout.write(f"  {data['email']} / {SAMPLE_PASSWORD} ({data['farm_location']})")
