import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("crops", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Task",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=200)),
                ("due_date", models.DateField()),
                ("status", models.CharField(choices=[("Pending", "Pending"), ("Completed", "Completed"), ("Overdue", "Overdue")], default="Pending", max_length=16)),
                ("priority", models.CharField(choices=[("Low", "Low"), ("Medium", "Medium"), ("High", "High"), ("Critical", "Critical")], default="Medium", max_length=16)),
                ("category", models.CharField(choices=[("Planting", "Planting"), ("Watering", "Watering"), ("Fertilizing", "Fertilizing"), ("Pest Control", "Pest Control"), ("Harvesting", "Harvesting"), ("Maintenance", "Maintenance"), ("Other", "Other")], default="Other", max_length=16)),
                ("estimated_duration", models.PositiveIntegerField(blank=True, null=True, validators=[django.core.validators.MaxValueValidator(1440)])),
                ("notes", models.TextField(blank=True, default="", max_length=1000)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("crop", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tasks", to="crops.crop")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="tasks", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["due_date", "created_at"],
                "indexes": [
                    models.Index(fields=["user", "status", "due_date"], name="tasks_task_user_id_9f4c2a_idx"),
                    models.Index(fields=["crop", "due_date"], name="tasks_task_crop_id_5b1e7d_idx"),
                ],
            },
        ),
    ]
