import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Crop",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(choices=[("Maize", "Maize"), ("Beans", "Beans"), ("Sukuma Wiki", "Sukuma Wiki"), ("Tomatoes", "Tomatoes"), ("Onions", "Onions"), ("Carrots", "Carrots"), ("Cabbage", "Cabbage"), ("Other", "Other")], max_length=32)),
                ("variety", models.CharField(blank=True, default="", max_length=100)),
                ("planting_date", models.DateField()),
                ("expected_harvest_date", models.DateField()),
                ("area", models.FloatField(blank=True, null=True, validators=[django.core.validators.MinValueValidator(0)])),
                ("area_unit", models.CharField(choices=[("acres", "Acres"), ("hectares", "Hectares"), ("square_meters", "Square meters"), ("square_feet", "Square feet")], default="acres", max_length=16)),
                ("status", models.CharField(choices=[("Growing", "Growing"), ("Ready to Harvest", "Ready to Harvest"), ("Harvested", "Harvested")], default="Growing", max_length=20)),
                ("notes", models.TextField(blank=True, default="", max_length=500)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="crops", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-planting_date", "-created_at"],
                "indexes": [
                    models.Index(fields=["user", "status"], name="crops_crop_user_id_3a8d1c_idx"),
                    models.Index(fields=["user", "expected_harvest_date"], name="crops_crop_user_id_7e2b4f_idx"),
                ],
            },
        ),
    ]
