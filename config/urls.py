# config/urls.py
from django.contrib import admin
from django.urls import path, include

from .views import api_root

urlpatterns = [
    path("", api_root),
    path("admin/", admin.site.urls),

    # --- Authentication ---
    path("api/auth/", include("accounts.urls")),
    path("api/auth/", include("djoser.urls.jwt")),

    # --- Crops + Tasks ---
    path("api/", include("crops.urls")),
    path("api/", include("tasks.urls")),

    # --- Monitoring + AI chat ---
    path("api/monitoring/", include("monitoring.urls")),
    path("api/ai-chat/", include("aichat.urls")),
]

handler404 = "config.views.route_not_found"
