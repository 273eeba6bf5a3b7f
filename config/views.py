from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone


def api_root(request):
    return JsonResponse({
        "message": "FarmLink API is running successfully!",
        "version": settings.FARMLINK_VERSION,
        "timestamp": timezone.now().isoformat(),
        "endpoints": {
            "auth": "/api/auth",
            "crops": "/api/crops",
            "tasks": "/api/tasks",
            "monitoring": "/api/monitoring",
            "aiChat": "/api/ai-chat",
        },
    })


def route_not_found(request, exception=None):
    return JsonResponse(
        {
            "error": f"Route {request.path} not found",
            "message": "Please check the API documentation for available endpoints",
        },
        status=404,
    )
