from rest_framework.routers import DefaultRouter

from .views import CropViewSet

router = DefaultRouter()
router.include_root_view = False
router.register(r"crops", CropViewSet, basename="crop")

# /api/crops/, /api/crops/{id}/, /api/crops/stats/, /api/crops/stats/dashboard/
urlpatterns = router.urls
