from rest_framework.routers import DefaultRouter

from . import api

router = DefaultRouter()
router.register("vehicles", api.VehicleViewSet)
router.register("drivers", api.DriverViewSet)
router.register("maintenances", api.MaintenanceViewSet)
router.register("routes", api.RouteViewSet)
router.register("refuels", api.RefuelViewSet)

urlpatterns = router.urls
