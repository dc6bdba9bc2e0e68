"""REST endpoints over the fleet collections (session-authenticated)."""

from django.db.models import ProtectedError
from django.shortcuts import get_object_or_404
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .exceptions import FleetError
from .models import Driver, Maintenance, Refuel, Route, Vehicle
from .permissions import HasFleetPermission
from .serializers import (
    DriverSerializer,
    MaintenanceSerializer,
    RefuelSerializer,
    RouteFinishSerializer,
    RouteSerializer,
    RouteStartSerializer,
    VehicleSerializer,
)
from .services import refuels as refuel_service
from .services import routes as route_service


class ProtectedDeleteMixin:
    """Answer 409 instead of a 500 when a referenced row is deleted."""

    def destroy(self, request, *args, **kwargs):
        try:
            return super().destroy(request, *args, **kwargs)
        except ProtectedError:
            return Response(
                {"error": "This record is referenced by other records and cannot be deleted."},
                status=status.HTTP_409_CONFLICT,
            )


class VehicleViewSet(ProtectedDeleteMixin, viewsets.ModelViewSet):
    queryset = Vehicle.objects.all()
    serializer_class = VehicleSerializer
    permission_classes = [permissions.IsAuthenticated, HasFleetPermission]
    read_flag = "view_vehicles"
    write_flag = "manage_vehicles"


class DriverViewSet(ProtectedDeleteMixin, viewsets.ModelViewSet):
    queryset = Driver.objects.all()
    serializer_class = DriverSerializer
    permission_classes = [permissions.IsAuthenticated, HasFleetPermission]
    read_flag = "view_vehicles"
    write_flag = "manage_vehicles"


class MaintenanceViewSet(viewsets.ModelViewSet):
    queryset = Maintenance.objects.select_related("vehicle")
    serializer_class = MaintenanceSerializer
    permission_classes = [permissions.IsAuthenticated, HasFleetPermission]
    read_flag = "view_vehicles"
    write_flag = "manage_vehicles"


class RouteViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Route.objects.select_related("vehicle", "driver")
    serializer_class = RouteSerializer
    permission_classes = [permissions.IsAuthenticated, HasFleetPermission]
    read_flag = "view_routes"
    write_flag = "edit_routes"

    def get_queryset(self):
        qs = super().get_queryset()
        route_status = self.request.query_params.get("status")
        if route_status:
            qs = qs.filter(status=route_status)
        return qs

    @action(detail=False, methods=["post"], url_path="start")
    def start(self, request):
        payload = RouteStartSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            route = route_service.start_route(**payload.validated_data)
        except FleetError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(RouteSerializer(route).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="finish")
    def finish(self, request, pk=None):
        route = get_object_or_404(Route, pk=pk)
        payload = RouteFinishSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        try:
            route = route_service.finish_route(route, payload.validated_data["km_end"])
        except FleetError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(RouteSerializer(route).data)


class RefuelViewSet(
    mixins.CreateModelMixin,
    mixins.DestroyModelMixin,
    viewsets.ReadOnlyModelViewSet,
):
    queryset = Refuel.objects.select_related("vehicle")
    serializer_class = RefuelSerializer
    permission_classes = [permissions.IsAuthenticated, HasFleetPermission]
    read_flag = "view_refuels"
    write_flag = "add_refuels"

    def get_queryset(self):
        qs = super().get_queryset()
        store = self.request.query_params.get("store")
        if store:
            qs = qs.filter(store=store)
        return qs

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            refuel = refuel_service.register_refuel(
                data["vehicle"], data["km_current"], data["price_per_liter"],
                data["total_price"], data["station"], data["store"], data.get("date"),
            )
        except FleetError as exc:
            return Response({"error": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(refuel).data, status=status.HTTP_201_CREATED)
