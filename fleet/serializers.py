from rest_framework import serializers

from .models import Driver, Maintenance, Refuel, Route, Vehicle


class VehicleSerializer(serializers.ModelSerializer):
    label = serializers.CharField(read_only=True)
    status = serializers.CharField(source="status_display", read_only=True)

    class Meta:
        model = Vehicle
        fields = ["id", "model", "plate", "label", "odometer_km", "last_update", "status", "created_at"]
        read_only_fields = ["last_update", "created_at"]


class DriverSerializer(serializers.ModelSerializer):
    class Meta:
        model = Driver
        fields = ["id", "name", "license_number", "phone", "category", "created_at"]
        read_only_fields = ["created_at"]


class MaintenanceSerializer(serializers.ModelSerializer):
    vehicle_label = serializers.CharField(source="vehicle.label", read_only=True)

    class Meta:
        model = Maintenance
        fields = ["id", "vehicle", "vehicle_label", "type", "km", "cost", "notes", "status", "date", "created_at"]
        read_only_fields = ["created_at"]


class RouteSerializer(serializers.ModelSerializer):
    vehicle_label = serializers.CharField(source="vehicle.label", read_only=True)
    driver_name = serializers.CharField(source="driver.name", read_only=True)

    class Meta:
        model = Route
        fields = [
            "id", "vehicle", "vehicle_label", "driver", "driver_name", "name",
            "km_start", "km_end", "distance", "status", "started_at", "ended_at", "date",
        ]
        read_only_fields = fields


class RouteStartSerializer(serializers.Serializer):
    vehicle = serializers.PrimaryKeyRelatedField(queryset=Vehicle.objects.all())
    driver = serializers.PrimaryKeyRelatedField(queryset=Driver.objects.all())
    name = serializers.CharField(max_length=200)


class RouteFinishSerializer(serializers.Serializer):
    km_end = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)


class RefuelSerializer(serializers.ModelSerializer):
    vehicle_label = serializers.CharField(source="vehicle.label", read_only=True)

    class Meta:
        model = Refuel
        fields = [
            "id", "vehicle", "vehicle_label", "km_current", "liters", "price_per_liter",
            "total_price", "station", "store", "date", "created_at",
        ]
        read_only_fields = ["liters", "created_at"]
        extra_kwargs = {"date": {"required": False}}
