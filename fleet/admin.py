from django.contrib import admin

from .models import Driver, Maintenance, Refuel, Route, UserProfile, Vehicle


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "role", "manage_vehicles", "edit_routes", "add_refuels", "generate_reports", "manage_users")
    list_filter = ("role",)
    search_fields = ("user__username", "user__email")


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("model", "plate", "odometer_km", "last_update")
    search_fields = ("model", "plate")


@admin.register(Driver)
class DriverAdmin(admin.ModelAdmin):
    list_display = ("name", "license_number", "phone", "category")
    search_fields = ("name", "license_number")


@admin.register(Route)
class RouteAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "vehicle", "driver", "km_start", "km_end", "distance", "status", "date")
    list_filter = ("status", "vehicle", "date")
    search_fields = ("name", "driver__name")
    readonly_fields = ("distance",)


@admin.register(Refuel)
class RefuelAdmin(admin.ModelAdmin):
    list_display = ("date", "vehicle", "station", "store", "liters", "price_per_liter", "total_price")
    list_filter = ("store", "vehicle", "date")
    readonly_fields = ("liters",)


@admin.register(Maintenance)
class MaintenanceAdmin(admin.ModelAdmin):
    list_display = ("date", "vehicle", "type", "km", "cost", "status")
    list_filter = ("status", "vehicle")
    search_fields = ("type", "notes")
