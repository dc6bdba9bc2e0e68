from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from fleet.models import Driver, Maintenance, Refuel, Route, UserProfile, Vehicle
from fleet.services.routes import register_route, start_route

User = get_user_model()


def make_user(username, role=UserProfile.ROLE_USER, **flags):
    user = User.objects.create_user(username=username, email=f"{username}@example.com", password="pass")
    profile = user.fleet_profile
    profile.role = role
    for flag, value in flags.items():
        setattr(profile, flag, value)
    profile.save()
    return user


class VehicleViewTests(TestCase):
    def setUp(self):
        self.manager = make_user("manager", UserProfile.ROLE_MANAGER, manage_vehicles=True)
        self.viewer = make_user("viewer")

    def test_list_and_create(self):
        self.client.force_login(self.manager)
        response = self.client.post(
            reverse("vehicle-create"), {"model": "Fiorino", "plate": "PSA-1A23", "odometer_km": "1500"}
        )
        self.assertRedirects(response, reverse("vehicle-list"))
        vehicle = Vehicle.objects.get()
        self.assertEqual(vehicle.odometer_km, Decimal("1500.00"))

        response = self.client.get(reverse("vehicle-list"))
        self.assertContains(response, "PSA-1A23")
        self.assertContains(response, "Available")

    def test_viewer_cannot_create(self):
        self.client.force_login(self.viewer)
        response = self.client.post(reverse("vehicle-create"), {"model": "X", "plate": "Y", "odometer_km": "0"})
        self.assertRedirects(response, reverse("vehicle-list"))
        self.assertFalse(Vehicle.objects.exists())

    def test_update(self):
        vehicle = Vehicle.objects.create(model="Strada", plate="OLD-0000")
        self.client.force_login(self.manager)
        response = self.client.post(
            reverse("vehicle-update", args=[vehicle.pk]),
            {"model": "Strada", "plate": "NEW-1111", "odometer_km": "10"},
        )
        self.assertRedirects(response, reverse("vehicle-list"))
        vehicle.refresh_from_db()
        self.assertEqual(vehicle.plate, "NEW-1111")

    def test_delete_referenced_vehicle_is_refused(self):
        vehicle = Vehicle.objects.create(model="Strada", plate="ROE-4B56")
        driver = Driver.objects.create(name="Carlos")
        start_route(vehicle, driver, "A -> B")
        self.client.force_login(self.manager)
        response = self.client.post(reverse("vehicle-delete", args=[vehicle.pk]), follow=True)
        self.assertContains(response, "cannot be deleted")
        self.assertTrue(Vehicle.objects.filter(pk=vehicle.pk).exists())

    def test_delete_unreferenced_vehicle(self):
        vehicle = Vehicle.objects.create(model="Strada", plate="ROE-4B56")
        self.client.force_login(self.manager)
        response = self.client.get(reverse("vehicle-delete", args=[vehicle.pk]))
        self.assertContains(response, "This cannot be undone")
        self.client.post(reverse("vehicle-delete", args=[vehicle.pk]))
        self.assertFalse(Vehicle.objects.exists())


class RouteViewTests(TestCase):
    def setUp(self):
        self.editor = make_user("editor", edit_routes=True)
        self.vehicle = Vehicle.objects.create(model="Fiorino", plate="PSA-1A23", odometer_km=Decimal("1000"))
        self.driver = Driver.objects.create(name="Carlos Souza")
        self.client.force_login(self.editor)

    def test_start_and_finish(self):
        response = self.client.post(
            reverse("route-start"),
            {"vehicle": self.vehicle.pk, "driver": self.driver.pk, "name": "Cedral -> Mirinzal"},
        )
        self.assertRedirects(response, reverse("route-list"))
        route = Route.objects.get()
        self.assertEqual(route.km_start, Decimal("1000.00"))

        response = self.client.post(reverse("route-finish", args=[route.pk]), {"km_end": "1080"})
        self.assertRedirects(response, reverse("route-list"))
        route.refresh_from_db()
        self.assertEqual(route.status, Route.STATUS_FINISHED)
        self.assertEqual(route.distance, Decimal("80.00"))

    def test_finish_with_low_km_shows_error(self):
        route = start_route(self.vehicle, self.driver, "A -> B")
        response = self.client.post(reverse("route-finish", args=[route.pk]), {"km_end": "1000"})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "must be greater than the start reading")
        route.refresh_from_db()
        self.assertEqual(route.status, Route.STATUS_IN_PROGRESS)

    def test_register_completed_route(self):
        response = self.client.post(
            reverse("route-register"),
            {
                "vehicle": self.vehicle.pk,
                "driver_name": "Nova Motorista",
                "name": "Pinheiro -> Bequimao",
                "km_start": "1000",
                "km_end": "1042",
                "date": "2026-03-10",
            },
        )
        self.assertRedirects(response, reverse("route-list"))
        route = Route.objects.get()
        self.assertEqual(route.date, date(2026, 3, 10))
        self.assertTrue(Driver.objects.filter(name="Nova Motorista").exists())

    def test_viewer_cannot_start(self):
        viewer = make_user("viewer")
        self.client.force_login(viewer)
        self.client.post(
            reverse("route-start"),
            {"vehicle": self.vehicle.pk, "driver": self.driver.pk, "name": "A -> B"},
        )
        self.assertFalse(Route.objects.exists())

    def test_list_filters_by_status(self):
        start_route(self.vehicle, self.driver, "Open route")
        response = self.client.get(reverse("route-list"), {"status": Route.STATUS_FINISHED})
        self.assertNotContains(response, "Open route")
        response = self.client.get(reverse("route-list"))
        self.assertContains(response, "Open route")

    def test_edit_finished_route_requires_final_odometer(self):
        route = register_route(self.vehicle, "Carlos Souza", "A -> B", 1000, 1050, date(2026, 3, 1))
        response = self.client.post(
            reverse("route-update", args=[route.pk]),
            {
                "vehicle": self.vehicle.pk,
                "driver": route.driver_id,
                "name": "A -> B",
                "km_start": "1000",
                "km_end": "",
                "date": "2026-03-01",
            },
        )
        self.assertEqual(response.status_code, 200)
        route.refresh_from_db()
        self.assertEqual(route.status, Route.STATUS_FINISHED)
        self.assertEqual(route.km_end, Decimal("1050.00"))
        self.assertEqual(route.distance, Decimal("50.00"))

    def test_edit_in_progress_route_ignores_readings(self):
        route = start_route(self.vehicle, self.driver, "A -> B")
        response = self.client.post(
            reverse("route-update", args=[route.pk]),
            {
                "vehicle": self.vehicle.pk,
                "driver": self.driver.pk,
                "name": "A -> C",
                "km_start": "5",
                "km_end": "900",
                "date": route.date.isoformat(),
            },
        )
        self.assertRedirects(response, reverse("route-list"))
        route.refresh_from_db()
        self.assertEqual(route.name, "A -> C")
        self.assertEqual(route.status, Route.STATUS_IN_PROGRESS)
        self.assertEqual(route.km_start, Decimal("1000.00"))
        self.assertIsNone(route.km_end)
        self.assertIsNone(route.distance)
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.odometer_km, Decimal("1000.00"))


class RefuelViewTests(TestCase):
    def setUp(self):
        self.user = make_user("fueler", add_refuels=True)
        self.vehicle = Vehicle.objects.create(model="Fiorino", plate="PSA-1A23", odometer_km=Decimal("1000"))
        self.client.force_login(self.user)

    def test_form_prefills_vehicle_odometer(self):
        response = self.client.get(reverse("refuel-create"), {"vehicle": self.vehicle.pk})
        self.assertEqual(response.context["form"]["km_current"].initial, Decimal("1000.00"))

    def test_create_computes_liters(self):
        response = self.client.post(
            reverse("refuel-create"),
            {
                "vehicle": self.vehicle.pk,
                "km_current": "1100",
                "price_per_liter": "6.000",
                "total_price": "300.00",
                "station": "Posto Ipiranga",
                "store": "Renova",
                "date": "2026-03-10",
            },
        )
        self.assertRedirects(response, reverse("refuel-list"))
        refuel = Refuel.objects.get()
        self.assertEqual(refuel.liters, Decimal("50.00"))
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.odometer_km, Decimal("1100.00"))

    def test_unknown_store_is_rejected(self):
        response = self.client.post(
            reverse("refuel-create"),
            {
                "vehicle": self.vehicle.pk,
                "km_current": "1100",
                "price_per_liter": "6",
                "total_price": "300",
                "station": "Posto",
                "store": "Somewhere Else",
                "date": "2026-03-10",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Refuel.objects.exists())

    def test_list_shows_store_filter(self):
        response = self.client.get(reverse("refuel-list"), {"store": "Renova"})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Multi Plast")
        self.assertEqual(response.context["store"], "Renova")


class MaintenanceViewTests(TestCase):
    def setUp(self):
        self.user = make_user("mech", manage_vehicles=True)
        self.vehicle = Vehicle.objects.create(model="Master", plate="OJX-7C89")
        self.client.force_login(self.user)

    def test_blank_km_and_cost_default_to_zero(self):
        response = self.client.post(
            reverse("maintenance-create"),
            {"vehicle": self.vehicle.pk, "type": "Oil change", "km": "", "cost": "", "status": "COMPLETED", "date": "2026-03-01"},
        )
        self.assertRedirects(response, reverse("maintenance-list"))
        item = Maintenance.objects.get()
        self.assertEqual(item.km, 0)
        self.assertEqual(item.cost, 0)

    def test_type_is_required(self):
        response = self.client.post(
            reverse("maintenance-create"),
            {"vehicle": self.vehicle.pk, "type": "", "status": "COMPLETED", "date": "2026-03-01"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Maintenance.objects.exists())


class UserViewTests(TestCase):
    def setUp(self):
        self.admin = make_user("boss", UserProfile.ROLE_ADMIN)
        self.plain = make_user("plain")

    def test_plain_user_is_turned_away(self):
        self.client.force_login(self.plain)
        response = self.client.get(reverse("user-list"))
        self.assertRedirects(response, reverse("dashboard"))

    def test_admin_creates_user_with_flags(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            reverse("user-create"),
            {
                "username": "newbie",
                "email": "newbie@example.com",
                "password": "pw-12345",
                "role": UserProfile.ROLE_MANAGER,
                "view_vehicles": "on",
                "add_refuels": "on",
            },
        )
        self.assertRedirects(response, reverse("user-list"))
        user = User.objects.get(username="newbie")
        self.assertTrue(user.check_password("pw-12345"))
        profile = user.fleet_profile
        self.assertEqual(profile.role, UserProfile.ROLE_MANAGER)
        self.assertTrue(profile.add_refuels)
        self.assertFalse(profile.view_routes)

    def test_edit_keeps_password_when_blank(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            reverse("user-update", args=[self.plain.pk]),
            {"username": "plain", "email": "plain@example.com", "password": "", "role": UserProfile.ROLE_USER, "manage_users": "on"},
        )
        self.assertRedirects(response, reverse("user-list"))
        self.plain.refresh_from_db()
        self.assertTrue(self.plain.check_password("pass"))
        self.assertTrue(UserProfile.objects.get(user=self.plain).manage_users)

    def test_cannot_delete_self(self):
        self.client.force_login(self.admin)
        self.client.post(reverse("user-delete", args=[self.admin.pk]))
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_delete_user(self):
        self.client.force_login(self.admin)
        self.client.post(reverse("user-delete", args=[self.plain.pk]))
        self.assertFalse(User.objects.filter(pk=self.plain.pk).exists())


class DashboardViewTests(TestCase):
    def setUp(self):
        self.user = make_user("ana")
        self.client.force_login(self.user)

    def test_dashboard_renders_without_data(self):
        response = self.client.get(reverse("dashboard"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "No data")

    def test_dashboard_json(self):
        vehicle = Vehicle.objects.create(model="Fiorino", plate="PSA-1A23")
        Route.objects.create(
            vehicle=vehicle,
            driver=Driver.objects.create(name="Carlos"),
            name="A -> B",
            km_start=0,
            km_end=100,
            distance=100,
            status=Route.STATUS_FINISHED,
            date=date(2025, 6, 1),
        )
        response = self.client.get(reverse("dashboard-data"), {"year": 2025})
        payload = response.json()
        self.assertEqual(payload["year"], 2025)
        self.assertEqual(payload["km_by_month"][5], 100.0)
        self.assertIsNone(payload["consumption_by_month"][5])
        self.assertEqual(payload["ranking"][0]["label"], "Fiorino - PSA-1A23")

    def test_out_of_range_year_falls_back_to_current_year(self):
        this_year = timezone.localdate().year
        for year in ("0", "10000", "-5"):
            response = self.client.get(reverse("dashboard-data"), {"year": year})
            self.assertEqual(response.status_code, 200)
            self.assertEqual(response.json()["year"], this_year)
        response = self.client.get(reverse("dashboard"), {"year": "0"})
        self.assertEqual(response.status_code, 200)
