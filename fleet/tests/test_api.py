from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from fleet.models import Driver, Refuel, Route, Vehicle

User = get_user_model()


class FleetApiTests(TestCase):
    def setUp(self):
        self.editor = User.objects.create_user(username="editor", email="editor@example.com", password="pass")
        profile = self.editor.fleet_profile
        profile.manage_vehicles = True
        profile.edit_routes = True
        profile.add_refuels = True
        profile.save()
        self.viewer = User.objects.create_user(username="viewer", email="viewer@example.com", password="pass")
        self.client = APIClient()
        self.vehicle = Vehicle.objects.create(model="Fiorino", plate="PSA-1A23", odometer_km=Decimal("1000"))
        self.driver = Driver.objects.create(name="Carlos Souza")

    def test_anonymous_is_rejected(self):
        response = self.client.get("/api/vehicles/")
        self.assertIn(response.status_code, (401, 403))

    def test_viewer_can_list_but_not_create(self):
        self.client.force_authenticate(self.viewer)
        response = self.client.get("/api/vehicles/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()[0]["label"], "Fiorino - PSA-1A23")
        response = self.client.post("/api/vehicles/", {"model": "Strada", "plate": "X"}, format="json")
        self.assertEqual(response.status_code, 403)

    def test_route_start_and_finish(self):
        self.client.force_authenticate(self.editor)
        response = self.client.post(
            "/api/routes/start/",
            {"vehicle": self.vehicle.pk, "driver": self.driver.pk, "name": "Cedral -> Mirinzal"},
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        route_id = response.json()["id"]
        self.assertEqual(Decimal(response.json()["km_start"]), Decimal("1000"))

        response = self.client.post(f"/api/routes/{route_id}/finish/", {"km_end": "999"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(Route.objects.get(pk=route_id).status, Route.STATUS_IN_PROGRESS)

        response = self.client.post(f"/api/routes/{route_id}/finish/", {"km_end": "1050"}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(Decimal(response.json()["distance"]), Decimal("50"))
        self.vehicle.refresh_from_db()
        self.assertEqual(self.vehicle.odometer_km, Decimal("1050.00"))

    def test_viewer_cannot_start_route(self):
        self.client.force_authenticate(self.viewer)
        response = self.client.post(
            "/api/routes/start/",
            {"vehicle": self.vehicle.pk, "driver": self.driver.pk, "name": "A -> B"},
            format="json",
        )
        self.assertEqual(response.status_code, 403)

    def test_refuel_create_computes_liters(self):
        self.client.force_authenticate(self.editor)
        response = self.client.post(
            "/api/refuels/",
            {
                "vehicle": self.vehicle.pk,
                "km_current": "1100",
                "price_per_liter": "5.000",
                "total_price": "250.00",
                "station": "Posto Ipiranga",
                "store": "Renova",
            },
            format="json",
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Decimal(response.json()["liters"]), Decimal("50.00"))
        self.assertEqual(Refuel.objects.count(), 1)

    def test_delete_referenced_vehicle_conflicts(self):
        self.client.force_authenticate(self.editor)
        Refuel.objects.create(
            vehicle=self.vehicle, km_current=1, liters=1, price_per_liter=1, total_price=1,
            store="Renova", station="Posto",
        )
        response = self.client.delete(f"/api/vehicles/{self.vehicle.pk}/")
        self.assertEqual(response.status_code, 409)
        self.assertTrue(Vehicle.objects.filter(pk=self.vehicle.pk).exists())
