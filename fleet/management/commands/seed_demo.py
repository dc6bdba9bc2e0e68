from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from fleet.models import Driver, Maintenance, Refuel, Route, UserProfile, Vehicle
from fleet.services.refuels import register_refuel
from fleet.services.routes import register_route

DEMO_VEHICLES = [
    ("Fiorino", "PSA-1A23", Decimal("48200")),
    ("Strada", "ROE-4B56", Decimal("31050")),
    ("Master", "OJX-7C89", Decimal("102340")),
]

DEMO_DRIVERS = [
    ("Carlos Souza", "04512378901", "(98) 98811-2030", "D"),
    ("Marcos Lima", "07788123450", "(98) 98122-4411", "B"),
    ("Joao Pereira", "01234987650", "", "E"),
]

DEMO_ROUTES = [
    "Cedral -> Mirinzal",
    "Sao Luis -> Pinheiro",
    "Pinheiro -> Bequimao",
    "Guimaraes -> Cedral",
]

DEMO_USERS = [
    ("admin", "admin@example.com", UserProfile.ROLE_ADMIN),
    ("manager", "manager@example.com", UserProfile.ROLE_MANAGER),
    ("operator", "operator@example.com", UserProfile.ROLE_USER),
]


class Command(BaseCommand):
    help = "Create demo vehicles, drivers, routes, refuels, maintenances and three accounts."

    def add_arguments(self, parser):
        parser.add_argument("--password", default="fleet1234", help="Password for the demo accounts.")
        parser.add_argument("--days", type=int, default=60, help="How many days of history to generate.")
        parser.add_argument("--reset", action="store_true", help="Delete existing fleet data first.")

    @transaction.atomic
    def handle(self, *args, **options):
        if options["reset"]:
            Maintenance.objects.all().delete()
            Refuel.objects.all().delete()
            Route.objects.all().delete()
            Driver.objects.all().delete()
            Vehicle.objects.all().delete()
            self.stdout.write("Existing fleet data removed.")

        self._seed_users(options["password"])

        vehicles = [
            Vehicle.objects.get_or_create(model=model, plate=plate, defaults={"odometer_km": km})[0]
            for model, plate, km in DEMO_VEHICLES
        ]
        drivers = [
            Driver.objects.get_or_create(
                name=name, defaults={"license_number": license_number, "phone": phone, "category": category}
            )[0]
            for name, license_number, phone, category in DEMO_DRIVERS
        ]

        today = timezone.localdate()
        stores = settings.FLEET_STORES
        days = max(options["days"], 1)
        route_count = refuel_count = 0
        for offset in range(days, 0, -1):
            day = today - timedelta(days=offset)
            for index, vehicle in enumerate(vehicles):
                if (offset + index) % 3:
                    continue
                vehicle.refresh_from_db()
                km_start = vehicle.odometer_km
                distance = Decimal(40 + ((offset * 7 + index * 13) % 90))
                register_route(
                    vehicle,
                    drivers[index % len(drivers)].name,
                    DEMO_ROUTES[(offset + index) % len(DEMO_ROUTES)],
                    km_start,
                    km_start + distance,
                    day,
                )
                route_count += 1
                if offset % 6 == index:
                    vehicle.refresh_from_db()
                    price = Decimal("5.89") + Decimal(index) / 10
                    register_refuel(
                        vehicle,
                        vehicle.odometer_km,
                        price,
                        (price * Decimal(35 + index * 5)).quantize(Decimal("0.01")),
                        "Posto Ipiranga",
                        stores[(offset + index) % len(stores)],
                        day,
                    )
                    refuel_count += 1

        for index, vehicle in enumerate(vehicles):
            Maintenance.objects.get_or_create(
                vehicle=vehicle,
                type="Oil change",
                defaults={
                    "km": vehicle.odometer_km,
                    "cost": Decimal("280.00") + index * 40,
                    "date": today - timedelta(days=10 + index),
                },
            )

        self.stdout.write(
            self.style.SUCCESS(
                f"Demo data ready: {len(vehicles)} vehicles, {len(drivers)} drivers, "
                f"{route_count} routes, {refuel_count} refuels."
            )
        )

    def _seed_users(self, password):
        User = get_user_model()
        for username, email, role in DEMO_USERS:
            user, created = User.objects.get_or_create(username=username, defaults={"email": email})
            if created:
                user.set_password(password)
                user.save()
            profile, _ = UserProfile.objects.get_or_create(user=user)
            profile.role = role
            if role == UserProfile.ROLE_ADMIN:
                for flag in UserProfile.PERMISSION_FIELDS:
                    setattr(profile, flag, True)
            elif role == UserProfile.ROLE_MANAGER:
                profile.manage_vehicles = True
                profile.edit_routes = True
                profile.add_refuels = True
                profile.generate_reports = True
            profile.save()
            if created:
                self.stdout.write(f"Created {role} account {username!r}")
