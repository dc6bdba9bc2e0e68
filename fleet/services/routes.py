from __future__ import annotations

import logging
from datetime import date as date_cls
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from fleet.exceptions import PreconditionFailed, ValidationFailure
from fleet.models import Driver, Route, Vehicle

logger = logging.getLogger(__name__)


def _to_km(value, field: str) -> Decimal:
    if value is None or value == "":
        raise ValidationFailure(f"{field} is required.")
    try:
        km = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationFailure(f"{field} must be a number.")
    if not km.is_finite():
        raise ValidationFailure(f"{field} must be a number.")
    if km < 0:
        raise ValidationFailure(f"{field} cannot be negative.")
    return km


@transaction.atomic
def start_route(vehicle: Vehicle, driver: Driver, name: str) -> Route:
    """Open a route for a vehicle.

    - km_start is taken from the vehicle's stored odometer, never from input
    - a vehicle with an in-progress route cannot start another one
    """
    if vehicle is None or driver is None or not (name or "").strip():
        raise ValidationFailure("Vehicle, driver and route name are required.")

    vehicle = Vehicle.objects.select_for_update().get(pk=vehicle.pk)
    if Route.objects.filter(vehicle=vehicle, status=Route.STATUS_IN_PROGRESS).exists():
        logger.warning("Vehicle %s already has a route in progress", vehicle.label)
        raise PreconditionFailed(f"{vehicle.label} already has a route in progress.")

    now = timezone.now()
    route = Route.objects.create(
        vehicle=vehicle,
        driver=driver,
        name=name.strip(),
        km_start=vehicle.odometer_km,
        status=Route.STATUS_IN_PROGRESS,
        started_at=now,
        date=timezone.localdate(now),
    )
    logger.info("Route #%s started: %s / %s at %s km", route.pk, vehicle.label, driver.name, route.km_start)
    return route


@transaction.atomic
def finish_route(route: Route, km_end) -> Route:
    """Close an in-progress route and move the vehicle odometer to km_end.

    The route update and the vehicle update commit together; when the
    precondition fails nothing is written.
    """
    km_end = _to_km(km_end, "Final odometer")

    route = Route.objects.select_for_update().get(pk=route.pk)
    vehicle = Vehicle.objects.select_for_update().get(pk=route.vehicle_id)

    if route.status != Route.STATUS_IN_PROGRESS:
        logger.warning("Route #%s finish rejected: status is %s", route.pk, route.status)
        raise PreconditionFailed("This route is not in progress.")
    if km_end <= route.km_start:
        logger.warning(
            "Route #%s finish rejected: %s km is not greater than start %s km",
            route.pk, km_end, route.km_start,
        )
        raise PreconditionFailed(
            f"Invalid odometer: {km_end} km must be greater than the start reading of {route.km_start} km."
        )

    route.km_end = km_end
    route.distance = km_end - route.km_start
    route.status = Route.STATUS_FINISHED
    route.ended_at = timezone.now()
    route.save(update_fields=['km_end', 'distance', 'status', 'ended_at'])

    vehicle.update_odometer(km_end)

    logger.info("Route #%s finished: %s km driven, %s now at %s km", route.pk, route.distance, vehicle.label, km_end)
    return route


def get_or_create_driver(name: str) -> Driver:
    """Find a driver by name (case-insensitive, trimmed) or create one."""
    clean = (name or "").strip()
    if not clean:
        raise ValidationFailure("Driver name is required.")
    driver = Driver.objects.filter(name__iexact=clean).first()
    if driver is None:
        driver = Driver.objects.create(name=clean)
        logger.info("Driver %r created from route entry", clean)
    return driver


@transaction.atomic
def register_route(
    vehicle: Vehicle,
    driver_name: str,
    name: str,
    km_start,
    km_end,
    route_date: date_cls | None = None,
) -> Route:
    """Record an already completed route in one step.

    Creates the driver by name when missing and moves the vehicle odometer
    to km_end.
    """
    if vehicle is None or not (name or "").strip():
        raise ValidationFailure("Vehicle and route name are required.")
    km_start = _to_km(km_start, "Initial odometer")
    km_end = _to_km(km_end, "Final odometer")
    if km_end <= km_start:
        raise PreconditionFailed(
            f"Invalid odometer: {km_end} km must be greater than the start reading of {km_start} km."
        )

    driver = get_or_create_driver(driver_name)
    vehicle = Vehicle.objects.select_for_update().get(pk=vehicle.pk)
    now = timezone.now()
    route = Route.objects.create(
        vehicle=vehicle,
        driver=driver,
        name=name.strip(),
        km_start=km_start,
        km_end=km_end,
        distance=km_end - km_start,
        status=Route.STATUS_FINISHED,
        started_at=now,
        ended_at=now,
        date=route_date or timezone.localdate(now),
    )
    vehicle.update_odometer(km_end)
    logger.info("Route #%s registered: %s km on %s", route.pk, route.distance, vehicle.label)
    return route


@transaction.atomic
def update_route(route: Route) -> Route:
    """Persist an edited route, recomputing distance from the readings.

    A route in progress keeps the readings it was started with; only
    finish_route sets its km_end. A finished route always keeps a km_end.
    """
    stored = Route.objects.select_for_update().get(pk=route.pk)
    if stored.status == Route.STATUS_IN_PROGRESS:
        if (route.vehicle_id != stored.vehicle_id or route.km_start != stored.km_start
                or route.km_end is not None):
            logger.warning("Route #%s edit rejected: vehicle or odometer changed while in progress", route.pk)
            raise PreconditionFailed("The vehicle and odometer of a route in progress are fixed until the route is finished.")
        route.distance = None
    else:
        km_end = _to_km(route.km_end, "Final odometer")
        if km_end <= route.km_start:
            raise PreconditionFailed(
                f"Invalid odometer: {km_end} km must be greater than the start reading of {route.km_start} km."
            )
        route.km_end = km_end
        route.distance = km_end - route.km_start
    route.status = stored.status
    route.save()
    logger.info("Route #%s updated", route.pk)
    return route


def delete_route(route: Route) -> None:
    pk = route.pk
    route.delete()
    logger.info("Route #%s deleted", pk)
