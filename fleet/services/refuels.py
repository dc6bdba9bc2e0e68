from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date as date_cls
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone

from fleet.exceptions import ValidationFailure
from fleet.models import Refuel, Vehicle

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")


def _q(x: Decimal) -> Decimal:
    return x.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _decimal(value, field: str) -> Decimal:
    if value is None or value == "":
        raise ValidationFailure(f"{field} is required.")
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationFailure(f"{field} must be a number.")
    if not number.is_finite():
        raise ValidationFailure(f"{field} must be a number.")
    return number


def compute_liters(total_price, price_per_liter) -> Decimal:
    """liters = total price / price per liter, rounded to two places."""
    total = _decimal(total_price, "Total price")
    price = _decimal(price_per_liter, "Price per liter")
    if price <= 0:
        raise ValidationFailure("Price per liter must be greater than zero.")
    if total < 0:
        raise ValidationFailure("Total price cannot be negative.")
    return _q(total / price)


@transaction.atomic
def register_refuel(
    vehicle: Vehicle,
    km_current,
    price_per_liter,
    total_price,
    station: str,
    store: str,
    refuel_date: date_cls | None = None,
) -> Refuel:
    """Record a refuel and move the vehicle odometer to the reading taken at the pump."""
    if vehicle is None or not (station or "").strip() or not (store or "").strip():
        raise ValidationFailure("Vehicle, station and store are required.")
    km = _decimal(km_current, "Current odometer")
    if km < 0:
        raise ValidationFailure("Current odometer cannot be negative.")
    liters = compute_liters(total_price, price_per_liter)

    vehicle = Vehicle.objects.select_for_update().get(pk=vehicle.pk)
    refuel = Refuel.objects.create(
        vehicle=vehicle,
        km_current=km,
        liters=liters,
        price_per_liter=_decimal(price_per_liter, "Price per liter"),
        total_price=_decimal(total_price, "Total price"),
        station=station.strip(),
        store=store.strip(),
        date=refuel_date or timezone.localdate(),
    )
    vehicle.update_odometer(km)
    logger.info("Refuel #%s: %s L for %s at %s km", refuel.pk, liters, vehicle.label, km)
    return refuel


@dataclass
class RefuelSummary:
    refuels: list
    total_liters: Decimal
    total_spent: Decimal


def monthly_summary(today: date_cls | None = None, store: str | None = None) -> RefuelSummary:
    """Refuels of the current month, optionally for a single paying store."""
    today = today or timezone.localdate()
    qs = Refuel.objects.select_related('vehicle').filter(date__year=today.year, date__month=today.month)
    if store and store != 'all':
        qs = qs.filter(store=store)
    totals = qs.aggregate(liters=Sum('liters'), spent=Sum('total_price'))
    return RefuelSummary(
        refuels=list(qs),
        total_liters=totals['liters'] or Decimal('0.00'),
        total_spent=totals['spent'] or Decimal('0.00'),
    )
