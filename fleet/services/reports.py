from __future__ import annotations

import logging
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date as date_cls
from decimal import Decimal

from django.db.models import Sum
from django.utils import timezone

from fleet.exceptions import ValidationFailure
from fleet.models import Refuel, Route, Vehicle

logger = logging.getLogger(__name__)


def current_month_range(today: date_cls | None = None):
    """First and last day of the month containing ``today``."""
    today = today or timezone.localdate()
    last_day = monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


@dataclass
class ReportData:
    start: date_cls
    end: date_cls
    vehicle: Vehicle | None = None
    routes: list = field(default_factory=list)
    refuels: list = field(default_factory=list)
    total_distance: Decimal = Decimal('0.00')
    total_liters: Decimal = Decimal('0.00')
    total_cost: Decimal = Decimal('0.00')

    @property
    def route_count(self) -> int:
        return len(self.routes)

    @property
    def avg_consumption(self):
        """km/L over the period, None when no fuel was logged."""
        if not self.total_liters:
            return None
        return (self.total_distance / self.total_liters).quantize(Decimal('0.01'))

    @property
    def avg_consumption_display(self) -> str:
        value = self.avg_consumption
        return "-" if value is None else f"{value} km/L"

    @property
    def filename(self) -> str:
        return f"fleet_report_{self.start.isoformat()}_{self.end.isoformat()}.pdf"


def filter_report(start: date_cls | None = None, end: date_cls | None = None, vehicle: Vehicle | None = None) -> ReportData:
    """Collect routes and refuels whose date falls inside [start, end]."""
    default_start, default_end = current_month_range()
    start = start or default_start
    end = end or default_end
    if end < start:
        raise ValidationFailure("The end date must not be before the start date.")

    routes = Route.objects.select_related('vehicle', 'driver').filter(date__gte=start, date__lte=end)
    refuels = Refuel.objects.select_related('vehicle').filter(date__gte=start, date__lte=end)
    if vehicle is not None:
        routes = routes.filter(vehicle=vehicle)
        refuels = refuels.filter(vehicle=vehicle)
    routes = routes.order_by('date', 'started_at')
    refuels = refuels.order_by('date', 'created_at')

    route_totals = routes.aggregate(distance=Sum('distance'))
    refuel_totals = refuels.aggregate(liters=Sum('liters'), cost=Sum('total_price'))

    report = ReportData(
        start=start,
        end=end,
        vehicle=vehicle,
        routes=list(routes),
        refuels=list(refuels),
        total_distance=route_totals['distance'] or Decimal('0.00'),
        total_liters=refuel_totals['liters'] or Decimal('0.00'),
        total_cost=refuel_totals['cost'] or Decimal('0.00'),
    )
    logger.info(
        "Report %s..%s%s: %s routes, %s refuels",
        start, end, f" for {vehicle.label}" if vehicle else "", report.route_count, len(report.refuels),
    )
    return report
