"""Dashboard aggregation.

Everything here works on already-loaded lists of vehicles, routes and
refuels so the same numbers feed the HTML page and the JSON endpoint.

Keys of build_dashboard():
  - totals: vehicles, routes, refuels, km, liters, cost
  - avg_consumption: km per liter over everything, None when no fuel was logged
  - months: 12 labels, Jan..Dec of the reference year
  - km_by_month, liters_by_month, cost_by_month, consumption_by_month
  - comparison: current vs previous month with percentage variation
  - ranking: top 3 vehicles by distance
"""

from __future__ import annotations

from datetime import date as date_cls

from dateutil.relativedelta import relativedelta

MONTH_LABELS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def _num(value) -> float:
    return float(value or 0)


def consumption(km, liters):
    """km per liter, or None ("no data") when no liters were logged."""
    liters = _num(liters)
    if liters == 0:
        return None
    return round(_num(km) / liters, 2)


def pct_change(curr, prev) -> float:
    curr, prev = _num(curr), _num(prev)
    if prev == 0:
        return 0.0
    return round(((curr - prev) / prev) * 100.0, 1)


def monthly_buckets(routes, refuels, year: int):
    km = [0.0] * 12
    liters = [0.0] * 12
    cost = [0.0] * 12
    for route in routes:
        if route.date and route.date.year == year:
            km[route.date.month - 1] += _num(route.distance)
    for refuel in refuels:
        if refuel.date and refuel.date.year == year:
            liters[refuel.date.month - 1] += _num(refuel.liters)
            cost[refuel.date.month - 1] += _num(refuel.total_price)
    per_month = [consumption(k, l) for k, l in zip(km, liters)]
    return {
        'km_by_month': [round(v, 2) for v in km],
        'liters_by_month': [round(v, 2) for v in liters],
        'cost_by_month': [round(v, 2) for v in cost],
        'consumption_by_month': per_month,
    }


def _month_totals(routes, refuels, year: int, month: int):
    km = sum(_num(r.distance) for r in routes if r.date and (r.date.year, r.date.month) == (year, month))
    month_refuels = [f for f in refuels if f.date and (f.date.year, f.date.month) == (year, month)]
    liters = sum(_num(f.liters) for f in month_refuels)
    cost = sum(_num(f.total_price) for f in month_refuels)
    return {
        'km': round(km, 2),
        'liters': round(liters, 2),
        'cost': round(cost, 2),
        'consumption': consumption(km, liters),
    }


def month_comparison(routes, refuels, reference: date_cls):
    """Current month against the previous one (January compares with December)."""
    previous = reference - relativedelta(months=1)
    curr = _month_totals(routes, refuels, reference.year, reference.month)
    prev = _month_totals(routes, refuels, previous.year, previous.month)
    return {
        'current': curr,
        'previous': prev,
        'variation': {
            key: pct_change(curr[key], prev[key])
            for key in ('km', 'liters', 'cost', 'consumption')
        },
    }


def vehicle_ranking(vehicles, routes, limit: int = 3):
    """Top vehicles by total distance, each with its share of the leader's distance."""
    distance_by_vehicle = {}
    for route in routes:
        distance_by_vehicle[route.vehicle_id] = distance_by_vehicle.get(route.vehicle_id, 0.0) + _num(route.distance)

    rows = [
        {'vehicle_id': v.pk, 'label': v.label, 'distance': round(distance_by_vehicle.get(v.pk, 0.0), 2)}
        for v in vehicles
    ]
    rows.sort(key=lambda row: row['distance'], reverse=True)
    rows = rows[:limit]
    leader = rows[0]['distance'] if rows else 0
    for row in rows:
        row['percent'] = round(row['distance'] / leader * 100.0, 1) if leader else 0.0
    return rows


def build_dashboard(vehicles, routes, refuels, reference: date_cls):
    vehicles, routes, refuels = list(vehicles), list(routes), list(refuels)
    total_km = sum(_num(r.distance) for r in routes)
    total_liters = sum(_num(f.liters) for f in refuels)
    total_cost = sum(_num(f.total_price) for f in refuels)

    data = {
        'year': reference.year,
        'totals': {
            'vehicles': len(vehicles),
            'routes': len(routes),
            'refuels': len(refuels),
            'km': round(total_km, 2),
            'liters': round(total_liters, 2),
            'cost': round(total_cost, 2),
        },
        'avg_consumption': consumption(total_km, total_liters),
        'months': MONTH_LABELS,
        'comparison': month_comparison(routes, refuels, reference),
        'ranking': vehicle_ranking(vehicles, routes),
    }
    data.update(monthly_buckets(routes, refuels, reference.year))
    return data
