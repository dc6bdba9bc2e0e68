import logging
from datetime import MAXYEAR, MINYEAR

from django.conf import settings
from django.contrib import messages
from django.contrib.auth import get_user_model, login, logout
from django.contrib.auth.decorators import login_required
from django.db import DatabaseError
from django.db.models import ProtectedError
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.utils import timezone
from django.views.decorators.http import require_GET

from .exceptions import FleetError
from .forms import (
    DriverForm,
    LoginForm,
    MaintenanceForm,
    RefuelForm,
    ReportFilterForm,
    RouteEditForm,
    RouteFinishForm,
    RouteRegisterForm,
    RouteStartForm,
    UserForm,
    VehicleForm,
)
from .models import Driver, Maintenance, Refuel, Route, Vehicle
from .pdf_utils import generate_report_pdf
from .permissions import check_permission
from .services import dashboard as dashboard_service
from .services import refuels as refuel_service
from .services import reports as report_service
from .services import routes as route_service

logger = logging.getLogger(__name__)
User = get_user_model()


def _form_page(request, form, title, profile, cancel_url, **extra):
    context = {"form": form, "title": title, "fleet_profile": profile, "cancel_url": cancel_url}
    context.update(extra)
    return render(request, "fleet/form.html", context)


def _confirm_delete(request, obj, title, cancel_url):
    return render(request, "fleet/confirm_delete.html", {
        "object": obj,
        "title": title,
        "cancel_url": cancel_url,
    })


def _delete(request, obj, success_url):
    """Delete outright; referenced vehicles and drivers are refused, not cascaded."""
    try:
        obj.delete()
    except ProtectedError:
        messages.error(request, f"{obj} is referenced by routes, refuels or maintenances and cannot be deleted.")
        return redirect(success_url)
    except DatabaseError:
        logger.exception("Failed to delete %r", obj)
        messages.error(request, "The record could not be deleted. Please try again.")
        return redirect(success_url)
    messages.success(request, f"{obj} deleted.")
    return redirect(success_url)


def _save_form(request, form, success_message):
    try:
        obj = form.save()
    except DatabaseError:
        logger.exception("Failed to save %s", form.__class__.__name__)
        messages.error(request, "The record could not be saved. Please try again.")
        return None
    messages.success(request, success_message)
    return obj


# --------------------------------
# 1. Authentication
# --------------------------------
def login_view(request):
    if request.user.is_authenticated:
        return redirect("dashboard")
    if request.method == "POST":
        form = LoginForm(request, data=request.POST)
        if form.is_valid():
            login(request, form.get_user())
            next_url = request.POST.get("next") or request.GET.get("next")
            if next_url and next_url.startswith("/"):
                return redirect(next_url)
            return redirect("dashboard")
    else:
        form = LoginForm(request)
    return render(request, "fleet/login.html", {"form": form, "next": request.GET.get("next", "")})


@login_required
def logout_view(request):
    """GET asks for confirmation; POST logs out."""
    if request.method == "POST":
        logout(request)
        messages.info(request, "You have been logged out.")
        return redirect("login")
    return render(request, "fleet/logout_confirm.html")


# --------------------------------
# 2. Dashboard
# --------------------------------
def _dashboard_payload(request):
    today = timezone.localdate()
    try:
        year = int(request.GET.get("year", today.year))
    except (TypeError, ValueError):
        year = today.year
    if not MINYEAR <= year <= MAXYEAR:
        year = today.year
    reference = today if year == today.year else today.replace(year=year, month=12, day=31)
    return dashboard_service.build_dashboard(
        Vehicle.objects.all(),
        Route.objects.only("vehicle", "distance", "date"),
        Refuel.objects.only("liters", "total_price", "date"),
        reference,
    )


@login_required
def dashboard(request):
    data = _dashboard_payload(request)
    return render(request, "fleet/dashboard.html", {
        "data": data,
        "month_rows": list(zip(
            data["months"],
            data["km_by_month"],
            data["liters_by_month"],
            data["cost_by_month"],
            data["consumption_by_month"],
        )),
        "active_routes": Route.objects.select_related("vehicle", "driver").filter(status=Route.STATUS_IN_PROGRESS),
    })


@login_required
@require_GET
def dashboard_data(request):
    """JSON copy of the dashboard numbers; ?year=YYYY selects the bucket year."""
    return JsonResponse(_dashboard_payload(request))


# --------------------------------
# 3. Vehicles
# --------------------------------
@login_required
def vehicle_list(request):
    allowed, profile = check_permission(request, "view_vehicles")
    if not allowed:
        return redirect("dashboard")
    vehicles = Vehicle.objects.all()
    return render(request, "fleet/vehicle_list.html", {"vehicles": vehicles, "fleet_profile": profile})


@login_required
def vehicle_create(request):
    allowed, profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("vehicle-list")
    form = VehicleForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "Vehicle saved."):
            return redirect("vehicle-list")
    return _form_page(request, form, "New vehicle", profile, "vehicle-list")


@login_required
def vehicle_update(request, pk):
    allowed, profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("vehicle-list")
    vehicle = get_object_or_404(Vehicle, pk=pk)
    form = VehicleForm(request.POST or None, instance=vehicle)
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "Vehicle updated."):
            return redirect("vehicle-list")
    return _form_page(request, form, f"Edit {vehicle.label}", profile, "vehicle-list")


@login_required
def vehicle_delete(request, pk):
    allowed, _profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("vehicle-list")
    vehicle = get_object_or_404(Vehicle, pk=pk)
    if request.method == "POST":
        return _delete(request, vehicle, "vehicle-list")
    return _confirm_delete(request, vehicle, "Delete vehicle", "vehicle-list")


# --------------------------------
# 4. Drivers
# --------------------------------
@login_required
def driver_list(request):
    allowed, profile = check_permission(request, "view_vehicles")
    if not allowed:
        return redirect("dashboard")
    return render(request, "fleet/driver_list.html", {"drivers": Driver.objects.all(), "fleet_profile": profile})


@login_required
def driver_create(request):
    allowed, profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("driver-list")
    form = DriverForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "Driver saved."):
            return redirect("driver-list")
    return _form_page(request, form, "New driver", profile, "driver-list")


@login_required
def driver_update(request, pk):
    allowed, profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("driver-list")
    driver = get_object_or_404(Driver, pk=pk)
    form = DriverForm(request.POST or None, instance=driver)
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "Driver updated."):
            return redirect("driver-list")
    return _form_page(request, form, f"Edit {driver.name}", profile, "driver-list")


@login_required
def driver_delete(request, pk):
    allowed, _profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("driver-list")
    driver = get_object_or_404(Driver, pk=pk)
    if request.method == "POST":
        return _delete(request, driver, "driver-list")
    return _confirm_delete(request, driver, "Delete driver", "driver-list")


# --------------------------------
# 5. Maintenances
# --------------------------------
@login_required
def maintenance_list(request):
    allowed, profile = check_permission(request, "view_vehicles")
    if not allowed:
        return redirect("dashboard")
    maintenances = Maintenance.objects.select_related("vehicle")
    return render(request, "fleet/maintenance_list.html", {"maintenances": maintenances, "fleet_profile": profile})


@login_required
def maintenance_create(request):
    allowed, profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("maintenance-list")
    form = MaintenanceForm(request.POST or None, initial={"date": timezone.localdate()})
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "Maintenance saved."):
            return redirect("maintenance-list")
    return _form_page(request, form, "New maintenance", profile, "maintenance-list")


@login_required
def maintenance_update(request, pk):
    allowed, profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("maintenance-list")
    maintenance = get_object_or_404(Maintenance, pk=pk)
    form = MaintenanceForm(request.POST or None, instance=maintenance)
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "Maintenance updated."):
            return redirect("maintenance-list")
    return _form_page(request, form, "Edit maintenance", profile, "maintenance-list")


@login_required
def maintenance_delete(request, pk):
    allowed, _profile = check_permission(request, "manage_vehicles")
    if not allowed:
        return redirect("maintenance-list")
    maintenance = get_object_or_404(Maintenance, pk=pk)
    if request.method == "POST":
        return _delete(request, maintenance, "maintenance-list")
    return _confirm_delete(request, maintenance, "Delete maintenance", "maintenance-list")


# --------------------------------
# 6. Routes
# --------------------------------
@login_required
def route_list(request):
    allowed, profile = check_permission(request, "view_routes")
    if not allowed:
        return redirect("dashboard")
    routes = Route.objects.select_related("vehicle", "driver")
    status = request.GET.get("status")
    if status in (Route.STATUS_IN_PROGRESS, Route.STATUS_FINISHED):
        routes = routes.filter(status=status)
    return render(request, "fleet/route_list.html", {
        "routes": routes,
        "status": status or "",
        "status_choices": Route.STATUS_CHOICES,
        "fleet_profile": profile,
    })


@login_required
def route_start(request):
    allowed, profile = check_permission(request, "edit_routes")
    if not allowed:
        return redirect("route-list")
    form = RouteStartForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            route = route_service.start_route(
                form.cleaned_data["vehicle"],
                form.cleaned_data["driver"],
                form.cleaned_data["name"],
            )
        except FleetError as exc:
            messages.error(request, str(exc))
        except DatabaseError:
            logger.exception("Failed to start route")
            messages.error(request, "The route could not be started. Please try again.")
        else:
            messages.success(request, f"Route started at {route.km_start} km.")
            return redirect("route-list")
    return _form_page(
        request, form, "Start route", profile, "route-list",
        help_text="The initial odometer is taken from the vehicle's current reading.",
    )


@login_required
def route_finish(request, pk):
    allowed, profile = check_permission(request, "edit_routes")
    if not allowed:
        return redirect("route-list")
    route = get_object_or_404(Route.objects.select_related("vehicle", "driver"), pk=pk)
    if route.is_finished:
        messages.error(request, "This route is not in progress.")
        return redirect("route-list")
    form = RouteFinishForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        try:
            route = route_service.finish_route(route, form.cleaned_data["km_end"])
        except FleetError as exc:
            messages.error(request, str(exc))
        except DatabaseError:
            logger.exception("Failed to finish route #%s", route.pk)
            messages.error(request, "The route could not be finished. Please try again.")
        else:
            messages.success(request, f"Route finished: {route.distance} km driven.")
            return redirect("route-list")
    return _form_page(
        request, form, f"Finish route: {route.name}", profile, "route-list",
        help_text=f"{route.vehicle.label} started at {route.km_start} km.",
    )


@login_required
def route_register(request):
    allowed, profile = check_permission(request, "edit_routes")
    if not allowed:
        return redirect("route-list")
    form = RouteRegisterForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        data = form.cleaned_data
        try:
            route = route_service.register_route(
                data["vehicle"], data["driver_name"], data["name"],
                data["km_start"], data["km_end"], data["date"],
            )
        except FleetError as exc:
            messages.error(request, str(exc))
        except DatabaseError:
            logger.exception("Failed to register route")
            messages.error(request, "The route could not be saved. Please try again.")
        else:
            messages.success(request, f"Route registered: {route.distance} km.")
            return redirect("route-list")
    return _form_page(
        request, form, "Register completed route", profile, "route-list",
        driver_names=Driver.objects.order_by("name").values_list("name", flat=True),
    )


@login_required
def route_update(request, pk):
    allowed, profile = check_permission(request, "edit_routes")
    if not allowed:
        return redirect("route-list")
    route = get_object_or_404(Route, pk=pk)
    form = RouteEditForm(request.POST or None, instance=route)
    if request.method == "POST" and form.is_valid():
        try:
            route_service.update_route(form.save(commit=False))
        except FleetError as exc:
            messages.error(request, str(exc))
        except DatabaseError:
            logger.exception("Failed to update route #%s", pk)
            messages.error(request, "The route could not be saved. Please try again.")
        else:
            messages.success(request, "Route updated.")
            return redirect("route-list")
    return _form_page(request, form, "Edit route", profile, "route-list")


@login_required
def route_delete(request, pk):
    allowed, _profile = check_permission(request, "edit_routes")
    if not allowed:
        return redirect("route-list")
    route = get_object_or_404(Route, pk=pk)
    if request.method == "POST":
        try:
            route_service.delete_route(route)
        except DatabaseError:
            logger.exception("Failed to delete route #%s", pk)
            messages.error(request, "The route could not be deleted. Please try again.")
        else:
            messages.success(request, "Route deleted.")
        return redirect("route-list")
    return _confirm_delete(request, route, "Delete route", "route-list")


# --------------------------------
# 7. Refuels
# --------------------------------
@login_required
def refuel_list(request):
    allowed, profile = check_permission(request, "view_refuels")
    if not allowed:
        return redirect("dashboard")
    store = request.GET.get("store", "all")
    summary = refuel_service.monthly_summary(store=store)
    return render(request, "fleet/refuel_list.html", {
        "refuels": Refuel.objects.select_related("vehicle"),
        "summary": summary,
        "store": store,
        "stores": settings.FLEET_STORES,
        "fleet_profile": profile,
    })


@login_required
def refuel_create(request):
    allowed, profile = check_permission(request, "add_refuels")
    if not allowed:
        return redirect("refuel-list")
    initial = {}
    vehicle_id = request.GET.get("vehicle")
    if vehicle_id and vehicle_id.isdigit():
        vehicle = Vehicle.objects.filter(pk=vehicle_id).first()
        if vehicle:
            initial["vehicle"] = vehicle
    form = RefuelForm(request.POST or None, initial=initial)
    if request.method == "POST" and form.is_valid():
        data = form.cleaned_data
        try:
            refuel = refuel_service.register_refuel(
                data["vehicle"], data["km_current"], data["price_per_liter"],
                data["total_price"], data["station"], data["store"], data["date"],
            )
        except FleetError as exc:
            messages.error(request, str(exc))
        except DatabaseError:
            logger.exception("Failed to register refuel")
            messages.error(request, "The refuel could not be saved. Please try again.")
        else:
            messages.success(request, f"Refuel saved: {refuel.liters} L.")
            return redirect("refuel-list")
    return _form_page(
        request, form, "Register refuel", profile, "refuel-list",
        help_text="Liters are calculated from the total paid and the price per liter.",
    )


@login_required
def refuel_delete(request, pk):
    allowed, _profile = check_permission(request, "add_refuels")
    if not allowed:
        return redirect("refuel-list")
    refuel = get_object_or_404(Refuel, pk=pk)
    if request.method == "POST":
        return _delete(request, refuel, "refuel-list")
    return _confirm_delete(request, refuel, "Delete refuel", "refuel-list")


# --------------------------------
# 8. Reports
# --------------------------------
def _report_from_request(request):
    form = ReportFilterForm(request.GET or None)
    report = None
    if form.is_bound and form.is_valid():
        try:
            report = report_service.filter_report(
                form.cleaned_data.get("start"),
                form.cleaned_data.get("end"),
                form.cleaned_data.get("vehicle"),
            )
        except FleetError as exc:
            form.add_error(None, str(exc))
    elif not form.is_bound:
        start, end = report_service.current_month_range()
        form = ReportFilterForm(initial={"start": start, "end": end})
        report = report_service.filter_report(start, end)
    return form, report


@login_required
def report_index(request):
    allowed, profile = check_permission(request, "generate_reports")
    if not allowed:
        return redirect("dashboard")
    form, report = _report_from_request(request)
    return render(request, "fleet/report.html", {
        "form": form,
        "report": report,
        "query": request.GET.urlencode(),
        "fleet_profile": profile,
    })


@login_required
def report_pdf(request):
    allowed, _profile = check_permission(request, "generate_reports")
    if not allowed:
        return redirect("dashboard")
    form, report = _report_from_request(request)
    if report is None:
        messages.error(request, "Please fix the report filters.")
        return redirect("report-index")
    pdf = generate_report_pdf(report)
    response = HttpResponse(pdf, content_type="application/pdf")
    response["Content-Disposition"] = f'attachment; filename="{report.filename}"'
    return response


# --------------------------------
# 9. Users
# --------------------------------
@login_required
def user_list(request):
    allowed, profile = check_permission(request, "manage_users")
    if not allowed:
        return redirect("dashboard")
    users = User.objects.select_related("fleet_profile").order_by("username")
    return render(request, "fleet/user_list.html", {"users": users, "fleet_profile": profile})


@login_required
def user_create(request):
    allowed, profile = check_permission(request, "manage_users")
    if not allowed:
        return redirect("dashboard")
    form = UserForm(request.POST or None)
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "User created."):
            return redirect("user-list")
    return render(request, "fleet/user_form.html", {"form": form, "title": "New user", "fleet_profile": profile})


@login_required
def user_update(request, pk):
    allowed, profile = check_permission(request, "manage_users")
    if not allowed:
        return redirect("dashboard")
    target = get_object_or_404(User, pk=pk)
    form = UserForm(request.POST or None, instance=target)
    if request.method == "POST" and form.is_valid():
        if _save_form(request, form, "User updated."):
            return redirect("user-list")
    return render(request, "fleet/user_form.html", {
        "form": form,
        "title": f"Edit {target.username}",
        "fleet_profile": profile,
    })


@login_required
def user_delete(request, pk):
    allowed, _profile = check_permission(request, "manage_users")
    if not allowed:
        return redirect("dashboard")
    target = get_object_or_404(User, pk=pk)
    if target == request.user:
        messages.error(request, "You cannot delete your own account.")
        return redirect("user-list")
    if request.method == "POST":
        return _delete(request, target, "user-list")
    return _confirm_delete(request, target, "Delete user", "user-list")
