"""Permission-flag helpers shared by the HTML views, the API and the sidebar."""

from django.contrib import messages
from rest_framework import permissions

from .models import UserProfile


PERMISSION_LABELS = {
    'view_vehicles': 'View vehicles',
    'manage_vehicles': 'Manage vehicles',
    'view_routes': 'View routes',
    'edit_routes': 'Edit routes',
    'view_refuels': 'View refuels',
    'add_refuels': 'Register refuels',
    'generate_reports': 'Generate reports',
    'manage_users': 'Manage users',
}

PERMISSION_GROUPS = [
    ('Fleet', ['view_vehicles', 'manage_vehicles']),
    ('Routes', ['view_routes', 'edit_routes']),
    ('Refuel', ['view_refuels', 'add_refuels']),
    ('Reports', ['generate_reports']),
    ('Administration', ['manage_users']),
]

# (url name, label, icon); the Users entry is appended only for user managers
NAV_LINKS = [
    ('dashboard', 'Dashboard', 'speedometer2'),
    ('vehicle-list', 'Vehicles', 'truck'),
    ('maintenance-list', 'Maintenances', 'wrench'),
    ('driver-list', 'Drivers', 'person-vcard'),
    ('route-list', 'Routes', 'map'),
    ('refuel-list', 'Refuels', 'fuel-pump'),
    ('report-index', 'Reports', 'file-earmark-text'),
]
USERS_LINK = ('user-list', 'Users', 'people')


def get_profile(user):
    """
    Returns the UserProfile of an authenticated user, or None.
    """
    if not user or not user.is_authenticated:
        return None
    return UserProfile.objects.filter(user=user).first()


def is_admin(user):
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    profile = get_profile(user)
    return bool(profile and profile.role == UserProfile.ROLE_ADMIN)


def has_flag(user, flag):
    """
    True when the user holds the given permission flag.
    Superusers and the admin role pass every check.
    """
    if flag not in PERMISSION_LABELS:
        raise ValueError(f"Unknown permission flag: {flag}")
    if not user or not user.is_authenticated:
        return False
    if user.is_superuser:
        return True
    profile = get_profile(user)
    if profile is None:
        return False
    return profile.role == UserProfile.ROLE_ADMIN or bool(getattr(profile, flag))


def can_manage_users(user):
    return has_flag(user, 'manage_users')


def check_permission(request, flag):
    """
    1. Look up the user's profile.
    2. Check the flag (admin role and superusers always pass).

    Returns:
      (True, profile) if allowed,
      (False, profile) otherwise, after queueing an error message.
    """
    profile = get_profile(request.user)
    if has_flag(request.user, flag):
        return True, profile
    messages.error(
        request,
        f"You do not have permission to perform this action ({PERMISSION_LABELS[flag]}).",
    )
    return False, profile


def navigation_links(user):
    links = list(NAV_LINKS)
    if can_manage_users(user):
        links.append(USERS_LINK)
    return links


class HasFleetPermission(permissions.BasePermission):
    """DRF permission mapping safe methods to a view flag and writes to an edit flag.

    Views declare ``read_flag`` and ``write_flag``.
    """

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            flag = getattr(view, 'read_flag', None)
        else:
            flag = getattr(view, 'write_flag', None)
        if flag is None:
            return True
        return has_flag(request.user, flag)
