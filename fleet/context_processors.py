from typing import Dict, List

from django.contrib.auth.models import AnonymousUser

from .models import UserProfile
from .permissions import NAV_LINKS, PERMISSION_LABELS, USERS_LINK, get_profile


def navigation(request) -> Dict[str, object]:
    """Context for the sidebar and the action buttons.

    Exposes:
    - nav_links: (url name, label, icon) tuples the user may open.
      The Users entry only appears for admins and users with manage_users.
    - fleet_profile: the user's profile (role display in the footer).
    - fleet_perms: flag name -> bool, with the admin override applied.
    """
    user = getattr(request, "user", None)
    if not user or isinstance(user, AnonymousUser) or not user.is_authenticated:
        return {"nav_links": [], "fleet_profile": None, "fleet_perms": {}}

    profile = get_profile(user)
    full_access = user.is_superuser or (profile is not None and profile.role == UserProfile.ROLE_ADMIN)
    perms = {
        flag: full_access or bool(profile and getattr(profile, flag))
        for flag in PERMISSION_LABELS
    }
    links: List[tuple] = list(NAV_LINKS)
    if perms["manage_users"]:
        links.append(USERS_LINK)
    return {"nav_links": links, "fleet_profile": profile, "fleet_perms": perms}
