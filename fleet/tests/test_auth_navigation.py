from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse

from fleet.context_processors import navigation
from fleet.models import UserProfile
from fleet.permissions import has_flag, navigation_links

User = get_user_model()


class ProfileSignalTests(TestCase):
    def test_new_user_gets_default_flags(self):
        user = User.objects.create_user(username="ana", email="ana@example.com", password="pass")
        profile = user.fleet_profile
        self.assertEqual(profile.role, UserProfile.ROLE_USER)
        self.assertEqual(
            profile.permissions(),
            {
                "view_vehicles": True,
                "manage_vehicles": False,
                "view_routes": True,
                "edit_routes": False,
                "view_refuels": True,
                "add_refuels": False,
                "generate_reports": False,
                "manage_users": False,
            },
        )

    def test_superuser_gets_admin_profile(self):
        user = User.objects.create_superuser(username="root", email="root@example.com", password="pass")
        self.assertEqual(user.fleet_profile.role, UserProfile.ROLE_ADMIN)
        self.assertTrue(all(user.fleet_profile.permissions().values()))


class NavigationTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="ana", email="ana@example.com", password="pass")
        self.factory = RequestFactory()

    def _links(self, user):
        request = self.factory.get("/")
        request.user = user
        return [name for name, _label, _icon in navigation(request)["nav_links"]]

    def test_users_entry_hidden_without_manage_users(self):
        links = self._links(self.user)
        self.assertNotIn("user-list", links)
        self.assertEqual(
            links,
            ["dashboard", "vehicle-list", "maintenance-list", "driver-list", "route-list", "refuel-list", "report-index"],
        )

    def test_users_entry_shown_with_manage_users_flag(self):
        profile = self.user.fleet_profile
        profile.manage_users = True
        profile.save()
        self.assertIn("user-list", self._links(self.user))

    def test_users_entry_shown_for_admin_role(self):
        profile = self.user.fleet_profile
        profile.role = UserProfile.ROLE_ADMIN
        profile.save()
        self.assertIn("user-list", self._links(self.user))
        self.assertTrue(has_flag(self.user, "generate_reports"))

    def test_rendered_sidebar_hides_users_link(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse("dashboard"))
        self.assertEqual(response.status_code, 200)
        self.assertNotContains(response, reverse("user-list"))
        self.assertContains(response, reverse("route-list"))

    def test_anonymous_gets_no_links(self):
        from django.contrib.auth.models import AnonymousUser

        request = self.factory.get("/")
        request.user = AnonymousUser()
        self.assertEqual(navigation(request)["nav_links"], [])

    def test_unknown_flag_is_an_error(self):
        with self.assertRaises(ValueError):
            has_flag(self.user, "fly_planes")

    def test_navigation_links_helper(self):
        self.assertEqual(len(navigation_links(self.user)), 7)


class LoginTests(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="ana", email="ana@example.com", password="s3cret-pass")

    def test_login_with_username_resolves_email(self):
        response = self.client.post(reverse("login"), {"username": "ana", "password": "s3cret-pass"})
        self.assertRedirects(response, reverse("dashboard"))
        self.assertEqual(int(self.client.session["_auth_user_id"]), self.user.pk)

    def test_login_with_email(self):
        response = self.client.post(reverse("login"), {"username": "ANA@example.com", "password": "s3cret-pass"})
        self.assertRedirects(response, reverse("dashboard"))

    def test_wrong_password(self):
        response = self.client.post(reverse("login"), {"username": "ana", "password": "nope"})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Invalid username or password.")
        self.assertNotIn("_auth_user_id", self.client.session)

    def test_unknown_username(self):
        response = self.client.post(reverse("login"), {"username": "ghost", "password": "s3cret-pass"})
        self.assertContains(response, "Invalid username or password.")

    def test_pages_require_login(self):
        response = self.client.get(reverse("vehicle-list"))
        self.assertEqual(response.status_code, 302)
        self.assertIn(reverse("login"), response["Location"])

    def test_logout_asks_for_confirmation(self):
        self.client.force_login(self.user)
        response = self.client.get(reverse("logout"))
        self.assertContains(response, "Log out?")
        self.assertIn("_auth_user_id", self.client.session)
        response = self.client.post(reverse("logout"))
        self.assertRedirects(response, reverse("login"))
        self.assertNotIn("_auth_user_id", self.client.session)

    def test_failed_login_logs_the_email_tried(self):
        with self.assertLogs("fleet.signals", level="WARNING") as logs:
            self.client.post(reverse("login"), {"username": "ana", "password": "nope"})
        self.assertIn("Failed login for ana@example.com", logs.output[0])
