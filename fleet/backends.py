from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend


class EmailBackend(ModelBackend):
    """Authenticate with the account email.

    The login form takes a username; the view resolves it to the email on
    file and this backend checks the password against that account. A raw
    email typed into the username box works as well.
    """

    def authenticate(self, request, username=None, password=None, email=None, **kwargs):
        identifier = email or username
        if not identifier or password is None or "@" not in identifier:
            return None
        User = get_user_model()
        user = User.objects.filter(email__iexact=identifier).order_by("pk").first()
        if user is None:
            User().set_password(password)
            return None
        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None
