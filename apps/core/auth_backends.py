from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend
from django.db.models import Q


class LoginIdBackend(ModelBackend):
    """Authenticate with an organization login id, username or email."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        UserModel = get_user_model()
        identifier = username or kwargs.get(UserModel.USERNAME_FIELD) or kwargs.get("email")

        if identifier is None or password is None:
            return None

        identifier = identifier.strip()
        try:
            user = UserModel.objects.get(
                Q(login_id__iexact=identifier)
                | Q(username__iexact=identifier)
                | Q(email__iexact=identifier)
            )
        except (UserModel.DoesNotExist, UserModel.MultipleObjectsReturned):
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user
        return None

    def user_can_authenticate(self, user):
        """Deactivated staff keep their row but lose the ability to sign in."""
        if getattr(user, "role", None) == user.INACTIVE:
            return False
        return super().user_can_authenticate(user)
