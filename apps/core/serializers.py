"""
Serializers for authentication, organizations, outlets and user management.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

from apps.core.roles import capabilities_for, navigation_for

from .models import Outlet, RestaurantTable

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    """
    JWT token serializer that carries the organization/outlet/role tuple.
    """

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)

        token["username"] = user.username
        token["role"] = user.role
        token["organization_id"] = str(user.organization_id) if user.organization_id else None
        token["outlet_id"] = str(user.outlet_id) if user.outlet_id else None

        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        data["user"] = UserSerializer(self.user).data
        return data


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model.
    """

    outlet_name = serializers.CharField(source="outlet.name", read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "full_name",
            "login_id",
            "role",
            "organization",
            "outlet",
            "outlet_name",
            "date_joined",
            "last_login",
        ]
        read_only_fields = fields


class MeSerializer(UserSerializer):
    """Current user plus the capabilities and navigation of their role."""

    capabilities = serializers.SerializerMethodField()
    navigation = serializers.SerializerMethodField()
    organization_name = serializers.CharField(source="organization.name", read_only=True)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ["organization_name", "capabilities", "navigation"]
        read_only_fields = fields

    def get_capabilities(self, obj):
        return sorted(capabilities_for(obj.role))

    def get_navigation(self, obj):
        return navigation_for(obj.role)


class SignupSerializer(serializers.Serializer):
    """
    Serializer for organization signup.
    """

    organization_name = serializers.CharField(max_length=255)
    full_name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, validators=[validate_password])


class UserCreateSerializer(serializers.Serializer):
    """Admin-issued staff account."""

    login_id = serializers.RegexField(
        r"^[A-Za-z0-9_.-]+$",
        max_length=100,
        error_messages={"invalid": "Use letters, digits, dots, dashes or underscores."},
    )
    full_name = serializers.CharField(max_length=255)
    role = serializers.ChoiceField(choices=[User.ADMIN, User.MANAGER, User.STAFF])
    outlet = serializers.PrimaryKeyRelatedField(
        queryset=Outlet.objects.all(), required=False, allow_null=True
    )
    password = serializers.CharField(write_only=True, min_length=8)


class UserUpdateSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255, required=False)
    role = serializers.ChoiceField(choices=[User.ADMIN, User.MANAGER, User.STAFF], required=False)
    outlet = serializers.PrimaryKeyRelatedField(
        queryset=Outlet.objects.all(), required=False, allow_null=True
    )


class OutletSerializer(serializers.ModelSerializer):
    """
    Serializer for Outlet model.
    """

    class Meta:
        model = Outlet
        fields = [
            "id",
            "name",
            "location",
            "table_count",
            "is_active",
            "organization",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "organization", "created_at", "updated_at"]

    def validate_name(self, value):
        """Outlet names are unique within an organization."""
        request = self.context.get("request")
        if request is None:
            return value
        queryset = Outlet.objects.filter(
            organization_id=request.user.organization_id, name__iexact=value
        )
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("An outlet with this name already exists.")
        return value


class RestaurantTableSerializer(serializers.ModelSerializer):
    class Meta:
        model = RestaurantTable
        fields = ["id", "outlet", "table_number", "status", "last_updated"]
        read_only_fields = ["id", "outlet", "last_updated"]

    def validate_table_number(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Table number is required.")
        outlet = self.context.get("outlet") or getattr(self.instance, "outlet", None)
        queryset = RestaurantTable.objects.filter(outlet=outlet, table_number=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError("This table number already exists at the outlet.")
        return value
