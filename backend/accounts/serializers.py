from django.contrib.auth import authenticate
from django.utils import timezone
from rest_framework import serializers
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.tokens import RefreshToken

from .authz import ActorContext
from .models import Company, User
from .permission_defaults import all_permission_codes


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ("id", "name", "address", "phone", "email", "tax_id", "created_at", "updated_at")
        read_only_fields = ("id", "created_at", "updated_at")


class CompanyInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    address = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True, allow_null=True)
    tax_id = serializers.CharField(max_length=30, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        # Blank optional strings are stored as NULL
        return {k: (None if v == "" and k != "name" else v) for k, v in attrs.items()}


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            "id", "username", "email", "full_name", "role",
            "is_active", "last_login", "created_at", "updated_at",
        )
        read_only_fields = fields


class UserCreateSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    full_name = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=User.Role.choices, default=User.Role.VIEWER)
    is_active = serializers.BooleanField(required=False, default=True)


class UserUpdateSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150, required=False)
    email = serializers.EmailField(required=False)
    password = serializers.CharField(min_length=6, write_only=True, required=False)
    full_name = serializers.CharField(max_length=150, required=False)
    role = serializers.ChoiceField(choices=User.Role.choices, required=False)
    is_active = serializers.BooleanField(required=False)


class ChangePasswordSerializer(serializers.Serializer):
    old_password = serializers.CharField(write_only=True)
    new_password = serializers.CharField(min_length=6, write_only=True)


class UsernameTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Username/password login returning a JWT pair and the user profile."""

    def validate(self, attrs):
        user = authenticate(
            request=self.context.get("request"),
            username=attrs.get("username"),
            password=attrs.get("password"),
        )
        if not user:
            raise AuthenticationFailed("Invalid credentials")
        if not user.is_active:
            raise AuthenticationFailed("User account is inactive")

        user.last_login = timezone.now()
        user.save(update_fields=["last_login"])

        refresh = RefreshToken.for_user(user)
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
            "user": UserSerializer(user).data,
        }


class ProfileSerializer(serializers.Serializer):
    user = UserSerializer()
    permissions = serializers.ListField(child=serializers.CharField())

    @classmethod
    def from_user(cls, user: User):
        actor = ActorContext.for_user(user)
        perms = [code for code in sorted(all_permission_codes()) if actor.has(code)]
        return cls(instance={"user": user, "permissions": perms})
