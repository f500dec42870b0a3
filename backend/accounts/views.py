# accounts/views.py
"""
Authentication, user and company endpoints.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic and validation.
"""

from django.shortcuts import get_object_or_404
from rest_framework import generics, permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from .authz import resolve_actor, require
from .commands import (
    change_password,
    create_company,
    create_user,
    delete_company,
    delete_user,
    update_company,
    update_last_login,
    update_user,
)
from .models import Company, User
from .serializers import (
    ChangePasswordSerializer,
    CompanyInputSerializer,
    CompanySerializer,
    ProfileSerializer,
    UserCreateSerializer,
    UserSerializer,
    UserUpdateSerializer,
    UsernameTokenObtainPairSerializer,
)
from .throttles import LoginThrottle


def _fail(result):
    return Response({"detail": result.error}, status=status.HTTP_400_BAD_REQUEST)


# =============================================================================
# Authentication
# =============================================================================

class LoginView(generics.GenericAPIView):
    serializer_class = UsernameTokenObtainPairSerializer
    permission_classes = [permissions.AllowAny]
    throttle_classes = [LoginThrottle]

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class LogoutView(APIView):
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        refresh_token = request.data.get("refresh")
        if not refresh_token:
            return Response({"detail": "Refresh token required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            token = RefreshToken(refresh_token)
            token.blacklist()
        except TokenError:
            return Response({"detail": "Invalid token"}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ProfileView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, *args, **kwargs):
        profile = ProfileSerializer.from_user(request.user)
        return Response(profile.data)


# =============================================================================
# Companies
# =============================================================================

class CompanyListCreateView(APIView):
    """
    GET /api/companies/ -> list companies
    POST /api/companies/ -> create company
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "companies.view")
        return Response(CompanySerializer(Company.objects.all(), many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = CompanyInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_company(actor, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(CompanySerializer(result.data).data, status=status.HTTP_201_CREATED)


class CompanyDetailView(APIView):
    """
    GET/PATCH/DELETE /api/companies/<pk>/
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "companies.view")
        company = get_object_or_404(Company, pk=pk)
        return Response(CompanySerializer(company).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Company, pk=pk)

        serializer = CompanyInputSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        result = update_company(actor, pk, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(CompanySerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(Company, pk=pk)

        result = delete_company(actor, pk)
        if not result.success:
            return _fail(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Users
# =============================================================================

class UserListCreateView(APIView):
    """
    GET /api/users/ -> list users (?active=true for active users only)
    POST /api/users/ -> create user
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "users.view")

        users = User.objects.all()
        if request.query_params.get("active", "").lower() == "true":
            users = users.filter(is_active=True)
        return Response(UserSerializer(users, many=True).data)

    def post(self, request):
        actor = resolve_actor(request)
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = create_user(actor, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(UserSerializer(result.data).data, status=status.HTTP_201_CREATED)


class UserDetailView(APIView):
    """
    GET/PATCH/DELETE /api/users/<pk>/

    DELETE deactivates the user.
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "users.view")
        return Response(UserSerializer(get_object_or_404(User, pk=pk)).data)

    def patch(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(User, pk=pk)

        serializer = UserUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = update_user(actor, pk, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(UserSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(User, pk=pk)

        result = delete_user(actor, pk)
        if not result.success:
            return _fail(result)
        return Response(status=status.HTTP_204_NO_CONTENT)


class UserByUsernameView(APIView):
    """GET /api/users/by-username/<username>/"""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, username):
        actor = resolve_actor(request)
        require(actor, "users.view")
        return Response(UserSerializer(get_object_or_404(User, username=username)).data)


class UserLastLoginView(APIView):
    """POST /api/users/<pk>/last-login/ -> stamp last_login"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(User, pk=pk)

        result = update_last_login(actor, pk)
        if not result.success:
            return _fail(result)
        return Response(UserSerializer(result.data).data)


class UserChangePasswordView(APIView):
    """POST /api/users/<pk>/change-password/"""
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)
        get_object_or_404(User, pk=pk)

        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = change_password(actor, pk, **serializer.validated_data)
        if not result.success:
            return _fail(result)
        return Response(result.data)
