from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import (
    CompanyDetailView,
    CompanyListCreateView,
    LoginView,
    LogoutView,
    ProfileView,
    UserByUsernameView,
    UserChangePasswordView,
    UserDetailView,
    UserLastLoginView,
    UserListCreateView,
)

app_name = "accounts"

urlpatterns = [
    # Authentication
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("auth/me/", ProfileView.as_view(), name="profile"),

    # Companies
    path("companies/", CompanyListCreateView.as_view(), name="company-list-create"),
    path("companies/<int:pk>/", CompanyDetailView.as_view(), name="company-detail"),

    # Users
    path("users/", UserListCreateView.as_view(), name="user-list-create"),
    path("users/by-username/<str:username>/", UserByUsernameView.as_view(), name="user-by-username"),
    path("users/<int:pk>/", UserDetailView.as_view(), name="user-detail"),
    path("users/<int:pk>/last-login/", UserLastLoginView.as_view(), name="user-last-login"),
    path("users/<int:pk>/change-password/", UserChangePasswordView.as_view(), name="user-change-password"),
]
