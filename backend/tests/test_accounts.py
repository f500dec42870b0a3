# tests/test_accounts.py
"""
Tests for the accounts module.

Tests cover:
- Role permission handling (ActorContext)
- User management commands (soft delete, password rules)
- Company commands
- Login / logout / profile endpoints
"""

from datetime import date

import pytest
from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied

from accounts.authz import ActorContext, require
from accounts.commands import (
    change_password,
    create_company,
    create_user,
    delete_company,
    delete_user,
    update_company,
    update_last_login,
    update_user,
)
from accounts.models import Company


User = get_user_model()


# =============================================================================
# ActorContext
# =============================================================================

@pytest.mark.django_db
class TestActorContext:

    def test_inactive_user_has_no_permissions(self, admin_user):
        admin_user.is_active = False
        admin_user.save()

        actor = ActorContext.for_user(admin_user)
        assert actor.has("journal.view") is False

    def test_superuser_has_everything(self, db):
        root = User.objects.create_superuser(
            username="root", email="root@test.com", password="rootpass", full_name="Root",
        )
        actor = ActorContext.for_user(root)
        assert actor.has("anything.at.all")
        assert actor.is_admin

    def test_require_raises(self, viewer_actor):
        with pytest.raises(PermissionDenied):
            require(viewer_actor, "journal.post")

    def test_operator_role(self, operator_actor):
        assert operator_actor.has("journal.post")
        assert not operator_actor.has("journal.unpost")
        assert not operator_actor.has("users.manage")


# =============================================================================
# User Commands
# =============================================================================

@pytest.mark.django_db
class TestUserCommands:

    def test_create_user_hashes_password(self, admin_actor):
        result = create_user(
            admin_actor,
            username="budi",
            email="budi@test.com",
            password="rahasia1",
            full_name="Budi",
            role=User.Role.OPERATOR,
        )
        assert result.success, result.error
        assert result.data.password != "rahasia1"
        assert result.data.check_password("rahasia1")

    def test_duplicate_username_rejected(self, admin_actor, viewer_user):
        result = create_user(
            admin_actor, username="viewer", email="x@test.com", password="secret1", full_name="X",
        )
        assert not result.success
        assert "already exists" in result.error

    def test_duplicate_email_rejected(self, admin_actor, viewer_user):
        result = create_user(
            admin_actor, username="other", email="VIEWER@test.com", password="secret1", full_name="X",
        )
        assert not result.success
        assert "already in use" in result.error

    def test_short_password_rejected(self, admin_actor):
        result = create_user(
            admin_actor, username="short", email="s@test.com", password="12345", full_name="S",
        )
        assert not result.success

    def test_operator_cannot_manage_users(self, operator_actor):
        with pytest.raises(PermissionDenied):
            create_user(operator_actor, username="u", email="u@test.com", password="secret1", full_name="U")

    def test_update_user_rehashes_password(self, admin_actor, viewer_user):
        result = update_user(admin_actor, viewer_user.id, password="newpass1", full_name="Pak Viewer")
        assert result.success
        viewer_user.refresh_from_db()
        assert viewer_user.full_name == "Pak Viewer"
        assert viewer_user.check_password("newpass1")

    def test_update_last_login_self(self, viewer_actor, viewer_user):
        assert viewer_user.last_login is None
        result = update_last_login(viewer_actor, viewer_user.id)
        assert result.success
        viewer_user.refresh_from_db()
        assert viewer_user.last_login is not None

    def test_change_password_checks_old(self, viewer_actor, viewer_user):
        result = change_password(viewer_actor, viewer_user.id, "wrong-one", "brandnew1")
        assert not result.success
        assert result.error == "Old password is incorrect."

        result = change_password(viewer_actor, viewer_user.id, "testpass123", "brandnew1")
        assert result.success
        viewer_user.refresh_from_db()
        assert viewer_user.check_password("brandnew1")

    def test_delete_is_soft(self, admin_actor, viewer_user):
        result = delete_user(admin_actor, viewer_user.id)
        assert result.success
        viewer_user.refresh_from_db()
        assert viewer_user.is_active is False

    def test_cannot_delete_self(self, admin_actor, admin_user):
        result = delete_user(admin_actor, admin_user.id)
        assert not result.success

    def test_user_with_transactions_cannot_be_deleted(
        self, admin_actor, operator_user, make_transaction, line, cash_account, revenue_account,
    ):
        make_transaction(
            date(2024, 1, 3),
            [line(cash_account, debit="5"), line(revenue_account, credit="5")],
            user_id=operator_user.id,
        )
        result = delete_user(admin_actor, operator_user.id)
        assert not result.success
        assert result.error == "Cannot delete user with existing transactions. User can only be deactivated."


# =============================================================================
# Company Commands
# =============================================================================

@pytest.mark.django_db
class TestCompanyCommands:

    def test_company_lifecycle(self, admin_actor):
        created = create_company(admin_actor, name="PT Maju", address="Jl. Merdeka 1", tax_id="01.234")
        assert created.success
        company = created.data

        updated = update_company(admin_actor, company.id, phone="021-555")
        assert updated.success
        assert updated.data.phone == "021-555"

        assert delete_company(admin_actor, company.id).success
        assert not Company.objects.filter(pk=company.id).exists()

    def test_missing_company(self, admin_actor):
        result = update_company(admin_actor, 999999, name="X")
        assert not result.success
        assert result.error == "Company not found."

    def test_operator_cannot_manage_companies(self, operator_actor):
        with pytest.raises(PermissionDenied):
            create_company(operator_actor, name="PT X")


# =============================================================================
# API
# =============================================================================

@pytest.mark.django_db
class TestAuthApi:

    def test_login_returns_tokens_and_stamps_last_login(self, api_client, viewer_user):
        response = api_client.post(
            "/api/auth/login/", {"username": "viewer", "password": "testpass123"}, format="json",
        )
        assert response.status_code == 200
        assert "access" in response.data and "refresh" in response.data
        assert response.data["user"]["username"] == "viewer"

        viewer_user.refresh_from_db()
        assert viewer_user.last_login is not None

    def test_login_wrong_password(self, api_client, viewer_user):
        response = api_client.post(
            "/api/auth/login/", {"username": "viewer", "password": "nope"}, format="json",
        )
        assert response.status_code == 401

    def test_inactive_user_cannot_login(self, api_client, viewer_user):
        viewer_user.is_active = False
        viewer_user.save()
        response = api_client.post(
            "/api/auth/login/", {"username": "viewer", "password": "testpass123"}, format="json",
        )
        assert response.status_code == 401

    def test_logout_blacklists_refresh(self, api_client, viewer_user):
        login = api_client.post(
            "/api/auth/login/", {"username": "viewer", "password": "testpass123"}, format="json",
        )
        refresh = login.data["refresh"]

        assert api_client.post("/api/auth/logout/", {"refresh": refresh}, format="json").status_code == 204
        response = api_client.post("/api/auth/refresh/", {"refresh": refresh}, format="json")
        assert response.status_code == 401

    def test_me_lists_effective_permissions(self, viewer_client):
        response = viewer_client.get("/api/auth/me/")
        assert response.status_code == 200
        assert "reports.view" in response.data["permissions"]
        assert "journal.post" not in response.data["permissions"]

    def test_unauthenticated_is_rejected(self, api_client):
        assert api_client.get("/api/users/").status_code == 401


@pytest.mark.django_db
class TestUserApi:

    def test_create_and_lookup_by_username(self, admin_client):
        response = admin_client.post("/api/users/", {
            "username": "sari",
            "email": "sari@test.com",
            "password": "sari123",
            "full_name": "Sari",
            "role": "OPERATOR",
        }, format="json")
        assert response.status_code == 201
        assert "password" not in response.data

        response = admin_client.get("/api/users/by-username/sari/")
        assert response.status_code == 200
        assert response.data["role"] == "OPERATOR"

    def test_active_filter(self, admin_client, admin_actor, viewer_user, operator_user):
        delete_user(admin_actor, viewer_user.id)
        response = admin_client.get("/api/users/?active=true")
        usernames = {u["username"] for u in response.data}
        assert "viewer" not in usernames
        assert "operator" in usernames

    def test_missing_user_is_404(self, admin_client):
        assert admin_client.get("/api/users/999999/").status_code == 404
        assert admin_client.delete("/api/users/999999/").status_code == 404

    def test_viewer_cannot_list_users(self, viewer_client):
        assert viewer_client.get("/api/users/").status_code == 403

    def test_change_password_endpoint(self, viewer_client, viewer_user):
        response = viewer_client.post(
            f"/api/users/{viewer_user.id}/change-password/",
            {"old_password": "bad", "new_password": "another1"},
            format="json",
        )
        assert response.status_code == 400
        assert response.data["detail"] == "Old password is incorrect."
