#accounts/tests/test_permissions_defaults.py

from django.test import TestCase
from django.contrib.auth import get_user_model

from accounts.authz import ActorContext
from accounts.permission_defaults import (
    ROLE_DEFAULTS,
    all_permission_codes,
    permissions_for_role,
)


User = get_user_model()


class TestPermissionDefaults(TestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username="a", email="a@test.com", password="pass12345", full_name="A", role="ADMIN",
        )
        self.operator = User.objects.create_user(
            username="o", email="o@test.com", password="pass12345", full_name="O", role="OPERATOR",
        )
        self.viewer = User.objects.create_user(
            username="v", email="v@test.com", password="pass12345", full_name="V", role="VIEWER",
        )

    def test_admin_has_every_code(self):
        actor = ActorContext.for_user(self.admin)
        for code in all_permission_codes():
            self.assertTrue(actor.has(code), code)

    def test_operator_cannot_unpost_or_manage_users(self):
        actor = ActorContext.for_user(self.operator)
        self.assertTrue(actor.has("journal.post"))
        self.assertFalse(actor.has("journal.unpost"))
        self.assertFalse(actor.has("users.manage"))
        self.assertFalse(actor.has("companies.manage"))

    def test_viewer_is_read_only(self):
        actor = ActorContext.for_user(self.viewer)
        self.assertTrue(actor.has("reports.view"))
        self.assertTrue(actor.has("journal.view"))
        for code in ROLE_DEFAULTS["VIEWER"]:
            self.assertFalse(code.endswith(".manage"), code)
        self.assertFalse(actor.has("journal.create"))
        self.assertFalse(actor.has("reports.export"))

    def test_roles_are_nested(self):
        self.assertTrue(ROLE_DEFAULTS["VIEWER"] <= ROLE_DEFAULTS["OPERATOR"])
        self.assertTrue(ROLE_DEFAULTS["OPERATOR"] <= ROLE_DEFAULTS["ADMIN"])

    def test_unknown_role_has_nothing(self):
        self.assertEqual(permissions_for_role("GUEST"), frozenset())

    def test_role_change_applies_to_next_actor(self):
        self.viewer.role = "OPERATOR"
        self.viewer.save()
        actor = ActorContext.for_user(self.viewer)
        self.assertTrue(actor.has("journal.create"))
