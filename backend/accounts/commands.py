# accounts/commands.py
"""
Command layer for users and company master data.

ALL mutations of users and company profiles go through these commands:
- Company create/update/delete
- User creation/updates/deactivation
- Password changes
- Last-login stamping

Pattern:
1. Validate permissions (require)
2. Apply business rules
3. Perform the operation (model changes)
4. Log it
5. Return CommandResult
"""

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from accounts.authz import ActorContext, require
from accounts.models import Company

logger = logging.getLogger(__name__)

User = get_user_model()


class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = create_user(actor, username="budi", ...)
        if result.success:
            user = result.data
        else:
            error_message = result.error
    """

    def __init__(self, success: bool, data=None, error: str = None):
        self.success = success
        self.data = data
        self.error = error

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str):
        return cls(success=False, error=error)

    def __repr__(self):
        if self.success:
            return f"<CommandResult ok data={self.data!r}>"
        return f"<CommandResult fail error={self.error!r}>"


def _password_error(password: str, user=None) -> str:
    try:
        validate_password(password, user=user)
    except ValidationError as e:
        return " ".join(e.messages)
    return ""


# =============================================================================
# Company Commands
# =============================================================================

COMPANY_FIELDS = {"name", "address", "phone", "email", "tax_id"}


@transaction.atomic
def create_company(actor: ActorContext, name: str, **fields) -> CommandResult:
    """Create a company profile."""
    require(actor, "companies.manage")

    company = Company.objects.create(
        name=name,
        **{k: v for k, v in fields.items() if k in COMPANY_FIELDS},
    )
    logger.info("Company created", extra={"company_id": company.id, "user_id": actor.user.id})
    return CommandResult.ok(company)


@transaction.atomic
def update_company(actor: ActorContext, company_id: int, **updates) -> CommandResult:
    """Update a company profile. Only the given fields change."""
    require(actor, "companies.manage")

    try:
        company = Company.objects.select_for_update().get(pk=company_id)
    except Company.DoesNotExist:
        return CommandResult.fail("Company not found.")

    changed = []
    for field, value in updates.items():
        if field in COMPANY_FIELDS and getattr(company, field) != value:
            setattr(company, field, value)
            changed.append(field)

    if changed:
        company.save(update_fields=changed + ["updated_at"])
        logger.info("Company updated", extra={"company_id": company.id, "fields": changed})
    return CommandResult.ok(company)


@transaction.atomic
def delete_company(actor: ActorContext, company_id: int) -> CommandResult:
    require(actor, "companies.manage")

    deleted, _ = Company.objects.filter(pk=company_id).delete()
    if not deleted:
        return CommandResult.fail("Company not found.")

    logger.info("Company deleted", extra={"company_id": company_id})
    return CommandResult.ok({"deleted": True})


# =============================================================================
# User Commands
# =============================================================================

USER_FIELDS = {"username", "email", "full_name", "role", "is_active"}


@transaction.atomic
def create_user(
    actor: ActorContext,
    username: str,
    email: str,
    password: str,
    full_name: str,
    role: str = User.Role.VIEWER,
    is_active: bool = True,
) -> CommandResult:
    """
    Create an application user.

    Args:
        actor: The actor context
        username: Unique login name
        email: Unique email address
        password: Plain password, hashed before storage
        full_name: Display name
        role: One of User.Role choices

    Returns:
        CommandResult with the created User or error
    """
    require(actor, "users.manage")

    if User.objects.filter(username=username).exists():
        return CommandResult.fail(f"Username '{username}' already exists.")
    if User.objects.filter(email__iexact=email).exists():
        return CommandResult.fail(f"Email '{email}' already in use.")

    error = _password_error(password)
    if error:
        return CommandResult.fail(error)

    user = User.objects.create_user(
        username=username,
        email=email,
        password=password,
        full_name=full_name,
        role=role,
        is_active=is_active,
    )
    logger.info("User created", extra={"target_user_id": user.id, "role": role})
    return CommandResult.ok(user)


@transaction.atomic
def update_user(actor: ActorContext, user_id: int, password: str = None, **updates) -> CommandResult:
    """
    Update a user.

    A new password, when given, is validated and hashed again.
    """
    require(actor, "users.manage")

    try:
        target_user = User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        return CommandResult.fail("User not found.")

    if "username" in updates and updates["username"] != target_user.username:
        if User.objects.filter(username=updates["username"]).exclude(pk=user_id).exists():
            return CommandResult.fail(f"Username '{updates['username']}' already exists.")

    if "email" in updates and updates["email"] != target_user.email:
        if User.objects.filter(email__iexact=updates["email"]).exclude(pk=user_id).exists():
            return CommandResult.fail(f"Email '{updates['email']}' already in use.")

    changed = []
    for field, value in updates.items():
        if field in USER_FIELDS and getattr(target_user, field) != value:
            setattr(target_user, field, value)
            changed.append(field)

    if password:
        error = _password_error(password, user=target_user)
        if error:
            return CommandResult.fail(error)
        target_user.set_password(password)
        changed.append("password")

    if changed:
        target_user.save(update_fields=changed + ["updated_at"])
        logger.info(
            "User updated",
            extra={"target_user_id": target_user.id, "fields": [f for f in changed if f != "password"]},
        )
    return CommandResult.ok(target_user)


@transaction.atomic
def update_last_login(actor: ActorContext, user_id: int) -> CommandResult:
    """Stamp last_login with the current time. Users may stamp themselves."""
    if actor.user.id != user_id:
        require(actor, "users.manage")

    try:
        target_user = User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        return CommandResult.fail("User not found.")

    target_user.last_login = timezone.now()
    target_user.save(update_fields=["last_login"])
    return CommandResult.ok(target_user)


@transaction.atomic
def change_password(
    actor: ActorContext,
    user_id: int,
    old_password: str,
    new_password: str,
) -> CommandResult:
    """
    Change a user's password after verifying the current one.

    Users can change their own password.
    Admins can change any user's password but must still supply the old one.
    """
    if actor.user.id != user_id:
        require(actor, "users.manage")

    try:
        target_user = User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        return CommandResult.fail("User not found.")

    if not target_user.check_password(old_password):
        logger.warning("Password change rejected", extra={"target_user_id": user_id})
        return CommandResult.fail("Old password is incorrect.")

    error = _password_error(new_password, user=target_user)
    if error:
        return CommandResult.fail(error)

    target_user.set_password(new_password)
    target_user.save(update_fields=["password", "updated_at"])
    logger.info("Password changed", extra={"target_user_id": user_id})
    return CommandResult.ok({"success": True})


@transaction.atomic
def delete_user(actor: ActorContext, user_id: int) -> CommandResult:
    """
    Deactivate a user.

    Users are soft-deleted (is_active=False). A user who owns
    transactions cannot be deleted at all; deactivate them via update.
    """
    require(actor, "users.manage")

    try:
        target_user = User.objects.select_for_update().get(pk=user_id)
    except User.DoesNotExist:
        return CommandResult.fail("User not found.")

    if target_user.id == actor.user.id:
        return CommandResult.fail("You cannot delete your own account.")

    if target_user.transactions.exists():
        return CommandResult.fail(
            "Cannot delete user with existing transactions. User can only be deactivated."
        )

    target_user.is_active = False
    target_user.save(update_fields=["is_active", "updated_at"])
    logger.info("User deactivated", extra={"target_user_id": user_id})
    return CommandResult.ok({"deleted": True})
