# accounts/authz.py
"""
Authorization utilities.

Provides:
- ActorContext: Immutable context for the current request
- resolve_actor: Extract actor context from request
- require: Check permissions and raise if not granted

Permissions are checked:
1. Inactive users: nothing is allowed
2. Superusers: implicit allow
3. Everyone else: the permission codes of their role (ROLE_DEFAULTS)
"""

from dataclasses import dataclass
from typing import FrozenSet

from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated

from accounts.models import User
from accounts.permission_defaults import permissions_for_role


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor.

    This is passed to commands and policies to tell them who is
    performing an action.

    Attributes:
        user: The authenticated user
        perms: Set of permission codes granted by the user's role
    """
    user: User
    perms: FrozenSet[str]

    @classmethod
    def for_user(cls, user: User) -> "ActorContext":
        return cls(user=user, perms=permissions_for_role(user.role))

    def has(self, code: str) -> bool:
        """Check if actor has a specific permission."""
        if not self.user.is_active:
            return False
        if self.user.is_superuser:
            return True
        return code in self.perms

    @property
    def role(self) -> str:
        return self.user.role

    @property
    def is_admin(self) -> bool:
        return self.user.is_superuser or self.user.role == User.Role.ADMIN


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    The role is read from the freshly authenticated user on every
    request, so role changes take effect on the next call.

    Raises:
        NotAuthenticated: If user is not authenticated
        PermissionDenied: If the user account is deactivated
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    if not user.is_active:
        raise PermissionDenied("User account is inactive.")

    return ActorContext.for_user(user)


def require(actor: ActorContext, code: str) -> None:
    """
    Require that the actor has a specific permission.

    Raises:
        PermissionDenied: If permission is not granted

    Example:
        require(actor, "journal.post")
    """
    if not actor.has(code):
        raise PermissionDenied(f"Permission denied: {code}")
