"""Role-based authorization checks shared by HTTP surfaces."""

from __future__ import annotations

from worklog.domain.auth.roles import Role

_USER_MANAGER_ROLES = frozenset({Role.ADMIN, Role.MANAGER})


class AuthorizationError(PermissionError):
    """Base error for role authorization failures."""


class RoleNotAuthorizedError(AuthorizationError):
    """Raised when a known role lacks permission for one action."""

    def __init__(self, *, role: Role, action: str) -> None:
        super().__init__(f"role '{role.value}' is not allowed to {action}")
        self.role = role
        self.action = action


class AccessGuardService:
    """Evaluate role permissions for protected actions."""

    def require_user_manager(self, *, role: Role) -> None:
        """Allow admins and managers to list and create accounts."""

        if role not in _USER_MANAGER_ROLES:
            raise RoleNotAuthorizedError(role=role, action="manage users")
