"""Role-based access control for the distribution engine's admin mutators."""

from .roles import ADMIN_ROLE, DEFAULT_ADMIN_ROLE, MANAGER_ROLE, RoleRegistry, derive_role_id

__all__ = ["ADMIN_ROLE", "DEFAULT_ADMIN_ROLE", "MANAGER_ROLE", "RoleRegistry", "derive_role_id"]
