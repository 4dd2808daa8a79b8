# -*- coding: utf-8 -*-
"""
tokendist.access.roles
======================

Minimal **Role-Based Access Control** (RBAC) registry guarding every admin
mutator of the distribution engine.

Design
------
- **Bytes32 role identifiers**: each role is identified by 32 bytes.
- **Two well-known roles**:
    - ``ADMIN_ROLE`` (bytes32 zero): structural changes and role grants;
      it is the default admin of every role.
    - ``MANAGER_ROLE`` (keccak256(b"MANAGER_ROLE")): day-to-day tuning
      (stake bounds, pool add/update, feature toggles, commitment root,
      cliff trigger, pause switch).
- **Deployer bootstrap**: the account passed as ``admin`` holds both roles.
- **Idempotent operations**: granting an existing role or revoking a missing
  role is a no-op and emits nothing.

API surface
-----------
- Queries: ``has_role``, ``get_role_admin``, ``is_admin_for_role``,
  ``require_role`` (raises :class:`~tokendist.errors.UnauthorizedAccount`
  carrying the caller and the required role).
- Mutations: ``grant_role``, ``revoke_role``, ``renounce_role``,
  ``set_role_admin``.

Events
------
- **RoleGranted**      : {"role", "account", "sender"}
- **RoleRevoked**      : {"role", "account", "sender"}
- **RoleAdminChanged** : {"role", "previous_admin_role", "new_admin_role"}
"""
from __future__ import annotations

import logging
from typing import Dict, Optional, Set

from ..clock import Clock
from ..errors import UnauthorizedAccount, ValidationError
from ..events import ROLE_ADMIN_CHANGED, ROLE_GRANTED, ROLE_REVOKED, EventSink
from ..hashing import keccak256
from ..state import AtomicStore

__all__ = [
    "DEFAULT_ADMIN_ROLE",
    "ADMIN_ROLE",
    "MANAGER_ROLE",
    "derive_role_id",
    "normalize_role",
    "RoleRegistry",
]

log = logging.getLogger(__name__)

# ---- Constants ---------------------------------------------------------------

DEFAULT_ADMIN_ROLE: bytes = b"\x00" * 32
ADMIN_ROLE: bytes = DEFAULT_ADMIN_ROLE


def derive_role_id(name: bytes) -> bytes:
    """Deterministic role id derivation: keccak256(name) → bytes32."""
    return keccak256(name)


MANAGER_ROLE: bytes = derive_role_id(b"MANAGER_ROLE")


def normalize_role(role: bytes) -> bytes:
    """Ensure ``role`` is exactly 32 bytes."""
    if not isinstance(role, (bytes, bytearray)) or len(role) != 32:
        raise ValidationError("role id must be exactly 32 bytes", details={"role": repr(role)})
    return bytes(role)


class RoleRegistry(AtomicStore):
    component = "roles"
    _keyed_fields = ("_members", "_admins")

    def __init__(
        self,
        admin: str,
        *,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        super().__init__(clock=clock, events=events)
        self._members: Dict[bytes, Set[str]] = {}
        self._admins: Dict[bytes, bytes] = {}
        with self.transaction("bootstrap"):
            self._grant(ADMIN_ROLE, admin, admin)
            self._grant(MANAGER_ROLE, admin, admin)

    # ---- Queries ----------------------------------------------------------------

    def has_role(self, role: bytes, account: str) -> bool:
        role = normalize_role(role)
        if not account:
            return False
        return account in self._members.get(role, ())

    def get_role_admin(self, role: bytes) -> bytes:
        """Admin role-id for ``role``, or ``DEFAULT_ADMIN_ROLE`` if unset."""
        return self._admins.get(normalize_role(role), DEFAULT_ADMIN_ROLE)

    def is_admin_for_role(self, role: bytes, caller: str) -> bool:
        return self.has_role(self.get_role_admin(role), caller)

    def require_role(self, role: bytes, caller: str) -> None:
        """Raise ``UnauthorizedAccount`` unless ``caller`` has ``role``."""
        if not self.has_role(role, caller):
            raise UnauthorizedAccount(account=caller, role=role)

    def members(self, role: bytes) -> Set[str]:
        return set(self._members.get(normalize_role(role), ()))

    # ---- Mutations ---------------------------------------------------------------

    def _grant(self, role: bytes, account: str, sender: str) -> None:
        if self.has_role(role, account):
            return
        self._touch("_members", role)
        self._members.setdefault(role, set()).add(account)
        self._emit(ROLE_GRANTED, role=role, account=account, sender=sender)
        log.info("role %s granted to %s by %s", role.hex()[:8], account, sender)

    def _revoke(self, role: bytes, account: str, sender: str) -> None:
        if not self.has_role(role, account):
            return
        self._touch("_members", role)
        self._members[role].discard(account)
        self._emit(ROLE_REVOKED, role=role, account=account, sender=sender)
        log.info("role %s revoked from %s by %s", role.hex()[:8], account, sender)

    def grant_role(self, caller: str, role: bytes, account: str) -> None:
        """Grant ``role`` to ``account``. Only callable by an admin of ``role``."""
        role = normalize_role(role)
        if not account:
            raise ValidationError("account must be non-empty")
        with self.transaction("grant_role"):
            self.require_role(self.get_role_admin(role), caller)
            self._grant(role, account, caller)

    def revoke_role(self, caller: str, role: bytes, account: str) -> None:
        """Revoke ``role`` from ``account``. Only callable by an admin of ``role``."""
        role = normalize_role(role)
        with self.transaction("revoke_role"):
            self.require_role(self.get_role_admin(role), caller)
            self._revoke(role, account, caller)

    def renounce_role(self, caller: str, role: bytes) -> None:
        """Caller removes themself from ``role``."""
        role = normalize_role(role)
        with self.transaction("renounce_role"):
            self._revoke(role, caller, caller)

    def set_role_admin(self, caller: str, role: bytes, admin_role: bytes) -> None:
        """Only the current admin of ``role`` may change its admin role."""
        role = normalize_role(role)
        admin_role = normalize_role(admin_role)
        with self.transaction("set_role_admin"):
            self.require_role(self.get_role_admin(role), caller)
            prev = self.get_role_admin(role)
            if prev == admin_role:
                return
            self._touch("_admins", role)
            self._admins[role] = admin_role
            self._emit(
                ROLE_ADMIN_CHANGED,
                role=role,
                previous_admin_role=prev,
                new_admin_role=admin_role,
            )
