from __future__ import annotations

"""
Collaborator interfaces consumed by the distribution engine.

The engine never mints and never stores balances itself; it moves tokens
through a :class:`Ledger` and asks an :class:`AccessGate` before every admin
mutation. ``tokendist.token.ledger.TokenLedger`` and
``tokendist.access.roles.RoleRegistry`` are the in-process implementations.
"""


from typing import Protocol, runtime_checkable


@runtime_checkable
class Ledger(Protocol):
    """Fungible-token primitives. Errors propagate to the engine's caller unwrapped."""

    def balance_of(self, account: str) -> int: ...

    def transfer(self, caller: str, to: str, amount: int) -> bool: ...

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool: ...


@runtime_checkable
class AccessGate(Protocol):
    """Role membership check; ``require_role`` raises ``UnauthorizedAccount``."""

    def has_role(self, role: bytes, account: str) -> bool: ...

    def require_role(self, role: bytes, account: str) -> None: ...


__all__ = ["Ledger", "AccessGate"]
