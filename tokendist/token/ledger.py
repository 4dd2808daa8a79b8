# -*- coding: utf-8 -*-
"""
tokendist.token.ledger
======================

Fixed-supply, ERC-20–like fungible token kept in process memory.

Highlights
----------
- Explicit ``caller`` parameter on every mutation (no ambient sender).
- The whole supply is assigned to ``initial_holder`` at construction; there
  is no mint and no burn.
- Events: ``Transfer {from, to, value}`` and ``Approval {owner, spender, value}``.
- Failures raise :class:`~tokendist.errors.InsufficientBalance` or
  :class:`~tokendist.errors.InsufficientAllowance` (both ``FundingError``);
  the distribution engine lets them propagate unchanged.

Public interface
----------------
name, symbol, decimals, total_supply() -> int
balance_of(account) -> int
allowance(owner, spender) -> int
transfer(caller, to, amount) -> bool
approve(caller, spender, amount) -> bool
transfer_from(caller, owner, to, amount) -> bool
increase_allowance(caller, spender, added) -> bool
decrease_allowance(caller, spender, subtracted) -> bool
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from ..clock import Clock
from ..errors import InsufficientAllowance, InsufficientBalance, ValidationError
from ..events import APPROVAL, TRANSFER, EventSink
from ..state import AtomicStore

log = logging.getLogger(__name__)


def _require_account(account: str, what: str) -> None:
    if not isinstance(account, str) or not account:
        raise ValidationError(f"{what} must be a non-empty account id", details={"field": what})


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise ValidationError("amount must be a non-negative integer", details={"amount": repr(amount)})


class TokenLedger(AtomicStore):
    component = "token"
    _keyed_fields = ("_balances", "_allowances")

    def __init__(
        self,
        initial_holder: str,
        total_supply: int,
        *,
        name: str = "Token",
        symbol: str = "TKN",
        decimals: int = 18,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        super().__init__(clock=clock, events=events)
        _require_account(initial_holder, "initial_holder")
        _require_amount(total_supply)
        self.name = name
        self.symbol = symbol
        self.decimals = int(decimals)
        self._total_supply = int(total_supply)
        self._balances: Dict[str, int] = {initial_holder: self._total_supply}
        self._allowances: Dict[Tuple[str, str], int] = {}

    # ------------------------------------------------------------------ views

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        with self._lock:
            return self._allowances.get((owner, spender), 0)

    # -------------------------------------------------------------- mutations

    def _move(self, owner: str, to: str, amount: int) -> None:
        have = self._balances.get(owner, 0)
        if have < amount:
            raise InsufficientBalance(
                account=owner, amount=amount, details={"balance": have}
            )
        self._touch("_balances", owner)
        self._touch("_balances", to)
        self._balances[owner] = have - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        self._emit(TRANSFER, **{"from": owner, "to": to, "value": amount})

    def transfer(self, caller: str, to: str, amount: int) -> bool:
        _require_account(caller, "caller")
        _require_account(to, "to")
        _require_amount(amount)
        with self.transaction("transfer"):
            self._move(caller, to, amount)
        log.debug("transfer %s -> %s: %d", caller, to, amount)
        return True

    def _set_allowance(self, owner: str, spender: str, amount: int) -> None:
        self._touch("_allowances", (owner, spender))
        self._allowances[(owner, spender)] = amount
        self._emit(APPROVAL, owner=owner, spender=spender, value=amount)

    def approve(self, caller: str, spender: str, amount: int) -> bool:
        _require_account(caller, "caller")
        _require_account(spender, "spender")
        _require_amount(amount)
        with self.transaction("approve"):
            self._set_allowance(caller, spender, amount)
        return True

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> bool:
        """``caller`` (the spender) moves ``amount`` from ``owner`` to ``to`` using its allowance."""
        _require_account(caller, "caller")
        _require_account(owner, "owner")
        _require_account(to, "to")
        _require_amount(amount)
        with self.transaction("transfer_from"):
            current = self._allowances.get((owner, caller), 0)
            if current < amount:
                raise InsufficientAllowance(
                    account=owner, amount=amount, details={"spender": caller, "allowance": current}
                )
            self._touch("_allowances", (owner, caller))
            self._allowances[(owner, caller)] = current - amount
            self._move(owner, to, amount)
        log.debug("transfer_from %s -> %s by %s: %d", owner, to, caller, amount)
        return True

    def increase_allowance(self, caller: str, spender: str, added: int) -> bool:
        _require_amount(added)
        with self.transaction("increase_allowance"):
            self._set_allowance(caller, spender, self._allowances.get((caller, spender), 0) + added)
        return True

    def decrease_allowance(self, caller: str, spender: str, subtracted: int) -> bool:
        _require_amount(subtracted)
        with self.transaction("decrease_allowance"):
            current = self._allowances.get((caller, spender), 0)
            if current < subtracted:
                raise InsufficientAllowance(
                    account=caller, amount=subtracted, details={"spender": spender, "allowance": current}
                )
            self._set_allowance(caller, spender, current - subtracted)
        return True


__all__ = ["TokenLedger"]
