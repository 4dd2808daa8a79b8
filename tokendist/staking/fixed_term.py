from __future__ import annotations

"""
Fixed-term staking pools: fixed duration, flat reward applied once at maturity.

Pool ids are 0-based and auto-increment; pools are never deleted. One open
position per (pool, account); ``claim_and_unstake`` destroys it and pays
``amount + amount * flat_rate_bps / 10_000``.

Invariant: for every pool, the sum of its open positions equals
``total_staked``.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .. import metrics
from ..access.roles import MANAGER_ROLE
from ..clock import Clock, days_to_seconds
from ..errors import (AlreadySet, ConfigDoesNotExist, DoesNotExist,
                      InvalidAmount, MaxStakingAmountExceeded, StillGoingOn,
                      ValidationError)
from ..events import (BASIC_STAKING_ADDED, BASIC_STAKING_BOUNDS_CHANGED,
                      BASIC_STAKING_CONFIG_ADDED, BASIC_STAKING_CONFIG_UPDATED,
                      REWARD_CLAIMED_AND_UNSTAKED, EventSink)
from ..interfaces import AccessGate, Ledger
from ..state import AtomicStore
from .tiers import BPS_DENOMINATOR

log = logging.getLogger(__name__)

_UNIT = 10**18

DEFAULT_MIN_AMOUNT = 25_000 * _UNIT
DEFAULT_MAX_AMOUNT = 2_500_000 * _UNIT
DEFAULT_POOLS: Tuple[Tuple[int, int, int], ...] = (
    (90, 2000, 10_000_000 * _UNIT),
    (210, 3000, 30_000_000 * _UNIT),
    (365, 4000, 50_000_000 * _UNIT),
)


@dataclass
class FixedTermPoolConfig:
    id: int
    duration_days: int
    flat_rate_bps: int
    capacity: int
    total_staked: int = 0


@dataclass
class FixedTermPosition:
    amount: int
    start_time: int


def _pool_fields(spec: Union[Tuple[int, int, int], object]) -> Tuple[int, int, int]:
    if isinstance(spec, tuple):
        days, bps, cap = spec
    else:
        days, bps, cap = spec.duration_days, spec.flat_rate_bps, spec.capacity  # type: ignore[attr-defined]
    return int(days), int(bps), int(cap)


def _check_pool(days: int, bps: int, capacity: int) -> None:
    if days <= 0 or bps < 0 or capacity < 0:
        raise ValidationError(
            "invalid pool parameters",
            details={"duration_days": days, "flat_rate_bps": bps, "capacity": capacity},
        )


class FixedTermStakingPools(AtomicStore):
    component = "fixed_term"
    _keyed_fields = ("_positions",)
    _state_fields = ("_pools", "_min_amount", "_max_amount")

    def __init__(
        self,
        ledger: Ledger,
        gate: AccessGate,
        *,
        address: str = "fixed-term-staking",
        pools: Iterable[Union[Tuple[int, int, int], object]] = DEFAULT_POOLS,
        min_amount: int = DEFAULT_MIN_AMOUNT,
        max_amount: int = DEFAULT_MAX_AMOUNT,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        super().__init__(clock=clock, events=events)
        if min_amount < 0 or max_amount < min_amount:
            raise ValidationError("stake bounds must satisfy 0 <= min <= max")
        self._ledger = ledger
        self._gate = gate
        self.address = address
        self._pools: List[FixedTermPoolConfig] = []
        self._positions: Dict[Tuple[int, str], FixedTermPosition] = {}
        self._min_amount = int(min_amount)
        self._max_amount = int(max_amount)
        for spec in pools:
            days, bps, cap = _pool_fields(spec)
            _check_pool(days, bps, cap)
            self._pools.append(FixedTermPoolConfig(len(self._pools), days, bps, cap))

    # ------------------------------------------------------------------ views

    @property
    def min_amount(self) -> int:
        return self._min_amount

    @property
    def max_amount(self) -> int:
        return self._max_amount

    def pool_count(self) -> int:
        return len(self._pools)

    def _require_pool(self, pool_id: int) -> FixedTermPoolConfig:
        if not 0 <= pool_id < len(self._pools):
            raise ConfigDoesNotExist(pool_id=pool_id)
        return self._pools[pool_id]

    def get_pool(self, pool_id: int) -> FixedTermPoolConfig:
        return FixedTermPoolConfig(**asdict(self._require_pool(pool_id)))

    def get_position(self, pool_id: int, account: str) -> Optional[FixedTermPosition]:
        pos = self._positions.get((pool_id, account))
        return FixedTermPosition(**asdict(pos)) if pos else None

    def matures_at(self, pool_id: int, account: str) -> int:
        pool = self._require_pool(pool_id)
        pos = self._positions.get((pool_id, account))
        if not pos:
            raise DoesNotExist(pool_id=pool_id, account=account)
        return pos.start_time + days_to_seconds(pool.duration_days)

    def _after_commit(self) -> None:
        metrics.set_active_positions(self.component, len(self._positions))

    # -------------------------------------------------------------- mutations

    def stake(self, account: str, pool_id: int, amount: int) -> FixedTermPosition:
        with self.transaction("stake") as now:
            if amount < self._min_amount or amount > self._max_amount:
                raise InvalidAmount(account=account, pool_id=pool_id, amount=amount)
            pool = self._require_pool(pool_id)
            if (pool_id, account) in self._positions:
                raise AlreadySet(pool_id=pool_id, account=account)
            if pool.total_staked + amount > pool.capacity:
                raise MaxStakingAmountExceeded(pool_id=pool_id, amount=amount)
            self._touch("_positions", (pool_id, account))
            pos = FixedTermPosition(amount=amount, start_time=now)
            self._positions[(pool_id, account)] = pos
            pool.total_staked += amount
            self._emit(BASIC_STAKING_ADDED, account=account, pool_id=pool_id, amount=amount)
            self._ledger.transfer_from(self.address, account, self.address, amount)
        metrics.record_pulled(self.component, amount)
        log.info("fixed-term stake: %s pool=%d amount=%d", account, pool_id, amount)
        return FixedTermPosition(**asdict(pos))

    def claim_and_unstake(self, account: str, pool_id: int) -> int:
        """Pay principal plus the flat reward once the term has matured; returns the payout."""
        with self.transaction("claim_and_unstake") as now:
            pool = self._require_pool(pool_id)
            pos = self._positions.get((pool_id, account))
            if not pos:
                raise DoesNotExist(pool_id=pool_id, account=account)
            if now < pos.start_time + days_to_seconds(pool.duration_days):
                raise StillGoingOn(pool_id=pool_id, account=account)
            reward = pos.amount * pool.flat_rate_bps // BPS_DENOMINATOR
            self._touch("_positions", (pool_id, account))
            del self._positions[(pool_id, account)]
            pool.total_staked -= pos.amount
            self._emit(
                REWARD_CLAIMED_AND_UNSTAKED,
                account=account,
                pool_id=pool_id,
                amount=pos.amount,
                reward=reward,
            )
            self._ledger.transfer(self.address, account, pos.amount + reward)
        metrics.record_paid(self.component, "principal", pos.amount)
        metrics.record_paid(self.component, "reward", reward)
        log.info("fixed-term claim: %s pool=%d amount=%d reward=%d", account, pool_id, pos.amount, reward)
        return pos.amount + reward

    # ------------------------------------------------------------------ admin

    def add_pool(self, caller: str, duration_days: int, flat_rate_bps: int, capacity: int) -> int:
        with self.transaction("add_pool"):
            self._gate.require_role(MANAGER_ROLE, caller)
            _check_pool(duration_days, flat_rate_bps, capacity)
            pool_id = len(self._pools)
            self._pools.append(FixedTermPoolConfig(pool_id, duration_days, flat_rate_bps, capacity))
            self._emit(
                BASIC_STAKING_CONFIG_ADDED,
                pool_id=pool_id,
                duration_days=duration_days,
                flat_rate_bps=flat_rate_bps,
                capacity=capacity,
            )
        log.info("fixed-term pool %d added by %s", pool_id, caller)
        return pool_id

    def update_pool(self, caller: str, pool_id: int, duration_days: int, flat_rate_bps: int, capacity: int) -> None:
        with self.transaction("update_pool"):
            self._gate.require_role(MANAGER_ROLE, caller)
            _check_pool(duration_days, flat_rate_bps, capacity)
            pool = self._require_pool(pool_id)
            pool.duration_days = duration_days
            pool.flat_rate_bps = flat_rate_bps
            pool.capacity = capacity
            self._emit(
                BASIC_STAKING_CONFIG_UPDATED,
                pool_id=pool_id,
                duration_days=duration_days,
                flat_rate_bps=flat_rate_bps,
                capacity=capacity,
            )
        log.info("fixed-term pool %d updated by %s", pool_id, caller)

    def _set_bounds(self, caller: str, op: str, min_amount: int, max_amount: int) -> None:
        with self.transaction(op):
            self._gate.require_role(MANAGER_ROLE, caller)
            if min_amount < 0 or max_amount < min_amount:
                raise ValidationError(
                    "stake bounds must satisfy 0 <= min <= max",
                    details={"min_amount": min_amount, "max_amount": max_amount},
                )
            self._min_amount = min_amount
            self._max_amount = max_amount
            self._emit(BASIC_STAKING_BOUNDS_CHANGED, min_amount=min_amount, max_amount=max_amount)

    def set_min_amount(self, caller: str, amount: int) -> None:
        self._set_bounds(caller, "set_min_amount", int(amount), self._max_amount)

    def set_max_amount(self, caller: str, amount: int) -> None:
        self._set_bounds(caller, "set_max_amount", self._min_amount, int(amount))


__all__ = [
    "DEFAULT_MIN_AMOUNT",
    "DEFAULT_MAX_AMOUNT",
    "DEFAULT_POOLS",
    "FixedTermPoolConfig",
    "FixedTermPosition",
    "FixedTermStakingPools",
]
