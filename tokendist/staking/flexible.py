from __future__ import annotations

"""
Flexible staking ledger
-----------------------

One continuous, tier-accruing position per account.

Lifecycle::

    NotStaked --start--> Staked --request_unstake--> Staked(requested)
        ^                                                 |
        +------------------ unstake (after cooldown) -----+

Reward accrual uses whole days elapsed since ``last_claim_time`` fed through
the tier schedule. Claiming resets ``last_claim_time`` to ``now``, so the
schedule restarts from day zero after every claim; ``add_funds`` and
``restake_reward`` fold the pending reward into the principal and reset the
timer the same way.

Amounts are integer token base units. Every mutation runs inside
``AtomicStore.transaction``; the ledger pull/payout is the last step.

Rewards are computed at the effective timestamp of the state-changing call,
which is the clock read taken on entry to that call. A preceding read-only
``pending_reward`` performed at an earlier time may report a smaller amount.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, Iterable, Optional, Union

from .. import metrics
from ..access.roles import MANAGER_ROLE
from ..clock import Clock, days_between, days_to_seconds
from ..errors import (AddFundsIsNotActive, AmountMustBeGreaterThanZero,
                      NoReward, RequestUnstakeIsNotReported,
                      RequestUnstakePeriodNotExpired,
                      RequestUnstakeReportedEarlier, RestakeIntervalNotPassed,
                      RestakeIsNotActive, StakingAlreadyStarted,
                      StakingNotStarted, ValidationError)
from ..events import (ADDED_FUNDS_TO_STAKING, PERIOD_ADDED, PERIOD_UPDATED,
                      REQUEST_UNSTAKE_REPORTED, REWARD_CLAIMED,
                      REWARD_RESTAKED, STAKING_SETTING_CHANGED,
                      STAKING_STARTED, UNSTAKED, EventSink)
from ..interfaces import AccessGate, Ledger
from ..state import AtomicStore
from .tiers import DEFAULT_TIERS, Tier, TierSchedule

log = logging.getLogger(__name__)


@dataclass
class StakingPosition:
    principal: int = 0
    start_time: int = 0
    total_claimed: int = 0
    last_claim_time: int = 0
    last_restake_time: int = 0
    unstake_requested_at: int = 0
    active: bool = False

    def to_dict(self) -> Dict[str, Union[int, bool]]:
        return asdict(self)


class FlexibleStakingLedger(AtomicStore):
    component = "flexible"
    _keyed_fields = ("_stakes",)
    _state_fields = (
        "_active_positions",
        "_tiers",
        "_restake_enabled",
        "_restake_interval_days",
        "_add_funds_enabled",
        "_unstake_cooldown_days",
    )

    def __init__(
        self,
        ledger: Ledger,
        gate: AccessGate,
        *,
        address: str = "flexible-staking",
        tiers: Iterable[Union[Tier, object]] = DEFAULT_TIERS,
        restake_enabled: bool = False,
        restake_interval_days: int = 30,
        add_funds_enabled: bool = False,
        unstake_cooldown_days: int = 7,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        super().__init__(clock=clock, events=events)
        self._ledger = ledger
        self._gate = gate
        self.address = address
        self._stakes: Dict[str, StakingPosition] = {}
        self._active_positions = 0
        self._tiers = TierSchedule(tiers)
        self._restake_enabled = bool(restake_enabled)
        self._restake_interval_days = int(restake_interval_days)
        self._add_funds_enabled = bool(add_funds_enabled)
        self._unstake_cooldown_days = int(unstake_cooldown_days)

    # ------------------------------------------------------------------ views

    @property
    def tiers(self) -> TierSchedule:
        return self._tiers

    @property
    def restake_enabled(self) -> bool:
        return self._restake_enabled

    @property
    def restake_interval_days(self) -> int:
        return self._restake_interval_days

    @property
    def add_funds_enabled(self) -> bool:
        return self._add_funds_enabled

    @property
    def unstake_cooldown_days(self) -> int:
        return self._unstake_cooldown_days

    def calculate_reward(self, principal: int, days: int) -> int:
        """Tier-schedule reward for ``principal`` held ``days`` whole days."""
        return self._tiers.reward(principal, days)

    def get_stake(self, account: str) -> StakingPosition:
        """Copy of the account's position (all zero if it never staked)."""
        pos = self._stakes.get(account)
        return StakingPosition(**asdict(pos)) if pos else StakingPosition()

    def is_staking(self, account: str) -> bool:
        pos = self._stakes.get(account)
        return bool(pos and pos.active)

    def pending_reward(self, account: str, extra_days: int = 0) -> int:
        """Reward the account could claim now (or ``extra_days`` from now)."""
        pos = self._stakes.get(account)
        if not pos or not pos.active:
            return 0
        now = self.current_time() + days_to_seconds(extra_days)
        return self.calculate_reward(pos.principal, days_between(pos.last_claim_time, now))

    def total_staked(self) -> int:
        return sum(p.principal for p in self._stakes.values() if p.active)

    def active_count(self) -> int:
        return self._active_positions

    # -------------------------------------------------------------- internals

    def _require_staked(self, account: str) -> StakingPosition:
        self._touch("_stakes", account)
        pos = self._stakes.get(account)
        if not pos or not pos.active:
            raise StakingNotStarted(account=account)
        return pos

    def _accrued(self, pos: StakingPosition, now: int) -> int:
        days = days_between(pos.last_claim_time, now)
        reward = self.calculate_reward(pos.principal, days)
        log.debug("accrued %d over %d day(s) on principal %d", reward, days, pos.principal)
        return reward

    def _after_commit(self) -> None:
        metrics.set_active_positions(self.component, self.active_count())

    # -------------------------------------------------------------- mutations

    def start(self, account: str, amount: int) -> StakingPosition:
        with self.transaction("start") as now:
            if amount <= 0:
                raise AmountMustBeGreaterThanZero(account=account, amount=amount)
            if self.is_staking(account):
                raise StakingAlreadyStarted(account=account)
            pos = StakingPosition(
                principal=amount,
                start_time=now,
                last_claim_time=now,
                last_restake_time=now,
                active=True,
            )
            self._touch("_stakes", account)
            self._stakes[account] = pos
            self._active_positions += 1
            self._emit(STAKING_STARTED, account=account, amount=amount)
            self._ledger.transfer_from(self.address, account, self.address, amount)
        metrics.record_pulled(self.component, amount)
        log.info("staking started: %s principal=%d", account, amount)
        return self.get_stake(account)

    def add_funds(self, account: str, amount: int) -> StakingPosition:
        """Fold the pending reward and ``amount`` into the principal; resets timers and any unstake request."""
        with self.transaction("add_funds") as now:
            if not self._add_funds_enabled:
                raise AddFundsIsNotActive(account=account)
            pos = self._require_staked(account)
            if amount <= 0:
                raise AmountMustBeGreaterThanZero(account=account, amount=amount)
            reward = self._accrued(pos, now)
            pos.principal += reward + amount
            pos.last_claim_time = now
            pos.last_restake_time = now
            pos.unstake_requested_at = 0
            self._emit(ADDED_FUNDS_TO_STAKING, account=account, amount=amount, reward=reward)
            self._ledger.transfer_from(self.address, account, self.address, amount)
        metrics.record_pulled(self.component, amount)
        log.info("funds added: %s amount=%d folded_reward=%d", account, amount, reward)
        return self.get_stake(account)

    def claim_reward(self, account: str) -> int:
        with self.transaction("claim_reward") as now:
            pos = self._require_staked(account)
            reward = self._accrued(pos, now)
            if reward == 0:
                raise NoReward(account=account)
            pos.last_claim_time = now
            pos.total_claimed += reward
            self._emit(REWARD_CLAIMED, account=account, reward=reward)
            self._ledger.transfer(self.address, account, reward)
        metrics.record_paid(self.component, "reward", reward)
        log.info("reward claimed: %s reward=%d", account, reward)
        return reward

    def restake_reward(self, account: str) -> int:
        with self.transaction("restake_reward") as now:
            if not self._restake_enabled:
                raise RestakeIsNotActive(account=account)
            pos = self._require_staked(account)
            if now < pos.last_restake_time + days_to_seconds(self._restake_interval_days):
                raise RestakeIntervalNotPassed(account=account)
            reward = self._accrued(pos, now)
            if reward == 0:
                raise NoReward(account=account)
            pos.principal += reward
            pos.last_claim_time = now
            pos.last_restake_time = now
            self._emit(REWARD_RESTAKED, account=account, reward=reward, principal=pos.principal)
        log.info("reward restaked: %s reward=%d principal=%d", account, reward, pos.principal)
        return reward

    def request_unstake(self, account: str) -> int:
        with self.transaction("request_unstake") as now:
            pos = self._require_staked(account)
            if pos.unstake_requested_at:
                raise RequestUnstakeReportedEarlier(account=account)
            pos.unstake_requested_at = now
            self._emit(REQUEST_UNSTAKE_REPORTED, account=account)
        log.info("unstake requested: %s at=%d", account, now)
        return now

    def unstake(self, account: str) -> int:
        """Pay principal plus any pending reward in one transfer and close the position."""
        with self.transaction("unstake") as now:
            pos = self._require_staked(account)
            if not pos.unstake_requested_at:
                raise RequestUnstakeIsNotReported(account=account)
            if now < pos.unstake_requested_at + days_to_seconds(self._unstake_cooldown_days):
                raise RequestUnstakePeriodNotExpired(account=account)
            reward = self._accrued(pos, now)
            if reward:
                pos.total_claimed += reward
                pos.last_claim_time = now
                self._emit(REWARD_CLAIMED, account=account, reward=reward)
            principal = pos.principal
            payout = principal + reward
            pos.principal = 0
            pos.unstake_requested_at = 0
            pos.active = False
            self._active_positions -= 1
            self._emit(UNSTAKED, account=account, amount=payout)
            self._ledger.transfer(self.address, account, payout)
        metrics.record_paid(self.component, "reward", reward)
        metrics.record_paid(self.component, "principal", principal)
        log.info("unstaked: %s principal=%d reward=%d", account, principal, reward)
        return payout

    # ------------------------------------------------------------------ admin

    def _set(self, caller: str, op: str, attr: str, value) -> None:
        with self.transaction(op):
            self._gate.require_role(MANAGER_ROLE, caller)
            if not isinstance(value, bool) and value < 0:
                raise ValidationError(f"{attr.lstrip('_')} must be non-negative", details={"value": value})
            setattr(self, attr, value)
            self._emit(STAKING_SETTING_CHANGED, setting=attr.lstrip("_"), value=value)
        log.info("%s set to %r by %s", attr.lstrip("_"), value, caller)

    def set_restake_status(self, caller: str, enabled: bool) -> None:
        self._set(caller, "set_restake_status", "_restake_enabled", bool(enabled))

    def set_add_funds_status(self, caller: str, enabled: bool) -> None:
        self._set(caller, "set_add_funds_status", "_add_funds_enabled", bool(enabled))

    def set_restake_interval(self, caller: str, days: int) -> None:
        self._set(caller, "set_restake_interval", "_restake_interval_days", int(days))

    def set_unstake_cooldown(self, caller: str, days: int) -> None:
        self._set(caller, "set_unstake_cooldown", "_unstake_cooldown_days", int(days))

    def update_period(self, caller: str, index: int, days: int, rate_bps: int) -> None:
        with self.transaction("update_period"):
            self._gate.require_role(MANAGER_ROLE, caller)
            self._tiers.update(index, days, rate_bps)
            self._emit(PERIOD_UPDATED, index=index, days=days, rate_bps=rate_bps)
        log.info("tier %d updated to (%d days, %d bps) by %s", index, days, rate_bps, caller)

    def add_period(self, caller: str, days: int, rate_bps: int) -> int:
        with self.transaction("add_period"):
            self._gate.require_role(MANAGER_ROLE, caller)
            index = self._tiers.add(days, rate_bps)
            self._emit(PERIOD_ADDED, index=index, days=days, rate_bps=rate_bps)
        log.info("tier %d added (%d days, %d bps) by %s", index, days, rate_bps, caller)
        return index


__all__ = ["StakingPosition", "FlexibleStakingLedger"]
