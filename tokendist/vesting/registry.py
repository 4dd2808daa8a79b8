from __future__ import annotations

"""
Vesting allocation registry
---------------------------

Admin-defined vesting pools (1-based ids; 0 is never valid) and the
proof-gated, one-time admission that turns an allocation into a wallet
vesting entry.

Admission (``claim``) for each ``(pool_id, amount)`` tuple:

  1. verify the proof for ``(caller, pool_id, amount)`` against the root
  2. refuse if the (pool, wallet) claim marker is already set
  3. split ``amount`` into ``immediate = amount * tge_bps / 10_000`` and the
     remainder, which is added to the wallet's entry (created if absent)
  4. set the marker; it survives later removal of the entry

All immediate amounts of one call are paid in a single transfer, after every
tuple has been applied. Claims are refused while paused; the commitment root
may only be changed while paused.

The global cliff epoch is set once for every pool by ``set_cliff_start``;
pools added afterwards inherit it. Releases follow the curve in
:mod:`tokendist.vesting.curve`; read-only release queries live in
:mod:`tokendist.vesting.scheduler`.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .. import metrics
from ..access.roles import MANAGER_ROLE
from ..clock import Clock, days_to_seconds
from ..control.pausable import Pausable
from ..errors import (AlreadyClaimed, AmountMustBeGreaterThanZero,
                      CannotRemoveWalletFromVestingPool, CliffAlreadySet,
                      CliffNotSetYet, InputArrayMismatchLength,
                      MerkleTreeNotSet, MerkleTreeValidationFailed,
                      NoRewardToRelease, PoolIndexDoesNotExist,
                      ValidationError, WalletAlreadyExists, WalletNotSet)
from ..events import (CLAIMED, MERKLE_ROOT_SET, POOL_ADDED, POOL_UPDATED,
                      RELEASED, VESTING_CLIFF_STARTED, WALLET_ADDED, WALLET_DELETED,
                      EventSink)
from ..hashing import from_hex, to_hex
from ..interfaces import AccessGate, Ledger
from ..staking.tiers import BPS_DENOMINATOR
from ..state import AtomicStore
from .curve import releasable_amount
from .merkle import Node, verify_claim

log = logging.getLogger(__name__)


@dataclass
class VestingPool:
    cliff_days: int
    vesting_days: int
    tge_bps: int
    cliff_start: int = 0
    active: bool = True

    @property
    def cliff_end(self) -> int:
        if not self.cliff_start:
            return 0
        return self.cliff_start + days_to_seconds(self.cliff_days)

    @property
    def vesting_end(self) -> int:
        if not self.cliff_start:
            return 0
        return self.cliff_end + days_to_seconds(self.vesting_days)


@dataclass(frozen=True)
class VestingPoolView:
    """Read-only snapshot of a pool, timestamps in UNIX seconds (0 until the cliff epoch)."""

    cliff_start: int
    cliff_days: int
    cliff_end: int
    vesting_days: int
    vesting_end: int
    tge_bps: int
    active: bool


@dataclass
class WalletVestingEntry:
    in_vesting: int = 0
    released: int = 0


def _check_pool_params(cliff_days: int, vesting_days: int, tge_bps: int) -> None:
    if cliff_days < 0 or vesting_days < 0 or not 0 <= tge_bps <= BPS_DENOMINATOR:
        raise ValidationError(
            "invalid vesting pool parameters",
            details={"cliff_days": cliff_days, "vesting_days": vesting_days, "tge_bps": tge_bps},
        )


def _normalize_root(root: Node) -> bytes:
    raw = from_hex(root) if isinstance(root, str) else bytes(root)
    if len(raw) != 32:
        raise ValidationError("commitment root must be 32 bytes", details={"length": len(raw)})
    return raw


class VestingAllocationRegistry(AtomicStore):
    component = "vesting"
    _keyed_fields = ("_entries", "_wallet_pools", "_claimed")
    _state_fields = ("_pools", "_merkle_root", "_cliff_start")

    def __init__(
        self,
        ledger: Ledger,
        gate: AccessGate,
        *,
        address: str = "vesting",
        merkle_root: Optional[Node] = None,
        start_paused: bool = True,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> None:
        super().__init__(clock=clock, events=events)
        self._ledger = ledger
        self._gate = gate
        self.address = address
        self.pausable = Pausable(gate, paused=start_paused, clock=self._clock, events=self._sink)
        self._pools: List[VestingPool] = []
        self._entries: Dict[Tuple[int, str], WalletVestingEntry] = {}
        self._wallet_pools: Dict[str, List[int]] = {}
        self._claimed: Set[Tuple[int, str]] = set()
        self._merkle_root: Optional[bytes] = _normalize_root(merkle_root) if merkle_root is not None else None
        self._cliff_start = 0

    # ------------------------------------------------------------- pause

    def is_paused(self) -> bool:
        return self.pausable.is_paused()

    def pause(self, caller: str) -> None:
        self.pausable.pause(caller)

    def unpause(self, caller: str) -> None:
        self.pausable.unpause(caller)

    # ------------------------------------------------------------- views

    def pool_count(self) -> int:
        return len(self._pools)

    def _pool_or_none(self, pool_id: int) -> Optional[VestingPool]:
        if 1 <= pool_id <= len(self._pools):
            return self._pools[pool_id - 1]
        return None

    def _require_pool(self, pool_id: int) -> VestingPool:
        pool = self._pool_or_none(pool_id)
        if pool is None:
            raise PoolIndexDoesNotExist(pool_id=pool_id)
        return pool

    def get_pool(self, pool_id: int) -> VestingPoolView:
        pool = self._require_pool(pool_id)
        return VestingPoolView(
            cliff_start=pool.cliff_start,
            cliff_days=pool.cliff_days,
            cliff_end=pool.cliff_end,
            vesting_days=pool.vesting_days,
            vesting_end=pool.vesting_end,
            tge_bps=pool.tge_bps,
            active=pool.active,
        )

    def get_pool_tge(self, pool_id: int) -> int:
        return self._require_pool(pool_id).tge_bps

    @property
    def merkle_root(self) -> Optional[str]:
        return to_hex(self._merkle_root) if self._merkle_root is not None else None

    @property
    def cliff_start(self) -> int:
        return self._cliff_start

    def cliff_started(self) -> bool:
        return self._cliff_start != 0

    def require_cliff_started(self, account: Optional[str] = None) -> None:
        if not self._cliff_start:
            raise CliffNotSetYet(account=account)

    def vesting_window(self, pool_id: int) -> Tuple[int, int]:
        """``(cliff_end, vesting_end)`` of a pool whose cliff epoch has started."""
        pool = self._pool_or_none(pool_id)
        if pool is None or not pool.cliff_start:
            raise CliffNotSetYet(pool_id=pool_id)
        return pool.cliff_end, pool.vesting_end

    def is_claimed(self, pool_id: int, wallet: str) -> bool:
        return (pool_id, wallet) in self._claimed

    def get_entry(self, pool_id: int, wallet: str) -> Optional[WalletVestingEntry]:
        entry = self._entries.get((pool_id, wallet))
        return WalletVestingEntry(**asdict(entry)) if entry else None

    def wallets_in_vesting(self, pool_id: int, wallet: str) -> int:
        """Post-TGE principal held in vesting for (pool, wallet); 0 when absent."""
        entry = self._entries.get((pool_id, wallet))
        return entry.in_vesting if entry else 0

    def released_amount(self, pool_id: int, wallet: str) -> int:
        entry = self._entries.get((pool_id, wallet))
        return entry.released if entry else 0

    def get_wallet_pools(self, wallet: str) -> List[int]:
        return list(self._wallet_pools.get(wallet, ()))

    def vesting_amount_remaining(self, wallet: str) -> Tuple[List[int], List[int]]:
        """(pool ids, unreleased principal) for every pool the wallet is in."""
        pool_ids = self.get_wallet_pools(wallet)
        return pool_ids, [self.vesting_amount_remaining_in_pool(wallet, p) for p in pool_ids]

    def vesting_amount_remaining_in_pool(self, wallet: str, pool_id: int) -> int:
        entry = self._entries.get((pool_id, wallet))
        return entry.in_vesting - entry.released if entry else 0

    def total_in_vesting(self) -> int:
        return sum(e.in_vesting - e.released for e in self._entries.values())

    def _after_commit(self) -> None:
        metrics.set_active_positions(self.component, len(self._entries))

    # ------------------------------------------------------------- internals

    def _credit_entry(self, wallet: str, pool_id: int, amount: int) -> None:
        key = (pool_id, wallet)
        self._touch("_entries", key)
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = WalletVestingEntry()
            self._touch("_wallet_pools", wallet)
            self._wallet_pools.setdefault(wallet, []).append(pool_id)
        entry.in_vesting += amount
        self._emit(WALLET_ADDED, account=wallet, pool_id=pool_id, amount=amount)

    def _release_pool(self, account: str, pool_id: int, now: int) -> int:
        """Mark the pool's releasable amount as released; returns it (0 when nothing is due)."""
        self._touch("_entries", (pool_id, account))
        entry = self._entries[(pool_id, account)]
        cliff_end, vesting_end = self.vesting_window(pool_id)
        amount = releasable_amount(entry.in_vesting, entry.released, cliff_end, vesting_end, now)
        if amount > 0:
            entry.released += amount
            self._emit(RELEASED, account=account, pool_id=pool_id, amount=amount)
        return amount

    # ------------------------------------------------------------- admission

    def claim(
        self,
        account: str,
        proofs: Sequence[Sequence[Node]],
        pool_ids: Sequence[int],
        amounts: Sequence[int],
    ) -> int:
        """Admit ``account`` into each listed pool; returns the immediate (TGE) amount paid."""
        with self.transaction("claim"):
            self.pausable.require_not_paused()
            if not (len(proofs) == len(pool_ids) == len(amounts)):
                raise InputArrayMismatchLength(
                    account=account,
                    details={"proofs": len(proofs), "pool_ids": len(pool_ids), "amounts": len(amounts)},
                )
            if self._merkle_root is None:
                raise MerkleTreeNotSet(account=account)

            total_immediate = 0
            for index, (proof, pool_id, amount) in enumerate(zip(proofs, pool_ids, amounts)):
                try:
                    valid = verify_claim(proof, self._merkle_root, account, pool_id, amount)
                except ValueError as exc:
                    raise MerkleTreeValidationFailed(
                        account=account, pool_id=pool_id, index=index, amount=amount
                    ) from exc
                if not valid:
                    raise MerkleTreeValidationFailed(account=account, pool_id=pool_id, index=index, amount=amount)
                if (pool_id, account) in self._claimed:
                    raise AlreadyClaimed(account=account, pool_id=pool_id, index=index)
                pool = self._require_pool(pool_id)

                immediate = amount * pool.tge_bps // BPS_DENOMINATOR
                remainder = amount - immediate
                self._touch("_claimed", (pool_id, account))
                self._claimed.add((pool_id, account))
                if immediate > 0:
                    total_immediate += immediate
                    self._emit(CLAIMED, account=account, pool_id=pool_id, amount=immediate)
                if remainder > 0:
                    self._credit_entry(account, pool_id, remainder)

            if total_immediate > 0:
                self._ledger.transfer(self.address, account, total_immediate)
        metrics.record_paid(self.component, "tge", total_immediate)
        log.info("claim: %s pools=%s immediate=%d", account, list(pool_ids), total_immediate)
        return total_immediate

    # ------------------------------------------------------------- release

    def release(self, account: str, pool_id: int) -> int:
        with self.transaction("release") as now:
            self.require_cliff_started(account)
            if (pool_id, account) not in self._entries:
                raise WalletNotSet(account=account, pool_id=pool_id)
            amount = self._release_pool(account, pool_id, now)
            if amount <= 0:
                raise NoRewardToRelease(account=account, pool_id=pool_id)
            self._ledger.transfer(self.address, account, amount)
        metrics.record_paid(self.component, "vested", amount)
        log.info("released %d to %s from pool %d", amount, account, pool_id)
        return amount

    def release_all(self, account: str) -> int:
        """Release every pool with a positive amount in one aggregated transfer."""
        with self.transaction("release_all") as now:
            self.require_cliff_started(account)
            total = sum(self._release_pool(account, p, now) for p in self.get_wallet_pools(account))
            if total == 0:
                raise NoRewardToRelease(account=account)
            self._ledger.transfer(self.address, account, total)
        metrics.record_paid(self.component, "vested", total)
        log.info("released %d to %s across all pools", total, account)
        return total

    # ------------------------------------------------------------- admin

    def add_pools(
        self,
        caller: str,
        cliff_days: Sequence[int],
        vesting_days: Sequence[int],
        tge_bps: Sequence[int],
    ) -> List[int]:
        with self.transaction("add_pools"):
            self._gate.require_role(MANAGER_ROLE, caller)
            if not (len(cliff_days) == len(vesting_days) == len(tge_bps)):
                raise InputArrayMismatchLength(account=caller)
            new_ids: List[int] = []
            for cliff, vest, tge in zip(cliff_days, vesting_days, tge_bps):
                _check_pool_params(cliff, vest, tge)
                self._pools.append(VestingPool(int(cliff), int(vest), int(tge), cliff_start=self._cliff_start))
                pool_id = len(self._pools)
                new_ids.append(pool_id)
                self._emit(POOL_ADDED, pool_id=pool_id, cliff_days=cliff, vesting_days=vest, tge_bps=tge)
        log.info("vesting pools %s added by %s", new_ids, caller)
        return new_ids

    def update_pools(
        self,
        caller: str,
        pool_ids: Sequence[int],
        cliff_days: Sequence[int],
        vesting_days: Sequence[int],
        tge_bps: Sequence[int],
    ) -> None:
        with self.transaction("update_pools"):
            self._gate.require_role(MANAGER_ROLE, caller)
            if not (len(pool_ids) == len(cliff_days) == len(vesting_days) == len(tge_bps)):
                raise InputArrayMismatchLength(account=caller)
            for pool_id, cliff, vest, tge in zip(pool_ids, cliff_days, vesting_days, tge_bps):
                pool = self._require_pool(pool_id)
                _check_pool_params(cliff, vest, tge)
                pool.cliff_days = int(cliff)
                pool.vesting_days = int(vest)
                pool.tge_bps = int(tge)
                self._emit(POOL_UPDATED, pool_id=pool_id, cliff_days=cliff, vesting_days=vest, tge_bps=tge)
        log.info("vesting pools %s updated by %s", list(pool_ids), caller)

    def set_merkle_root(self, caller: str, root: Node) -> None:
        with self.transaction("set_merkle_root"):
            self._gate.require_role(MANAGER_ROLE, caller)
            self.pausable.require_paused()
            raw = _normalize_root(root)
            self._merkle_root = raw
            self._emit(MERKLE_ROOT_SET, root=to_hex(raw))
        log.info("commitment root set to %s by %s", to_hex(raw), caller)

    def add_vesting_pool_wallet(self, caller: str, wallet: str, pool_id: int, amount: int) -> None:
        """Put ``amount`` straight into vesting for ``wallet`` (no proof, no TGE split)."""
        with self.transaction("add_vesting_pool_wallet"):
            self._gate.require_role(MANAGER_ROLE, caller)
            self._require_pool(pool_id)
            if (pool_id, wallet) in self._entries:
                raise WalletAlreadyExists(account=wallet, pool_id=pool_id)
            if amount <= 0:
                raise AmountMustBeGreaterThanZero(account=wallet, pool_id=pool_id, amount=amount)
            self._credit_entry(wallet, pool_id, amount)
        log.info("wallet %s added to vesting pool %d with %d by %s", wallet, pool_id, amount, caller)

    def remove_vesting_pool_wallet(self, caller: str, wallet: str, pool_id: int) -> None:
        with self.transaction("remove_vesting_pool_wallet"):
            self._gate.require_role(MANAGER_ROLE, caller)
            entry = self._entries.get((pool_id, wallet))
            if entry is None:
                raise WalletNotSet(account=wallet, pool_id=pool_id)
            if entry.released > 0:
                raise CannotRemoveWalletFromVestingPool(account=wallet, pool_id=pool_id)
            self._touch("_entries", (pool_id, wallet))
            self._touch("_wallet_pools", wallet)
            del self._entries[(pool_id, wallet)]
            pools = self._wallet_pools.get(wallet, [])
            pools.remove(pool_id)
            if not pools:
                self._wallet_pools.pop(wallet, None)
            self._emit(WALLET_DELETED, account=wallet, pool_id=pool_id)
        log.info("wallet %s removed from vesting pool %d by %s", wallet, pool_id, caller)

    def set_cliff_start(self, caller: str) -> int:
        """Start the cliff for every pool at ``now``; can only happen once."""
        with self.transaction("set_cliff_start") as now:
            self._gate.require_role(MANAGER_ROLE, caller)
            if self._cliff_start:
                raise CliffAlreadySet(account=caller)
            self._cliff_start = now
            for pool in self._pools:
                pool.cliff_start = now
            self._emit(VESTING_CLIFF_STARTED, cliff_start=now)
        log.info("vesting cliff started at %d by %s", now, caller)
        return now


__all__ = [
    "VestingPool",
    "VestingPoolView",
    "WalletVestingEntry",
    "VestingAllocationRegistry",
]
