from __future__ import annotations

"""
Cliff-then-linear release of vested allocations.

``releasable = vesting_schedule(now) - released``, floored at zero. Anything
that depends on the cliff epoch fails ``CliffNotSetYet`` before the epoch is
set, while the batch queries return empty results for wallets that hold no
allocation.

The scheduler keeps no state of its own. Queries read the registry through
its public views; ``release`` and ``release_all`` are carried out by the
registry inside its own transactions.
"""

from dataclasses import dataclass
from typing import List, Tuple

from ..errors import WalletNotSet
from .curve import releasable_amount, vested_amount
from .registry import VestingAllocationRegistry


@dataclass(frozen=True)
class WalletStats:
    in_vesting: int
    vested: int
    released: int
    remaining: int


class VestingReleaseScheduler:
    def __init__(self, registry: VestingAllocationRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> VestingAllocationRegistry:
        return self._registry

    # ------------------------------------------------------------- queries

    def vesting_schedule(self, wallet: str, pool_id: int, at: int) -> int:
        """Amount vested to date at ``at``; non-decreasing in ``at``."""
        cliff_end, vesting_end = self._registry.vesting_window(pool_id)
        return vested_amount(self._registry.wallets_in_vesting(pool_id, wallet), cliff_end, vesting_end, at)

    def releasable(self, wallet: str, pool_id: int) -> int:
        cliff_end, vesting_end = self._registry.vesting_window(pool_id)
        entry = self._registry.get_entry(pool_id, wallet)
        if entry is None:
            raise WalletNotSet(account=wallet, pool_id=pool_id)
        now = self._registry.current_time()
        return releasable_amount(entry.in_vesting, entry.released, cliff_end, vesting_end, now)

    def releasable_all(self, wallet: str) -> Tuple[List[int], List[int]]:
        """(pool ids, releasable amounts) for every pool the wallet is in."""
        pool_ids = self._registry.get_wallet_pools(wallet)
        if not pool_ids:
            return [], []
        self._registry.require_cliff_started(wallet)
        return pool_ids, [self.releasable(wallet, p) for p in pool_ids]

    def get_wallet_stats_in_pool(self, wallet: str, pool_id: int, at: int) -> WalletStats:
        cliff_end, vesting_end = self._registry.vesting_window(pool_id)
        entry = self._registry.get_entry(pool_id, wallet)
        if entry is None:
            return WalletStats(0, 0, 0, 0)
        return WalletStats(
            in_vesting=entry.in_vesting,
            vested=vested_amount(entry.in_vesting, cliff_end, vesting_end, at),
            released=entry.released,
            remaining=entry.in_vesting - entry.released,
        )

    def get_wallet_stats(self, wallet: str, at: int) -> Tuple[List[int], List[WalletStats]]:
        pool_ids = self._registry.get_wallet_pools(wallet)
        if not pool_ids:
            return [], []
        self._registry.require_cliff_started(wallet)
        return pool_ids, [self.get_wallet_stats_in_pool(wallet, p, at) for p in pool_ids]

    # ------------------------------------------------------------- release

    def release(self, account: str, pool_id: int) -> int:
        return self._registry.release(account, pool_id)

    def release_all(self, account: str) -> int:
        return self._registry.release_all(account)


__all__ = ["WalletStats", "vested_amount", "releasable_amount", "VestingReleaseScheduler"]
