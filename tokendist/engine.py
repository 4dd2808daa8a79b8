from __future__ import annotations

"""
tokendist.engine — wires the subsystems together over one clock and one
event sink.

    cfg = config.load()
    engine = DistributionEngine.with_token_ledger(cfg, admin="0xAdmin...")
    engine.flexible.start(account, amount)
    engine.vesting.claim(account, proofs, pool_ids, amounts)
    engine.scheduler.release_all(account)

Whole-token amounts from the configuration are scaled to base units with
``cfg.token_decimals`` here; the components only ever see base units.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .access.roles import RoleRegistry
from .clock import Clock, SystemClock
from .config import TokenDistConfig
from .events import EventSink, NullEventSink
from .interfaces import Ledger
from .staking.fixed_term import FixedTermStakingPools
from .staking.flexible import FlexibleStakingLedger
from .token.ledger import TokenLedger
from .vesting.registry import VestingAllocationRegistry
from .vesting.scheduler import VestingReleaseScheduler

log = logging.getLogger(__name__)

STAKING_ADDRESS = "staking"
VESTING_ADDRESS = "vesting"


@dataclass
class DistributionEngine:
    ledger: Ledger
    roles: RoleRegistry
    flexible: FlexibleStakingLedger
    fixed_term: FixedTermStakingPools
    vesting: VestingAllocationRegistry
    scheduler: VestingReleaseScheduler
    clock: Clock
    events: EventSink

    @classmethod
    def from_config(
        cls,
        cfg: TokenDistConfig,
        ledger: Ledger,
        admin: str,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> "DistributionEngine":
        cfg.validate()
        clock = clock or SystemClock()
        events = events if events is not None else NullEventSink()
        roles = RoleRegistry(admin, clock=clock, events=events)

        flex = cfg.flexible
        flexible = FlexibleStakingLedger(
            ledger,
            roles,
            address=STAKING_ADDRESS,
            tiers=flex.tiers,
            restake_enabled=flex.restake_enabled,
            restake_interval_days=flex.restake_interval_days,
            add_funds_enabled=flex.add_funds_enabled,
            unstake_cooldown_days=flex.unstake_cooldown_days,
            clock=clock,
            events=events,
        )

        fixed = cfg.fixed_term
        fixed_term = FixedTermStakingPools(
            ledger,
            roles,
            address=STAKING_ADDRESS,
            pools=[
                (p.duration_days, p.flat_rate_bps, cfg.to_base_units(p.capacity))
                for p in fixed.pools
            ],
            min_amount=cfg.to_base_units(fixed.min_amount),
            max_amount=cfg.to_base_units(fixed.max_amount),
            clock=clock,
            events=events,
        )

        vest = cfg.vesting
        vesting = VestingAllocationRegistry(
            ledger,
            roles,
            address=VESTING_ADDRESS,
            merkle_root=vest.merkle_root,
            start_paused=vest.start_paused,
            clock=clock,
            events=events,
        )
        if vest.pools:
            vesting.add_pools(
                admin,
                [p.cliff_days for p in vest.pools],
                [p.vesting_days for p in vest.pools],
                [p.tge_bps for p in vest.pools],
            )

        log.info(
            "engine ready: %d tier(s), %d fixed-term pool(s), %d vesting pool(s)",
            len(flexible.tiers),
            fixed_term.pool_count(),
            vesting.pool_count(),
        )
        return cls(
            ledger=ledger,
            roles=roles,
            flexible=flexible,
            fixed_term=fixed_term,
            vesting=vesting,
            scheduler=VestingReleaseScheduler(vesting),
            clock=clock,
            events=events,
        )

    @classmethod
    def with_token_ledger(
        cls,
        cfg: TokenDistConfig,
        admin: str,
        clock: Optional[Clock] = None,
        events: Optional[EventSink] = None,
    ) -> "DistributionEngine":
        """Build the engine over a fresh in-process ledger whose whole supply belongs to ``admin``."""
        clock = clock or SystemClock()
        ledger = TokenLedger(
            admin,
            cfg.to_base_units(cfg.total_supply),
            decimals=cfg.token_decimals,
            clock=clock,
            events=events,
        )
        return cls.from_config(cfg, ledger, admin, clock=clock, events=events)


__all__ = ["STAKING_ADDRESS", "VESTING_ADDRESS", "DistributionEngine"]
