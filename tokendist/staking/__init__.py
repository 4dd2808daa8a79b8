"""
Interest-bearing staking: the tiered flexible position and the fixed-term pools.
"""

from .fixed_term import FixedTermPoolConfig, FixedTermPosition, FixedTermStakingPools
from .flexible import FlexibleStakingLedger, StakingPosition
from .tiers import DEFAULT_TIERS, TierSchedule, compute_reward

__all__ = [
    "DEFAULT_TIERS",
    "TierSchedule",
    "compute_reward",
    "StakingPosition",
    "FlexibleStakingLedger",
    "FixedTermPoolConfig",
    "FixedTermPosition",
    "FixedTermStakingPools",
]
