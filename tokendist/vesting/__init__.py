"""
Commitment-proof-gated vesting: the allocation registry, the release
scheduler and proof verification.
"""

from .curve import releasable_amount, vested_amount
from .merkle import leaf_hash, verify_claim, verify_proof
from .registry import VestingAllocationRegistry, VestingPoolView, WalletVestingEntry
from .scheduler import VestingReleaseScheduler, WalletStats

__all__ = [
    "leaf_hash",
    "verify_claim",
    "verify_proof",
    "VestingAllocationRegistry",
    "VestingPoolView",
    "WalletVestingEntry",
    "VestingReleaseScheduler",
    "WalletStats",
    "vested_amount",
    "releasable_amount",
]
