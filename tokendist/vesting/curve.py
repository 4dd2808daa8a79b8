from __future__ import annotations

"""
Cliff-then-linear vesting curve.

For a post-TGE principal ``P`` and a started pool::

    t <  cliff_end                 -> 0
    t >= vesting_end               -> P
    otherwise                      -> floor(P * (t - cliff_end) / (vesting_end - cliff_end))
"""


def vested_amount(in_vesting: int, cliff_end: int, vesting_end: int, at: int) -> int:
    """The linear curve itself, independent of any registry state."""
    if at < cliff_end:
        return 0
    if at >= vesting_end:
        return in_vesting
    return in_vesting * (at - cliff_end) // (vesting_end - cliff_end)


def releasable_amount(in_vesting: int, released: int, cliff_end: int, vesting_end: int, at: int) -> int:
    # A pool re-timed after a release can put the curve below what was already paid.
    return max(0, vested_amount(in_vesting, cliff_end, vesting_end, at) - released)


__all__ = ["vested_amount", "releasable_amount"]
