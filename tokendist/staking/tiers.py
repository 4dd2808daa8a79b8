from __future__ import annotations

"""
Tiered interest calculator
--------------------------

A tier schedule is an ordered list of ``(days, annual_rate_bps)`` bands. The
cumulative band boundaries are the prefix sums of the durations; once the
schedule is exhausted, the last band's rate applies indefinitely.

For ``elapsed_days`` the reward is the sum over bands of

    floor(principal × min(remaining, band_days) × rate_bps / (365 × 10_000))

Truncation happens per band (not on the sum) so the rounding error is
bounded by the number of bands.

    >>> compute_reward(800_000, 20, DEFAULT_TIERS)
    1315
"""

from typing import Iterable, List, Sequence, Tuple, Union

from ..clock import DAYS_PER_YEAR
from ..errors import PeriodIndexDoesNotExist, ValidationError

BPS_DENOMINATOR = 10_000
YEAR_BPS = DAYS_PER_YEAR * BPS_DENOMINATOR  # 3_650_000

Tier = Tuple[int, int]
# (days, rate_bps, reward) of one band of a computed reward
Band = Tuple[int, int, int]

DEFAULT_TIERS: Tuple[Tier, ...] = (
    (30, 300),
    (60, 450),
    (92, 600),
    (183, 900),
    (365, 1200),
)


def _as_tier(band: Union[Tier, object]) -> Tier:
    if isinstance(band, tuple):
        days, bps = band
    else:
        days, bps = getattr(band, "days"), getattr(band, "rate_bps")
    return int(days), int(bps)


def reward_breakdown(principal: int, elapsed_days: int, tiers: Sequence[Tier]) -> List[Band]:
    """Per-band ``(days, rate_bps, reward)`` rows; days past the schedule form a last row."""
    if principal <= 0 or elapsed_days <= 0 or not tiers:
        return []
    rows: List[Band] = []
    remaining = int(elapsed_days)
    for days, bps in tiers:
        if remaining <= 0:
            break
        used = min(remaining, days)
        rows.append((used, bps, principal * used * bps // YEAR_BPS))
        remaining -= used
    if remaining > 0:
        # Past the schedule: the last band's rate extends indefinitely.
        bps = tiers[-1][1]
        rows.append((remaining, bps, principal * remaining * bps // YEAR_BPS))
    return rows


def compute_reward(principal: int, elapsed_days: int, tiers: Sequence[Tier]) -> int:
    """Blended reward for holding ``principal`` for ``elapsed_days`` whole days."""
    return sum(reward for _, _, reward in reward_breakdown(principal, elapsed_days, tiers))


class TierSchedule:
    """Mutable, validated tier schedule owned by the flexible staking ledger."""

    def __init__(self, bands: Iterable[Union[Tier, object]] = DEFAULT_TIERS) -> None:
        self._bands: List[Tier] = []
        for band in bands:
            self.add(*_as_tier(band))
        if not self._bands:
            raise ValidationError("tier schedule needs at least one band")

    @staticmethod
    def _check(days: int, rate_bps: int) -> None:
        if days <= 0:
            raise ValidationError("tier days must be positive", details={"days": days})
        if rate_bps < 0:
            raise ValidationError("tier rate must be non-negative", details={"rate_bps": rate_bps})

    @property
    def bands(self) -> Tuple[Tier, ...]:
        return tuple(self._bands)

    def __len__(self) -> int:
        return len(self._bands)

    def __getitem__(self, index: int) -> Tier:
        return self._bands[index]

    def boundaries(self) -> List[int]:
        """Cumulative band end (in days): prefix sums of the durations."""
        out, acc = [], 0
        for days, _ in self._bands:
            acc += days
            out.append(acc)
        return out

    def total_days(self) -> int:
        return sum(days for days, _ in self._bands)

    def add(self, days: int, rate_bps: int) -> int:
        """Append a band; returns its index."""
        self._check(days, rate_bps)
        self._bands.append((int(days), int(rate_bps)))
        return len(self._bands) - 1

    def update(self, index: int, days: int, rate_bps: int) -> None:
        if not 0 <= index < len(self._bands):
            raise PeriodIndexDoesNotExist(index=index)
        self._check(days, rate_bps)
        self._bands[index] = (int(days), int(rate_bps))

    def reward(self, principal: int, elapsed_days: int) -> int:
        return compute_reward(principal, elapsed_days, self._bands)


__all__ = [
    "BPS_DENOMINATOR",
    "YEAR_BPS",
    "DEFAULT_TIERS",
    "Tier",
    "Band",
    "reward_breakdown",
    "compute_reward",
    "TierSchedule",
]
