"""
Property checks for the reward and release math:
  - tier rewards are monotone in elapsed days and in principal
  - per-band truncation loses less than one unit per band
  - the release curve is monotone, bounded and complete at vesting end
  - an admission splits the allocation exactly into the TGE payment and vesting
  - fixed-term pool totals always equal the sum of open positions
"""

from __future__ import annotations

from fractions import Fraction

from hypothesis import given, settings
from hypothesis import strategies as st

from tokendist.clock import ManualClock
from tokendist.staking.fixed_term import FixedTermStakingPools
from tokendist.staking.tiers import DEFAULT_TIERS, YEAR_BPS, compute_reward
from tokendist.token.ledger import TokenLedger
from tokendist.access.roles import RoleRegistry
from tokendist.vesting.curve import vested_amount
from tokendist.vesting.merkle import leaf_hash
from tokendist.vesting.registry import VestingAllocationRegistry

principals = st.integers(min_value=0, max_value=10**30)
days = st.integers(min_value=0, max_value=3_000)
tiers = st.lists(
    st.tuples(st.integers(min_value=1, max_value=400), st.integers(min_value=0, max_value=20_000)),
    min_size=1,
    max_size=6,
)


@given(principals, days, days, tiers)
def test_reward_monotone_in_days(p, d1, d2, schedule):
    lo, hi = sorted((d1, d2))
    assert compute_reward(p, lo, schedule) <= compute_reward(p, hi, schedule)


@given(principals, principals, days)
def test_reward_monotone_in_principal(p1, p2, d):
    lo, hi = sorted((p1, p2))
    assert compute_reward(lo, d, DEFAULT_TIERS) <= compute_reward(hi, d, DEFAULT_TIERS)


@given(principals, days, tiers)
def test_truncation_error_bounded_by_band_count(p, d, schedule):
    exact = Fraction(0)
    remaining = d
    for band_days, bps in schedule:
        used = min(remaining, band_days)
        exact += Fraction(p * used * bps, YEAR_BPS)
        remaining -= used
    exact += Fraction(p * remaining * schedule[-1][1], YEAR_BPS)

    got = compute_reward(p, d, schedule)
    assert got <= exact
    assert exact - got < len(schedule) + 1


@given(
    st.integers(min_value=0, max_value=10**27),
    st.integers(min_value=0, max_value=10**9),
    st.integers(min_value=0, max_value=10**9),
    st.integers(min_value=0, max_value=3 * 10**9),
    st.integers(min_value=0, max_value=3 * 10**9),
)
def test_release_curve(in_vesting, cliff_end, length, t1, t2):
    vesting_end = cliff_end + length
    lo, hi = sorted((t1, t2))
    a = vested_amount(in_vesting, cliff_end, vesting_end, lo)
    b = vested_amount(in_vesting, cliff_end, vesting_end, hi)
    assert 0 <= a <= b <= in_vesting
    assert vested_amount(in_vesting, cliff_end, vesting_end, vesting_end) == in_vesting


@settings(max_examples=50, deadline=None)
@given(st.integers(min_value=1, max_value=10**30), st.integers(min_value=0, max_value=10_000))
def test_claim_splits_allocation_exactly(amount, tge_bps):
    clock = ManualClock()
    admin = "0x" + "a0" * 20
    wallet = "0x" + "a1" * 20
    ledger = TokenLedger(admin, 10**31, clock=clock)
    roles = RoleRegistry(admin, clock=clock)
    # A single-leaf tree: the root is the leaf and the proof is empty.
    registry = VestingAllocationRegistry(
        ledger, roles, address="vesting", merkle_root=leaf_hash(wallet, 1, amount), clock=clock
    )
    ledger.transfer(admin, "vesting", 10**31)
    registry.add_pools(admin, [0], [10], [tge_bps])
    registry.unpause(admin)

    paid = registry.claim(wallet, [[]], [1], [amount])

    assert paid == amount * tge_bps // 10_000
    assert ledger.balance_of(wallet) == paid
    assert paid + registry.wallets_in_vesting(1, wallet) == amount
    assert registry.is_claimed(1, wallet)


ACCOUNTS = ["0x" + f"{i:040x}" for i in range(1, 6)]


@settings(max_examples=50, deadline=None)
@given(
    st.lists(
        st.tuples(
            st.sampled_from(["stake", "claim", "wait"]),
            st.sampled_from(ACCOUNTS),
            st.integers(min_value=0, max_value=2),
            st.integers(min_value=1, max_value=5_000),
        ),
        max_size=40,
    )
)
def test_fixed_term_totals_match_positions(ops):
    clock = ManualClock()
    admin = "0x" + "a0" * 20
    ledger = TokenLedger(admin, 10**12, clock=clock)
    roles = RoleRegistry(admin, clock=clock)
    pools = FixedTermStakingPools(
        ledger,
        roles,
        address="pools",
        pools=[(10, 1000, 20_000), (20, 2000, 8_000), (30, 3000, 50_000)],
        min_amount=1,
        max_amount=5_000,
        clock=clock,
    )
    ledger.transfer(admin, "pools", 10**9)
    for acct in ACCOUNTS:
        ledger.transfer(admin, acct, 10**6)
        ledger.approve(acct, "pools", 10**6)

    for op, acct, pid, value in ops:
        try:
            if op == "stake":
                pools.stake(acct, pid, value)
            elif op == "claim":
                pools.claim_and_unstake(acct, pid)
            else:
                clock.advance_days(value % 15)
        except Exception as exc:
            assert type(exc).__module__ == "tokendist.errors"

        for p in range(pools.pool_count()):
            open_sum = sum(
                pos.amount
                for pos in (pools.get_position(p, a) for a in ACCOUNTS)
                if pos is not None
            )
            cfg = pools.get_pool(p)
            assert cfg.total_staked == open_sum <= cfg.capacity
