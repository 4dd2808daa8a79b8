import pytest

from tokendist.clock import SECONDS_PER_DAY
from tokendist.errors import CliffNotSetYet, NoRewardToRelease, WalletNotSet
from tokendist.vesting.registry import VestingAllocationRegistry
from tokendist.vesting.scheduler import VestingReleaseScheduler, WalletStats, vested_amount

from .conftest import ADMIN, ALICE, BOB, CAROL, UNIT, VESTING, build_tree

ALLOC = 100_000 * UNIT
IN_VESTING = 95_000 * UNIT
CLIFF = 92 * SECONDS_PER_DAY
VEST = 365 * SECONDS_PER_DAY

CLAIMS = [(ALICE, 1, ALLOC), (ALICE, 2, 20_000 * UNIT), (BOB, 1, 10_000 * UNIT)]


@pytest.fixture
def registry(ledger, roles, clock, sink):
    root, proofs = build_tree(CLAIMS)
    reg = VestingAllocationRegistry(ledger, roles, address=VESTING, merkle_root=root, clock=clock, events=sink)
    ledger.transfer(ADMIN, VESTING, 100_000_000 * UNIT)
    reg.add_pools(ADMIN, [92, 0], [365, 50], [500, 0])
    reg.unpause(ADMIN)
    reg.claim(ALICE, [proofs[CLAIMS[0]], proofs[CLAIMS[1]]], [1, 2], [ALLOC, 20_000 * UNIT])
    sink.clear()
    return reg


@pytest.fixture
def scheduler(registry):
    return VestingReleaseScheduler(registry)


def test_vested_amount_curve():
    assert vested_amount(1000, 100, 200, 99) == 0
    assert vested_amount(1000, 100, 200, 100) == 0
    assert vested_amount(1000, 100, 200, 150) == 500
    assert vested_amount(1000, 100, 200, 200) == 1000
    assert vested_amount(1000, 100, 200, 10**12) == 1000
    # Zero-length vesting releases everything at the cliff end.
    assert vested_amount(1000, 100, 100, 100) == 1000


def test_queries_fail_before_cliff_epoch(scheduler, clock):
    with pytest.raises(CliffNotSetYet):
        scheduler.releasable(ALICE, 1)
    with pytest.raises(CliffNotSetYet):
        scheduler.releasable_all(ALICE)
    with pytest.raises(CliffNotSetYet):
        scheduler.vesting_schedule(ALICE, 1, clock.now())
    with pytest.raises(CliffNotSetYet):
        scheduler.get_wallet_stats(ALICE, clock.now())
    with pytest.raises(CliffNotSetYet):
        scheduler.release(ALICE, 1)


def test_quarter_of_vesting_period(scheduler, registry, clock):
    start = registry.set_cliff_start(ADMIN)
    clock.set(start + CLIFF + VEST // 4)
    assert scheduler.releasable(ALICE, 1) == 23_750 * UNIT


def test_nothing_releasable_during_cliff(scheduler, registry, clock):
    start = registry.set_cliff_start(ADMIN)
    clock.set(start + CLIFF - 1)
    assert scheduler.releasable(ALICE, 1) == 0
    with pytest.raises(NoRewardToRelease):
        scheduler.release(ALICE, 1)


def test_release_tracks_released_and_never_exceeds_allocation(scheduler, registry, ledger, clock, sink):
    start = registry.set_cliff_start(ADMIN)
    before = ledger.balance_of(ALICE)

    clock.set(start + CLIFF + VEST // 2)
    first = scheduler.release(ALICE, 1)
    assert first == IN_VESTING // 2
    assert registry.released_amount(1, ALICE) == first
    assert scheduler.releasable(ALICE, 1) == 0
    assert sink.last("Released").fields == {"account": ALICE, "pool_id": 1, "amount": first}

    clock.set(start + CLIFF + VEST * 3)
    second = scheduler.release(ALICE, 1)
    assert first + second == IN_VESTING
    assert ledger.balance_of(ALICE) == before + IN_VESTING
    # The vesting principal is not decremented; released grows instead.
    assert registry.wallets_in_vesting(1, ALICE) == IN_VESTING
    assert registry.vesting_amount_remaining_in_pool(ALICE, 1) == 0

    with pytest.raises(NoRewardToRelease):
        scheduler.release(ALICE, 1)


def test_release_unknown_wallet(scheduler, registry):
    registry.set_cliff_start(ADMIN)
    with pytest.raises(WalletNotSet):
        scheduler.release(CAROL, 1)
    with pytest.raises(WalletNotSet):
        scheduler.releasable(CAROL, 1)


def test_batch_queries_are_silent_for_unknown_wallets(scheduler, registry, clock):
    # No allocation: empty results, even before the cliff epoch.
    assert scheduler.releasable_all(CAROL) == ([], [])
    assert scheduler.get_wallet_stats(CAROL, clock.now()) == ([], [])
    registry.set_cliff_start(ADMIN)
    assert scheduler.get_wallet_stats_in_pool(CAROL, 1, clock.now()) == WalletStats(0, 0, 0, 0)
    assert scheduler.vesting_schedule(CAROL, 1, clock.now()) == 0


def test_release_all_aggregates_positive_pools(scheduler, registry, ledger, clock, sink):
    start = registry.set_cliff_start(ADMIN)
    # Pool 2 (no cliff, 50 days) is fully vested, pool 1 is still in its cliff.
    clock.set(start + 60 * SECONDS_PER_DAY)
    assert scheduler.releasable_all(ALICE) == ([1, 2], [0, 20_000 * UNIT])

    before = ledger.balance_of(ALICE)
    total = scheduler.release_all(ALICE)
    assert total == 20_000 * UNIT
    assert ledger.balance_of(ALICE) == before + total
    assert [e.fields["pool_id"] for e in sink.find("Released")] == [2]
    assert len(sink.find("Transfer")) == 1

    with pytest.raises(NoRewardToRelease):
        scheduler.release_all(ALICE)

    clock.set(start + CLIFF + VEST)
    assert scheduler.release_all(ALICE) == IN_VESTING


def test_wallet_stats(scheduler, registry, clock):
    start = registry.set_cliff_start(ADMIN)
    at = start + CLIFF + VEST // 4
    clock.set(at)
    scheduler.release(ALICE, 1)

    pools, stats = scheduler.get_wallet_stats(ALICE, at)
    assert pools == [1, 2]
    assert stats[0] == WalletStats(
        in_vesting=IN_VESTING,
        vested=23_750 * UNIT,
        released=23_750 * UNIT,
        remaining=IN_VESTING - 23_750 * UNIT,
    )
    assert stats[1].vested == 20_000 * UNIT and stats[1].released == 0


def test_schedule_is_monotone(scheduler, registry):
    start = registry.set_cliff_start(ADMIN)
    prev = -1
    for day in range(0, 92 + 365 + 10, 5):
        cur = scheduler.vesting_schedule(ALICE, 1, start + day * SECONDS_PER_DAY)
        assert cur >= prev
        assert cur <= IN_VESTING
        prev = cur
    assert prev == IN_VESTING


def test_retimed_pool_never_reports_negative_releasable(scheduler, registry, clock):
    start = registry.set_cliff_start(ADMIN)
    clock.set(start + 25 * SECONDS_PER_DAY)
    # Pool 2: no cliff, 50 days, so half of 20k has vested.
    assert scheduler.release(ALICE, 2) == 10_000 * UNIT

    # Stretching the pool to 400 days puts the curve at 1_250 tokens, below what was paid.
    registry.update_pools(ADMIN, [2], [0], [400], [0])
    assert scheduler.vesting_schedule(ALICE, 2, clock.now()) == 1_250 * UNIT
    assert scheduler.releasable(ALICE, 2) == 0
    assert scheduler.releasable_all(ALICE) == ([1, 2], [0, 0])
    with pytest.raises(NoRewardToRelease):
        scheduler.release(ALICE, 2)
    with pytest.raises(NoRewardToRelease):
        scheduler.release_all(ALICE)
    assert registry.released_amount(2, ALICE) == 10_000 * UNIT

    # Releases resume once the stretched curve passes the released amount.
    clock.set(start + 300 * SECONDS_PER_DAY)
    assert scheduler.releasable(ALICE, 2) == 5_000 * UNIT
