"""
Shared fixtures: a manual clock, an in-memory event sink, a funded token
ledger and the role registry every component is gated by.

``build_tree`` produces a commitment root and per-leaf proofs in the same
sorted-pair format the vesting registry verifies against.
"""

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple

import pytest

from tokendist.access.roles import RoleRegistry
from tokendist.clock import ManualClock
from tokendist.events import InMemoryEventSink
from tokendist.token.ledger import TokenLedger
from tokendist.vesting.merkle import hash_pair, leaf_hash

UNIT = 10**18

ADMIN = "0x" + "a0" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b0" * 20
CAROL = "0x" + "c0" * 20
MALLORY = "0x" + "ee" * 20

STAKING = "staking"
VESTING = "vesting"

Claim = Tuple[str, int, int]


def build_tree(claims: Sequence[Claim]) -> Tuple[bytes, Dict[Claim, List[bytes]]]:
    """(root, {claim: proof}) for ``claims``; odd nodes are promoted unchanged."""
    leaves = [leaf_hash(*c) for c in claims]
    layers: List[List[bytes]] = [sorted(leaves)]
    while len(layers[-1]) > 1:
        prev = layers[-1]
        nxt = [hash_pair(prev[i], prev[i + 1]) for i in range(0, len(prev) - 1, 2)]
        if len(prev) % 2:
            nxt.append(prev[-1])
        layers.append(nxt)

    proofs: Dict[Claim, List[bytes]] = {}
    for claim, leaf in zip(claims, leaves):
        idx = layers[0].index(leaf)
        path: List[bytes] = []
        for layer in layers[:-1]:
            sib = idx ^ 1
            if sib < len(layer):
                path.append(layer[sib])
            idx //= 2
        proofs[claim] = path
    return layers[-1][0], proofs


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def sink() -> InMemoryEventSink:
    return InMemoryEventSink()


@pytest.fixture
def ledger(clock, sink) -> TokenLedger:
    # Whole supply with the admin; every test account gets 10M tokens.
    tl = TokenLedger(ADMIN, 7_200_000_000 * UNIT, clock=clock, events=sink)
    for acct in (ALICE, BOB, CAROL, MALLORY):
        tl.transfer(ADMIN, acct, 10_000_000 * UNIT)
    sink.clear()
    return tl


@pytest.fixture
def roles(clock, sink) -> RoleRegistry:
    r = RoleRegistry(ADMIN, clock=clock, events=sink)
    sink.clear()
    return r
