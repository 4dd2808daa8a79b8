"""
tokendist.events — event records and pluggable sinks.

Components buffer events while an operation runs and hand them to the sink
only after the operation commits; a rolled-back operation leaves no events
behind. Delivery beyond the sink (log shipping, websockets, indexers) is the
embedding application's concern.

Backends:

- InMemoryEventSink: keeps every event in RAM; test/dev friendly.
- NullEventSink: drops everything.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Protocol, runtime_checkable

# Flexible staking
STAKING_STARTED = "StakingStarted"
ADDED_FUNDS_TO_STAKING = "AddedFundsToStaking"
REWARD_CLAIMED = "RewardClaimed"
REWARD_RESTAKED = "RewardRestaked"
REQUEST_UNSTAKE_REPORTED = "RequestUnstakeReported"
UNSTAKED = "Unstaked"
PERIOD_ADDED = "PeriodAdded"
PERIOD_UPDATED = "PeriodUpdated"
STAKING_SETTING_CHANGED = "StakingSettingChanged"

# Fixed-term pools
BASIC_STAKING_ADDED = "BasicStakingAdded"
REWARD_CLAIMED_AND_UNSTAKED = "RewardClaimedAndUnstaked"
BASIC_STAKING_CONFIG_ADDED = "BasicStakingConfigAdded"
BASIC_STAKING_CONFIG_UPDATED = "BasicStakingConfigUpdated"
BASIC_STAKING_BOUNDS_CHANGED = "BasicStakingBoundsChanged"

# Vesting
POOL_ADDED = "PoolAdded"
POOL_UPDATED = "PoolUpdated"
CLAIMED = "Claimed"
WALLET_ADDED = "WalletAdded"
WALLET_DELETED = "WalletDeleted"
VESTING_CLIFF_STARTED = "VestingCliffStarted"
RELEASED = "Released"
MERKLE_ROOT_SET = "MerkleRootSet"

# Control / access / token
PAUSED = "Paused"
UNPAUSED = "Unpaused"
ROLE_GRANTED = "RoleGranted"
ROLE_REVOKED = "RoleRevoked"
ROLE_ADMIN_CHANGED = "RoleAdminChanged"
TRANSFER = "Transfer"
APPROVAL = "Approval"


@dataclass(frozen=True)
class Event:
    """One emitted event: a name, its fields and the operation timestamp."""

    name: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    ts: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "fields": dict(self.fields), "ts": self.ts}


@runtime_checkable
class EventSink(Protocol):
    def publish(self, events: Iterable[Event]) -> None: ...


class InMemoryEventSink:
    """Append-only list of events, in emission order."""

    def __init__(self) -> None:
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def publish(self, events: Iterable[Event]) -> None:
        with self._lock:
            self._events.extend(events)

    def all(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def names(self) -> List[str]:
        return [e.name for e in self.all()]

    def find(self, name: str) -> List[Event]:
        return [e for e in self.all() if e.name == name]

    def last(self, name: str) -> Event:
        found = self.find(name)
        if not found:
            raise LookupError(f"no {name!r} event recorded")
        return found[-1]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        return len(self.all())


class NullEventSink:
    """Sink that ignores every event."""

    def publish(self, events: Iterable[Event]) -> None:
        return None


__all__ = [
    "Event",
    "EventSink",
    "InMemoryEventSink",
    "NullEventSink",
]
