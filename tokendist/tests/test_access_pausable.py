import pytest

from tokendist.access.roles import (ADMIN_ROLE, MANAGER_ROLE, RoleRegistry,
                                    derive_role_id)
from tokendist.control.pausable import Pausable
from tokendist.errors import (EnforcedPause, ExpectedPause,
                              UnauthorizedAccount, ValidationError)
from tokendist.hashing import keccak256

from .conftest import ADMIN, ALICE, BOB, MALLORY


def test_role_ids():
    assert ADMIN_ROLE == b"\x00" * 32
    assert MANAGER_ROLE == keccak256(b"MANAGER_ROLE")
    assert MANAGER_ROLE.hex() == "241ecf16d79d0f8dbfb92cbc07fe17840425976cf0667f022fe9877caa831b08"
    assert derive_role_id(b"X") != derive_role_id(b"Y")


def test_deployer_holds_admin_and_manager(roles):
    assert roles.has_role(ADMIN_ROLE, ADMIN)
    assert roles.has_role(MANAGER_ROLE, ADMIN)
    assert not roles.has_role(MANAGER_ROLE, ALICE)
    assert roles.members(MANAGER_ROLE) == {ADMIN}


def test_grant_and_revoke(roles, sink):
    roles.grant_role(ADMIN, MANAGER_ROLE, ALICE)
    assert roles.has_role(MANAGER_ROLE, ALICE)
    assert sink.last("RoleGranted").fields["account"] == ALICE

    # Idempotent: no second event.
    roles.grant_role(ADMIN, MANAGER_ROLE, ALICE)
    assert len(sink.find("RoleGranted")) == 1

    roles.revoke_role(ADMIN, MANAGER_ROLE, ALICE)
    assert not roles.has_role(MANAGER_ROLE, ALICE)
    assert sink.last("RoleRevoked").fields["sender"] == ADMIN


def test_only_role_admin_may_grant(roles):
    # A manager is not an admin of the manager role.
    roles.grant_role(ADMIN, MANAGER_ROLE, ALICE)
    with pytest.raises(UnauthorizedAccount) as ei:
        roles.grant_role(ALICE, MANAGER_ROLE, BOB)
    assert ei.value.role == ADMIN_ROLE
    with pytest.raises(UnauthorizedAccount):
        roles.revoke_role(MALLORY, MANAGER_ROLE, ADMIN)


def test_renounce(roles):
    roles.grant_role(ADMIN, MANAGER_ROLE, ALICE)
    roles.renounce_role(ALICE, MANAGER_ROLE)
    assert not roles.has_role(MANAGER_ROLE, ALICE)


def test_set_role_admin(roles):
    roles.grant_role(ADMIN, MANAGER_ROLE, ALICE)
    roles.set_role_admin(ADMIN, MANAGER_ROLE, MANAGER_ROLE)
    assert roles.get_role_admin(MANAGER_ROLE) == MANAGER_ROLE
    # Managers now administer their own role.
    roles.grant_role(ALICE, MANAGER_ROLE, BOB)
    assert roles.has_role(MANAGER_ROLE, BOB)


def test_role_ids_must_be_32_bytes(roles):
    with pytest.raises(ValidationError):
        roles.has_role(b"short", ADMIN)


@pytest.fixture
def switch(roles, clock, sink):
    return Pausable(roles, clock=clock, events=sink)


def test_pause_cycle(switch, sink):
    assert not switch.is_paused()
    switch.require_not_paused()
    with pytest.raises(ExpectedPause):
        switch.require_paused()

    switch.pause(ADMIN)
    assert switch.is_paused()
    assert sink.last("Paused").fields == {"account": ADMIN}
    with pytest.raises(EnforcedPause):
        switch.require_not_paused()
    with pytest.raises(EnforcedPause):
        switch.pause(ADMIN)

    switch.unpause(ADMIN)
    assert not switch.is_paused()
    with pytest.raises(ExpectedPause):
        switch.unpause(ADMIN)


def test_pause_requires_manager(switch):
    with pytest.raises(UnauthorizedAccount):
        switch.pause(MALLORY)
    assert not switch.is_paused()


def test_set_paused_is_idempotent(switch, sink):
    switch.set_paused(ADMIN, False)
    assert sink.names() == []
    switch.set_paused(ADMIN, True)
    switch.set_paused(ADMIN, True)
    assert sink.names() == ["Paused"]
    with pytest.raises(UnauthorizedAccount):
        switch.set_paused(MALLORY, True)


def test_custom_role_gate(roles, clock):
    ops = RoleRegistry(ADMIN, clock=clock)
    guardian = derive_role_id(b"GUARDIAN_ROLE")
    ops.grant_role(ADMIN, guardian, BOB)
    sw = Pausable(ops, role=guardian, clock=clock)
    with pytest.raises(UnauthorizedAccount):
        sw.pause(ADMIN)
    sw.pause(BOB)
    assert sw.is_paused()
