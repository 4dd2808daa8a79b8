from __future__ import annotations
# tokendist/errors.py
"""
Error types for the token distribution engine (flexible staking, fixed-term
pools, vesting). These are lightweight, serializable, and safe to surface over
logs and CLI output.

Every failure aborts the whole operation. The exception carries the offending
account / pool / index in ``details`` (and as attributes) so callers can assert
the exact cause.

Hierarchy
---------
TokenDistError (base)
 ├─ ConfigurationError   unknown ids, mismatched array lengths, bad setup
 ├─ StateError           wrong lifecycle phase, duplicates, cliff unset
 ├─ AuthorizationError   missing role
 ├─ FundingError         ledger insufficiency (balance / allowance)
 └─ ValidationError      amount bounds, proof mismatch, maturity not reached
"""


import json
from typing import Any, Dict, Mapping, Optional


class TokenDistError(Exception):
    """Base class for token distribution domain errors."""

    code: str = "TOKENDIST_ERROR"

    def __init__(self, message: str = "", *, details: Optional[Mapping[str, Any]] = None) -> None:
        self.message = message or self.__class__.__name__
        self.details = dict(details or {})
        super().__init__(self.__str__())

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.details:
            try:
                packed = json.dumps(self.details, sort_keys=True, separators=(",", ":"), default=str)
            except Exception:
                packed = str(self.details)
            return f"{self.code}: {self.message} [{packed}]"
        return f"{self.code}: {self.message}"


class _ContextError(TokenDistError):
    """
    Shared constructor: keyword-only context fields are copied into ``details``
    and exposed as attributes (``err.account``, ``err.pool_id`` ...).
    """

    default_message: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        account: Optional[str] = None,
        pool_id: Optional[int] = None,
        index: Optional[int] = None,
        amount: Optional[int] = None,
        role: Optional[bytes] = None,
        details: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self.account = account
        self.pool_id = pool_id
        self.index = index
        self.amount = amount
        self.role = role
        d = dict(details or {})
        if account is not None:
            d.setdefault("account", account)
        if pool_id is not None:
            d.setdefault("pool_id", int(pool_id))
        if index is not None:
            d.setdefault("index", int(index))
        if amount is not None:
            d.setdefault("amount", int(amount))
        if role is not None:
            d.setdefault("role", "0x" + bytes(role).hex())
        super().__init__(message or self.default_message or self.__class__.__name__, details=d)


# ---- categories --------------------------------------------------------------


class ConfigurationError(_ContextError):
    code = "TOKENDIST_CONFIGURATION"


class StateError(_ContextError):
    code = "TOKENDIST_STATE"


class AuthorizationError(_ContextError):
    code = "TOKENDIST_AUTHORIZATION"


class FundingError(_ContextError):
    code = "TOKENDIST_FUNDING"


class ValidationError(_ContextError):
    code = "TOKENDIST_VALIDATION"


# ---- configuration -----------------------------------------------------------


class InputArrayMismatchLength(ConfigurationError):
    default_message = "input arrays differ in length"


class ConfigDoesNotExist(ConfigurationError):
    default_message = "fixed-term pool does not exist"


class PeriodIndexDoesNotExist(ConfigurationError):
    default_message = "tier index does not exist"


class PoolIndexDoesNotExist(ConfigurationError):
    default_message = "vesting pool does not exist"


class MerkleTreeNotSet(ConfigurationError):
    default_message = "commitment root is not configured"


# ---- state -------------------------------------------------------------------


class StakingAlreadyStarted(StateError):
    default_message = "staking already started"


class StakingNotStarted(StateError):
    default_message = "staking not started"


class NoReward(StateError):
    default_message = "no reward accrued"


class RestakeIsNotActive(StateError):
    default_message = "restaking is disabled"


class AddFundsIsNotActive(StateError):
    default_message = "adding funds is disabled"


class RequestUnstakeReportedEarlier(StateError):
    default_message = "unstake already requested"


class RequestUnstakeIsNotReported(StateError):
    default_message = "unstake was not requested"


class AlreadySet(StateError):
    default_message = "position already exists for this pool"


class DoesNotExist(StateError):
    default_message = "no position for this pool"


class AlreadyClaimed(StateError):
    default_message = "allocation already claimed"


class WalletAlreadyExists(StateError):
    default_message = "wallet already in vesting pool"


class WalletNotSet(StateError):
    default_message = "wallet not in vesting pool"


class CannotRemoveWalletFromVestingPool(StateError):
    default_message = "wallet has released tokens and cannot be removed"


class CliffNotSetYet(StateError):
    default_message = "vesting cliff has not been started"


class CliffAlreadySet(StateError):
    default_message = "vesting cliff was already started"


class NoRewardToRelease(StateError):
    default_message = "nothing to release"


class EnforcedPause(StateError):
    default_message = "operation not allowed while paused"


class ExpectedPause(StateError):
    default_message = "operation requires the paused state"


# ---- authorization -----------------------------------------------------------


class UnauthorizedAccount(AuthorizationError):
    default_message = "account is missing the required role"


# ---- funding -----------------------------------------------------------------


class InsufficientBalance(FundingError):
    default_message = "insufficient balance"


class InsufficientAllowance(FundingError):
    default_message = "insufficient allowance"


# ---- validation --------------------------------------------------------------


class AmountMustBeGreaterThanZero(ValidationError):
    default_message = "amount must be greater than zero"


class InvalidAmount(ValidationError):
    default_message = "amount outside the allowed stake bounds"


class MaxStakingAmountExceeded(ValidationError):
    default_message = "pool capacity exceeded"


class StillGoingOn(ValidationError):
    default_message = "staking term has not matured"


class RestakeIntervalNotPassed(ValidationError):
    default_message = "restake interval has not passed"


class RequestUnstakePeriodNotExpired(ValidationError):
    default_message = "unstake cooldown has not expired"


class MerkleTreeValidationFailed(ValidationError):
    default_message = "admission proof does not match the commitment root"


__all__ = [
    "TokenDistError",
    "ConfigurationError",
    "StateError",
    "AuthorizationError",
    "FundingError",
    "ValidationError",
    "InputArrayMismatchLength",
    "ConfigDoesNotExist",
    "PeriodIndexDoesNotExist",
    "PoolIndexDoesNotExist",
    "MerkleTreeNotSet",
    "StakingAlreadyStarted",
    "StakingNotStarted",
    "NoReward",
    "RestakeIsNotActive",
    "AddFundsIsNotActive",
    "RequestUnstakeReportedEarlier",
    "RequestUnstakeIsNotReported",
    "AlreadySet",
    "DoesNotExist",
    "AlreadyClaimed",
    "WalletAlreadyExists",
    "WalletNotSet",
    "CannotRemoveWalletFromVestingPool",
    "CliffNotSetYet",
    "CliffAlreadySet",
    "NoRewardToRelease",
    "EnforcedPause",
    "ExpectedPause",
    "UnauthorizedAccount",
    "InsufficientBalance",
    "InsufficientAllowance",
    "AmountMustBeGreaterThanZero",
    "InvalidAmount",
    "MaxStakingAmountExceeded",
    "StillGoingOn",
    "RestakeIntervalNotPassed",
    "RequestUnstakePeriodNotExpired",
    "MerkleTreeValidationFailed",
]
