from __future__ import annotations
"""
tokendist.config — configuration for the token distribution engine

Covers:
- Flexible staking: tier schedule (days, annual bps), restake / add-funds
  feature flags, restake interval and unstake cooldown (days)
- Fixed-term pools: per-stake min/max bounds and the pool set
  (duration days, flat reward bps, capacity)
- Vesting: the pool set (cliff days, vesting days, TGE bps), the commitment
  root and whether the registry starts paused
- Token: decimals and total supply

Amounts in this file (min/max stake, pool capacity, total supply) are in
*whole tokens*; ``to_base_units`` scales them by ``10 ** token_decimals``.

Environment overrides (all optional; defaults reproduce the mainnet deployment):

  # Token
  TOKENDIST_TOKEN_DECIMALS=18
  TOKENDIST_TOTAL_SUPPLY=7200000000

  # Flexible staking
  TOKENDIST_TIERS=30:300,60:450,92:600,183:900,365:1200
  TOKENDIST_RESTAKE_ENABLED=false
  TOKENDIST_RESTAKE_INTERVAL_DAYS=30
  TOKENDIST_ADD_FUNDS_ENABLED=false
  TOKENDIST_UNSTAKE_COOLDOWN_DAYS=7

  # Fixed-term pools
  TOKENDIST_FIXED_MIN_AMOUNT=25000
  TOKENDIST_FIXED_MAX_AMOUNT=2500000

  # Vesting
  TOKENDIST_MERKLE_ROOT=0x...
  TOKENDIST_VESTING_START_PAUSED=true

You can also load from a JSON or YAML file via
`TOKENDIST_CONFIG_FILE=/path/to/config.(json|yaml|yml)`.
File values override defaults; environment overrides the file.
"""


from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional
import json
import os
from pathlib import Path

import yaml


# -------------------------- Data classes --------------------------


@dataclass
class TierBand:
    """One band of the flexible-staking schedule: ``days`` at ``rate_bps`` per year."""
    days: int
    rate_bps: int

    def validate(self) -> None:
        if self.days <= 0:
            raise ValueError(f"tier days must be positive (got {self.days}).")
        if self.rate_bps < 0:
            raise ValueError(f"tier rate_bps must be non-negative (got {self.rate_bps}).")


def _default_tiers() -> List[TierBand]:
    return [
        TierBand(30, 300),
        TierBand(60, 450),
        TierBand(92, 600),
        TierBand(183, 900),
        TierBand(365, 1200),
    ]


@dataclass
class FlexibleStakingConfig:
    """Tiered, continuous staking position per account."""
    tiers: List[TierBand] = field(default_factory=_default_tiers)
    restake_enabled: bool = False
    restake_interval_days: int = 30
    add_funds_enabled: bool = False
    unstake_cooldown_days: int = 7

    def validate(self) -> None:
        if not self.tiers:
            raise ValueError("flexible staking needs at least one tier.")
        for t in self.tiers:
            t.validate()
        if self.restake_interval_days < 0 or self.unstake_cooldown_days < 0:
            raise ValueError("restake interval / unstake cooldown must be non-negative days.")


@dataclass
class FixedTermPoolSpec:
    duration_days: int
    flat_rate_bps: int
    capacity: int  # whole tokens

    def validate(self) -> None:
        if self.duration_days <= 0:
            raise ValueError(f"pool duration_days must be positive (got {self.duration_days}).")
        if self.flat_rate_bps < 0:
            raise ValueError(f"pool flat_rate_bps must be non-negative (got {self.flat_rate_bps}).")
        if self.capacity < 0:
            raise ValueError(f"pool capacity must be non-negative (got {self.capacity}).")


def _default_fixed_pools() -> List[FixedTermPoolSpec]:
    return [
        FixedTermPoolSpec(90, 2000, 10_000_000),
        FixedTermPoolSpec(210, 3000, 30_000_000),
        FixedTermPoolSpec(365, 4000, 50_000_000),
    ]


@dataclass
class FixedTermConfig:
    """Fixed-duration, flat-rate pools and the global per-stake bounds (whole tokens)."""
    min_amount: int = 25_000
    max_amount: int = 2_500_000
    pools: List[FixedTermPoolSpec] = field(default_factory=_default_fixed_pools)

    def validate(self) -> None:
        if self.min_amount < 0 or self.max_amount < self.min_amount:
            raise ValueError(
                f"fixed-term bounds must satisfy 0 <= min <= max (got {self.min_amount}, {self.max_amount})."
            )
        for p in self.pools:
            p.validate()


@dataclass
class VestingPoolSpec:
    cliff_days: int
    vesting_days: int
    tge_bps: int

    def validate(self) -> None:
        if self.cliff_days < 0 or self.vesting_days < 0:
            raise ValueError("vesting cliff_days / vesting_days must be non-negative.")
        if not (0 <= self.tge_bps <= 10_000):
            raise ValueError(f"tge_bps must be between 0 and 10000 (got {self.tge_bps}).")


@dataclass
class VestingConfig:
    pools: List[VestingPoolSpec] = field(default_factory=list)
    merkle_root: Optional[str] = None  # 0x-prefixed 32-byte hex
    start_paused: bool = True

    def validate(self) -> None:
        for p in self.pools:
            p.validate()
        if self.merkle_root is not None:
            raw = self.merkle_root[2:] if self.merkle_root.startswith("0x") else self.merkle_root
            if len(raw) != 64:
                raise ValueError("merkle_root must be a 32-byte hex string.")
            try:
                bytes.fromhex(raw)
            except ValueError as e:
                raise ValueError(f"merkle_root is not valid hex: {self.merkle_root!r}") from e


@dataclass
class TokenDistConfig:
    """Top-level configuration container."""
    flexible: FlexibleStakingConfig = field(default_factory=FlexibleStakingConfig)
    fixed_term: FixedTermConfig = field(default_factory=FixedTermConfig)
    vesting: VestingConfig = field(default_factory=VestingConfig)

    token_decimals: int = 18
    total_supply: int = 7_200_000_000  # whole tokens

    def validate(self) -> None:
        self.flexible.validate()
        self.fixed_term.validate()
        self.vesting.validate()
        if self.token_decimals < 0:
            raise ValueError("token_decimals must be non-negative.")
        if self.total_supply <= 0:
            raise ValueError("total_supply must be positive.")

    def to_base_units(self, whole_tokens: int) -> int:
        return int(whole_tokens) * 10 ** self.token_decimals

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# -------------------------- Loaders --------------------------


def _getenv_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(str(v).replace("_", ""))
    except Exception as e:
        raise ValueError(f"Invalid int for {name}: {v!r}") from e


def _getenv_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    s = v.strip().lower()
    if s in ("1", "true", "yes", "on"):
        return True
    if s in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid bool for {name}: {v!r}")


def parse_tiers(text: str) -> List[TierBand]:
    """Parse ``"30:300,60:450"`` into tier bands."""
    bands: List[TierBand] = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            days, bps = chunk.split(":")
            bands.append(TierBand(int(days), int(bps)))
        except ValueError as e:
            raise ValueError(f"Invalid tier {chunk!r}; expected DAYS:BPS") from e
    return bands


def from_env(base: Optional[TokenDistConfig] = None, prefix: str = "TOKENDIST_") -> TokenDistConfig:
    """
    Build a TokenDistConfig from environment variables, optionally layering on top of `base`.
    """
    cfg = base or TokenDistConfig()

    tiers_env = os.getenv(f"{prefix}TIERS")
    tiers = parse_tiers(tiers_env) if tiers_env else list(cfg.flexible.tiers)

    root_env = os.getenv(f"{prefix}MERKLE_ROOT")
    merkle_root = root_env if root_env not in (None, "") else cfg.vesting.merkle_root

    new_cfg = TokenDistConfig(
        flexible=FlexibleStakingConfig(
            tiers=tiers,
            restake_enabled=_getenv_bool(f"{prefix}RESTAKE_ENABLED", cfg.flexible.restake_enabled),
            restake_interval_days=_getenv_int(
                f"{prefix}RESTAKE_INTERVAL_DAYS", cfg.flexible.restake_interval_days
            ),
            add_funds_enabled=_getenv_bool(f"{prefix}ADD_FUNDS_ENABLED", cfg.flexible.add_funds_enabled),
            unstake_cooldown_days=_getenv_int(
                f"{prefix}UNSTAKE_COOLDOWN_DAYS", cfg.flexible.unstake_cooldown_days
            ),
        ),
        fixed_term=FixedTermConfig(
            min_amount=_getenv_int(f"{prefix}FIXED_MIN_AMOUNT", cfg.fixed_term.min_amount),
            max_amount=_getenv_int(f"{prefix}FIXED_MAX_AMOUNT", cfg.fixed_term.max_amount),
            pools=list(cfg.fixed_term.pools),
        ),
        vesting=VestingConfig(
            pools=list(cfg.vesting.pools),
            merkle_root=merkle_root,
            start_paused=_getenv_bool(f"{prefix}VESTING_START_PAUSED", cfg.vesting.start_paused),
        ),
        token_decimals=_getenv_int(f"{prefix}TOKEN_DECIMALS", cfg.token_decimals),
        total_supply=_getenv_int(f"{prefix}TOTAL_SUPPLY", cfg.total_supply),
    )
    new_cfg.validate()
    return new_cfg


def from_dict(data: Dict[str, Any]) -> TokenDistConfig:
    """Build a config from a plain mapping (missing keys keep their defaults)."""

    def pick(dct: Dict[str, Any], key: str, default: Any) -> Any:
        return dct.get(key, default)

    flexible = data.get("flexible", {}) or {}
    fixed = data.get("fixed_term", {}) or {}
    vesting = data.get("vesting", {}) or {}

    d_flex = FlexibleStakingConfig()
    d_fixed = FixedTermConfig()
    d_vest = VestingConfig()
    d_top = TokenDistConfig()

    tiers = flexible.get("tiers")
    fixed_pools = fixed.get("pools")
    vest_pools = vesting.get("pools")

    cfg = TokenDistConfig(
        flexible=FlexibleStakingConfig(
            tiers=[TierBand(int(t["days"]), int(t["rate_bps"])) for t in tiers] if tiers is not None else d_flex.tiers,
            restake_enabled=bool(pick(flexible, "restake_enabled", d_flex.restake_enabled)),
            restake_interval_days=int(pick(flexible, "restake_interval_days", d_flex.restake_interval_days)),
            add_funds_enabled=bool(pick(flexible, "add_funds_enabled", d_flex.add_funds_enabled)),
            unstake_cooldown_days=int(pick(flexible, "unstake_cooldown_days", d_flex.unstake_cooldown_days)),
        ),
        fixed_term=FixedTermConfig(
            min_amount=int(pick(fixed, "min_amount", d_fixed.min_amount)),
            max_amount=int(pick(fixed, "max_amount", d_fixed.max_amount)),
            pools=[
                FixedTermPoolSpec(int(p["duration_days"]), int(p["flat_rate_bps"]), int(p["capacity"]))
                for p in fixed_pools
            ]
            if fixed_pools is not None
            else d_fixed.pools,
        ),
        vesting=VestingConfig(
            pools=[
                VestingPoolSpec(int(p["cliff_days"]), int(p["vesting_days"]), int(p["tge_bps"]))
                for p in vest_pools
            ]
            if vest_pools is not None
            else d_vest.pools,
            merkle_root=pick(vesting, "merkle_root", d_vest.merkle_root),
            start_paused=bool(pick(vesting, "start_paused", d_vest.start_paused)),
        ),
        token_decimals=int(pick(data, "token_decimals", d_top.token_decimals)),
        total_supply=int(pick(data, "total_supply", d_top.total_supply)),
    )
    cfg.validate()
    return cfg


def from_file(path: str | os.PathLike[str]) -> TokenDistConfig:
    """
    Load configuration from a JSON or YAML file.
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)

    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"config file {p} must contain a mapping at the top level.")
    return from_dict(data)


def load() -> TokenDistConfig:
    """
    Load configuration using the following precedence:
      1) File at $TOKENDIST_CONFIG_FILE (JSON/YAML)
      2) Environment variables (TOKENDIST_*), applied on top of defaults or file values
    """
    file_path = os.getenv("TOKENDIST_CONFIG_FILE")
    base = from_file(file_path) if file_path else TokenDistConfig()
    return from_env(base=base)


# -------------------------- Utilities --------------------------


def pretty(cfg: Optional[TokenDistConfig] = None) -> str:
    """Return a human-readable JSON string of the current config."""
    obj = (cfg or load()).to_dict()
    return json.dumps(obj, indent=2, sort_keys=True)


__all__ = [
    "TierBand",
    "FlexibleStakingConfig",
    "FixedTermPoolSpec",
    "FixedTermConfig",
    "VestingPoolSpec",
    "VestingConfig",
    "TokenDistConfig",
    "parse_tiers",
    "from_env",
    "from_dict",
    "from_file",
    "load",
    "pretty",
]
