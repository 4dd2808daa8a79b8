from __future__ import annotations

"""
tokendist.cli.main
------------------

Offline helpers around the distribution engine.

Examples
--------
# Tier reward for 800k tokens (18 decimals) held 100 days, default schedule
python -m tokendist.cli reward --principal 800000000000000000000000 --days 100

# Same, custom schedule, per-band breakdown as JSON
python -m tokendist.cli reward --principal 1000 --days 45 --tiers 30:300,60:450 --json

# Release curve of a 100k allocation (cliff 92d, vesting 365d, TGE 5%)
python -m tokendist.cli vesting-curve --amount 100000 --cliff-days 92 --vesting-days 365 --tge-bps 500

# Resolved configuration (defaults < $TOKENDIST_CONFIG_FILE < env)
python -m tokendist.cli config

# Check an admission proof
python -m tokendist.cli verify-proof --root 0x.. --account 0x.. --pool 5 --amount 100 \
  --proof 0x.. --proof 0x..
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from ..clock import days_to_seconds
from ..config import from_file, load, parse_tiers, pretty
from ..staking.tiers import compute_reward, reward_breakdown
from ..vesting.curve import vested_amount
from ..vesting.merkle import leaf_hash, process_proof
from ..hashing import from_hex, to_hex

app = typer.Typer(
    name="tokendist",
    add_completion=False,
    no_args_is_help=True,
    help="Inspect staking rewards, vesting curves, configuration and admission proofs.",
)

# -------------------- utils --------------------


def _tiers_from(option: Optional[str]) -> List[tuple]:
    if option:
        bands = parse_tiers(option)
    else:
        bands = load().flexible.tiers
    if not bands:
        raise typer.BadParameter("at least one DAYS:BPS band is required", param_hint="--tiers")
    return [(b.days, b.rate_bps) for b in bands]


def _breakdown(principal: int, days: int, tiers: List[tuple]) -> List[Dict[str, Any]]:
    return [
        {"days": used, "rate_bps": bps, "reward": reward}
        for used, bps, reward in reward_breakdown(principal, days, tiers)
    ]


# -------------------- commands --------------------


@app.command("reward")
def cmd_reward(
    principal: int = typer.Option(..., "--principal", min=0, help="Staked principal in base units."),
    days: int = typer.Option(..., "--days", min=0, help="Whole days elapsed since the last claim."),
    tiers: Optional[str] = typer.Option(
        None, "--tiers", help="Schedule as DAYS:BPS,... (default: configured schedule)."
    ),
    json_out: bool = typer.Option(False, "--json", help="Output JSON with a per-band breakdown."),
) -> None:
    """Tiered reward for PRINCIPAL held DAYS days."""
    schedule = _tiers_from(tiers)
    reward = compute_reward(principal, days, schedule)
    if json_out:
        out = {
            "principal": principal,
            "days": days,
            "reward": reward,
            "bands": _breakdown(principal, days, schedule),
        }
        typer.echo(json.dumps(out, indent=2, sort_keys=True))
        return
    typer.echo(str(reward))


@app.command("vesting-curve")
def cmd_vesting_curve(
    amount: int = typer.Option(..., "--amount", min=0, help="Allocation (any unit)."),
    cliff_days: int = typer.Option(..., "--cliff-days", min=0),
    vesting_days: int = typer.Option(..., "--vesting-days", min=0),
    tge_bps: int = typer.Option(0, "--tge-bps", min=0, max=10_000, help="Immediate share in bps."),
    steps: int = typer.Option(4, "--steps", min=1, help="Number of intervals across the vesting period."),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Immediate amount and the vested amount at evenly spaced points, counted from the cliff epoch."""
    immediate = amount * tge_bps // 10_000
    in_vesting = amount - immediate
    cliff_end = days_to_seconds(cliff_days)
    vesting_end = cliff_end + days_to_seconds(vesting_days)
    points = []
    for i in range(steps + 1):
        at = cliff_end + (vesting_end - cliff_end) * i // steps
        points.append({"seconds": at, "day": at // 86_400, "vested": vested_amount(in_vesting, cliff_end, vesting_end, at)})

    if json_out:
        typer.echo(json.dumps({"immediate": immediate, "in_vesting": in_vesting, "points": points}, indent=2))
        return
    typer.echo(f"immediate: {immediate}")
    typer.echo(f"in vesting: {in_vesting}")
    for p in points:
        typer.echo(f"day {p['day']:>6}: {p['vested']}")


@app.command("config")
def cmd_config(
    file: Optional[Path] = typer.Option(None, "--file", help="JSON/YAML file (default: $TOKENDIST_CONFIG_FILE)."),
) -> None:
    """Print the resolved configuration as JSON."""
    try:
        cfg = from_file(file) if file else load()
    except (ValueError, FileNotFoundError) as e:
        typer.secho(f"invalid configuration: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)
    typer.echo(pretty(cfg))


@app.command("verify-proof")
def cmd_verify_proof(
    root: str = typer.Option(..., "--root", help="Commitment root (0x-prefixed 32-byte hex)."),
    account: str = typer.Option(..., "--account", help="Claimant address (0x-prefixed 20-byte hex)."),
    pool: int = typer.Option(..., "--pool", min=0),
    amount: int = typer.Option(..., "--amount", min=0),
    proof: List[str] = typer.Option([], "--proof", help="Sibling hash; repeat for each level."),
) -> None:
    """Exit 0 when the proof binds (ACCOUNT, POOL, AMOUNT) to ROOT, else exit 1."""
    try:
        leaf = leaf_hash(account, pool, amount)
        computed = process_proof(proof, leaf)
        expected = from_hex(root)
    except ValueError as e:
        typer.secho(f"malformed input: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(2)
    typer.echo(f"leaf:     {to_hex(leaf)}")
    typer.echo(f"computed: {to_hex(computed)}")
    if computed != expected:
        typer.secho("invalid", fg=typer.colors.RED)
        raise typer.Exit(1)
    typer.secho("valid", fg=typer.colors.GREEN)


@app.callback()
def _main(
    log_level: str = typer.Option("WARNING", "--log-level", help="Python logging level."),
) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_app() -> typer.Typer:
    return app


if __name__ == "__main__":
    app()
