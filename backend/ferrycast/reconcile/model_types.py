from __future__ import annotations

from typing import Literal

BucketType = Literal["chain", "pair"]
BUCKET_TYPES = ("chain", "pair")

REGIMES = ("in-service", "layover")

# Terminal letters follow the training windows: A -> B (current) -> C (next).
_SLOT_SUFFIX: dict[str, str] = {
    "at_dock_depart_curr": "at-dock-depart-b",
    "at_dock_arrive_next": "at-dock-arrive-c",
    "at_dock_depart_next": "at-dock-depart-c",
    "at_sea_arrive_next": "at-sea-arrive-c",
    "at_sea_depart_next": "at-sea-depart-c",
}

MODEL_TYPES: tuple[str, ...] = tuple(
    f"{regime}-{suffix}" for regime in REGIMES for suffix in _SLOT_SUFFIX.values()
)


def is_valid_model_type(value: str) -> bool:
    return value in MODEL_TYPES


def model_type_for(regime: str, field: str) -> str:
    """Stage -> model type. Adding a model type means touching this and MODEL_TYPES."""
    if regime not in REGIMES:
        raise ValueError(f"Unknown regime: {regime!r}")
    return f"{regime}-{_SLOT_SUFFIX[field]}"


def format_pair_key(departing: str, arriving: str) -> str:
    return f"{departing}->{arriving}"


def format_chain_key(previous: str, departing: str, arriving: str) -> str:
    return f"{previous}->{departing}->{arriving}"
