"""
Selection result construction, classifier payload validation and fallback.

Classifier output is treated as an untrusted payload. It is validated into a
tagged result (:class:`SelectionOk` or :class:`SelectionErr`) instead of
raising, so the selector can route every failure into the same
deterministic fallback.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from numbers import Real
from typing import Any

from ..schemas import Cartridge, CartridgeSummary, SelectionResult

FORCED_MATCH_SCORE = 100
FORCED_REASONING = "Cartridge was manually selected by user"
FALLBACK_MATCH_SCORE = 50
FALLBACK_REASONING = "Fallback selection due to error"

REQUIRED_FIELDS = ("selectedCartridgeId", "matchScore", "reasoning")


@dataclass(frozen=True, slots=True)
class SelectionOk:
    selection: SelectionResult


@dataclass(frozen=True, slots=True)
class SelectionErr:
    reason: str


SelectionOutcome = SelectionOk | SelectionErr


def clamp_match_score(value: float) -> int:
    """Clip ``value`` into [0, 100] and round to an integer percentage."""

    return int(round(min(100.0, max(0.0, float(value)))))


def _coerce_cartridge_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return None


def validate_selection_payload(payload: Any) -> SelectionOutcome:
    """Check a raw classifier payload and build a clamped selection.

    All three fields must be present; none is defaulted. ``matchScore``
    outside [0, 100] is clipped rather than rejected.
    """

    if not isinstance(payload, Mapping):
        return SelectionErr(f"expected an object, got {type(payload).__name__}")

    missing = [name for name in REQUIRED_FIELDS if payload.get(name) is None]
    if missing:
        return SelectionErr(f"missing required fields: {', '.join(missing)}")

    cartridge_id = _coerce_cartridge_id(payload["selectedCartridgeId"])
    if cartridge_id is None:
        return SelectionErr(
            f"selectedCartridgeId is not an integer id: {payload['selectedCartridgeId']!r}"
        )

    raw_score = payload["matchScore"]
    if isinstance(raw_score, bool) or not isinstance(raw_score, Real):
        try:
            raw_score = float(raw_score)
        except (TypeError, ValueError):
            return SelectionErr(f"matchScore is not numeric: {raw_score!r}")
    if math.isnan(float(raw_score)):
        return SelectionErr("matchScore is NaN")

    reasoning = payload["reasoning"]
    if not isinstance(reasoning, str) or not reasoning.strip():
        return SelectionErr("reasoning must be a non-empty string")

    return SelectionOk(
        SelectionResult(
            selected_cartridge_id=cartridge_id,
            match_score=clamp_match_score(raw_score),
            reasoning=reasoning.strip(),
        )
    )


def forced_selection(cartridge_id: int) -> SelectionResult:
    """Selection for an explicit user override."""

    return SelectionResult(
        selected_cartridge_id=cartridge_id,
        match_score=FORCED_MATCH_SCORE,
        reasoning=FORCED_REASONING,
    )


def fallback_selection(cartridges: Sequence[Cartridge]) -> SelectionResult:
    """Deterministic substitute used when classification fails.

    Prefers the active cartridge, then the first cartridge in listing order.
    ``cartridges`` must be non-empty.
    """

    chosen = next((c for c in cartridges if c.is_active), cartridges[0])
    return SelectionResult(
        selected_cartridge_id=chosen.id,
        match_score=FALLBACK_MATCH_SCORE,
        reasoning=FALLBACK_REASONING,
    )


def build_candidates(cartridges: Sequence[Cartridge]) -> list[CartridgeSummary]:
    """Summaries offered to the classifier, in listing order."""

    return [CartridgeSummary.from_cartridge(cartridge) for cartridge in cartridges]
