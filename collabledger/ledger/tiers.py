"""Score -> tier mapping. Thresholds are inclusive on the lower edge."""

from __future__ import annotations

from .models import Tier

SILVER_THRESHOLD = 100
GOLD_THRESHOLD = 250
PLATINUM_THRESHOLD = 500


def classify(score: int) -> Tier:
    if score >= PLATINUM_THRESHOLD:
        return Tier.PLATINUM
    if score >= GOLD_THRESHOLD:
        return Tier.GOLD
    if score >= SILVER_THRESHOLD:
        return Tier.SILVER
    return Tier.BRONZE


__all__ = ["GOLD_THRESHOLD", "PLATINUM_THRESHOLD", "SILVER_THRESHOLD", "classify"]
