"""
Usage Meter — approximate consumption units and cost of generated text.

Not billing-grade: one unit is roughly four characters. Costs are kept as
Decimal so running totals add up exactly however they are split.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal

import config

log = logging.getLogger(__name__)

DEFAULT_UNIT_PRICE = Decimal(config.UNIT_PRICE_PER_MILLION)
_MILLION = Decimal(1_000_000)


@dataclass(frozen=True)
class UsageStats:
    units: int = 0
    cost: Decimal = Decimal(0)

    def to_dict(self) -> dict:
        return {"units": self.units, "cost": float(self.cost)}


def record(text: str, unit_price: Decimal | str | float = DEFAULT_UNIT_PRICE) -> tuple[int, Decimal]:
    """Return (units, cost) for a single generation response."""
    units = math.ceil(len(text) / config.CHARS_PER_UNIT)
    cost = Decimal(units) / _MILLION * Decimal(str(unit_price))
    return units, cost


def accumulate(stats: UsageStats, units: int, cost: Decimal) -> UsageStats:
    return UsageStats(units=stats.units + units, cost=stats.cost + cost)


class UsageMeter:
    """Running totals for one run; reset at the start of each run."""

    def __init__(self, unit_price: Decimal | str | float = DEFAULT_UNIT_PRICE):
        self.unit_price = Decimal(str(unit_price))
        self.stats = UsageStats()

    def reset(self) -> None:
        self.stats = UsageStats()

    def meter(self, text: str) -> UsageStats:
        units, cost = record(text, self.unit_price)
        self.stats = accumulate(self.stats, units, cost)
        log.debug("Metered %d units (total %d, $%.6f)", units, self.stats.units, self.stats.cost)
        return self.stats
