"""Lune Usage Billing — Configuration."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class MatchMode(Enum):
    """How raw usage records are associated with devices."""

    EXACT = "exact"
    SUBSTRING = "substring"


class NumberingMode(Enum):
    """Invoice number generation strategies."""

    SEQUENTIAL = "sequential"
    RANDOM = "random"


# (min_minutes, max_minutes, price); intervals are [min, max)
TIME_PRICING_TIERS: Tuple[Tuple[float, float, float], ...] = (
    (5, 7, 8.0),
    (7, 9, 10.0),
    (9, 11, 12.0),
    (11, 13, 14.0),
    (13, 15, 16.0),
    (15, 17, 18.0),
    (17, 19, 20.0),
    (19, 21, 22.0),
    (21, 23, 24.0),
    (23, 25, 26.0),
    (25, 27, 28.0),
    (27, 30, 30.0),
)

CAP_PRICE = 30.0


INVOICE_PREFIX = "INV"
MAX_SEQUENCE = 999_999
DEFAULT_DUE_DAYS = 15
INVOICE_DESCRIPTION = "Lune Machine Usage Invoice"


@dataclass(frozen=True)
class BillingConfig:
    """Billing run configuration. Immutable; derive variants with ``dataclasses.replace``."""

    pricing_tiers: Tuple[Tuple[float, float, float], ...] = TIME_PRICING_TIERS
    cap_price: float = CAP_PRICE
    match_mode: MatchMode = MatchMode.EXACT
    due_days: int = DEFAULT_DUE_DAYS
    # No tax applies to Lune usage invoices.
    tax_rate: float = field(default=0.0, init=False)
    description: str = INVOICE_DESCRIPTION

    @classmethod
    def from_env(cls) -> "BillingConfig":
        """Build a config, honoring LUNE_MATCH_MODE and LUNE_INVOICE_DUE_DAYS."""
        overrides = {}

        env_mode = os.environ.get("LUNE_MATCH_MODE", "").lower()
        if env_mode in [m.value for m in MatchMode]:
            overrides["match_mode"] = MatchMode(env_mode)

        env_due = os.environ.get("LUNE_INVOICE_DUE_DAYS", "")
        if env_due.isdigit():
            overrides["due_days"] = int(env_due)

        return cls(**overrides)


DEFAULT_BILLING_CONFIG = BillingConfig()
