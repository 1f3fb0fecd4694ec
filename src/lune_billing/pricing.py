"""Lune Usage Billing — Time-tiered pricing table."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .config import (
    CAP_PRICE,
    TIME_PRICING_TIERS,
)


def _fmt(value: float) -> str:
    return f"{value:g}"


@dataclass(frozen=True)
class PriceTier:
    """A duration band [min_minutes, max_minutes) billed at a fixed price."""

    min_minutes: float
    max_minutes: float
    price: float

    def contains(self, minutes: float) -> bool:
        return self.min_minutes <= minutes < self.max_minutes

    @property
    def label(self) -> str:
        return f"{_fmt(self.min_minutes)}-{_fmt(self.max_minutes)}mins"

    @property
    def description(self) -> str:
        return (
            f"{_fmt(self.min_minutes)}-{_fmt(self.max_minutes)} mins "
            f"(${_fmt(self.price)})"
        )


class PricingTable:
    """Ordered, contiguous price tiers with a free floor and a capped ceiling.

    Durations below the first tier are not billed. Durations at or beyond
    the last tier's upper bound are billed at ``cap_price``.
    """

    def __init__(
        self,
        tiers: Optional[Iterable[Tuple[float, float, float]]] = None,
        cap_price: float = CAP_PRICE,
    ) -> None:
        raw = TIME_PRICING_TIERS if tiers is None else tiers
        self._tiers: List[PriceTier] = [PriceTier(*t) for t in raw]
        if not self._tiers:
            raise ValueError("Pricing table needs at least one tier")
        for tier in self._tiers:
            if tier.max_minutes <= tier.min_minutes:
                raise ValueError(f"Empty tier interval: {tier.label}")
        for prev, nxt in zip(self._tiers, self._tiers[1:]):
            if nxt.min_minutes != prev.max_minutes:
                raise ValueError(
                    f"Tiers must be contiguous and ascending: {prev.label} -> {nxt.label}"
                )
        self._cap_price = cap_price

    @property
    def tiers(self) -> List[PriceTier]:
        return list(self._tiers)

    @property
    def min_minutes(self) -> float:
        return self._tiers[0].min_minutes

    @property
    def max_minutes(self) -> float:
        return self._tiers[-1].max_minutes

    @property
    def cap_price(self) -> float:
        return self._cap_price

    @property
    def under_label(self) -> str:
        return f"under-{_fmt(self.min_minutes)}mins"

    @property
    def over_label(self) -> str:
        return f"{_fmt(self.max_minutes)}+mins"

    def tier_for(self, minutes: float) -> Optional[PriceTier]:
        """Return the tier whose half-open interval contains ``minutes``."""
        for tier in self._tiers:
            if tier.contains(minutes):
                return tier
        return None

    def lookup(self, minutes: float) -> float:
        """Price for a session of ``minutes``."""
        if minutes < self.min_minutes:
            return 0.0
        tier = self.tier_for(minutes)
        if tier is not None:
            return tier.price
        return self._cap_price

    def label_for(self, minutes: float) -> str:
        """Breakdown bucket label for ``minutes``."""
        if minutes < self.min_minutes:
            return self.under_label
        tier = self.tier_for(minutes)
        if tier is not None:
            return tier.label
        return self.over_label

    def describe(self, minutes: float) -> str:
        """Human-readable price range for ``minutes``."""
        if minutes < self.min_minutes:
            return f"Under {_fmt(self.min_minutes)} mins (No charge)"
        tier = self.tier_for(minutes)
        if tier is not None:
            return tier.description
        return f"{_fmt(self.max_minutes)}+ mins (${_fmt(self._cap_price)})"

    def bucket_labels(self) -> List[str]:
        """All breakdown labels in ascending duration order."""
        return [self.under_label] + [t.label for t in self._tiers] + [self.over_label]

    def bucket_price(self, label: str) -> float:
        if label == self.under_label:
            return 0.0
        if label == self.over_label:
            return self._cap_price
        for tier in self._tiers:
            if tier.label == label:
                return tier.price
        raise KeyError(label)


DEFAULT_PRICING_TABLE = PricingTable()


def price_for(minutes: float) -> float:
    """Price a duration against the standard Lune tiers."""
    return DEFAULT_PRICING_TABLE.lookup(minutes)
