"""Lune Usage Billing — Usage aggregation."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .durations import parse_duration
from .pricing import DEFAULT_PRICING_TABLE, PricingTable
from .records import EnrichedUsageRecord, UsageRecord

logger = logging.getLogger(__name__)


@dataclass
class TierSummary:
    """Records that fell into one price tier."""

    count: int = 0
    total_minutes: float = 0.0
    total_charge: float = 0.0
    price_per_unit: float = 0.0


@dataclass
class UsageStatistics:
    """Aggregate statistics for a batch of priced records."""

    total_records: int = 0
    total_minutes: float = 0.0
    total_charge: float = 0.0
    average_duration: float = 0.0
    tier_breakdown: Dict[str, TierSummary] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_records": self.total_records,
            "total_minutes": self.total_minutes,
            "total_charge": self.total_charge,
            "average_duration": self.average_duration,
            "tier_breakdown": {
                label: {
                    "count": s.count,
                    "total_minutes": s.total_minutes,
                    "total_charge": s.total_charge,
                    "price_per_unit": s.price_per_unit,
                }
                for label, s in self.tier_breakdown.items()
            },
        }


class UsageAggregator:
    """Prices usage records and summarizes them."""

    def __init__(self, pricing: Optional[PricingTable] = None) -> None:
        self._pricing = pricing or DEFAULT_PRICING_TABLE

    @property
    def pricing(self) -> PricingTable:
        return self._pricing

    def enrich(self, record: UsageRecord) -> EnrichedUsageRecord:
        """Parse a record's duration and price it."""
        minutes = parse_duration(record.duration)
        if minutes == 0.0 and record.duration:
            logger.debug(
                "Duration %r of record %s parsed as zero minutes",
                record.duration,
                record.transaction_id,
            )
        return EnrichedUsageRecord(
            record=record,
            minutes=minutes,
            charge=self._pricing.lookup(minutes),
            tier_label=self._pricing.label_for(minutes),
            price_range=self._pricing.describe(minutes),
        )

    def aggregate(self, enriched: Iterable[EnrichedUsageRecord]) -> UsageStatistics:
        """Totals and tier breakdown. An empty batch gives all-zero statistics."""
        enriched = list(enriched)
        if not enriched:
            return UsageStatistics()

        buckets: Dict[str, TierSummary] = {}
        for item in enriched:
            summary = buckets.get(item.tier_label)
            if summary is None:
                summary = TierSummary(
                    price_per_unit=self._pricing.bucket_price(item.tier_label)
                )
                buckets[item.tier_label] = summary
            summary.count += 1
            summary.total_minutes += item.minutes
            summary.total_charge += item.charge

        # Ascending duration order regardless of input order
        breakdown = {
            label: TierSummary(
                count=buckets[label].count,
                total_minutes=round(buckets[label].total_minutes, 2),
                total_charge=round(buckets[label].total_charge, 4),
                price_per_unit=buckets[label].price_per_unit,
            )
            for label in self._pricing.bucket_labels()
            if label in buckets
        }

        total_records = len(enriched)
        total_minutes = sum(i.minutes for i in enriched)
        total_charge = sum(i.charge for i in enriched)
        return UsageStatistics(
            total_records=total_records,
            total_minutes=round(total_minutes, 2),
            total_charge=round(total_charge, 4),
            average_duration=round(total_minutes / total_records, 2),
            tier_breakdown=breakdown,
        )

    def process(
        self, records: Iterable[UsageRecord]
    ) -> Tuple[List[EnrichedUsageRecord], UsageStatistics]:
        """Enrich records in input order and aggregate them."""
        enriched = [self.enrich(r) for r in records]
        return enriched, self.aggregate(enriched)
