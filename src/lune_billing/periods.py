"""Lune Usage Billing — Billing period selection."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from .records import UsageRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BillingPeriod:
    """A calendar month."""

    month: int
    year: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be 1-12, got {self.month}")

    @classmethod
    def of(cls, day: date) -> "BillingPeriod":
        return cls(month=day.month, year=day.year)

    @property
    def label(self) -> str:
        return f"{self.month:02d}/{self.year}"


def record_period(date_text: str) -> Optional[BillingPeriod]:
    """Month and year of a ``?/MM/YYYY`` date, or None if unparseable."""
    if not date_text or not isinstance(date_text, str):
        return None
    parts = date_text.strip().split("/")
    if len(parts) < 3:
        return None
    try:
        month = int(parts[1])
        year = int(parts[2])
    except ValueError:
        return None
    if not 1 <= month <= 12:
        return None
    return BillingPeriod(month=month, year=year)


def filter_by_period(
    records: Iterable[UsageRecord], period: BillingPeriod
) -> List[UsageRecord]:
    """Records dated within ``period``, in input order."""
    selected = []
    for record in records:
        found = record_period(record.date)
        if found is None:
            logger.debug(
                "Skipping record %s with unparseable date %r",
                record.transaction_id,
                record.date,
            )
            continue
        if found == period:
            selected.append(record)
    return selected


def infer_period(records: Iterable[UsageRecord]) -> Optional[BillingPeriod]:
    """Period of the first record carrying a parseable date."""
    for record in records:
        found = record_period(record.date)
        if found is not None:
            return found
    return None


def select_for_period(
    records: List[UsageRecord], period: Optional[BillingPeriod] = None
) -> Tuple[List[UsageRecord], Optional[BillingPeriod]]:
    """Select the records to bill and the period they were billed for.

    With an explicit ``period`` the records are filtered to it. Without one
    the period is inferred from the first dated record, so callers bill what
    the data actually contains rather than an empty month.
    """
    if period is None:
        period = infer_period(records)
        if period is None:
            return [], None
        logger.debug("Inferred billing period %s", period.label)
    return filter_by_period(records, period), period
