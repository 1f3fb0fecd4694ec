"""Lune Usage Billing — Invoice assembly.

Turns the usage feed of an office's devices into an invoice draft: one
line item per billed session, totals, notes and a per-device breakdown.
Drafts are built fresh on every call and never stored here.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from src.logging_config import BillingRunContext, log_performance

from .aggregator import UsageAggregator, UsageStatistics
from .config import BillingConfig, DEFAULT_BILLING_CONFIG
from .durations import format_duration
from .matcher import DeviceMatcher
from .numbering import NumberingStrategy, RandomNumbering
from .periods import BillingPeriod, select_for_period
from .pricing import PricingTable
from .records import Device, EnrichedUsageRecord, UsageRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineItem:
    """One billed session on an invoice."""

    transaction_id: str
    device_id: str
    secondary_id: str
    date: str
    time: str
    action: str
    duration_text: str
    minutes: float
    charge: float
    price_range: str = ""

    @property
    def description(self) -> str:
        return f"{self.action.upper()} Service - {self.device_id} ({self.duration_text})"

    @classmethod
    def from_enriched(cls, device: Device, item: EnrichedUsageRecord) -> "LineItem":
        record = item.record
        return cls(
            transaction_id=record.transaction_id,
            device_id=device.serial_number,
            secondary_id=record.secondary_id,
            date=record.date,
            time=record.time,
            action=record.action,
            duration_text=record.duration or format_duration(item.minutes),
            minutes=item.minutes,
            charge=item.charge,
            price_range=item.price_range,
        )


@dataclass
class DeviceBreakdown:
    """Usage billed for one device."""

    serial_number: str
    period: BillingPeriod
    statistics: UsageStatistics


@dataclass
class InvoiceDraft:
    """Computed, unpersisted invoice for one office and period."""

    invoice_number: str
    office_id: str
    period: BillingPeriod
    issue_date: date
    due_date: date
    line_items: List[LineItem] = field(default_factory=list)
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0
    total_records: int = 0
    total_minutes: float = 0.0
    notes: str = ""
    description: str = ""
    per_device_breakdown: Dict[str, DeviceBreakdown] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        """True when no device had usage for the period."""
        return not self.line_items


def build_notes(total_records: int, total_minutes: float) -> str:
    return (
        "Generated from time-based usage data. "
        f"Total sessions: {total_records}, "
        f"Total usage time: {format_duration(total_minutes)}"
    )


class InvoiceAssembler:
    """Builds invoice drafts from devices and their usage feed."""

    def __init__(
        self,
        config: Optional[BillingConfig] = None,
        numbering: Optional[NumberingStrategy] = None,
    ) -> None:
        self._config = config or DEFAULT_BILLING_CONFIG
        self._numbering = numbering or RandomNumbering()
        self._matcher = DeviceMatcher(self._config.match_mode)
        self._aggregator = UsageAggregator(
            PricingTable(self._config.pricing_tiers, self._config.cap_price)
        )

    @property
    def config(self) -> BillingConfig:
        return self._config

    @log_performance()
    def assemble(
        self,
        devices: Sequence[Device],
        records: Sequence[UsageRecord],
        period: Optional[BillingPeriod] = None,
        office_id: Optional[str] = None,
        issue_date: Optional[date] = None,
    ) -> InvoiceDraft:
        """Assemble an invoice draft.

        Args:
            devices: Registered devices, billed in this order.
            records: Raw usage feed.
            period: Month to bill. When omitted each device is billed for
                the month of its first dated record, and the draft reports
                the period of the first device that had usage.
            office_id: Restrict billing to devices of this office.
            issue_date: Invoice date; defaults to today.

        Returns:
            The draft. No usage gives an empty draft (no line items, zero
            totals), never an error.
        """
        issue_date = issue_date or date.today()
        if office_id is not None:
            devices = [d for d in devices if d.office_id == office_id]
        records = list(records)

        with BillingRunContext(office_id=office_id or ""):
            line_items: List[LineItem] = []
            usage: Dict[str, List[EnrichedUsageRecord]] = {}
            periods: Dict[str, BillingPeriod] = {}
            billed_period: Optional[BillingPeriod] = period

            for device, matched in self._matcher.match_all(devices, records):
                selected, device_period = select_for_period(matched, period)
                if not selected:
                    continue

                serial = device.serial_number
                enriched = [self._aggregator.enrich(r) for r in selected]
                line_items.extend(LineItem.from_enriched(device, e) for e in enriched)
                if serial in usage:
                    logger.warning(
                        "Device %s is registered more than once, merging its usage",
                        serial,
                        extra={"device_id": serial},
                    )
                    usage[serial].extend(enriched)
                else:
                    usage[serial] = enriched
                    periods[serial] = device_period
                if billed_period is None:
                    billed_period = device_period
                logger.debug(
                    "Device %s: %d sessions, %.2f charged",
                    serial,
                    len(enriched),
                    sum(e.charge for e in enriched),
                    extra={"device_id": serial},
                )

            if billed_period is None:
                billed_period = BillingPeriod.of(issue_date)

            breakdown = {
                serial: DeviceBreakdown(
                    serial_number=serial,
                    period=periods[serial],
                    statistics=self._aggregator.aggregate(items),
                )
                for serial, items in usage.items()
            }
            total_records = len(line_items)
            total_minutes = round(sum(li.minutes for li in line_items), 2)
            subtotal = round(sum(li.charge for li in line_items), 4)
            tax = round(subtotal * self._config.tax_rate, 4)

            # Empty drafts are not numbered so no sequence value is consumed
            invoice_number = (
                self._numbering.next_number(issue_date) if line_items else ""
            )
            draft = InvoiceDraft(
                invoice_number=invoice_number,
                office_id=office_id or "",
                period=billed_period,
                issue_date=issue_date,
                due_date=issue_date + timedelta(days=self._config.due_days),
                line_items=line_items,
                subtotal=subtotal,
                tax=tax,
                total=round(subtotal + tax, 4),
                total_records=total_records,
                total_minutes=total_minutes,
                notes=build_notes(total_records, total_minutes),
                description=self._config.description,
                per_device_breakdown=breakdown,
            )

            if draft.is_empty:
                logger.info(
                    "No usage found for %d devices in %s",
                    len(devices),
                    billed_period.label,
                )
            else:
                logger.info(
                    "Assembled invoice %s: %d sessions, total %.2f",
                    draft.invoice_number,
                    total_records,
                    draft.total,
                    extra={
                        "invoice_number": draft.invoice_number,
                        "record_count": total_records,
                    },
                )
            return draft
