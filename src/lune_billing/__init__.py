"""Lune Usage Billing.

Matches raw Lune device usage events to devices, selects a billing month,
prices each session on a time-tiered schedule and assembles invoice drafts.
"""

from .config import (
    MatchMode,
    NumberingMode,
    BillingConfig,
    TIME_PRICING_TIERS,
)
from .durations import (
    parse_duration,
    format_duration,
    format_clock,
)
from .pricing import (
    PriceTier,
    PricingTable,
    price_for,
)
from .records import (
    UsageRecord,
    Device,
    EnrichedUsageRecord,
    records_from_feed,
    search_records,
)
from .matcher import (
    DeviceMatcher,
    matches,
    find_collisions,
)
from .periods import (
    BillingPeriod,
    record_period,
    filter_by_period,
    infer_period,
    select_for_period,
)
from .aggregator import (
    TierSummary,
    UsageStatistics,
    UsageAggregator,
)
from .numbering import (
    InvoiceNumber,
    NumberingStrategy,
    SequentialNumbering,
    RandomNumbering,
    generate_sequential_invoice_number,
    generate_random_invoice_number,
    parse_invoice_number,
    numbering_for,
)
from .invoices import (
    LineItem,
    DeviceBreakdown,
    InvoiceDraft,
    InvoiceAssembler,
)
from .export import (
    draft_to_dict,
    line_items_frame,
    tier_breakdown_frame,
    device_summary_frame,
    records_from_frame,
)

__all__ = [
    # Config
    "MatchMode",
    "NumberingMode",
    "BillingConfig",
    "TIME_PRICING_TIERS",
    # Durations
    "parse_duration",
    "format_duration",
    "format_clock",
    # Pricing
    "PriceTier",
    "PricingTable",
    "price_for",
    # Records
    "UsageRecord",
    "Device",
    "EnrichedUsageRecord",
    "records_from_feed",
    "search_records",
    # Matching
    "DeviceMatcher",
    "matches",
    "find_collisions",
    # Periods
    "BillingPeriod",
    "record_period",
    "filter_by_period",
    "infer_period",
    "select_for_period",
    # Aggregation
    "TierSummary",
    "UsageStatistics",
    "UsageAggregator",
    # Numbering
    "InvoiceNumber",
    "NumberingStrategy",
    "SequentialNumbering",
    "RandomNumbering",
    "generate_sequential_invoice_number",
    "generate_random_invoice_number",
    "parse_invoice_number",
    "numbering_for",
    # Invoices
    "LineItem",
    "DeviceBreakdown",
    "InvoiceDraft",
    "InvoiceAssembler",
    # Export
    "draft_to_dict",
    "line_items_frame",
    "tier_breakdown_frame",
    "device_summary_frame",
    "records_from_frame",
]
