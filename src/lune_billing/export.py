"""Lune Usage Billing — Draft export.

Serializes invoice drafts for the collaborators that consume them:
a JSON-ready payload for persistence and PDF/email rendering, and
pandas frames for tabular reports.
"""

import logging
from typing import Dict, List

import pandas as pd

from .aggregator import UsageStatistics
from .invoices import InvoiceDraft
from .records import FEED_FIELDS, UsageRecord

logger = logging.getLogger(__name__)

LINE_ITEM_COLUMNS = [
    "transaction_id",
    "device_id",
    "secondary_id",
    "date",
    "time",
    "action",
    "duration_text",
    "minutes",
    "charge",
    "price_range",
    "description",
]

TIER_COLUMNS = ["tier", "count", "total_minutes", "total_charge", "price_per_unit"]


def draft_to_dict(draft: InvoiceDraft) -> Dict[str, object]:
    """JSON-serializable invoice payload."""
    return {
        "invoice_number": draft.invoice_number,
        "office_id": draft.office_id,
        "period": {"month": draft.period.month, "year": draft.period.year},
        "issue_date": draft.issue_date.isoformat(),
        "due_date": draft.due_date.isoformat(),
        "description": draft.description,
        "items": [
            {
                "description": li.description,
                "quantity": 1,
                "rate": li.charge,
                "amount": li.charge,
            }
            for li in draft.line_items
        ],
        "line_items": [
            {col: getattr(li, col) for col in LINE_ITEM_COLUMNS}
            for li in draft.line_items
        ],
        "subtotal": draft.subtotal,
        "tax": draft.tax,
        "total": draft.total,
        "notes": draft.notes,
        "per_device_breakdown": {
            serial: {
                "period": {"month": b.period.month, "year": b.period.year},
                **b.statistics.to_dict(),
            }
            for serial, b in draft.per_device_breakdown.items()
        },
    }


def line_items_frame(draft: InvoiceDraft) -> pd.DataFrame:
    """One row per line item, in invoice order."""
    rows = [{col: getattr(li, col) for col in LINE_ITEM_COLUMNS} for li in draft.line_items]
    return pd.DataFrame(rows, columns=LINE_ITEM_COLUMNS)


def tier_breakdown_frame(statistics: UsageStatistics) -> pd.DataFrame:
    """One row per non-empty tier, ascending by duration."""
    rows = [
        {
            "tier": label,
            "count": s.count,
            "total_minutes": s.total_minutes,
            "total_charge": s.total_charge,
            "price_per_unit": s.price_per_unit,
        }
        for label, s in statistics.tier_breakdown.items()
    ]
    return pd.DataFrame(rows, columns=TIER_COLUMNS)


def device_summary_frame(draft: InvoiceDraft) -> pd.DataFrame:
    """Per-device totals indexed by serial number."""
    rows = [
        {
            "serial_number": serial,
            "month": b.period.month,
            "year": b.period.year,
            "total_records": b.statistics.total_records,
            "total_minutes": b.statistics.total_minutes,
            "total_charge": b.statistics.total_charge,
            "average_duration": b.statistics.average_duration,
        }
        for serial, b in draft.per_device_breakdown.items()
    ]
    frame = pd.DataFrame(
        rows,
        columns=[
            "serial_number",
            "month",
            "year",
            "total_records",
            "total_minutes",
            "total_charge",
            "average_duration",
        ],
    )
    return frame.set_index("serial_number")


def records_from_frame(frame: pd.DataFrame) -> List[UsageRecord]:
    """Decode a usage feed held in a DataFrame.

    Columns may use the upstream feed names (``Tid``, ``Device_Id``, ...)
    or the record attribute names. Missing values become empty strings.
    """
    if frame.empty:
        return []
    known = set(FEED_FIELDS) | set(FEED_FIELDS.values())
    columns = [c for c in frame.columns if c in known]
    unknown = [c for c in frame.columns if c not in known]
    if unknown:
        logger.debug("Ignoring feed columns: %s", ", ".join(map(str, unknown)))
    cleaned = frame[columns].astype(object).where(frame[columns].notna(), None)
    return [UsageRecord.from_feed(row) for row in cleaned.to_dict(orient="records")]
