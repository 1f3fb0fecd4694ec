"""Lune Usage Billing — Usage records and devices."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

# Upstream feed field -> UsageRecord attribute
FEED_FIELDS: Dict[str, str] = {
    "Tid": "transaction_id",
    "Device_Id": "device_id",
    "Serial_Number": "secondary_id",
    "Date": "date",
    "Current_time": "time",
    "Btn": "action",
    "Duration": "duration",
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class UsageRecord:
    """A single button-press event from the device usage feed."""

    transaction_id: str = ""
    device_id: str = ""
    secondary_id: str = ""
    date: str = ""
    time: str = ""
    action: str = ""
    duration: str = ""

    @classmethod
    def from_feed(cls, entry: Mapping[str, Any]) -> "UsageRecord":
        """Decode one feed entry (``Tid``, ``Device_Id``, ``Serial_Number``, ...).

        Attribute names are accepted as keys too. Missing fields are empty.
        """
        values = {}
        for feed_key, attr in FEED_FIELDS.items():
            raw = entry.get(feed_key)
            if raw is None:
                raw = entry.get(attr)
            values[attr] = _text(raw)
        return cls(**values)


def records_from_feed(entries: Iterable[Mapping[str, Any]]) -> List[UsageRecord]:
    """Decode a whole feed, preserving order."""
    return [UsageRecord.from_feed(e) for e in entries]


@dataclass(frozen=True)
class Device:
    """A Lune device registered to a dental office."""

    serial_number: str
    office_id: str = ""
    plan_type: str = ""
    aliases: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def identifiers(self) -> Tuple[str, ...]:
        """Serial number followed by any alternate feed identifiers."""
        ids = [self.serial_number] + [a for a in self.aliases if a]
        return tuple(dict.fromkeys(i for i in ids if i))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Device":
        serial = data.get("serial_number") or data.get("identifier") or ""
        office = data.get("dental_office_id") or data.get("office_id") or ""
        aliases = list(data.get("aliases") or [])
        if data.get("json_id"):
            aliases.append(data["json_id"])
        return cls(
            serial_number=_text(serial),
            office_id=_text(office),
            plan_type=_text(data.get("plan_type")),
            aliases=tuple(_text(a) for a in aliases),
        )


@dataclass(frozen=True)
class EnrichedUsageRecord:
    """A usage record with its billable minutes and charge."""

    record: UsageRecord
    minutes: float
    charge: float
    tier_label: str
    price_range: str


def search_records(records: Iterable[UsageRecord], term: str) -> List[UsageRecord]:
    """Filter records by a free-text term.

    The action is compared case-insensitively; date, time and transaction id
    by plain substring.
    """
    records = list(records)
    if not term:
        return records
    lowered = term.lower()
    return [
        r
        for r in records
        if lowered in r.action.lower()
        or term in r.date
        or term in r.time
        or term in r.transaction_id
    ]
