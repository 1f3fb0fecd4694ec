"""Lune Usage Billing — Device matching.

Associates raw usage records with registered devices by comparing the
device identifiers against the record's primary (``Device_Id``) and
secondary (SBC, ``Serial_Number``) fields.
"""

import logging
from typing import Iterable, List, Sequence, Tuple

from .config import MatchMode
from .records import Device, UsageRecord

logger = logging.getLogger(__name__)


def matches(
    device_id: str,
    record: UsageRecord,
    mode: MatchMode = MatchMode.EXACT,
) -> bool:
    """Whether ``record`` belongs to the device identified by ``device_id``.

    EXACT requires either identifier field to equal ``device_id``.
    SUBSTRING also accepts either field containing ``device_id``, which
    tolerates prefix/suffix noise upstream but can misattribute usage when
    one device identifier is a substring of another.
    """
    if not device_id:
        return False
    for value in (record.device_id, record.secondary_id):
        if not value:
            continue
        if value == device_id:
            return True
        if mode == MatchMode.SUBSTRING and device_id in value:
            return True
    return False


def find_collisions(devices: Iterable[Device]) -> List[Tuple[str, str]]:
    """Pairs (shorter, longer) of device identifiers where one contains the other."""
    ids = sorted({i for d in devices for i in d.identifiers}, key=lambda i: (len(i), i))
    pairs = []
    for i, short in enumerate(ids):
        for long in ids[i + 1:]:
            if short in long:
                pairs.append((short, long))
    return pairs


class DeviceMatcher:
    """Selects the usage records belonging to a device."""

    def __init__(self, mode: MatchMode = MatchMode.EXACT) -> None:
        self._mode = mode
        if mode == MatchMode.SUBSTRING:
            logger.info("Device matching uses substring mode")

    @property
    def mode(self) -> MatchMode:
        return self._mode

    def matches_device(self, device: Device, record: UsageRecord) -> bool:
        return any(matches(i, record, self._mode) for i in device.identifiers)

    def records_for(
        self, device: Device, records: Sequence[UsageRecord]
    ) -> List[UsageRecord]:
        """Records matching ``device``, in feed order."""
        return [r for r in records if self.matches_device(device, r)]

    def check_ambiguity(self, devices: Sequence[Device]) -> List[Tuple[str, str]]:
        """Log identifier pairs that substring matching cannot tell apart.

        Only relevant in SUBSTRING mode; matching results are unaffected.
        """
        if self._mode != MatchMode.SUBSTRING:
            return []
        collisions = find_collisions(devices)
        for short, long in collisions:
            logger.warning(
                "Ambiguous device identifiers: %s is contained in %s; "
                "usage may be double counted",
                short,
                long,
            )
        return collisions

    def match_all(
        self, devices: Sequence[Device], records: Sequence[UsageRecord]
    ) -> List[Tuple[Device, List[UsageRecord]]]:
        """Matched records for each device, in device order."""
        self.check_ambiguity(devices)
        return [(d, self.records_for(d, records)) for d in devices]
