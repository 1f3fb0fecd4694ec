"""Lune Usage Billing — Invoice numbers.

Invoice numbers have the fixed-width form ``INV-YYMMNNNNNN``: two-digit
year, two-digit month and a six-digit sequence. The sequence comes either
from a caller-supplied monotonic counter or from a random draw; the two
are separate strategies.
"""

import random
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional

from .config import INVOICE_PREFIX, MAX_SEQUENCE, NumberingMode

INVOICE_NUMBER_PATTERN = re.compile(r"^INV-(\d{2})(\d{2})(\d{6})$")


def _format(issued_on: date, sequence: int) -> str:
    return f"{INVOICE_PREFIX}-{issued_on.year % 100:02d}{issued_on.month:02d}{sequence:06d}"


def generate_sequential_invoice_number(issued_on: date, sequence: int) -> str:
    """Invoice number using a caller-supplied sequence in [1, 999999]."""
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise ValueError(f"Sequence must be an integer, got {sequence!r}")
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise ValueError(f"Sequence must be between 1 and {MAX_SEQUENCE}, got {sequence}")
    return _format(issued_on, sequence)


def generate_random_invoice_number(
    issued_on: date, rng: Optional[random.Random] = None
) -> str:
    """Invoice number with a random sequence in [1, 999999]."""
    rng = rng or random.Random()
    return _format(issued_on, rng.randint(1, MAX_SEQUENCE))


@dataclass(frozen=True)
class InvoiceNumber:
    """Decoded invoice number. ``is_valid`` is False for malformed input."""

    raw: str = ""
    is_valid: bool = False
    year: Optional[int] = None
    month: Optional[int] = None
    sequence: Optional[int] = None
    year_short: str = ""
    month_padded: str = ""
    sequence_padded: str = ""


def parse_invoice_number(invoice_number) -> InvoiceNumber:
    """Decode an ``INV-YYMMNNNNNN`` string. Never raises."""
    if not isinstance(invoice_number, str):
        return InvoiceNumber()
    match = INVOICE_NUMBER_PATTERN.match(invoice_number)
    if match is None:
        return InvoiceNumber(raw=invoice_number)
    year, month, sequence = match.groups()
    return InvoiceNumber(
        raw=invoice_number,
        is_valid=True,
        year=2000 + int(year),
        month=int(month),
        sequence=int(sequence),
        year_short=year,
        month_padded=month,
        sequence_padded=sequence,
    )


class NumberingStrategy(ABC):
    """Source of invoice numbers for newly assembled drafts."""

    mode: NumberingMode

    @abstractmethod
    def next_number(self, issued_on: date) -> str:
        ...


class SequentialNumbering(NumberingStrategy):
    """Deterministic numbering from a monotonic counter."""

    mode = NumberingMode.SEQUENTIAL

    def __init__(self, start: int = 1) -> None:
        if not 1 <= start <= MAX_SEQUENCE:
            raise ValueError(f"Sequence must be between 1 and {MAX_SEQUENCE}, got {start}")
        self._next = start

    @property
    def current(self) -> int:
        """The sequence the next call will use."""
        return self._next

    def next_number(self, issued_on: date) -> str:
        number = generate_sequential_invoice_number(issued_on, self._next)
        self._next += 1
        return number


class RandomNumbering(NumberingStrategy):
    """Random six-digit sequences."""

    mode = NumberingMode.RANDOM

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def next_number(self, issued_on: date) -> str:
        return generate_random_invoice_number(issued_on, self._rng)


def numbering_for(
    mode: NumberingMode,
    start: int = 1,
    rng: Optional[random.Random] = None,
) -> NumberingStrategy:
    """Build the strategy for ``mode``. Options of the other mode are ignored."""
    if mode == NumberingMode.SEQUENTIAL:
        return SequentialNumbering(start)
    if mode == NumberingMode.RANDOM:
        return RandomNumbering(rng)
    raise ValueError(f"Unknown numbering mode: {mode!r}")
