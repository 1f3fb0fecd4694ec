"""Pytest configuration and shared fixtures."""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.lune_billing.records import Device, records_from_feed  # noqa: E402


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo configure_logging() changes made by a test."""
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level

    yield

    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture
def devices():
    """Two devices in office 1, one in office 2."""
    return [
        Device(serial_number="LUNE-001", office_id="1", plan_type="standard"),
        Device(serial_number="LUNE-002", office_id="1", plan_type="standard",
               aliases=("290b100001071e",)),
        Device(serial_number="LUNE-100", office_id="2", plan_type="premium"),
    ]


@pytest.fixture
def feed_entries():
    """Raw feed entries as delivered by the usage export."""
    return [
        {"Tid": "t1", "Device_Id": "LUNE-001", "Serial_Number": "SBC-A",
         "Date": "03/03/2025", "Current_time": "09:15:00", "Btn": "clean",
         "Duration": "0:06:00"},
        {"Tid": "t2", "Device_Id": "LUNE-001", "Serial_Number": "SBC-A",
         "Date": "10/03/2025", "Current_time": "10:00:00", "Btn": "purify",
         "Duration": "12:30"},
        {"Tid": "t3", "Device_Id": "290b100001071e", "Serial_Number": "SBC-B",
         "Date": "11/03/2025", "Current_time": "11:00:00", "Btn": "subging",
         "Duration": "0:35:00"},
        {"Tid": "t4", "Device_Id": "LUNE-001", "Serial_Number": "SBC-A",
         "Date": "02/04/2025", "Current_time": "08:00:00", "Btn": "clean",
         "Duration": "0:08:00"},
        {"Tid": "t5", "Device_Id": "LUNE-100", "Serial_Number": "SBC-C",
         "Date": "05/03/2025", "Current_time": "12:00:00", "Btn": "clean",
         "Duration": "0:03:00"},
        {"Tid": "t6", "Device_Id": "XX-LUNE-001-YY", "Serial_Number": "",
         "Date": "06/03/2025", "Current_time": "13:00:00", "Btn": "clean",
         "Duration": "0:05:00"},
    ]


@pytest.fixture
def records(feed_entries):
    return records_from_feed(feed_entries)
