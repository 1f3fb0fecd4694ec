"""Tests for the generate_usage_invoice command-line script."""

import json

import pandas as pd
import pytest

from scripts.generate_usage_invoice import build_parser, main


@pytest.fixture
def input_files(tmp_path, feed_entries):
    devices_path = tmp_path / "devices.json"
    feed_path = tmp_path / "feed.json"
    devices_path.write_text(json.dumps([
        {"serial_number": "LUNE-001", "dental_office_id": 1, "plan_type": "standard"},
        {"serial_number": "LUNE-002", "dental_office_id": 1, "json_id": "290b100001071e"},
        {"serial_number": "LUNE-100", "dental_office_id": 2},
    ]))
    feed_path.write_text(json.dumps(feed_entries))
    return str(devices_path), str(feed_path)


class TestGenerateUsageInvoice:
    def test_parser_defaults(self):
        args = build_parser().parse_args(["--devices", "d.json", "--feed", "f.json"])
        assert args.office is None
        assert args.month is None
        assert args.sequence is None
        assert args.substring_match is False

    def test_prints_draft(self, input_files, capsys):
        devices, feed = input_files
        code = main([
            "--devices", devices, "--feed", feed,
            "--office", "1", "--month", "3", "--year", "2025", "--sequence", "3",
        ])
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["total"] == 52.0
        assert data["period"] == {"month": 3, "year": 2025}
        assert data["invoice_number"].startswith("INV-")
        assert data["invoice_number"].endswith("000003")
        assert len(data["items"]) == 3

    def test_substring_match_flag(self, input_files, capsys):
        devices, feed = input_files
        main([
            "--devices", devices, "--feed", feed, "--office", "1",
            "--month", "3", "--year", "2025", "--substring-match",
        ])
        data = json.loads(capsys.readouterr().out)
        assert data["total"] == 60.0

    def test_inferred_period(self, input_files, capsys):
        devices, feed = input_files
        main(["--devices", devices, "--feed", feed, "--office", "1", "--console-log"])
        data = json.loads(capsys.readouterr().out)
        assert data["period"] == {"month": 3, "year": 2025}

    def test_writes_csv(self, input_files, tmp_path, capsys):
        devices, feed = input_files
        out = tmp_path / "items.csv"
        main([
            "--devices", devices, "--feed", feed, "--office", "1",
            "--month", "3", "--year", "2025", "--csv", str(out),
        ])
        frame = pd.read_csv(out)
        assert len(frame) == 3
        assert frame["charge"].sum() == 52.0

    def test_month_requires_year(self, input_files):
        devices, feed = input_files
        assert main(["--devices", devices, "--feed", feed, "--month", "3"]) == 2

    def test_invalid_month(self, input_files):
        devices, feed = input_files
        assert main(["--devices", devices, "--feed", feed, "--month", "13", "--year", "2025"]) == 2

    def test_invalid_sequence(self, input_files):
        devices, feed = input_files
        assert main(["--devices", devices, "--feed", feed, "--sequence", "0"]) == 2
