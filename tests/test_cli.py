"""Tests for CLI argument parsing and command wiring."""

import pytest

from prtscan import cli
from prtscan.models import Brand, PrinterRecord


def test_scan_arguments():
    args = cli.create_parser().parse_args(
        ["scan", "10.0.0.1-254", "10.0.1.1-20", "-c", "corp", "-c", "public",
         "--batch-size", "40", "--json", "-vv"])
    assert args.ranges == ["10.0.0.1-254", "10.0.1.1-20"]
    assert args.communities == ["corp", "public"]
    assert args.scan_batch_size == 40
    assert args.json is True
    assert args.verbose == 2


def test_sync_requires_brand():
    with pytest.raises(SystemExit):
        cli.create_parser().parse_args(["sync", "10.0.0.5"])


def test_query_json_output(monkeypatch, capsys):
    async def fake_query_ip(self, ip, brand=None, community=None):
        return PrinterRecord(ip=ip, brand=Brand.HP, model="HP LaserJet", hostname="hp-3f",
                             serial="VNB3K12345", firmware="V4.11", levels={"black": 70})

    monkeypatch.setattr(cli.PrinterQueryEngine, "query_ip", fake_query_ip)
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)
    monkeypatch.setattr("sys.argv", ["prtscan", "query", "10.0.0.2", "--json"])

    assert cli.main() == 0
    out = capsys.readouterr().out
    assert '"serial": "VNB3K12345"' in out


def test_no_command_prints_help(monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", ["prtscan"])
    assert cli.main() == 1
    assert "usage" in capsys.readouterr().out.lower()
