"""Tests for the Ricoh and Pantum parsers, including the web fallback."""

import asyncio

import requests

from conftest import FakeSession
from prtscan.config import EngineSettings
from prtscan.models import IdentitySnapshot
from prtscan.oids import PANTUM, PRINTER_MIB, RICOH
from prtscan.vendors import pantum
from prtscan.vendors.pantum import PantumParser, fetch_web_toner_level
from prtscan.vendors.ricoh import RicohParser

SEED = IdentitySnapshot(ip="10.0.0.5")


# =============================================================================
# Ricoh
# =============================================================================

def test_ricoh_proprietary_scalar():
    session = FakeSession(values={RICOH.TONER_REMAINING: b"\x37"})
    levels = asyncio.run(RicohParser().read_supply_levels(session, "RICOH M 320F"))
    assert levels == {"black": 55}


def test_ricoh_numeric_string_scalar():
    session = FakeSession(values={RICOH.TONER_REMAINING: b"80"})
    assert asyncio.run(RicohParser().read_supply_levels(session, None)) == {"black": 80}


def test_ricoh_falls_back_to_rfc_index_discovery():
    session = FakeSession(values={
        RICOH.TONER_REMAINING: -100,
        f"{PRINTER_MIB.SUPPLY_DESCRIPTION}.1": b"Toner Negro",
        f"{PRINTER_MIB.SUPPLY_DESCRIPTION}.2": b"Waste Toner",
        f"{PRINTER_MIB.SUPPLY_LEVEL}.1": 2250,
        f"{PRINTER_MIB.SUPPLY_MAX_CAPACITY}.1": 4500,
    })
    levels = asyncio.run(RicohParser().read_supply_levels(session, "RICOH SP 3710DN"))
    assert levels == {"black": 50}
    assert [f"{PRINTER_MIB.SUPPLY_LEVEL}.2", f"{PRINTER_MIB.SUPPLY_MAX_CAPACITY}.2"] \
        not in session.get_calls


def test_ricoh_serial_validation():
    session = FakeSession(values={
        RICOH.MACHINE_ID: b"ab12",
        RICOH.SERIAL: b"G1234567890",
        RICOH.FIRMWARE: b"1.10",
    })
    serial, firmware = asyncio.run(RicohParser().read_identity(session, SEED))
    assert serial == "G1234567890"
    assert firmware == "V1.10"


def test_ricoh_lowercase_serial_rejected():
    session = FakeSession(values={RICOH.MACHINE_ID: b"g1234567890"})
    serial, _ = asyncio.run(RicohParser().read_identity(session, SEED))
    assert serial is None


def test_ricoh_firmware_from_branch_walk():
    session = FakeSession(values={"1.3.6.1.4.1.367.3.2.1.1.1.0": b"V2.05"})
    _, firmware = asyncio.run(RicohParser().read_identity(session, SEED))
    assert firmware == "V2.05"


# =============================================================================
# Pantum
# =============================================================================

class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


def test_pantum_single_uncolored_entry_is_black():
    session = FakeSession(values={f"{PANTUM.TONER_LEVELS}.1": 64})
    levels = asyncio.run(PantumParser().read_supply_levels(session, "PANTUM P3300DN"))
    assert levels == {"black": 64}


def test_pantum_described_entries():
    session = FakeSession(values={
        f"{PANTUM.TONER_LEVELS}.1": 40,
        f"{PANTUM.TONER_LEVELS}.2": 90,
        f"{PANTUM.TONER_DESCRIPTION}.1": b"Black",
        f"{PANTUM.TONER_DESCRIPTION}.2": b"Cyan",
    })
    levels = asyncio.run(PantumParser().read_supply_levels(session, None))
    assert levels == {"black": 40, "cyan": 90}


def test_pantum_web_fallback_only_when_snmp_empty(monkeypatch):
    calls = []

    def fake_fetch(ip, timeout):
        calls.append((ip, timeout))
        return 35

    monkeypatch.setattr(pantum, "fetch_web_toner_level", fake_fetch)

    session = FakeSession(host="10.0.0.77", values={})
    settings = EngineSettings(http_fallback_timeout=2.5)
    levels = asyncio.run(PantumParser(settings).read_supply_levels(session, None))
    assert levels == {"black": 35}
    assert calls == [("10.0.0.77", 2.5)]

    calls.clear()
    session = FakeSession(values={f"{PANTUM.TONER_LEVELS}.1": 64})
    asyncio.run(PantumParser(settings).read_supply_levels(session, None))
    assert calls == []


def test_pantum_web_fallback_disabled(monkeypatch):
    monkeypatch.setattr(pantum, "fetch_web_toner_level",
                        lambda ip, timeout: 99)
    settings = EngineSettings(enable_http_fallback=False)
    levels = asyncio.run(PantumParser(settings).read_supply_levels(FakeSession(values={}), None))
    assert levels == {}


def test_fetch_web_toner_level_tries_pages_in_order(monkeypatch):
    requested = []

    def fake_get(url, timeout):
        requested.append(url)
        if url.endswith("/general/status.html"):
            raise requests.ConnectionError("refused")
        if url.endswith("/status.html"):
            return FakeResponse(404)
        return FakeResponse(200, "<td>Toner Level</td><td>35%</td>")

    monkeypatch.setattr(pantum.requests, "get", fake_get)

    assert fetch_web_toner_level("10.0.0.77", timeout=1) == 35
    assert requested == [
        "http://10.0.0.77/general/status.html",
        "http://10.0.0.77/status.html",
        "http://10.0.0.77/general/information.html",
    ]


def test_fetch_web_toner_level_no_match(monkeypatch):
    monkeypatch.setattr(pantum.requests, "get",
                        lambda url, timeout: FakeResponse(200, "<html>Ready</html>"))
    assert fetch_web_toner_level("10.0.0.77") is None


def test_pantum_serial_and_firmware():
    session = FakeSession(values={
        PANTUM.SERIAL: b"CB7F123456789",
        PANTUM.FIRMWARE: b"V1.2.33",
    })
    serial, firmware = asyncio.run(PantumParser().read_identity(session, SEED))
    assert serial == "CB7F123456789"
    assert firmware == "V1.2.33"
