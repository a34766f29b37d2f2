"""Tests for the Brother maintenance buffer and parser strategies."""

import asyncio

import pytest

from conftest import FakeSession
from prtscan.models import Brand, IdentitySnapshot
from prtscan.oids import BROTHER, HOST_RESOURCES, PRINTER_MIB, SYSTEM
from prtscan.vendors.brother import (
    BrotherParser,
    decode_brother_value,
    decode_maintenance_buffer,
    decode_next_care,
    is_plausible_serial,
)


def maintenance_buffer(**offsets) -> bytes:
    """50-byte buffer with the given byte values (offset_N=value)."""
    buf = bytearray(50)
    for key, value in offsets.items():
        buf[int(key.split("_")[1])] = value
    return bytes(buf)


# =============================================================================
# Maintenance buffer
# =============================================================================

def test_toner_offset_is_direct():
    assert decode_maintenance_buffer(maintenance_buffer(offset_41=73))["toner"] == 73


@pytest.mark.parametrize("raw,remaining", [
    (5, 5),       # small values read as remaining
    (10, 10),
    (85, 15),     # larger values read as consumed
    (11, 89),
])
def test_drum_polarity(raw, remaining):
    assert decode_maintenance_buffer(maintenance_buffer(offset_1=raw))["drum"] == remaining


def test_out_of_range_byte_is_skipped():
    decoded = decode_maintenance_buffer(maintenance_buffer(offset_41=200, offset_2=30))
    assert "toner" not in decoded
    assert decoded["fuser"] == 70


def test_short_buffer_only_decodes_present_offsets():
    decoded = decode_maintenance_buffer(bytes([0, 90, 4]))
    assert decoded == {"drum": 10, "fuser": 4}


def test_non_buffer_decodes_to_nothing():
    assert decode_maintenance_buffer(42) == {}
    assert decode_maintenance_buffer(None) == {}


# =============================================================================
# Scalar values
# =============================================================================

def test_decode_brother_value_shapes():
    consumed_at_13 = bytes(13) + bytes([30])
    assert decode_brother_value(7) == 7
    assert decode_brother_value("55") == 55
    assert decode_brother_value(b"42") == 42
    assert decode_brother_value(consumed_at_13) == 70
    assert decode_brother_value(b"\x2a") == 42
    assert decode_brother_value(b"\x00\x32") == 50
    assert decode_brother_value(b"\x00\x00\x00\x3c") == 60
    assert decode_brother_value(b"\xff\x40\x10") == 64
    assert decode_brother_value(None) is None


def test_decode_next_care():
    assert decode_next_care(b"\x00\x00\x03\x20") == 800
    assert decode_next_care(b"\x01") is None
    assert decode_next_care(None) is None


def test_is_plausible_serial():
    assert is_plausible_serial("E78123A4N123456")
    assert not is_plausible_serial("ABCDEFG")          # no digit
    assert not is_plausible_serial("A1B2")             # too short
    assert not is_plausible_serial('MODEL="HL-L5100DN"')


# =============================================================================
# Parser
# =============================================================================

def seed(**kwargs) -> IdentitySnapshot:
    return IdentitySnapshot(ip="10.0.0.5", brand=Brand.BROTHER, **kwargs)


def test_identify_prefers_device_description():
    session = FakeSession(values={})
    model = asyncio.run(BrotherParser().identify(
        session, seed(device_descr="Brother HL-L5100DN series",
                      sys_descr="Brother NC-8300h, Firmware Ver.1.05")))
    assert model == "Brother HL-L5100DN"
    assert session.get_calls == []


def test_identify_resolves_network_server_descriptor():
    session = FakeSession(values={
        BROTHER.NET_CONFIG: b'MFG:Brother;CMD:PJL;MODEL="HL-L6200DW";CLS:PRINTER;',
    })
    model = asyncio.run(BrotherParser().identify(
        session, seed(sys_descr="Brother NC-8300h, Firmware Ver.1.05  (10.05.19)")))
    assert model == "Brother HL-L6200DW"


def test_identify_falls_back_to_status_branch_walk():
    session = FakeSession(values={
        BROTHER.BRANCH_STATUS + ".7.0": b"Brother DCP-L5600DN series",
    })
    model = asyncio.run(BrotherParser().identify(
        session, seed(sys_descr="Brother NC-9300h")))
    assert model == "Brother DCP-L5600DN"
    assert BROTHER.BRANCH_STATUS in session.walk_calls


def test_read_identity_rejects_implausible_serials():
    session = FakeSession(values={
        BROTHER.SERIAL: b"E7",
        BROTHER.SERIAL_ALT: b"U63891K5N412345",
        BROTHER.MAIN_FIRMWARE: b"1.04",
    })
    serial, firmware = asyncio.run(BrotherParser().read_identity(session, seed()))
    assert serial == "U63891K5N412345"
    assert firmware == "V1.04"


def test_levels_from_maintenance_buffer_first():
    session = FakeSession(values={
        BROTHER.INFO_MAINTENANCE: maintenance_buffer(offset_41=73),
        PRINTER_MIB.FIRST_SUPPLY_LEVEL: 10,
    })
    levels = asyncio.run(BrotherParser().read_supply_levels(session, "Brother HL-L5100DN"))
    assert levels == {"black": 73}


def test_levels_fall_through_to_printer_mib():
    session = FakeSession(values={PRINTER_MIB.FIRST_SUPPLY_LEVEL: 44})
    levels = asyncio.run(BrotherParser().read_supply_levels(session, "Brother HL-L5100DN"))
    assert levels == {"black": 44}


def test_levels_from_color_scalars():
    session = FakeSession(values={
        BROTHER.TONER_BLACK: b"\x2a",
        BROTHER.TONER_CYAN: bytes(13) + bytes([25]),
        BROTHER.TONER_MAGENTA: b"60",
        BROTHER.TONER_YELLOW: 250,               # out of range, dropped
    })
    levels = asyncio.run(BrotherParser().read_supply_levels(session, "Brother HL-L3270CDW"))
    assert levels == {"black": 42, "cyan": 75, "magenta": 60}


def test_failed_color_scalar_is_omitted():
    session = FakeSession(
        values={BROTHER.TONER_BLACK: 80, BROTHER.TONER_MAGENTA: 30},
        failing=[BROTHER.TONER_CYAN],
    )
    levels = asyncio.run(BrotherParser().read_supply_levels(session, "Brother MFC-L8900CDW"))
    assert levels == {"black": 80, "magenta": 30}


def test_timed_out_level_strategy_falls_through():
    session = FakeSession(
        values={PRINTER_MIB.FIRST_SUPPLY_LEVEL: 55},
        failing=[BROTHER.INFO_MAINTENANCE],
    )
    levels = asyncio.run(BrotherParser().read_supply_levels(session, "Brother HL-L5100DN"))
    assert levels == {"black": 55}


def test_monochrome_reads_black_scalar_only():
    session = FakeSession(values={BROTHER.TONER_BLACK: 80, BROTHER.TONER_CYAN: 30})
    levels = asyncio.run(BrotherParser().read_supply_levels(session, "Brother HL-L2350DW"))
    assert levels == {"black": 80}
    assert [BROTHER.TONER_CYAN] not in session.get_calls


def test_read_faults_components_and_service():
    session = FakeSession(values={
        BROTHER.INFO_MAINTENANCE: maintenance_buffer(offset_1=85, offset_2=40, offset_48=5),
        BROTHER.INFO_NEXT_CARE: b"\x00\x00\x01\xf4",
    })
    report = asyncio.run(BrotherParser().read_faults(session))

    assert report.components == {"drum": 15, "fuser": 60, "paper_kit": 5}
    assert report.pages_until_service == 500
    assert report.faults == [
        "Drum low: 15% - consider replacement",
        "Maintenance due in 500 pages",
    ]


def test_parse_strips_color_on_monochrome_model():
    session = FakeSession(values={
        SYSTEM.SYS_DESCR: b"Brother NC-8300h",
        HOST_RESOURCES.DEVICE_DESCR: b"Brother HL-L5100DN series",
        BROTHER.TONER_BLACK: 64,
    })
    result = asyncio.run(BrotherParser().parse(session, seed(
        model="Brother HL-L5100DN", device_descr="Brother HL-L5100DN series")))
    assert result.model == "Brother HL-L5100DN"
    assert set(result.levels) <= {"black"}
