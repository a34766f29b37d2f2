"""Tests for the RFC 3805 parser and the parser registry."""

import asyncio

from conftest import FakeSession
from prtscan.models import Brand, IdentitySnapshot
from prtscan.oids import HOST_RESOURCES, PRINTER_MIB
from prtscan.vendors import (
    BrotherParser,
    GenericParser,
    PantumParser,
    RicohParser,
    get_parser,
)
from prtscan.vendors.generic import positional_levels

DESCR = PRINTER_MIB.SUPPLY_DESCRIPTION
TYPE = PRINTER_MIB.SUPPLY_TYPE
LEVEL = PRINTER_MIB.SUPPLY_LEVEL
MAX = PRINTER_MIB.SUPPLY_MAX_CAPACITY


def supply_row(index, description, supply_type, level, max_capacity):
    return {
        f"{DESCR}.{index}": description.encode(),
        f"{TYPE}.{index}": supply_type,
        f"{LEVEL}.{index}": level,
        f"{MAX}.{index}": max_capacity,
    }


def test_registry_is_case_insensitive():
    assert isinstance(get_parser("brother"), BrotherParser)
    assert isinstance(get_parser("RICOH"), RicohParser)
    assert isinstance(get_parser(Brand.PANTUM), PantumParser)


def test_registry_falls_back_to_generic():
    parser = get_parser("hp")
    assert type(parser) is GenericParser
    assert parser.brand == Brand.HP
    assert get_parser(None).brand == Brand.UNKNOWN
    assert get_parser("no-such-brand").brand == Brand.UNKNOWN


def test_supplies_joined_by_index():
    values = {}
    values.update(supply_row(1, "Black Toner", 3, 3000, 6000))
    values.update(supply_row(2, "Cyan Toner", 3, -2, 6000))
    values.update(supply_row(3, "Magenta Toner", 3, -3, 6000))
    values.update(supply_row(4, "Yellow Toner", 3, 1, 8))
    session = FakeSession(values=values)

    levels = asyncio.run(GenericParser(brand=Brand.HP).read_supply_levels(session, "HP Color LaserJet"))
    assert levels == {"black": 50, "cyan": 100, "magenta": 50, "yellow": 13}


def test_non_colorant_supplies_are_skipped():
    values = {}
    values.update(supply_row(1, "Black Waste Toner Box", 4, 10, 100))
    values.update(supply_row(2, "Black Drum", 9, 5, 100))
    values.update(supply_row(3, "Black Toner", 3, 80, 100))
    session = FakeSession(values=values)

    levels = asyncio.run(GenericParser().read_supply_levels(session, None))
    assert levels == {"black": 80}


def test_first_entry_per_color_wins():
    values = {}
    values.update(supply_row(1, "Black Toner", 3, 20, 100))
    values.update(supply_row(2, "Black Toner (High Yield)", 3, 90, 100))
    session = FakeSession(values=values)

    assert asyncio.run(GenericParser().read_supply_levels(session, None)) == {"black": 20}


def test_positional_fallback_for_color_brand():
    session = FakeSession(values={
        f"{LEVEL}.1": -2,
        f"{LEVEL}.2": -3,
        f"{LEVEL}.3": 40,
        f"{LEVEL}.10": 70,
        f"{DESCR}.1": b"Cartridge 1",
    })
    levels = asyncio.run(GenericParser(brand=Brand.EPSON).read_supply_levels(session, None))
    assert levels == {"black": 100, "cyan": 50, "magenta": 40, "yellow": 70}


def test_positional_fallback_black_only_for_other_brands():
    assert positional_levels(Brand.XEROX, [(30, 100), (60, 100)]) == {"black": 30}
    assert positional_levels(Brand.HP, [(None, None), (60, 120)]) == {"cyan": 50}


def test_read_identity_serial_and_firmware():
    session = FakeSession(values={
        PRINTER_MIB.SERIAL_NUMBER: b"VNB3K12345",
        HOST_RESOURCES.DEVICE_ID: b"2409081_052555",
        PRINTER_MIB.PRINTER_NAME: b"4.11.2.1",
    })
    serial, firmware = asyncio.run(GenericParser().read_identity(
        session, IdentitySnapshot(ip="10.0.0.5")))
    assert serial == "VNB3K12345"
    assert firmware == "V4.11.2.1"


def test_read_identity_rejects_placeholder_serial_and_uses_sysdescr_version():
    session = FakeSession(values={PRINTER_MIB.SERIAL_NUMBER: b"Not Specified"})
    serial, firmware = asyncio.run(GenericParser().read_identity(
        session,
        IdentitySnapshot(ip="10.0.0.5", sys_descr="Canon iR-ADV Ver.2.10"),
    ))
    assert serial is None
    assert firmware == "V2.10"


def test_parse_strips_color_for_monochrome_model():
    values = {}
    values.update(supply_row(1, "Black Toner", 3, 70, 100))
    values.update(supply_row(2, "Cyan Toner", 3, 30, 100))
    session = FakeSession(values=values)

    result = asyncio.run(GenericParser().parse(
        session, IdentitySnapshot(ip="10.0.0.5", model="Brother DCP-L5600DN")))
    assert result.levels == {"black": 70}
    assert result.cartridge_info["1"].name == "Black Toner"
    assert result.cartridge_info["1"].capacity == 100
