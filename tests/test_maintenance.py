"""Tests for cartridge change detection."""

from prtscan.maintenance import CARTRIDGE_REPLACED, LEVEL_INCREASE, detect_supply_changes
from prtscan.models import Brand, CartridgeInfo, PrinterRecord


def record(levels=None, cartridges=None, **kwargs):
    return PrinterRecord(
        ip="10.0.0.5",
        brand=Brand.RICOH,
        model="RICOH M 320F",
        hostname="prt-05",
        serial="G1234567890",
        firmware="V1.10",
        levels=levels or {},
        cartridge_info=cartridges or {},
        **kwargs,
    )


def test_cartridge_serial_change():
    before = record({"black": 5}, {"1": CartridgeInfo(serial="AAA111")})
    after = record({"black": 98}, {"1": CartridgeInfo(serial="BBB222")})

    changes = detect_supply_changes(before, after)

    assert len(changes) == 1
    assert changes[0].kind == CARTRIDGE_REPLACED
    assert changes[0].slot == "1"
    assert (changes[0].previous, changes[0].current) == ("AAA111", "BBB222")


def test_identifier_falls_back_to_name_then_capacity():
    before = record(cartridges={"1": CartridgeInfo(name="TN-3480"), "2": CartridgeInfo(capacity=3000)})
    after = record(cartridges={"1": CartridgeInfo(name="TN-3480"), "2": CartridgeInfo(capacity=8000)})

    changes = detect_supply_changes(before, after)
    assert [(c.slot, c.previous, c.current) for c in changes] == [("2", "3000", "8000")]


def test_level_jump_without_cartridge_info():
    before = record({"black": 10, "cyan": 40})
    after = record({"black": 95, "cyan": 85})

    changes = detect_supply_changes(before, after)
    assert [(c.slot, c.kind) for c in changes] == [("black", LEVEL_INCREASE)]


def test_level_jump_ignored_when_cartridges_known():
    before = record({"black": 10}, {"1": CartridgeInfo(serial="AAA111")})
    after = record({"black": 95}, {"1": CartridgeInfo(serial="AAA111")})
    assert detect_supply_changes(before, after) == []


def test_level_jump_when_only_previous_had_cartridges():
    before = record({"black": 10}, {"1": CartridgeInfo(serial="AAA111")})
    after = record({"black": 95})

    changes = detect_supply_changes(before, after)
    assert [(c.slot, c.kind, c.previous, c.current) for c in changes] == [
        ("black", LEVEL_INCREASE, 10, 95),
    ]


def test_placeholder_and_offline_records_are_ignored():
    before = record({"black": 10})
    assert detect_supply_changes(before, record({"black": 50}, levels_estimated=True)) == []
    assert detect_supply_changes(before, record({"black": 100}, snmp_available=False)) == []
    assert detect_supply_changes(record({"black": 50}, levels_estimated=True), record({"black": 100})) == []


def test_previous_as_stored_dict():
    before = record({"black": 5}, {"1": CartridgeInfo(serial="AAA111")}).to_dict()
    after = record({"black": 98}, {"1": CartridgeInfo(serial="BBB222")})
    assert detect_supply_changes(before, after)[0].to_dict() == {
        "slot": "1",
        "kind": CARTRIDGE_REPLACED,
        "previous": "AAA111",
        "current": "BBB222",
    }


def test_new_printer_has_no_changes():
    assert detect_supply_changes(None, record({"black": 100})) == []
