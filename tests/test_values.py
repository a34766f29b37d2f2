"""Tests for pysnmp value normalization and loose scalar decoding."""

from pyasn1.type import univ
from pysnmp.proto.rfc1902 import Counter32, Integer32, IpAddress, OctetString
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

from prtscan.snmp.transport import VarBind
from prtscan.snmp.values import (
    decode_int,
    decode_string,
    error_name,
    interpret_scalar,
    is_printable_text,
    to_plain,
)


def test_to_plain_types():
    assert to_plain(Integer32(42)) == 42
    assert to_plain(Counter32(7)) == 7
    assert to_plain(OctetString(b"\x00\x2a")) == b"\x00\x2a"
    assert to_plain(IpAddress("10.0.0.5")) == "10.0.0.5"
    assert to_plain(univ.ObjectIdentifier("1.3.6.1.2.1")) == "1.3.6.1.2.1"
    assert to_plain(univ.Null("")) is None
    assert to_plain(None) is None


def test_null_value_is_not_usable():
    varbind = VarBind(oid="1.3.6.1.2.1.43.5.1.1.17.1", value=to_plain(univ.Null("")))
    assert varbind.value is None
    assert not varbind.ok
    assert varbind.text == ""


def test_error_name():
    assert error_name(NoSuchObject("")) == "noSuchObject"
    assert error_name(NoSuchInstance("")) == "noSuchInstance"
    assert error_name(EndOfMibView("")) == "endOfMibView"
    assert error_name(Integer32(1)) is None


def test_decode_string():
    assert decode_string(b"HL-L5100DN\x00\x00") == "HL-L5100DN"
    assert decode_string("  spaced  ") == "spaced"
    assert decode_string(b"Imprimante \xe9") == "Imprimante \xe9"
    assert decode_string(None) == ""


def test_decode_int():
    assert decode_int(5) == 5
    assert decode_int(b"73") == 73
    assert decode_int("12") == 12
    assert decode_int(b"\x01\x02") is None
    assert decode_int(None) is None


def test_interpret_scalar_priority():
    assert interpret_scalar(64) == 64
    assert interpret_scalar(b"\x37") == 55
    assert interpret_scalar(b"80") == 80
    assert interpret_scalar(b"\xff\xfe\x2a\x00") == 42
    assert interpret_scalar(b"\xff\xff\xff\xff") is None
    assert interpret_scalar("33") == 33
    assert interpret_scalar(None) is None


def test_is_printable_text():
    assert is_printable_text(b"E78123A4N123456")
    assert not is_printable_text(b"\x01\x02\x03")
    assert not is_printable_text(42)


def test_varbind_flags():
    ok = VarBind(oid="1.3.6.1.2.1.1.1.0", value=b"Brother NC-8300h")
    missing = VarBind(oid="1.3.6.1.2.1.1.1.0", error="noSuchObject")

    assert ok.ok and ok.text == "Brother NC-8300h"
    assert not missing.ok
    assert missing.text == ""
    assert missing.int_value is None
    assert VarBind(oid="x", value=b"42").int_value == 42
