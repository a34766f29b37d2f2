"""
prtscan - SNMP Value Decoding.

Normalizes pysnmp value objects into plain Python values and provides
decoders for the loosely typed data printers return.

A printer may return the same metric as an Integer32, a one-byte
OctetString, or a DisplayString holding digits depending on model and
firmware. These helpers never raise; they return None when a value
cannot be interpreted.
"""

from typing import Any, Optional, Union

from pyasn1.type import univ
from pysnmp.proto.rfc1902 import IpAddress
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

PlainValue = Union[int, str, bytes, None]

ERROR_VALUE_TYPES = (NoSuchObject, NoSuchInstance, EndOfMibView)


# =============================================================================
# pysnmp -> Python
# =============================================================================

def error_name(value: Any) -> Optional[str]:
    """Return the exception-value name if value is noSuch*/endOfMibView."""
    if isinstance(value, NoSuchObject):
        return "noSuchObject"
    if isinstance(value, NoSuchInstance):
        return "noSuchInstance"
    if isinstance(value, EndOfMibView):
        return "endOfMibView"
    return None


def to_plain(value: Any) -> PlainValue:
    """
    Convert a pysnmp value to int, str or bytes.

    OctetStrings stay raw bytes because several vendors pack binary
    data into them; use decode_string() for display text.
    """
    if value is None or isinstance(value, univ.Null):
        return None
    if isinstance(value, IpAddress):
        return value.prettyPrint()
    if isinstance(value, univ.Integer):
        return int(value)
    if isinstance(value, univ.OctetString):
        return bytes(value.asOctets())
    if isinstance(value, univ.ObjectIdentifier):
        return str(value)
    if isinstance(value, (int, str, bytes)):
        return value
    return value.prettyPrint() if hasattr(value, 'prettyPrint') else str(value)


# =============================================================================
# String Decoding
# =============================================================================

def decode_string(value: PlainValue) -> str:
    """
    Safely convert a plain SNMP value to display text.

    Tries UTF-8 first, falls back to latin-1. Strips null bytes
    and surrounding whitespace.
    """
    if value is None:
        return ""
    if isinstance(value, bytes):
        try:
            result = value.decode('utf-8')
        except UnicodeDecodeError:
            result = value.decode('latin-1')
    else:
        result = str(value)
    return result.replace('\x00', '').strip()


def decode_int(value: PlainValue) -> Optional[int]:
    """
    Convert an integer or numeric string to int.

    Raw byte buffers that are not ASCII digits return None.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    text = decode_string(value)
    try:
        return int(text)
    except ValueError:
        return None


def is_printable_text(value: PlainValue) -> bool:
    """True if value decodes to text without control characters."""
    if not isinstance(value, (bytes, str)):
        return False
    text = decode_string(value)
    return bool(text) and all(ch.isprintable() for ch in text)


def interpret_scalar(value: PlainValue) -> Optional[int]:
    """
    Interpret a proprietary level value.

    Priority: raw integer, single-byte buffer, numeric string. Multi-byte
    binary buffers fall back to the first of up to four leading bytes that
    is a plausible percentage.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, bytes):
        if len(value) == 1:
            return value[0]
        numeric = decode_int(value)
        if numeric is not None:
            return numeric
        for byte in value[:4]:
            if 0 <= byte <= 100:
                return byte
        return None
    return decode_int(value)
