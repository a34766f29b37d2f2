"""
prtscan - SNMP transport and value decoding.
"""

from .transport import SNMPSession, VarBind, snmp_get, snmp_walk
from .values import decode_int, decode_string, interpret_scalar

__all__ = [
    'SNMPSession',
    'VarBind',
    'snmp_get',
    'snmp_walk',
    'decode_int',
    'decode_string',
    'interpret_scalar',
]
