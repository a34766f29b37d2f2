"""
prtscan - Exceptions.

Only transport-level failures are raised. Decode misses and classification
misses are represented by omitted fields, never by exceptions.
"""

from typing import Optional


class PrinterSNMPError(Exception):
    """Base exception for prtscan operations."""
    pass


class TransportError(PrinterSNMPError):
    """
    SNMP request failed as a whole.

    Raised on timeout, unreachable host, or a malformed response.
    Always recoverable by the caller via retry.
    """

    def __init__(self, message: str, host: Optional[str] = None, oid: Optional[str] = None):
        super().__init__(message)
        self.host = host
        self.oid = oid


class ConnectivityFailure(TransportError):
    """No community string produced a usable response from the host."""

    def __init__(self, message: str, ip: Optional[str] = None):
        super().__init__(message, host=ip)
        self.ip = ip
