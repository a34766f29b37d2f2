"""
prtscan - SNMP Printer Discovery and Query Engine.

Finds printers on IPv4 ranges and reads model, serial, firmware,
consumable levels and fault state from Brother, Ricoh, Pantum and
RFC 3805 (Printer-MIB) devices.

Architecture:
    prtscan/
    ├── models.py      # PrinterRecord, DiscoveredPrinter, SyncResult
    ├── oids.py        # SNMP OID constants
    ├── heuristics.py  # Model/color/brand string heuristics
    ├── query.py       # Per-printer query orchestration
    ├── scanner.py     # Batched network discovery
    ├── events.py      # Scan event emitter
    ├── maintenance.py # Cartridge change detection
    ├── server.py      # FastAPI adapter
    ├── cli.py         # CLI interface
    ├── snmp/          # Async GET / GETBULK walk
    └── vendors/       # Brand-specific decoders

Quick Start:
    from prtscan import PrinterQueryEngine, NetworkScanner

    printers = await NetworkScanner().scan(["192.168.1.1-254"])

    record = await PrinterQueryEngine().query_ip("192.168.1.50", "BROTHER")
    print(record.status, record.levels)
"""

__version__ = "0.1.0"

from .models import (
    Brand,
    CartridgeInfo,
    DeviceHealth,
    DiscoveredPrinter,
    IdentitySnapshot,
    PrinterRecord,
    PrinterStatus,
    SNMPTarget,
    SupplyColor,
    SyncResult,
)
from .config import EngineSettings, load_settings
from .exceptions import ConnectivityFailure, PrinterSNMPError, TransportError
from .events import ConsoleEventPrinter, EventEmitter, ScanEvent, ScanEventType
from .query import PrinterQueryEngine, query_printer
from .scanner import NetworkScanner, parse_ranges, scan_network
from .maintenance import SupplyChange, detect_supply_changes


__all__ = [
    # Engine
    'PrinterQueryEngine',
    'query_printer',
    'NetworkScanner',
    'parse_ranges',
    'scan_network',
    # Models
    'Brand',
    'CartridgeInfo',
    'DeviceHealth',
    'DiscoveredPrinter',
    'IdentitySnapshot',
    'PrinterRecord',
    'PrinterStatus',
    'SNMPTarget',
    'SupplyColor',
    'SyncResult',
    # Events
    'ConsoleEventPrinter',
    'EventEmitter',
    'ScanEvent',
    'ScanEventType',
    # Config
    'EngineSettings',
    'load_settings',
    # Maintenance
    'SupplyChange',
    'detect_supply_changes',
    # Errors
    'ConnectivityFailure',
    'PrinterSNMPError',
    'TransportError',
]
