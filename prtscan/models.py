"""
prtscan - Data Models.

Dataclasses for printer discovery and polling results.
These models normalize identity, supply and health data from
heterogeneous vendor MIBs into one record shape.

Design Principles:
- Everything is produced fresh per query or scan; nothing here is persisted
- Optional fields mean "not obtained", never "zero"
- to_dict() produces the JSON wire shape (camelCase keys)
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any
import json


class Brand(str, Enum):
    """Known printer brands."""
    BROTHER = "BROTHER"
    RICOH = "RICOH"
    PANTUM = "PANTUM"
    HP = "HP"
    CANON = "CANON"
    EPSON = "EPSON"
    XEROX = "XEROX"
    KYOCERA = "KYOCERA"
    TOSHIBA = "TOSHIBA"
    KONICA = "KONICA"
    SHARP = "SHARP"
    SAMSUNG = "SAMSUNG"
    LEXMARK = "LEXMARK"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_string(cls, value: Optional[str]) -> 'Brand':
        """Case-insensitive lookup; anything unrecognised is UNKNOWN."""
        if isinstance(value, Brand):
            return value
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def display_name(self) -> str:
        """Brand as printed in model names (Brother, HP, RICOH...)."""
        return _DISPLAY_NAMES.get(self, self.value.title())


_DISPLAY_NAMES = {
    Brand.BROTHER: "Brother",
    Brand.RICOH: "RICOH",
    Brand.PANTUM: "PANTUM",
    Brand.HP: "HP",
    Brand.TOSHIBA: "TOSHIBA",
    Brand.UNKNOWN: "Generic",
}


class SupplyColor(str, Enum):
    """Consumable channels in the supply level map."""
    BLACK = "black"
    CYAN = "cyan"
    MAGENTA = "magenta"
    YELLOW = "yellow"


CMYK = (SupplyColor.BLACK, SupplyColor.CYAN, SupplyColor.MAGENTA, SupplyColor.YELLOW)


class PrinterStatus(str, Enum):
    """Normalized device health."""
    ONLINE = "ONLINE"
    WARNING = "WARNING"
    ERROR = "ERROR"
    OFFLINE = "OFFLINE"


# Neutral percentage used when a device says "some remaining" or nothing at all
NEUTRAL_LEVEL = 50

# Supply thresholds (percent remaining)
CRITICAL_LEVEL = 10
LOW_LEVEL = 20


@dataclass
class SNMPTarget:
    """
    Target descriptor for one SNMP conversation.

    Constructed per probe; brand is unknown at scan time and
    known at sync time.
    """
    ip: str
    community: str = "public"
    brand: Optional[str] = None
    timeout: float = 3.0                         # seconds per request
    retries: int = 1
    port: int = 161

    def with_ip(self, ip: str) -> 'SNMPTarget':
        """Same credentials and limits, different host."""
        return replace(self, ip=ip)


@dataclass(frozen=True)
class IdentitySnapshot:
    """
    Printer identity merged from candidate OID readings.

    Model priority: hrDeviceDescr > prtGeneralPrinterName > sysDescr.
    """
    ip: str
    brand: Brand = Brand.UNKNOWN
    model: Optional[str] = None
    hostname: Optional[str] = None
    serial: Optional[str] = None
    firmware: Optional[str] = None
    sys_descr: Optional[str] = None
    device_descr: Optional[str] = None
    printer_name: Optional[str] = None


@dataclass
class CartridgeInfo:
    """Cartridge identity for one supply slot, used for change detection."""
    serial: Optional[str] = None
    name: Optional[str] = None
    capacity: Optional[int] = None

    @property
    def identifier(self) -> Optional[str]:
        """Serial, else name, else capacity."""
        if self.serial:
            return self.serial
        if self.name:
            return self.name
        if self.capacity is not None:
            return str(self.capacity)
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in (
            ('serial', self.serial), ('name', self.name), ('capacity', self.capacity)
        ) if v is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartridgeInfo':
        return cls(
            serial=data.get('serial'),
            name=data.get('name'),
            capacity=data.get('capacity'),
        )


@dataclass
class DeviceHealth:
    """Status plus discrete fault strings."""
    status: PrinterStatus = PrinterStatus.ONLINE
    faults: List[str] = field(default_factory=list)

    def raise_to(self, status: PrinterStatus):
        """Escalate status; ERROR and OFFLINE are never downgraded."""
        order = [PrinterStatus.ONLINE, PrinterStatus.WARNING, PrinterStatus.ERROR]
        if self.status not in order:
            return
        if order.index(status) > order.index(self.status):
            self.status = status


@dataclass
class PrinterRecord:
    """
    Normalized printer hardware record (Identity + Supply + Health).

    This is what the orchestrator hands back to the caller, which owns
    persistence.
    """
    ip: str
    brand: Brand
    model: str
    hostname: str
    serial: str
    firmware: str
    levels: Dict[str, int] = field(default_factory=dict)
    cartridge_info: Dict[str, CartridgeInfo] = field(default_factory=dict)
    status: PrinterStatus = PrinterStatus.ONLINE
    faults: List[str] = field(default_factory=list)
    components: Dict[str, int] = field(default_factory=dict)  # drum/fuser/paper_kit remaining %
    pages_until_service: Optional[int] = None
    page_count: Optional[int] = None             # prtMarkerLifeCount
    snmp_available: bool = True
    levels_estimated: bool = False               # True when levels are the injected placeholder
    queried_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'ip': self.ip,
            'brand': self.brand.value,
            'model': self.model,
            'hostname': self.hostname,
            'serial': self.serial,
            'firmware': self.firmware,
            'levels': dict(self.levels),
            'cartridgeInfo': {k: v.to_dict() for k, v in self.cartridge_info.items()},
            'status': self.status.value,
            'faults': list(self.faults),
            'components': dict(self.components),
            'pagesUntilService': self.pages_until_service,
            'pageCount': self.page_count,
            'snmpAvailable': self.snmp_available,
            'levelsEstimated': self.levels_estimated,
            'queriedAt': self.queried_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PrinterRecord':
        """Create from a previously stored to_dict() snapshot."""
        queried_at = data.get('queriedAt')
        return cls(
            ip=data['ip'],
            brand=Brand.from_string(data.get('brand')),
            model=data.get('model', ''),
            hostname=data.get('hostname', ''),
            serial=data.get('serial', ''),
            firmware=data.get('firmware', ''),
            levels=dict(data.get('levels') or {}),
            cartridge_info={
                k: CartridgeInfo.from_dict(v)
                for k, v in (data.get('cartridgeInfo') or {}).items()
            },
            status=PrinterStatus(data.get('status', PrinterStatus.ONLINE.value)),
            faults=list(data.get('faults') or []),
            components=dict(data.get('components') or {}),
            pages_until_service=data.get('pagesUntilService'),
            page_count=data.get('pageCount'),
            snmp_available=data.get('snmpAvailable', True),
            levels_estimated=data.get('levelsEstimated', False),
            queried_at=datetime.fromisoformat(queried_at) if queried_at else datetime.now(),
        )

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass
class DiscoveredPrinter:
    """
    Identity guess produced by the network scanner.

    No vendor decode has run; supply data comes later via sync.
    """
    ip: str
    hostname: str
    brand: Brand
    model: str
    serial: Optional[str] = None
    community: str = "public"
    sys_descr: Optional[str] = None
    status: str = "discovered"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'ip': self.ip,
            'hostname': self.hostname,
            'model': self.model,
            'brand': self.brand.value,
            'serial': self.serial,
            'community': self.community,
            'sysDescr': self.sys_descr,
            'status': self.status,
        }


@dataclass
class SyncResult:
    """
    Outcome of syncing one known printer.

    On failure, error names the attempted IP and record may still carry the
    degraded OFFLINE record.
    """
    success: bool
    ip: str
    record: Optional[PrinterRecord] = None
    error: Optional[str] = None
    ip_updated: bool = False
    previous_ip: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {'error': self.error, 'ip': self.ip}
        d = self.record.to_dict() if self.record else {'ip': self.ip}
        if self.ip_updated:
            d['ipUpdated'] = True
            d['previousIP'] = self.previous_ip
        return d
