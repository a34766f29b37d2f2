"""
prtscan - Query Orchestrator.

Queries one printer end to end and returns a normalized PrinterRecord.

Phases:
    CONNECT_CHECK   - GET sysDescr; unreachable devices short-circuit to
                      an OFFLINE record (never an exception)
    IDENTITY_FETCH  - sysDescr, sysName, hrDeviceDescr, prtGeneralPrinterName
    VENDOR_DISPATCH - brand parser (serial, firmware, levels, cartridges)
    FAULT_MERGE     - hrDeviceStatus, hrPrinterDetectedErrorState, low supplies
    NORMALIZE       - defaults and the placeholder level

Only a failed connect check turns into an OFFLINE record. Timeouts in
later phases leave the affected fields empty and the record stays
online. Anything other than a TransportError propagates.

Usage:
    engine = PrinterQueryEngine()

    record = await engine.query_ip("192.168.1.50", "BROTHER")
    print(record.status, record.levels)

    result = await engine.sync_printer("192.168.1.50", "BROTHER",
                                       hostname="prt-accounting.corp.local")
    if result.ip_updated:
        print(f"moved {result.previous_ip} -> {result.ip}")
"""

import asyncio
import logging
import socket
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Union

from pysnmp.hlapi.v3arch.asyncio import SnmpEngine

from .config import EngineSettings
from .exceptions import TransportError
from .heuristics import clean_model_name
from .models import (
    Brand,
    CRITICAL_LEVEL,
    DeviceHealth,
    IdentitySnapshot,
    LOW_LEVEL,
    NEUTRAL_LEVEL,
    PrinterRecord,
    PrinterStatus,
    SNMPTarget,
    SupplyColor,
    SyncResult,
)
from .oids import DETECTED_ERROR_BITS, HOST_RESOURCES, PRINTER_MIB, SYSTEM
from .snmp.transport import SNMPSession
from .vendors import ParseResult, get_parser, strip_to_monochrome

log = logging.getLogger("prtscan.query")

SessionFactory = Callable[[SNMPTarget], SNMPSession]
Resolver = Callable[[str], Awaitable[Optional[str]]]

DEFAULT_FIRMWARE = "v1.0"
UNREACHABLE_FAULT = "Could not reach device via SNMP"
LEVELS_UNAVAILABLE_FAULT = "Toner levels unavailable via SNMP"


class QueryPhase(str, Enum):
    """Orchestrator state machine phases."""
    CONNECT_CHECK = "connect_check"
    IDENTITY_FETCH = "identity_fetch"
    VENDOR_DISPATCH = "vendor_dispatch"
    FAULT_MERGE = "fault_merge"
    NORMALIZE = "normalize"


# =============================================================================
# Placeholders
# =============================================================================

def placeholder_hostname(ip: str) -> str:
    """PRT-<last octet>."""
    return f"PRT-{ip.split('.')[-1]}"


def placeholder_serial(ip: str, brand: Brand) -> str:
    """Deterministic pseudo-serial from the last two octets."""
    suffix = ''.join(ip.split('.')[-2:])
    return f"SN-{brand.value}-{suffix}"


def offline_record(ip: str, brand: Brand, reason: Optional[str] = None) -> PrinterRecord:
    """Synthetic record for a device that did not answer SNMP."""
    faults = [UNREACHABLE_FAULT]
    if reason:
        faults.append(reason)
    return PrinterRecord(
        ip=ip,
        brand=brand,
        model=f"{brand.display_name} Printer",
        hostname=placeholder_hostname(ip),
        serial=placeholder_serial(ip, brand),
        firmware=DEFAULT_FIRMWARE,
        status=PrinterStatus.OFFLINE,
        faults=faults,
        snmp_available=False,
    )


def supply_faults(levels) -> List[str]:
    """Critical (< 10%) then low (< 20%) supply messages."""
    critical = [color for color, level in levels.items() if level < CRITICAL_LEVEL]
    low = [color for color, level in levels.items() if CRITICAL_LEVEL <= level < LOW_LEVEL]

    faults = []
    if critical:
        names = ', '.join(color.capitalize() for color in critical)
        faults.append(f"Critical toner ({names}): replace soon")
    if low:
        names = ', '.join(color.capitalize() for color in low)
        faults.append(f"Low toner ({names}): consider replacing")
    return faults


def decode_error_state(value) -> List[str]:
    """Fault strings from the first octet of hrPrinterDetectedErrorState."""
    if not isinstance(value, bytes) or not value:
        return []
    first = value[0]
    return [message for bit, message in DETECTED_ERROR_BITS if first & bit]


async def resolve_hostname(hostname: str) -> Optional[str]:
    """Forward-resolve hostname to its first IPv4 address, or None."""
    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(None, socket.gethostbyname, hostname)
    except OSError as e:
        log.info(f"Cannot resolve {hostname}: {e}")
        return None


# =============================================================================
# Engine
# =============================================================================

class PrinterQueryEngine:
    """
    Per-printer query orchestrator.

    Attributes:
        settings: EngineSettings (timeouts, retries, fallbacks)
        session_factory: Builds a session for a target; swap for tests
        resolver: Async hostname -> IP used by sync_printer
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        session_factory: Optional[SessionFactory] = None,
        resolver: Optional[Resolver] = None,
        snmp_engine: Optional[SnmpEngine] = None,
    ):
        self.settings = settings or EngineSettings()
        self._snmp_engine = snmp_engine
        self.session_factory = session_factory or self._create_session
        self.resolver = resolver or resolve_hostname

    def _create_session(self, target: SNMPTarget) -> SNMPSession:
        if self._snmp_engine is None:
            self._snmp_engine = SnmpEngine()
        return SNMPSession(target, engine=self._snmp_engine)

    def make_target(self, ip: str, community: Optional[str] = None,
                    brand: Union[Brand, str, None] = None) -> SNMPTarget:
        return SNMPTarget(
            ip=ip,
            community=community or "public",
            brand=Brand.from_string(brand).value,
            timeout=self.settings.query_timeout,
            retries=self.settings.query_retries,
            port=self.settings.port,
        )

    # =========================================================================
    # Query
    # =========================================================================

    async def query(self, session, brand: Union[Brand, str, None]) -> PrinterRecord:
        """
        Run all phases against a live session.

        Never raises for transport problems. Only a failed connect check
        yields an OFFLINE record with snmp_available=False; later timeouts
        leave the affected fields empty.
        """
        ip = session.host
        brand = Brand.from_string(brand)

        try:
            await session.get([SYSTEM.SYS_DESCR])
        except TransportError as e:
            log.warning(f"{ip}: SNMP failed during {QueryPhase.CONNECT_CHECK.value}: {e}")
            return offline_record(ip, brand, "Verify SNMP is enabled, the community string, and firewall rules")

        seed = await self._fetch_identity(session, ip, brand)

        parser = get_parser(brand, self.settings)
        try:
            result = await parser.parse(session, seed)
        except TransportError as e:
            log.warning(f"{ip}: SNMP failed during {QueryPhase.VENDOR_DISPATCH.value}: {e}")
            result = ParseResult()

        health, page_count = await self._merge_faults(session, result)

        record = self._normalize(ip, brand, seed, result, health)
        record.page_count = page_count
        log.info(f"{ip}: {record.model} {record.status.value} levels={record.levels}")
        return record

    async def query_ip(self, ip: str, brand: Union[Brand, str, None] = None,
                       community: Optional[str] = None) -> PrinterRecord:
        """Query by address using a fresh session."""
        target = self.make_target(ip, community, brand)
        return await self.query(self.session_factory(target), brand)

    async def _fetch_identity(self, session, ip: str, brand: Brand) -> IdentitySnapshot:
        """Read the four identity OIDs one at a time; each may fail alone."""
        values = {}
        for oid in (SYSTEM.SYS_DESCR, SYSTEM.SYS_NAME,
                    HOST_RESOURCES.DEVICE_DESCR, PRINTER_MIB.PRINTER_NAME):
            try:
                varbind = (await session.get([oid]))[0]
            except TransportError as e:
                log.debug(f"{ip}: identity OID {oid} failed: {e}")
                continue
            if varbind.ok and varbind.text:
                values[oid] = varbind.text

        sys_descr = values.get(SYSTEM.SYS_DESCR)
        device_descr = values.get(HOST_RESOURCES.DEVICE_DESCR)
        printer_name = values.get(PRINTER_MIB.PRINTER_NAME)
        raw_model = device_descr or printer_name or sys_descr

        return IdentitySnapshot(
            ip=ip,
            brand=brand,
            model=clean_model_name(raw_model, brand),
            hostname=values.get(SYSTEM.SYS_NAME) or placeholder_hostname(ip),
            sys_descr=sys_descr,
            device_descr=device_descr,
            printer_name=printer_name,
        )

    async def _merge_faults(self, session, result: ParseResult):
        """
        Combine device status, error bits, supply thresholds and vendor faults.

        Returns:
            (DeviceHealth, page_count)
        """
        health = DeviceHealth()
        page_count = None
        try:
            status_vb, error_vb, alert_vb, count_vb = await session.get([
                HOST_RESOURCES.DEVICE_STATUS,
                HOST_RESOURCES.DETECTED_ERROR_STATE,
                PRINTER_MIB.ALERT_DESCRIPTION,
                PRINTER_MIB.MARKER_LIFE_COUNT,
            ])
        except TransportError as e:
            log.warning(f"{session.host}: SNMP failed during {QueryPhase.FAULT_MERGE.value}: {e}")
        else:
            page_count = count_vb.int_value

            device_status = status_vb.int_value
            if device_status == HOST_RESOURCES.STATUS_WARNING:
                health.raise_to(PrinterStatus.WARNING)
                health.faults.append(alert_vb.text or "Device in warning state")
            elif device_status == HOST_RESOURCES.STATUS_DOWN:
                health.raise_to(PrinterStatus.ERROR)
                health.faults.append(alert_vb.text or "Device in error state")

            bit_faults = decode_error_state(error_vb.value if error_vb.ok else None)
            if bit_faults:
                health.faults.extend(bit_faults)
                health.raise_to(PrinterStatus.WARNING)

        toner_faults = supply_faults(result.levels)
        if toner_faults:
            health.faults.extend(toner_faults)
            health.raise_to(PrinterStatus.WARNING)

        health.faults.extend(result.faults)
        return health, page_count

    def _normalize(self, ip: str, brand: Brand, seed: IdentitySnapshot,
                   result: ParseResult, health: DeviceHealth) -> PrinterRecord:
        model = result.model or seed.model
        levels = strip_to_monochrome(dict(result.levels), model)
        faults = list(health.faults)

        levels_estimated = False
        if not levels:
            levels = {SupplyColor.BLACK.value: NEUTRAL_LEVEL}
            faults.append(LEVELS_UNAVAILABLE_FAULT)
            levels_estimated = True

        return PrinterRecord(
            ip=ip,
            brand=brand,
            model=model,
            hostname=seed.hostname or placeholder_hostname(ip),
            serial=result.serial or placeholder_serial(ip, brand),
            firmware=result.firmware or DEFAULT_FIRMWARE,
            levels=levels,
            cartridge_info=result.cartridge_info,
            status=health.status,
            faults=faults,
            components=result.components,
            pages_until_service=result.pages_until_service,
            snmp_available=True,
            levels_estimated=levels_estimated,
        )

    # =========================================================================
    # Sync
    # =========================================================================

    async def sync_printer(
        self,
        ip: str,
        brand: Union[Brand, str, None],
        community: Optional[str] = None,
        hostname: Optional[str] = None,
    ) -> SyncResult:
        """
        Query a known printer, recovering once from an IP change.

        If the device is unreachable and a hostname is known, the
        hostname is resolved; only if it now points elsewhere is the
        query retried, exactly once, against the new address.
        """
        target = self.make_target(ip, community, brand)
        record = await self.query(self.session_factory(target), brand)
        if record.snmp_available:
            return SyncResult(success=True, ip=ip, record=record)

        failure = SyncResult(
            success=False,
            ip=ip,
            record=record,
            error=f"Could not reach device via SNMP at {ip}",
        )
        if not hostname:
            return failure

        new_ip = await self.resolver(hostname)
        if not new_ip or new_ip == ip:
            log.info(f"{ip}: unreachable and {hostname} still resolves to {new_ip or 'nothing'}")
            return failure

        log.info(f"{hostname} moved {ip} -> {new_ip}, retrying once")
        record = await self.query(self.session_factory(target.with_ip(new_ip)), brand)
        if not record.snmp_available:
            return SyncResult(
                success=False,
                ip=new_ip,
                record=record,
                error=f"Could not reach device via SNMP at {new_ip}",
                previous_ip=ip,
            )

        return SyncResult(success=True, ip=new_ip, record=record,
                          ip_updated=True, previous_ip=ip)


# =============================================================================
# Convenience Functions
# =============================================================================

async def query_printer(
    ip: str,
    brand: Union[Brand, str, None] = None,
    community: str = "public",
    settings: Optional[EngineSettings] = None,
) -> PrinterRecord:
    """
    One-off printer query.

    Example:
        record = await query_printer("192.168.1.50", "RICOH")
    """
    return await PrinterQueryEngine(settings).query_ip(ip, brand, community)
