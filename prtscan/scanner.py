"""
prtscan - Network Discovery Scanner.

Sweeps IPv4 ranges for SNMP-speaking printers and emits events as
hosts are classified.

Concurrency:
    Hosts are probed in fixed-size batches, fully parallel inside a
    batch (asyncio.gather). The next batch starts only after the
    previous one has finished, which caps in-flight probes at the
    batch size. Community strings are tried strictly in sequence
    within one host.

Cancellation:
    The cancel event is checked between batches. Probes already in
    flight are allowed to finish.

Usage:
    emitter = EventEmitter()
    emitter.subscribe(ConsoleEventPrinter().handle_event)

    scanner = NetworkScanner(emitter=emitter)
    printers = await scanner.scan(["192.168.1.1-254"])
"""

import asyncio
import ipaddress
import logging
import re
import socket
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple

from pysnmp.hlapi.v3arch.asyncio import SnmpEngine

from .config import EngineSettings
from .events import EventEmitter
from .exceptions import ConnectivityFailure, TransportError
from .heuristics import detect_brand, looks_like_printer
from .models import Brand, DiscoveredPrinter, SNMPTarget
from .oids import HOST_RESOURCES, PRINTER_MIB, RICOH, SYSTEM
from .snmp.transport import SNMPSession, VarBind

log = logging.getLogger("prtscan.scanner")

SessionFactory = Callable[[SNMPTarget], SNMPSession]
ReverseResolver = Callable[[str], Awaitable[Optional[str]]]

DEFAULT_MODEL = "Network Device"

BASIC_PROBE_OIDS = [
    SYSTEM.SYS_DESCR,
    SYSTEM.SYS_NAME,
    HOST_RESOURCES.DEVICE_DESCR,
]

EXTENDED_PROBE_OIDS = [
    PRINTER_MIB.PRINTER_NAME,
    PRINTER_MIB.SERIAL_NUMBER,
    RICOH.MACHINE_ID,
    RICOH.MODEL_NAME,
]

# "10.0.0.1-254": range on the last octet
RANGE_PATTERN = re.compile(r'^(\d{1,3}\.\d{1,3}\.\d{1,3}\.)(\d{1,3})-(\d{1,3})$')


def parse_ranges(ranges: Iterable[str]) -> List[str]:
    """
    Expand range strings into individual addresses, in order.

    Accepts "a.b.c.d-N" (last octet only) and plain IPv4 addresses.

    Raises:
        ValueError: malformed entry or out-of-range octet

    Example:
        >>> parse_ranges(["10.0.0.1-3"])
        ['10.0.0.1', '10.0.0.2', '10.0.0.3']
    """
    hosts: List[str] = []
    for entry in ranges:
        entry = entry.strip()
        if not entry:
            continue

        match = RANGE_PATTERN.match(entry)
        if match:
            prefix, start, end = match.group(1), int(match.group(2)), int(match.group(3))
            ipaddress.IPv4Address(f"{prefix}0")
            if start > end or end > 255:
                raise ValueError(f"Invalid range: {entry}")
            hosts.extend(f"{prefix}{octet}" for octet in range(start, end + 1))
            continue

        try:
            hosts.append(str(ipaddress.IPv4Address(entry)))
        except ValueError:
            raise ValueError(f"Invalid range or address: {entry}") from None
    return hosts


def sys_descr_model(sys_descr: Optional[str], brand: Brand) -> Optional[str]:
    """First comma-separated part of sysDescr with the brand word removed."""
    if not sys_descr:
        return None
    first = sys_descr.split(',')[0]
    if brand != Brand.UNKNOWN:
        first = re.sub(re.escape(brand.value), '', first, flags=re.IGNORECASE)
    first = ' '.join(first.split())
    return first or None


async def reverse_lookup(ip: str) -> Optional[str]:
    """PTR lookup in the default executor; None if unresolvable."""
    loop = asyncio.get_running_loop()
    try:
        hostname, _, _ = await loop.run_in_executor(None, socket.gethostbyaddr, ip)
        return hostname
    except OSError:
        return None


class NetworkScanner:
    """
    Batched SNMP sweep that classifies hosts as printers.

    Attributes:
        settings: EngineSettings (communities, batch size, probe timeouts)
        events: EventEmitter receiving progress/found/complete/error
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        emitter: Optional[EventEmitter] = None,
        session_factory: Optional[SessionFactory] = None,
        reverse_resolver: Optional[ReverseResolver] = None,
        snmp_engine: Optional[SnmpEngine] = None,
    ):
        self.settings = settings or EngineSettings()
        self.events = emitter or EventEmitter()
        self._snmp_engine = snmp_engine
        self.session_factory = session_factory or self._create_session
        self.reverse_resolver = reverse_resolver or reverse_lookup

        self._total = 0
        self._started = 0

    def _create_session(self, target: SNMPTarget) -> SNMPSession:
        if self._snmp_engine is None:
            self._snmp_engine = SnmpEngine()
        return SNMPSession(target, engine=self._snmp_engine)

    def _target(self, ip: str, community: str, timeout: float, retries: int) -> SNMPTarget:
        return SNMPTarget(ip=ip, community=community, timeout=timeout,
                          retries=retries, port=self.settings.port)

    # =========================================================================
    # Scan
    # =========================================================================

    async def scan(
        self,
        ranges: Iterable[str],
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[DiscoveredPrinter]:
        """
        Probe every address in the ranges.

        Args:
            ranges: Range strings, see parse_ranges()
            cancel_event: Set to stop before the next batch

        Returns:
            Printers found, in address order within each batch

        Raises:
            ValueError: malformed range (emitted as an error event first)
        """
        try:
            hosts = parse_ranges(ranges)
        except ValueError as e:
            self.events.error(str(e))
            raise

        batch_size = self.settings.scan_batch_size
        self._total = len(hosts)
        self._started = 0
        self.events.reset_stats(total=self._total)
        found: List[DiscoveredPrinter] = []

        log.info(f"Scanning {self._total} hosts in batches of {batch_size}")

        try:
            for start in range(0, len(hosts), batch_size):
                if cancel_event and cancel_event.is_set():
                    log.info(f"Scan cancelled after {self._started}/{self._total} hosts")
                    self.events.complete(len(found), cancelled=True)
                    return found

                batch = hosts[start:start + batch_size]
                results = await asyncio.gather(
                    *(self.probe_host(ip) for ip in batch),
                    return_exceptions=True,
                )

                for ip, result in zip(batch, results):
                    if isinstance(result, Exception):
                        log.warning(f"{ip}: probe failed: {type(result).__name__}: {result}")
                        continue
                    if result is not None:
                        found.append(result)

        except Exception as e:
            log.exception("Scan aborted")
            self.events.error(str(e))
            raise

        log.info(f"Scan complete: {len(found)} printers in {self._total} hosts")
        self.events.complete(len(found))
        return found

    async def probe_host(self, ip: str) -> Optional[DiscoveredPrinter]:
        """
        Probe one host and emit found if it classifies as a printer.

        Returns:
            DiscoveredPrinter, or None for silent or excluded hosts
        """
        self._started += 1
        self.events.progress(self._started, self._total, ip)

        try:
            community, basic = await self._probe_communities(ip)
        except ConnectivityFailure as e:
            log.debug(f"{ip}: skipped: {e}")
            return None

        sys_descr, sys_name, device_descr = (vb.text or None for vb in basic)
        extended = await self._extended_probe(ip, community)
        printer_name = extended.get(PRINTER_MIB.PRINTER_NAME)

        combined = ' '.join(t for t in (sys_descr, sys_name, device_descr, printer_name) if t)
        if not looks_like_printer(combined, sys_descr):
            log.debug(f"{ip}: not a printer: {combined[:80]}")
            return None

        brand = detect_brand(combined)
        model = (device_descr
                 or printer_name
                 or (extended.get(RICOH.MODEL_NAME) if brand == Brand.RICOH else None)
                 or sys_descr_model(sys_descr, brand)
                 or DEFAULT_MODEL)
        serial = extended.get(PRINTER_MIB.SERIAL_NUMBER) or extended.get(RICOH.MACHINE_ID)

        hostname = None
        if self.settings.reverse_dns:
            hostname = await self.reverse_resolver(ip)

        printer = DiscoveredPrinter(
            ip=ip,
            hostname=hostname or ip,
            brand=brand,
            model=model,
            serial=serial,
            community=community,
            sys_descr=sys_descr,
        )
        log.info(f"{ip}: found {brand.value} {model}")
        self.events.found(printer)
        return printer

    async def _probe_communities(self, ip: str) -> Tuple[str, List[VarBind]]:
        """
        Try each community in order until sysDescr answers.

        Raises:
            ConnectivityFailure: no community produced a usable response
        """
        for community in self.settings.communities:
            target = self._target(ip, community, self.settings.probe_timeout,
                                  self.settings.probe_retries)
            try:
                varbinds = await self.session_factory(target).get(BASIC_PROBE_OIDS)
            except TransportError as e:
                log.debug(f"{ip}: community '{community}' failed: {e}")
                continue
            if varbinds and varbinds[0].ok:
                return community, varbinds
            log.debug(f"{ip}: community '{community}' returned no sysDescr")

        raise ConnectivityFailure(f"No SNMP response from {ip}", ip=ip)

    async def _extended_probe(self, ip: str, community: str) -> dict:
        """Best-effort printer name/serial read; empty dict on any transport failure."""
        target = self._target(ip, community, self.settings.extended_probe_timeout, 0)
        try:
            varbinds = await self.session_factory(target).get(EXTENDED_PROBE_OIDS)
        except TransportError as e:
            log.debug(f"{ip}: extended probe failed: {e}")
            return {}
        return {
            oid: vb.text.strip()
            for oid, vb in zip(EXTENDED_PROBE_OIDS, varbinds)
            if vb.ok and vb.text.strip()
        }


# =============================================================================
# Convenience Functions
# =============================================================================

async def scan_network(
    ranges: Iterable[str],
    settings: Optional[EngineSettings] = None,
    emitter: Optional[EventEmitter] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> List[DiscoveredPrinter]:
    """
    One-off scan.

    Example:
        printers = await scan_network(["10.0.0.1-254"])
    """
    scanner = NetworkScanner(settings=settings, emitter=emitter)
    return await scanner.scan(ranges, cancel_event=cancel_event)
