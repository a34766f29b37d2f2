"""
prtscan - Vendor Parser Framework.

Every vendor parser implements the same capability set against a live
session and an identity seed:

    identify            - refine the model name
    read_identity       - serial and firmware
    read_supply_levels  - color -> percent remaining
    read_cartridge_info - per-slot cartridge identity
    read_faults         - vendor-specific warnings

parse() runs them in order and enforces the monochrome invariant.

"No data found" is never an exception: missing values are simply
omitted. Best-effort walks and candidate lookups treat a timeout as
no data; other TransportErrors escape the parser.

Session contract (SNMPSession or any test double):
    host: str
    async get(oids) -> List[VarBind]
    async walk(root_oid) -> List[VarBind]
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Tuple

from ..config import EngineSettings
from ..exceptions import TransportError
from ..heuristics import classify_supply_color, is_monochrome, supply_percent
from ..models import Brand, CartridgeInfo, IdentitySnapshot, SupplyColor
from ..oids import PRINTER_MIB, extract_index_from_oid, last_index
from ..snmp.transport import VarBind

log = logging.getLogger("prtscan.vendors")

# Anything longer is a binary blob, not a cartridge name or serial
MAX_CARTRIDGE_TEXT = 200


@dataclass
class FaultReport:
    """Vendor-specific warnings plus component life data."""
    faults: List[str] = field(default_factory=list)
    components: Dict[str, int] = field(default_factory=dict)
    pages_until_service: Optional[int] = None


@dataclass
class ParseResult:
    """Everything a vendor parser extracted from one device."""
    model: Optional[str] = None
    serial: Optional[str] = None
    firmware: Optional[str] = None
    levels: Dict[str, int] = field(default_factory=dict)
    cartridge_info: Dict[str, CartridgeInfo] = field(default_factory=dict)
    faults: List[str] = field(default_factory=list)
    components: Dict[str, int] = field(default_factory=dict)
    pages_until_service: Optional[int] = None


def strip_to_monochrome(levels: Dict[str, int], model: Optional[str]) -> Dict[str, int]:
    """Drop color channels for black-only models."""
    if not is_monochrome(model):
        return levels
    black = SupplyColor.BLACK.value
    return {black: levels[black]} if black in levels else {}


class VendorParser(ABC):
    """
    Base class for vendor parsers.

    Subclasses set `brand` and implement read_identity and
    read_supply_levels; the remaining capabilities have RFC 3805
    defaults.
    """

    brand: Brand = Brand.UNKNOWN

    # Walked for cartridge serials in addition to the RFC 3805 tables
    cartridge_serial_table: Optional[str] = None

    def __init__(self, settings: Optional[EngineSettings] = None):
        self.settings = settings or EngineSettings()
        self.log = logging.getLogger(f"prtscan.vendors.{self.brand.value.lower()}")

    # =========================================================================
    # Capabilities
    # =========================================================================

    async def identify(self, session, seed: IdentitySnapshot) -> Optional[str]:
        """Return a better model name than the seed's, or None."""
        return None

    @abstractmethod
    async def read_identity(self, session, seed: IdentitySnapshot) -> Tuple[Optional[str], Optional[str]]:
        """Return (serial, firmware)."""

    @abstractmethod
    async def read_supply_levels(self, session, model: Optional[str]) -> Dict[str, int]:
        """Return color -> percent remaining."""

    async def read_cartridge_info(self, session) -> Dict[str, CartridgeInfo]:
        return await self._read_cartridge_tables(session)

    async def read_faults(self, session) -> FaultReport:
        return FaultReport()

    async def parse(self, session, seed: IdentitySnapshot) -> ParseResult:
        """
        Run all capabilities against one device.

        Args:
            session: Live SNMP session
            seed: Identity from the orchestrator's identity fetch

        Returns:
            ParseResult with monochrome-stripped levels
        """
        model = await self.identify(session, seed) or seed.model
        serial, firmware = await self.read_identity(session, seed)
        levels = await self.read_supply_levels(session, model)
        cartridge_info = await self.read_cartridge_info(session)
        report = await self.read_faults(session)

        levels = strip_to_monochrome(levels, model)
        self.log.debug(f"{session.host}: model={model} serial={serial} "
                       f"firmware={firmware} levels={levels}")

        return ParseResult(
            model=model,
            serial=serial,
            firmware=firmware,
            levels=levels,
            cartridge_info=cartridge_info,
            faults=report.faults,
            components=report.components,
            pages_until_service=report.pages_until_service,
        )

    # =========================================================================
    # Shared helpers
    # =========================================================================

    async def _get(self, session, oid: str) -> Optional[VarBind]:
        """GET one OID; None when the device has no value for it."""
        varbind = (await session.get([oid]))[0]
        return varbind if varbind.ok else None

    async def _first_valid_text(
        self,
        session,
        oids: Iterable[str],
        accept: Callable[[str], bool],
    ) -> Optional[str]:
        """GET candidate OIDs in order; return the first text that passes accept()."""
        for oid in oids:
            try:
                varbind = await self._get(session, oid)
            except TransportError as e:
                self.log.debug(f"{session.host}: candidate {oid} failed: {e}")
                continue
            if varbind is None:
                continue
            text = varbind.text
            if text and accept(text):
                return text
        return None

    async def _search_walk(
        self,
        session,
        roots: Iterable[str],
        pattern: Pattern,
    ) -> Optional[str]:
        """Walk each root and return the first text value matching pattern."""
        for root in roots:
            for varbind in await self._walk(session, root):
                if isinstance(varbind.value, int):
                    continue
                text = varbind.text
                if text and pattern.match(text):
                    self.log.debug(f"{session.host}: {pattern.pattern} matched at {varbind.oid}")
                    return text
        return None

    async def _walk(self, session, root: str) -> List[VarBind]:
        """Best-effort walk; a timeout yields no rows."""
        try:
            return await session.walk(root)
        except TransportError as e:
            self.log.debug(f"{session.host}: walk of {root} failed: {e}")
            return []

    async def _read_rfc_levels_by_index(self, session) -> Dict[str, int]:
        """
        RFC 3805 index discovery.

        Walk supply descriptions, classify each index to a color, then GET
        level and max capacity for the classified indices only.
        """
        indices: Dict[str, SupplyColor] = {}
        for varbind in await self._walk(session, PRINTER_MIB.SUPPLY_DESCRIPTION):
            color = classify_supply_color(varbind.text)
            if color is None or color in indices.values():
                continue
            indices[extract_index_from_oid(varbind.oid, PRINTER_MIB.SUPPLY_DESCRIPTION)] = color

        levels: Dict[str, int] = {}
        for index, color in indices.items():
            level_vb, max_vb = await session.get([
                f"{PRINTER_MIB.SUPPLY_LEVEL}.{index}",
                f"{PRINTER_MIB.SUPPLY_MAX_CAPACITY}.{index}",
            ])
            percent = supply_percent(level_vb.int_value, max_vb.int_value)
            if percent is not None:
                levels[color.value] = percent
        return levels

    async def _read_cartridge_tables(self, session) -> Dict[str, CartridgeInfo]:
        """
        Merge cartridge serial, description and capacity by slot index.

        The slot index is the last sub-identifier of each OID.
        """
        cartridges: Dict[str, CartridgeInfo] = {}

        def slot(oid: str) -> CartridgeInfo:
            return cartridges.setdefault(last_index(oid), CartridgeInfo())

        if self.cartridge_serial_table:
            for varbind in await self._walk(session, self.cartridge_serial_table):
                text = varbind.text
                if 0 < len(text) < MAX_CARTRIDGE_TEXT:
                    slot(varbind.oid).serial = text

        for varbind in await self._walk(session, PRINTER_MIB.SUPPLY_DESCRIPTION_TABLE):
            text = varbind.text
            if 0 < len(text) < MAX_CARTRIDGE_TEXT:
                slot(varbind.oid).name = text

        for varbind in await self._walk(session, PRINTER_MIB.SUPPLY_MAX_CAPACITY_TABLE):
            capacity = varbind.int_value
            if capacity is not None and capacity > 0:
                slot(varbind.oid).capacity = capacity

        return cartridges


def valid_serial(pattern: str, flags: int = 0) -> Callable[[str], bool]:
    """Build an accept() predicate for a full-match serial regex."""
    compiled = re.compile(pattern, flags)
    return lambda text: bool(compiled.fullmatch(text.strip()))


_VERSION_PREFIX = re.compile(r'^[vV]?\d+\.\d+')


def as_firmware(text: Optional[str]) -> Optional[str]:
    """Return text as a "V"-prefixed version string, or None if it isn't one."""
    if not text or not _VERSION_PREFIX.match(text):
        return None
    return text if text[0] in "vV" else f"V{text}"
