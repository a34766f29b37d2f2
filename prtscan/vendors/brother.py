"""
prtscan - Brother Parser.

Brother devices report most maintenance data through a few proprietary
"super-OIDs" whose values are raw octet buffers with several metrics
packed at fixed byte offsets. The layout is undocumented and varies by
model family, so every offset is expressed as an independent rule that
either validates and decodes, or declines and lets the next strategy
run.

Buffer layout observed on DCP-L5600DN / HL-L5xxx (brInfoMaintenance):
    byte[41]  toner remaining, percent (direct)
    byte[1]   drum life
    byte[2]   fuser life
    byte[48]  paper feeding kit life

Drum/fuser/paper-kit polarity is ambiguous: values <= 10 read as
"remaining", values > 10 as "consumed" (remaining = 100 - value).
This is an approximation inferred from field hardware, not a vendor
fact; keep it exactly as is unless re-validated on devices.

Usage:
    from prtscan.vendors.brother import decode_maintenance_buffer

    decode_maintenance_buffer(raw)
    # {'toner': 73, 'drum': 15, 'fuser': 40}
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

from ..exceptions import TransportError
from ..heuristics import (
    BROTHER_MODEL_PATTERN,
    clean_model_name,
    extract_brother_model,
    is_monochrome,
    is_network_server_descriptor,
)
from ..models import Brand, CMYK, IdentitySnapshot, SupplyColor
from ..oids import BROTHER, HOST_RESOURCES, PRINTER_MIB
from ..snmp.values import PlainValue, decode_int
from .base import FaultReport, VendorParser, as_firmware


# =============================================================================
# Maintenance buffer rules
# =============================================================================

def direct(value: int) -> int:
    """Byte already holds percent remaining."""
    return value


def remaining_or_consumed(value: int) -> int:
    """Polarity guess: <= 10 is remaining, > 10 is consumed."""
    return value if value <= 10 else 100 - value


@dataclass(frozen=True)
class OffsetRule:
    """One metric at a fixed byte offset of the maintenance buffer."""
    field: str
    offset: int
    decode: Callable[[int], int]

    def applies(self, buffer: bytes) -> bool:
        return len(buffer) > self.offset and 0 <= buffer[self.offset] <= 100

    def read(self, buffer: bytes) -> Optional[int]:
        if not self.applies(buffer):
            return None
        return self.decode(buffer[self.offset])


MAINTENANCE_LAYOUT: Tuple[OffsetRule, ...] = (
    OffsetRule("toner", 41, direct),
    OffsetRule("drum", 1, remaining_or_consumed),
    OffsetRule("fuser", 2, remaining_or_consumed),
    OffsetRule("paper_kit", 48, remaining_or_consumed),
)

COMPONENT_FIELDS = ("drum", "fuser", "paper_kit")


def decode_maintenance_buffer(buffer: PlainValue) -> Dict[str, int]:
    """
    Decode a brInfoMaintenance buffer.

    Returns:
        field -> percent remaining, only for rules whose byte validated
    """
    if not isinstance(buffer, bytes):
        return {}
    decoded = {}
    for rule in MAINTENANCE_LAYOUT:
        value = rule.read(buffer)
        if value is not None:
            decoded[rule.field] = value
    return decoded


# =============================================================================
# Per-color scalar rules
# =============================================================================

def _first_percent_byte(buffer: bytes) -> Optional[int]:
    for byte in buffer:
        if byte <= 100:
            return byte
    return None


# Ordered (predicate, decode) pairs for the per-color toner OIDs
VALUE_RULES: Sequence[Tuple[Callable[[bytes], bool], Callable[[bytes], Optional[int]]]] = (
    (lambda b: len(b) > 1 and b.isdigit(), lambda b: int(b)),
    (lambda b: len(b) >= 14, lambda b: 100 - b[13]),    # byte 13 is percent consumed
    (lambda b: len(b) == 1, lambda b: b[0]),
    (lambda b: len(b) == 2, lambda b: int.from_bytes(b, "big")),
    (lambda b: len(b) == 4, lambda b: int.from_bytes(b, "big")),
    (lambda b: True, _first_percent_byte),
)


def decode_brother_value(value: PlainValue) -> Optional[int]:
    """
    Decode a Brother toner scalar that may be an integer, a numeric
    string, or one of several buffer shapes.
    """
    if value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return decode_int(value)
    for applies, decode in VALUE_RULES:
        if applies(value):
            return decode(value)
    return None


def decode_next_care(buffer: PlainValue) -> Optional[int]:
    """Pages until next scheduled maintenance (uint32 big-endian)."""
    if isinstance(buffer, bytes) and len(buffer) >= 4:
        return int.from_bytes(buffer[:4], "big")
    return None


# =============================================================================
# Parser
# =============================================================================

MODEL_CANDIDATES = [
    BROTHER.NET_CONFIG,
    BROTHER.MODEL_ALT,
    BROTHER.MODEL,
    BROTHER.NET_MODEL,
    HOST_RESOURCES.DEVICE_DESCR,
    PRINTER_MIB.PRINTER_NAME,
    BROTHER.PRODUCT_INFO,
]

SERIAL_CANDIDATES = [
    PRINTER_MIB.SERIAL_NUMBER,
    BROTHER.SERIAL,
    BROTHER.SERIAL_ALT,
    BROTHER.SERIAL_ALT2,
    BROTHER.NET_CONFIG,
]

TONER_OIDS = {
    SupplyColor.BLACK: BROTHER.TONER_BLACK,
    SupplyColor.CYAN: BROTHER.TONER_CYAN,
    SupplyColor.MAGENTA: BROTHER.TONER_MAGENTA,
    SupplyColor.YELLOW: BROTHER.TONER_YELLOW,
}

FIRMWARE_WALK_PATTERN = re.compile(r'^\d+\.\d+(\.\d+)?$')
FIRMWARE_SCALAR_PATTERN = re.compile(r'^[vV]?\d+\.\d+(\.\d+)?$')
SERIAL_WALK_PATTERN = re.compile(r'^[A-Z0-9]{8,20}$', re.IGNORECASE)

DRUM_WARNING_LEVEL = 20
NEXT_CARE_WARNING_PAGES = 1000


def is_plausible_serial(text: str) -> bool:
    """Alphanumeric, >= 6 chars, at least one letter and one digit, not a MODEL= blob."""
    text = text.strip()
    if "MODEL=" in text.upper():
        return False
    return (
        len(text) >= 6
        and text.isalnum()
        and any(ch.isalpha() for ch in text)
        and any(ch.isdigit() for ch in text)
    )


class BrotherParser(VendorParser):
    """
    Brother HL / DCP / MFC parser.

    Supply levels come from the first strategy that yields data:
    maintenance buffer, Printer-MIB first supply, per-color scalars.
    """

    brand = Brand.BROTHER
    cartridge_serial_table = BROTHER.CARTRIDGE_SERIAL_TABLE

    def __init__(self, settings=None):
        super().__init__(settings)
        self.level_strategies = [
            ("maintenance buffer", self._levels_from_maintenance),
            ("printer-mib", self._levels_from_printer_mib),
            ("per-color scalars", self._levels_from_scalars),
        ]

    # =========================================================================
    # Model
    # =========================================================================

    async def identify(self, session, seed: IdentitySnapshot) -> Optional[str]:
        """
        Resolve the real model.

        hrDeviceDescr and prtGeneralPrinterName win when they carry a
        Brother model code. NC-xxxxh print-server descriptors trigger a
        search of model OIDs, then a walk of the status branch.
        """
        for candidate in (seed.device_descr, seed.printer_name):
            if candidate and BROTHER_MODEL_PATTERN.search(candidate):
                return clean_model_name(candidate, Brand.BROTHER)

        raw = seed.sys_descr or seed.device_descr
        if not is_network_server_descriptor(raw):
            return None

        self.log.debug(f"{session.host}: network server descriptor {raw!r}, searching model")
        model = await self._first_valid_text(
            session, MODEL_CANDIDATES, lambda text: extract_brother_model(text) is not None)
        if model:
            return clean_model_name(f"Brother {extract_brother_model(model)}", Brand.BROTHER)

        for varbind in await self._walk(session, BROTHER.BRANCH_STATUS):
            if isinstance(varbind.value, int):
                continue
            match = BROTHER_MODEL_PATTERN.search(varbind.text)
            if match:
                return f"Brother {match.group(0)}"

        return None

    # =========================================================================
    # Serial / firmware
    # =========================================================================

    async def read_identity(self, session, seed: IdentitySnapshot):
        firmware = await self._search_walk(session, BROTHER.FIRMWARE_BRANCHES, FIRMWARE_WALK_PATTERN)
        if firmware:
            firmware = f"V{firmware}"
        else:
            firmware = await self._first_valid_text(
                session,
                [BROTHER.SUB_FIRMWARE, BROTHER.MAIN_FIRMWARE],
                lambda text: bool(FIRMWARE_SCALAR_PATTERN.match(text)),
            )
            firmware = as_firmware(firmware)

        serial = await self._first_valid_text(session, SERIAL_CANDIDATES, is_plausible_serial)
        if serial is None:
            serial = await self._search_walk(
                session,
                [BROTHER.BRANCH_STATUS, BROTHER.BRANCH_PRODUCT],
                SERIAL_WALK_PATTERN,
            )

        return serial, firmware

    # =========================================================================
    # Supplies
    # =========================================================================

    async def read_supply_levels(self, session, model: Optional[str]) -> Dict[str, int]:
        for name, strategy in self.level_strategies:
            try:
                levels = await strategy(session, model)
            except TransportError as e:
                self.log.debug(f"{session.host}: {name} failed: {e}")
                continue
            if levels:
                self.log.debug(f"{session.host}: levels from {name}: {levels}")
                return levels
        return {}

    async def _levels_from_maintenance(self, session, model) -> Dict[str, int]:
        varbind = await self._get(session, BROTHER.INFO_MAINTENANCE)
        if varbind is None:
            return {}
        toner = decode_maintenance_buffer(varbind.value).get("toner")
        if toner is None:
            return {}
        return {SupplyColor.BLACK.value: toner}

    async def _levels_from_printer_mib(self, session, model) -> Dict[str, int]:
        varbind = await self._get(session, PRINTER_MIB.FIRST_SUPPLY_LEVEL)
        level = varbind.int_value if varbind else None
        if level is not None and 0 <= level <= 100:
            return {SupplyColor.BLACK.value: level}
        return {}

    async def _levels_from_scalars(self, session, model) -> Dict[str, int]:
        colors = CMYK[:1] if is_monochrome(model) else CMYK
        results = await asyncio.gather(
            *(self._get(session, TONER_OIDS[color]) for color in colors),
            return_exceptions=True,
        )

        levels: Dict[str, int] = {}
        for color, result in zip(colors, results):
            if isinstance(result, TransportError):
                self.log.debug(f"{session.host}: {color.value} toner read failed: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            if result is None:
                continue
            level = decode_brother_value(result.value)
            if level is not None and 0 <= level <= 100:
                levels[color.value] = level
        return levels

    # =========================================================================
    # Faults
    # =========================================================================

    async def read_faults(self, session) -> FaultReport:
        report = FaultReport()

        varbind = await self._get(session, BROTHER.INFO_MAINTENANCE)
        if varbind is not None:
            info = decode_maintenance_buffer(varbind.value)
            report.components = {k: info[k] for k in COMPONENT_FIELDS if k in info}
            drum = info.get("drum")
            if drum is not None and drum < DRUM_WARNING_LEVEL:
                report.faults.append(f"Drum low: {drum}% - consider replacement")

        varbind = await self._get(session, BROTHER.INFO_NEXT_CARE)
        pages = decode_next_care(varbind.value) if varbind else None
        if pages is not None:
            report.pages_until_service = pages
            if pages < NEXT_CARE_WARNING_PAGES:
                report.faults.append(f"Maintenance due in {pages} pages")

        return report
