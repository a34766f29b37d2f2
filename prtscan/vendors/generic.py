"""
prtscan - Generic RFC 3805 Parser.

Standard Printer-MIB path used for HP, Canon, Epson and any brand
without a dedicated parser.
"""

import re
from typing import Dict, List, Optional, Tuple

from ..heuristics import classify_supply_color, extract_firmware_version, supply_percent
from ..models import Brand, CMYK, IdentitySnapshot, NEUTRAL_LEVEL
from ..oids import (
    HOST_RESOURCES,
    NON_COLORANT_SUPPLY_TYPES,
    PRINTER_MIB,
    SUPPLY_TYPES,
    extract_index_from_oid,
    oid_sort_key,
)
from .base import VendorParser

# Brands whose devices are assumed to be CMYK when descriptions don't classify
COLOR_BRANDS = frozenset({Brand.HP, Brand.CANON, Brand.EPSON})

FIRMWARE_CANDIDATES = [HOST_RESOURCES.DEVICE_ID, PRINTER_MIB.PRINTER_NAME]
FIRMWARE_PATTERN = re.compile(r'^[vV]?\d+\.\d+')

INVALID_SERIALS = ("Not Specified", "Unknown")


def _column(varbinds, base: str) -> Dict[str, Optional[int]]:
    return {extract_index_from_oid(vb.oid, base): vb.int_value for vb in varbinds}


def positional_levels(brand: Brand, raw_levels: List[Tuple[Optional[int], Optional[int]]]) -> Dict[str, int]:
    """
    Assign (level, max) pairs to colors by table order.

    Known color brands get black/cyan/magenta/yellow, everyone else
    black only.
    """
    colors = CMYK if brand in COLOR_BRANDS else CMYK[:1]
    levels: Dict[str, int] = {}
    for color, (level, max_capacity) in zip(colors, raw_levels):
        if level == PRINTER_MIB.LEVEL_FULL:
            levels[color.value] = 100
        elif level == PRINTER_MIB.LEVEL_UNKNOWN:
            levels[color.value] = NEUTRAL_LEVEL
        else:
            percent = supply_percent(level, max_capacity if max_capacity is not None else 100)
            if percent is not None:
                levels[color.value] = percent
    return levels


class GenericParser(VendorParser):
    """
    RFC 3805 parser.

    Supply rows are joined by index across the description, type,
    level and max-capacity columns.
    """

    brand = Brand.UNKNOWN

    def __init__(self, settings=None, brand: Brand = Brand.UNKNOWN):
        self.brand = brand
        super().__init__(settings)

    async def read_identity(self, session, seed: IdentitySnapshot):
        serial = await self._first_valid_text(
            session,
            [PRINTER_MIB.SERIAL_NUMBER],
            lambda text: text not in INVALID_SERIALS and "Unknown" not in text,
        )

        firmware = None
        for oid in FIRMWARE_CANDIDATES:
            varbind = await self._get(session, oid)
            text = varbind.text if varbind else ""
            if FIRMWARE_PATTERN.match(text):
                firmware = text if text[0] in "vV" else f"V{text}"
                break
        if firmware is None:
            firmware = extract_firmware_version(seed.sys_descr)

        return serial, firmware

    async def read_supply_levels(self, session, model: Optional[str]) -> Dict[str, int]:
        descriptions = await self._walk(session, PRINTER_MIB.SUPPLY_DESCRIPTION)
        types = _column(await self._walk(session, PRINTER_MIB.SUPPLY_TYPE), PRINTER_MIB.SUPPLY_TYPE)
        max_capacities = _column(await self._walk(session, PRINTER_MIB.SUPPLY_MAX_CAPACITY),
                                 PRINTER_MIB.SUPPLY_MAX_CAPACITY)
        current_levels = _column(await self._walk(session, PRINTER_MIB.SUPPLY_LEVEL), PRINTER_MIB.SUPPLY_LEVEL)

        self.log.debug(f"{session.host}: {len(descriptions)} supplies in Printer-MIB")

        levels: Dict[str, int] = {}
        for varbind in descriptions:
            index = extract_index_from_oid(varbind.oid, PRINTER_MIB.SUPPLY_DESCRIPTION)
            if types.get(index) in NON_COLORANT_SUPPLY_TYPES:
                self.log.debug(f"{session.host}: skipping {SUPPLY_TYPES[types[index]]} supply {index}")
                continue
            color = classify_supply_color(varbind.text)
            if color is None or color.value in levels:
                continue
            percent = supply_percent(current_levels.get(index), max_capacities.get(index))
            if percent is not None:
                levels[color.value] = percent

        if levels:
            return levels

        ordered = sorted(current_levels, key=oid_sort_key)
        levels = positional_levels(
            self.brand,
            [(current_levels[index], max_capacities.get(index)) for index in ordered],
        )
        if levels:
            self.log.debug(f"{session.host}: positional supply fallback {levels}")
        return levels
