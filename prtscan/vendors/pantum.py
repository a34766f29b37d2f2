"""
prtscan - Pantum Parser.

Pantum exposes a proprietary toner table on enterprise 20540. Models
that publish neither that table nor RFC 3805 supplies can still be
read from the embedded web server status page, which is tried only
after every SNMP strategy came back empty.
"""

import asyncio
import logging
import re
from typing import Dict, Optional

import requests

from ..heuristics import classify_supply_color
from ..models import Brand, IdentitySnapshot, SupplyColor
from ..oids import PANTUM, extract_index_from_oid
from ..snmp.values import interpret_scalar
from .base import VendorParser, as_firmware, valid_serial

FIRMWARE_PATTERN = re.compile(r'^[vV]?\d+\.\d+(\.\d+)?$')
WEB_TONER_PATTERN = re.compile(r'Toner.*?(\d+)%', re.IGNORECASE)

log = logging.getLogger("prtscan.vendors.pantum")


def fetch_web_toner_level(ip: str, timeout: float = 5.0) -> Optional[int]:
    """
    Scrape the toner percentage from the printer's status pages.

    Tries each known page in order and returns the first match.
    Blocking; run in an executor from async code.
    """
    for path in PANTUM.STATUS_PAGES:
        url = f"http://{ip}{path}"
        try:
            response = requests.get(url, timeout=timeout)
        except requests.RequestException as e:
            log.debug(f"{url}: {e}")
            continue
        if response.status_code != 200:
            continue
        match = WEB_TONER_PATTERN.search(response.text)
        if match:
            level = int(match.group(1))
            if 0 <= level <= 100:
                return level
    return None


class PantumParser(VendorParser):
    """Pantum private MIB, RFC 3805 fallback, then web status page."""

    brand = Brand.PANTUM
    cartridge_serial_table = PANTUM.TONER_SERIAL_TABLE

    async def read_identity(self, session, seed: IdentitySnapshot):
        serial = await self._first_valid_text(
            session,
            [PANTUM.SERIAL, PANTUM.SERIAL_ALT],
            valid_serial(r'[A-Z0-9]{10,20}'),
        )

        firmware = await self._search_walk(session, [PANTUM.BASE], FIRMWARE_PATTERN)
        if firmware is not None:
            firmware = as_firmware(firmware)
        else:
            for oid in (PANTUM.FIRMWARE, PANTUM.FIRMWARE_ALT):
                varbind = await self._get(session, oid)
                firmware = as_firmware(varbind.text) if varbind else None
                if firmware:
                    break

        return serial, firmware

    async def read_supply_levels(self, session, model: Optional[str]) -> Dict[str, int]:
        levels = await self._read_proprietary_levels(session)
        if levels:
            return levels

        levels = await self._read_rfc_levels_by_index(session)
        if levels:
            return levels

        if not self.settings.enable_http_fallback:
            return {}

        self.log.info(f"{session.host}: no toner data via SNMP, trying web status page")
        loop = asyncio.get_running_loop()
        level = await loop.run_in_executor(
            None,
            fetch_web_toner_level,
            session.host,
            self.settings.http_fallback_timeout,
        )
        if level is None:
            return {}
        return {SupplyColor.BLACK.value: level}

    async def _read_proprietary_levels(self, session) -> Dict[str, int]:
        """
        Walk the Pantum toner table.

        A single uncolored entry is the all-black case of the
        monochrome families.
        """
        raw_levels = await self._walk(session, PANTUM.TONER_LEVELS)
        if not raw_levels:
            return {}

        descriptions = {
            extract_index_from_oid(vb.oid, PANTUM.TONER_DESCRIPTION): vb.text
            for vb in await self._walk(session, PANTUM.TONER_DESCRIPTION)
        }

        levels: Dict[str, int] = {}
        for varbind in raw_levels:
            level = interpret_scalar(varbind.value)
            if level is None or not 0 <= level <= 100:
                continue
            index = extract_index_from_oid(varbind.oid, PANTUM.TONER_LEVELS)
            color = classify_supply_color(descriptions.get(index))
            if color is None and len(raw_levels) == 1:
                color = SupplyColor.BLACK
            if color is not None and color.value not in levels:
                levels[color.value] = level
        return levels
