"""
prtscan - Ricoh Parser.

Ricoh (M 320F, SP and IM series) exposes toner remaining as a single
proprietary scalar on monochrome families; color and older models
fall back to RFC 3805 index discovery.
"""

import re
from typing import Dict, Optional

from ..models import Brand, IdentitySnapshot, SupplyColor
from ..oids import RICOH
from ..snmp.values import interpret_scalar
from .base import VendorParser, as_firmware, valid_serial

FIRMWARE_PATTERN = re.compile(r'^[vV]\d+\.\d+(\.\d+)?$')


class RicohParser(VendorParser):
    """Ricoh private MIB plus RFC 3805 fallback."""

    brand = Brand.RICOH
    cartridge_serial_table = RICOH.CARTRIDGE_SERIAL_TABLE

    async def read_identity(self, session, seed: IdentitySnapshot):
        serial = await self._first_valid_text(
            session,
            [RICOH.MACHINE_ID, RICOH.SERIAL],
            valid_serial(r'[A-Z0-9]{10,15}'),
        )

        firmware = await self._search_walk(session, RICOH.FIRMWARE_BRANCHES, FIRMWARE_PATTERN)
        if firmware is None:
            varbind = await self._get(session, RICOH.FIRMWARE)
            firmware = as_firmware(varbind.text) if varbind else None

        return serial, firmware

    async def read_supply_levels(self, session, model: Optional[str]) -> Dict[str, int]:
        varbind = await self._get(session, RICOH.TONER_REMAINING)
        if varbind is not None:
            level = interpret_scalar(varbind.value)
            if level is not None and 0 <= level <= 100:
                self.log.debug(f"{session.host}: proprietary toner level {level}%")
                return {SupplyColor.BLACK.value: level}

        return await self._read_rfc_levels_by_index(session)
