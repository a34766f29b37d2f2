"""
prtscan - Supply Change Detection.

Pure diff between a stored printer snapshot and a fresh query result.
The caller owns persistence; this module only says what changed.

A cartridge is considered replaced when its identifier (serial, else
name, else capacity) changes at the same supply index. When the fresh snapshot reports no
cartridge identity, detection falls back to level jumps: a rise of
more than LEVEL_JUMP points on one color means a new cartridge.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from .models import PrinterRecord

# Minimum level increase (points) that counts as a replacement
LEVEL_JUMP = 50

CARTRIDGE_REPLACED = "cartridge_replaced"
LEVEL_INCREASE = "level_increase"


@dataclass
class SupplyChange:
    """One detected consumable change."""
    slot: str                                   # cartridge index or color
    kind: str                                   # cartridge_replaced | level_increase
    previous: Optional[Union[str, int]] = None
    current: Optional[Union[str, int]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'slot': self.slot,
            'kind': self.kind,
            'previous': self.previous,
            'current': self.current,
        }


def _as_record(snapshot: Union[PrinterRecord, Dict[str, Any]]) -> PrinterRecord:
    if isinstance(snapshot, PrinterRecord):
        return snapshot
    return PrinterRecord.from_dict(snapshot)


def detect_supply_changes(
    previous: Optional[Union[PrinterRecord, Dict[str, Any]]],
    current: PrinterRecord,
) -> List[SupplyChange]:
    """
    Compare two snapshots of the same printer.

    Args:
        previous: Stored record or its to_dict() form; None for a new printer
        current: Freshly queried record

    Returns:
        Changes in slot order
    """
    if previous is None:
        return []
    previous = _as_record(previous)

    # Placeholder and offline levels say nothing about the cartridge
    if not current.snmp_available or current.levels_estimated:
        return []

    changes: List[SupplyChange] = []

    if current.cartridge_info:
        for slot in sorted(current.cartridge_info):
            before = previous.cartridge_info.get(slot)
            after = current.cartridge_info[slot]
            old_id = before.identifier if before else None
            new_id = after.identifier
            if old_id and new_id and old_id != new_id:
                changes.append(SupplyChange(slot, CARTRIDGE_REPLACED, old_id, new_id))
        return changes

    if previous.levels_estimated:
        return changes

    for color in sorted(current.levels):
        before = previous.levels.get(color)
        after = current.levels[color]
        if before is not None and after - before > LEVEL_JUMP:
            changes.append(SupplyChange(color, LEVEL_INCREASE, before, after))
    return changes
