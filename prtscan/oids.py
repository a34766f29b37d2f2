"""
prtscan - SNMP OID Constants.

Centralized OID definitions for printer discovery and polling.

Organization:
- SNMPv2-MIB: System group (sysDescr, sysName)
- HOST-RESOURCES-MIB: Device description, device status, printer error state
- Printer-MIB (RFC 3805): General printer info, marker supplies, alerts
- Vendor branches: Brother (2435), Ricoh (367), Pantum (20540)

Usage:
    from prtscan.oids import SYSTEM, PRINTER_MIB, BROTHER

    # Get sysDescr
    varbinds = await session.get([SYSTEM.SYS_DESCR])

    # Walk supply descriptions
    varbinds = await session.walk(PRINTER_MIB.SUPPLY_DESCRIPTION)

Notes:
- Vendor OIDs are proprietary and undocumented; values were collected from
  field hardware and may not exist on every model family
- Supply table columns are indexed by hrDeviceIndex.supplyIndex
"""

from typing import Dict, Tuple


# =============================================================================
# SNMPv2-MIB - System Group
# =============================================================================

class SYSTEM:
    """
    SNMPv2-MIB System Group OIDs.

    Base: 1.3.6.1.2.1.1
    """
    BASE = "1.3.6.1.2.1.1"

    SYS_DESCR = "1.3.6.1.2.1.1.1.0"           # System description string
    SYS_NAME = "1.3.6.1.2.1.1.5.0"            # Administratively assigned name


# =============================================================================
# HOST-RESOURCES-MIB
# =============================================================================

class HOST_RESOURCES:
    """
    HOST-RESOURCES-MIB device and printer table OIDs.

    Instance .1 is the first (usually only) device on a printer.
    """
    DEVICE_DESCR = "1.3.6.1.2.1.25.3.2.1.3.1"         # hrDeviceDescr
    DEVICE_ID = "1.3.6.1.2.1.25.3.2.1.4.1"            # hrDeviceID (firmware on some models)
    DEVICE_STATUS = "1.3.6.1.2.1.25.3.2.1.5.1"        # hrDeviceStatus
    PRINTER_STATUS = "1.3.6.1.2.1.25.3.5.1.1.1"       # hrPrinterStatus
    DETECTED_ERROR_STATE = "1.3.6.1.2.1.25.3.5.1.2.1" # hrPrinterDetectedErrorState (bitmap)

    # hrDeviceStatus values
    STATUS_UNKNOWN = 1
    STATUS_RUNNING = 2
    STATUS_WARNING = 3
    STATUS_TESTING = 4
    STATUS_DOWN = 5


# hrPrinterDetectedErrorState, first octet, as reported by field hardware
DETECTED_ERROR_BITS: Tuple[Tuple[int, str], ...] = (
    (0x80, "Paper jam"),
    (0x40, "Out of paper"),
    (0x20, "Low paper"),
    (0x10, "Out of toner"),
    (0x08, "Door open"),
    (0x04, "Service required"),
)


# =============================================================================
# Printer-MIB (RFC 3805)
# =============================================================================

class PRINTER_MIB:
    """
    Printer-MIB OIDs.

    Base: 1.3.6.1.2.1.43
    Supply columns are walked; .1 selects hrDeviceIndex 1.
    """
    BASE = "1.3.6.1.2.1.43"

    # prtGeneralTable
    PRINTER_NAME = "1.3.6.1.2.1.43.5.1.1.16.1"        # prtGeneralPrinterName
    SERIAL_NUMBER = "1.3.6.1.2.1.43.5.1.1.17.1"       # prtGeneralSerialNumber

    # prtMarkerSuppliesTable columns
    SUPPLY_TYPE = "1.3.6.1.2.1.43.11.1.1.5.1"
    SUPPLY_DESCRIPTION = "1.3.6.1.2.1.43.11.1.1.6.1"
    SUPPLY_UNIT = "1.3.6.1.2.1.43.11.1.1.7.1"
    SUPPLY_MAX_CAPACITY = "1.3.6.1.2.1.43.11.1.1.8.1"
    SUPPLY_LEVEL = "1.3.6.1.2.1.43.11.1.1.9.1"

    # Table roots (all devices) used for cartridge identity walks
    SUPPLY_DESCRIPTION_TABLE = "1.3.6.1.2.1.43.11.1.1.6"
    SUPPLY_MAX_CAPACITY_TABLE = "1.3.6.1.2.1.43.11.1.1.8"

    FIRST_SUPPLY_LEVEL = "1.3.6.1.2.1.43.11.1.1.9.1.1"

    MARKER_LIFE_COUNT = "1.3.6.1.2.1.43.10.2.1.4.1.1" # prtMarkerLifeCount
    ALERT_DESCRIPTION = "1.3.6.1.2.1.43.18.1.1.8.1.1" # prtAlertDescription

    # Level sentinels
    LEVEL_UNRESTRICTED = -1
    LEVEL_FULL = -2          # treated as 100%
    LEVEL_UNKNOWN = -3       # "some remaining", treated as neutral


# prtMarkerSuppliesType values
SUPPLY_TYPES: Dict[int, str] = {
    1: "other",
    2: "unknown",
    3: "toner",
    4: "wasteToner",
    5: "ink",
    6: "inkCartridge",
    7: "inkRibbon",
    8: "wasteInk",
    9: "opc",
    10: "developer",
    11: "fuserOil",
    12: "solidWax",
    13: "ribbonWax",
    14: "wasteWax",
    15: "fuser",
}

# Supply types that never hold a colorant level
NON_COLORANT_SUPPLY_TYPES = frozenset({4, 8, 9, 10, 11, 14, 15})


# =============================================================================
# Brother (enterprise 2435)
# =============================================================================

class BROTHER:
    """
    Brother proprietary OIDs.

    The brInfo* objects are "super-OIDs" that return a raw octet buffer
    with several maintenance metrics packed at fixed offsets.
    """
    BASE = "1.3.6.1.4.1.2435"

    INFO_MAINTENANCE = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.8.0"
    INFO_COUNTER = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.10.0"
    INFO_NEXT_CARE = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.11.0"
    INFO_ERROR = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.9.0"
    INFO_WARNING = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.15.0"
    STATUS_INFO = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.4.11.0"

    # Per-color scalars (overlap with the info buffers on some firmware)
    TONER_BLACK = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.10.0"
    TONER_CYAN = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.11.0"
    TONER_MAGENTA = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.12.0"
    TONER_YELLOW = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.13.0"
    DRUM_LIFE = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.1.0"

    MODEL = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.4.3.0"
    MODEL_ALT = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.4.4.0"
    SERIAL = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.1.1.0"
    SERIAL_ALT = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.4.1.0"
    SERIAL_ALT2 = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.4.5.0"
    PRODUCT_INFO = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.1.5.0"
    NET_CONFIG = "1.3.6.1.4.1.2435.2.4.3.99.3.1.6.1.2.1"   # contains MODEL="..."
    NET_MODEL = "1.3.6.1.4.1.2435.2.4.3.99.1.1.2.1"

    MAIN_FIRMWARE = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.17.0"
    SUB_FIRMWARE = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5.18.0"

    # Walk roots
    BRANCH_INFO = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.5"
    BRANCH_NET = "1.3.6.1.4.1.2435.2.4.3.99"
    BRANCH_STATUS = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.4"
    BRANCH_PRODUCT = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.1"
    CARTRIDGE_SERIAL_TABLE = "1.3.6.1.4.1.2435.2.3.9.4.2.1.5.4.101"

    FIRMWARE_BRANCHES = (BRANCH_INFO, BRANCH_NET, BRANCH_STATUS)


# =============================================================================
# Ricoh (enterprise 367)
# =============================================================================

class RICOH:
    """Ricoh proprietary OIDs (RICOH-PRIVATE-MIB)."""
    BASE = "1.3.6.1.4.1.367"

    TONER_REMAINING = "1.3.6.1.4.1.367.3.2.1.2.24.1.1.5.1"
    TONER_STATUS = "1.3.6.1.4.1.367.3.2.1.2.24.1.1.3.1"
    MACHINE_ID = "1.3.6.1.4.1.367.3.2.1.2.1.4.0"
    SERIAL = "1.3.6.1.4.1.367.3.2.1.2.1.5.0"
    FIRMWARE = "1.3.6.1.4.1.367.3.2.1.2.1.3.0"
    MODEL_NAME = "1.3.6.1.4.1.367.3.2.1.2.19.1.0.1"
    CARTRIDGE_SERIAL_TABLE = "1.3.6.1.4.1.367.3.2.1.2.24.1.1.6"

    FIRMWARE_BRANCHES = (
        "1.3.6.1.4.1.367.3.2.1.2.1",
        "1.3.6.1.4.1.367.3.2.1.1",
        "1.3.6.1.4.1.367.3.2.1.2.24.1.1",
        "1.3.6.1.4.1.367.1.2.1.1",
    )


# =============================================================================
# Pantum (enterprise 20540)
# =============================================================================

class PANTUM:
    """Pantum proprietary OIDs."""
    BASE = "1.3.6.1.4.1.20540"

    TONER_LEVELS = "1.3.6.1.4.1.20540.2.1.1.1.5"
    TONER_STATUS = "1.3.6.1.4.1.20540.2.1.1.1.4"
    TONER_DESCRIPTION = "1.3.6.1.4.1.20540.2.1.1.1.2"
    TONER_SERIAL_TABLE = "1.3.6.1.4.1.20540.2.1.1.1.6"
    SERIAL = "1.3.6.1.4.1.20540.1.2.2.1.3.1"
    SERIAL_ALT = "1.3.6.1.4.1.20540.1.3.1.1.2.1"
    FIRMWARE = "1.3.6.1.4.1.20540.1.1.1.1.2.1"
    FIRMWARE_ALT = "1.3.6.1.4.1.20540.1.2.1.1.3.1"

    # Embedded web server pages that carry a toner percentage
    STATUS_PAGES = (
        "/general/status.html",
        "/status.html",
        "/general/information.html",
        "/",
        "/cgi-bin/dynamic/printer/config/reports/deviceStatus.html",
    )


# =============================================================================
# Helper Functions
# =============================================================================

def extract_index_from_oid(oid: str, base_oid: str) -> str:
    """
    Extract index portion from an OID.

    Example:
        oid = "1.3.6.1.2.1.43.11.1.1.6.1.3"
        base = "1.3.6.1.2.1.43.11.1.1.6.1"
        returns "3"
    """
    if oid.startswith(base_oid + "."):
        return oid[len(base_oid) + 1:]
    return oid


def last_index(oid: str) -> str:
    """Return the final sub-identifier of an OID."""
    return oid.rsplit(".", 1)[-1]


def oid_sort_key(oid: str) -> Tuple[int, ...]:
    """Numeric sort key so that .10 sorts after .9."""
    return tuple(int(part) for part in oid.split(".") if part.isdigit())
