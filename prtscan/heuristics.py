"""
prtscan - String Heuristics.

Pure functions for turning free-form SNMP strings into normalized values:
model name cleanup, supply color classification, brand detection,
printer/network-gear classification, and level percentages.

All functions are defensive - they return safe fallback values
(None, empty string, the neutral level) rather than raising.
"""

import math
import re
from typing import Optional, Union

from .models import Brand, NEUTRAL_LEVEL, SupplyColor
from .oids import PRINTER_MIB


# =============================================================================
# Model Names
# =============================================================================

# Brother print-server descriptors ("Brother NC-8300h, Firmware Ver.1.05")
NC_SERVER_PATTERN = re.compile(r'NC-\d+h', re.IGNORECASE)
BROTHER_MODEL_PATTERN = re.compile(r'(HL|MFC|DCP)-[A-Z0-9]+[^\s,;"]*', re.IGNORECASE)
RICOH_MODEL_PATTERN = re.compile(r'\b(SP|M|IM|MP)\s+\d+[A-Z]*', re.IGNORECASE)

_FIRMWARE_NOISE = [
    re.compile(r'\s+[vV]\d+\.\d+(\.\d+)?(?=\s|$)'),
    re.compile(r'\s+Ver\.\s*\d+\.\d+(\.\d+)?', re.IGNORECASE),
    re.compile(r'\s+Version\s+\d+\.\d+(\.\d+)?', re.IGNORECASE),
]
_VENDOR_PREFIX = re.compile(r'^(Brother|HP|RICOH|TOSHIBA|PANTUM)\s+', re.IGNORECASE)


def is_network_server_descriptor(text: Optional[str]) -> bool:
    """True for Brother NC-xxxxh print-server strings that hide the real model."""
    return bool(text) and bool(NC_SERVER_PATTERN.search(text))


def clean_model_name(raw: Optional[str], brand: Union[Brand, str, None]) -> str:
    """
    Normalize a raw model string.

    Strips firmware versions and vendor prefixes, extracts known Brother
    and Ricoh model codes, otherwise keeps the first three words.
    NC-xxxxh network-server descriptors are returned unchanged so the
    Brother decoder can resolve the real model.

    Examples:
        >>> clean_model_name("Brother HL-L5100DN series", "BROTHER")
        'Brother HL-L5100DN'
        >>> clean_model_name("RICOH SP 3710DN 1.02 / RICOH Network Printer", "RICOH")
        'RICOH SP 3710DN'
        >>> clean_model_name(None, "HP")
        'HP Printer'
    """
    brand = Brand.from_string(brand)
    display = brand.display_name

    if not raw or not raw.strip():
        return f"{display} Printer"

    if is_network_server_descriptor(raw):
        return raw

    cleaned = raw.strip()
    for pattern in _FIRMWARE_NOISE:
        cleaned = pattern.sub('', cleaned)
    cleaned = _VENDOR_PREFIX.sub('', cleaned.strip()).strip()

    match = BROTHER_MODEL_PATTERN.search(cleaned)
    if match:
        return f"Brother {match.group(0)}"

    if brand == Brand.RICOH:
        match = RICOH_MODEL_PATTERN.search(cleaned)
        if match:
            return f"RICOH {match.group(0)}"

    cleaned = ' '.join(cleaned.split()[:3])
    if not cleaned:
        return f"{display} Printer"
    if brand == Brand.UNKNOWN:
        return cleaned
    return f"{display} {cleaned}"


def extract_brother_model(text: Optional[str]) -> Optional[str]:
    """
    Find a Brother model code in arbitrary text.

    Checks for an embedded MODEL="..." token first, then a bare
    HL-/MFC-/DCP- code.
    """
    if not text:
        return None
    match = re.search(r'MODEL="([^"]+)"', text)
    if match:
        return match.group(1).strip()
    match = BROTHER_MODEL_PATTERN.search(text)
    if match:
        return match.group(0)
    return None


# Monochrome model families (toner channel is black only)
MONOCHROME_PATTERNS = [
    re.compile(r'HL-L5', re.IGNORECASE),
    re.compile(r'HL-5', re.IGNORECASE),
    re.compile(r'HL-L?[26]\d', re.IGNORECASE),
    re.compile(r'HL-\d', re.IGNORECASE),
    re.compile(r'DCP-L', re.IGNORECASE),
    re.compile(r'MFC-L\d{4}D[WN]', re.IGNORECASE),
]

# Brother color models carry a C right after the model number (HL-L3270CDW)
COLOR_MODEL_PATTERN = re.compile(r'(HL|DCP|MFC)-L?\d+C', re.IGNORECASE)


def is_monochrome(model: Optional[str]) -> bool:
    """True if the model name belongs to a black-only family."""
    if not model:
        return False
    if COLOR_MODEL_PATTERN.search(model):
        return False
    return any(pattern.search(model) for pattern in MONOCHROME_PATTERNS)


_FIRMWARE_PATTERNS = [
    re.compile(r'Firmware Ver\.(\d+\.\d+(?:\.\d+)?)', re.IGNORECASE),
    re.compile(r'Ver\.(\d+\.\d+(?:\.\d+)?)', re.IGNORECASE),
    re.compile(r'[vV]er[\s:]*(\d+\.\d+(?:\.\d+)?)', re.IGNORECASE),
    re.compile(r'[vV](\d+\.\d+\.\d+)'),
    re.compile(r'[vV](\d+\.\d+)'),
]


def extract_firmware_version(text: Optional[str]) -> Optional[str]:
    """
    Pull a firmware version out of a description string.

    Returns:
        "V1.72" style string, or None

    Example:
        >>> extract_firmware_version("Brother NC-8300h, Firmware Ver.1.05  (10.05.19)")
        'V1.05'
    """
    if not text:
        return None
    for pattern in _FIRMWARE_PATTERNS:
        match = pattern.search(text)
        if match:
            return f"V{match.group(1)}"
    return None


# =============================================================================
# Supply Colors
# =============================================================================

# Order matters: first color whose tokens match wins
SUPPLY_COLOR_PATTERNS = [
    (SupplyColor.BLACK, re.compile(r'black|negro|schwarz|noir|\bbk\b|\bk\b', re.IGNORECASE)),
    (SupplyColor.CYAN, re.compile(r'cyan|cian|\bc\b', re.IGNORECASE)),
    (SupplyColor.MAGENTA, re.compile(r'magenta|\bm\b', re.IGNORECASE)),
    (SupplyColor.YELLOW, re.compile(r'yellow|amarillo|gelb|jaune|\by\b', re.IGNORECASE)),
]


def classify_supply_color(description: Optional[str]) -> Optional[SupplyColor]:
    """
    Map a supply description to a color channel.

    Examples:
        >>> classify_supply_color("Black Toner Cartridge")
        <SupplyColor.BLACK: 'black'>
        >>> classify_supply_color("Toner Amarillo")
        <SupplyColor.YELLOW: 'yellow'>
        >>> classify_supply_color("Drum Unit") is None
        True
    """
    if not description:
        return None
    for color, pattern in SUPPLY_COLOR_PATTERNS:
        if pattern.search(description):
            return color
    return None


# =============================================================================
# Percentages
# =============================================================================

def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (no banker's rounding)."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: int) -> int:
    return max(0, min(100, value))


def supply_percent(level: Optional[int], max_capacity: Optional[int] = None) -> Optional[int]:
    """
    Percentage remaining from an RFC 3805 level / max-capacity pair.

    Sentinels:
        level -2 (full)            -> 100
        level -3 (some remaining)  -> NEUTRAL_LEVEL
        max -2/-3 with level 0-100 -> level taken as a percentage

    Returns:
        0-100, or None when the pair carries no usable information
    """
    if level is None:
        return None
    if level == PRINTER_MIB.LEVEL_FULL:
        return 100
    if level == PRINTER_MIB.LEVEL_UNKNOWN:
        return NEUTRAL_LEVEL
    if level < 0:
        return None
    if max_capacity is not None and max_capacity > 0:
        return clamp_percent(round_half_up(level / max_capacity * 100))
    if 0 <= level <= 100:
        return level
    return None


# =============================================================================
# Host Classification
# =============================================================================

# Network gear that must never be reported as a printer
EXCLUSION_KEYWORDS = [
    'routeros', 'mikrotik', 'router', 'switch', 'ccr', 'crs', 'rb',
    'cisco', 'juniper', 'ubiquiti', 'unifi', 'firewall', 'gateway',
]

PRINTER_KEYWORDS = [
    'printer', 'print', 'mfp', 'multifunction', 'copier', 'fax', 'scanner',
    'xerox', 'ricoh', 'brother', 'hp', 'canon', 'epson', 'kyocera',
    'toshiba', 'lexmark', 'samsung', 'konica', 'sharp', 'pantum',
    'm 320', 'm320', 'aficio', 'imagio', 'laserjet', 'deskjet', 'officejet',
]

# Checked in order; first hit wins
BRAND_KEYWORDS = [
    (Brand.BROTHER, ('brother',)),
    (Brand.RICOH, ('ricoh', 'aficio', 'imagio')),
    (Brand.HP, ('hp', 'hewlett')),
    (Brand.CANON, ('canon',)),
    (Brand.EPSON, ('epson',)),
    (Brand.XEROX, ('xerox',)),
    (Brand.KYOCERA, ('kyocera',)),
    (Brand.TOSHIBA, ('toshiba',)),
    (Brand.KONICA, ('konica',)),
    (Brand.SHARP, ('sharp',)),
    (Brand.SAMSUNG, ('samsung',)),
    (Brand.LEXMARK, ('lexmark',)),
    (Brand.PANTUM, ('pantum',)),
]


def is_excluded(text: Optional[str]) -> bool:
    """True if the text names routing/switching gear."""
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in EXCLUSION_KEYWORDS)


def has_printer_keyword(text: Optional[str]) -> bool:
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in PRINTER_KEYWORDS)


def looks_like_printer(combined: Optional[str], sys_descr: Optional[str]) -> bool:
    """
    Classify a probed host.

    Exclusion keywords always win. Otherwise any printer keyword, or
    simply a non-empty sysDescr, qualifies the host.
    """
    if is_excluded(combined):
        return False
    return has_printer_keyword(combined) or bool(sys_descr and sys_descr.strip())


def detect_brand(text: Optional[str]) -> Brand:
    """
    Detect printer brand from descriptive text.

    Examples:
        >>> detect_brand("Brother NC-8300h")
        <Brand.BROTHER: 'BROTHER'>
        >>> detect_brand("HP ETHERNET MULTI-ENVIRONMENT")
        <Brand.HP: 'HP'>
    """
    if not text:
        return Brand.UNKNOWN
    lowered = text.lower()
    for brand, keywords in BRAND_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return brand
    return Brand.UNKNOWN
