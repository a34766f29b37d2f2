"""
prtscan - Vendor Parsers.

Static brand -> parser registry. Brands without a dedicated parser,
and unknown brands, use the generic RFC 3805 parser.

Usage:
    from prtscan.vendors import get_parser

    parser = get_parser("brother")
    result = await parser.parse(session, seed)
"""

from typing import Dict, Optional, Type, Union

from ..config import EngineSettings
from ..models import Brand
from .base import FaultReport, ParseResult, VendorParser, strip_to_monochrome
from .brother import BrotherParser, decode_brother_value, decode_maintenance_buffer
from .generic import GenericParser
from .pantum import PantumParser
from .ricoh import RicohParser

PARSERS: Dict[Brand, Type[VendorParser]] = {
    Brand.BROTHER: BrotherParser,
    Brand.RICOH: RicohParser,
    Brand.PANTUM: PantumParser,
}


def get_parser(
    brand: Union[Brand, str, None],
    settings: Optional[EngineSettings] = None,
) -> VendorParser:
    """Return a parser instance for the brand (case-insensitive)."""
    brand = Brand.from_string(brand)
    parser_cls = PARSERS.get(brand)
    if parser_cls is None:
        return GenericParser(settings, brand=brand)
    return parser_cls(settings)


__all__ = [
    'BrotherParser',
    'FaultReport',
    'GenericParser',
    'PantumParser',
    'ParseResult',
    'PARSERS',
    'RicohParser',
    'VendorParser',
    'decode_brother_value',
    'decode_maintenance_buffer',
    'get_parser',
    'strip_to_monochrome',
]
