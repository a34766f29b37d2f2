"""
Engine settings.

Defaults match field-tested values; override from a YAML file
and/or command-line flags.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field

log = logging.getLogger("prtscan.config")

DEFAULT_COMMUNITIES = ["public", "private", "admin", "password"]


class EngineSettings(BaseModel):
    """Tunables for scanning and querying"""
    communities: List[str] = Field(
        default_factory=lambda: list(DEFAULT_COMMUNITIES),
        description="Community strings tried in order during a scan probe")
    port: int = Field(default=161, ge=1, le=65535, description="SNMP UDP port")

    # Scanner
    scan_batch_size: int = Field(default=80, ge=1, le=1024,
                                 description="Hosts probed in parallel per batch")
    probe_timeout: float = Field(default=6.0, gt=0, le=60, description="Basic probe timeout (seconds)")
    probe_retries: int = Field(default=1, ge=0, le=5, description="Basic probe retries")
    extended_probe_timeout: float = Field(default=3.0, gt=0, le=60,
                                          description="Extended probe timeout (seconds)")
    reverse_dns: bool = Field(default=True, description="Resolve hostnames of found printers")

    # Query / sync
    query_timeout: float = Field(default=3.0, gt=0, le=60, description="Per-request query timeout (seconds)")
    query_retries: int = Field(default=2, ge=0, le=5, description="Per-request query retries")

    # Pantum web fallback
    enable_http_fallback: bool = Field(default=True,
                                       description="Scrape status pages when SNMP has no toner data")
    http_fallback_timeout: float = Field(default=5.0, gt=0, le=60,
                                         description="Timeout per status page (seconds)")


def load_settings(path: Optional[Union[str, Path]] = None, **overrides: Any) -> EngineSettings:
    """
    Build settings from an optional YAML file plus keyword overrides.

    Overrides whose value is None are ignored so argparse namespaces
    can be passed straight through.

    Raises:
        FileNotFoundError: path given but missing
        pydantic.ValidationError: bad values
    """
    data: Dict[str, Any] = {}
    if path:
        path = Path(path).expanduser()
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at top level")
        log.debug(f"Loaded settings from {path}")

    data.update({k: v for k, v in overrides.items() if v is not None})
    return EngineSettings(**data)
