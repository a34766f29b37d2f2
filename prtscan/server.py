"""
FastAPI adapter for prtscan.

Exposes scanning as an NDJSON event stream and per-printer query/sync
as plain JSON. Authentication, persistence and notifications belong to
the caller's application; this adapter only translates requests.
"""

import asyncio
import logging
from typing import Callable, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from . import __version__
from .config import EngineSettings
from .events import EventEmitter, ScanEvent, ScanEventType
from .query import PrinterQueryEngine
from .scanner import NetworkScanner, parse_ranges

log = logging.getLogger("prtscan.server")

ScannerFactory = Callable[[EventEmitter], NetworkScanner]

TERMINAL_EVENTS = (ScanEventType.COMPLETE, ScanEventType.ERROR)


# =============================================================================
# Request / Response Models
# =============================================================================

class ScanRequest(BaseModel):
    """Request to sweep address ranges"""
    ranges: List[str] = Field(..., min_length=1,
                              description='Ranges like "10.0.0.1-254" or single IPs')


class SyncRequest(BaseModel):
    """Request to refresh one known printer"""
    ip: str = Field(..., description="Last known IP address")
    brand: str = Field(..., description="Printer brand (BROTHER, RICOH, PANTUM, ...)")
    community: Optional[str] = Field(default=None, description="SNMP community string")
    hostname: Optional[str] = Field(default=None,
                                    description="Stored hostname, re-resolved if the IP stops answering")


class QueryRequest(BaseModel):
    """Request for a one-off printer query"""
    ip: str = Field(..., description="Printer IP address")
    brand: Optional[str] = Field(default=None, description="Printer brand; generic decoding if omitted")
    community: str = Field(default="public", description="SNMP community string")


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str


# =============================================================================
# App Factory
# =============================================================================

def create_app(
    settings: Optional[EngineSettings] = None,
    engine: Optional[PrinterQueryEngine] = None,
    scanner_factory: Optional[ScannerFactory] = None,
) -> FastAPI:
    """
    Build the API.

    Args:
        settings: Engine settings shared by scans and queries
        engine: Query engine; one is built from settings if omitted
        scanner_factory: Builds a scanner bound to a per-request emitter
    """
    settings = settings or EngineSettings()
    engine = engine or PrinterQueryEngine(settings)
    if scanner_factory is None:
        def scanner_factory(emitter: EventEmitter) -> NetworkScanner:
            return NetworkScanner(settings=settings, emitter=emitter)

    app = FastAPI(
        title="prtscan",
        description="SNMP printer discovery and query engine",
        version=__version__,
    )
    app.state.settings = settings
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check"""
        return HealthResponse(status="ok", version=__version__)

    # =========================================================================
    # Scan
    # =========================================================================

    @app.post("/scan")
    async def scan(request: ScanRequest):
        """Stream scan events as NDJSON until complete or error"""
        try:
            parse_ranges(request.ranges)
        except ValueError as e:
            raise HTTPException(400, str(e))

        log.info(f"Scan requested: {', '.join(request.ranges)}")
        return StreamingResponse(
            _scan_stream(scanner_factory, request.ranges),
            media_type="application/x-ndjson",
        )

    # =========================================================================
    # Query / Sync
    # =========================================================================

    @app.post("/sync")
    async def sync(request: SyncRequest):
        """Refresh one printer; 502 when it cannot be reached"""
        result = await engine.sync_printer(
            request.ip,
            request.brand,
            community=request.community,
            hostname=request.hostname,
        )
        if not result.success:
            log.warning(f"Sync failed: {result.error}")
            return JSONResponse(status_code=502, content=result.to_dict())
        return result.to_dict()

    @app.post("/query")
    async def query(request: QueryRequest):
        """Query one printer; unreachable devices come back OFFLINE"""
        record = await engine.query_ip(request.ip, request.brand, request.community)
        return record.to_dict()

    return app


async def _scan_stream(scanner_factory: ScannerFactory, ranges: List[str]):
    """
    Run one scan and yield its events as NDJSON lines.

    Closing the stream early (client disconnect) sets the cancel event,
    so the scan stops before its next batch.
    """
    queue: "asyncio.Queue[ScanEvent]" = asyncio.Queue()
    emitter = EventEmitter()
    emitter.subscribe(queue.put_nowait)
    cancel_event = asyncio.Event()

    task = asyncio.create_task(scanner_factory(emitter).scan(ranges, cancel_event=cancel_event))
    task.add_done_callback(_report_scan_failure)

    try:
        while True:
            event = await queue.get()
            yield event.to_json()
            if event.event_type in TERMINAL_EVENTS:
                break
    finally:
        if not task.done():
            log.info("Scan stream closed, cancelling after current batch")
        cancel_event.set()


def _report_scan_failure(task: "asyncio.Task") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log.error(f"Scan task failed: {type(exc).__name__}: {exc}")
