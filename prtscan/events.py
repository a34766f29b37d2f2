"""
prtscan - Scan Event System.

Structured events emitted by the network scanner. Consumers subscribe
to an EventEmitter that is passed into the scanner; there is no
process-wide broadcast list.

Event Flow:
    progress* (one per host, as probing starts) / found* (as soon as a
    printer is classified) -> complete | error

Wire format (one JSON object per line, NDJSON):
    {"type": "progress", "progress": {"current": 3, "total": 254}, "currentIP": "10.0.0.3"}
    {"type": "found", "printer": {...}}
    {"type": "complete", "count": 4}
    {"type": "error", "message": "..."}
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import DiscoveredPrinter

log = logging.getLogger("prtscan.events")


class ScanEventType(str, Enum):
    """Scan event types."""
    PROGRESS = "progress"
    FOUND = "found"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass
class ScanStats:
    """Running totals for one scan."""
    scanned: int = 0
    found: int = 0
    total: int = 0

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.scanned / self.total) * 100


@dataclass
class ScanEvent:
    """
    Event emitted by the scanner.

    All events have a type, timestamp, and event-specific data.
    """
    event_type: ScanEventType
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Wire representation."""
        d: Dict[str, Any] = {"type": self.event_type.value}
        if self.event_type == ScanEventType.PROGRESS:
            d["progress"] = {"current": self.data["current"], "total": self.data["total"]}
            d["currentIP"] = self.data["ip"]
        elif self.event_type == ScanEventType.FOUND:
            d["printer"] = self.data["printer"].to_dict()
        elif self.event_type == ScanEventType.COMPLETE:
            d["count"] = self.data["count"]
            if self.data.get("cancelled"):
                d["cancelled"] = True
        elif self.event_type == ScanEventType.ERROR:
            d["message"] = self.data["message"]
        return d

    def to_json(self) -> str:
        """One NDJSON line including the trailing newline."""
        return json.dumps(self.to_dict()) + "\n"


# Type alias for event callback
EventCallback = Callable[[ScanEvent], None]


class EventEmitter:
    """
    Subscriber registry for scan events.

    Usage:
        emitter = EventEmitter()

        # Subscribe to all events
        emitter.subscribe(my_handler)

        # Subscribe to one event type
        emitter.subscribe(on_found, ScanEventType.FOUND)
    """

    def __init__(self):
        self._listeners: List[Tuple[EventCallback, Optional[ScanEventType]]] = []
        self._stats = ScanStats()

    @property
    def stats(self) -> ScanStats:
        return self._stats

    def reset_stats(self, total: int = 0) -> None:
        self._stats = ScanStats(total=total)

    def subscribe(
        self,
        callback: EventCallback,
        event_type: Optional[ScanEventType] = None
    ) -> None:
        """
        Subscribe to events.

        Args:
            callback: Function to call with ScanEvent
            event_type: If specified, only receive this event type
        """
        self._listeners.append((callback, event_type))

    def unsubscribe(self, callback: EventCallback) -> None:
        """Remove a callback from listeners."""
        self._listeners = [
            (cb, et) for cb, et in self._listeners if cb != callback
        ]

    def clear(self) -> None:
        self._listeners.clear()

    def emit(self, event_type: ScanEventType, **data) -> ScanEvent:
        """
        Deliver an event to every matching listener, in subscription order.

        A failing listener is logged and skipped.
        """
        event = ScanEvent(event_type=event_type, timestamp=datetime.now(), data=data)

        for callback, filter_type in list(self._listeners):
            if filter_type is None or filter_type == event_type:
                try:
                    callback(event)
                except Exception as e:
                    log.error(f"Event listener error on {event_type.value}: {e}")

        return event

    # =========================================================================
    # Convenience emitters
    # =========================================================================

    def progress(self, current: int, total: int, ip: str) -> ScanEvent:
        self._stats.scanned = current
        self._stats.total = total
        return self.emit(ScanEventType.PROGRESS, current=current, total=total, ip=ip)

    def found(self, printer: DiscoveredPrinter) -> ScanEvent:
        self._stats.found += 1
        return self.emit(ScanEventType.FOUND, printer=printer)

    def complete(self, count: int, cancelled: bool = False) -> ScanEvent:
        return self.emit(ScanEventType.COMPLETE, count=count, cancelled=cancelled)

    def error(self, message: str) -> ScanEvent:
        return self.emit(ScanEventType.ERROR, message=message)


class ConsoleEventPrinter:
    """
    Prints scan events to the console.

    Usage:
        printer = ConsoleEventPrinter(verbose=True, color=True)
        emitter.subscribe(printer.handle_event)
    """

    # ANSI color codes
    COLORS = {
        "reset": "\033[0m",
        "bold": "\033[1m",
        "dim": "\033[2m",
        "red": "\033[31m",
        "green": "\033[32m",
        "yellow": "\033[33m",
        "cyan": "\033[36m",
    }

    def __init__(self, verbose: bool = False, color: bool = True):
        self.verbose = verbose
        self.color = color

    def _c(self, text: str, *colors: str) -> str:
        """Apply colors if enabled."""
        if not self.color:
            return text
        codes = "".join(self.COLORS.get(c, "") for c in colors)
        return f"{codes}{text}{self.COLORS['reset']}"

    def handle_event(self, event: ScanEvent) -> None:
        handler = getattr(self, f"_handle_{event.event_type.value}", None)
        if handler:
            handler(event)

    def _handle_progress(self, event: ScanEvent) -> None:
        if self.verbose:
            data = event.data
            print(self._c(f"  [{data['current']}/{data['total']}] {data['ip']}", "dim"))

    def _handle_found(self, event: ScanEvent) -> None:
        printer = event.data["printer"]
        status = self._c("FOUND", "green", "bold")
        print(f"  {status}: {printer.ip:<15} {printer.brand.value:<8} "
              f"{printer.model} ({printer.hostname})")

    def _handle_complete(self, event: ScanEvent) -> None:
        data = event.data
        print()
        if data.get("cancelled"):
            print(self._c(f"Scan cancelled: {data['count']} printers found", "yellow", "bold"))
        else:
            print(self._c(f"Scan complete: {data['count']} printers found", "cyan", "bold"))

    def _handle_error(self, event: ScanEvent) -> None:
        print(f"  {self._c('ERROR', 'red', 'bold')}: {event.data['message']}")
