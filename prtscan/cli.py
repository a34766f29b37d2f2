#!/usr/bin/env python3
"""
prtscan - Command Line Interface.

Usage:
    # Sweep a subnet for printers
    prtscan scan 192.168.1.1-254

    # Machine-readable event stream
    prtscan scan 10.0.0.1-254 10.0.1.1-254 --json

    # Query one printer
    prtscan query 192.168.1.50 --brand BROTHER

    # Sync a known printer, following a DHCP move via its hostname
    prtscan sync 192.168.1.50 --brand RICOH --hostname prt-accounting.corp.local

    # Run the HTTP API
    prtscan serve --port 8088
"""

import argparse
import asyncio
import json
import logging
import sys

from pydantic import ValidationError

from . import __version__
from .config import load_settings
from .events import ConsoleEventPrinter, EventEmitter, ScanEvent
from .models import PrinterRecord
from .query import PrinterQueryEngine
from .scanner import NetworkScanner

log = logging.getLogger("prtscan.cli")


def setup_logging(level: str = "WARNING"):
    """Configure the root handler with colored level names"""

    use_color = sys.stderr.isatty()

    class ColorFormatter(logging.Formatter):
        COLORS = {
            'DEBUG': '\033[36m',    # Cyan
            'INFO': '\033[32m',     # Green
            'WARNING': '\033[33m',  # Yellow
            'ERROR': '\033[31m',    # Red
            'CRITICAL': '\033[35m', # Magenta
        }
        RESET = '\033[0m'

        def format(self, record):
            if use_color:
                color = self.COLORS.get(record.levelname, self.RESET)
                record.levelname = f"{color}{record.levelname:8}{self.RESET}"
            else:
                record.levelname = f"{record.levelname:8}"
            return super().format(record)

    log_level = getattr(logging, level.upper(), logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColorFormatter(
        '%(asctime)s | %(levelname)s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # pysnmp is chatty at DEBUG
    for name in ('pysnmp', 'asyncio'):
        logging.getLogger(name).setLevel(logging.WARNING)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--config',
        help='YAML settings file'
    )
    common.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Verbose output (-vv for debug logging)'
    )

    parser = argparse.ArgumentParser(
        prog='prtscan',
        description='SNMP printer discovery and query engine',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a /24 with the default community list
  prtscan scan 192.168.1.1-254

  # Scan with specific communities, NDJSON events on stdout
  prtscan scan 10.0.0.1-254 -c public -c corp-ro --json

  # Query one printer
  prtscan query 192.168.1.50 --brand BROTHER

  # Sync with hostname fallback
  prtscan sync 192.168.1.50 --brand RICOH --hostname prt-01.corp.local

  # HTTP API on all interfaces
  prtscan serve --host 0.0.0.0 --port 8088
        """
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'prtscan {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Scan
    scan_parser = subparsers.add_parser(
        'scan',
        parents=[common],
        help='Discover printers on address ranges'
    )
    scan_parser.add_argument(
        'ranges',
        nargs='+',
        help='Ranges like 192.168.1.1-254, or single IPs'
    )
    scan_parser.add_argument(
        '--json',
        action='store_true',
        help='Print events as NDJSON instead of console lines'
    )
    scan_parser.add_argument(
        '--batch-size',
        type=int,
        dest='scan_batch_size',
        help='Hosts probed in parallel (default: 80)'
    )
    scan_parser.add_argument(
        '-c', '--community',
        action='append',
        dest='communities',
        help='Community string to try (repeatable, in order)'
    )

    # Query
    query_parser = subparsers.add_parser(
        'query',
        parents=[common],
        help='Query one printer'
    )
    query_parser.add_argument('ip', help='Printer IP address')
    query_parser.add_argument(
        '-b', '--brand',
        help='Printer brand (BROTHER, RICOH, PANTUM, HP, ...)'
    )
    query_parser.add_argument(
        '-c', '--community',
        default='public',
        help='SNMP community string (default: public)'
    )
    query_parser.add_argument(
        '--json',
        action='store_true',
        help='Print the record as JSON'
    )

    # Sync
    sync_parser = subparsers.add_parser(
        'sync',
        parents=[common],
        help='Refresh a known printer, following IP changes'
    )
    sync_parser.add_argument('ip', help='Last known IP address')
    sync_parser.add_argument(
        '-b', '--brand',
        required=True,
        help='Printer brand'
    )
    sync_parser.add_argument(
        '--hostname',
        help='Hostname to re-resolve if the IP stops answering'
    )
    sync_parser.add_argument(
        '-c', '--community',
        help='SNMP community string (default: public)'
    )
    sync_parser.add_argument(
        '--json',
        action='store_true',
        help='Print the sync result as JSON'
    )

    # Serve
    serve_parser = subparsers.add_parser(
        'serve',
        parents=[common],
        help='Run the HTTP API'
    )
    serve_parser.add_argument(
        '--host',
        default='127.0.0.1',
        help='Bind address (default: 127.0.0.1)'
    )
    serve_parser.add_argument(
        '--port',
        type=int,
        default=8088,
        help='Listen port (default: 8088)'
    )

    return parser


class JsonEventPrinter:
    """Writes each scan event as one NDJSON line on stdout."""

    def handle_event(self, event: ScanEvent) -> None:
        sys.stdout.write(event.to_json())
        sys.stdout.flush()


def print_record(record: PrinterRecord) -> None:
    print(f"{'=' * 60}")
    print(f"PRINTER: {record.model}")
    print(f"{'=' * 60}")
    print(f"IP Address:   {record.ip}")
    print(f"Hostname:     {record.hostname}")
    print(f"Brand:        {record.brand.value}")
    print(f"Serial:       {record.serial}")
    print(f"Firmware:     {record.firmware}")
    print(f"Status:       {record.status.value}")
    if record.page_count is not None:
        print(f"Page count:   {record.page_count}")
    if record.pages_until_service is not None:
        print(f"Next service: {record.pages_until_service} pages")

    print(f"\nLevels{' (estimated)' if record.levels_estimated else ''}:")
    for color, level in record.levels.items():
        print(f"  {color:<8} {level:>3}%")

    if record.components:
        print(f"\nComponents:")
        for name, level in record.components.items():
            print(f"  {name:<10} {level:>3}%")

    if record.faults:
        print(f"\nFaults:")
        for fault in record.faults:
            print(f"  - {fault}")


async def cmd_scan(args, settings) -> int:
    """Scan ranges and print events."""
    emitter = EventEmitter()
    if args.json:
        emitter.subscribe(JsonEventPrinter().handle_event)
    else:
        emitter.subscribe(ConsoleEventPrinter(verbose=args.verbose > 0).handle_event)
        print(f"Scanning {', '.join(args.ranges)} (batch size {settings.scan_batch_size})")
        print()

    scanner = NetworkScanner(settings=settings, emitter=emitter)
    try:
        printers = await scanner.scan(args.ranges)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    return 0 if printers else 1


async def cmd_query(args, settings) -> int:
    """Query a single printer."""
    engine = PrinterQueryEngine(settings)
    record = await engine.query_ip(args.ip, args.brand, args.community)

    if args.json:
        print(record.to_json())
    else:
        print_record(record)
    return 0 if record.snmp_available else 1


async def cmd_sync(args, settings) -> int:
    """Sync a known printer."""
    engine = PrinterQueryEngine(settings)
    result = await engine.sync_printer(
        args.ip, args.brand, community=args.community, hostname=args.hostname
    )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif not result.success:
        print(f"ERROR: {result.error}")
    else:
        if result.ip_updated:
            print(f"IP changed: {result.previous_ip} -> {result.ip}\n")
        print_record(result.record)
    return 0 if result.success else 1


def cmd_serve(args, settings) -> int:
    """Run the API under uvicorn."""
    import uvicorn
    from .server import create_app

    print(f"prtscan v{__version__} API on http://{args.host}:{args.port}")
    print(f"  Docs: http://{args.host}:{args.port}/docs")
    uvicorn.run(
        create_app(settings),
        host=args.host,
        port=args.port,
        log_level="warning",  # We handle our own logging
        access_log=False,
    )
    return 0


def main():
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(('WARNING', 'INFO', 'DEBUG')[min(args.verbose, 2)])

    overrides = {}
    if args.command == 'scan':
        overrides = {
            'scan_batch_size': args.scan_batch_size,
            'communities': args.communities,
        }
    try:
        settings = load_settings(args.config, **overrides)
    except (OSError, ValueError, ValidationError) as e:
        print(f"ERROR: Invalid settings: {e}", file=sys.stderr)
        return 2

    log.debug(f"Settings: {settings.model_dump()}")

    if args.command == 'scan':
        return asyncio.run(cmd_scan(args, settings))
    elif args.command == 'query':
        return asyncio.run(cmd_query(args, settings))
    elif args.command == 'sync':
        return asyncio.run(cmd_sync(args, settings))
    elif args.command == 'serve':
        return cmd_serve(args, settings)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
