from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import List, Optional, Set

from pydantic import ValidationError

from .client import FortigateClient
from .config import settings
from .models import ConnectionSettings, LogRecord
from .monitor import LogMonitor
from .storage import SettingsStore


def _connection_from_args(args: argparse.Namespace, store: SettingsStore) -> ConnectionSettings:
    saved = store.load_settings() or ConnectionSettings()
    overrides = {
        "host": args.host,
        "port": args.port,
        "protocol": args.protocol,
        "username": args.username,
        "password": args.password,
        "refresh_interval": args.interval,
    }
    data = saved.model_dump()
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ConnectionSettings.model_validate(data)


def _format(log: LogRecord) -> str:
    return f"{log.timestamp} {log.level.upper():<7} {log.action:<9} {log.source:<15} {log.message}"


async def _tail(conn: ConnectionSettings, *, mock: bool, once: bool) -> int:
    monitor = LogMonitor(conn, mock)
    printed: Set[str] = set()
    try:
        while True:
            await monitor.refresh()
            if monitor.error:
                logging.error(monitor.error)
                if once:
                    return 1
            fresh: List[LogRecord] = [log for log in monitor.logs if log.id not in printed]
            # Buffer is newest first; print oldest first.
            for log in reversed(fresh):
                print(_format(log))
                printed.add(log.id)
            if once:
                return 0
            await asyncio.sleep(conn.refresh_interval)
    finally:
        await monitor.close()


async def _test(conn: ConnectionSettings, *, mock: bool) -> int:
    client = FortigateClient(conn, mock)
    try:
        result = await client.test_connection()
    finally:
        await client.aclose()
    print(result.message)
    return 0 if result.success else 1


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="fortilog", description="Poll FortiGate security logs.")
    ap.add_argument("--state", default=settings.state_path, help="Settings store path")
    ap.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    sub = ap.add_subparsers(dest="command", required=True)

    for name, help_text in (("tail", "Print logs as they arrive"), ("test", "Test the appliance connection")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--host", default=None)
        p.add_argument("--port", default=None)
        p.add_argument("--protocol", choices=["http", "https"], default=None)
        p.add_argument("--username", default=None)
        p.add_argument("--password", default=None)
        p.add_argument("--interval", type=int, default=None, help="Seconds between polls")
        mode = p.add_mutually_exclusive_group()
        mode.add_argument("--mock", dest="mock", action="store_true", default=None, help="Use sample data")
        mode.add_argument("--live", dest="mock", action="store_false", default=None, help="Contact the appliance")
        if name == "tail":
            p.add_argument("--once", action="store_true", help="Fetch a single batch and exit")

    p = sub.add_parser("serve", help="Run the JSON API")
    p.add_argument("--bind", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    store = SettingsStore(args.state)

    if args.command == "serve":
        import uvicorn

        from .app import create_app

        uvicorn.run(create_app(store), host=args.bind, port=args.port)
        return 0

    try:
        conn = _connection_from_args(args, store)
    except ValidationError as e:
        print(f"invalid settings: {e}", file=sys.stderr)
        return 2

    mock = store.load_mock_mode() if args.mock is None else bool(args.mock)
    if args.command == "test":
        return asyncio.run(_test(conn, mock=mock))

    if not conn.is_configured:
        print("no appliance configured: pass --host and --username", file=sys.stderr)
        return 2
    try:
        return asyncio.run(_tail(conn, mock=mock, once=bool(args.once)))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
