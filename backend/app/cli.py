from __future__ import annotations

import argparse
import asyncio
import json

import uvicorn

from app.clients.signal_feed import SignalFeedClient
from app.core.config import get_settings
from app.core.database import AsyncSessionLocal, create_all_tables, engine
from app.core.logging import setup_logging
from app.services.analytics import build_analytics
from app.services.signals import generate_active_signals, list_signals, seed_dashboard

SPORT_CHOICES = ["NFL", "NBA", "MLB", "NHL", "NCAAF", "NCAAB"]
MARKET_TYPE_CHOICES = ["Moneyline", "Spread", "Total", "Player Props"]
CONFIDENCE_CHOICES = ["low", "medium", "high"]


def _add_filter_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--sport", choices=SPORT_CHOICES, default=None)
    parser.add_argument("--market-type", choices=MARKET_TYPE_CHOICES, default=None)
    parser.add_argument("--min-confidence", choices=CONFIDENCE_CHOICES, default=None)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Signalry operational CLI")
    subparsers = parser.add_subparsers(dest="command")

    init_parser = subparsers.add_parser("init", help="Replace stored markets and signals with fresh mock data")
    init_parser.add_argument("--create-tables", action="store_true", help="Create database tables first")

    generate_parser = subparsers.add_parser("generate", help="Generate signals from the most volatile markets")
    generate_parser.add_argument("--count", type=int, default=5, help="Markets to consider")

    signals_parser = subparsers.add_parser("signals", help="Print the filtered signal feed")
    _add_filter_arguments(signals_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    subparsers.add_parser("analytics", help="Print the analytics summary")

    watch_parser = subparsers.add_parser("watch", help="Poll a running API and print new signals as they appear")
    watch_parser.add_argument("--base-url", default=None, help="API base URL including the /api/v1 prefix")
    watch_parser.add_argument("--interval", type=float, default=None, help="Seconds between polls")
    watch_parser.add_argument("--max-polls", type=int, default=None, help="Stop after N polls")
    _add_filter_arguments(watch_parser)

    return parser


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True, default=str))


async def _run_init(create_tables: bool) -> int:
    if create_tables:
        await create_all_tables(engine)
    async with AsyncSessionLocal() as db:
        markets, signals = await seed_dashboard(db)
    _print_json({"success": True, "markets": len(markets), "signals": len(signals)})
    return 0


async def _run_generate(count: int) -> int:
    async with AsyncSessionLocal() as db:
        signals = await generate_active_signals(db, count=max(1, int(count)))
    _print_json({"signals": [signal.model_dump(mode="json") for signal in signals]})
    return 0


async def _run_signals(sport: str | None, market_type: str | None, min_confidence: str | None) -> int:
    async with AsyncSessionLocal() as db:
        signals = await list_signals(db, sport=sport, market_type=market_type, min_confidence=min_confidence)
    _print_json({"signals": [signal.model_dump(mode="json") for signal in signals]})
    return 0


async def _run_analytics() -> int:
    async with AsyncSessionLocal() as db:
        summary = await build_analytics(db)
    _print_json(summary.model_dump(mode="json"))
    return 0


async def _run_watch(args: argparse.Namespace) -> int:
    async with SignalFeedClient(args.base_url) as client:
        async for signal in client.watch(
            interval_seconds=args.interval,
            sport=args.sport,
            market_type=args.market_type,
            min_confidence=args.min_confidence,
            max_polls=args.max_polls,
        ):
            print(json.dumps(signal.model_dump(mode="json"), sort_keys=True))
    return 0


def main() -> int:
    parser = _build_arg_parser()
    args = parser.parse_args()
    if args.command == "serve":
        settings = get_settings()
        uvicorn.run(
            "app.main:app",
            host=args.host or settings.app_host,
            port=args.port or settings.app_port,
            reload=args.reload,
            log_config=None,
        )
        return 0
    setup_logging()
    if args.command == "init":
        return asyncio.run(_run_init(args.create_tables))
    if args.command == "generate":
        return asyncio.run(_run_generate(args.count))
    if args.command == "signals":
        return asyncio.run(_run_signals(args.sport, args.market_type, args.min_confidence))
    if args.command == "analytics":
        return asyncio.run(_run_analytics())
    if args.command == "watch":
        try:
            return asyncio.run(_run_watch(args))
        except KeyboardInterrupt:
            return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
