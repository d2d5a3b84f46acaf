# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Industry Lock CLI: resolve, classify, filter, canary, serve commands.

Usage:
    industrylock resolve URL [--description TEXT] [--override KEY] [--no-ai]
    industrylock classify URL [--description TEXT]
    industrylock filter INDUSTRY INTENT [INTENT ...]
    industrylock canary
    industrylock serve [--host HOST] [--port PORT]

``--kv PATH`` (before the command) backs the config document with SQLite;
otherwise the compiled-in tables are used and write-backs stay in memory.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Any

from industrylock import IndustrySignals
from industrylock.errors import IndustryLockError
from industrylock.logging_config import configure
from industrylock.settings import ClassifierSettings, ResolverSettings, ServiceSettings

if TYPE_CHECKING:
    from industrylock.classifier import IndustryClassifier
    from industrylock.kv_store import KVStoreProtocol
    from industrylock.resolver import IndustryResolver
    from industrylock.rule_store import IndustryConfig

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8080


@dataclass
class _Components:
    config: IndustryConfig
    classifier: IndustryClassifier
    resolver: IndustryResolver
    kv_store: KVStoreProtocol | None = None

    async def aclose(self) -> None:
        await self.classifier.aclose()
        if self.kv_store is not None:
            await self.kv_store.close()


async def _build_components(kv_path: Path | None, resolver_settings: ResolverSettings | None = None) -> _Components:
    """Store, config, classifier and resolver wired together. Config not yet loaded."""
    from industrylock.classifier import IndustryClassifier
    from industrylock.resolver import IndustryResolver
    from industrylock.rule_store import IndustryConfig

    kv_store = None
    if kv_path is not None:
        from industrylock.kv_store_sqlite import SqliteKVStore

        kv_store = await SqliteKVStore.create(kv_path)

    config = IndustryConfig.default()
    classifier = IndustryClassifier(ClassifierSettings.from_env())
    resolver = IndustryResolver(
        config,
        classifier=classifier,
        kv_store=kv_store,
        settings=resolver_settings or ResolverSettings.from_env(),
    )
    return _Components(config=config, classifier=classifier, resolver=resolver, kv_store=kv_store)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _kv_path(args: argparse.Namespace) -> Path | None:
    if args.kv:
        return Path(args.kv)
    return ServiceSettings.from_env().kv_path


# ── Commands ─────────────────────────────────────────────────────────


async def _resolve(args: argparse.Namespace) -> dict[str, Any]:
    from industrylock.resolver import ResolveContext
    from industrylock.signals import extract_domain

    settings = ResolverSettings.from_env()
    if args.no_ai:
        settings = replace(settings, ai_classify_enabled=False)

    parts = await _build_components(_kv_path(args), settings)
    try:
        await parts.config.load(parts.kv_store)
        url = args.url if "://" in args.url else f"https://{args.url}"
        description = args.description or None
        signals = IndustrySignals(
            domain=extract_domain(url),
            keywords=tuple(description.lower().split()) if description else (),
            site_description=description,
        )
        lock = await parts.resolver.resolve(
            ResolveContext(signals=signals, override=args.override, root_url=url, site_description=description)
        )
        return lock.to_dict()
    finally:
        await parts.aclose()


def cmd_resolve(args: argparse.Namespace) -> None:
    """Resolve the locked industry for a URL."""
    _print_json(asyncio.run(_resolve(args)))


async def _classify(args: argparse.Namespace) -> dict[str, Any]:
    from industrylock.classifier import IndustryClassifier
    from industrylock.signals import extract_domain

    url = args.url if "://" in args.url else f"https://{args.url}"
    classifier = IndustryClassifier(ClassifierSettings.from_env())
    try:
        result = await classifier.classify(extract_domain(url), url, site_description=args.description)
        return result.to_dict()
    finally:
        await classifier.aclose()


def cmd_classify(args: argparse.Namespace) -> None:
    """Run the classifier alone (no domain rules, no thresholds)."""
    _print_json(asyncio.run(_classify(args)))


def cmd_filter(args: argparse.Namespace) -> None:
    """Filter intents against an industry's pack. Kept intents go to stdout."""
    from industrylock.intent_filter import filter_intents
    from industrylock.rule_store import IndustryConfig

    config = IndustryConfig.default()
    kept = filter_intents(args.intents, args.industry, config)
    _print_json({"industry": args.industry, "kept": kept, "dropped": [i for i in args.intents if i not in kept]})


async def _canary(args: argparse.Namespace) -> tuple[dict[str, Any], bool]:
    from industrylock.canary import run_canary

    parts = await _build_components(_kv_path(args))
    try:
        await parts.config.load(parts.kv_store)
        report = await run_canary(parts.resolver)
        return report.to_dict(), report.passed
    finally:
        await parts.aclose()


def cmd_canary(args: argparse.Namespace) -> None:
    """Run the canary table; exit status 1 when it fails."""
    report, passed = asyncio.run(_canary(args))
    _print_json(report)
    if not passed:
        sys.exit(1)


async def _serve(args: argparse.Namespace) -> None:
    import uvicorn

    from industrylock.server import create_app

    parts = await _build_components(_kv_path(args))
    app = create_app(parts.config, parts.classifier, parts.resolver, kv_store=parts.kv_store)
    config = uvicorn.Config(app, host=args.host, port=args.port, log_config=None)
    server = uvicorn.Server(config)
    await server.serve()


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the HTTP service."""
    asyncio.run(_serve(args))


# ── Entry point ──────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Industry Lock CLI", prog="industrylock")
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--kv", type=str, metavar="PATH", help="SQLite file backing the config document")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p_resolve = subparsers.add_parser(
        "resolve",
        help="Resolve the locked industry for a URL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  %(prog)s https://www.toyota.com                     Domain rule hit
  %(prog)s acme-motors.com --description "Used cars"  Heuristics / classifier
  %(prog)s example.com --override saas_b2b             Explicit override""",
    )
    p_resolve.add_argument("url", metavar="URL")
    p_resolve.add_argument("--description", type=str, help="Site description used as a signal")
    p_resolve.add_argument("--override", type=str, metavar="KEY", help="Force this industry")
    p_resolve.add_argument("--no-ai", action="store_true", help="Skip the classifier tier")

    p_classify = subparsers.add_parser("classify", help="Run the classifier on a URL")
    p_classify.add_argument("url", metavar="URL")
    p_classify.add_argument("--description", type=str, help="Site description used as a signal")

    p_filter = subparsers.add_parser("filter", help="Filter intents by industry pack")
    p_filter.add_argument("industry", metavar="INDUSTRY")
    p_filter.add_argument("intents", metavar="INTENT", nargs="+")

    subparsers.add_parser("canary", help="Run the canary table through the resolver")

    p_serve = subparsers.add_parser("serve", help="Start the HTTP service")
    p_serve.add_argument("--host", type=str, default=DEFAULT_HOST)
    p_serve.add_argument("--port", type=int, default=DEFAULT_PORT)

    return parser


COMMANDS = {
    "resolve": cmd_resolve,
    "classify": cmd_classify,
    "filter": cmd_filter,
    "canary": cmd_canary,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    service = ServiceSettings.from_env()
    level = "DEBUG" if args.verbose else service.log_level
    configure(json_output=service.log_json or args.command == "serve", level=level)

    try:
        COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)
    except SystemExit:
        raise
    except (IndustryLockError, OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc(file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
