"""
Command-line interface for the shortlink service.

Runs the services in-process against the configured store and cache.

Usage:
    shortlink-cli shorten <url> [--alias ALIAS] [--expiry TIMESTAMP]
    shortlink-cli resolve <code>
    shortlink-cli health
"""

import argparse
import asyncio
import json
import sys
from typing import Optional

from .app import build_service
from .common.logging_config import setup_logging
from .config import Config
from .errors import ShortlinkError


class ShortlinkCLI:
    """Command-line interface for shortlink."""

    def __init__(self, config: Config, verbose: bool = False):
        self.config = config
        self.logger = setup_logging(level="DEBUG" if verbose else "ERROR")
        self.service = None

    async def initialize(self):
        """Build and connect the service."""
        self.service = build_service(self.config, self.logger)
        await self.service.connect()

    async def cleanup(self):
        if self.service:
            await self.service.close()

    @staticmethod
    def _emit(payload: dict, ok: bool = True) -> int:
        print(json.dumps(payload, indent=2), file=sys.stdout if ok else sys.stderr)
        return 0 if ok else 1

    async def shorten(self, url: str, alias: Optional[str] = None, expiry: Optional[str] = None) -> int:
        """Shorten a URL."""
        try:
            result = await self.service.create(url, custom_alias=alias, expiry=expiry)
        except ShortlinkError as e:
            return self._emit({"success": False, "error": str(e), "type": type(e).__name__}, ok=False)

        return self._emit({
            "success": True,
            "code": result.code,
            "longUrl": result.long_url,
            "expiresAt": result.expires_at.isoformat() if result.expires_at else None,
            "created": result.created,
        })

    async def resolve(self, code: str) -> int:
        """Resolve a short code."""
        try:
            resolution = await self.service.resolve(code)
        except ShortlinkError as e:
            return self._emit({"success": False, "error": str(e), "type": type(e).__name__}, ok=False)

        return self._emit({
            "success": True,
            "code": code,
            "longUrl": resolution.long_url,
            "source": resolution.source,
        })

    async def health(self) -> int:
        """Check service health."""
        health_status = await self.service.health_check()
        return self._emit({"success": health_status["overall"], "health": health_status}, ok=health_status["overall"])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="shortlink CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Shorten a URL
  %(prog)s shorten https://example.com/long/url

  # Shorten with an alias that expires
  %(prog)s shorten https://example.com/long/url --alias mylink --expiry 2030-01-01T00:00:00Z

  # Resolve a code
  %(prog)s resolve mylink
        """
    )

    parser.add_argument("--database-url", help="Store URL (default: DATABASE_URL from the environment)")
    parser.add_argument("--redis-url", help="Redis URL (default: REDIS_URL from the environment)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    shorten_parser = subparsers.add_parser("shorten", help="Shorten a URL")
    shorten_parser.add_argument("url", help="URL to shorten")
    shorten_parser.add_argument("--alias", help="Custom alias")
    shorten_parser.add_argument("--expiry", help="Expiry timestamp (ISO-8601)")

    resolve_parser = subparsers.add_parser("resolve", help="Resolve a short code")
    resolve_parser.add_argument("code", help="Short code to lookup")

    subparsers.add_parser("health", help="Check store and cache health")

    return parser


async def run(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    overrides = {}
    if args.database_url:
        overrides["database_url"] = args.database_url
    if args.redis_url:
        overrides["redis_url"] = args.redis_url

    cli = ShortlinkCLI(Config(**overrides), verbose=args.verbose)

    try:
        await cli.initialize()

        if args.command == "shorten":
            return await cli.shorten(args.url, args.alias, args.expiry)
        elif args.command == "resolve":
            return await cli.resolve(args.code)
        else:
            return await cli.health()
    finally:
        await cli.cleanup()


def main():
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
