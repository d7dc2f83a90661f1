#!/usr/bin/env python3
"""
quoteshare -- Share quotes within private groups.

Usage:
  python main.py
  python main.py --port 9000
  python main.py --host 0.0.0.0 --reload

Environment variables (or .env):
  PORT              Listen port (default 8080). --port overrides it.
  ENVIRONMENT       development | staging | production (default development).
  SECRET_KEY        Token signing secret, 32+ characters. Required outside development.
  TOKEN_TTL_HOURS   Bearer token lifetime (default 24).
  DATABASE_PATH     SQLite file (default data/quoteshare.db).
  See core/config.py for the full list.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Run the quoteshare API server.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Listen port (default: {settings.port})")
    parser.add_argument(
        "--reload",
        action="store_true",
        default=False,
        help="Restart on code changes (development only)",
    )
    args = parser.parse_args()

    if args.reload and not settings.is_development:
        parser.error("--reload is only allowed when ENVIRONMENT=development")

    uvicorn.run(
        "api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
