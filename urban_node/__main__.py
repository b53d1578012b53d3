# urban_node/__main__.py
"""
Entry point for running the node as a module:
    python -m urban_node [--config-root DIR] serve [--host 127.0.0.1] [--port 8000]
    python -m urban_node [--config-root DIR] list
    python -m urban_node [--config-root DIR] stats
Env toggles:
  URBAN_DIRECTORY_DRIVER=memory|file|http
  URBAN_DIRECTORY_URL=...     -> remote directory for the http driver
  URBAN_DIRECTORY_TOKEN=...   -> bearer token for directory writes
  URBAN_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from datetime import datetime, timezone

from .config import get_bind_host, get_bind_port, get_log_level, load_config
from .settings import settings
from .shared_runtime import UrbanRuntime
from .urban_runtime.errors import UrbanError
from .urban_runtime.repository import status_counts


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        prog="urban-node",
        description="Urban development proposals with signature-gated vote disclosure",
    )
    p.add_argument(
        "--config-root",
        default=os.environ.get("URBAN_CONFIG_ROOT", settings.CONFIG_ROOT),
        help="Directory holding urban_config.yaml",
    )
    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind address (default: from config)")
    serve.add_argument("--port", type=int, default=None, help="Port (default: from config)")

    sub.add_parser("list", help="Print proposals, newest first")
    sub.add_parser("stats", help="Print proposal counters")
    return p.parse_args(argv)


async def _list(rt: UrbanRuntime) -> int:
    proposals = await rt.repository.list_all()
    if not proposals:
        print("No proposals.")
    for p in proposals:
        when = datetime.fromtimestamp(p.created_at, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
        print(f"[{p.id}] {when} {p.location:<12} {p.status.value:<9} {p.title}")
    return 0


async def _stats(rt: UrbanRuntime) -> int:
    counts = status_counts(await rt.repository.list_all())
    for key in ("total", "pending", "approved", "rejected"):
        print(f"{key:<9} {counts[key]}")
    return 0


async def _run_offline(cfg, command: str) -> int:
    rt = UrbanRuntime.from_config(cfg)
    try:
        if command == "list":
            return await _list(rt)
        return await _stats(rt)
    finally:
        await rt.aclose()


def main(argv=None):
    args = parse_args(argv)
    cfg = load_config(args.config_root)

    logging.basicConfig(
        level=getattr(logging, get_log_level(cfg), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.command == "serve":
        import uvicorn

        from .urban_api import create_app

        host = args.host or get_bind_host(cfg)
        port = args.port or get_bind_port(cfg)
        uvicorn.run(create_app(cfg=cfg), host=host, port=port)
        return 0

    try:
        return asyncio.run(_run_offline(cfg, args.command))
    except UrbanError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
