#!/usr/bin/env python3
"""
Launcher for the TRON wallet MCP server.

Spawns ``python -m tron_wallet_mcp_server`` in stdio mode (default) or HTTP
mode (``--http``), forwards SIGINT / SIGTERM to it and exits with its status.
"""

from __future__ import annotations

import argparse
import signal
import subprocess
import sys
from typing import Any

SERVER_MODULE = "tron_wallet_mcp_server"
FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def build_command(http: bool = False, host: str | None = None, port: int | None = None) -> list[str]:
    cmd = [sys.executable, "-m", SERVER_MODULE]
    if http:
        cmd.append("--http")
        if host:
            cmd.extend(["--host", host])
        if port:
            cmd.extend(["--port", str(port)])
    return cmd


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tron-mcp", description="Start the TRON MCP server.")
    parser.add_argument("--http", action="store_true", help="Serve over HTTP/SSE instead of stdio")
    parser.add_argument("--host", default=None, help="HTTP bind host")
    parser.add_argument("--port", type=int, default=None, help="HTTP port")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    mode = "HTTP" if args.http else "stdio"
    print(f"Starting TRON MCP Server in {mode} mode...", file=sys.stderr)

    try:
        proc = subprocess.Popen(build_command(args.http, args.host, args.port))
    except OSError as exc:
        print(f"Failed to start server: {exc}", file=sys.stderr)
        return 1

    def _forward(signum: int, _frame: Any) -> None:
        if proc.poll() is None:
            proc.send_signal(signum)

    previous = {sig: signal.signal(sig, _forward) for sig in FORWARDED_SIGNALS}
    try:
        returncode = proc.wait()
        # Killed by a signal: report it the way a shell would.
        return 128 - returncode if returncode < 0 else returncode
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        if proc.poll() is None:
            proc.terminate()


if __name__ == "__main__":
    sys.exit(main())
