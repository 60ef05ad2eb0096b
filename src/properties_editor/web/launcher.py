"""Standalone launcher for the properties-editor web app.

Starts uvicorn on a free port, waits for the server to answer /health, then
opens the default browser.

Usage:
    python -m properties_editor.web [--port PORT] [--no-browser]
"""

from __future__ import annotations

import argparse
import signal
import socket
import subprocess
import sys
import time
import urllib.error
import urllib.request
import webbrowser
from pathlib import Path
from subprocess import DEVNULL

# Directory holding the properties_editor package (src/ in a checkout)
_PACKAGE_ROOT = Path(__file__).resolve().parents[2]


def find_free_port(start: int = 8400, end: int = 8500) -> int:
    """Return the first free TCP port in [start, end)."""
    for port in range(start, end):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(("127.0.0.1", port))
                return port
            except OSError:
                continue
    raise RuntimeError(f"No free port between {start} and {end}.")


def wait_for_health(url: str, timeout: float = 15.0) -> bool:
    """Poll *url* every 200 ms until it returns HTTP 200 or *timeout* elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with urllib.request.urlopen(url, timeout=1) as resp:
                if resp.status == 200:
                    return True
        except (urllib.error.URLError, OSError):
            pass
        time.sleep(0.2)
    return False


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Properties Editor web server")
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="TCP port to use (default: first free port in 8400-8500)",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        help="Do not open the browser once the server is ready",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    port = args.port if args.port is not None else find_free_port()

    health_url = f"http://127.0.0.1:{port}/health"
    app_url = f"http://127.0.0.1:{port}"

    print(f"Properties Editor: starting server on port {port}…")

    proc = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "properties_editor.web.app:app",
            "--port",
            str(port),
            "--host",
            "127.0.0.1",
            "--app-dir",
            str(_PACKAGE_ROOT),
        ],
        stdout=DEVNULL,
        # stderr stays on the terminal so startup errors are visible
    )

    def stop(signum=None, frame=None) -> None:
        print("\nStopping Properties Editor…")
        proc.terminate()
        sys.exit(0)

    signal.signal(signal.SIGINT, stop)
    signal.signal(signal.SIGTERM, stop)

    if not wait_for_health(health_url):
        if proc.poll() is not None:
            print("Error: the server exited unexpectedly.", file=sys.stderr)
        else:
            print("Error: the server did not start in time.", file=sys.stderr)
            proc.terminate()
        sys.exit(1)

    print(f"Server ready → {app_url}")
    if not args.no_browser:
        webbrowser.open(app_url)
    print("Press Ctrl+C to stop.")
    proc.wait()
