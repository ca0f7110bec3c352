#!/usr/bin/env python3
"""
Container entry point: release (migrate + seed), then exec gunicorn.

Environment:
  PORT               listen port (default 8080)
  WEB_CONCURRENCY    gunicorn workers (default 2)
  GUNICORN_TIMEOUT   worker timeout in seconds (default 60)
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _int_env(name: str, default: int, *, low: int, high: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = low - 1
    if not low <= value <= high:
        sys.exit(f"{name}={raw!r} is not an integer in [{low}, {high}]")
    return value


def gunicorn_argv() -> list[str]:
    port = _int_env("PORT", 8080, low=1, high=65535)
    workers = _int_env("WEB_CONCURRENCY", 2, low=1, high=64)
    timeout = _int_env("GUNICORN_TIMEOUT", 60, low=1, high=3600)
    return [
        "gunicorn",
        "app.wsgi:app",
        f"--bind=0.0.0.0:{port}",
        f"--workers={workers}",
        f"--timeout={timeout}",
        "--preload",
        "--access-logfile=-",
        "--error-logfile=-",
    ]


def main() -> None:
    argv = gunicorn_argv()

    from scripts.release import run_release

    try:
        run_release()
    except Exception as e:
        sys.exit(f"release failed, not starting: {e}")

    print("[start] " + " ".join(argv), flush=True)
    # exec: gunicorn takes over this PID and receives container signals directly
    os.execvp(argv[0], argv)


if __name__ == "__main__":
    main()
