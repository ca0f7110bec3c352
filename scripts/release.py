"""
Release step: migrate the schema to head, then make sure the admin broker exists.

Usage:
  python scripts/release.py [--skip-seed]

DATABASE_URL is required here (no SQLite fallback), and a SQLite URL is
refused when ENV is production.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


class ReleaseError(RuntimeError):
    pass


def resolve_database_url() -> str:
    db_url = (os.environ.get("DATABASE_URL") or "").strip()
    if not db_url:
        raise ReleaseError("DATABASE_URL must be set for a release.")
    env = (os.environ.get("ENV") or "").strip().lower()
    if env in ("prod", "production") and db_url.startswith("sqlite"):
        raise ReleaseError("Refusing to release a production ENV against SQLite.")
    return db_url


def migrate(db_url: str, revision: str = "head") -> None:
    from alembic import command
    from alembic.config import Config

    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", db_url)
    command.upgrade(cfg, revision)


def run_release(*, seed: bool = True) -> None:
    db_url = resolve_database_url()

    print(f"[release] migrating to head ({db_url.split(':', 1)[0]})", flush=True)
    migrate(db_url)

    if seed:
        from scripts.init_db import seed_only

        print("[release] ensuring admin broker", flush=True)
        seed_only(database_url=db_url)
    print("[release] done", flush=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--skip-seed", action="store_true", help="only run migrations")
    args = parser.parse_args(argv)
    try:
        run_release(seed=not args.skip_seed)
    except ReleaseError as e:
        print(f"[release] {e}", file=sys.stderr, flush=True)
        sys.exit(2)


if __name__ == "__main__":
    main()
