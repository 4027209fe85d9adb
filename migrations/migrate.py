"""SQL migration runner for the SQLite store.

Applies migrations/*.sql in lexicographic order, recording each in a
_migrations table so reruns are no-ops.

Usage:
    python -m migrations.migrate                # apply pending migrations
    python -m migrations.migrate --dry-run      # show what would be applied
    python -m migrations.migrate --status       # show migration status
"""

import argparse
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

import structlog

from config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR: Path = Path(__file__).resolve().parent


def _db_path() -> Path:
    path: Path = get_settings().database._resolved_sqlite_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _ensure_tracking_table(conn: sqlite3.Connection) -> None:
    conn.execute(
        "CREATE TABLE IF NOT EXISTS _migrations ("
        "  filename TEXT PRIMARY KEY,"
        "  applied_at TEXT NOT NULL"
        ")"
    )
    conn.commit()


def _applied(conn: sqlite3.Connection) -> set[str]:
    return {r[0] for r in conn.execute("SELECT filename FROM _migrations").fetchall()}


def pending_migrations(applied: set[str], directory: Path = MIGRATIONS_DIR) -> list[Path]:
    return [f for f in sorted(directory.glob("*.sql")) if f.name not in applied]


def apply_pending(conn: sqlite3.Connection, dry_run: bool = False, directory: Path = MIGRATIONS_DIR) -> list[str]:
    """Apply what is missing on ``conn``; returns the filenames handled."""
    _ensure_tracking_table(conn)
    pending: list[Path] = pending_migrations(_applied(conn), directory)
    for migration in pending:
        logger.info("Applying migration", filename=migration.name, dry_run=dry_run)
        if dry_run:
            continue
        conn.executescript(migration.read_text(encoding="utf-8"))
        conn.execute(
            "INSERT INTO _migrations (filename, applied_at) VALUES (?, ?)",
            (migration.name, datetime.now(UTC).isoformat()),
        )
        conn.commit()
    return [m.name for m in pending]


def migrate(dry_run: bool = False, db_path: Path | None = None) -> list[str]:
    path: Path = db_path or _db_path()
    conn: sqlite3.Connection = sqlite3.connect(path)
    try:
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        done: list[str] = apply_pending(conn, dry_run=dry_run)
    finally:
        conn.close()
    if not done:
        logger.info("No pending migrations", database=path.as_posix())
    return done


def status(db_path: Path | None = None) -> None:
    path: Path = db_path or _db_path()
    conn: sqlite3.Connection = sqlite3.connect(path)
    try:
        _ensure_tracking_table(conn)
        applied: set[str] = _applied(conn)
    finally:
        conn.close()
    print(f"Database: {path.as_posix()}")
    print(f"Applied:  {len(applied)}")
    for name in sorted(applied):
        print(f"  [x] {name}")
    pending: list[Path] = pending_migrations(applied)
    print(f"Pending:  {len(pending)}")
    for p in pending:
        print(f"  [ ] {p.name}")


def main(argv: list[str] | None = None) -> None:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(description="SQL migration runner")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be applied")
    parser.add_argument("--status", action="store_true", help="Show migration status")
    args: argparse.Namespace = parser.parse_args(argv)

    if args.status:
        status()
    else:
        migrate(dry_run=args.dry_run)


if __name__ == "__main__":
    main()
