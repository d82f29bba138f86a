"""Apply the SQL files in migrations/ to the configured SQLite database.

Usage: python run_migrations.py [--db PATH]
"""
import argparse
import sqlite3
import sys
from pathlib import Path
from typing import Optional

BASE = Path(__file__).parent
MIGRATIONS_DIR = BASE / "migrations"


def sqlite_path_from_url(url: str) -> Path:
    """Return the file path of a `sqlite:///` URL; reject other backends."""
    prefix = "sqlite:///"
    if not url.startswith(prefix):
        raise ValueError(f"only sqlite URLs are supported, got {url!r}")
    return Path(url[len(prefix):])


def run(db_path: Optional[Path] = None, migrations_dir: Path = MIGRATIONS_DIR) -> list:
    """Execute every `*.sql` file in lexical order and return their names.

    Each file is written to be idempotent, so re-running is safe.
    """
    if db_path is None:
        if str(BASE) not in sys.path:
            sys.path.insert(0, str(BASE))
        from lms.config import Settings
        db_path = sqlite_path_from_url(Settings().DATABASE_URL)
    print("Using database:", db_path)
    applied = []
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for m in sorted(migrations_dir.glob("*.sql")):
            print("Applying:", m.name)
            cur.executescript(m.read_text(encoding="utf-8"))
            applied.append(m.name)
        conn.commit()
    finally:
        conn.close()
    print("Migrations applied.")
    return applied


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--db', type=Path, help='SQLite file to migrate (defaults to DATABASE_URL)')
    args = parser.parse_args()
    run(args.db)
