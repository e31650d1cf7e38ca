"""Helper utilities for tests."""

from pathlib import Path
from typing import List
import sqlite3


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> List[str]:
    """Apply every SQL migration to a bare connection and record it.

    Migrations are recorded in schema_migrations the same way
    DatabaseManager does, so status checks against the connection agree.

    Returns:
        The migration file names, in apply order.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
        """
    )

    applied = []
    for migration_file in sorted(migrations_dir.glob("*.sql")):
        conn.executescript(migration_file.read_text())
        conn.execute(
            "INSERT INTO schema_migrations (migration_file) VALUES (?)",
            (migration_file.name,),
        )
        applied.append(migration_file.name)

    conn.commit()
    return applied
