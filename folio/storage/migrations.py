"""Schema migrations for the ledger database.

Migrations live in ``folio/migrations/NNN_description.sql``.  Each file
records itself in ``_schema_version`` and runs at most once.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from folio.storage.database import Database

logger = logging.getLogger(__name__)

MIGRATION_DIR = Path(__file__).parent.parent / "migrations"
MIGRATION_PATTERN = re.compile(r"^(\d{3})_.*\.sql$")


def discover_migrations(directory: Path = MIGRATION_DIR) -> list[tuple[int, str, str]]:
    """(version, filename, sql) for every migration file, in version order."""
    if not directory.exists():
        logger.warning("Migration directory not found: %s", directory)
        return []

    found = []
    for sql_file in directory.glob("*.sql"):
        match = MIGRATION_PATTERN.match(sql_file.name)
        if match:
            found.append((int(match.group(1)), sql_file.name, sql_file.read_text()))
    return sorted(found)


def ensure_schema(db: Database) -> int:
    """Apply pending migrations and return the resulting schema version."""
    current = db.schema_version()
    pending = [m for m in discover_migrations() if m[0] > current]

    for version, name, sql in pending:
        logger.info("Applying migration %s (v%d -> v%d)", name, current, version)
        try:
            db.executescript(sql)
        except Exception as e:
            raise RuntimeError(f"Migration {name} failed: {e}") from e
        current = version

    if not pending:
        logger.debug("Schema up to date (version %d)", current)
    return current
