"""SQLite schema migrations for the moderation store."""

import sqlite3
from dataclasses import dataclass
from datetime import UTC, datetime

import structlog

from src.store.errors import MigrationError


logger = structlog.get_logger()

# Current schema version
CURRENT_VERSION = 1


@dataclass(frozen=True)
class Migration:
    """A database migration.

    Attributes:
        version: Target version after applying this migration.
        description: Human-readable description.
        up_sql: SQL to apply the migration.
    """

    version: int
    description: str
    up_sql: str


MIGRATIONS: list[Migration] = [
    Migration(
        version=1,
        description="Moderation records, review audit log and published view",
        up_sql="""
-- Records table: one row per processed submission, decision fixed at insert
CREATE TABLE IF NOT EXISTS records (
    id TEXT PRIMARY KEY,
    canonical_url TEXT,
    url_claim TEXT UNIQUE,
    title_key TEXT NOT NULL,
    decision TEXT NOT NULL,
    priority TEXT NOT NULL,
    category TEXT,
    reason_codes_json TEXT NOT NULL,
    duplicate_of_json TEXT NOT NULL,
    submission_json TEXT NOT NULL,
    analysis_json TEXT,
    created_at TEXT NOT NULL,
    reviewed_at TEXT,
    reviewer_id TEXT
);
CREATE INDEX IF NOT EXISTS idx_records_canonical_url ON records(canonical_url);
CREATE INDEX IF NOT EXISTS idx_records_title_key ON records(title_key);
CREATE INDEX IF NOT EXISTS idx_records_decision ON records(decision);

-- Audit log: append-only human review transitions
CREATE TABLE IF NOT EXISTS audit_log (
    entry_id TEXT PRIMARY KEY,
    record_id TEXT NOT NULL REFERENCES records(id),
    outcome TEXT NOT NULL,
    reviewer_id TEXT NOT NULL,
    note TEXT,
    created_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_audit_log_record_id ON audit_log(record_id);

-- Published view: projection of auto-approved or review-approved records
CREATE TABLE IF NOT EXISTS published_content (
    record_id TEXT PRIMARY KEY REFERENCES records(id),
    published_at TEXT NOT NULL
);
""",
    ),
]


class MigrationManager:
    """Manages SQLite schema migrations."""

    VERSION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL,
    description TEXT
);
"""

    def __init__(self, connection: sqlite3.Connection) -> None:
        """Initialize the migration manager.

        Args:
            connection: SQLite connection to manage.
        """
        self._conn = connection
        self._log = logger.bind(component="store", operation="migration")

    def get_current_version(self) -> int:
        """Get the current schema version.

        Returns:
            Current version number, or 0 if no migrations applied.
        """
        self._conn.execute(self.VERSION_TABLE_SQL)
        self._conn.commit()
        row = self._conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    def apply_migrations(self) -> list[int]:
        """Apply all pending migrations.

        Returns:
            List of version numbers that were applied.

        Raises:
            MigrationError: If a migration fails to apply.
        """
        current = self.get_current_version()
        pending = [m for m in MIGRATIONS if m.version > current]

        if not pending:
            self._log.info("no_migrations_pending", current_version=current)
            return []

        applied: list[int] = []
        for migration in pending:
            self._log.info(
                "applying_migration",
                version=migration.version,
                description=migration.description,
            )
            try:
                self._conn.executescript(migration.up_sql)
                self._conn.execute(
                    """
                    INSERT INTO schema_version (version, applied_at, description)
                    VALUES (?, ?, ?)
                    """,
                    (
                        migration.version,
                        datetime.now(UTC).isoformat(),
                        migration.description,
                    ),
                )
                self._conn.commit()
            except sqlite3.Error as e:
                self._log.error(
                    "migration_failed", version=migration.version, error=str(e)
                )
                self._conn.rollback()
                raise MigrationError(migration.version, str(e)) from e

            applied.append(migration.version)
            self._log.info("migration_applied", version=migration.version)

        return applied
