"""
Thin statement gateway over a Ghost database connection.

:class:`GhostStore` wraps a single, already-open DB-API style connection
using the ``qmark`` parameter style (DuckDB in this project).  Statements run
one at a time in autocommit mode: there is no multi-statement transaction,
no retry and no pooling here.  Whoever opens the connection owns it and
closes it.

Usage example::

    store = GhostStore.connect("data/ghost.duckdb")
    store.create_schema()
    author_id = store.fetch_scalar(
        "SELECT user_id FROM users_migration WHERE external_id = ?", ["42"]
    )
    store.insert("posts_authors", {"id": ..., "post_id": ..., "author_id": author_id, "sort_order": 0})
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import duckdb

# The connection itself is gone.  Nothing retries, so these propagate.
CONNECTION_ERRORS = (duckdb.ConnectionException,)

###############################################################################
# Schema
###############################################################################

# The subset of the Ghost schema the importer reads or writes.  Timestamps are
# kept as the text the export supplied.
SCHEMA: Dict[str, str] = {
    "users_migration": """
        CREATE TABLE IF NOT EXISTS users_migration (
            id VARCHAR(24) PRIMARY KEY,
            user_id VARCHAR(24) NOT NULL,
            external_id VARCHAR NOT NULL UNIQUE
        )
    """,
    "tags": """
        CREATE TABLE IF NOT EXISTS tags (
            id VARCHAR(24) PRIMARY KEY,
            name VARCHAR NOT NULL,
            slug VARCHAR NOT NULL
        )
    """,
    "posts": """
        CREATE TABLE IF NOT EXISTS posts (
            id VARCHAR(24) PRIMARY KEY,
            uuid VARCHAR(36) NOT NULL,
            title VARCHAR NOT NULL,
            slug VARCHAR NOT NULL,
            html VARCHAR,
            lexical VARCHAR,
            custom_excerpt VARCHAR,
            feature_image VARCHAR,
            status VARCHAR NOT NULL,
            visibility VARCHAR NOT NULL,
            email_recipient_filter VARCHAR NOT NULL,
            created_at VARCHAR NOT NULL,
            updated_at VARCHAR,
            created_by VARCHAR(24) NOT NULL,
            published_by VARCHAR(24),
            published_at VARCHAR
        )
    """,
    "posts_authors": """
        CREATE TABLE IF NOT EXISTS posts_authors (
            id VARCHAR(24) PRIMARY KEY,
            post_id VARCHAR(24) NOT NULL,
            author_id VARCHAR(24) NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """,
    "posts_tags": """
        CREATE TABLE IF NOT EXISTS posts_tags (
            id VARCHAR(24) PRIMARY KEY,
            post_id VARCHAR(24) NOT NULL,
            tag_id VARCHAR(24) NOT NULL,
            sort_order INTEGER NOT NULL DEFAULT 0
        )
    """,
    "mobiledoc_revisions": """
        CREATE TABLE IF NOT EXISTS mobiledoc_revisions (
            id VARCHAR(24) PRIMARY KEY,
            post_id VARCHAR(24) NOT NULL,
            mobiledoc VARCHAR,
            created_at_ts BIGINT NOT NULL,
            created_at VARCHAR NOT NULL
        )
    """,
    "post_revisions": """
        CREATE TABLE IF NOT EXISTS post_revisions (
            id VARCHAR(24) PRIMARY KEY,
            post_id VARCHAR(24) NOT NULL,
            lexical VARCHAR,
            created_at_ts BIGINT NOT NULL,
            created_at VARCHAR NOT NULL,
            title VARCHAR,
            post_status VARCHAR,
            author_id VARCHAR(24),
            reason VARCHAR
        )
    """,
    "posts_meta": """
        CREATE TABLE IF NOT EXISTS posts_meta (
            id VARCHAR(24) PRIMARY KEY,
            post_id VARCHAR(24) NOT NULL UNIQUE,
            meta_title VARCHAR,
            meta_description VARCHAR
        )
    """,
}

# Tables the post pipeline touches; checked before a run starts.
PIPELINE_TABLES = (
    "users_migration",
    "tags",
    "posts",
    "posts_authors",
    "posts_tags",
    "mobiledoc_revisions",
    "post_revisions",
    "posts_meta",
)


class GhostStore:
    """
    Executes parameterized statements against one connection.

    The connection is injected so a caller can hand over whatever it
    acquired for the current request; :meth:`connect` is a convenience for
    scripts that work with a local DuckDB file.
    """

    def __init__(self, conn: Any) -> None:
        self.conn = conn

    @classmethod
    def connect(cls, db_path: str = ":memory:") -> "GhostStore":
        return cls(duckdb.connect(database=db_path, read_only=False))

    def close(self) -> None:
        self.conn.close()

    def _run(self, sql: str, params: Optional[Sequence[Any]]) -> Any:
        if params:
            return self.conn.execute(sql, list(params))
        return self.conn.execute(sql)

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """
        Run a statement and return the affected-row count reported by the
        driver (``-1`` when the driver does not report one).
        """
        result = self._run(sql, params)
        return getattr(result, "rowcount", -1)

    def fetch_scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Any]:
        """Return the first column of the first row, or ``None`` when no row matches."""
        row = self._run(sql, params).fetchone()
        if row is None:
            return None
        return row[0]

    def insert(self, table: str, row: Dict[str, Any]) -> int:
        columns = list(row.keys())
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        return self.execute(sql, [row[c] for c in columns])

    ###########################################################################
    # Maintenance
    ###########################################################################

    def create_schema(self) -> None:
        for ddl in SCHEMA.values():
            self.execute(ddl)

    def ping(self) -> bool:
        """Health check: ``True`` when ``SELECT 1`` round-trips."""
        return self.fetch_scalar("SELECT 1") == 1

    def missing_tables(self) -> List[str]:
        existing = {
            name
            for (name,) in self.conn.execute(
                "SELECT table_name FROM information_schema.tables"
            ).fetchall()
        }
        return [t for t in PIPELINE_TABLES if t not in existing]
