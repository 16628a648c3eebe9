# triage/data_access/postgres_store.py
"""
PostgreSQL row-store backend for the dashboard snapshot.
"""

import time
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import psycopg2
from psycopg2.extras import Json, RealDictCursor, execute_values

from triage.config.settings import Settings
from triage.data_access.persistence import PersistenceError
from triage.models.schemas import FeedbackItem, StateSnapshot


logger = logging.getLogger(__name__)

T = TypeVar("T")

REVIEW_COLUMNS = (
    "id", "created_at", "source", "rating", "sentiment", "status", "agent", "team",
    "theme", "keywords", "tv_snippet", "text", "manager_rating",
    "reviewer_name", "reviewer_thumbnail", "reviewer_link", "likes",
)

# Errors worth one more attempt on a fresh connection
TRANSIENT_ERRORS = (psycopg2.OperationalError, psycopg2.InterfaceError)


def _row_to_item(row: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a reviews row into the wire-format item dict."""
    item = {
        "id": row["id"],
        "createdAt": row["created_at"],
        "source": row.get("source"),
        "rating": row.get("rating"),
        "sentiment": row.get("sentiment"),
        "status": row.get("status"),
        "agent": row.get("agent"),
        "team": row.get("team"),
        "theme": row.get("theme"),
        "keywords": row.get("keywords") or [],
        "tvSnippet": row.get("tv_snippet"),
        "text": row.get("text"),
        "managerRating": row.get("manager_rating"),
    }
    for column, key in (
        ("reviewer_name", "reviewerName"),
        ("reviewer_thumbnail", "reviewerThumbnail"),
        ("reviewer_link", "reviewerLink"),
        ("likes", "likes"),
    ):
        if row.get(column) is not None:
            item[key] = row[column]
    return item


def _item_to_row(item: FeedbackItem) -> Tuple:
    return (
        item.id,
        item.created_at,
        item.source,
        item.rating,
        item.sentiment,
        item.status,
        item.agent,
        item.team,
        item.theme,
        Json(item.keywords),
        item.tv_snippet,
        item.text,
        item.manager_rating,
        item.reviewer_name,
        item.reviewer_thumbnail,
        item.reviewer_link,
        item.likes,
    )


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS reviews (
    id TEXT PRIMARY KEY,
    created_at TIMESTAMPTZ NOT NULL,
    source TEXT NOT NULL DEFAULT 'Google',
    rating INTEGER,
    sentiment TEXT NOT NULL DEFAULT 'Neutral',
    status TEXT NOT NULL DEFAULT 'Pending',
    agent TEXT NOT NULL DEFAULT 'Unknown',
    team TEXT NOT NULL DEFAULT 'Unknown',
    theme TEXT NOT NULL DEFAULT '',
    keywords JSONB NOT NULL DEFAULT '[]',
    tv_snippet TEXT NOT NULL DEFAULT '',
    text TEXT NOT NULL DEFAULT '',
    manager_rating INTEGER,
    reviewer_name TEXT,
    reviewer_thumbnail TEXT,
    reviewer_link TEXT,
    likes INTEGER
);

CREATE INDEX IF NOT EXISTS reviews_created_at_idx ON reviews(created_at DESC);

CREATE TABLE IF NOT EXISTS agents (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    team TEXT NOT NULL,
    email TEXT NOT NULL DEFAULT ''
);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value JSONB
);
"""


class PostgresStore:
    """Snapshot storage spread over reviews, agents and settings tables."""

    def __init__(self, config: Settings):
        self.config = config
        self.conn = None
        self._schema_ready = not config.postgres_initialize_schema

    def connect(self) -> None:
        """Establish database connection."""
        self.conn = psycopg2.connect(
            host=self.config.postgres_host,
            port=self.config.postgres_port,
            database=self.config.postgres_database,
            user=self.config.postgres_username,
            password=self.config.postgres_password,
            sslmode=self.config.postgres_sslmode,
            connect_timeout=self.config.postgres_connect_timeout,
            options=f"-c statement_timeout={self.config.postgres_statement_timeout_ms}"
        )

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def _run(self, description: str, action: Callable[[], T]) -> T:
        """
        Run ``action`` with a live connection.

        Transient connection errors are retried on a fresh connection up to
        ``persistence_max_retries`` attempts in total; anything else, or the
        last failure, is raised as PersistenceError.
        """
        max_retries = max(1, self.config.persistence_max_retries)

        for attempt in range(max_retries):
            try:
                if not self.conn or self.conn.closed:
                    self.connect()
                # Tables are created before the first query, retried until it succeeds
                if not self._schema_ready:
                    self._create_schema()
                return action()
            except TRANSIENT_ERRORS as e:
                self.close()
                if attempt == max_retries - 1:
                    raise PersistenceError(f"{description} failed after {max_retries} attempts: {e}") from e
                logger.warning(
                    f"Transient database error during {description}. Retrying in "
                    f"{self.config.persistence_retry_delay}s... (attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(self.config.persistence_retry_delay)
            except psycopg2.Error as e:
                raise PersistenceError(f"{description} failed: {e}") from e

    def _create_schema(self) -> None:
        try:
            with self.conn.cursor() as cursor:
                cursor.execute(SCHEMA_SQL)
            self.conn.commit()
        except psycopg2.Error:
            if self.conn and not self.conn.closed:
                self.conn.rollback()
            raise
        self._schema_ready = True
        logger.info("PostgreSQL schema is ready")

    def initialize_schema(self) -> None:
        """Create tables if they don't exist."""
        self._schema_ready = False
        self._run("schema initialization", lambda: None)

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Assemble a snapshot payload from the tables.

        Returns:
            Wire-format dict, or None when every table is empty
        """
        def fetch():
            with self.conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(
                    f"SELECT {', '.join(REVIEW_COLUMNS)} FROM reviews ORDER BY created_at DESC"
                )
                review_rows = cursor.fetchall()

                cursor.execute("SELECT id, name, team, email FROM agents ORDER BY name")
                agent_rows = cursor.fetchall()

                cursor.execute("SELECT key, value FROM settings WHERE key IN ('brand', 'teams')")
                setting_rows = cursor.fetchall()
            self.conn.commit()
            return review_rows, agent_rows, setting_rows

        review_rows, agent_rows, setting_rows = self._run("snapshot load", fetch)

        if not review_rows and not agent_rows and not setting_rows:
            return None

        payload: Dict[str, Any] = {
            "items": [_row_to_item(row) for row in review_rows],
            "agents": [dict(row) for row in agent_rows],
        }
        for row in setting_rows:
            payload[row["key"]] = row["value"]
        return payload

    def save(self, snapshot: StateSnapshot) -> None:
        """Upsert every row and delete rows no longer in the snapshot, in one transaction."""
        review_rows = [_item_to_row(item) for item in snapshot.items]
        review_ids = [item.id for item in snapshot.items]
        agent_rows = [(a.id, a.name, a.team, a.email) for a in snapshot.agents]
        agent_ids = [a.id for a in snapshot.agents]

        updates = ", ".join(f"{column} = EXCLUDED.{column}" for column in REVIEW_COLUMNS[1:])
        review_query = f"""
            INSERT INTO reviews ({', '.join(REVIEW_COLUMNS)})
            VALUES %s
            ON CONFLICT (id) DO UPDATE SET {updates}
        """
        agent_query = """
            INSERT INTO agents (id, name, team, email)
            VALUES %s
            ON CONFLICT (id) DO UPDATE
            SET name = EXCLUDED.name,
                team = EXCLUDED.team,
                email = EXCLUDED.email
        """
        settings_query = """
            INSERT INTO settings (key, value)
            VALUES (%s, %s)
            ON CONFLICT (key) DO UPDATE SET value = EXCLUDED.value
        """

        def write():
            try:
                with self.conn.cursor() as cursor:
                    cursor.execute("DELETE FROM reviews WHERE NOT (id = ANY(%s))", (review_ids,))
                    if review_rows:
                        execute_values(cursor, review_query, review_rows)
                    cursor.execute("DELETE FROM agents WHERE NOT (id = ANY(%s))", (agent_ids,))
                    if agent_rows:
                        execute_values(cursor, agent_query, agent_rows)
                    cursor.execute(settings_query, ("brand", Json(snapshot.brand.model_dump(mode="json"))))
                    cursor.execute(settings_query, ("teams", Json(list(snapshot.teams))))
                self.conn.commit()
            except psycopg2.Error:
                if self.conn and not self.conn.closed:
                    self.conn.rollback()
                raise

        self._run("snapshot save", write)
        logger.info(f"Saved {len(review_rows)} reviews and {len(agent_rows)} agents to PostgreSQL")

    def reset(self) -> None:
        """Delete all stored reviews, agents and snapshot settings."""
        def clear():
            try:
                with self.conn.cursor() as cursor:
                    cursor.execute("DELETE FROM reviews")
                    cursor.execute("DELETE FROM agents")
                    cursor.execute("DELETE FROM settings WHERE key IN ('brand', 'teams')")
                self.conn.commit()
            except psycopg2.Error:
                if self.conn and not self.conn.closed:
                    self.conn.rollback()
                raise

        self._run("snapshot reset", clear)
