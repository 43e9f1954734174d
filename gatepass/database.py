# =======================================================================================
# gatepass/database.py - Database Management
# =======================================================================================
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import QueuePool
from contextlib import contextmanager
from typing import Optional
from .config import config

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS documents (
        organization_id VARCHAR(64)  NOT NULL,
        collection      VARCHAR(64)  NOT NULL,
        doc_id          VARCHAR(128) NOT NULL,
        body            TEXT         NOT NULL,
        secret_hash     VARCHAR(128) NULL,
        subject_id      VARCHAR(128) NULL,
        sort_key        VARCHAR(32)  NULL,
        updated_at      VARCHAR(40)  NOT NULL,
        PRIMARY KEY (organization_id, collection, doc_id)
    )
    """,
)

# name -> columns; created by init_schema when missing
SCHEMA_INDEXES = {
    "ix_documents_secret_hash": "organization_id, collection, secret_hash",
    "ix_documents_subject_id": "organization_id, collection, subject_id",
    "ix_documents_sort_key": "organization_id, collection, sort_key",
}

class DatabaseManager:
    """Manages database connections and transactions."""

    def __init__(self, db_url: Optional[str] = None):
        self.db_url = db_url or config.DB_URL
        self.engine: Engine = create_engine(self.db_url, **self._engine_options(self.db_url))

    @staticmethod
    def _engine_options(db_url: str) -> dict:
        if db_url.startswith("sqlite"):
            # threadpool workers share the pooled sqlite connections
            return {"connect_args": {"check_same_thread": False}, "future": True}
        return {
            "poolclass": QueuePool,
            "pool_size": config.DB_POOL_SIZE,
            "max_overflow": config.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,
            "isolation_level": "READ COMMITTED",
            "future": True,
        }

    @property
    def supports_row_locks(self) -> bool:
        return self.engine.dialect.name != "sqlite"

    def init_schema(self):
        """Create the document table and its lookup indexes if they do not exist yet."""
        with self.get_connection() as conn:
            for statement in SCHEMA_STATEMENTS:
                conn.execute(text(statement))
            existing = {ix["name"] for ix in inspect(conn).get_indexes("documents")}
            for name, columns in SCHEMA_INDEXES.items():
                if name not in existing:
                    conn.execute(text(f"CREATE INDEX {name} ON documents ({columns})"))

    @contextmanager
    def get_connection(self):
        """Get a database connection with automatic cleanup."""
        with self.engine.begin() as conn:
            yield conn

    def fetch_one(self, query: str, params: dict = None):
        """Fetch a single result."""
        with self.get_connection() as conn:
            result = conn.execute(text(query), params or {})
            return result.mappings().first()

    def dispose(self):
        self.engine.dispose()
