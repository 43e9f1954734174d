# =======================================================================================
# gatepass/store/__init__.py - Store Package
# =======================================================================================
from typing import Optional
from .base import DocumentStore, StoreEvent
from .memory import MemoryDocumentStore
from .sql import SqlDocumentStore
from ..config import config
from ..database import DatabaseManager


def build_store(backend: Optional[str] = None, db_url: Optional[str] = None) -> DocumentStore:
    """Create the configured document store."""
    backend = (backend or config.STORE_BACKEND).lower()
    if backend == "memory":
        return MemoryDocumentStore()
    if backend == "sql":
        db = DatabaseManager(db_url)
        db.init_schema()
        return SqlDocumentStore(db)
    raise ValueError(f"Unknown STORE_BACKEND: {backend}")


__all__ = ["DocumentStore", "StoreEvent", "MemoryDocumentStore", "SqlDocumentStore", "build_store"]
