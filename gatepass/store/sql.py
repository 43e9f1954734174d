# =======================================================================================
# gatepass/store/sql.py - SQL-backed Document Store
# =======================================================================================
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple
from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.concurrency import run_in_threadpool
from .base import DocumentStore, CollectionName, Predicate, check_order, matches, order_key
from ..database import DatabaseManager
from ..utils.exceptions import (
    DocumentNotFoundError,
    DuplicateDocumentError,
    StoreUnavailableError,
)
from ..utils.validators import utc_now

log = logging.getLogger(__name__)

# document fields mirrored into indexed columns of the same name
INDEXED_FIELDS = ("secret_hash", "subject_id")


def index_columns(document: Mapping[str, Any]) -> Dict[str, Optional[str]]:
    """Column values derived from a document body on every write."""
    columns = {}
    for field in INDEXED_FIELDS:
        value = document.get(field)
        columns[field] = value if isinstance(value, str) else None
    timestamp = document.get("timestamp")
    columns["sort_key"] = order_key(timestamp) if timestamp is not None else None
    return columns


def split_where(where: Optional[Mapping[str, Any]]) -> Tuple[Dict[str, str], Dict[str, Any]]:
    """Separate filters the statement can answer from the ones checked in Python."""
    pushed, rest = {}, {}
    for key, value in (where or {}).items():
        if key in INDEXED_FIELDS and isinstance(value, str):
            pushed[key] = value
        else:
            rest[key] = value
    return pushed, rest


class SqlDocumentStore(DocumentStore):
    """
    Document store over a single ``documents`` table.

    Rows are keyed by (organization_id, collection, doc_id) and hold the JSON
    body. ``secret_hash``, ``subject_id`` and the log ``timestamp`` are copied
    into indexed columns so hash lookups, per-subject queries and newest-first
    log pages are answered by the database. Blocking SQLAlchemy calls run in
    the Starlette threadpool; each operation is its own transaction.
    """

    def __init__(self, db: DatabaseManager):
        super().__init__()
        self.db = db

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    async def _run(self, fn, *args):
        try:
            return await run_in_threadpool(fn, *args)
        except SQLAlchemyError as e:
            log.error("Document store error: %s", e)
            raise StoreUnavailableError(str(e)) from e

    @staticmethod
    def _params(org: str, name: str, doc_id: str) -> dict:
        return {"org": org, "col": name, "id": doc_id}

    @staticmethod
    def _row_params(org: str, name: str, doc_id: str, document: Mapping[str, Any]) -> dict:
        return {
            "org": org, "col": name, "id": doc_id,
            "body": json.dumps(dict(document)),
            "ts": utc_now().isoformat(),
            **index_columns(document),
        }

    def _select_body(self, conn: Connection, org: str, name: str, doc_id: str,
                     for_update: bool = False) -> Optional[Dict[str, Any]]:
        lock = " FOR UPDATE" if for_update and self.db.supports_row_locks else ""
        row = conn.execute(
            text(
                "SELECT body FROM documents "
                "WHERE organization_id = :org AND collection = :col AND doc_id = :id" + lock
            ),
            self._params(org, name, doc_id),
        ).mappings().first()
        return json.loads(row["body"]) if row else None

    def _write_row(self, conn: Connection, params: dict) -> int:
        return conn.execute(
            text(
                "UPDATE documents SET body = :body, secret_hash = :secret_hash, "
                "subject_id = :subject_id, sort_key = :sort_key, updated_at = :ts "
                "WHERE organization_id = :org AND collection = :col AND doc_id = :id"
            ),
            params,
        ).rowcount

    @staticmethod
    def _insert_row(conn: Connection, params: dict) -> None:
        conn.execute(
            text(
                "INSERT INTO documents "
                "(organization_id, collection, doc_id, body, secret_hash, subject_id, sort_key, updated_at) "
                "VALUES (:org, :col, :id, :body, :secret_hash, :subject_id, :sort_key, :ts)"
            ),
            params,
        )

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------
    def _get(self, org: str, name: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self.db.get_connection() as conn:
            return self._select_body(conn, org, name, doc_id)

    def _query(self, org: str, name: str, pushed: Dict[str, str],
               order_by: Optional[str], descending: bool, limit: Optional[int]) -> List[Dict[str, Any]]:
        sql = "SELECT body FROM documents WHERE organization_id = :org AND collection = :col"
        params: Dict[str, Any] = {"org": org, "col": name}
        for field, value in pushed.items():
            # field names come from INDEXED_FIELDS only
            sql += f" AND {field} = :{field}"
            params[field] = value
        if order_by is not None:
            sql += " ORDER BY sort_key DESC, doc_id DESC" if descending else " ORDER BY sort_key, doc_id"
        else:
            sql += " ORDER BY doc_id"
        if limit is not None:
            sql += " LIMIT :limit"
            params["limit"] = limit

        with self.db.get_connection() as conn:
            rows = conn.execute(text(sql), params).mappings().all()
        return [json.loads(r["body"]) for r in rows]

    def _put(self, org: str, name: str, doc_id: str, document: Dict[str, Any]) -> None:
        params = self._row_params(org, name, doc_id, document)
        with self.db.get_connection() as conn:
            if not self._write_row(conn, params):
                self._insert_row(conn, params)

    def _update(self, org: str, name: str, doc_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        with self.db.get_connection() as conn:
            current = self._select_body(conn, org, name, doc_id, for_update=True)
            if current is None:
                raise DocumentNotFoundError(f"{name}/{doc_id} not found")
            merged = {**current, **changes}
            self._write_row(conn, self._row_params(org, name, doc_id, merged))
            return merged

    def _delete(self, org: str, name: str, doc_id: str) -> bool:
        with self.db.get_connection() as conn:
            result = conn.execute(
                text(
                    "DELETE FROM documents "
                    "WHERE organization_id = :org AND collection = :col AND doc_id = :id"
                ),
                self._params(org, name, doc_id),
            )
            return result.rowcount > 0

    def _append(self, org: str, name: str, doc_id: str, document: Dict[str, Any]) -> None:
        try:
            with self.db.get_connection() as conn:
                self._insert_row(conn, self._row_params(org, name, doc_id, document))
        except IntegrityError as e:
            raise DuplicateDocumentError(f"{name}/{doc_id} already exists") from e

    # ------------------------------------------------------------------
    # DocumentStore API
    # ------------------------------------------------------------------
    async def get(self, organization_id: str, collection: CollectionName,
                  doc_id: str) -> Optional[Dict[str, Any]]:
        org, name = self.scope(organization_id, collection)
        return await self._run(self._get, org, name, doc_id)

    async def query(self, organization_id: str, collection: CollectionName,
                    where: Optional[Mapping[str, Any]] = None,
                    predicate: Optional[Predicate] = None,
                    order_by: Optional[str] = None, descending: bool = False,
                    limit: Optional[int] = None) -> List[Dict[str, Any]]:
        org, name = self.scope(organization_id, collection)
        check_order(order_by)
        pushed, rest = split_where(where)
        if not rest and predicate is None:
            return await self._run(self._query, org, name, pushed, order_by, descending, limit)

        # remaining filters run here, so the limit can only be applied afterwards
        docs = await self._run(self._query, org, name, pushed, order_by, descending, None)
        found = [doc for doc in docs if matches(doc, rest, predicate)]
        return found if limit is None else found[:limit]

    async def put(self, organization_id: str, collection: CollectionName,
                  doc_id: str, document: Mapping[str, Any]) -> None:
        org, name = self.scope(organization_id, collection)
        self.ensure_writable(name, "put")
        await self._run(self._put, org, name, doc_id, dict(document))
        self.emit(org, name, doc_id, "put")

    async def update(self, organization_id: str, collection: CollectionName,
                     doc_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        org, name = self.scope(organization_id, collection)
        self.ensure_writable(name, "update")
        merged = await self._run(self._update, org, name, doc_id, dict(changes))
        self.emit(org, name, doc_id, "update")
        return merged

    async def delete(self, organization_id: str, collection: CollectionName,
                     doc_id: str) -> bool:
        org, name = self.scope(organization_id, collection)
        self.ensure_writable(name, "delete")
        removed = await self._run(self._delete, org, name, doc_id)
        if removed:
            self.emit(org, name, doc_id, "delete")
        return removed

    async def append(self, organization_id: str, collection: CollectionName,
                     doc_id: str, document: Mapping[str, Any]) -> None:
        org, name = self.scope(organization_id, collection)
        await self._run(self._append, org, name, doc_id, dict(document))
        self.emit(org, name, doc_id, "append")

    async def ping(self) -> bool:
        await self._run(self.db.fetch_one, "SELECT 1")
        return True

    async def close(self) -> None:
        self.db.dispose()
