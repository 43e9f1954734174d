# =======================================================================================
# gatepass/store/base.py - Document Store Interface
# =======================================================================================
"""
Abstract multi-tenant document store.

Every operation takes ``organization_id`` as its first argument; there is no
call that reaches across organizations. Collections listed in
APPEND_ONLY_COLLECTIONS only accept ``append``.
"""
import logging
from abc import ABC, abstractmethod
from enum import Enum
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Union
from pydantic import TypeAdapter
from ..models.enums import APPEND_ONLY_COLLECTIONS, StoreAction
from ..utils.exceptions import TenantScopeError, AppendOnlyViolationError
from ..utils.validators import ensure_aware

log = logging.getLogger(__name__)

CollectionName = Union[str, Enum]
Predicate = Callable[[Dict[str, Any]], bool]

# fields a query may be ordered by; values are ISO timestamps
ORDERABLE_FIELDS = frozenset({"timestamp"})

_DATETIME = TypeAdapter(datetime)


class StoreEvent(NamedTuple):
    organization_id: str
    collection: str
    doc_id: str
    action: StoreAction

StoreListener = Callable[[StoreEvent], None]


def matches(document: Mapping[str, Any], where: Optional[Mapping[str, Any]],
            predicate: Optional[Predicate]) -> bool:
    """Equality filters first, then the optional callable."""
    if where:
        for key, expected in where.items():
            if document.get(key) != expected:
                return False
    if predicate is not None and not predicate(dict(document)):
        return False
    return True


def order_key(value: Any) -> str:
    """Fixed-width UTC form of an ISO timestamp, so string order is time order."""
    if value is None:
        return ""
    moment = ensure_aware(_DATETIME.validate_python(value))
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%f")


def check_order(order_by: Optional[str]) -> None:
    if order_by is not None and order_by not in ORDERABLE_FIELDS:
        raise ValueError(f"cannot order by {order_by}")


def arrange(documents: List[Dict[str, Any]], order_by: Optional[str],
            descending: bool, limit: Optional[int]) -> List[Dict[str, Any]]:
    """Order and cut an already filtered result."""
    if order_by is not None:
        documents = sorted(documents, key=lambda d: order_key(d.get(order_by)), reverse=descending)
    return documents if limit is None else documents[:limit]


class DocumentStore(ABC):
    """Async document store scoped by organization."""

    def __init__(self):
        self._listeners: List[StoreListener] = []

    # ------------------------------------------------------------------
    # Scope checks
    # ------------------------------------------------------------------
    @staticmethod
    def scope(organization_id: str, collection: CollectionName) -> tuple:
        """Normalize and check (organization_id, collection)."""
        if not isinstance(organization_id, str) or not organization_id.strip():
            raise TenantScopeError("organization_id is required for every store operation")
        name = collection.value if isinstance(collection, Enum) else str(collection)
        if not name:
            raise ValueError("collection name is required")
        return organization_id, name

    @staticmethod
    def ensure_writable(collection: str, action: str) -> None:
        if collection in APPEND_ONLY_COLLECTIONS:
            raise AppendOnlyViolationError(f"{collection} is append-only; {action} is not allowed")

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------
    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a listener for writes; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, organization_id: str, collection: str, doc_id: str, action: StoreAction) -> None:
        event = StoreEvent(organization_id, collection, doc_id, action)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("Store listener failed for %s", event)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    @abstractmethod
    async def get(self, organization_id: str, collection: CollectionName,
                  doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document, or None."""

    @abstractmethod
    async def query(self, organization_id: str, collection: CollectionName,
                    where: Optional[Mapping[str, Any]] = None,
                    predicate: Optional[Predicate] = None,
                    order_by: Optional[str] = None, descending: bool = False,
                    limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Documents of a collection matching the filters.

        ``order_by`` accepts the fields in ORDERABLE_FIELDS; without it the
        order is unspecified. ``limit`` applies after filtering and ordering.
        """

    @abstractmethod
    async def put(self, organization_id: str, collection: CollectionName,
                  doc_id: str, document: Mapping[str, Any]) -> None:
        """Create or replace a document."""

    @abstractmethod
    async def update(self, organization_id: str, collection: CollectionName,
                     doc_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """Atomically merge changes into an existing document and return it."""

    @abstractmethod
    async def delete(self, organization_id: str, collection: CollectionName,
                     doc_id: str) -> bool:
        """Remove a document; False if it did not exist."""

    @abstractmethod
    async def append(self, organization_id: str, collection: CollectionName,
                     doc_id: str, document: Mapping[str, Any]) -> None:
        """Insert a new document; never overwrites."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
