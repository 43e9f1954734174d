# =======================================================================================
# gatepass/store/memory.py - In-Memory Document Store
# =======================================================================================
import asyncio
import copy
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Optional
from .base import DocumentStore, CollectionName, Predicate, arrange, check_order, matches
from ..utils.exceptions import DocumentNotFoundError, DuplicateDocumentError


class MemoryDocumentStore(DocumentStore):
    """
    Process-local store keyed organization -> collection -> id.

    Used for tests and single-process deployments. Documents are deep-copied
    on the way in and out so callers never share state with the store.
    """

    def __init__(self):
        super().__init__()
        self._data: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = defaultdict(lambda: defaultdict(dict))
        self._lock = asyncio.Lock()

    def _bucket(self, organization_id: str, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._data[organization_id][collection]

    def _peek(self, organization_id: str, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._data.get(organization_id, {}).get(collection, {})

    async def get(self, organization_id: str, collection: CollectionName,
                  doc_id: str) -> Optional[Dict[str, Any]]:
        org, name = self.scope(organization_id, collection)
        doc = self._peek(org, name).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def query(self, organization_id: str, collection: CollectionName,
                    where: Optional[Mapping[str, Any]] = None,
                    predicate: Optional[Predicate] = None,
                    order_by: Optional[str] = None, descending: bool = False,
                    limit: Optional[int] = None) -> List[Dict[str, Any]]:
        org, name = self.scope(organization_id, collection)
        check_order(order_by)
        found = [doc for doc in self._peek(org, name).values() if matches(doc, where, predicate)]
        return [copy.deepcopy(doc) for doc in arrange(found, order_by, descending, limit)]

    async def put(self, organization_id: str, collection: CollectionName,
                  doc_id: str, document: Mapping[str, Any]) -> None:
        org, name = self.scope(organization_id, collection)
        self.ensure_writable(name, "put")
        async with self._lock:
            self._bucket(org, name)[doc_id] = copy.deepcopy(dict(document))
        self.emit(org, name, doc_id, "put")

    async def update(self, organization_id: str, collection: CollectionName,
                     doc_id: str, changes: Mapping[str, Any]) -> Dict[str, Any]:
        org, name = self.scope(organization_id, collection)
        self.ensure_writable(name, "update")
        async with self._lock:
            bucket = self._bucket(org, name)
            if doc_id not in bucket:
                raise DocumentNotFoundError(f"{name}/{doc_id} not found")
            merged = {**bucket[doc_id], **copy.deepcopy(dict(changes))}
            bucket[doc_id] = merged
            result = copy.deepcopy(merged)
        self.emit(org, name, doc_id, "update")
        return result

    async def delete(self, organization_id: str, collection: CollectionName,
                     doc_id: str) -> bool:
        org, name = self.scope(organization_id, collection)
        self.ensure_writable(name, "delete")
        async with self._lock:
            removed = self._bucket(org, name).pop(doc_id, None) is not None
        if removed:
            self.emit(org, name, doc_id, "delete")
        return removed

    async def append(self, organization_id: str, collection: CollectionName,
                     doc_id: str, document: Mapping[str, Any]) -> None:
        org, name = self.scope(organization_id, collection)
        async with self._lock:
            bucket = self._bucket(org, name)
            if doc_id in bucket:
                raise DuplicateDocumentError(f"{name}/{doc_id} already exists")
            bucket[doc_id] = copy.deepcopy(dict(document))
        self.emit(org, name, doc_id, "append")
