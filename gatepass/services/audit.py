# =======================================================================================
# gatepass/services/audit.py - Access Log Recorder
# =======================================================================================
import asyncio
import logging
import uuid
from typing import List, Optional
from ..config import config
from ..models.enums import Collection, Verdict
from ..models.schemas import AccessLogEntry, AccessLogEntryDraft
from ..store.base import DocumentStore

log = logging.getLogger(__name__)


class AuditRecorder:
    """
    Append-only access log.

    Exactly one entry is written per validation attempt. Entries are never
    updated or deleted; the store refuses both for this collection.
    """

    def __init__(self, store: DocumentStore, enrichment_timeout: Optional[float] = None):
        self.store = store
        self.enrichment_timeout = (enrichment_timeout if enrichment_timeout is not None
                                   else min(config.STORE_TIMEOUT_SECONDS, 1.0))

    async def _guard_name(self, organization_id: str, guard_id: str) -> Optional[str]:
        """Best-effort display name; failures never block the write."""
        try:
            doc = await asyncio.wait_for(
                self.store.get(organization_id, Collection.GUARDS, guard_id),
                timeout=self.enrichment_timeout,
            )
        except asyncio.TimeoutError:
            log.warning("Guard lookup for %s timed out; logging without name", guard_id)
            return None
        except Exception as e:
            log.warning("Guard lookup for %s failed: %s", guard_id, e)
            return None
        return doc.get("name") if doc else None

    async def record(self, draft: AccessLogEntryDraft) -> AccessLogEntry:
        guard_name = draft.guard_name
        if guard_name is None:
            guard_name = await self._guard_name(draft.organization_id, draft.guard_id)

        entry = AccessLogEntry(
            id=uuid.uuid4().hex,
            **draft.model_dump(exclude={"guard_name"}),
            guard_name=guard_name,
        )
        await self.store.append(
            draft.organization_id, Collection.ACCESS_LOGS, entry.id, entry.to_document()
        )
        log.info(
            "Access %s by guard %s via %s: subject=%s credential=%s",
            entry.verdict.value, entry.guard_id, entry.method.value,
            entry.subject_id or "-", entry.credential_id or "-",
        )
        return entry

    async def list_entries(self, organization_id: str, subject_id: Optional[str] = None,
                           verdict: Optional[Verdict] = None, limit: int = 100) -> List[AccessLogEntry]:
        """Newest first; ordering is by the entry's own timestamp."""
        where = {}
        if subject_id:
            where["subject_id"] = subject_id
        if verdict:
            where["verdict"] = Verdict(verdict).value

        docs = await self.store.query(
            organization_id, Collection.ACCESS_LOGS, where=where or None,
            order_by="timestamp", descending=True, limit=limit,
        )
        return [AccessLogEntry.from_document(d) for d in docs]
