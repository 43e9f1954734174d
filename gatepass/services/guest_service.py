# =======================================================================================
# gatepass/services/guest_service.py - Guest Management Service
# =======================================================================================
import logging
import uuid
from typing import Callable, List, Optional
from datetime import datetime
from ..models.enums import Collection
from ..models.schemas import Guest, CreateGuestRequest
from ..store.base import DocumentStore
from ..utils.exceptions import SubjectNotFoundError, DocumentNotFoundError
from ..utils.validators import utc_now
from .member_service import MemberService

log = logging.getLogger(__name__)


class GuestService:
    """Guests registered by members, and their cascade delete."""

    def __init__(self, store: DocumentStore, members: MemberService,
                 clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.members = members
        self.clock = clock

    async def create_guest(self, organization_id: str, request: CreateGuestRequest) -> Guest:
        await self.members.require_member(organization_id, request.owner_member_id)

        guest = Guest(
            id=uuid.uuid4().hex,
            organization_id=organization_id,
            owner_member_id=request.owner_member_id,
            name=request.name.strip(),
            phone=request.phone,
            # only keep optional fields that carry a value
            email=request.email or None,
            relationship=request.relationship or None,
            is_active=True,
            created_at=self.clock(),
        )
        await self.store.put(organization_id, Collection.GUESTS, guest.id, guest.to_document())
        log.info("Guest %s created by member %s", guest.id, guest.owner_member_id)
        return guest

    async def get_guest(self, organization_id: str, guest_id: str) -> Optional[Guest]:
        doc = await self.store.get(organization_id, Collection.GUESTS, guest_id)
        return Guest.from_document(doc) if doc else None

    async def require_guest(self, organization_id: str, guest_id: str) -> Guest:
        guest = await self.get_guest(organization_id, guest_id)
        if guest is None:
            raise SubjectNotFoundError(f"Guest {guest_id} not found")
        return guest

    async def list_guests_by_member(self, organization_id: str, member_id: str) -> List[Guest]:
        docs = await self.store.query(
            organization_id, Collection.GUESTS, where={"owner_member_id": member_id}
        )
        guests = [Guest.from_document(d) for d in docs]
        guests.sort(key=lambda g: g.created_at, reverse=True)
        return guests

    async def set_active(self, organization_id: str, guest_id: str, is_active: bool) -> Guest:
        try:
            doc = await self.store.update(
                organization_id, Collection.GUESTS, guest_id, {"is_active": is_active}
            )
        except DocumentNotFoundError:
            raise SubjectNotFoundError(f"Guest {guest_id} not found")
        return Guest.from_document(doc)

    async def delete_guest(self, organization_id: str, guest_id: str) -> int:
        """
        Delete a guest and every credential issued to them.
        Access log entries that reference the guest are kept.
        Returns the number of credentials removed.
        """
        await self.require_guest(organization_id, guest_id)

        credentials = await self.store.query(
            organization_id, Collection.CREDENTIALS,
            where={"subject_id": guest_id, "subject_kind": "guest"},
        )
        removed = 0
        for doc in credentials:
            if await self.store.delete(organization_id, Collection.CREDENTIALS, doc["id"]):
                removed += 1

        await self.store.delete(organization_id, Collection.GUESTS, guest_id)
        log.info("Guest %s deleted with %d credentials", guest_id, removed)
        return removed
