# =======================================================================================
# gatepass/services/member_service.py - Member Management Service
# =======================================================================================
import logging
import uuid
from typing import Callable, List, Optional
from datetime import datetime
from ..models.enums import Collection
from ..models.schemas import Member, Guard, CreateMemberRequest
from ..store.base import DocumentStore
from ..utils.exceptions import SubjectNotFoundError, DocumentNotFoundError
from ..utils.validators import utc_now

log = logging.getLogger(__name__)


class MemberService:
    """Handles residents (members) and guard profiles of an organization."""

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self.clock = clock

    async def register_member(self, organization_id: str, request: CreateMemberRequest,
                              member_id: Optional[str] = None) -> Member:
        """Create a member; ids normally come from the identity provider."""
        member = Member(
            id=member_id or uuid.uuid4().hex,
            organization_id=organization_id,
            name=request.name.strip(),
            email=request.email,
            phone=request.phone,
            home_address=request.home_address,
            access_level=request.access_level,
            is_active=True,
            created_at=self.clock(),
        )
        await self.store.put(organization_id, Collection.MEMBERS, member.id, member.to_document())
        log.info("Member %s registered in %s", member.id, organization_id)
        return member

    async def get_member(self, organization_id: str, member_id: str) -> Optional[Member]:
        doc = await self.store.get(organization_id, Collection.MEMBERS, member_id)
        return Member.from_document(doc) if doc else None

    async def require_member(self, organization_id: str, member_id: str) -> Member:
        member = await self.get_member(organization_id, member_id)
        if member is None:
            raise SubjectNotFoundError(f"Member {member_id} not found")
        return member

    async def list_members(self, organization_id: str) -> List[Member]:
        docs = await self.store.query(organization_id, Collection.MEMBERS)
        members = [Member.from_document(d) for d in docs]
        members.sort(key=lambda m: m.created_at, reverse=True)
        return members

    async def set_active(self, organization_id: str, member_id: str, is_active: bool) -> Member:
        """
        Toggle a member's access. An inactive member's own pass and all of
        their guests' passes stop validating until reactivated.
        """
        try:
            doc = await self.store.update(
                organization_id, Collection.MEMBERS, member_id, {"is_active": is_active}
            )
        except DocumentNotFoundError:
            raise SubjectNotFoundError(f"Member {member_id} not found")
        log.info("Member %s isActive set to %s", member_id, is_active)
        return Member.from_document(doc)

    # ----------------- guards -----------------

    async def register_guard(self, organization_id: str, guard_id: str, name: str,
                             badge_number: Optional[str] = None) -> Guard:
        guard = Guard(id=guard_id, organization_id=organization_id, name=name, badge_number=badge_number)
        await self.store.put(organization_id, Collection.GUARDS, guard.id, guard.to_document())
        return guard
