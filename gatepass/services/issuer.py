# =======================================================================================
# gatepass/services/issuer.py - Credential Issuance
# =======================================================================================
import json
import logging
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Callable, List, Optional
from ..config import config
from ..models.enums import Collection, SubjectKind
from ..models.schemas import Credential
from ..store.base import DocumentStore
from ..utils.exceptions import (
    CredentialIssueError,
    CredentialNotFoundError,
    DocumentNotFoundError,
)
from ..utils.payload import hash_preview
from ..utils.validators import WindowValidator, ensure_aware, utc_now
from .guest_service import GuestService
from .manual_code import derive_manual_code
from .member_service import MemberService

log = logging.getLogger(__name__)


class CredentialIssuer:
    """Creates, toggles and removes access credentials."""

    def __init__(self, store: DocumentStore, members: MemberService, guests: GuestService,
                 clock: Callable[[], datetime] = utc_now,
                 min_window: Optional[timedelta] = None,
                 hash_attempts: Optional[int] = None):
        self.store = store
        self.members = members
        self.guests = guests
        self.clock = clock
        self.min_window = (min_window if min_window is not None
                           else timedelta(minutes=config.MIN_CREDENTIAL_WINDOW_MINUTES))
        self.hash_attempts = hash_attempts if hash_attempts is not None else config.HASH_RETRY_ATTEMPTS

    # ----------------------------------------------------------------------
    # Secret generation
    # ----------------------------------------------------------------------
    @staticmethod
    def generate_secret(subject_kind: SubjectKind) -> str:
        return f"{subject_kind.value}_{secrets.token_urlsafe(32)}"

    async def _unique_secret(self, organization_id: str, subject_kind: SubjectKind) -> str:
        for _ in range(self.hash_attempts):
            candidate = self.generate_secret(subject_kind)
            clash = await self.store.query(
                organization_id, Collection.CREDENTIALS, where={"secret_hash": candidate}, limit=1
            )
            if not clash:
                return candidate
            log.warning("Secret hash collision in %s, regenerating", organization_id)
        raise CredentialIssueError("Could not generate a unique credential secret")

    async def _require_subject(self, organization_id: str, subject_kind: SubjectKind, subject_id: str):
        if subject_kind == SubjectKind.MEMBER:
            return await self.members.require_member(organization_id, subject_id)
        return await self.guests.require_guest(organization_id, subject_id)

    # ----------------------------------------------------------------------
    # Issue
    # ----------------------------------------------------------------------
    async def issue(self, subject_kind: SubjectKind, subject_id: str, organization_id: str,
                    purpose: Optional[str], valid_from: datetime, valid_until: datetime) -> Credential:
        """
        Issue a credential for a member or a guest.

        All checks run before anything is written, so a rejected request never
        leaves a partial credential behind.
        """
        subject_kind = SubjectKind(subject_kind)
        valid_from = ensure_aware(valid_from)
        valid_until = ensure_aware(valid_until)
        now = self.clock()

        WindowValidator.validate_window(valid_from, valid_until, now, self.min_window)
        cleaned_purpose = WindowValidator.validate_purpose(subject_kind, purpose)
        await self._require_subject(organization_id, subject_kind, subject_id)

        credential = Credential(
            id=uuid.uuid4().hex,
            organization_id=organization_id,
            subject_id=subject_id,
            subject_kind=subject_kind,
            secret_hash=await self._unique_secret(organization_id, subject_kind),
            purpose=cleaned_purpose,
            valid_from=valid_from,
            valid_until=valid_until,
            is_active=True,
            created_at=now,
        )
        await self.store.put(organization_id, Collection.CREDENTIALS, credential.id, credential.to_document())

        log.info(
            "Issued %s credential %s for %s (hash %s) valid %s -> %s",
            subject_kind.value, credential.id, subject_id,
            hash_preview(credential.secret_hash),
            valid_from.isoformat(), valid_until.isoformat(),
        )
        return credential

    async def issue_member_pass(self, organization_id: str, member_id: str,
                                hours: Optional[int] = None) -> Credential:
        """A member's own pass, valid from now for MEMBER_PASS_HOURS."""
        now = self.clock()
        return await self.issue(
            SubjectKind.MEMBER, member_id, organization_id, None,
            now, now + timedelta(hours=hours if hours is not None else config.MEMBER_PASS_HOURS),
        )

    # ----------------------------------------------------------------------
    # Lifecycle
    # ----------------------------------------------------------------------
    async def get(self, organization_id: str, credential_id: str) -> Credential:
        doc = await self.store.get(organization_id, Collection.CREDENTIALS, credential_id)
        if not doc:
            raise CredentialNotFoundError(f"Credential {credential_id} not found")
        return Credential.from_document(doc)

    async def list_for_subject(self, organization_id: str, subject_id: str) -> List[Credential]:
        docs = await self.store.query(organization_id, Collection.CREDENTIALS, where={"subject_id": subject_id})
        credentials = [Credential.from_document(d) for d in docs]
        credentials.sort(key=lambda c: c.created_at, reverse=True)
        return credentials

    async def set_active(self, organization_id: str, credential_id: str, is_active: bool) -> Credential:
        """Deactivate or reactivate; independent of the validity window."""
        try:
            doc = await self.store.update(
                organization_id, Collection.CREDENTIALS, credential_id, {"is_active": bool(is_active)}
            )
        except DocumentNotFoundError:
            raise CredentialNotFoundError(f"Credential {credential_id} not found")
        log.info("Credential %s isActive set to %s", credential_id, is_active)
        return Credential.from_document(doc)

    async def delete(self, organization_id: str, credential_id: str) -> None:
        removed = await self.store.delete(organization_id, Collection.CREDENTIALS, credential_id)
        if not removed:
            raise CredentialNotFoundError(f"Credential {credential_id} not found")
        log.info("Credential %s deleted", credential_id)

    # ----------------------------------------------------------------------
    # QR payload
    # ----------------------------------------------------------------------
    @staticmethod
    def build_qr_payload(credential: Credential, display_name: Optional[str] = None) -> str:
        """JSON string handed to the external QR encoder."""
        return json.dumps({
            "secretHash": credential.secret_hash,
            "subject": display_name,
            "subjectKind": credential.subject_kind.value,
            "purpose": credential.purpose,
            "validFrom": credential.valid_from.isoformat(),
            "validUntil": credential.valid_until.isoformat(),
            "manualCode": derive_manual_code(credential.subject_id),
        })
