# =======================================================================================
# gatepass/services/validator.py - Credential Validation
# =======================================================================================
"""
Guard-side validation of presented credentials.

One call resolves what the guard presented to a credential inside the
organization, checks activity and the validity window, writes exactly one
access log entry, and only then returns the verdict. Validation never
modifies credentials, so concurrent scans of the same pass need no locking.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Union
from ..config import config
from ..models.enums import (
    Collection,
    DIAGNOSTIC_VERDICTS,
    ResolutionMethod,
    SubjectKind,
    Verdict,
)
from ..models.schemas import (
    AccessLogEntryDraft,
    Credential,
    Guest,
    ManualCodeCredential,
    Member,
    QrPayloadCredential,
    RawHashCredential,
    SubjectSummary,
    VerdictResult,
)
from ..store.base import DocumentStore
from ..utils.payload import hash_preview, parse_manual_code, parse_scanned_data
from ..utils.validators import utc_now
from .audit import AuditRecorder
from .manual_code import derive_manual_code, is_manual_code

log = logging.getLogger(__name__)

Presented = Union[str, QrPayloadCredential, RawHashCredential, ManualCodeCredential]
Subject = Union[Member, Guest]


def kind_of(subject: Subject) -> SubjectKind:
    return SubjectKind.GUEST if isinstance(subject, Guest) else SubjectKind.MEMBER


@dataclass
class Resolution:
    """What a presented value resolved to, as far as it got."""
    credential: Optional[Credential] = None
    subject: Optional[Subject] = None
    owner: Optional[Member] = None
    reason: str = ""


@dataclass
class Outcome:
    verdict: Verdict
    reason: str
    resolution: Resolution


class CredentialValidator:
    """Decides entry for QR scans and manual codes."""

    def __init__(self, store: DocumentStore, audit: AuditRecorder,
                 clock: Callable[[], datetime] = utc_now,
                 timeout: Optional[float] = None):
        self.store = store
        self.audit = audit
        self.clock = clock
        self.timeout = timeout if timeout is not None else config.STORE_TIMEOUT_SECONDS

    # ----------------------------------------------------------------------
    # Input handling
    # ----------------------------------------------------------------------
    @staticmethod
    def coerce_presented(presented: Presented, method: ResolutionMethod):
        """
        Bring the presented value into its parsed form for the given method.
        Manual codes are only ever resolved through the manual_code method,
        and hashes only through qr_scan.
        """
        if isinstance(presented, str):
            if method == ResolutionMethod.MANUAL_CODE:
                return parse_manual_code(presented)
            return parse_scanned_data(presented)

        is_manual = isinstance(presented, ManualCodeCredential)
        if is_manual != (method == ResolutionMethod.MANUAL_CODE):
            raise ValueError(f"{presented.kind} cannot be validated with method {method.value}")
        return presented

    # ----------------------------------------------------------------------
    # Lookups
    # ----------------------------------------------------------------------
    async def _load_subject(self, organization_id: str, kind: SubjectKind, subject_id: str) -> Resolution:
        if kind == SubjectKind.MEMBER:
            doc = await self.store.get(organization_id, Collection.MEMBERS, subject_id)
            return Resolution(subject=Member.from_document(doc) if doc else None)

        doc = await self.store.get(organization_id, Collection.GUESTS, subject_id)
        if not doc:
            return Resolution()
        guest = Guest.from_document(doc)
        owner_doc = await self.store.get(organization_id, Collection.MEMBERS, guest.owner_member_id)
        return Resolution(subject=guest, owner=Member.from_document(owner_doc) if owner_doc else None)

    async def resolve_hash(self, organization_id: str, secret_hash: str) -> Resolution:
        docs = await self.store.query(
            organization_id, Collection.CREDENTIALS, where={"secret_hash": secret_hash}
        )
        if not docs:
            return Resolution(reason="Credential not found")
        if len(docs) > 1:
            log.warning("Secret hash %s maps to %d credentials in %s",
                        hash_preview(secret_hash), len(docs), organization_id)

        credential = Credential.from_document(docs[0])
        resolution = await self._load_subject(organization_id, credential.subject_kind, credential.subject_id)
        resolution.credential = credential
        if resolution.subject is None:
            resolution.reason = "Credential holder no longer exists"
        return resolution

    @staticmethod
    def _pick_credential(credentials: List[Credential], now: datetime) -> Optional[Credential]:
        """Prefer a currently usable credential, else the one expiring last."""
        if not credentials:
            return None
        usable = [c for c in credentials if c.is_active and c.valid_from <= now < c.valid_until]
        pool = usable or credentials
        return max(pool, key=lambda c: c.valid_until)

    async def resolve_manual_code(self, organization_id: str, code: str, now: datetime) -> Resolution:
        if not is_manual_code(code):
            return Resolution(reason="Manual code must be 6 digits")

        def has_code(doc):
            return derive_manual_code(doc["id"]) == code

        candidates = [
            (SubjectKind.MEMBER, doc)
            for doc in await self.store.query(organization_id, Collection.MEMBERS, predicate=has_code)
        ] + [
            (SubjectKind.GUEST, doc)
            for doc in await self.store.query(organization_id, Collection.GUESTS, predicate=has_code)
        ]
        if not candidates:
            return Resolution(reason="Manual code not found")
        if len(candidates) > 1:
            log.warning("Manual code matches %d subjects in %s", len(candidates), organization_id)
            return Resolution(reason="Manual code is ambiguous; scan the QR code instead")

        kind, doc = candidates[0]
        resolution = await self._load_subject(organization_id, kind, doc["id"])
        docs = await self.store.query(
            organization_id, Collection.CREDENTIALS,
            where={"subject_id": doc["id"], "subject_kind": kind.value},
        )
        resolution.credential = self._pick_credential([Credential.from_document(d) for d in docs], now)
        if resolution.credential is None:
            resolution.reason = "No credential issued for this code"
        return resolution

    # ----------------------------------------------------------------------
    # Rules
    # ----------------------------------------------------------------------
    @staticmethod
    def check(resolution: Resolution, now: datetime) -> Outcome:
        credential, subject = resolution.credential, resolution.subject
        if credential is None or subject is None:
            return Outcome(Verdict.NOT_FOUND, f"Access denied - {resolution.reason or 'Credential not found'}", resolution)

        if not credential.is_active:
            return Outcome(Verdict.INACTIVE, "Access denied - credential deactivated", resolution)
        if not subject.is_active:
            return Outcome(Verdict.INACTIVE, f"Access denied - {subject.name} is inactive", resolution)
        if resolution.owner is not None and not resolution.owner.is_active:
            return Outcome(Verdict.INACTIVE, "Access denied - host member is inactive", resolution)

        # window is half-open: [valid_from, valid_until)
        if now < credential.valid_from:
            return Outcome(Verdict.NOT_YET_VALID,
                           f"Access denied - valid from {credential.valid_from.isoformat()}", resolution)
        if now >= credential.valid_until:
            return Outcome(Verdict.EXPIRED,
                           f"Access denied - expired at {credential.valid_until.isoformat()}", resolution)

        return Outcome(Verdict.GRANTED, "Access granted", resolution)

    @staticmethod
    def summarize(outcome: Outcome) -> Optional[SubjectSummary]:
        resolution = outcome.resolution
        subject, credential = resolution.subject, resolution.credential
        if subject is None or credential is None:
            return None

        kind = kind_of(subject)
        if outcome.verdict in DIAGNOSTIC_VERDICTS:
            return SubjectSummary(name=subject.name, kind=kind)
        if outcome.verdict != Verdict.GRANTED:
            return None

        if isinstance(subject, Guest):
            host = resolution.owner.name if resolution.owner else "member"
            return SubjectSummary(
                name=subject.name,
                kind=kind,
                home_address=resolution.owner.home_address if resolution.owner else None,
                contact=subject.phone or subject.email,
                purpose=credential.purpose,
                access_level=f"guest of {host}",
                valid_until=credential.valid_until,
            )
        return SubjectSummary(
            name=subject.name,
            kind=kind,
            home_address=subject.home_address,
            contact=subject.phone or subject.email,
            purpose=credential.purpose,
            access_level=subject.access_level,
            valid_until=credential.valid_until,
        )

    # ----------------------------------------------------------------------
    # Entry point
    # ----------------------------------------------------------------------
    async def _evaluate(self, organization_id: str, parsed, now: datetime) -> Outcome:
        if isinstance(parsed, ManualCodeCredential):
            resolution = await self.resolve_manual_code(organization_id, parsed.code, now)
        else:
            resolution = await self.resolve_hash(organization_id, parsed.secret_hash)
        return self.check(resolution, now)

    async def validate(self, organization_id: str, presented: Presented, method: ResolutionMethod,
                       guard_id: str, guard_name: Optional[str] = None) -> VerdictResult:
        """
        Validate one presented credential and record the attempt.

        Store failures and timeouts become SYSTEM_ERROR, never NOT_FOUND, so
        callers can retry or fall back instead of turning someone away.

        A timed-out log write is reported as SYSTEM_ERROR, but a store that
        runs the insert in a worker thread cannot abandon it, so the entry may
        still land afterwards with the original verdict. Reconcile by
        ``log_entry_id``: a SYSTEM_ERROR result carries none.

        Caller errors are raised before any entry is written and are not
        access attempts: an empty organization_id (TenantScopeError) and a
        parsed credential that does not fit ``method`` (ValueError).
        """
        DocumentStore.scope(organization_id, Collection.CREDENTIALS)
        method = ResolutionMethod(method)
        parsed = self.coerce_presented(presented, method)
        now = self.clock()

        try:
            outcome = await asyncio.wait_for(
                self._evaluate(organization_id, parsed, now), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            log.error("Validation in %s timed out after %ss", organization_id, self.timeout)
            outcome = Outcome(Verdict.SYSTEM_ERROR, "Validation unavailable - store timed out", Resolution())
        except Exception as e:
            log.exception("Validation in %s failed", organization_id)
            outcome = Outcome(Verdict.SYSTEM_ERROR, f"Validation unavailable - {e}", Resolution())

        resolution = outcome.resolution
        subject = resolution.subject
        draft = AccessLogEntryDraft(
            organization_id=organization_id,
            guard_id=guard_id,
            guard_name=guard_name,
            method=method,
            verdict=outcome.verdict,
            reason=outcome.reason,
            timestamp=now,
            subject_id=subject.id if subject else None,
            subject_kind=kind_of(subject) if subject else None,
            subject_name=subject.name if subject else None,
            credential_id=resolution.credential.id if resolution.credential else None,
        )

        try:
            entry = await asyncio.wait_for(self.audit.record(draft), timeout=self.timeout)
        except Exception as e:
            # an unrecorded attempt is never reported as a final verdict
            log.error("Access log write failed in %s (%s): %s", organization_id, outcome.verdict.value, e)
            return VerdictResult(
                granted=False,
                verdict=Verdict.SYSTEM_ERROR,
                reason="Validation unavailable - access log could not be written",
                method=method,
                checked_at=now,
                credential_id=draft.credential_id,
            )

        return VerdictResult(
            granted=outcome.verdict == Verdict.GRANTED,
            verdict=outcome.verdict,
            reason=outcome.reason,
            method=method,
            checked_at=now,
            subject_summary=self.summarize(outcome),
            credential_id=draft.credential_id,
            log_entry_id=entry.id,
        )
