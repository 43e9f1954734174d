# =======================================================================================
# gatepass/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime
from typing import Optional, List, Union, Literal, Annotated
from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from .enums import SubjectKind, ResolutionMethod, Verdict

# ========== Stored documents ==========

class Document(BaseModel):
    """Base for everything persisted through the document store."""
    def to_document(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_document(cls, data: dict):
        return cls.model_validate(data)

class Member(Document):
    id: str
    organization_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    home_address: Optional[str] = None
    access_level: str = "resident"
    is_active: bool = True
    created_at: datetime

class Guard(Document):
    id: str
    organization_id: str
    name: str
    badge_number: Optional[str] = None

class Guest(Document):
    id: str
    organization_id: str
    owner_member_id: str
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None
    is_active: bool = True
    created_at: datetime

class Credential(Document):
    """A time-boxed access credential for a member or a guest."""
    id: str
    organization_id: str
    subject_id: str
    subject_kind: SubjectKind
    secret_hash: str
    purpose: Optional[str] = None
    valid_from: datetime
    valid_until: datetime
    is_active: bool = True
    created_at: datetime

class AccessLogEntryDraft(BaseModel):
    """What the validator knows about an attempt before it is written."""
    organization_id: str
    guard_id: str
    guard_name: Optional[str] = None
    method: ResolutionMethod
    verdict: Verdict
    reason: str
    timestamp: datetime
    subject_id: Optional[str] = None
    subject_kind: Optional[SubjectKind] = None
    subject_name: Optional[str] = None
    credential_id: Optional[str] = None

class AccessLogEntry(AccessLogEntryDraft, Document):
    model_config = ConfigDict(frozen=True)

    id: str

# ========== Presented credentials ==========

class QrPayload(BaseModel):
    """Structured JSON embedded in a QR image."""
    secret_hash: str = Field(
        ..., min_length=1,
        validation_alias=AliasChoices("secretHash", "qrCodeHash", "secret_hash"),
    )
    subject: Optional[str] = Field(None, validation_alias=AliasChoices("subject", "name", "guest"))
    purpose: Optional[str] = None

class QrPayloadCredential(BaseModel):
    kind: Literal["qr_payload"] = "qr_payload"
    secret_hash: str
    payload: QrPayload

class RawHashCredential(BaseModel):
    kind: Literal["raw_hash"] = "raw_hash"
    secret_hash: str

class ManualCodeCredential(BaseModel):
    kind: Literal["manual_code"] = "manual_code"
    code: str

PresentedCredential = Annotated[
    Union[QrPayloadCredential, RawHashCredential, ManualCodeCredential],
    Field(discriminator="kind"),
]

# ========== Verdicts ==========

class SubjectSummary(BaseModel):
    name: str
    kind: SubjectKind
    home_address: Optional[str] = None
    contact: Optional[str] = None
    purpose: Optional[str] = None
    access_level: Optional[str] = None
    valid_until: Optional[datetime] = None

class VerdictResult(BaseModel):
    granted: bool
    verdict: Verdict
    reason: str
    method: ResolutionMethod
    checked_at: datetime
    subject_summary: Optional[SubjectSummary] = None
    credential_id: Optional[str] = None
    log_entry_id: Optional[str] = None

# ========== API requests / responses ==========

class CreateMemberRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    home_address: Optional[str] = None
    access_level: str = "resident"

class CreateGuestRequest(BaseModel):
    owner_member_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    email: Optional[str] = None
    relationship: Optional[str] = None

class SetActiveRequest(BaseModel):
    is_active: bool

class IssueCredentialRequest(BaseModel):
    subject_kind: SubjectKind
    subject_id: str = Field(..., min_length=1)
    purpose: Optional[str] = None
    valid_from: datetime
    valid_until: datetime

class CredentialResponse(BaseModel):
    credential: Credential
    manual_code: str
    qr_payload: str

class ValidateRequest(BaseModel):
    presented: str = Field(..., min_length=1, description="Scanned QR data or 6-digit manual code")
    method: ResolutionMethod
    guard_id: str = Field(..., min_length=1)
    guard_name: Optional[str] = None

class ScanRequest(BaseModel):
    """Barcode event delivered by the guard's camera component."""
    device_session_id: str = Field(..., min_length=1)
    type: Optional[str] = None
    data: str = Field(..., min_length=1)
    guard_id: str = Field(..., min_length=1)
    guard_name: Optional[str] = None

class ScanResponse(BaseModel):
    suppressed: bool
    result: Optional[VerdictResult] = None

class ScanResetRequest(BaseModel):
    device_session_id: Optional[str] = None

class LogsResponse(BaseModel):
    logs: List[AccessLogEntry]

class DeleteResponse(BaseModel):
    success: bool
    message: str

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
