# =======================================================================================
# gatepass/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "Member", "Guard", "Guest", "Credential", "AccessLogEntry", "AccessLogEntryDraft",
    "QrPayload", "QrPayloadCredential", "RawHashCredential", "ManualCodeCredential",
    "PresentedCredential", "SubjectSummary", "VerdictResult",
    "SubjectKind", "ResolutionMethod", "Verdict", "Collection",
    "APPEND_ONLY_COLLECTIONS", "DIAGNOSTIC_VERDICTS",
]
