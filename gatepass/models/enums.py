# =======================================================================================
# gatepass/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

StoreAction = Literal["put", "update", "delete", "append"]

class SubjectKind(str, Enum):
    """Who a credential grants access on behalf of."""
    MEMBER = "member"
    GUEST = "guest"

class ResolutionMethod(str, Enum):
    """How the guard presented the credential."""
    QR_SCAN = "qr_scan"
    MANUAL_CODE = "manual_code"

class Verdict(str, Enum):
    """Outcome of one validation attempt."""
    GRANTED = "granted"
    NOT_FOUND = "not_found"
    INACTIVE = "inactive"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"
    SYSTEM_ERROR = "system_error"

# Verdicts where the subject's display name may be shown to the guard
DIAGNOSTIC_VERDICTS = frozenset({Verdict.INACTIVE, Verdict.NOT_YET_VALID, Verdict.EXPIRED})

class Collection(str, Enum):
    """Document store collections."""
    MEMBERS = "members"
    GUARDS = "guards"
    GUESTS = "guests"
    CREDENTIALS = "credentials"
    ACCESS_LOGS = "access_logs"

APPEND_ONLY_COLLECTIONS = frozenset({Collection.ACCESS_LOGS.value})
