# =======================================================================================
# gatepass/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *
from .payload import *

__all__ = [
    "GatepassError", "CredentialIssueError", "InvalidWindowError", "InvalidPurposeError",
    "SubjectNotFoundError", "CredentialNotFoundError", "StoreError", "StoreUnavailableError",
    "TenantScopeError", "DocumentNotFoundError", "DuplicateDocumentError",
    "AppendOnlyViolationError", "WindowValidator", "utc_now", "ensure_aware",
    "parse_scanned_data", "parse_manual_code", "hash_preview",
]
