# =======================================================================================
# gatepass/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class GatepassError(Exception):
    """Base exception for the gate access system."""
    pass

# ---------- issuance ----------

class CredentialIssueError(GatepassError):
    """Raised when a credential cannot be issued."""
    pass

class InvalidWindowError(CredentialIssueError):
    """Raised when the requested validity window is rejected."""
    pass

class InvalidPurposeError(CredentialIssueError):
    """Raised when a guest credential is requested without a purpose."""
    pass

# ---------- lookups ----------

class SubjectNotFoundError(GatepassError):
    """Raised when a member or guest does not exist in the organization."""
    pass

class CredentialNotFoundError(GatepassError):
    """Raised when a credential does not exist in the organization."""
    pass

# ---------- store ----------

class StoreError(GatepassError):
    """Raised by document store implementations."""
    pass

class StoreUnavailableError(StoreError):
    """Raised when the backing store cannot be reached."""
    pass

class TenantScopeError(StoreError):
    """Raised when a store call is made without an organization scope."""
    pass

class DocumentNotFoundError(StoreError):
    """Raised when updating a document that does not exist."""
    pass

class DuplicateDocumentError(StoreError):
    """Raised when appending a document whose id is already taken."""
    pass

class AppendOnlyViolationError(StoreError):
    """Raised when an append-only collection would be rewritten."""
    pass
