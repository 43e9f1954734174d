# =======================================================================================
# gatepass/services/__init__.py - Services Package
# =======================================================================================
from datetime import datetime
from typing import Callable, Optional
from .manual_code import derive_manual_code
from .member_service import MemberService
from .guest_service import GuestService
from .issuer import CredentialIssuer
from .audit import AuditRecorder
from .validator import CredentialValidator
from .debouncer import ScanDebouncer
from .scan_service import ScanService
from ..store.base import DocumentStore
from ..utils.validators import utc_now


class Services:
    """Wires every service to one store and one clock."""

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = utc_now,
                 debouncer: Optional[ScanDebouncer] = None):
        self.store = store
        self.members = MemberService(store, clock)
        self.guests = GuestService(store, self.members, clock)
        self.issuer = CredentialIssuer(store, self.members, self.guests, clock)
        self.audit = AuditRecorder(store)
        self.validator = CredentialValidator(store, self.audit, clock)
        self.scanner = ScanService(self.validator, debouncer)


__all__ = [
    "derive_manual_code", "MemberService", "GuestService", "CredentialIssuer",
    "AuditRecorder", "CredentialValidator", "ScanDebouncer", "ScanService", "Services",
]
