# =======================================================================================
# gatepass/services/scan_service.py - Guard Scanner Pipeline
# =======================================================================================
import logging
from typing import Optional
from ..models.enums import ResolutionMethod
from ..models.schemas import ScanRequest, ScanResponse
from .debouncer import ScanDebouncer
from .validator import CredentialValidator

log = logging.getLogger(__name__)


class ScanService:
    """Feeds camera scan events through the debouncer into the validator."""

    def __init__(self, validator: CredentialValidator, debouncer: Optional[ScanDebouncer] = None):
        self.validator = validator
        self.debouncer = debouncer or ScanDebouncer()

    async def process_scan(self, organization_id: str, request: ScanRequest) -> ScanResponse:
        """
        Suppressed scans never reach the validator and leave no access log
        entry; every other scan is validated as a qr_scan.
        """
        if not self.debouncer.should_process(request.device_session_id, request.data):
            log.debug("Suppressed repeat scan on device %s", request.device_session_id)
            return ScanResponse(suppressed=True)

        result = await self.validator.validate(
            organization_id,
            request.data,
            ResolutionMethod.QR_SCAN,
            request.guard_id,
            request.guard_name,
        )
        return ScanResponse(suppressed=False, result=result)

    def reset(self, device_session_id: Optional[str] = None) -> None:
        self.debouncer.reset(device_session_id)
