# =======================================================================================
# gatepass/api/routes/scan.py - Validation and Scan Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import (
    DeleteResponse,
    ScanRequest,
    ScanResetRequest,
    ScanResponse,
    ValidateRequest,
    VerdictResult,
)
from ...services import Services
from ..dependencies import get_services

router = APIRouter()


@router.post("/orgs/{organization_id}/validate", response_model=VerdictResult)
async def validate(organization_id: str, request: ValidateRequest,
                   services: Services = Depends(get_services)):
    """
    Validate a scanned payload or a manual code.
    Always 200: denials and system errors are verdicts, not HTTP errors.
    """
    return await services.validator.validate(
        organization_id, request.presented, request.method, request.guard_id, request.guard_name
    )


@router.post("/orgs/{organization_id}/scan", response_model=ScanResponse)
async def handle_scan(organization_id: str, request: ScanRequest,
                      services: Services = Depends(get_services)):
    """Camera scan event from a guard device."""
    return await services.scanner.process_scan(organization_id, request)


@router.post("/orgs/{organization_id}/scan/reset", response_model=DeleteResponse)
async def reset_scanner(organization_id: str, request: ScanResetRequest,
                        services: Services = Depends(get_services)):
    services.scanner.reset(request.device_session_id)
    return DeleteResponse(success=True, message="Scanner reset")
