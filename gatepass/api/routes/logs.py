# =======================================================================================
# gatepass/api/routes/logs.py - Access Log Endpoints
# =======================================================================================
from typing import Optional
from fastapi import APIRouter, Depends, Query
from ...models.enums import Verdict
from ...models.schemas import LogsResponse
from ...services import Services
from ..dependencies import get_services

router = APIRouter()


@router.get("/orgs/{organization_id}/logs", response_model=LogsResponse)
async def get_logs(
    organization_id: str,
    subject_id: Optional[str] = Query(None, description="Only entries for this member or guest"),
    verdict: Optional[Verdict] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    services: Services = Depends(get_services),
):
    logs = await services.audit.list_entries(organization_id, subject_id, verdict, limit)
    return LogsResponse(logs=logs)
