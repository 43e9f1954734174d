# =======================================================================================
# gatepass/api/routes/members.py - Member Endpoints
# =======================================================================================
from typing import List
from fastapi import APIRouter, Depends
from ...models.schemas import (
    CreateMemberRequest,
    CredentialResponse,
    Guest,
    Member,
    SetActiveRequest,
)
from ...services import Services
from ...services.manual_code import derive_manual_code
from ..dependencies import get_services

router = APIRouter()


@router.post("/orgs/{organization_id}/members", response_model=Member)
async def register_member(organization_id: str, request: CreateMemberRequest,
                          services: Services = Depends(get_services)):
    return await services.members.register_member(organization_id, request)


@router.get("/orgs/{organization_id}/members", response_model=List[Member])
async def list_members(organization_id: str, services: Services = Depends(get_services)):
    return await services.members.list_members(organization_id)


@router.patch("/orgs/{organization_id}/members/{member_id}/active", response_model=Member)
async def set_member_active(organization_id: str, member_id: str, request: SetActiveRequest,
                            services: Services = Depends(get_services)):
    return await services.members.set_active(organization_id, member_id, request.is_active)


@router.post("/orgs/{organization_id}/members/{member_id}/pass", response_model=CredentialResponse)
async def issue_member_pass(organization_id: str, member_id: str,
                            services: Services = Depends(get_services)):
    """Member's own pass for the configured number of hours."""
    member = await services.members.require_member(organization_id, member_id)
    credential = await services.issuer.issue_member_pass(organization_id, member_id)
    return CredentialResponse(
        credential=credential,
        manual_code=derive_manual_code(member_id),
        qr_payload=services.issuer.build_qr_payload(credential, member.name),
    )


@router.get("/orgs/{organization_id}/members/{member_id}/guests", response_model=List[Guest])
async def list_member_guests(organization_id: str, member_id: str,
                             services: Services = Depends(get_services)):
    return await services.guests.list_guests_by_member(organization_id, member_id)
