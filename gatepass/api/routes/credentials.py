# =======================================================================================
# gatepass/api/routes/credentials.py - Credential Endpoints
# =======================================================================================
from typing import List, Optional
from fastapi import APIRouter, Depends
from ...models.enums import SubjectKind
from ...models.schemas import (
    Credential,
    CredentialResponse,
    DeleteResponse,
    IssueCredentialRequest,
    SetActiveRequest,
)
from ...services import Services
from ...services.manual_code import derive_manual_code
from ..dependencies import get_services

router = APIRouter()


async def _display_name(services: Services, credential: Credential) -> Optional[str]:
    if credential.subject_kind == SubjectKind.MEMBER:
        subject = await services.members.get_member(credential.organization_id, credential.subject_id)
    else:
        subject = await services.guests.get_guest(credential.organization_id, credential.subject_id)
    return subject.name if subject else None


async def _respond(services: Services, credential: Credential) -> CredentialResponse:
    return CredentialResponse(
        credential=credential,
        manual_code=derive_manual_code(credential.subject_id),
        qr_payload=services.issuer.build_qr_payload(credential, await _display_name(services, credential)),
    )


@router.post("/orgs/{organization_id}/credentials", response_model=CredentialResponse)
async def issue_credential(organization_id: str, request: IssueCredentialRequest,
                           services: Services = Depends(get_services)):
    credential = await services.issuer.issue(
        request.subject_kind,
        request.subject_id,
        organization_id,
        request.purpose,
        request.valid_from,
        request.valid_until,
    )
    return await _respond(services, credential)


@router.get("/orgs/{organization_id}/credentials/{credential_id}", response_model=CredentialResponse)
async def get_credential(organization_id: str, credential_id: str,
                         services: Services = Depends(get_services)):
    credential = await services.issuer.get(organization_id, credential_id)
    return await _respond(services, credential)


@router.patch("/orgs/{organization_id}/credentials/{credential_id}/active", response_model=Credential)
async def set_credential_active(organization_id: str, credential_id: str, request: SetActiveRequest,
                                services: Services = Depends(get_services)):
    return await services.issuer.set_active(organization_id, credential_id, request.is_active)


@router.delete("/orgs/{organization_id}/credentials/{credential_id}", response_model=DeleteResponse)
async def delete_credential(organization_id: str, credential_id: str,
                            services: Services = Depends(get_services)):
    await services.issuer.delete(organization_id, credential_id)
    return DeleteResponse(success=True, message="Credential deleted")


@router.get("/orgs/{organization_id}/subjects/{subject_id}/credentials", response_model=List[Credential])
async def list_subject_credentials(organization_id: str, subject_id: str,
                                   services: Services = Depends(get_services)):
    return await services.issuer.list_for_subject(organization_id, subject_id)
