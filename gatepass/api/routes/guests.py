# =======================================================================================
# gatepass/api/routes/guests.py - Guest Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import CreateGuestRequest, DeleteResponse, Guest, SetActiveRequest
from ...services import Services
from ..dependencies import get_services

router = APIRouter()


@router.post("/orgs/{organization_id}/guests", response_model=Guest)
async def create_guest(organization_id: str, request: CreateGuestRequest,
                       services: Services = Depends(get_services)):
    return await services.guests.create_guest(organization_id, request)


@router.patch("/orgs/{organization_id}/guests/{guest_id}/active", response_model=Guest)
async def set_guest_active(organization_id: str, guest_id: str, request: SetActiveRequest,
                           services: Services = Depends(get_services)):
    return await services.guests.set_active(organization_id, guest_id, request.is_active)


@router.delete("/orgs/{organization_id}/guests/{guest_id}", response_model=DeleteResponse)
async def delete_guest(organization_id: str, guest_id: str,
                       services: Services = Depends(get_services)):
    """Removes the guest and all their credentials; access logs stay."""
    removed = await services.guests.delete_guest(organization_id, guest_id)
    return DeleteResponse(success=True, message=f"Guest deleted with {removed} credentials")
