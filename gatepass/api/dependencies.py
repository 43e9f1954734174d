# =======================================================================================
# gatepass/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import HTTPException, Request
from ..services import Services

def get_services(request: Request) -> Services:
    """Dependency to get the service container built at startup."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Service not initialised")
    return services
