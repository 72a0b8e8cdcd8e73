# src/frostwatch/api/v1/endpoints/identity.py
"""Anonymous identity endpoint."""

from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Request, status

from frostwatch.schemas.identity import IdentityResponse

from ..dependencies import IdentityServiceDep

router = APIRouter(prefix="/identity", tags=["identity"])


@router.post("/", response_model=IdentityResponse)
async def resolve_identity(
    request: Request,
    identity_service: IdentityServiceDep,
    x_client_fingerprint: Annotated[str | None, Header()] = None,
) -> IdentityResponse:
    """Hash the caller's device fingerprint and address into an anonymous identity.

    Raw values never leave this handler; only the digests are returned.
    """
    if not x_client_fingerprint or not x_client_fingerprint.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Client-Fingerprint header",
        )
    ip = request.client.host if request.client else "unknown"
    identity = identity_service.resolve(x_client_fingerprint.strip(), ip)
    return IdentityResponse(fingerprint_hash=identity.fingerprint_hash, ip_hash=identity.ip_hash)
