"""Shared API dependencies and error translation."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from frostwatch.core.errors import (
    CommentNotFoundError,
    DuplicateReportFlagError,
    DuplicateVoteError,
    FrostwatchError,
    InvalidCommentError,
    InvalidLocationError,
    LocationUnavailableError,
    ReportNotFoundError,
    StorageUnavailableError,
)
from frostwatch.db.session import get_db
from frostwatch.services.change_feed import ReportChangeFeed
from frostwatch.services.identity import IdentityService, VoterIdentity
from frostwatch.services.location import IpGeolocationClient
from frostwatch.services.vote_ledger import ReportLockRegistry
from frostwatch.schemas.common import VoterIdentityFields

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]

_STATUS_BY_ERROR: tuple[tuple[type[FrostwatchError], int], ...] = (
    (InvalidLocationError, status.HTTP_400_BAD_REQUEST),
    (InvalidCommentError, status.HTTP_400_BAD_REQUEST),
    (DuplicateVoteError, status.HTTP_400_BAD_REQUEST),
    (DuplicateReportFlagError, status.HTTP_400_BAD_REQUEST),
    (ReportNotFoundError, status.HTTP_404_NOT_FOUND),
    (CommentNotFoundError, status.HTTP_404_NOT_FOUND),
    (StorageUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (LocationUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def http_error(exc: FrostwatchError) -> HTTPException:
    """Translate a domain error into the HTTP error returned to clients.

    Args:
        exc: Error raised by a service

    Returns:
        HTTPException carrying the matching status code and the error message
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal error",
    )


def identity_from(payload: VoterIdentityFields) -> VoterIdentity:
    return VoterIdentity(
        fingerprint_hash=payload.fingerprint_hash.lower(),
        ip_hash=payload.ip_hash.lower(),
    )


def get_change_feed(request: Request) -> ReportChangeFeed:
    """Return the change feed owned by the application."""
    return request.app.state.change_feed


def get_identity_service(request: Request) -> IdentityService:
    return request.app.state.identity_service


def get_geolocation_client(request: Request) -> IpGeolocationClient:
    return request.app.state.geolocation_client


def get_report_locks(request: Request) -> ReportLockRegistry:
    """Return the per-report lock registry shared by every vote request."""
    return request.app.state.report_locks


ChangeFeedDep = Annotated[ReportChangeFeed, Depends(get_change_feed)]
IdentityServiceDep = Annotated[IdentityService, Depends(get_identity_service)]
GeolocationClientDep = Annotated[IpGeolocationClient, Depends(get_geolocation_client)]
ReportLocksDep = Annotated[ReportLockRegistry, Depends(get_report_locks)]
