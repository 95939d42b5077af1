import logging
from typing import NoReturn

from fastapi import HTTPException

from servicehub.errors import (
    BadCredentialError,
    DuplicateAccountError,
    ForbiddenError,
    GeocoderUnavailableError,
    InvalidPostalCodeError,
    InvalidRoleError,
    InvalidTransitionError,
    NotFoundError,
    ProfileIncompleteError,
    ServiceHubError,
    StoreUnavailableError,
    UnauthenticatedError,
    UnknownAccountError,
)

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/login"
PROFILE_SETUP_PATH = "/providers/me/setup"


def raise_http_error(exc: ServiceHubError) -> NoReturn:
    if isinstance(exc, StoreUnavailableError):
        logger.exception("Store unavailable: %s", exc)
        raise HTTPException(status_code=503, detail="Service temporarily unavailable")
    if isinstance(exc, UnauthenticatedError):
        raise HTTPException(
            status_code=401,
            detail={"message": str(exc), "redirect_to": LOGIN_PATH},
            headers={"Location": LOGIN_PATH},
        )
    if isinstance(exc, ProfileIncompleteError):
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "redirect_to": PROFILE_SETUP_PATH},
            headers={"Location": PROFILE_SETUP_PATH},
        )
    if isinstance(exc, (UnknownAccountError, BadCredentialError)):
        raise HTTPException(status_code=401, detail=str(exc))
    if isinstance(exc, ForbiddenError):
        raise HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (DuplicateAccountError, InvalidTransitionError)):
        raise HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, GeocoderUnavailableError):
        raise HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, (InvalidRoleError, InvalidPostalCodeError)):
        raise HTTPException(status_code=400, detail=str(exc))
    raise HTTPException(status_code=400, detail=str(exc))
