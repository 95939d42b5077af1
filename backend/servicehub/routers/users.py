from fastapi import APIRouter, Depends

from servicehub.auth import get_services, require_user
from servicehub.container import Services
from servicehub.errors import ServiceHubError
from servicehub.http_errors import raise_http_error
from servicehub.models import BookingView, User
from servicehub.services.session_authority import Principal

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=User)
def my_profile(principal: Principal = Depends(require_user), services: Services = Depends(get_services)):
    try:
        return services.accounts.get_user(principal.account_id)
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.get("/me/bookings", response_model=list[BookingView])
def my_bookings(principal: Principal = Depends(require_user), services: Services = Depends(get_services)):
    try:
        return services.lifecycle.list_for_user(principal.account_id)
    except ServiceHubError as exc:
        raise_http_error(exc)
