from fastapi import APIRouter, Depends

from servicehub.auth import get_services, require_provider, require_session, require_user
from servicehub.container import Services
from servicehub.errors import ForbiddenError, ServiceHubError
from servicehub.http_errors import raise_http_error
from servicehub.models import Booking, BookingCreateRequest, BookingDetails, Role
from servicehub.services.session_authority import Principal

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=Booking)
def create_booking(
    request: BookingCreateRequest,
    principal: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    try:
        return services.lifecycle.create(
            principal,
            provider_id=request.provider_id,
            booking_date=request.date,
            time=request.time,
            address=request.address,
            pincode=request.pincode,
        )
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.get("/{booking_id}", response_model=BookingDetails)
def booking_details(
    booking_id: str,
    principal: Principal = Depends(require_session),
    services: Services = Depends(get_services),
):
    try:
        details = services.lifecycle.get(booking_id)
        party_id = details.user.id if principal.role is Role.USER else details.provider.id
        if party_id != principal.account_id:
            raise ForbiddenError("You are not a party to this booking")
        return details
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/{booking_id}/accept", response_model=Booking)
def accept_booking(
    booking_id: str,
    principal: Principal = Depends(require_provider),
    services: Services = Depends(get_services),
):
    try:
        return services.lifecycle.accept(principal, booking_id)
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/{booking_id}/reject", response_model=Booking)
def reject_booking(
    booking_id: str,
    principal: Principal = Depends(require_provider),
    services: Services = Depends(get_services),
):
    try:
        return services.lifecycle.reject(principal, booking_id)
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/{booking_id}/complete", response_model=Booking)
def complete_booking(
    booking_id: str,
    principal: Principal = Depends(require_provider),
    services: Services = Depends(get_services),
):
    try:
        return services.lifecycle.complete(principal, booking_id)
    except ServiceHubError as exc:
        raise_http_error(exc)
