from typing import Optional

from fastapi import APIRouter, Depends, Query

from servicehub.auth import get_services, require_provider
from servicehub.container import Services
from servicehub.errors import ServiceHubError
from servicehub.http_errors import raise_http_error
from servicehub.models import (
    AvailabilityResponse,
    BookingStatus,
    BookingView,
    DashboardView,
    Provider,
    ProviderProfileEditRequest,
    ProviderProfileSetupRequest,
)
from servicehub.services.provider_directory import ProviderFilters
from servicehub.services.session_authority import Principal

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("", response_model=list[Provider])
def search_providers(
    service_type: Optional[str] = Query(default=None),
    city: Optional[str] = Query(default=None),
    pincode: Optional[str] = Query(default=None),
    min_experience: Optional[int] = Query(default=None, ge=0),
    max_price: Optional[float] = Query(default=None, ge=0),
    services: Services = Depends(get_services),
):
    filters = ProviderFilters(
        service_type=service_type,
        city=city,
        pincode=pincode,
        min_experience=min_experience,
        max_price=max_price,
    )
    try:
        return services.directory.search(filters)
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.get("/me", response_model=Provider)
def my_profile(principal: Principal = Depends(require_provider), services: Services = Depends(get_services)):
    try:
        return services.accounts.get_provider(principal.account_id)
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/me/setup", response_model=Provider)
def setup_profile(
    payload: ProviderProfileSetupRequest,
    principal: Principal = Depends(require_provider),
    services: Services = Depends(get_services),
):
    try:
        return services.accounts.update_provider_profile(
            principal.account_id,
            experience=payload.experience,
            price_per_visit=payload.price_per_visit,
            city=payload.city,
            pincode=payload.pincode,
            address=payload.address,
            about=payload.about,
        )
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/me/edit", response_model=Provider)
def edit_profile(
    payload: ProviderProfileEditRequest,
    principal: Principal = Depends(require_provider),
    services: Services = Depends(get_services),
):
    try:
        return services.accounts.edit_provider_profile(
            principal.account_id,
            name=payload.name,
            phone=payload.phone,
            city=payload.city,
            experience=payload.experience,
            price_per_visit=payload.price_per_visit,
            about=payload.about,
            is_available=payload.is_available,
        )
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/me/availability/toggle", response_model=AvailabilityResponse)
def toggle_availability(principal: Principal = Depends(require_provider), services: Services = Depends(get_services)):
    try:
        provider = services.accounts.toggle_availability(principal.account_id)
    except ServiceHubError as exc:
        raise_http_error(exc)
    return AvailabilityResponse(provider_id=provider.id, is_available=provider.is_available)


@router.get("/me/dashboard", response_model=DashboardView)
def dashboard(principal: Principal = Depends(require_provider), services: Services = Depends(get_services)):
    try:
        return services.dashboard.build(principal)
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.get("/me/bookings", response_model=list[BookingView])
def booking_history(
    status: Optional[BookingStatus] = Query(default=None),
    principal: Principal = Depends(require_provider),
    services: Services = Depends(get_services),
):
    try:
        return services.lifecycle.list_for_provider(principal.account_id, status=status)
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.get("/{provider_id}", response_model=Provider)
def provider_profile(provider_id: str, services: Services = Depends(get_services)):
    try:
        return services.directory.profile(provider_id)
    except ServiceHubError as exc:
        raise_http_error(exc)
