from typing import Optional

from fastapi import APIRouter, Depends, Response

from servicehub.auth import get_services, require_session, session_token
from servicehub.container import Services
from servicehub.errors import ServiceHubError
from servicehub.http_errors import LOGIN_PATH, raise_http_error
from servicehub.models import (
    LoginRequest,
    LoginResponse,
    PrincipalResponse,
    Provider,
    ProviderSignupRequest,
    User,
    UserSignupRequest,
)
from servicehub.services.session_authority import Principal

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup/user", response_model=User)
def signup_user(payload: UserSignupRequest, services: Services = Depends(get_services)):
    try:
        return services.accounts.create_user(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            password=payload.password,
        )
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/signup/provider", response_model=Provider)
def signup_provider(payload: ProviderSignupRequest, services: Services = Depends(get_services)):
    try:
        return services.accounts.create_provider(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            service_type=payload.service_type,
            password=payload.password,
        )
    except ServiceHubError as exc:
        raise_http_error(exc)


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, response: Response, services: Services = Depends(get_services)):
    try:
        result = services.sessions.login(email=payload.email, password=payload.password, role_claim=payload.role)
    except ServiceHubError as exc:
        raise_http_error(exc)
    response.set_cookie(
        key=services.settings.session_cookie_name,
        value=result.token,
        httponly=True,
        samesite="lax",
        max_age=services.settings.session_ttl_hours * 3600,
    )
    return LoginResponse(
        access_token=result.token,
        role=result.principal.role,
        account_id=result.principal.account_id,
        destination=result.destination,
        redirect_to=result.redirect_to,
        expires_at=result.expires_at.isoformat(),
    )


@router.post("/logout")
def logout(
    response: Response,
    token: Optional[str] = Depends(session_token),
    services: Services = Depends(get_services),
):
    services.sessions.logout(token)
    response.delete_cookie(services.settings.session_cookie_name)
    return {"status": "logged_out", "redirect_to": LOGIN_PATH}


@router.get("/me", response_model=PrincipalResponse)
def me(principal: Principal = Depends(require_session)):
    return PrincipalResponse(role=principal.role, account_id=principal.account_id)
