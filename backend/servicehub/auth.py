from typing import Optional

from fastapi import Depends, Header, Request

from servicehub.container import Services
from servicehub.errors import ServiceHubError
from servicehub.http_errors import raise_http_error
from servicehub.models import Role
from servicehub.services.session_authority import Principal


def get_services(request: Request) -> Services:
    return request.app.state.services


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def session_token(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    services: Services = Depends(get_services),
) -> Optional[str]:
    token = parse_bearer_token(authorization)
    if token:
        return token
    return request.cookies.get(services.settings.session_cookie_name) or None


def _require(services: Services, token: Optional[str], role: Optional[Role]) -> Principal:
    try:
        if role is None:
            return services.sessions.require_any(token)
        return services.sessions.require_role(token, role)
    except ServiceHubError as exc:
        raise_http_error(exc)


def require_session(
    token: Optional[str] = Depends(session_token),
    services: Services = Depends(get_services),
) -> Principal:
    return _require(services, token, None)


def require_user(
    token: Optional[str] = Depends(session_token),
    services: Services = Depends(get_services),
) -> Principal:
    return _require(services, token, Role.USER)


def require_provider(
    token: Optional[str] = Depends(session_token),
    services: Services = Depends(get_services),
) -> Principal:
    return _require(services, token, Role.PROVIDER)
