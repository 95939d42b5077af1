from fastapi import APIRouter, Depends

from servicehub.auth import get_services
from servicehub.container import Services
from servicehub.errors import ServiceHubError
from servicehub.http_errors import raise_http_error
from servicehub.models import GeoPoint

router = APIRouter(prefix="/geo", tags=["geo"])


@router.get("/postal-codes/{postal_code}", response_model=GeoPoint)
def resolve_postal_code(postal_code: str, services: Services = Depends(get_services)):
    try:
        return services.geocoder.resolve(postal_code)
    except ServiceHubError as exc:
        raise_http_error(exc)
