import logging
from typing import Optional

import httpx

from servicehub.errors import GeocoderUnavailableError, InvalidPostalCodeError
from servicehub.models import GeoPoint

logger = logging.getLogger(__name__)


class PostalCodeGeocoder:
    """Resolves a postal code to coordinates through an OpenStreetMap style search API.

    Nothing in the booking lifecycle depends on this lookup; it is only
    exposed for clients that want to place a provider on a map.
    """

    def __init__(
        self,
        base_url: str,
        country: str = "india",
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url
        self._country = country
        self._timeout = timeout_seconds
        self._transport = transport

    def resolve(self, postal_code: str) -> GeoPoint:
        code = postal_code.strip()
        if not code:
            raise InvalidPostalCodeError("Invalid postal code")
        params = {"format": "json", "country": self._country, "postalcode": code}
        try:
            with httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
                headers={"User-Agent": "servicehub"},
            ) as client:
                response = client.get(self._base_url, params=params)
                response.raise_for_status()
                results = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.exception("Geocoder lookup failed for postal code %s", code)
            raise GeocoderUnavailableError("Postal code lookup is unavailable") from exc

        if not isinstance(results, list) or not results:
            raise InvalidPostalCodeError("Invalid postal code")
        first = results[0]
        try:
            return GeoPoint(lat=float(first["lat"]), lng=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidPostalCodeError("Invalid postal code") from exc
