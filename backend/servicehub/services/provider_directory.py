from dataclasses import dataclass
from typing import Any, List, Optional

from servicehub.db import Database
from servicehub.errors import ProviderNotFoundError
from servicehub.models import Provider, Role
from servicehub.services.account_store import AccountStore


@dataclass(frozen=True)
class ProviderFilters:
    service_type: Optional[str] = None
    city: Optional[str] = None
    pincode: Optional[str] = None
    min_experience: Optional[int] = None
    max_price: Optional[float] = None


class ProviderDirectory:
    """Discovery over complete, available provider profiles.

    Filters combine with AND.  Results come back in storage order; sort
    them yourself if you need a stable ordering.
    """

    def __init__(self, db: Database, accounts: AccountStore) -> None:
        self._db = db
        self._accounts = accounts

    def search(self, filters: Optional[ProviderFilters] = None) -> List[Provider]:
        filters = filters or ProviderFilters()
        clauses = ["is_profile_complete = 1", "is_available = 1"]
        params: List[Any] = []

        service_type = (filters.service_type or "").strip()
        if service_type:
            clauses.append("lower(service_type) = lower(?)")
            params.append(service_type)
        city = (filters.city or "").strip()
        if city:
            clauses.append("instr(lower(coalesce(city, '')), lower(?)) > 0")
            params.append(city)
        pincode = (filters.pincode or "").strip()
        if pincode:
            clauses.append("pincode = ?")
            params.append(pincode)
        if filters.min_experience is not None:
            clauses.append("experience >= ?")
            params.append(filters.min_experience)
        if filters.max_price is not None:
            clauses.append("price_per_visit <= ?")
            params.append(filters.max_price)

        query = f"SELECT * FROM providers WHERE {' AND '.join(clauses)} ORDER BY rowid"
        with self._db.transaction() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._accounts.row_to_account(Role.PROVIDER, row) for row in rows]  # type: ignore[misc]

    def profile(self, provider_id: str) -> Provider:
        """Public profile; providers that have not finished setup stay hidden."""
        provider = self._accounts.get_provider(provider_id)
        if not provider.is_profile_complete:
            raise ProviderNotFoundError("Provider not found")
        return provider
