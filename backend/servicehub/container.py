from dataclasses import dataclass
from typing import Optional

import httpx

from servicehub.config import Settings
from servicehub.db import Database
from servicehub.services.account_store import AccountStore
from servicehub.services.booking_lifecycle import BookingLifecycle
from servicehub.services.booking_store import BookingStore
from servicehub.services.dashboard import DashboardAggregator
from servicehub.services.geocoding import PostalCodeGeocoder
from servicehub.services.provider_directory import ProviderDirectory
from servicehub.services.session_authority import SessionAuthority


@dataclass
class Services:
    settings: Settings
    db: Database
    accounts: AccountStore
    bookings: BookingStore
    sessions: SessionAuthority
    lifecycle: BookingLifecycle
    dashboard: DashboardAggregator
    directory: ProviderDirectory
    geocoder: PostalCodeGeocoder

    def close(self) -> None:
        self.db.close()


def build_services(settings: Settings, geocoder_transport: Optional[httpx.BaseTransport] = None) -> Services:
    """Open the database and wire every component around that one handle."""
    db = Database(settings.database_path)
    db.open()
    accounts = AccountStore(db, password_hash_iterations=settings.password_hash_iterations)
    bookings = BookingStore(db)
    lifecycle = BookingLifecycle(accounts, bookings)
    return Services(
        settings=settings,
        db=db,
        accounts=accounts,
        bookings=bookings,
        sessions=SessionAuthority(accounts, ttl_hours=settings.session_ttl_hours),
        lifecycle=lifecycle,
        dashboard=DashboardAggregator(accounts, bookings, lifecycle),
        directory=ProviderDirectory(db, accounts),
        geocoder=PostalCodeGeocoder(
            base_url=settings.geocoder_url,
            country=settings.geocoder_country,
            timeout_seconds=settings.geocoder_timeout_seconds,
            transport=geocoder_transport,
        ),
    )
