"""
Booking lifecycle: creation by users and status changes by providers.

Status moves only along ``Pending -> Accepted | Rejected`` and
``Accepted -> Completed``.  ``next_status`` is the one place that knows
this table; every action validates through it before anything is
written, and the write itself is a conditional update on the expected
status so two racing actions cannot both succeed.
"""

import logging
from datetime import date, datetime
from typing import Dict, List, Optional
from uuid import uuid4

from servicehub.errors import ForbiddenError, InvalidTransitionError, UnauthenticatedError
from servicehub.models import Booking, BookingDetails, BookingStatus, BookingView, Role
from servicehub.services.account_store import AccountStore
from servicehub.services.booking_store import BookingStore
from servicehub.services.session_authority import Principal

logger = logging.getLogger(__name__)

TRANSITIONS: Dict[BookingStatus, Dict[str, BookingStatus]] = {
    BookingStatus.PENDING: {
        "accept": BookingStatus.ACCEPTED,
        "reject": BookingStatus.REJECTED,
    },
    BookingStatus.ACCEPTED: {
        "complete": BookingStatus.COMPLETED,
    },
}

TERMINAL_STATUSES = {BookingStatus.REJECTED, BookingStatus.COMPLETED}


def next_status(current: BookingStatus, action: str) -> BookingStatus:
    target = TRANSITIONS.get(BookingStatus(current), {}).get(action)
    if target is None:
        raise InvalidTransitionError(f"Cannot {action} a booking that is {BookingStatus(current).value}")
    return target


def require_principal(principal: Optional[Principal], role: Role) -> Principal:
    if principal is None or principal.role is not role:
        raise UnauthenticatedError(f"Please log in as a {role.value}")
    return principal


class BookingLifecycle:
    def __init__(self, accounts: AccountStore, bookings: BookingStore) -> None:
        self._accounts = accounts
        self._bookings = bookings

    def create(
        self,
        principal: Optional[Principal],
        provider_id: str,
        booking_date: date,
        time: str,
        address: str = "",
        pincode: str = "",
    ) -> Booking:
        user_id = require_principal(principal, Role.USER).account_id
        self._accounts.get_user(user_id)
        provider = self._accounts.get_provider(provider_id)
        # serviceType, city and price are copied, not joined: later profile
        # edits must not rewrite booking history.
        booking = Booking(
            id=f"bkg_{uuid4().hex[:12]}",
            user_id=user_id,
            provider_id=provider.id,
            service_type=provider.service_type,
            city=provider.city,
            address=address.strip(),
            pincode=pincode.strip(),
            date=booking_date,
            time=time.strip(),
            price=provider.price_per_visit,
            status=BookingStatus.PENDING,
            created_at=datetime.now(),
        )
        self._bookings.insert(booking)
        logger.info("Booking %s created by %s for provider %s", booking.id, user_id, provider.id)
        return booking

    def _transition(self, principal: Optional[Principal], booking_id: str, action: str) -> Booking:
        provider_id = require_principal(principal, Role.PROVIDER).account_id
        booking = self._bookings.get(booking_id)
        if booking.provider_id != provider_id:
            raise ForbiddenError("This booking belongs to another provider")
        target = next_status(booking.status, action)
        updated = self._bookings.compare_and_set_status(
            booking_id=booking.id,
            provider_id=provider_id,
            expected=booking.status,
            target=target,
        )
        if updated is None:
            current = self._bookings.get(booking_id).status
            raise InvalidTransitionError(f"Cannot {action} a booking that is {current.value}")
        logger.info("Booking %s: %s -> %s", booking.id, booking.status.value, updated.status.value)
        return updated

    def accept(self, principal: Optional[Principal], booking_id: str) -> Booking:
        return self._transition(principal, booking_id, "accept")

    def reject(self, principal: Optional[Principal], booking_id: str) -> Booking:
        return self._transition(principal, booking_id, "reject")

    def complete(self, principal: Optional[Principal], booking_id: str) -> Booking:
        return self._transition(principal, booking_id, "complete")

    def get(self, booking_id: str) -> BookingDetails:
        booking = self._bookings.get(booking_id)
        user = self._accounts.user_summaries([booking.user_id])[booking.user_id]
        provider = self._accounts.get_provider(booking.provider_id)
        return BookingDetails(booking=booking, user=user, provider=provider)

    def with_users(self, bookings: List[Booking]) -> List[BookingView]:
        users = self._accounts.user_summaries(b.user_id for b in bookings)
        return [BookingView(booking=b, user=users.get(b.user_id)) for b in bookings]

    def list_for_user(self, user_id: str) -> List[BookingView]:
        bookings = self._bookings.list_for_user(user_id)
        providers = self._accounts.provider_summaries(b.provider_id for b in bookings)
        return [BookingView(booking=b, provider=providers.get(b.provider_id)) for b in bookings]

    def list_for_provider(self, provider_id: str, status: Optional[BookingStatus] = None) -> List[BookingView]:
        statuses = None if status is None else [BookingStatus(status)]
        return self.with_users(self._bookings.list_for_provider(provider_id, statuses))
