"""
Provider dashboard metrics derived from booking history.

Earnings are recognised when a booking is accepted, so both
``Accepted`` and ``Completed`` bookings count.  Windows are computed in
naive local time from ``now``:

* today: midnight today up to ``now``
* week:  the most recent Monday 00:00 up to ``now`` (on a Sunday this is
  the Monday six days earlier)
* month: the first of the month 00:00 up to ``now``

Booking dates carry no time of day; a booking counts from midnight of
its date.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Protocol, Union

from servicehub.errors import ProfileIncompleteError
from servicehub.models import BookingStatus, DashboardView, Role
from servicehub.services.account_store import AccountStore
from servicehub.services.booking_lifecycle import BookingLifecycle, require_principal
from servicehub.services.booking_store import BookingStore
from servicehub.services.session_authority import Principal

EARNING_STATUSES = frozenset({BookingStatus.ACCEPTED, BookingStatus.COMPLETED})


class EarningRecord(Protocol):
    status: BookingStatus
    date: Union[date, datetime]
    price: Optional[float]


@dataclass(frozen=True)
class EarningsWindows:
    now: datetime
    today_start: datetime
    week_start: datetime
    month_start: datetime


@dataclass(frozen=True)
class EarningsSummary:
    today: float
    week: float
    month: float
    jobs_today: int


def earnings_windows(now: datetime) -> EarningsWindows:
    today_start = datetime.combine(now.date(), time.min)
    # weekday() is 0 for Monday and 6 for Sunday.
    week_start = today_start - timedelta(days=today_start.weekday())
    month_start = today_start.replace(day=1)
    return EarningsWindows(now=now, today_start=today_start, week_start=week_start, month_start=month_start)


def _booking_moment(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def is_job_today(record: EarningRecord, windows: EarningsWindows) -> bool:
    return BookingStatus(record.status) in EARNING_STATUSES and _booking_moment(record.date) >= windows.today_start


def summarize_earnings(records: Iterable[EarningRecord], now: datetime) -> EarningsSummary:
    windows = earnings_windows(now)
    today = week = month = 0.0
    jobs_today = 0
    for record in records:
        if BookingStatus(record.status) not in EARNING_STATUSES:
            continue
        moment = _booking_moment(record.date)
        price = float(record.price or 0)
        if moment >= windows.today_start:
            jobs_today += 1
        if moment > windows.now:
            continue
        if moment >= windows.today_start:
            today += price
        if moment >= windows.week_start:
            week += price
        if moment >= windows.month_start:
            month += price
    return EarningsSummary(today=today, week=week, month=month, jobs_today=jobs_today)


class DashboardAggregator:
    def __init__(self, accounts: AccountStore, bookings: BookingStore, lifecycle: BookingLifecycle) -> None:
        self._accounts = accounts
        self._bookings = bookings
        self._lifecycle = lifecycle

    def build(self, principal: Optional[Principal], now: Optional[datetime] = None) -> DashboardView:
        provider_id = require_principal(principal, Role.PROVIDER).account_id
        provider = self._accounts.get_provider(provider_id)
        if not provider.is_profile_complete:
            raise ProfileIncompleteError("Complete your profile to open the dashboard")

        now = now or datetime.now()
        windows = earnings_windows(now)
        history = self._bookings.list_for_provider(provider_id)
        summary = summarize_earnings(history, now)

        pending = [b for b in history if b.status is BookingStatus.PENDING]
        today_jobs = [b for b in history if is_job_today(b, windows)]
        return DashboardView(
            provider=provider,
            pending_bookings=self._lifecycle.with_users(pending),
            today_jobs=self._lifecycle.with_users(today_jobs),
            jobs_today_count=summary.jobs_today,
            today_earnings=summary.today,
            week_earnings=summary.week,
            month_earnings=summary.month,
        )
