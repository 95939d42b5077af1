"""
Server-side sessions binding an opaque token to one authenticated role.

A session is either absent (anonymous) or holds exactly one
``Principal``: a role plus the account id of that role.  Logging in as
one role never leaves a stale identity of the other role behind, because
a principal has room for only one.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Callable, Dict, Optional

from servicehub.errors import (
    BadCredentialError,
    InvalidRoleError,
    NotFoundError,
    UnauthenticatedError,
    UnknownAccountError,
)
from servicehub.models import Provider, Role
from servicehub.services.account_store import AccountStore

logger = logging.getLogger(__name__)

DESTINATION_PATHS = {
    "discovery": "/providers",
    "profile_setup": "/providers/me/setup",
    "dashboard": "/providers/me/dashboard",
}


@dataclass(frozen=True)
class Principal:
    role: Role
    account_id: str


@dataclass(frozen=True)
class _SessionRecord:
    principal: Principal
    expires_at: datetime


@dataclass(frozen=True)
class LoginResult:
    token: str
    principal: Principal
    destination: str
    expires_at: datetime

    @property
    def redirect_to(self) -> str:
        return DESTINATION_PATHS[self.destination]


def parse_role(role_claim: Optional[str]) -> Role:
    try:
        return Role(role_claim or "")
    except ValueError as exc:
        raise InvalidRoleError("Invalid role; expected 'user' or 'provider'") from exc


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionAuthority:
    def __init__(
        self,
        accounts: AccountStore,
        ttl_hours: int = 24,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._accounts = accounts
        self._ttl = timedelta(hours=ttl_hours)
        self._clock = clock
        self._lock = Lock()
        self._sessions: Dict[str, _SessionRecord] = {}

    def login(self, email: str, password: str, role_claim: str) -> LoginResult:
        role = parse_role(role_claim)
        try:
            account = self._accounts.find_by_email(role, email)
        except NotFoundError as exc:
            logger.warning("Login failed for role=%s: unknown account", role.value)
            raise UnknownAccountError("Email not registered") from exc
        if not self._accounts.verify_password(account, password):
            logger.warning("Login failed for role=%s account=%s: bad credential", role.value, account.id)
            raise BadCredentialError("Wrong password")

        if role is Role.USER:
            destination = "discovery"
        elif isinstance(account, Provider) and account.is_profile_complete:
            destination = "dashboard"
        else:
            destination = "profile_setup"

        principal = Principal(role=role, account_id=account.id)
        token = secrets.token_urlsafe(32)
        now = self._clock()
        expires_at = now + self._ttl
        with self._lock:
            self._purge_expired(now)
            self._sessions[token] = _SessionRecord(principal=principal, expires_at=expires_at)
        logger.info("Login succeeded: role=%s account=%s", role.value, account.id)
        return LoginResult(token=token, principal=principal, destination=destination, expires_at=expires_at)

    def _purge_expired(self, now: datetime) -> None:
        # Caller holds self._lock.
        expired = [token for token, record in self._sessions.items() if now >= record.expires_at]
        for token in expired:
            del self._sessions[token]
        if expired:
            logger.debug("Purged %d expired sessions", len(expired))

    def active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def resolve(self, token: Optional[str]) -> Optional[Principal]:
        if not token:
            return None
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if self._clock() >= record.expires_at:
                del self._sessions[token]
                return None
            return record.principal

    def require_role(self, token: Optional[str], role: Role) -> Principal:
        principal = self.resolve(token)
        if principal is None or principal.role is not Role(role):
            raise UnauthenticatedError(f"Please log in as a {Role(role).value}")
        return principal

    def require_any(self, token: Optional[str]) -> Principal:
        principal = self.resolve(token)
        if principal is None:
            raise UnauthenticatedError("Please log in")
        return principal

    def logout(self, token: Optional[str]) -> None:
        if not token:
            return
        with self._lock:
            record = self._sessions.pop(token, None)
        if record is not None:
            logger.info("Logout: role=%s account=%s", record.principal.role.value, record.principal.account_id)
