import logging
import sqlite3
from datetime import datetime
from typing import Dict, Iterable, Optional, Union
from uuid import uuid4

from servicehub.db import Database
from servicehub.errors import DuplicateAccountError, InvalidRoleError, NotFoundError, ProviderNotFoundError
from servicehub.models import Provider, ProviderSummary, Role, User, UserSummary
from servicehub.services.passwords import build_password_context, verify_password

logger = logging.getLogger(__name__)

Account = Union[User, Provider]

_TABLES = {Role.USER: "users", Role.PROVIDER: "providers"}


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AccountStore:
    """Users and providers live in separate tables, so identities never mix."""

    def __init__(self, db: Database, password_hash_iterations: int) -> None:
        self._db = db
        self._pwd_context = build_password_context(password_hash_iterations)

    def _table(self, kind: Role) -> str:
        try:
            return _TABLES[Role(kind)]
        except ValueError as exc:
            raise InvalidRoleError(f"Unknown account kind: {kind}") from exc

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _row_to_provider(self, row: sqlite3.Row) -> Provider:
        return Provider(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            service_type=row["service_type"],
            experience=row["experience"],
            price_per_visit=row["price_per_visit"],
            city=row["city"],
            pincode=row["pincode"],
            address=row["address"],
            about=row["about"],
            is_profile_complete=bool(row["is_profile_complete"]),
            is_available=bool(row["is_available"]),
            rating=float(row["rating"] or 0),
            total_jobs=int(row["total_jobs"] or 0),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def row_to_account(self, kind: Role, row: sqlite3.Row) -> Account:
        if Role(kind) is Role.PROVIDER:
            return self._row_to_provider(row)
        return self._row_to_user(row)

    def _duplicate_error(self, kind: Role, exc: sqlite3.IntegrityError) -> DuplicateAccountError:
        message = str(exc).lower()
        field = "phone" if message.endswith(".phone") else "email"
        return DuplicateAccountError(f"A {Role(kind).value} with this {field} is already registered")

    def create_user(self, name: str, email: str, phone: str, password: str) -> User:
        user = User(
            id=f"usr_{uuid4().hex[:12]}",
            name=name.strip(),
            email=normalize_email(email),
            phone=phone.strip(),
            created_at=datetime.now(),
        )
        password_hash = self._pwd_context.hash(password)
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO users (id, name, email, phone, password_hash, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (user.id, user.name, user.email, user.phone, password_hash, user.created_at.isoformat()),
                )
        except sqlite3.IntegrityError as exc:
            raise self._duplicate_error(Role.USER, exc) from exc
        logger.info("User account created: %s", user.id)
        return user

    def create_provider(self, name: str, email: str, phone: str, service_type: str, password: str) -> Provider:
        provider = Provider(
            id=f"prv_{uuid4().hex[:12]}",
            name=name.strip(),
            email=normalize_email(email),
            phone=phone.strip(),
            service_type=service_type.strip(),
            is_profile_complete=False,
            is_available=True,
            created_at=datetime.now(),
        )
        password_hash = self._pwd_context.hash(password)
        try:
            with self._db.transaction() as conn:
                conn.execute(
                    """
                    INSERT INTO providers (
                        id, name, email, phone, service_type, password_hash,
                        is_profile_complete, is_available, rating, total_jobs, created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, 0, 1, 0, 0, ?)
                    """,
                    (
                        provider.id,
                        provider.name,
                        provider.email,
                        provider.phone,
                        provider.service_type,
                        password_hash,
                        provider.created_at.isoformat(),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise self._duplicate_error(Role.PROVIDER, exc) from exc
        logger.info("Provider account created: %s (%s)", provider.id, provider.service_type)
        return provider

    def find_by_email(self, kind: Role, email: str) -> Account:
        table = self._table(kind)
        with self._db.transaction() as conn:
            row = conn.execute(f"SELECT * FROM {table} WHERE email = ?", (normalize_email(email),)).fetchone()
        if not row:
            raise NotFoundError(f"No {Role(kind).value} registered with this email")
        return self.row_to_account(kind, row)

    def find_by_id(self, kind: Role, account_id: str) -> Account:
        table = self._table(kind)
        with self._db.transaction() as conn:
            row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (account_id,)).fetchone()
        if not row:
            if Role(kind) is Role.PROVIDER:
                raise ProviderNotFoundError("Provider not found")
            raise NotFoundError("User not found")
        return self.row_to_account(kind, row)

    def get_user(self, user_id: str) -> User:
        return self.find_by_id(Role.USER, user_id)  # type: ignore[return-value]

    def get_provider(self, provider_id: str) -> Provider:
        return self.find_by_id(Role.PROVIDER, provider_id)  # type: ignore[return-value]

    def verify_password(self, account: Account, plaintext: str) -> bool:
        kind = Role.PROVIDER if isinstance(account, Provider) else Role.USER
        with self._db.transaction() as conn:
            row = conn.execute(
                f"SELECT password_hash FROM {self._table(kind)} WHERE id = ?",
                (account.id,),
            ).fetchone()
        if not row:
            return False
        return verify_password(self._pwd_context, plaintext, row["password_hash"])

    def user_summaries(self, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
        ids = sorted(set(user_ids))
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        with self._db.transaction() as conn:
            rows = conn.execute(f"SELECT id, name, phone FROM users WHERE id IN ({placeholders})", ids).fetchall()
        return {row["id"]: UserSummary(id=row["id"], name=row["name"], phone=row["phone"]) for row in rows}

    def provider_summaries(self, provider_ids: Iterable[str]) -> Dict[str, ProviderSummary]:
        ids = sorted(set(provider_ids))
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        with self._db.transaction() as conn:
            rows = conn.execute(
                f"SELECT id, name, service_type, phone FROM providers WHERE id IN ({placeholders})",
                ids,
            ).fetchall()
        return {
            row["id"]: ProviderSummary(
                id=row["id"],
                name=row["name"],
                service_type=row["service_type"],
                phone=row["phone"],
            )
            for row in rows
        }

    def update_provider_profile(
        self,
        provider_id: str,
        *,
        experience: Optional[int] = None,
        price_per_visit: Optional[float] = None,
        city: Optional[str] = None,
        pincode: Optional[str] = None,
        address: Optional[str] = None,
        about: Optional[str] = None,
    ) -> Provider:
        """Profile setup: fill in the optional fields and mark the profile complete."""
        with self._db.transaction() as conn:
            row = conn.execute("SELECT is_profile_complete FROM providers WHERE id = ?", (provider_id,)).fetchone()
            if not row:
                raise ProviderNotFoundError("Provider not found")
            conn.execute(
                """
                UPDATE providers SET
                    experience = COALESCE(?, experience),
                    price_per_visit = COALESCE(?, price_per_visit),
                    city = COALESCE(?, city),
                    pincode = COALESCE(?, pincode),
                    address = COALESCE(?, address),
                    about = COALESCE(?, about),
                    is_profile_complete = 1
                WHERE id = ?
                """,
                (experience, price_per_visit, city, pincode, address, about, provider_id),
            )
            updated = conn.execute("SELECT * FROM providers WHERE id = ?", (provider_id,)).fetchone()
        if not row["is_profile_complete"]:
            logger.info("Provider profile completed: %s", provider_id)
        return self._row_to_provider(updated)

    def edit_provider_profile(
        self,
        provider_id: str,
        *,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        city: Optional[str] = None,
        experience: Optional[int] = None,
        price_per_visit: Optional[float] = None,
        about: Optional[str] = None,
        is_available: Optional[bool] = None,
    ) -> Provider:
        available_flag = None if is_available is None else (1 if is_available else 0)
        try:
            with self._db.transaction() as conn:
                cursor = conn.execute(
                    """
                    UPDATE providers SET
                        name = COALESCE(?, name),
                        phone = COALESCE(?, phone),
                        city = COALESCE(?, city),
                        experience = COALESCE(?, experience),
                        price_per_visit = COALESCE(?, price_per_visit),
                        about = COALESCE(?, about),
                        is_available = COALESCE(?, is_available)
                    WHERE id = ?
                    """,
                    (
                        name.strip() if name else None,
                        phone.strip() if phone else None,
                        city,
                        experience,
                        price_per_visit,
                        about,
                        available_flag,
                        provider_id,
                    ),
                )
                if cursor.rowcount == 0:
                    raise ProviderNotFoundError("Provider not found")
                updated = conn.execute("SELECT * FROM providers WHERE id = ?", (provider_id,)).fetchone()
        except sqlite3.IntegrityError as exc:
            raise self._duplicate_error(Role.PROVIDER, exc) from exc
        return self._row_to_provider(updated)

    def toggle_availability(self, provider_id: str) -> Provider:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE providers SET is_available = 1 - is_available WHERE id = ?",
                (provider_id,),
            )
            if cursor.rowcount == 0:
                raise ProviderNotFoundError("Provider not found")
            updated = conn.execute("SELECT * FROM providers WHERE id = ?", (provider_id,)).fetchone()
        provider = self._row_to_provider(updated)
        logger.info("Provider %s availability set to %s", provider_id, provider.is_available)
        return provider
