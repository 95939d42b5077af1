import sqlite3
from datetime import date, datetime
from typing import Iterable, List, Optional

from servicehub.db import Database
from servicehub.errors import BookingNotFoundError
from servicehub.models import Booking, BookingStatus


class BookingStore:
    def __init__(self, db: Database) -> None:
        self._db = db

    def _row_to_booking(self, row: sqlite3.Row) -> Booking:
        return Booking(
            id=row["id"],
            user_id=row["user_id"],
            provider_id=row["provider_id"],
            service_type=row["service_type"],
            city=row["city"],
            address=row["address"],
            pincode=row["pincode"],
            date=date.fromisoformat(row["booking_date"]),
            time=row["time_slot"],
            price=row["price"],
            status=BookingStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def insert(self, booking: Booking) -> Booking:
        with self._db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO bookings (
                    id, user_id, provider_id, service_type, city, address, pincode,
                    booking_date, time_slot, price, status, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    booking.id,
                    booking.user_id,
                    booking.provider_id,
                    booking.service_type,
                    booking.city,
                    booking.address,
                    booking.pincode,
                    booking.date.isoformat(),
                    booking.time,
                    booking.price,
                    booking.status.value,
                    booking.created_at.isoformat(),
                ),
            )
        return booking

    def get(self, booking_id: str) -> Booking:
        with self._db.transaction() as conn:
            row = conn.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,)).fetchone()
        if not row:
            raise BookingNotFoundError("Booking not found")
        return self._row_to_booking(row)

    def list_for_user(self, user_id: str) -> List[Booking]:
        with self._db.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM bookings WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        return [self._row_to_booking(row) for row in rows]

    def list_for_provider(
        self,
        provider_id: str,
        statuses: Optional[Iterable[BookingStatus]] = None,
    ) -> List[Booking]:
        query = "SELECT * FROM bookings WHERE provider_id = ?"
        params: List[str] = [provider_id]
        if statuses is not None:
            wanted = [BookingStatus(status).value for status in statuses]
            if not wanted:
                return []
            query += f" AND status IN ({','.join('?' for _ in wanted)})"
            params.extend(wanted)
        query += " ORDER BY created_at DESC, rowid DESC"
        with self._db.transaction() as conn:
            rows = conn.execute(query, tuple(params)).fetchall()
        return [self._row_to_booking(row) for row in rows]

    def compare_and_set_status(
        self,
        booking_id: str,
        provider_id: str,
        expected: BookingStatus,
        target: BookingStatus,
    ) -> Optional[Booking]:
        """Move a booking from ``expected`` to ``target`` in one conditional write.

        Returns the updated booking, or ``None`` when the row no longer has
        the expected status (another request got there first).
        """
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE bookings SET status = ? WHERE id = ? AND provider_id = ? AND status = ?",
                (target.value, booking_id, provider_id, expected.value),
            )
            if cursor.rowcount == 0:
                return None
            if target is BookingStatus.COMPLETED:
                conn.execute("UPDATE providers SET total_jobs = total_jobs + 1 WHERE id = ?", (provider_id,))
            row = conn.execute("SELECT * FROM bookings WHERE id = ?", (booking_id,)).fetchone()
        return self._row_to_booking(row)
