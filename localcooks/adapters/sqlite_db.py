"""
SQLite store adapters.

Implements the subscription and contact submission store ports using SQLite.
Designed to be Postgres-compatible (uses standard SQL patterns).

Concurrency guarantees come from the database, not from Python:
- ``UNIQUE(email)`` makes concurrent inserts for one address fail atomically
- conditional ``UPDATE ... WHERE verified = 0`` reports affected rows
"""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from localcooks.components.contact import ContactSubmission, InquiryType
from localcooks.components.newsletter import (
    DuplicateEmailError,
    RecordKey,
    SubscriptionRecord,
    SubscriptionState,
    check_update_fields,
)

# Busy timeout; bounds how long a call waits on a locked database
DEFAULT_TIMEOUT_SECONDS = 10.0

# -----------------------------------------------------------------------------
# Helper functions
# -----------------------------------------------------------------------------


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """Convert SQLite row to dictionary."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def parse_dt(s: str | None) -> datetime | None:
    """Parse ISO datetime string."""
    return datetime.fromisoformat(s) if s else None


def format_dt(dt: datetime) -> str:
    """
    Serialise a datetime as fixed-width UTC ISO text.

    Fixed width keeps lexical order equal to time order, so SQL can
    compare stored timestamps directly.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat(timespec="microseconds")


def _to_db(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_dt(value)
    if isinstance(value, bool):
        return int(value)
    return value


# -----------------------------------------------------------------------------
# Base SQLite Repository
# -----------------------------------------------------------------------------


class SQLiteRepoBase:
    """Base class for SQLite repositories."""

    def __init__(
        self,
        db_path: str,
        connection: sqlite3.Connection | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.db_path = db_path
        self.timeout = timeout
        self._external_conn = connection

    def _get_conn(self) -> sqlite3.Connection:
        """Get database connection (uses external if provided)."""
        if self._external_conn is not None:
            return self._external_conn

        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _should_close(self) -> bool:
        """Whether to close connection after use."""
        return self._external_conn is None

    def ping(self) -> bool:
        """Round-trip a trivial query. Raises on failure."""
        conn = self._get_conn()
        try:
            conn.execute("SELECT 1").fetchone()
            return True
        finally:
            if self._should_close():
                conn.close()


# -----------------------------------------------------------------------------
# Newsletter Subscriptions
# -----------------------------------------------------------------------------


class SQLiteSubscriptionStore(SQLiteRepoBase):
    """SQLite implementation of SubscriptionStorePort."""

    def find_by_email(self, email: str) -> SubscriptionRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM newsletter_subscriptions WHERE email = ?", (email,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def find_by_token(self, token: str) -> SubscriptionRecord | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM newsletter_subscriptions WHERE verification_token = ?",
                (token,),
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def insert_pending(self, record: SubscriptionRecord) -> SubscriptionRecord:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO newsletter_subscriptions (
                    id, email, verification_token, verified, verified_at,
                    expires_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(record.id),
                    record.email,
                    record.verification_token,
                    int(record.verified),
                    format_dt(record.verified_at) if record.verified_at else None,
                    format_dt(record.expires_at),
                    format_dt(record.created_at),
                    format_dt(record.updated_at),
                ),
            )
            if self._should_close():
                conn.commit()
            return record
        except sqlite3.IntegrityError as e:
            if "email" in str(e):
                raise DuplicateEmailError(record.email) from e
            raise
        finally:
            if self._should_close():
                conn.close()

    def update_if_unverified(self, key: RecordKey, fields: Mapping[str, Any]) -> int:
        check_update_fields(dict(fields))
        columns = sorted(fields)
        assignments = ", ".join(f"{col} = ?" for col in columns)
        params = [_to_db(fields[col]) for col in columns]
        params.append(key.value)

        conn = self._get_conn()
        try:
            # Column names come from fixed whitelists; values are bound
            cursor = conn.execute(
                f"UPDATE newsletter_subscriptions SET {assignments} "
                f"WHERE {key.column} = ? AND verified = 0",
                params,
            )
            if self._should_close():
                conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()

    def count_by_state(self, now: datetime) -> dict[SubscriptionState, int]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT
                    CASE
                        WHEN verified = 1 THEN 'verified'
                        WHEN expires_at < ? THEN 'pending_expired'
                        ELSE 'pending'
                    END AS state,
                    COUNT(*) AS n
                FROM newsletter_subscriptions
                GROUP BY state
                """,
                (format_dt(now),),
            ).fetchall()
        finally:
            if self._should_close():
                conn.close()

        counts = {state: 0 for state in SubscriptionState}
        for row in rows:
            counts[SubscriptionState(row["state"])] = row["n"]
        return counts

    def _map_row(self, row: dict[str, Any]) -> SubscriptionRecord:
        return SubscriptionRecord(
            id=UUID(row["id"]),
            email=row["email"],
            verification_token=row["verification_token"],
            verified=bool(row["verified"]),
            verified_at=parse_dt(row["verified_at"]),
            expires_at=datetime.fromisoformat(row["expires_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


# -----------------------------------------------------------------------------
# Contact Submissions
# -----------------------------------------------------------------------------


class SQLiteContactSubmissionStore(SQLiteRepoBase):
    """SQLite implementation of ContactSubmissionStorePort."""

    def insert(self, submission: ContactSubmission) -> ContactSubmission:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO contact_submissions (
                    id, name, email, phone, message, inquiry_type, topic,
                    cooking_description, experience, heard_from,
                    verification_token, verified, verified_at, expires_at, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(submission.id),
                    submission.name,
                    submission.email,
                    submission.phone,
                    submission.message,
                    submission.inquiry_type.value,
                    submission.topic,
                    submission.cooking_description,
                    submission.experience,
                    submission.heard_from,
                    submission.verification_token,
                    int(submission.verified),
                    format_dt(submission.verified_at) if submission.verified_at else None,
                    format_dt(submission.expires_at),
                    format_dt(submission.created_at),
                ),
            )
            if self._should_close():
                conn.commit()
            return submission
        finally:
            if self._should_close():
                conn.close()

    def find_by_token(self, token: str) -> ContactSubmission | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM contact_submissions WHERE verification_token = ?", (token,)
            ).fetchone()
            return self._map_row(row) if row else None
        finally:
            if self._should_close():
                conn.close()

    def mark_verified_if_unverified(self, token: str, verified_at: datetime) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                """
                UPDATE contact_submissions SET verified = 1, verified_at = ?
                WHERE verification_token = ? AND verified = 0
                """,
                (format_dt(verified_at), token),
            )
            if self._should_close():
                conn.commit()
            return cursor.rowcount
        finally:
            if self._should_close():
                conn.close()

    def _map_row(self, row: dict[str, Any]) -> ContactSubmission:
        return ContactSubmission(
            id=UUID(row["id"]),
            name=row["name"],
            email=row["email"],
            inquiry_type=InquiryType(row["inquiry_type"]),
            verification_token=row["verification_token"],
            expires_at=datetime.fromisoformat(row["expires_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            phone=row["phone"],
            message=row["message"],
            topic=row["topic"],
            cooking_description=row["cooking_description"],
            experience=row["experience"],
            heard_from=row["heard_from"],
            verified=bool(row["verified"]),
            verified_at=parse_dt(row["verified_at"]),
        )
