import logging
import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import List, Optional
from uuid import uuid4

from marketlink.models import Inquiry
from marketlink.services.emails import canonical_email, is_valid_email
from marketlink.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

INQUIRY_STATUSES = ("NEW", "READ", "ARCHIVED")
OWNER_SETTABLE_STATUSES = ("READ", "ARCHIVED")

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 200
MAX_PHONE_LENGTH = 40
MAX_MESSAGE_LENGTH = 2000


class InquiryStore:
    def __init__(self, db_path: str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = Lock()
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._lock:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS inquiries (
                        id TEXT PRIMARY KEY,
                        provider_id TEXT NOT NULL,
                        name TEXT NOT NULL,
                        email TEXT NOT NULL,
                        phone TEXT,
                        message TEXT NOT NULL,
                        status TEXT NOT NULL DEFAULT 'NEW',
                        created_at TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_inquiries_provider ON inquiries (provider_id, created_at)"
                )
                conn.commit()

    def _row_to_inquiry(self, row: sqlite3.Row) -> Inquiry:
        return Inquiry(
            id=row["id"],
            provider_id=row["provider_id"],
            name=row["name"],
            email=row["email"],
            phone=row["phone"],
            message=row["message"],
            status=row["status"],
            created_at=row["created_at"],
        )

    def create(
        self,
        *,
        provider_id: str,
        name: str,
        email: str,
        message: str,
        phone: Optional[str] = None,
    ) -> Inquiry:
        name = (name or "").strip()
        email = canonical_email(email)
        phone = (phone or "").strip() or None
        message = (message or "").strip()

        if not name:
            raise ValidationError("name is required")
        if not is_valid_email(email):
            raise ValidationError("valid email is required")
        if not message:
            raise ValidationError("message is required")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError("name is too long")
        if len(email) > MAX_EMAIL_LENGTH:
            raise ValidationError("email is too long")
        if phone and len(phone) > MAX_PHONE_LENGTH:
            raise ValidationError("phone is too long")
        if len(message) > MAX_MESSAGE_LENGTH:
            raise ValidationError("message is too long")

        inquiry = Inquiry(
            id=f"inq_{uuid4().hex}",
            provider_id=provider_id,
            name=name,
            email=email,
            phone=phone,
            message=message,
            status="NEW",
            created_at=datetime.now(timezone.utc).isoformat(timespec="microseconds"),
        )
        with self._lock:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO inquiries (id, provider_id, name, email, phone, message, status, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        inquiry.id,
                        inquiry.provider_id,
                        inquiry.name,
                        inquiry.email,
                        inquiry.phone,
                        inquiry.message,
                        inquiry.status,
                        inquiry.created_at,
                    ),
                )
                conn.commit()
        logger.info("Inquiry created id=%s provider=%s", inquiry.id, provider_id)
        return inquiry

    def list_for_provider(self, provider_id: str, status: Optional[str] = None, limit: int = 100) -> List[Inquiry]:
        sql = "SELECT * FROM inquiries WHERE provider_id = ?"
        params: List[object] = [provider_id]
        if status:
            normalized = status.strip().upper()
            if normalized not in INQUIRY_STATUSES:
                raise ValidationError("Invalid status. Allowed: NEW, READ, ARCHIVED")
            sql += " AND status = ?"
            params.append(normalized)
        sql += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
        params.append(limit)
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [self._row_to_inquiry(row) for row in rows]

    def update_status(self, *, provider_id: str, inquiry_id: str, status: str) -> Inquiry:
        normalized = (status or "").strip().upper()
        if normalized not in OWNER_SETTABLE_STATUSES:
            raise ValidationError("Invalid status. Allowed: READ, ARCHIVED")
        with self._lock:
            with self._connect() as conn:
                cursor = conn.execute(
                    "UPDATE inquiries SET status = ? WHERE id = ? AND provider_id = ?",
                    (normalized, inquiry_id, provider_id),
                )
                if cursor.rowcount == 0:
                    raise NotFoundError("Inquiry not found")
                conn.commit()
                row = conn.execute("SELECT * FROM inquiries WHERE id = ?", (inquiry_id,)).fetchone()
        return self._row_to_inquiry(row)


default_db = str(Path(__file__).resolve().parents[2] / "data" / "marketlink.sqlite3")
inquiry_store = InquiryStore(db_path=os.getenv("MARKETLINK_DB_PATH", default_db))
