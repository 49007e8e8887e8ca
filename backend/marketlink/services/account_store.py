import logging
import os
import secrets
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from threading import Lock
from typing import Optional, Tuple
from uuid import uuid4

from marketlink.models import User
from marketlink.services.emails import canonical_email, require_email
from marketlink.services.errors import ConflictError, ValidationError

logger = logging.getLogger(__name__)

USER_ROLES = {"provider", "admin"}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


@dataclass
class AccountStore:
    """Users plus the login state that must survive a restart.

    Magic-link tokens and sessions are rows, not process memory: a token is
    single-use (``used_at`` is set atomically on consume) and both expire.
    """

    db_path: str
    admin_emails: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        self._lock = Lock()
        path = Path(self.db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.db_path = str(path)
        self._init_db()
        for email in self.admin_emails:
            self.ensure_user(email, role="admin")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._lock:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id TEXT PRIMARY KEY,
                        email TEXT NOT NULL UNIQUE,
                        role TEXT NOT NULL DEFAULT 'provider',
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS sessions (
                        token TEXT PRIMARY KEY,
                        user_id TEXT NOT NULL,
                        expires_at TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS magic_tokens (
                        token TEXT PRIMARY KEY,
                        email TEXT NOT NULL,
                        expires_at TEXT NOT NULL,
                        used_at TEXT,
                        created_at TEXT NOT NULL
                    )
                    """
                )
                conn.execute("CREATE INDEX IF NOT EXISTS idx_sessions_user ON sessions (user_id)")
                conn.commit()

    def _row_to_user(self, row: sqlite3.Row) -> User:
        return User(id=row["id"], email=row["email"], role=row["role"], created_at=row["created_at"])

    def create_user(self, email: str, role: str = "provider") -> User:
        normalized = require_email(email)
        if role not in USER_ROLES:
            raise ValidationError("Invalid role. Allowed: provider, admin")
        user_id = f"usr_{uuid4().hex}"
        now = _iso(_utc_now())
        with self._lock:
            with self._connect() as conn:
                try:
                    conn.execute(
                        "INSERT INTO users (id, email, role, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
                        (user_id, normalized, role, now, now),
                    )
                    conn.commit()
                except sqlite3.IntegrityError as exc:
                    raise ConflictError("Email is already registered.") from exc
        logger.info("User created id=%s role=%s", user_id, role)
        return User(id=user_id, email=normalized, role=role, created_at=now)

    def ensure_user(self, email: str, role: Optional[str] = None) -> User:
        """Get-or-create; an explicit ``role`` is applied to an existing user too."""
        existing = self.get_user_by_email(email)
        if existing is None:
            try:
                return self.create_user(email, role=role or "provider")
            except ConflictError:
                existing = self.get_user_by_email(email)
                assert existing is not None
        if role and existing.role != role:
            if role not in USER_ROLES:
                raise ValidationError("Invalid role. Allowed: provider, admin")
            with self._lock:
                with self._connect() as conn:
                    conn.execute(
                        "UPDATE users SET role = ?, updated_at = ? WHERE id = ?",
                        (role, _iso(_utc_now()), existing.id),
                    )
                    conn.commit()
            existing = existing.model_copy(update={"role": role})
        return existing

    def get_user(self, user_id: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (canonical_email(email),)).fetchone()
        return self._row_to_user(row) if row else None

    def create_magic_token(self, email: str, ttl_minutes: int = 15) -> Tuple[str, datetime]:
        token = secrets.token_hex(32)
        now = _utc_now()
        expires_at = now + timedelta(minutes=ttl_minutes)
        with self._lock:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO magic_tokens (token, email, expires_at, created_at) VALUES (?, ?, ?, ?)",
                    (token, canonical_email(email), _iso(expires_at), _iso(now)),
                )
                conn.commit()
        return token, expires_at

    def consume_magic_token(self, token: str) -> Optional[str]:
        """Mark the token used and return its email, or None if unknown, used or expired."""
        raw = (token or "").strip()
        if not raw:
            return None
        now = _iso(_utc_now())
        with self._lock:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    UPDATE magic_tokens
                    SET used_at = ?
                    WHERE token = ? AND used_at IS NULL AND expires_at > ?
                    """,
                    (now, raw, now),
                )
                if cursor.rowcount == 0:
                    return None
                row = conn.execute("SELECT email FROM magic_tokens WHERE token = ?", (raw,)).fetchone()
                conn.commit()
        return str(row["email"])

    def create_session(self, user_id: str, ttl_hours: int = 168) -> Tuple[str, datetime]:
        token = secrets.token_hex(32)
        now = _utc_now()
        expires_at = now + timedelta(hours=ttl_hours)
        with self._lock:
            with self._connect() as conn:
                self._purge_expired(conn, _iso(now))
                conn.execute(
                    "INSERT INTO sessions (token, user_id, expires_at, created_at) VALUES (?, ?, ?, ?)",
                    (token, user_id, _iso(expires_at), _iso(now)),
                )
                conn.commit()
        return token, expires_at

    def get_session_user(self, token: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT u.* FROM sessions s
                JOIN users u ON u.id = s.user_id
                WHERE s.token = ? AND s.expires_at > ?
                """,
                (token, _iso(_utc_now())),
            ).fetchone()
        return self._row_to_user(row) if row else None

    def delete_session(self, token: str) -> None:
        with self._lock:
            with self._connect() as conn:
                conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
                conn.commit()

    def _purge_expired(self, conn: sqlite3.Connection, now: str) -> None:
        conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (now,))
        conn.execute("DELETE FROM magic_tokens WHERE expires_at <= ?", (now,))


def _parse_csv_env(name: str, default: str = "") -> Tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


default_db = str(Path(__file__).resolve().parents[2] / "data" / "marketlink.sqlite3")
account_store = AccountStore(
    db_path=os.getenv("MARKETLINK_DB_PATH", default_db),
    admin_emails=_parse_csv_env("ADMIN_EMAILS"),
)
