import base64
import hashlib
import hmac
import os
from typing import Optional

from fastapi import Cookie, Depends, HTTPException, Response, status

from marketlink.models import User
from marketlink.services.account_store import account_store

SESSION_COOKIE = "session"


def _env_positive_int(name: str, default: int) -> int:
    try:
        value = int(os.getenv(name, str(default)))
    except ValueError:
        return default
    return value if value > 0 else default


SESSION_TTL_HOURS = _env_positive_int("SESSION_TTL_HOURS", 24 * 7)
MAGIC_TOKEN_TTL_MINUTES = _env_positive_int("MAGIC_TOKEN_TTL_MINUTES", 15)
COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() in {"1", "true", "yes"}
WEB_BASE = os.getenv("WEB_URL", "http://localhost:3000").rstrip("/")
_SESSION_SECRET = os.getenv("SESSION_SECRET", "dev-insecure-secret-change-me")


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("utf-8").rstrip("=")


def _b64urldecode(value: str) -> bytes:
    padding = "=" * ((4 - len(value) % 4) % 4)
    return base64.urlsafe_b64decode((value + padding).encode("utf-8"))


def sign_session_token(session_token: str) -> str:
    sig = hmac.new(_SESSION_SECRET.encode("utf-8"), session_token.encode("utf-8"), hashlib.sha256).digest()
    return f"{session_token}.{_b64url(sig)}"


def unsign_session_token(cookie_value: str) -> Optional[str]:
    try:
        session_token, sig_part = cookie_value.rsplit(".", 1)
        sent_sig = _b64urldecode(sig_part)
    except ValueError:
        return None
    expected_sig = hmac.new(_SESSION_SECRET.encode("utf-8"), session_token.encode("utf-8"), hashlib.sha256).digest()
    if not session_token or not hmac.compare_digest(sent_sig, expected_sig):
        return None
    return session_token


def set_session_cookie(response: Response, session_token: str) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        sign_session_token(session_token),
        max_age=SESSION_TTL_HOURS * 3600,
        path="/",
        httponly=True,
        samesite="lax",
        secure=COOKIE_SECURE,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")


def build_verify_url(token: str) -> str:
    return f"{WEB_BASE}/login/verify?token={token}"


def resolve_request_user(session: Optional[str]) -> Optional[User]:
    if not session:
        return None
    session_token = unsign_session_token(session)
    if not session_token:
        return None
    return account_store.get_session_user(session_token)


def current_user(session: Optional[str] = Cookie(default=None)) -> Optional[User]:
    return resolve_request_user(session)


def require_authenticated_user(user: Optional[User] = Depends(current_user)) -> User:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user


def require_admin(user: User = Depends(require_authenticated_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user
