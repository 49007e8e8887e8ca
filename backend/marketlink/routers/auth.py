import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response

from marketlink.auth import (
    MAGIC_TOKEN_TTL_MINUTES,
    SESSION_TTL_HOURS,
    build_verify_url,
    clear_session_cookie,
    require_authenticated_user,
    set_session_cookie,
    unsign_session_token,
)
from marketlink.models import AuthMeResponse, MagicLinkRequest, OkResponse, User, VerifyTokenRequest
from marketlink.services.account_store import account_store
from marketlink.services.mailer import mailer
from marketlink.services.emails import canonical_email, is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/magic-link", response_model=OkResponse)
def request_magic_link(payload: MagicLinkRequest):
    # Same answer for unknown and malformed emails so accounts can't be enumerated.
    email = canonical_email(payload.email)
    if not is_valid_email(email):
        return OkResponse()
    user = account_store.get_user_by_email(email)
    if user is None:
        return OkResponse()

    token, expires_at = account_store.create_magic_token(user.email, ttl_minutes=MAGIC_TOKEN_TTL_MINUTES)
    verify_url = build_verify_url(token)
    logger.info("Magic link issued for user=%s expires_at=%s", user.id, expires_at.isoformat())
    try:
        mailer.send_magic_link(user.email, verify_url)
    except Exception:
        logger.exception("Magic link delivery raised for user=%s", user.id)
    return OkResponse()


@router.post("/verify", response_model=OkResponse)
def verify_magic_link(payload: VerifyTokenRequest, response: Response):
    if not payload.token.strip():
        raise HTTPException(status_code=400, detail="Missing token")
    email = account_store.consume_magic_token(payload.token)
    if email is None:
        raise HTTPException(status_code=400, detail="Invalid or expired token")
    user = account_store.get_user_by_email(email)
    if user is None:
        raise HTTPException(status_code=400, detail="User not found")

    session_token, _ = account_store.create_session(user.id, ttl_hours=SESSION_TTL_HOURS)
    set_session_cookie(response, session_token)
    return OkResponse()


@router.get("/me", response_model=AuthMeResponse)
def me(user: User = Depends(require_authenticated_user)):
    return AuthMeResponse(user=user)


@router.post("/logout", response_model=OkResponse)
def logout(response: Response, session: Optional[str] = Cookie(default=None)):
    session_token = unsign_session_token(session) if session else None
    if session_token:
        account_store.delete_session(session_token)
    clear_session_cookie(response)
    return OkResponse()
