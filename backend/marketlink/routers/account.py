from fastapi import APIRouter, Depends

from marketlink.auth import require_authenticated_user
from marketlink.models import AccountSummary, AuthMeResponse, User
from marketlink.services.provider_store import provider_store

router = APIRouter(prefix="/me", tags=["account"])


@router.get("", response_model=AuthMeResponse)
def me(user: User = Depends(require_authenticated_user)):
    return AuthMeResponse(user=user)


@router.get("/summary", response_model=AccountSummary)
def summary(user: User = Depends(require_authenticated_user)):
    provider = provider_store.get_owned_provider(user.id)
    return AccountSummary(
        user=user,
        provider=provider_store.to_detail(provider) if provider else None,
    )
