from typing import Optional

from fastapi import APIRouter, Depends, Query

from marketlink.auth import require_admin
from marketlink.models import (
    AdminActionRecord,
    AdminProvider,
    AdminProviderEditRequest,
    AdminProviderPage,
    AdminStatsResponse,
    DisableRequest,
    User,
    VerifyRequest,
)
from marketlink.services.errors import MarketLinkError, raise_http_error
from marketlink.services.listing_query import parse_admin_query
from marketlink.services.provider_store import provider_store

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=AdminStatsResponse)
def admin_stats(admin: User = Depends(require_admin)):
    return AdminStatsResponse(providers=provider_store.stats(admin))


@router.get("/providers", response_model=AdminProviderPage)
def admin_list_providers(
    admin: User = Depends(require_admin),
    q: Optional[str] = Query(default=None),
    name: Optional[str] = Query(default=None),
    city: Optional[str] = Query(default=None),
    service: Optional[str] = Query(default=None),
    match: Optional[str] = Query(default=None),
    min_rating: Optional[str] = Query(default=None, alias="minRating"),
    verified: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default=None),
    order: Optional[str] = Query(default=None),
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
):
    params = {
        "q": q,
        "name": name,
        "city": city,
        "service": service,
        "match": match,
        "minRating": min_rating,
        "verified": verified,
        "status": status,
        "sort": sort,
        "order": order,
        "page": page,
        "limit": limit,
    }
    try:
        return provider_store.list_admin(admin, parse_admin_query(params))
    except MarketLinkError as exc:
        raise_http_error(exc)


@router.get("/providers/{provider_id}", response_model=AdminProvider)
def admin_get_provider(provider_id: str, admin: User = Depends(require_admin)):
    try:
        return provider_store.get_provider_admin(admin, provider_id)
    except MarketLinkError as exc:
        raise_http_error(exc)


@router.patch("/providers/{provider_id}", response_model=AdminProvider)
def admin_edit_provider(
    provider_id: str,
    request: AdminProviderEditRequest,
    admin: User = Depends(require_admin),
):
    try:
        return provider_store.edit_provider(admin, provider_id, request.model_dump(exclude_unset=True))
    except MarketLinkError as exc:
        raise_http_error(exc)


@router.get("/providers/{provider_id}/actions", response_model=list[AdminActionRecord])
def admin_provider_actions(provider_id: str, admin: User = Depends(require_admin)):
    try:
        return provider_store.list_admin_actions(admin, provider_id)
    except MarketLinkError as exc:
        raise_http_error(exc)


@router.post("/providers/{provider_id}/approve")
def approve_provider(provider_id: str, admin: User = Depends(require_admin)):
    try:
        provider = provider_store.approve(admin, provider_id)
    except MarketLinkError as exc:
        raise_http_error(exc)
    return {"ok": True, "provider": {"id": provider.id, "status": provider.status}}


@router.post("/providers/{provider_id}/disable")
def disable_provider(
    provider_id: str,
    request: Optional[DisableRequest] = None,
    admin: User = Depends(require_admin),
):
    try:
        provider = provider_store.disable(admin, provider_id, request.reason if request else None)
    except MarketLinkError as exc:
        raise_http_error(exc)
    return {
        "ok": True,
        "provider": {"id": provider.id, "status": provider.status, "disabledReason": provider.disabled_reason},
    }


@router.post("/providers/{provider_id}/enable")
def enable_provider(provider_id: str, admin: User = Depends(require_admin)):
    try:
        provider = provider_store.enable(admin, provider_id)
    except MarketLinkError as exc:
        raise_http_error(exc)
    return {"ok": True, "provider": {"id": provider.id, "status": provider.status}}


@router.post("/providers/{provider_id}/pending")
def set_provider_pending(provider_id: str, admin: User = Depends(require_admin)):
    try:
        provider = provider_store.set_pending(admin, provider_id)
    except MarketLinkError as exc:
        raise_http_error(exc)
    return {"ok": True, "provider": {"id": provider.id, "status": provider.status}}


@router.post("/providers/{provider_id}/verify")
def verify_provider(
    provider_id: str,
    request: Optional[VerifyRequest] = None,
    admin: User = Depends(require_admin),
):
    try:
        provider = provider_store.set_verified(admin, provider_id, request.value if request else None)
    except MarketLinkError as exc:
        raise_http_error(exc)
    return {"ok": True, "provider": {"id": provider.id, "verified": provider.verified}}
