from typing import Optional

from fastapi import APIRouter, Depends, Query

from marketlink.auth import current_user, require_authenticated_user
from marketlink.models import (
    ProviderCreateRequest,
    ProviderDetail,
    ProviderMutationResponse,
    ProviderPage,
    ProviderUpdateRequest,
    User,
)
from marketlink.services.errors import MarketLinkError, raise_http_error
from marketlink.services.listing_query import parse_public_query
from marketlink.services.provider_store import provider_store

router = APIRouter(tags=["providers"])


@router.get("/providers", response_model=ProviderPage)
def list_providers(
    name: Optional[str] = Query(default=None),
    city: Optional[str] = Query(default=None),
    service: Optional[str] = Query(default=None),
    match: Optional[str] = Query(default=None),
    min_rating: Optional[str] = Query(default=None, alias="minRating"),
    verified: Optional[str] = Query(default=None),
    sort: Optional[str] = Query(default=None),
    order: Optional[str] = Query(default=None),
    page: Optional[str] = Query(default=None),
    limit: Optional[str] = Query(default=None),
):
    params = {
        "name": name,
        "city": city,
        "service": service,
        "match": match,
        "minRating": min_rating,
        "verified": verified,
        "sort": sort,
        "order": order,
        "page": page,
        "limit": limit,
    }
    try:
        return provider_store.list_public(parse_public_query(params))
    except MarketLinkError as exc:
        raise_http_error(exc)


@router.get("/providers/{slug}", response_model=ProviderDetail)
def provider_detail(slug: str, viewer: Optional[User] = Depends(current_user)):
    try:
        return provider_store.get_provider_for_viewer(slug, viewer)
    except MarketLinkError as exc:
        raise_http_error(exc)


@router.post("/providers", response_model=ProviderMutationResponse, status_code=201)
def create_provider(request: ProviderCreateRequest, user: User = Depends(require_authenticated_user)):
    try:
        provider = provider_store.create_owned_provider(
            user=user,
            business_name=request.business_name,
            city=request.city,
            state=request.state,
            zip=request.zip,
            tagline=request.tagline,
            logo=request.logo,
            services=request.services,
        )
    except MarketLinkError as exc:
        raise_http_error(exc)
    return ProviderMutationResponse(provider=provider_store.to_detail(provider))


@router.put("/providers", response_model=ProviderMutationResponse)
def update_own_provider(request: ProviderUpdateRequest, user: User = Depends(require_authenticated_user)):
    try:
        provider = provider_store.update_owned_provider(
            user_id=user.id,
            changes=request.model_dump(exclude_unset=True),
        )
    except MarketLinkError as exc:
        raise_http_error(exc)
    return ProviderMutationResponse(provider=provider_store.to_detail(provider))
