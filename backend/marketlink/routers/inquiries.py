from typing import Optional

from fastapi import APIRouter, Depends, Query

from marketlink.auth import require_authenticated_user
from marketlink.models import (
    Inquiry,
    InquiryCreateRequest,
    InquiryCreateResponse,
    InquiryCreated,
    InquiryListResponse,
    InquiryStatusUpdateRequest,
    User,
)
from marketlink.services.errors import MarketLinkError, NotFoundError, ValidationError, raise_http_error
from marketlink.services.inquiry_store import inquiry_store
from marketlink.services.provider_store import provider_store

router = APIRouter(prefix="/inquiries", tags=["inquiries"])


def _owned_provider_id(user: User) -> str:
    provider = provider_store.get_owned_provider(user.id)
    if provider is None:
        raise NotFoundError("You don't have a provider profile yet.")
    return provider.id


@router.post("", response_model=InquiryCreateResponse, status_code=201)
def create_inquiry(request: InquiryCreateRequest):
    try:
        if not request.provider_slug.strip():
            raise ValidationError("providerSlug is required")
        # Only active providers take inquiries, matching the public listing.
        provider_id = provider_store.get_active_provider_id(request.provider_slug)
        inquiry = inquiry_store.create(
            provider_id=provider_id,
            name=request.name,
            email=request.email,
            phone=request.phone,
            message=request.message,
        )
    except MarketLinkError as exc:
        raise_http_error(exc)
    return InquiryCreateResponse(inquiry=InquiryCreated(id=inquiry.id, created_at=inquiry.created_at))


@router.get("", response_model=InquiryListResponse)
def list_inquiries(
    status: Optional[str] = Query(default=None),
    user: User = Depends(require_authenticated_user),
):
    try:
        rows = inquiry_store.list_for_provider(_owned_provider_id(user), status=status)
    except MarketLinkError as exc:
        raise_http_error(exc)
    return InquiryListResponse(data=rows)


@router.patch("/{inquiry_id}", response_model=Inquiry)
def update_inquiry_status(
    inquiry_id: str,
    request: InquiryStatusUpdateRequest,
    user: User = Depends(require_authenticated_user),
):
    try:
        return inquiry_store.update_status(
            provider_id=_owned_provider_id(user),
            inquiry_id=inquiry_id,
            status=request.status,
        )
    except MarketLinkError as exc:
        raise_http_error(exc)
