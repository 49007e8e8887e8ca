from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ProviderStatus = Literal["pending", "active", "disabled"]
InquiryStatus = Literal["NEW", "READ", "ARCHIVED"]
UserRole = Literal["provider", "admin"]
AdminActionType = Literal["APPROVE", "VERIFY_ON", "VERIFY_OFF", "DISABLE", "ENABLE", "EDIT"]


class ApiModel(BaseModel):
    # Python attributes stay snake_case; JSON on the wire is camelCase.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(ApiModel):
    id: str
    email: str
    role: UserRole = "provider"
    created_at: str = ""


class ProviderSummary(ApiModel):
    id: str
    slug: str
    business_name: str
    tagline: Optional[str] = None
    city: str
    state: str
    verified: bool = False
    logo: Optional[str] = None
    services: List[str] = Field(default_factory=list)
    rating: float = 0.0
    created_at: str


class ProviderDetail(ProviderSummary):
    email: str
    zip: Optional[str] = None
    status: ProviderStatus = "pending"
    disabled_reason: Optional[str] = None
    updated_at: str


class AdminProvider(ProviderDetail):
    notes: Optional[str] = None
    owner_id: Optional[str] = None


class ListingMeta(ApiModel):
    total: int
    page: int
    limit: int
    total_pages: int
    sort: str
    order: Literal["asc", "desc"]


class ProviderPage(ApiModel):
    meta: ListingMeta
    data: List[ProviderSummary]


class AdminProviderPage(ApiModel):
    meta: ListingMeta
    data: List[AdminProvider]


class ProviderCreateRequest(ApiModel):
    business_name: str = ""
    city: str = ""
    state: str = ""
    zip: Optional[str] = None
    tagline: Optional[str] = None
    logo: Optional[str] = None
    services: Union[List[str], str, None] = None


class ProviderUpdateRequest(ApiModel):
    business_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    tagline: Optional[str] = None
    logo: Optional[str] = None
    services: Union[List[str], str, None] = None


class AdminProviderEditRequest(ProviderUpdateRequest):
    email: Optional[str] = None
    slug: Optional[str] = None
    notes: Optional[str] = None
    rating: Optional[float] = None
    verified: Optional[bool] = None
    status: Optional[str] = None
    disabled_reason: Optional[str] = None


class ProviderMutationResponse(ApiModel):
    ok: bool = True
    provider: ProviderDetail


class DisableRequest(ApiModel):
    reason: Optional[str] = Field(default=None, max_length=200)


class VerifyRequest(ApiModel):
    value: Optional[bool] = None


class AdminStats(ApiModel):
    total: int
    active: int
    pending: int
    disabled: int
    verified: int


class AdminStatsResponse(ApiModel):
    ok: bool = True
    providers: AdminStats


class AdminActionRecord(ApiModel):
    id: str
    admin_user_id: Optional[str] = None
    provider_id: str
    type: AdminActionType
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: str


class MagicLinkRequest(ApiModel):
    email: str = ""


class VerifyTokenRequest(ApiModel):
    token: str = ""


class OkResponse(ApiModel):
    ok: bool = True


class AuthMeResponse(ApiModel):
    ok: bool = True
    user: User


class AccountSummary(ApiModel):
    ok: bool = True
    user: User
    provider: Optional[ProviderDetail] = None


class InquiryCreateRequest(ApiModel):
    provider_slug: str = ""
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    message: str = ""


class Inquiry(ApiModel):
    id: str
    provider_id: str
    name: str
    email: str
    phone: Optional[str] = None
    message: str
    status: InquiryStatus = "NEW"
    created_at: str


class InquiryCreated(ApiModel):
    id: str
    created_at: str


class InquiryCreateResponse(ApiModel):
    ok: bool = True
    inquiry: InquiryCreated


class InquiryListResponse(ApiModel):
    ok: bool = True
    data: List[Inquiry]


class InquiryStatusUpdateRequest(ApiModel):
    status: str = ""
