"""Provider listing queries.

Query-string parameters are parsed into a ``ListingQuery``: a tuple of filter
values plus sort and page settings. Each filter renders itself to a SQL
predicate over ``providers p`` with positional parameters, and the store ANDs
them together. ``PublicListingQuery`` always adds the public visibility
predicate in front of whatever the caller asked for, so there is no parameter
that can widen a public listing to non-active records.
"""

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from marketlink.services.errors import ValidationError
from marketlink.services.visibility import PUBLIC_LISTING_STATUS, check_status

SORT_KEYS = ("newest", "name", "rating", "verified")
ORDERS = ("asc", "desc")
MATCH_MODES = ("any", "all")

DEFAULT_LIMIT = 20
PUBLIC_MAX_LIMIT = 50
ADMIN_MAX_LIMIT = 100
MAX_PAGE = 999999

_TRUE_VALUES = {"1", "true", "yes"}
_FALSE_VALUES = {"0", "false", "no"}

_SORT_COLUMNS = {
    "newest": "p.created_at",
    "name": "lower(p.business_name)",
    "rating": "p.rating",
    "verified": "p.verified",
}

# Applied after the primary sort key, skipping whichever key is primary.
_TIE_BREAKS = (
    ("rating", "DESC"),
    ("verified", "DESC"),
    ("name", "ASC"),
    ("newest", "DESC"),
)

SqlFragment = Tuple[str, List[Any]]


def _like_pattern(value: str, *, prefix: bool = False) -> str:
    escaped = value.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"{escaped}%" if prefix else f"%{escaped}%"


@dataclass(frozen=True)
class NameContains:
    value: str

    def to_sql(self) -> SqlFragment:
        return "lower(p.business_name) LIKE ? ESCAPE '\\'", [_like_pattern(self.value)]


@dataclass(frozen=True)
class CityPrefix:
    value: str

    def to_sql(self) -> SqlFragment:
        return "lower(p.city) LIKE ? ESCAPE '\\'", [_like_pattern(self.value, prefix=True)]


@dataclass(frozen=True)
class ServiceMatch:
    tags: Tuple[str, ...]
    mode: str = "any"

    def to_sql(self) -> SqlFragment:
        if len(self.tags) == 1:
            # One tag: "any" and "all" are the same single membership test.
            return (
                "EXISTS (SELECT 1 FROM provider_services s WHERE s.provider_id = p.id AND s.tag = ?)",
                [self.tags[0]],
            )
        placeholders = ", ".join("?" for _ in self.tags)
        if self.mode == "all":
            return (
                "(SELECT COUNT(DISTINCT s.tag) FROM provider_services s "
                f"WHERE s.provider_id = p.id AND s.tag IN ({placeholders})) = ?",
                [*self.tags, len(self.tags)],
            )
        return (
            f"EXISTS (SELECT 1 FROM provider_services s WHERE s.provider_id = p.id AND s.tag IN ({placeholders}))",
            list(self.tags),
        )


@dataclass(frozen=True)
class RatingAtLeast:
    value: float

    def to_sql(self) -> SqlFragment:
        return "p.rating >= ?", [self.value]


@dataclass(frozen=True)
class VerifiedEquals:
    value: bool

    def to_sql(self) -> SqlFragment:
        return "p.verified = ?", [1 if self.value else 0]


@dataclass(frozen=True)
class StatusEquals:
    value: str

    def to_sql(self) -> SqlFragment:
        return "p.status = ?", [self.value]


@dataclass(frozen=True)
class TextSearch:
    """Admin free-text search over name, email, tagline and notes."""

    value: str

    def to_sql(self) -> SqlFragment:
        pattern = _like_pattern(self.value)
        columns = ("p.business_name", "p.email", "coalesce(p.tagline, '')", "coalesce(p.notes, '')")
        clause = " OR ".join(f"lower({column}) LIKE ? ESCAPE '\\'" for column in columns)
        return f"({clause})", [pattern] * len(columns)


Filter = Union[NameContains, CityPrefix, ServiceMatch, RatingAtLeast, VerifiedEquals, StatusEquals, TextSearch]


@dataclass(frozen=True)
class ListingQuery:
    filters: Tuple[Filter, ...] = ()
    sort: str = "newest"
    order: str = "desc"
    page: int = 1
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def predicates(self) -> Tuple[Filter, ...]:
        return self.filters

    def where_clause(self) -> SqlFragment:
        parts: List[str] = []
        params: List[Any] = []
        for predicate in self.predicates():
            sql, args = predicate.to_sql()
            parts.append(f"({sql})")
            params.extend(args)
        if not parts:
            return "1 = 1", []
        return " AND ".join(parts), params

    def order_clause(self) -> str:
        terms = [f"{_SORT_COLUMNS[self.sort]} {self.order.upper()}"]
        for key, direction in _TIE_BREAKS:
            if key != self.sort:
                terms.append(f"{_SORT_COLUMNS[key]} {direction}")
        # Ids are unique, so the ordering is total even when timestamps tie.
        terms.append("p.id ASC")
        return ", ".join(terms)

    def total_pages(self, total: int) -> int:
        return max(1, math.ceil(total / self.limit))


@dataclass(frozen=True)
class PublicListingQuery(ListingQuery):
    def predicates(self) -> Tuple[Filter, ...]:
        return (StatusEquals(PUBLIC_LISTING_STATUS), *self.filters)


def _param(params: Mapping[str, Any], key: str) -> str:
    value = params.get(key)
    return "" if value is None else str(value).strip()


def _parse_choice(raw: str, allowed: Tuple[str, ...], name: str, default: str) -> str:
    value = raw.lower()
    if not value:
        return default
    if value not in allowed:
        raise ValidationError(f"Invalid {name} value. Allowed: {', '.join(allowed)}")
    return value


def _parse_int(raw: str, default: int) -> int:
    try:
        return int(raw)
    except ValueError:
        return default


def _parse_rating(raw: str) -> Optional[float]:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def _parse_bool(raw: str) -> Optional[bool]:
    value = raw.lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    return None


def parse_service_tags(raw: str) -> Tuple[str, ...]:
    tags: List[str] = []
    for token in raw.split(","):
        tag = token.strip().lower()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def _common_filters(params: Mapping[str, Any]) -> List[Filter]:
    filters: List[Filter] = []

    name = _param(params, "name")
    if name:
        filters.append(NameContains(name))

    city = _param(params, "city")
    if city:
        filters.append(CityPrefix(city))

    match = _parse_choice(_param(params, "match"), MATCH_MODES, "match", "any")
    tags = parse_service_tags(_param(params, "service"))
    if tags:
        filters.append(ServiceMatch(tags=tags, mode=match))

    min_rating = _parse_rating(_param(params, "minRating"))
    if min_rating is not None:
        filters.append(RatingAtLeast(min_rating))

    verified = _parse_bool(_param(params, "verified"))
    if verified is not None:
        filters.append(VerifiedEquals(verified))

    return filters


def _sort_and_page(params: Mapping[str, Any], max_limit: int) -> Tuple[str, str, int, int]:
    sort = _parse_choice(_param(params, "sort"), SORT_KEYS, "sort", "newest")
    order = _parse_choice(_param(params, "order"), ORDERS, "order", "asc" if sort == "name" else "desc")
    page = min(MAX_PAGE, max(1, _parse_int(_param(params, "page"), 1)))
    limit = min(max_limit, max(1, _parse_int(_param(params, "limit"), DEFAULT_LIMIT)))
    return sort, order, page, limit


def parse_public_query(params: Mapping[str, Any]) -> PublicListingQuery:
    filters = _common_filters(params)
    sort, order, page, limit = _sort_and_page(params, PUBLIC_MAX_LIMIT)
    return PublicListingQuery(filters=tuple(filters), sort=sort, order=order, page=page, limit=limit)


def parse_admin_query(params: Mapping[str, Any]) -> ListingQuery:
    filters = _common_filters(params)

    q = _param(params, "q")
    if q:
        filters.append(TextSearch(q))

    status = _param(params, "status")
    if status:
        filters.append(StatusEquals(check_status(status)))

    sort, order, page, limit = _sort_and_page(params, ADMIN_MAX_LIMIT)
    return ListingQuery(filters=tuple(filters), sort=sort, order=order, page=page, limit=limit)
