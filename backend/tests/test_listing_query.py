import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from marketlink.services.errors import ValidationError
from marketlink.services.listing_query import (
    CityPrefix,
    ListingQuery,
    NameContains,
    PublicListingQuery,
    RatingAtLeast,
    ServiceMatch,
    StatusEquals,
    TextSearch,
    VerifiedEquals,
    parse_admin_query,
    parse_public_query,
    parse_service_tags,
)


def test_public_query_defaults():
    query = parse_public_query({})
    assert isinstance(query, PublicListingQuery)
    assert query.filters == ()
    assert (query.sort, query.order, query.page, query.limit) == ("newest", "desc", 1, 20)
    assert query.predicates() == (StatusEquals("active"),)


def test_name_sort_defaults_to_ascending():
    assert parse_public_query({"sort": "name"}).order == "asc"
    assert parse_public_query({"sort": "name", "order": "desc"}).order == "desc"
    assert parse_public_query({"sort": "rating"}).order == "desc"


def test_public_query_collects_filters_in_order():
    query = parse_public_query(
        {
            "name": " Growth ",
            "city": "Chi",
            "service": "SEO, ads,seo,",
            "match": "ALL",
            "minRating": "4.5",
            "verified": "yes",
        }
    )
    assert query.filters == (
        NameContains("Growth"),
        CityPrefix("Chi"),
        ServiceMatch(tags=("seo", "ads"), mode="all"),
        RatingAtLeast(4.5),
        VerifiedEquals(True),
    )


def test_public_query_cannot_widen_visibility():
    # Public listings ignore status; the active predicate always comes first.
    query = parse_public_query({"status": "pending"})
    assert query.predicates() == (StatusEquals("active"),)


def test_limits_are_clamped():
    assert parse_public_query({"limit": "500"}).limit == 50
    assert parse_public_query({"limit": "0"}).limit == 1
    assert parse_public_query({"limit": "-3"}).limit == 1
    assert parse_public_query({"limit": "abc"}).limit == 20
    assert parse_admin_query({"limit": "500"}).limit == 100


def test_page_above_maximum_is_clamped():
    assert parse_public_query({"page": str(10**19)}).page == 999999
    assert parse_admin_query({"page": "1000000"}).page == 999999
    assert parse_public_query({"page": "999999"}).page == 999999


def test_page_below_one_is_clamped():
    assert parse_public_query({"page": "0"}).page == 1
    assert parse_public_query({"page": "-4"}).page == 1
    assert parse_public_query({"page": "nope"}).page == 1
    query = parse_public_query({"page": "3", "limit": "10"})
    assert query.offset == 20


def test_unusable_rating_and_verified_values_are_ignored():
    for raw in ("", "abc", "nan", "inf"):
        assert parse_public_query({"minRating": raw}).filters == ()
    assert parse_public_query({"verified": "maybe"}).filters == ()
    assert parse_public_query({"verified": "0"}).filters == (VerifiedEquals(False),)


@pytest.mark.parametrize(
    "params",
    [
        {"sort": "price"},
        {"order": "sideways"},
        {"match": "some"},
    ],
)
def test_invalid_choice_values_raise(params):
    with pytest.raises(ValidationError):
        parse_public_query(params)


def test_admin_query_adds_search_and_status():
    query = parse_admin_query({"q": "acme", "status": "Disabled"})
    assert query.filters == (TextSearch("acme"), StatusEquals("disabled"))
    assert not isinstance(query, PublicListingQuery)

    with pytest.raises(ValidationError):
        parse_admin_query({"status": "archived"})


def test_parse_service_tags_dedupes_and_lowercases():
    assert parse_service_tags(" SEO ,ads,, seo , Video ") == ("seo", "ads", "video")
    assert parse_service_tags("") == ()


def test_single_tag_uses_membership_test_for_both_modes():
    any_sql, any_params = ServiceMatch(tags=("seo",), mode="any").to_sql()
    all_sql, all_params = ServiceMatch(tags=("seo",), mode="all").to_sql()
    assert any_sql == all_sql
    assert any_sql.startswith("EXISTS")
    assert any_params == all_params == ["seo"]


def test_all_mode_counts_distinct_tags():
    sql, params = ServiceMatch(tags=("seo", "ads"), mode="all").to_sql()
    assert "COUNT(DISTINCT s.tag)" in sql
    assert params == ["seo", "ads", 2]


def test_like_patterns_escape_wildcards():
    _, params = NameContains("100%_Co").to_sql()
    assert params == ["%100\\%\\_co%"]
    _, params = CityPrefix("Oak").to_sql()
    assert params == ["oak%"]


def test_where_clause_joins_predicates_with_params():
    query = PublicListingQuery(filters=(RatingAtLeast(4.0), VerifiedEquals(True)))
    where, params = query.where_clause()
    assert where == "(p.status = ?) AND (p.rating >= ?) AND (p.verified = ?)"
    assert params == ["active", 4.0, 1]
    assert ListingQuery().where_clause() == ("1 = 1", [])


def test_order_clause_skips_primary_key_in_tie_breaks():
    clause = ListingQuery(sort="rating", order="asc").order_clause()
    assert clause == (
        "p.rating ASC, p.verified DESC, lower(p.business_name) ASC, p.created_at DESC, p.id ASC"
    )
    clause = ListingQuery(sort="newest", order="desc").order_clause()
    assert clause.startswith("p.created_at DESC, p.rating DESC")
    assert clause.endswith("p.id ASC")


def test_total_pages_is_at_least_one():
    query = ListingQuery(limit=10)
    assert query.total_pages(0) == 1
    assert query.total_pages(10) == 1
    assert query.total_pages(11) == 2
