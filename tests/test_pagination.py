from unittest.mock import MagicMock

import pytest

from errors import BadRequestError
from pagination import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    MAX_LIMIT,
    MAX_SKIP,
    PageParams,
    aggregate_paginate,
    from_facet,
    from_paginate_result,
    parse_pagination,
)


def test_defaults_when_missing_or_blank():
    params = parse_pagination(None, "  ")
    assert params.page == DEFAULT_PAGE
    assert params.limit == DEFAULT_LIMIT


def test_parses_numeric_strings():
    params = parse_pagination("3", " 20 ")
    assert (params.page, params.limit) == (3, 20)
    assert params.skip == 40


@pytest.mark.parametrize("page,limit", [
    ("0", "10"),
    ("1", "-1"),
    ("abc", "10"),
    ("1", "2.5"),
    (True, "10"),
    (0, 10),
])
def test_invalid_values_are_rejected(page, limit):
    with pytest.raises(BadRequestError):
        parse_pagination(page, limit)


def test_invalid_page_message_names_the_field():
    with pytest.raises(BadRequestError) as exc_info:
        parse_pagination("nope", None)
    assert exc_info.value.message == "Invalid page value"


def test_from_facet_with_no_matches():
    page = from_facet([{"metadata": [], "results": []}], PageParams())
    assert page.is_empty
    assert page.total_count == 0
    assert page.total_pages == 0
    assert not page.has_next_page


def test_from_facet_with_empty_aggregate_output():
    page = from_facet([], PageParams())
    assert page.is_empty
    assert page.total_count == 0


def test_from_facet_page_flags():
    result = [{"metadata": [{"total": 23}], "results": [{"title": "a"}, {"title": "b"}]}]
    page = from_facet(result, PageParams(page=2, limit=10))

    assert page.total_count == 23
    assert page.total_pages == 3
    assert page.has_next_page
    assert page.has_prev_page
    assert len(page.items) <= page.limit
    assert page.total_count >= len(page.items)


def test_aggregate_paginate_counts_then_slices():
    collection = MagicMock()
    docs = [{"content": "first"}, {"content": "second"}]
    collection.aggregate.side_effect = [[{"total": 12}], docs]
    pipeline = [{"$match": {"video": "v"}}]

    result = aggregate_paginate(collection, pipeline, PageParams(page=2, limit=5))

    count_call, slice_call = collection.aggregate.call_args_list
    assert count_call.args[0] == [{"$match": {"video": "v"}}, {"$count": "total"}]
    assert slice_call.args[0] == [{"$match": {"video": "v"}}, {"$skip": 5}, {"$limit": 5}]
    assert result["docs"] == docs
    assert result["total_docs"] == 12
    assert result["total_pages"] == 3
    assert result["has_next_page"] is True
    assert result["has_prev_page"] is True


def test_aggregate_paginate_without_matches():
    collection = MagicMock()
    collection.aggregate.side_effect = [[], []]
    result = aggregate_paginate(collection, [], PageParams())
    assert result["total_docs"] == 0
    assert result["total_pages"] == 0


def test_from_paginate_result():
    params = PageParams(page=1, limit=2)
    page = from_paginate_result({"docs": [{"a": 1}, {"a": 2}], "total_docs": 3}, params)
    assert page.total_pages == 2
    assert page.has_next_page
    assert not page.has_prev_page

    assert from_paginate_result(None, params).is_empty


@pytest.mark.parametrize("page,limit", [
    ("1_0", "10"),
    ("+2", "10"),
    ("1", "1e3"),
    ("²", "10"),
])
def test_only_plain_digits_are_accepted(page, limit):
    with pytest.raises(BadRequestError):
        parse_pagination(page, limit)


def test_limit_is_capped():
    assert parse_pagination("1", str(MAX_LIMIT)).limit == MAX_LIMIT
    with pytest.raises(BadRequestError):
        parse_pagination("1", str(MAX_LIMIT + 1))


@pytest.mark.parametrize("page", ["99999999999999999999", "9" * 5000])
def test_huge_page_is_bad_request(page):
    with pytest.raises(BadRequestError):
        parse_pagination(page, "10")


def test_largest_page_keeps_skip_in_int64():
    params = parse_pagination(str(MAX_SKIP // 10 + 1), "10")
    assert params.skip <= MAX_SKIP
    with pytest.raises(BadRequestError):
        parse_pagination(str(MAX_SKIP // 10 + 2), "10")
