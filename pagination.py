"""
Pagination adapter.

Listing endpoints accept raw ``page`` / ``limit`` query values. They are
validated here before any query runs, and whichever result shape the store
produced (a ``$facet`` split or a count + slice paginate call) is normalised
into ``Page``.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field
from pymongo.collection import Collection

from errors import BadRequestError

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# $skip is encoded as a signed 64-bit integer
MAX_SKIP = 2 ** 63 - 1


class PageParams(BaseModel):
    page: int = Field(DEFAULT_PAGE, ge=1)
    limit: int = Field(DEFAULT_LIMIT, ge=1)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class Page(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total_count: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    total_pages: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.items


def _parse_positive_int(raw: Any, default: int, name: str) -> int:
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        return default
    if isinstance(raw, bool):
        raise BadRequestError(f"Invalid {name} value")
    text = str(raw).strip()
    # plain ASCII digits only: no sign, no "1_0", no superscripts
    if not (text.isascii() and text.isdigit()) or len(text) > len(str(MAX_SKIP)):
        raise BadRequestError(f"Invalid {name} value")
    value = int(text)
    if value < 1:
        raise BadRequestError(f"Invalid {name} value")
    return value


def parse_pagination(page: Any = None, limit: Any = None) -> PageParams:
    """Turn raw query values into ``PageParams``; both must be integers >= 1, limit at most ``MAX_LIMIT``."""
    page_value = _parse_positive_int(page, DEFAULT_PAGE, "page")
    limit_value = _parse_positive_int(limit, DEFAULT_LIMIT, "limit")
    if limit_value > MAX_LIMIT:
        raise BadRequestError(f"Invalid limit value: at most {MAX_LIMIT} items per page")
    if (page_value - 1) * limit_value > MAX_SKIP:
        raise BadRequestError("Invalid page value")
    return PageParams(page=page_value, limit=limit_value)


def _build_page(items: List[Dict[str, Any]], total: int, params: PageParams) -> Page:
    total_pages = math.ceil(total / params.limit) if total else 0
    return Page(
        items=items,
        total_count=total,
        page=params.page,
        limit=params.limit,
        total_pages=total_pages,
        has_next_page=params.page < total_pages,
        has_prev_page=params.page > 1,
    )


def from_facet(result: Sequence[Dict[str, Any]], params: PageParams) -> Page:
    """
    Read the output of a ``Paginate`` stage: a single document
    ``{"metadata": [{"total": n}], "results": [...]}``. An empty match set
    yields ``metadata == []``.
    """
    facet = result[0] if result else {}
    metadata = facet.get("metadata") or []
    total = metadata[0].get("total", 0) if metadata else 0
    return _build_page(list(facet.get("results") or []), total, params)


def aggregate_paginate(
    collection: Collection,
    pipeline: List[Dict[str, Any]],
    params: PageParams,
) -> Dict[str, Any]:
    """
    Count + slice over a prebuilt pipeline, returning the paginate envelope
    ``{docs, total_docs, page, limit, total_pages, has_next_page, has_prev_page}``.
    """
    counted = list(collection.aggregate([*pipeline, {"$count": "total"}]))
    total_docs = counted[0]["total"] if counted else 0
    docs = list(collection.aggregate([*pipeline, {"$skip": params.skip}, {"$limit": params.limit}]))
    total_pages = math.ceil(total_docs / params.limit) if total_docs else 0
    return {
        "docs": docs,
        "total_docs": total_docs,
        "page": params.page,
        "limit": params.limit,
        "total_pages": total_pages,
        "has_next_page": params.page < total_pages,
        "has_prev_page": params.page > 1,
    }


def from_paginate_result(result: Optional[Dict[str, Any]], params: PageParams) -> Page:
    if not result:
        return _build_page([], 0, params)
    return _build_page(list(result.get("docs") or []), result.get("total_docs", 0), params)
