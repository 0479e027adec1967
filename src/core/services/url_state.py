"""Two-way projection between `FilterState` and the navigable URL.

Query string schema: `page`, `status`, `gender`, `name`. Any subset may be
absent; missing or unusable values fall back to page 1 and no filter. When
writing, `page` is always present and empty filters are left out, so links
stay short and canonical.

The URL is read once when a session starts and written once per applied
result; it is never polled.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from core.domain.models import FilterState, Gender, Status
from core.interfaces.navigation import Location

logger = logging.getLogger(__name__)

QUERY_KEYS = ("page", "status", "gender", "name")


def _first(values: Mapping[str, str | Sequence[str]], key: str) -> str:
    raw = values.get(key)
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    return raw[0] if raw else ""


def _parse_page(raw: str) -> int:
    try:
        page = int(raw.strip())
    except ValueError:
        return 1
    return page if page >= 1 else 1


def filters_from_query(query: str | Mapping[str, str | Sequence[str]]) -> FilterState:
    """Build a `FilterState` from a query string or an already-parsed mapping."""

    values = parse_qs(query.lstrip("?"), keep_blank_values=True) if isinstance(query, str) else query

    status = Status.EMPTY
    raw_status = _first(values, "status")
    try:
        status = Status.parse(raw_status)
    except ValueError:
        logger.info("ignoring unknown status in URL: %r", raw_status)

    gender = Gender.EMPTY
    raw_gender = _first(values, "gender")
    try:
        gender = Gender.parse(raw_gender)
    except ValueError:
        logger.info("ignoring unknown gender in URL: %r", raw_gender)

    return FilterState(
        status=status,
        gender=gender,
        name=_first(values, "name"),
        page=_parse_page(_first(values, "page")),
    )


def filters_to_query(filters: FilterState) -> str:
    """Encode `filters` as a query string (no leading `?`)."""

    params = filters.query_params(include_page=True)
    return urlencode([(key, params[key]) for key in QUERY_KEYS if key in params])


def filters_from_url(href: str) -> FilterState:
    return filters_from_query(urlsplit(href).query)


def build_url(href: str, filters: FilterState) -> str:
    """Replace the filter keys of `href`'s query string, keeping any other keys."""

    parts = urlsplit(href)
    others = [
        (key, value)
        for key, values in parse_qs(parts.query, keep_blank_values=True).items()
        if key not in QUERY_KEYS
        for value in values
    ]
    query = filters_to_query(filters)
    if others:
        query = "&".join(part for part in (query, urlencode(others)) if part)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class UrlProjection:
    """Reads the seed filters from a `Location` and writes settled filters back."""

    def __init__(self, location: Location) -> None:
        self._location = location

    @property
    def href(self) -> str:
        return self._location.href

    def hydrate(self) -> FilterState:
        filters = filters_from_url(self._location.href)
        logger.debug("hydrated %s from %s", filters.query_params(), self._location.href)
        return filters

    def write(self, filters: FilterState) -> str:
        """Shallow-replace the URL with `filters`; no-op when nothing changed."""

        href = build_url(self._location.href, filters)
        if href != self._location.href:
            self._location.replace(href)
        return href
