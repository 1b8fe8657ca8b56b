"""Query string decorators applied before an export request is finalized."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Protocol

from ..core.exceptions import ConfigurationError
from ..models.search import Query, Search

_PARAMETER_RE = re.compile(r"\$([A-Za-z_][A-Za-z0-9_]*)\$")


class QueryStringDecorator(Protocol):
    """Rewrites a raw query string of ``query`` in ``search``."""

    def decorate_query_string(self, query_string: str, search: Search, query: Query) -> str:
        ...


class NoopQueryStringDecorator:
    def decorate_query_string(self, query_string: str, search: Search, query: Query) -> str:
        return query_string


class ParameterQueryStringDecorator:
    """Substitutes ``$name$`` tokens with the values bound in the search.

    Values bound on the search win over ``defaults``. A token without a value
    fails the request with ConfigurationError.
    """

    def __init__(self, defaults: Mapping[str, str] | None = None) -> None:
        self._defaults = dict(defaults or {})

    def decorate_query_string(self, query_string: str, search: Search, query: Query) -> str:
        bindings = {**self._defaults, **search.parameters}

        def substitute(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in bindings:
                raise ConfigurationError(
                    f"Query {query.id} of search {search.id} uses unbound parameter ${name}$"
                )
            return str(bindings[name])

        return _PARAMETER_RE.sub(substitute, query_string)
