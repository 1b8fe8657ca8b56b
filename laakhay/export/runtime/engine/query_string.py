"""Free-text query string parsing.

Supports the subset of Lucene syntax used by message searches:

    - bare terms and quoted phrases (``error``, ``"disk full"``)
    - field terms (``source:web-01``, ``level:"warn"``, ``source:*``)
    - ``*`` and ``?`` wildcards inside terms
    - ``AND`` / ``&&``, ``OR`` / ``||``, ``NOT`` / ``!``, ``-term``, ``+term``
    - parentheses, also scoped to a field (``source:(web-01 OR web-02)``)

Adjacent clauses without an operator are OR-ed; negated clauses among them
exclude matches, as in Lucene. A query that is empty or a lone ``*`` matches
every document.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from fnmatch import fnmatchcase
from typing import Any

from ...core.exceptions import EngineQueryError

_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<lparen>\()
      | (?P<rparen>\))
      | (?P<group>[-+!]?[^\s()":]+:)\(
      | (?P<term>[-+!]?(?:[^\s()":]+:)?(?:"[^"]*"|[^\s()]+))
    )""",
    re.VERBOSE,
)

_AND = {"AND", "&&"}
_OR = {"OR", "||"}
_NOT = {"NOT", "!"}
_WILDCARDS = ("*", "?")
_WORD_RE = re.compile(r'[-+!]?(?:[^\s()":]+:)?"[^"]*"|[^\s()]+')
_FIELD_PREFIX_RE = re.compile(r'^[^\s()":]+:')


class Node:
    def matches(self, document: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def terms(self) -> Iterator[Term]:
        return iter(())


@dataclass(frozen=True)
class MatchAll(Node):
    def matches(self, document: Mapping[str, Any]) -> bool:
        return True


@dataclass(frozen=True)
class Term(Node):
    value: str
    field: str | None = None
    phrase: bool = False

    @property
    def has_leading_wildcard(self) -> bool:
        return not self.phrase and self.value != "*" and self.value.startswith(_WILDCARDS)

    def terms(self) -> Iterator[Term]:
        yield self

    def matches(self, document: Mapping[str, Any]) -> bool:
        if self.field is not None:
            if self.field not in document:
                return False
            if self.value == "*" and not self.phrase:
                return True
            return any(self._matches_value(v) for v in _flatten(document[self.field]))
        return any(self._matches_value(v) for value in document.values() for v in _flatten(value))

    def _matches_value(self, value: Any) -> bool:
        text = str(value).lower()
        needle = self.value.lower()
        if self.phrase:
            return needle in text
        if any(w in needle for w in _WILDCARDS):
            return fnmatchcase(text, needle) or any(fnmatchcase(t, needle) for t in text.split())
        return text == needle or needle in text.split()


@dataclass(frozen=True)
class Not(Node):
    node: Node

    def matches(self, document: Mapping[str, Any]) -> bool:
        return not self.node.matches(document)

    def terms(self) -> Iterator[Term]:
        return self.node.terms()


@dataclass(frozen=True)
class And(Node):
    nodes: tuple[Node, ...]

    def matches(self, document: Mapping[str, Any]) -> bool:
        return all(node.matches(document) for node in self.nodes)

    def terms(self) -> Iterator[Term]:
        for node in self.nodes:
            yield from node.terms()


@dataclass(frozen=True)
class Or(Node):
    nodes: tuple[Node, ...]
    excluded: tuple[Node, ...] = ()

    def matches(self, document: Mapping[str, Any]) -> bool:
        if any(node.matches(document) for node in self.excluded):
            return False
        if not self.nodes:
            return True
        return any(node.matches(document) for node in self.nodes)

    def terms(self) -> Iterator[Term]:
        for node in self.nodes + self.excluded:
            yield from node.terms()


def _flatten(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple, set, frozenset)):
        return list(value)
    return [value]


def _tokenize(query_string: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    pos = 0
    stripped = query_string.rstrip()
    while pos < len(stripped):
        match = _TOKEN_RE.match(stripped, pos)
        if match is None or match.end() == pos:
            raise EngineQueryError(f"Cannot parse query string at position {pos}: {query_string!r}")
        kind = match.lastgroup
        tokens.append((kind, match.group(kind)))
        pos = match.end()
    return tokens


def _term_from(token: str) -> Node:
    negated = False
    if token[0] in "-!" and len(token) > 1:
        negated = True
        token = token[1:]
    elif token[0] == "+" and len(token) > 1:
        token = token[1:]

    field = None
    if not token.startswith('"') and ":" in token:
        field, token = token.split(":", 1)
        if not field or not token:
            raise EngineQueryError(f"Incomplete field term: {field}:{token}")

    phrase = len(token) >= 2 and token.startswith('"') and token.endswith('"')
    value = token[1:-1] if phrase else token
    node: Node = Term(value=value, field=field, phrase=phrase)
    return Not(node) if negated else node


def _scoped(node: Node, field: str) -> Node:
    """Bind the unfielded terms below ``node`` to ``field``."""
    if isinstance(node, MatchAll):
        return Term(value="*", field=field)
    if isinstance(node, Term):
        return node if node.field is not None else replace(node, field=field)
    if isinstance(node, Not):
        return Not(_scoped(node.node, field))
    if isinstance(node, And):
        return And(nodes=tuple(_scoped(n, field) for n in node.nodes))
    if isinstance(node, Or):
        return Or(
            nodes=tuple(_scoped(n, field) for n in node.nodes),
            excluded=tuple(_scoped(n, field) for n in node.excluded),
        )
    return node


class _Parser:
    def __init__(self, tokens: list[tuple[str, str]]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> tuple[str, str] | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _next(self) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise EngineQueryError("Unexpected end of query string")
        self._pos += 1
        return token

    def parse(self) -> Node:
        node = self._parse_or()
        if self._peek() is not None:
            raise EngineQueryError(f"Unexpected token {self._peek()[1]!r}")
        return node

    def _parse_or(self) -> Node:
        included: list[Node] = []
        excluded: list[Node] = []
        while True:
            token = self._peek()
            if token is None or token[0] == "rparen":
                break
            if token[0] == "term" and token[1] in _OR:
                self._next()
                if not included:
                    raise EngineQueryError("OR without a left-hand clause")
                continue
            node = self._parse_and()
            if isinstance(node, Not):
                excluded.append(node.node)
            else:
                included.append(node)
        if not included and not excluded:
            raise EngineQueryError("Empty query clause")
        if len(included) == 1 and not excluded:
            return included[0]
        return Or(nodes=tuple(included), excluded=tuple(excluded))

    def _parse_and(self) -> Node:
        nodes = [self._parse_unary()]
        while True:
            token = self._peek()
            if token is None or token[0] != "term" or token[1] not in _AND:
                break
            self._next()
            nodes.append(self._parse_unary())
        return nodes[0] if len(nodes) == 1 else And(nodes=tuple(nodes))

    def _parse_unary(self) -> Node:
        kind, value = self._next()
        if kind == "lparen":
            node = self._parse_or()
            closing = self._next()
            if closing[0] != "rparen":
                raise EngineQueryError("Missing closing parenthesis")
            return node
        if kind == "group":
            negated = value[0] in "-!"
            field = value.lstrip("-+!")[:-1]
            node = _scoped(self._parse_or(), field)
            closing = self._next()
            if closing[0] != "rparen":
                raise EngineQueryError("Missing closing parenthesis")
            return Not(node) if negated else node
        if kind == "rparen":
            raise EngineQueryError("Unbalanced closing parenthesis")
        if value in _NOT:
            return Not(self._parse_unary())
        if value in _AND or value in _OR:
            raise EngineQueryError(f"Operator {value} without a clause")
        if value == "*":
            return MatchAll()
        return _term_from(value)


def parse_query_string(query_string: str) -> Node:
    """Parse a free-text query into a matchable node tree.

    Raises:
        EngineQueryError: If the query is malformed
    """
    if not query_string or not query_string.strip():
        return MatchAll()
    return _Parser(_tokenize(query_string)).parse()


def validate_query_string(query_string: str, allow_leading_wildcard: bool = False) -> Node:
    """Parse ``query_string`` and reject leading wildcards unless allowed."""
    node = parse_query_string(query_string)
    if not allow_leading_wildcard:
        for term in node.terms():
            if term.has_leading_wildcard:
                raise EngineQueryError(
                    f"Leading wildcard queries are not allowed: {term.value!r}",
                    status_code=400,
                )
    return node


def leading_wildcard_terms(query_string: str) -> list[str]:
    """Words of ``query_string`` whose value starts with a wildcard.

    Works on the raw text and never fails on syntax it does not know, so it
    can guard queries meant for an engine with a richer query language.
    Phrases and a lone ``*`` (optionally fielded) are not leading wildcards.
    """
    found = []
    for match in _WORD_RE.finditer(query_string or ""):
        value = _FIELD_PREFIX_RE.sub("", match.group(0).lstrip("-+!"), count=1)
        if value.startswith('"'):
            continue
        if value != "*" and value.startswith(_WILDCARDS):
            found.append(value)
    return found


def check_leading_wildcard(query_string: str, allow_leading_wildcard: bool = False) -> None:
    """Reject ``query_string`` if it has a leading wildcard that is not allowed.

    Raises:
        EngineQueryError: A leading wildcard was found and is not allowed
    """
    if allow_leading_wildcard:
        return
    terms = leading_wildcard_terms(query_string)
    if terms:
        raise EngineQueryError(
            f"Leading wildcard queries are not allowed: {terms[0]!r}",
            status_code=400,
        )


def concatenate_query_strings(*parts: str | None) -> str:
    """AND together the non-blank parts, each kept as its own group."""
    present = [part.strip() for part in parts if part and part.strip()]
    if len(present) <= 1:
        return present[0] if present else ""
    return " AND ".join(f"({part})" for part in present)
