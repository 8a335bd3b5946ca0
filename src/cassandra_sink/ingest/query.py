"""
Ingest query parsing.

An ingest query is a CQL INSERT or UPDATE template whose bind markers are
either positional (``?``) or named (``:identifier``). Parsing rewrites every
marker to ``?`` so the driver can prepare the statement, and records for each
marker its kind, its name and, where the template makes it visible, the
column it is bound to.
"""

import logging
import re
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel

from cassandra_sink.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"""
      (?P<string>'(?:[^']|'')*')
    | (?P<quoted>"(?:[^"]|"")*")
    | (?P<comment>--[^\n]*|//[^\n]*|/\*[\s\S]*?\*/)
    | (?P<positional>\?)
    | (?P<named>:(?P<name>[A-Za-z_][A-Za-z0-9_]*))
""", re.VERBOSE)

_INSERT = re.compile(
    r"^\s*insert\s+into\s+[^(]+\((?P<columns>[^)]*)\)\s*values\s*\(",
    re.IGNORECASE | re.DOTALL,
)

_ASSIGNED_COLUMN = re.compile(r'([A-Za-z_][A-Za-z0-9_]*|"(?:[^"]|"")*")\s*=\s*$')

_LEADING_KEYWORD = re.compile(r"^\s*([A-Za-z]+)")


class QueryType(str, Enum):
    """Statement kind of an ingest query"""
    INSERT = "INSERT"
    UPDATE = "UPDATE"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


class PlaceholderKind(str, Enum):
    """Bind marker style"""
    POSITIONAL = "positional"
    NAMED = "named"


class Placeholder(BaseModel):
    """A single bind marker in the template"""

    index: int
    kind: PlaceholderKind
    name: Optional[str] = None
    column: Optional[str] = None
    start: int
    end: int


def unquote_identifier(identifier: str) -> str:
    """Strip CQL identifier quoting"""
    identifier = identifier.strip()
    if len(identifier) >= 2 and identifier[0] == identifier[-1] == '"':
        return identifier[1:-1].replace('""', '"')
    return identifier


def split_top_level(text: str, offset: int = 0) -> List[Tuple[str, int, int]]:
    """
    Split a comma separated CQL term list, ignoring commas nested in
    parentheses, brackets, braces and literals.

    Returns:
        (term, start, end) tuples with offsets shifted by ``offset``
    """
    terms: List[Tuple[str, int, int]] = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    for i, char in enumerate(text):
        if quote:
            if char == quote:
                quote = None
            continue
        if char in "'\"":
            quote = char
        elif char in "([{":
            depth += 1
        elif char in ")]}":
            if depth == 0:
                terms.append((text[start:i], offset + start, offset + i))
                return terms
            depth -= 1
        elif char == "," and depth == 0:
            terms.append((text[start:i], offset + start, offset + i))
            start = i + 1
    terms.append((text[start:], offset + start, offset + len(text)))
    return terms


class IngestQuery:
    """Parsed ingest query template"""

    def __init__(self, template: str):
        if not template or not template.strip():
            raise ConfigurationError("Ingest query must not be empty")
        self.template = template
        self.placeholders: List[Placeholder] = []
        self.cql = self._parse()
        self._assign_columns()
        logger.debug(f"Parsed ingest query with {len(self.placeholders)} placeholders: {self.cql}")

    def _parse(self) -> str:
        parts: List[str] = []
        last = 0
        for match in _TOKEN.finditer(self.template):
            if match.lastgroup in ("string", "quoted", "comment"):
                continue
            if match.group("positional"):
                kind, name = PlaceholderKind.POSITIONAL, None
            else:
                kind, name = PlaceholderKind.NAMED, match.group("name")
            self.placeholders.append(Placeholder(
                index=len(self.placeholders),
                kind=kind,
                name=name,
                start=match.start(),
                end=match.end(),
            ))
            parts.append(self.template[last:match.start()])
            parts.append("?")
            last = match.end()
        parts.append(self.template[last:])
        return "".join(parts)

    def _assign_columns(self) -> None:
        insert = _INSERT.match(self.template)
        if insert:
            columns = [unquote_identifier(c) for c, _, _ in split_top_level(insert.group("columns"))]
            values = split_top_level(self.template[insert.end():], offset=insert.end())
            for position, (term, start, end) in enumerate(values):
                if position >= len(columns):
                    break
                for placeholder in self.placeholders:
                    if start <= placeholder.start and placeholder.end <= end \
                            and term.strip() == self.template[placeholder.start:placeholder.end]:
                        placeholder.column = columns[position]

        for placeholder in self.placeholders:
            if placeholder.column is None:
                assigned = _ASSIGNED_COLUMN.search(self.template[:placeholder.start])
                if assigned:
                    placeholder.column = unquote_identifier(assigned.group(1))

    @property
    def query_type(self) -> Optional[QueryType]:
        """Statement kind from the leading keyword, None for anything else"""
        keyword = _LEADING_KEYWORD.match(self.template)
        if not keyword:
            return None
        try:
            return QueryType(keyword.group(1).upper())
        except ValueError:
            return None

    @property
    def positional(self) -> List[Placeholder]:
        return [p for p in self.placeholders if p.kind is PlaceholderKind.POSITIONAL]

    @property
    def named(self) -> List[Placeholder]:
        return [p for p in self.placeholders if p.kind is PlaceholderKind.NAMED]

    @property
    def parameter_names(self) -> List[str]:
        """Distinct named parameters in order of first appearance"""
        names: List[str] = []
        for placeholder in self.named:
            if placeholder.name not in names:
                names.append(placeholder.name)
        return names

    def __repr__(self) -> str:
        return f"IngestQuery({self.template!r})"
