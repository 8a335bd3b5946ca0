"""
Ingest query binder.

Turns a record into the ordered parameter values of a parsed ingest query.
Named placeholders are looked up by name. Positional placeholders are
resolved either by the column they are bound to in the template or by the
order of the record fields, see ``PositionalBinding``.
"""

import logging
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from pydantic import BaseModel

from cassandra_sink.exceptions import BindingError
from cassandra_sink.ingest.coercion import coerce_value
from cassandra_sink.ingest.query import IngestQuery, PlaceholderKind
from cassandra_sink.ingest.record import Record

logger = logging.getLogger(__name__)


class PositionalBinding(str, Enum):
    """How positional placeholders take their values"""
    AUTO = "auto"
    COLUMN = "column"
    ORDER = "order"


class BoundStatement(BaseModel):
    """A query with the concrete values of one record"""

    query: str
    values: Tuple[Any, ...]
    fields: Tuple[Optional[str], ...]


class IngestQueryBinder:
    """Binds records to an ingest query"""

    def __init__(self, query: Union[IngestQuery, str],
                 positional_binding: PositionalBinding = PositionalBinding.AUTO,
                 parameter_types: Optional[Sequence[Any]] = None):
        """
        Initialize the binder.

        Args:
            query: Parsed ingest query or its template
            positional_binding: Resolution policy for ``?`` placeholders
            parameter_types: CQL type per bind marker, used to coerce values
        """
        self.query = query if isinstance(query, IngestQuery) else IngestQuery(query)
        self.positional_binding = PositionalBinding(positional_binding)
        self.parameter_types: Optional[List[Any]] = None
        if parameter_types is not None:
            self.set_parameter_types(parameter_types)

    def set_parameter_types(self, parameter_types: Sequence[Any]) -> None:
        if len(parameter_types) != len(self.query.placeholders):
            raise BindingError(
                f"Statement has {len(parameter_types)} bind markers, "
                f"template has {len(self.query.placeholders)} placeholders"
            )
        self.parameter_types = list(parameter_types)

    def _by_column(self, record: Record) -> bool:
        positional = self.query.positional
        if self.positional_binding is PositionalBinding.ORDER:
            return False
        missing = [p.column or f"?{p.index + 1}" for p in positional
                   if p.column is None or p.column not in record]
        if not missing:
            return True
        if self.positional_binding is PositionalBinding.COLUMN:
            raise BindingError(f"Positional parameters without a matching record field: {', '.join(missing)}")
        logger.warning(f"Binding positional parameters by record order, no record field for: {', '.join(missing)}")
        return False

    def _positional_values(self, record: Record) -> List[Tuple[str, Any]]:
        positional = self.query.positional
        if not positional:
            return []

        if self._by_column(record):
            return [(p.column, record.require(p.column)) for p in positional]

        remaining = record.ordered_items(exclude=tuple(self.query.parameter_names))
        if len(remaining) < len(positional):
            raise BindingError(
                f"Query needs {len(positional)} positional values, record supplies {len(remaining)}"
            )
        if len(remaining) > len(positional):
            logger.debug(f"Ignoring {len(remaining) - len(positional)} trailing record fields")
        return remaining[:len(positional)]

    def bind(self, record: Union[Record, Mapping[str, Any]]) -> BoundStatement:
        """
        Bind one record.

        Args:
            record: Record or plain mapping of field names to values

        Returns:
            Bound statement with one value per placeholder, in template order

        Raises:
            BindingError: If a parameter cannot be resolved or converted
        """
        if not isinstance(record, Record):
            record = Record(record)

        positional = iter(self._positional_values(record))
        values: List[Any] = []
        fields: List[Optional[str]] = []
        for placeholder in self.query.placeholders:
            if placeholder.kind is PlaceholderKind.NAMED:
                field, value = placeholder.name, record.require(placeholder.name)
            else:
                field, value = next(positional)
            if self.parameter_types is not None:
                value = coerce_value(value, self.parameter_types[placeholder.index],
                                     placeholder.column or field)
            fields.append(field)
            values.append(value)

        return BoundStatement(query=self.query.cql, values=tuple(values), fields=tuple(fields))
