"""
Ingest query package.
Parses CQL ingest query templates and binds records to them.
"""

from cassandra_sink.ingest.binder import BoundStatement, IngestQueryBinder, PositionalBinding
from cassandra_sink.ingest.coercion import coerce_value
from cassandra_sink.ingest.query import IngestQuery, Placeholder, PlaceholderKind, QueryType
from cassandra_sink.ingest.record import Record

__all__ = [
    'BoundStatement',
    'IngestQuery',
    'IngestQueryBinder',
    'Placeholder',
    'PlaceholderKind',
    'PositionalBinding',
    'QueryType',
    'Record',
    'coerce_value'
]
