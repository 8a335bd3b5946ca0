"""
Models package for the Cassandra sink.
Contains the entities used by the object-mapped write path.
"""

from cassandra_sink.models.book import Book
from cassandra_sink.models.model_base import EntityBase

__all__ = [
    'EntityBase',
    'Book'
]
