"""
Data generators package.
"""

from cassandra_sink.data_generators.base_generator import BaseDataGenerator
from cassandra_sink.data_generators.book_generator import BookGenerator

__all__ = ['BaseDataGenerator', 'BookGenerator']
