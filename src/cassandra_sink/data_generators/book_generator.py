"""
Book data generator for the Cassandra sink.
"""

import datetime
import random
import uuid

from cassandra_sink.data_generators.base_generator import BaseDataGenerator
from cassandra_sink.models.book import Book


class BookGenerator(BaseDataGenerator):
    """Generator for sample books"""

    def generate(self, **kwargs) -> Book:
        """Generate a sample book, overriding any field given in kwargs"""
        return Book(
            isbn=kwargs.get('isbn', uuid.uuid4()),
            title=kwargs.get('title', "Cassandra Sink Guide"),
            author=kwargs.get('author', "Sink Guru"),
            pages=kwargs.get('pages', random.randint(100, 900)),
            sale_date=kwargs.get('sale_date', datetime.datetime.now(datetime.timezone.utc)),
            in_stock=kwargs.get('in_stock', True)
        )
