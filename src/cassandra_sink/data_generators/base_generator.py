"""
Base data generator for the Cassandra sink.
"""

from abc import ABC, abstractmethod
from typing import List

from cassandra_sink.models.model_base import EntityBase


class BaseDataGenerator(ABC):
    """Base class for data generators"""

    @abstractmethod
    def generate(self, **kwargs) -> EntityBase:
        """Generate fake data for the entity"""
        pass

    def generate_batch(self, count: int, **kwargs) -> List[EntityBase]:
        """Generate ``count`` entities; callables in kwargs receive the index"""
        return [
            self.generate(**{key: value(i) if callable(value) else value for key, value in kwargs.items()})
            for i in range(count)
        ]
