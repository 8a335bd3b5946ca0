"""
Factory classes for the Cassandra sink.
Resolves configured entity names to entity classes.
"""

import logging
from typing import Dict, List, Type

from cassandra_sink.exceptions import ConfigurationError
from cassandra_sink.models.book import Book
from cassandra_sink.models.model_base import EntityBase

# Configure logging
logger = logging.getLogger(__name__)


class EntityFactory:
    """Registry of entity classes available to the object-mapped path"""

    # Map of entity names to entity classes
    _entities: Dict[str, Type[EntityBase]] = {
        "book": Book
    }

    @classmethod
    def register(cls, name: str, entity_class: Type[EntityBase]) -> None:
        """
        Register an entity class

        Args:
            name: Name of the entity
            entity_class: Entity class to register
        """
        cls._entities[name] = entity_class
        logger.info(f"Registered entity: {name}")

    @classmethod
    def get(cls, name: str) -> Type[EntityBase]:
        """
        Get an entity class

        Args:
            name: Name of the entity

        Returns:
            Entity class
        """
        if name not in cls._entities:
            raise ConfigurationError(f"Unknown entity type: {name}")

        return cls._entities[name]

    @classmethod
    def all(cls) -> List[Type[EntityBase]]:
        """All registered entity classes"""
        return list(cls._entities.values())
