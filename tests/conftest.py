"""
Shared test fixtures for the Cassandra sink.
"""

import sys
from pathlib import Path
from typing import Any, List, Optional
from unittest.mock import MagicMock

import pytest

# Add parent of src directory to the Python path to make imports work properly
root_dir = Path(__file__).parent.parent
if root_dir.exists():
    sys.path.insert(0, str(root_dir))

try:
    import cassandra_sink
except ImportError:
    sys.path.insert(0, str(root_dir / "src"))

from cassandra_sink.config.settings import (
    AppSettings,
    CassandraSettings,
    KafkaSettings,
    Settings,
    SinkSettings,
)
from cassandra_sink.data_generators.book_generator import BookGenerator
from cassandra_sink.ingest.binder import BoundStatement
from cassandra_sink.models.model_base import EntityBase
from cassandra_sink.services.config_service import ConfigService


class FakeStore:
    """In-memory stand-in for CassandraService"""

    def __init__(self, parameter_types: Optional[List[Any]] = None):
        self.types = parameter_types
        self.executed: List[BoundStatement] = []
        self.inserted: List[EntityBase] = []
        self.fail_on: Optional[int] = None

    def parameter_types(self, cql: str) -> Optional[List[Any]]:
        return self.types

    def execute(self, statement: BoundStatement) -> None:
        if self.fail_on is not None and len(self.executed) == self.fail_on:
            raise RuntimeError("write timeout")
        self.executed.append(statement)

    def insert(self, entity: EntityBase) -> None:
        self.inserted.append(entity)


@pytest.fixture
def test_settings():
    """Settings that do not depend on a config file"""
    return Settings(
        cassandra=CassandraSettings(contact_points="cassandra-1, cassandra-2", keyspace="test"),
        kafka=KafkaSettings(bootstrap_servers="mock-kafka:9092", topic="books"),
        sink=SinkSettings(),
        app=AppSettings(wait_retries=1, wait_delay=0)
    )


@pytest.fixture
def config_service(test_settings):
    """ConfigService over the test settings"""
    return ConfigService(test_settings)


@pytest.fixture
def fake_store():
    return FakeStore()


@pytest.fixture
def books():
    """Five generated books, as the ingest scenarios send them"""
    return BookGenerator().generate_batch(5, title="Spring XD Guide", author="XD Guru",
                                          pages=lambda i: i * 10 + 5)


@pytest.fixture
def mock_session():
    """Mock driver session"""
    session = MagicMock()
    session.prepare.side_effect = lambda cql: MagicMock(query_string=cql, column_metadata=[])
    return session
