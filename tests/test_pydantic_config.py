#!/usr/bin/env python3
"""
Test Pydantic Configuration Module
=================================
Tests the Pydantic-based configuration system
"""

import logging

import pytest

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("config-tests")

from cassandra_sink.config.settings import (
    CONFIG_PATH_ENV,
    CassandraSettings,
    CompressionType,
    SchemaAction,
    Settings,
    get_settings,
    settings,
)
from cassandra_sink.ingest.binder import PositionalBinding
from cassandra_sink.ingest.query import QueryType
from cassandra_sink.services.config_service import ConfigService


def test_config_loads_correctly() -> None:
    """Test that configuration loads correctly"""
    config = settings
    assert isinstance(config, Settings)

    # Check that required sections exist
    assert config.cassandra is not None
    assert config.kafka is not None
    assert config.sink is not None
    assert config.app is not None

def test_config_default_values() -> None:
    """Test that configuration has correct default values"""
    config = Settings()

    assert config.cassandra.port == 9042
    assert config.cassandra.schema_action is SchemaAction.NONE
    assert config.cassandra.compression is CompressionType.NONE
    assert config.sink.ingest_query is None
    assert config.sink.positional_binding is PositionalBinding.AUTO

def test_environment_override(monkeypatch) -> None:
    """Test that environment variables override defaults"""
    monkeypatch.setenv("CASSANDRA_KEYSPACE", "from_env")
    monkeypatch.setenv("CASSANDRA_SCHEMA_ACTION", "recreate")

    config = CassandraSettings()

    assert config.keyspace == "from_env"
    assert config.schema_action is SchemaAction.RECREATE

def test_from_toml(tmp_path) -> None:
    """Test loading sections from a TOML file"""
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        '[cassandra]\ncontact_points = "db-1,db-2"\nkeyspace = "books"\n\n'
        '[sink]\ningest_query = "update book set title = :title where isbn = :isbn"\n'
        'query_type = "update"\npositional_binding = "order"\n'
    )

    config = Settings.from_toml(str(config_file))

    assert config.cassandra.contact_point_list == ["db-1", "db-2"]
    assert config.sink.query_type is QueryType.UPDATE
    assert config.sink.positional_binding is PositionalBinding.ORDER
    assert config.kafka.topic == "cassandra-sink.input"

def test_config_path_from_environment(monkeypatch, tmp_path) -> None:
    """Test that the config path env var is honoured"""
    config_file = tmp_path / "sink.toml"
    config_file.write_text('[app]\nlog_level = "DEBUG"\n')
    monkeypatch.setenv(CONFIG_PATH_ENV, str(config_file))

    assert get_settings().app.log_level == "DEBUG"

def test_invalid_toml_raises(tmp_path) -> None:
    """Test that a malformed config file is reported"""
    config_file = tmp_path / "config.toml"
    config_file.write_text("[cassandra\n")

    with pytest.raises(Exception):
        Settings.from_toml(str(config_file))

def test_config_service(test_settings) -> None:
    """Test the ConfigService accessors"""
    service = ConfigService(test_settings)

    assert service.get_kafka_config()["topic"] == "books"
    assert service.get_dead_letter_topic() == "books.dlq"
    assert service.get_wait_policy() == {"retries": 1, "delay": 0}
    assert service.get_config()["cassandra"]["keyspace"] == "test"
