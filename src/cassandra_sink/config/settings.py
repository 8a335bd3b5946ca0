#!/usr/bin/env python3
"""
Configuration Module
==================
Centralized configuration management using Pydantic BaseSettings.
Loads configuration from config.toml file.
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from cassandra_sink.ingest.binder import PositionalBinding
from cassandra_sink.ingest.query import QueryType

logger = logging.getLogger("config-settings")

CONFIG_PATH_ENV: str = "CASSANDRA_SINK_CONFIG"


class SchemaAction(str, Enum):
    """What to do with entity tables on startup"""
    NONE = "none"
    CREATE = "create"
    CREATE_IF_NOT_EXISTS = "create_if_not_exists"
    RECREATE = "recreate"
    RECREATE_DROP_UNUSED = "recreate_drop_unused"


class CompressionType(str, Enum):
    """Native protocol compression"""
    NONE = "none"
    SNAPPY = "snappy"
    LZ4 = "lz4"


class CassandraSettings(BaseSettings):
    """Cassandra cluster configuration settings"""
    contact_points: str = Field("localhost", description="Comma separated contact points")
    port: int = Field(9042, description="Native transport port")
    keyspace: str = Field("sink", description="Keyspace to write to")
    username: Optional[str] = Field(None, description="Username for plain text auth")
    password: Optional[str] = Field(None, description="Password for plain text auth")
    create_keyspace: bool = Field(False, description="Create the keyspace if missing")
    replication_factor: int = Field(1, description="Replication factor for a created keyspace")
    init_script: Optional[str] = Field(None, description="Path of a CQL script run on startup")
    schema_action: SchemaAction = Field(SchemaAction.NONE, description="Entity table schema action")
    use_ssl: bool = Field(False, description="Connect over SSL")
    skip_ssl_validation: bool = Field(False, description="Trust any server certificate")
    compression: CompressionType = Field(CompressionType.NONE, description="Protocol compression")
    metrics_enabled: bool = Field(False, description="Enable driver metrics")

    model_config = SettingsConfigDict(env_file=".env", env_prefix="CASSANDRA_", extra="ignore")

    @property
    def contact_point_list(self) -> List[str]:
        return [host.strip() for host in self.contact_points.split(",") if host.strip()]


class KafkaSettings(BaseSettings):
    """Kafka configuration settings"""
    bootstrap_servers: str = Field("localhost:9092", description="Kafka bootstrap servers")
    topic: str = Field("cassandra-sink.input", description="Topic to consume")
    group_id: str = Field("cassandra-sink", description="Consumer group")
    auto_offset_reset: str = Field("earliest", description="Where to start without a committed offset")
    poll_timeout: float = Field(1.0, description="Poll timeout in seconds")
    session_timeout_ms: int = Field(10000, description="Consumer session timeout")

    model_config = SettingsConfigDict(env_file=".env", env_prefix="KAFKA_", extra="ignore")


class SinkSettings(BaseSettings):
    """Sink behaviour settings"""
    ingest_query: Optional[str] = Field(None, description="CQL ingest query template")
    query_type: Optional[QueryType] = Field(None, description="INSERT or UPDATE, inferred if unset")
    entity: str = Field("book", description="Entity used by the object-mapped path")
    positional_binding: PositionalBinding = Field(PositionalBinding.AUTO,
                                                  description="How positional parameters are resolved")
    dead_letter_enabled: bool = Field(False, description="Publish failed messages to a DLQ topic")
    dead_letter_topic: Optional[str] = Field(None, description="DLQ topic, defaults to <topic>.dlq")

    model_config = SettingsConfigDict(env_file=".env", env_prefix="SINK_", extra="ignore")


class AppSettings(BaseSettings):
    """Application configuration settings"""
    log_level: str = Field("INFO", description="Root log level")
    wait_retries: int = Field(30, description="Connection attempts before giving up")
    wait_delay: float = Field(2.0, description="Delay between connection attempts in seconds")

    model_config = SettingsConfigDict(env_file=".env", env_prefix="APP_", extra="ignore")


class Settings(BaseSettings):
    """Complete configuration settings"""
    cassandra: CassandraSettings = Field(default_factory=CassandraSettings)
    kafka: KafkaSettings = Field(default_factory=KafkaSettings)
    sink: SinkSettings = Field(default_factory=SinkSettings)
    app: AppSettings = Field(default_factory=AppSettings)

    model_config = SettingsConfigDict(extra="ignore")

    @classmethod
    def from_toml(cls, file_path: str) -> "Settings":
        """Load settings from a TOML file"""
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config_dict = toml.load(f)

            # Sections missing from the file still pick up their env vars
            sections = {
                "cassandra": CassandraSettings,
                "kafka": KafkaSettings,
                "sink": SinkSettings,
                "app": AppSettings,
            }
            for name, section_class in sections.items():
                config_dict[name] = section_class(**config_dict.get(name, {}))

            return cls(**config_dict)
        except Exception as e:
            logger.error(f"Error loading config from {file_path}: {e}")
            raise


def get_config_path() -> str:
    """Find the config.toml file path."""
    possible_paths = [
        os.environ.get(CONFIG_PATH_ENV, ""),
        "/app/config.toml",  # Docker container path
        Path.cwd() / "config.toml",  # Current working directory
    ]

    for path in possible_paths:
        if path and Path(path).exists():
            return str(path)

    raise FileNotFoundError("Could not find config.toml file")


def get_settings() -> Settings:
    """Get the settings singleton instance."""
    try:
        config_path = get_config_path()
        logger.info(f"Loading configuration from: {config_path}")
        settings = Settings.from_toml(config_path)
        logger.info("Successfully loaded configuration from TOML file")
        return settings
    except FileNotFoundError:
        logger.warning("No config file found, using environment variables and defaults")
        return Settings()


# Create a singleton instance
settings = get_settings()
