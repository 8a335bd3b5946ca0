#!/usr/bin/env python3
"""
Configuration Service Module
===========================
Centralized configuration management for the sink.
"""

import logging
from typing import Any, Dict, Optional

from cassandra_sink.config.settings import CassandraSettings, SinkSettings, Settings, settings

logger = logging.getLogger("config-service")

class ConfigService:
    """Service for managing and accessing configuration"""

    def __init__(self, settings_override: Optional[Settings] = None) -> None:
        """
        Initialize the configuration service

        Args:
            settings_override: Settings to use instead of the loaded singleton
        """
        logger.info("Loading configuration...")

        # Store settings
        self.settings = settings_override or settings

        # Log important configuration settings
        self._log_config_summary()

    def _log_config_summary(self) -> None:
        """Log a summary of important configuration settings"""
        cassandra = self.settings.cassandra
        logger.info(f"Cassandra: {cassandra.contact_points}:{cassandra.port} keyspace={cassandra.keyspace}")

        kafka = self.settings.kafka
        logger.info(f"Kafka: {kafka.bootstrap_servers} topic={kafka.topic} group={kafka.group_id}")

        sink = self.settings.sink
        if sink.ingest_query:
            logger.info(f"Ingest query ({sink.query_type.value if sink.query_type else 'inferred'}): {sink.ingest_query}")
        else:
            logger.info(f"Entity insert mode for entity: {sink.entity}")

    def get_config(self) -> Dict[str, Any]:
        """Get the complete configuration as a dictionary"""
        return self.settings.model_dump()

    def get_cassandra_config(self) -> CassandraSettings:
        """Get Cassandra cluster configuration"""
        return self.settings.cassandra

    def get_sink_config(self) -> SinkSettings:
        """Get sink behaviour configuration"""
        return self.settings.sink

    def get_kafka_config(self) -> Dict[str, Any]:
        """
        Get Kafka configuration

        Returns:
            Dictionary with Kafka configuration settings
        """
        kafka = self.settings.kafka
        return {
            'bootstrap_servers': kafka.bootstrap_servers,
            'topic': kafka.topic,
            'group_id': kafka.group_id,
            'auto_offset_reset': kafka.auto_offset_reset,
            'poll_timeout': kafka.poll_timeout,
            'session_timeout_ms': kafka.session_timeout_ms
        }

    def get_dead_letter_topic(self) -> str:
        """DLQ topic name, defaulting to the input topic with a .dlq suffix"""
        return self.settings.sink.dead_letter_topic or f"{self.settings.kafka.topic}.dlq"

    def get_wait_policy(self) -> Dict[str, Any]:
        """Retries and delay used while waiting for Kafka and Cassandra"""
        return {
            'retries': self.settings.app.wait_retries,
            'delay': self.settings.app.wait_delay
        }
