"""
Cassandra Sink Services Package
============================
Modular services for the sink. The orchestrator lives in
``cassandra_sink.services.sink_orchestrator``.
"""

from cassandra_sink.services.cassandra_service import CassandraService
from cassandra_sink.services.config_service import ConfigService
from cassandra_sink.services.kafka_service import KafkaService

__all__ = [
    'ConfigService',
    'CassandraService',
    'KafkaService'
]
