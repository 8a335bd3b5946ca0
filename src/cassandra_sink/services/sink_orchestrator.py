#!/usr/bin/env python3
"""
Sink Orchestrator Module
==========================
Coordinates the sink components: waits for Kafka and Cassandra, opens the
session, builds the dispatcher and runs the consumer loop.
"""

import logging
from typing import Optional

from cassandra import DriverException
from confluent_kafka import Message

from cassandra_sink.exceptions import PayloadError
from cassandra_sink.producers.dead_letter_producer import DeadLetterProducer
from cassandra_sink.services.cassandra_service import CassandraService
from cassandra_sink.services.config_service import ConfigService
from cassandra_sink.services.kafka_service import KafkaService
from cassandra_sink.sink.dispatcher import DispatchResult, SinkDispatcher
from cassandra_sink.utils.connection_utils import wait_for_cassandra, wait_for_kafka

logger: logging.Logger = logging.getLogger("sink-orchestrator")

class SinkOrchestrator:
    """Orchestrates the sink setup and execution"""

    def __init__(self, config_service: Optional[ConfigService] = None) -> None:
        """Initialize the sink orchestrator"""
        # Create services
        self.config_service: ConfigService = config_service or ConfigService()
        self.cassandra_service: CassandraService = CassandraService(self.config_service)
        self.kafka_service: KafkaService = KafkaService(self.config_service)
        self.dead_letter_producer: Optional[DeadLetterProducer] = None
        self.dispatcher: Optional[SinkDispatcher] = None

    def setup_infrastructure(self) -> bool:
        """
        Wait for Kafka and Cassandra to be available

        Returns:
            True if both answered within the retry window
        """
        logger.info("=== WAITING FOR INFRASTRUCTURE ===")
        wait_policy = self.config_service.get_wait_policy()
        cassandra = self.config_service.get_cassandra_config()

        if not wait_for_kafka(self.config_service.get_kafka_config()['bootstrap_servers'], **wait_policy):
            logger.error("Failed to connect to Kafka. Sink cannot start.")
            return False

        if not wait_for_cassandra(cassandra.contact_point_list, cassandra.port,
                                  auth_provider=self.cassandra_service.auth_provider(),
                                  ssl_context=self.cassandra_service.ssl_context(), **wait_policy):
            logger.error("Failed to connect to Cassandra. Sink cannot start.")
            return False

        return True

    def setup_sink(self) -> SinkDispatcher:
        """Open the Cassandra session and build the dispatcher"""
        logger.info("=== SETTING UP SINK ===")
        self.cassandra_service.connect()
        sink_config = self.config_service.get_sink_config()
        self.dispatcher = SinkDispatcher.from_settings(sink_config, self.cassandra_service)

        if sink_config.dead_letter_enabled:
            topic = self.config_service.get_dead_letter_topic()
            self.dead_letter_producer = DeadLetterProducer(
                self.config_service.get_kafka_config()['bootstrap_servers'], topic
            )
            logger.info(f"Dead letter topic: {topic}")

        return self.dispatcher

    def handle_message(self, msg: Message) -> Optional[DispatchResult]:
        """
        Write one consumed message and commit its offset

        Payload errors are dead-lettered and committed. Cassandra errors
        propagate without a commit, so the message is redelivered.
        """
        key = msg.key().decode("utf-8", errors="replace") if msg.key() else None
        try:
            result = self.dispatcher.handle(msg.value())
        except PayloadError as e:
            logger.error(f"Message at {msg.topic()}[{msg.partition()}]@{msg.offset()} rejected: {e}")
            if self.dead_letter_producer:
                payload = (msg.value() or b"").decode("utf-8", errors="replace")
                self.dead_letter_producer.send_to_dlq(msg.topic(), key, str(e), payload)
            self.kafka_service.commit(msg)
            return None
        except DriverException as e:
            logger.error(f"Cassandra write failed at {msg.topic()}[{msg.partition()}]@{msg.offset()}: {e}")
            raise

        for failure in result.failures:
            if self.dead_letter_producer:
                self.dead_letter_producer.send_record(msg.topic(), key, failure.reason,
                                                      failure.record, failure.index)

        if result.failures:
            logger.warning(f"{len(result.failures)} of {result.received} records failed to bind")
        self.kafka_service.commit(msg)
        return result

    def shutdown(self) -> None:
        """Clean up resources"""
        logger.info("=== SHUTTING DOWN ===")
        self.kafka_service.close()
        if self.dead_letter_producer:
            self.dead_letter_producer.close()
        self.cassandra_service.close()

    def run(self, max_messages: Optional[int] = None) -> bool:
        """
        Run the sink until stopped

        Args:
            max_messages: Stop after this many messages

        Returns:
            True if the sink started and stopped cleanly
        """
        if not self.setup_infrastructure():
            return False

        try:
            self.setup_sink()
            self.kafka_service.run(self.handle_message, max_messages=max_messages)
            return True
        finally:
            self.shutdown()
