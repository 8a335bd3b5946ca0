#!/usr/bin/env python3
"""
Kafka Service Module
===================
Consumes the sink's input topic one message at a time.
"""

import logging
from typing import Any, Callable, Dict, Optional

from confluent_kafka import Consumer, KafkaError, KafkaException, Message

from cassandra_sink.services.config_service import ConfigService

logger: logging.Logger = logging.getLogger("kafka-service")

class KafkaService:
    """Service for consuming the input topic"""

    def __init__(self, config_service: ConfigService) -> None:
        """
        Initialize the Kafka service

        Args:
            config_service: The configuration service
        """
        self.config_service: ConfigService = config_service
        self.kafka_config: Dict[str, Any] = config_service.get_kafka_config()
        self.consumer: Optional[Consumer] = None
        self._running: bool = False

    def get_consumer_config(self) -> Dict[str, Any]:
        """
        Get the consumer configuration

        Offsets are committed by the sink after each message is handled.
        """
        return {
            'bootstrap.servers': self.kafka_config['bootstrap_servers'],
            'group.id': self.kafka_config['group_id'],
            'auto.offset.reset': self.kafka_config['auto_offset_reset'],
            'enable.auto.commit': False,
            'session.timeout.ms': self.kafka_config['session_timeout_ms']
        }

    def subscribe(self) -> Consumer:
        """Create the consumer and subscribe to the input topic"""
        if self.consumer is None:
            self.consumer = Consumer(self.get_consumer_config())
            self.consumer.subscribe([self.kafka_config['topic']])
            logger.info(f"Subscribed to topic: {self.kafka_config['topic']}")
        return self.consumer

    def commit(self, msg: Message) -> None:
        self.subscribe().commit(message=msg, asynchronous=False)

    def run(self, handler: Callable[[Message], None], max_messages: Optional[int] = None) -> int:
        """
        Poll the input topic and hand each message to ``handler``

        Args:
            handler: Called once per message, synchronously
            max_messages: Stop after this many messages, run until stopped if None

        Returns:
            Number of messages handled
        """
        consumer = self.subscribe()
        poll_timeout = self.kafka_config['poll_timeout']
        handled = 0
        self._running = True

        while self._running and (max_messages is None or handled < max_messages):
            msg = consumer.poll(poll_timeout)
            if msg is None:
                continue

            if msg.error():
                if msg.error().code() == KafkaError._PARTITION_EOF:
                    continue
                raise KafkaException(msg.error())

            handler(msg)
            handled += 1

        logger.info(f"Consumer loop finished after {handled} messages")
        return handled

    def stop(self) -> None:
        """Ask the poll loop to return after the current message"""
        self._running = False

    def close(self) -> None:
        """Close the consumer"""
        self._running = False
        if self.consumer is not None:
            try:
                self.consumer.close()
            except KafkaException as e:
                logger.warning(f"Error closing consumer: {str(e)}")
            self.consumer = None
