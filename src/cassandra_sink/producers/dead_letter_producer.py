"""
Dead Letter Queue Producer for the Cassandra sink.
Routes messages and records the sink could not write to a DLQ topic.
"""

import datetime
import json
import logging
from typing import Optional

from confluent_kafka import Producer
from pydantic import BaseModel

# Configure logging
logger = logging.getLogger(__name__)


class DeadLetterMessage(BaseModel):
    """Model for encapsulating failed messages"""

    original_topic: str
    original_key: Optional[str] = None
    error_reason: str
    error_timestamp: float
    original_payload: str
    record_index: Optional[int] = None


class DeadLetterProducer:
    """Producer for dead letter queue messages"""

    def __init__(self, bootstrap_servers: str, topic: str):
        """
        Initialize the DLQ producer

        Args:
            bootstrap_servers: Kafka bootstrap servers
            topic: Dead letter topic
        """
        self.topic = topic
        self.producer = Producer({
            'bootstrap.servers': bootstrap_servers,
            'linger.ms': 50,
            'acks': 'all',
        })

    def send_to_dlq(self,
                    original_topic: str,
                    original_key: Optional[str],
                    error_reason: str,
                    original_payload: str,
                    record_index: Optional[int] = None) -> None:
        """
        Send a failed message or record to the dead letter queue

        Args:
            original_topic: The topic the message was consumed from
            original_key: The key of the original message
            error_reason: Description of the error
            original_payload: The original payload text, or the failed record as JSON
            record_index: Position of the failed record in a list payload
        """
        dlq_message = DeadLetterMessage(
            original_topic=original_topic,
            original_key=original_key,
            error_reason=error_reason,
            error_timestamp=datetime.datetime.now().timestamp(),
            original_payload=original_payload,
            record_index=record_index
        )

        try:
            self.producer.produce(
                topic=self.topic,
                key=original_key,
                value=dlq_message.model_dump_json()
            )

            # Ensure it's sent immediately
            self.producer.flush(timeout=5)

            logger.info(f"Message sent to DLQ topic {self.topic}: {error_reason}")

        except Exception as e:
            # Last resort logging if even DLQ fails
            logger.error(f"Failed to send to DLQ: {e}")
            logger.error(f"Original error: {error_reason}")
            logger.error(f"Original message: {original_payload}")

    def send_record(self, original_topic: str, original_key: Optional[str],
                    error_reason: str, record: dict, record_index: int) -> None:
        """Send a single record that failed to bind"""
        self.send_to_dlq(original_topic, original_key, error_reason,
                         json.dumps(record, default=str), record_index=record_index)

    def close(self) -> None:
        self.producer.flush(timeout=5)
