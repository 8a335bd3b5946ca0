"""
Producers package for the Cassandra sink.
"""

from cassandra_sink.producers.dead_letter_producer import DeadLetterMessage, DeadLetterProducer

__all__ = [
    'DeadLetterMessage',
    'DeadLetterProducer'
]
