"""
Sink package.
Dispatches inbound messages to the entity or ingest query write path.
"""

from cassandra_sink.sink.dispatcher import (
    DispatchResult,
    RecordFailure,
    SinkDispatcher,
    SinkMode,
    decode_payload,
)

__all__ = [
    'DispatchResult',
    'RecordFailure',
    'SinkDispatcher',
    'SinkMode',
    'decode_payload'
]
