"""
Sink dispatcher.

Routes every inbound payload to one of two write paths chosen once from
configuration: an object-mapped insert of a typed entity, or the ingest
query path where each record is bound to a CQL template and executed.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, Field, ValidationError

from cassandra_sink.config.settings import SinkSettings
from cassandra_sink.exceptions import BindingError, ConfigurationError, PayloadError
from cassandra_sink.factories import EntityFactory
from cassandra_sink.ingest.binder import IngestQueryBinder, PositionalBinding
from cassandra_sink.ingest.query import IngestQuery, QueryType
from cassandra_sink.ingest.record import Record
from cassandra_sink.models.model_base import EntityBase
from cassandra_sink.services.cassandra_service import CassandraService

logger = logging.getLogger(__name__)


class SinkMode(str, Enum):
    """Write path of the sink"""
    ENTITY_INSERT = "entity_insert"
    INGEST_INSERT = "ingest_insert"
    INGEST_UPDATE = "ingest_update"

    @classmethod
    def resolve(cls, query: Optional[IngestQuery], query_type: Optional[QueryType] = None) -> "SinkMode":
        """
        Select the mode for a configuration

        Args:
            query: Parsed ingest query, None for the object-mapped path
            query_type: Declared query type, inferred from the template if None

        Returns:
            The sink mode

        Raises:
            ConfigurationError: If the query type is missing or contradicts the template
        """
        if query is None:
            return cls.ENTITY_INSERT

        template_type = query.query_type
        if query_type is None:
            if template_type is None:
                raise ConfigurationError(f"Cannot infer the query type of {query.template!r}; set query_type")
            query_type = template_type
        elif template_type is not None and template_type is not query_type:
            raise ConfigurationError(
                f"Query type {query_type.value} does not match the {template_type.value} ingest query"
            )

        return cls.INGEST_INSERT if query_type is QueryType.INSERT else cls.INGEST_UPDATE


class RecordFailure(BaseModel):
    """A record that could not be bound"""

    index: int
    reason: str
    record: Dict[str, Any]


class DispatchResult(BaseModel):
    """Outcome of one message"""

    mode: SinkMode
    received: int = 0
    written: int = 0
    failures: List[RecordFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def decode_payload(payload: Any) -> Any:
    """
    Deserialize JSON text or bytes; other payloads are returned unchanged.

    Raises:
        PayloadError: If the payload is not valid UTF-8 JSON
    """
    if isinstance(payload, (bytes, bytearray)):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise PayloadError(f"Payload is not UTF-8: {e}") from e
    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise PayloadError(f"Payload is not valid JSON: {e}") from e
    return payload


class SinkDispatcher:
    """Writes inbound payloads to Cassandra"""

    def __init__(self, store: CassandraService, mode: SinkMode,
                 entity_class: Optional[Type[EntityBase]] = None,
                 query: Optional[IngestQuery] = None,
                 positional_binding: PositionalBinding = PositionalBinding.AUTO):
        """
        Initialize the dispatcher

        Args:
            store: Connected Cassandra service
            mode: Write path
            entity_class: Entity type for the object-mapped path
            query: Ingest query for the ingest paths
            positional_binding: Resolution policy for positional parameters
        """
        self.store = store
        self.mode = mode
        self.entity_class = entity_class
        self.binder: Optional[IngestQueryBinder] = None

        if mode is SinkMode.ENTITY_INSERT:
            if entity_class is None:
                raise ConfigurationError("Entity insert mode needs an entity class")
        else:
            if query is None:
                raise ConfigurationError(f"{mode.value} mode needs an ingest query")
            self.binder = IngestQueryBinder(query, positional_binding)
            parameter_types = store.parameter_types(query.cql)
            if parameter_types:
                self.binder.set_parameter_types(parameter_types)

        logger.info(f"Sink dispatcher ready in {mode.value} mode")

    @classmethod
    def from_settings(cls, sink_settings: SinkSettings, store: CassandraService) -> "SinkDispatcher":
        """Build the dispatcher described by the sink settings"""
        query = IngestQuery(sink_settings.ingest_query) if sink_settings.ingest_query else None
        mode = SinkMode.resolve(query, sink_settings.query_type)
        entity_class = EntityFactory.get(sink_settings.entity) if mode is SinkMode.ENTITY_INSERT else None
        return cls(store, mode, entity_class=entity_class, query=query,
                   positional_binding=sink_settings.positional_binding)

    def handle(self, payload: Any) -> DispatchResult:
        """
        Write one inbound message

        Args:
            payload: JSON text or bytes, a field map, an entity, or a list of those

        Returns:
            Counts of records received and written, and any binding failures

        Raises:
            PayloadError: If the payload cannot be deserialized
        """
        decoded = decode_payload(payload)
        items = decoded if isinstance(decoded, list) else [decoded]
        result = DispatchResult(mode=self.mode, received=len(items))

        if self.mode is SinkMode.ENTITY_INSERT:
            self._write_entities(items, result)
        else:
            self._write_records(items, result)

        logger.debug(f"Wrote {result.written}/{result.received} records in {self.mode.value} mode")
        return result

    def _to_entity(self, item: Any) -> EntityBase:
        if isinstance(item, self.entity_class):
            return item
        if isinstance(item, EntityBase):
            item = item.to_row()
        if not isinstance(item, Mapping):
            raise PayloadError(f"Cannot map {type(item).__name__} to {self.entity_class.__name__}")
        try:
            return self.entity_class.from_mapping(item)
        except ValidationError as e:
            raise PayloadError(f"Invalid {self.entity_class.entity_name}: {e}") from e

    def _write_entities(self, items: List[Any], result: DispatchResult) -> None:
        entities = [self._to_entity(item) for item in items]
        for entity in entities:
            self.store.insert(entity)
            result.written += 1

    @staticmethod
    def _to_record(item: Any) -> Record:
        if isinstance(item, EntityBase):
            return Record(item.to_row())
        return Record(item)

    def _write_records(self, items: List[Any], result: DispatchResult) -> None:
        records = [self._to_record(item) for item in items]
        for index, record in enumerate(records):
            try:
                statement = self.binder.bind(record)
            except BindingError as e:
                logger.warning(f"Record {index} not written: {e}")
                result.failures.append(RecordFailure(index=index, reason=str(e), record=record.to_dict()))
                continue
            self.store.execute(statement)
            result.written += 1
