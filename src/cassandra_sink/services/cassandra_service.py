#!/usr/bin/env python3
"""
Cassandra Service Module
=====================
Handles the session with the Cassandra cluster: keyspace and schema
bootstrap, object-mapped entity writes and execution of bound ingest
statements.
"""

import logging
import ssl
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Type

from cassandra.auth import PlainTextAuthProvider
from cassandra.cluster import Cluster, ResultSet, Session
from cassandra.query import PreparedStatement

from cassandra_sink.config.settings import CassandraSettings, CompressionType, SchemaAction
from cassandra_sink.exceptions import StoreError
from cassandra_sink.factories import EntityFactory
from cassandra_sink.ingest.binder import BoundStatement
from cassandra_sink.models.model_base import EntityBase
from cassandra_sink.services.config_service import ConfigService

logger: logging.Logger = logging.getLogger("cassandra-service")


def split_script(script: str) -> List[str]:
    """
    Split a CQL script into statements on ``;``.

    Blank fragments (the one after the last ``;``) and fragments holding only
    comments are dropped.
    """
    statements: List[str] = []
    for fragment in script.split(";"):
        lines = [line for line in fragment.strip().splitlines()
                 if line.strip() and not line.strip().startswith(("--", "//"))]
        if lines:
            statements.append(fragment.strip())
    return statements


class CassandraService:
    """Service for Cassandra operations"""

    def __init__(self, config_service: ConfigService):
        """
        Initialize the Cassandra service

        Args:
            config_service: Configuration service
        """
        self.config_service = config_service
        self.cassandra_config: CassandraSettings = config_service.get_cassandra_config()
        self.cluster: Optional[Cluster] = None
        self._session: Optional[Session] = None
        self._prepared: Dict[str, PreparedStatement] = {}

    def ssl_context(self) -> Optional[ssl.SSLContext]:
        """SSL context for the native transport, None when SSL is off"""
        if not self.cassandra_config.use_ssl:
            return None
        if self.cassandra_config.skip_ssl_validation:
            context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            return context
        return ssl.create_default_context()

    def auth_provider(self) -> Optional[PlainTextAuthProvider]:
        """Plain text credentials when a username is configured"""
        if not self.cassandra_config.username:
            return None
        return PlainTextAuthProvider(username=self.cassandra_config.username,
                                     password=self.cassandra_config.password or "")

    def build_cluster(self) -> Cluster:
        """
        Build the driver cluster from configuration

        Returns:
            Unconnected Cluster instance
        """
        config = self.cassandra_config
        kwargs: Dict[str, Any] = {
            'port': config.port,
            'compression': False if config.compression is CompressionType.NONE else config.compression.value,
            'metrics_enabled': config.metrics_enabled,
        }
        if config.username:
            kwargs['auth_provider'] = self.auth_provider()
        if config.use_ssl:
            kwargs['ssl_context'] = self.ssl_context()

        return Cluster(config.contact_point_list, **kwargs)

    def connect(self, entity_classes: Optional[Sequence[Type[EntityBase]]] = None,
                bootstrap: bool = True) -> Session:
        """
        Open the session and bootstrap the keyspace and schema

        Args:
            entity_classes: Entities the schema action applies to, defaults to all registered
            bootstrap: Create the keyspace, apply the schema action and run the init script

        Returns:
            Connected session bound to the configured keyspace
        """
        if self._session is not None:
            return self._session

        config = self.cassandra_config
        logger.info(f"Connecting to Cassandra at {config.contact_points}:{config.port}")
        self.cluster = self.build_cluster()
        session = self.cluster.connect()

        if bootstrap and config.create_keyspace:
            self.create_keyspace(session, config.keyspace, config.replication_factor)

        session.set_keyspace(config.keyspace)
        self._session = session
        logger.info(f"Using keyspace {config.keyspace}")

        if not bootstrap:
            return session

        self.apply_schema_action(entity_classes if entity_classes is not None else EntityFactory.all(),
                                 config.schema_action)

        if config.init_script:
            self.run_init_script(config.init_script)

        return session

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StoreError("Cassandra session is not connected")
        return self._session

    def close(self) -> None:
        """Shut down the cluster connection"""
        if self.cluster is not None:
            self.cluster.shutdown()
            logger.info("Cassandra connection closed")
        self.cluster = None
        self._session = None
        self._prepared.clear()

    @staticmethod
    def create_keyspace(session: Session, keyspace: str, replication_factor: int = 1) -> None:
        """Create the keyspace with simple replication if it does not exist"""
        session.execute(
            f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
            f"WITH replication = {{'class': 'SimpleStrategy', 'replication_factor': {replication_factor}}}"
        )
        logger.info(f"Keyspace {keyspace} ensured")

    def run_init_script(self, path: str) -> int:
        """
        Execute a CQL script statement by statement

        Args:
            path: Path of the script

        Returns:
            Number of statements executed
        """
        script = Path(path).read_text(encoding="utf-8")
        statements = split_script(script)
        for statement in statements:
            self.session.execute(statement)
        logger.info(f"Executed {len(statements)} statements from {path}")
        return len(statements)

    # Schema

    def create_table(self, entity_class: Type[EntityBase], if_not_exists: bool = True) -> None:
        """Create the table mapped by ``entity_class``"""
        columns = ", ".join(f"{column} {cql_type}" for column, cql_type in entity_class.column_types().items())
        primary_key = ", ".join(entity_class.primary_key)
        guard = "IF NOT EXISTS " if if_not_exists else ""
        self.session.execute(
            f"CREATE TABLE {guard}{entity_class.table_name} ({columns}, PRIMARY KEY ({primary_key}))"
        )
        logger.info(f"Table {entity_class.table_name} created")

    def drop_table(self, table_name: str) -> None:
        self.session.execute(f"DROP TABLE IF EXISTS {table_name}")
        logger.info(f"Table {table_name} dropped")

    def list_tables(self) -> List[str]:
        """Tables in the configured keyspace according to cluster metadata"""
        if self.cluster is None:
            raise StoreError("Cassandra session is not connected")
        keyspace = self.cluster.metadata.keyspaces.get(self.cassandra_config.keyspace)
        return list(keyspace.tables) if keyspace else []

    def apply_schema_action(self, entity_classes: Sequence[Type[EntityBase]], action: SchemaAction) -> None:
        """
        Apply a schema action to the entity tables

        Args:
            entity_classes: Mapped entities
            action: What to do with their tables
        """
        if action is SchemaAction.NONE:
            return

        logger.info(f"Applying schema action {action.value} to {len(entity_classes)} entities")
        if action is SchemaAction.RECREATE_DROP_UNUSED:
            mapped = {entity_class.table_name for entity_class in entity_classes}
            for table in self.list_tables():
                if table not in mapped:
                    self.drop_table(table)

        for entity_class in entity_classes:
            if action in (SchemaAction.RECREATE, SchemaAction.RECREATE_DROP_UNUSED):
                self.drop_table(entity_class.table_name)
            self.create_table(entity_class, if_not_exists=action is SchemaAction.CREATE_IF_NOT_EXISTS)
        self._prepared.clear()

    # Statements

    def prepare(self, cql: str) -> PreparedStatement:
        """Prepare ``cql`` once per session"""
        prepared = self._prepared.get(cql)
        if prepared is None:
            prepared = self.session.prepare(cql)
            self._prepared[cql] = prepared
            logger.debug(f"Prepared statement: {cql}")
        return prepared

    def parameter_types(self, cql: str) -> List[Any]:
        """CQL type of every bind marker of ``cql``"""
        return [column.type for column in self.prepare(cql).column_metadata]

    def execute(self, statement: BoundStatement) -> ResultSet:
        """Execute a bound ingest statement"""
        logger.debug(f"Executing {statement.query} with {len(statement.values)} values")
        return self.session.execute(self.prepare(statement.query), statement.values)

    # Object mapping

    def insert(self, entity: EntityBase) -> None:
        """Insert ``entity`` into its mapped table"""
        columns = entity.columns()
        cql = (f"INSERT INTO {entity.table_name} ({', '.join(columns)}) "
               f"VALUES ({', '.join('?' for _ in columns)})")
        row = entity.to_row()
        self.session.execute(self.prepare(cql), [row[column] for column in columns])
        logger.debug(f"Inserted {entity.entity_name} {entity.key()}")

    def delete(self, entity: EntityBase) -> None:
        """Delete ``entity`` by primary key"""
        key = entity.key()
        condition = " AND ".join(f"{column} = ?" for column in key)
        self.session.execute(self.prepare(f"DELETE FROM {entity.table_name} WHERE {condition}"), list(key.values()))
        logger.debug(f"Deleted {entity.entity_name} {key}")

    def select_all(self, entity_class: Type[EntityBase]) -> List[EntityBase]:
        """All rows of the entity table"""
        rows = self.session.execute(f"SELECT * FROM {entity_class.table_name}")
        return [entity_class.from_row(row) for row in rows]

    def count(self, table_name: str) -> int:
        return self.session.execute(f"SELECT COUNT(*) FROM {table_name}").one()[0]

    def truncate(self, table_name: str) -> None:
        self.session.execute(f"TRUNCATE {table_name}")
        logger.info(f"Table {table_name} truncated")
