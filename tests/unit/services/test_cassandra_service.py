"""
Unit tests for CassandraService.
"""

import ssl
from unittest.mock import MagicMock, call, patch

import pytest

from cassandra_sink.config.settings import CompressionType, SchemaAction
from cassandra_sink.exceptions import StoreError
from cassandra_sink.ingest.binder import BoundStatement
from cassandra_sink.models.book import Book
from cassandra_sink.services.cassandra_service import CassandraService, split_script
from cassandra_sink.services.config_service import ConfigService


@pytest.fixture
def service(config_service, mock_session):
    """Service with a mocked session already connected"""
    service = CassandraService(config_service)
    service.cluster = MagicMock()
    service._session = mock_session
    return service


def executed_cql(session):
    return [c.args[0] for c in session.execute.call_args_list]


class TestSplitScript:

    def test_splits_on_semicolon(self):
        script = """
        -- schema for the sink
        CREATE TABLE a (id int PRIMARY KEY);
        CREATE TABLE b (id int PRIMARY KEY);
        """

        assert split_script(script) == [
            "-- schema for the sink\n        CREATE TABLE a (id int PRIMARY KEY)",
            "CREATE TABLE b (id int PRIMARY KEY)",
        ]

    def test_drops_comment_only_fragments(self):
        assert split_script("// nothing here;\n;") == []


class TestCluster:

    def test_defaults(self, config_service):
        with patch("cassandra_sink.services.cassandra_service.Cluster") as cluster:
            CassandraService(config_service).build_cluster()

        cluster.assert_called_once_with(["cassandra-1", "cassandra-2"], port=9042,
                                        compression=False, metrics_enabled=False)

    def test_auth_ssl_and_compression(self, test_settings):
        test_settings.cassandra.username = "sink"
        test_settings.cassandra.password = "secret"
        test_settings.cassandra.use_ssl = True
        test_settings.cassandra.skip_ssl_validation = True
        test_settings.cassandra.compression = CompressionType.LZ4

        with patch("cassandra_sink.services.cassandra_service.Cluster") as cluster:
            CassandraService(ConfigService(test_settings)).build_cluster()

        kwargs = cluster.call_args.kwargs
        assert kwargs["compression"] == "lz4"
        assert kwargs["auth_provider"].username == "sink"
        assert kwargs["ssl_context"].verify_mode == ssl.CERT_NONE

    def test_no_auth_without_username(self, config_service):
        assert CassandraService(config_service).auth_provider() is None

    def test_no_ssl_context_without_ssl(self, config_service):
        assert CassandraService(config_service).ssl_context() is None


class TestConnect:

    def test_bootstrap(self, test_settings, tmp_path):
        script = tmp_path / "init.cql"
        script.write_text("CREATE TABLE extra (id int PRIMARY KEY);")
        test_settings.cassandra.create_keyspace = True
        test_settings.cassandra.schema_action = SchemaAction.CREATE_IF_NOT_EXISTS
        test_settings.cassandra.init_script = str(script)

        with patch("cassandra_sink.services.cassandra_service.Cluster") as cluster:
            session = cluster.return_value.connect.return_value
            service = CassandraService(ConfigService(test_settings))
            assert service.connect() is session

        statements = executed_cql(session)
        assert statements[0].startswith("CREATE KEYSPACE IF NOT EXISTS test")
        assert statements[1].startswith("CREATE TABLE IF NOT EXISTS book (isbn uuid")
        assert statements[2] == "CREATE TABLE extra (id int PRIMARY KEY)"
        session.set_keyspace.assert_called_once_with("test")

    def test_without_bootstrap(self, test_settings):
        test_settings.cassandra.create_keyspace = True
        test_settings.cassandra.schema_action = SchemaAction.RECREATE_DROP_UNUSED

        with patch("cassandra_sink.services.cassandra_service.Cluster") as cluster:
            session = cluster.return_value.connect.return_value
            CassandraService(ConfigService(test_settings)).connect(bootstrap=False)

        session.execute.assert_not_called()

    def test_session_requires_connect(self, config_service):
        with pytest.raises(StoreError):
            CassandraService(config_service).session

    def test_close(self, service):
        cluster = service.cluster

        service.close()

        cluster.shutdown.assert_called_once()
        assert service._session is None


class TestSchemaActions:

    def test_none(self, service, mock_session):
        service.apply_schema_action([Book], SchemaAction.NONE)

        mock_session.execute.assert_not_called()

    def test_create(self, service, mock_session):
        service.apply_schema_action([Book], SchemaAction.CREATE)

        assert executed_cql(mock_session) == [
            "CREATE TABLE book (isbn uuid, title text, author text, pages int, "
            "saleDate timestamp, inStock boolean, PRIMARY KEY (isbn))"
        ]

    def test_recreate(self, service, mock_session):
        service.apply_schema_action([Book], SchemaAction.RECREATE)

        statements = executed_cql(mock_session)
        assert statements[0] == "DROP TABLE IF EXISTS book"
        assert statements[1].startswith("CREATE TABLE book")

    def test_recreate_drop_unused(self, service, mock_session):
        service.cluster.metadata.keyspaces = {"test": MagicMock(tables={"book": None, "legacy": None})}

        service.apply_schema_action([Book], SchemaAction.RECREATE_DROP_UNUSED)

        statements = executed_cql(mock_session)
        assert statements[:2] == ["DROP TABLE IF EXISTS legacy", "DROP TABLE IF EXISTS book"]


class TestStatements:

    def test_prepare_is_cached(self, service, mock_session):
        service.prepare("SELECT * FROM book")
        service.prepare("SELECT * FROM book")

        mock_session.prepare.assert_called_once_with("SELECT * FROM book")

    def test_parameter_types(self, service, mock_session):
        column = MagicMock()
        column.type = "uuid"
        mock_session.prepare.side_effect = None
        mock_session.prepare.return_value = MagicMock(column_metadata=[column])

        assert service.parameter_types("SELECT * FROM book WHERE isbn = ?") == ["uuid"]

    def test_execute_bound(self, service, mock_session):
        statement = BoundStatement(query="UPDATE book SET title = ? WHERE isbn = ?",
                                   values=("T", "id"), fields=("title", "isbn"))

        service.execute(statement)

        prepared, values = mock_session.execute.call_args.args
        assert prepared.query_string == statement.query
        assert values == ("T", "id")


class TestObjectMapping:

    def test_insert(self, service, mock_session, books):
        service.insert(books[0])

        prepared, values = mock_session.execute.call_args.args
        assert prepared.query_string == ("INSERT INTO book (isbn, title, author, pages, saleDate, inStock) "
                                         "VALUES (?, ?, ?, ?, ?, ?)")
        assert values[0] == books[0].isbn
        assert values[5] is True

    def test_delete(self, service, mock_session, books):
        service.delete(books[0])

        prepared, values = mock_session.execute.call_args.args
        assert prepared.query_string == "DELETE FROM book WHERE isbn = ?"
        assert values == [books[0].isbn]

    def test_count_and_truncate(self, service, mock_session):
        mock_session.execute.return_value.one.return_value = (5,)

        assert service.count("book") == 5
        service.truncate("book")

        assert mock_session.execute.call_args_list[-1] == call("TRUNCATE book")
