"""
Unit tests for the sink dispatcher.
"""

import json

import pytest

from cassandra_sink.config.settings import SinkSettings
from cassandra_sink.exceptions import ConfigurationError, PayloadError
from cassandra_sink.ingest.query import IngestQuery, QueryType
from cassandra_sink.models.book import Book
from cassandra_sink.sink.dispatcher import SinkDispatcher, SinkMode, decode_payload

INSERT_POSITIONAL = "insert into book (isbn, title, author, pages, saleDate, inStock) values (?, ?, ?, ?, ?, ?)"
UPDATE_NAMED = ("update book set inStock = :inStock, author = :author, pages = :pages, "
                "saleDate = :saleDate, title = :title where isbn = :isbn")


def book_json(book: Book) -> dict:
    return json.loads(book.model_dump_json(by_alias=True))


class TestSinkMode:

    def test_no_query_is_entity_insert(self):
        assert SinkMode.resolve(None) is SinkMode.ENTITY_INSERT

    def test_inferred_from_template(self):
        assert SinkMode.resolve(IngestQuery(INSERT_POSITIONAL)) is SinkMode.INGEST_INSERT
        assert SinkMode.resolve(IngestQuery(UPDATE_NAMED)) is SinkMode.INGEST_UPDATE

    def test_declared_type_must_match(self):
        with pytest.raises(ConfigurationError):
            SinkMode.resolve(IngestQuery(INSERT_POSITIONAL), QueryType.UPDATE)

    def test_declared_type_for_bare_values_template(self):
        query = IngestQuery("values (:a, :b, ?, ?, ?)")

        assert SinkMode.resolve(query, QueryType.INSERT) is SinkMode.INGEST_INSERT
        with pytest.raises(ConfigurationError):
            SinkMode.resolve(query)


class TestEntityInsert:

    def test_json_object(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.ENTITY_INSERT, entity_class=Book)

        result = dispatcher.handle(json.dumps(book_json(books[0])).encode("utf-8"))

        assert result.ok
        assert result.written == 1
        assert fake_store.inserted == [books[0]]

    def test_list_payload(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.ENTITY_INSERT, entity_class=Book)

        result = dispatcher.handle(json.dumps([book_json(b) for b in books]))

        assert result.received == result.written == 5
        assert [b.isbn for b in fake_store.inserted] == [b.isbn for b in books]

    def test_entity_instance(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.ENTITY_INSERT, entity_class=Book)

        dispatcher.handle(books[1])

        assert fake_store.inserted[0] is books[1]

    def test_invalid_entity_writes_nothing(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.ENTITY_INSERT, entity_class=Book)
        items = [book_json(books[0]), {"isbn": "not-a-uuid"}]

        with pytest.raises(PayloadError):
            dispatcher.handle(items)
        assert fake_store.inserted == []

    def test_needs_entity_class(self, fake_store):
        with pytest.raises(ConfigurationError):
            SinkDispatcher(fake_store, SinkMode.ENTITY_INSERT)


class TestIngest:

    def test_batch_writes_every_record(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_INSERT, query=IngestQuery(INSERT_POSITIONAL))

        result = dispatcher.handle(json.dumps([book_json(b) for b in books]))

        assert result.written == 5
        assert [s.values[0] for s in fake_store.executed] == [str(b.isbn) for b in books]
        assert all(s.values[3] == b.pages for s, b in zip(fake_store.executed, books))

    def test_update_with_named_parameters(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_UPDATE, query=IngestQuery(UPDATE_NAMED))
        row = book_json(books[0])
        row["author"] = "Someone Else"

        dispatcher.handle(row)

        statement = fake_store.executed[0]
        assert statement.values[1] == "Someone Else"
        assert statement.values[-1] == str(books[0].isbn)

    def test_renamed_fields(self, fake_store, books):
        query = IngestQuery("insert into book (isbn, title, author, pages, saleDate, inStock) "
                            "values (:myIsbn, :myTitle, :myAuthor, ?, ?, ?)")
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_INSERT, query=query)
        row = book_json(books[0])
        renamed = {"myIsbn": row["isbn"], "myTitle": row["title"], "myAuthor": row["author"],
                   "pages": row["pages"], "saleDate": row["saleDate"], "inStock": row["inStock"]}

        dispatcher.handle(renamed)

        assert fake_store.executed[0].values == tuple(renamed.values())

    def test_entity_instances_use_column_names(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_INSERT, query=IngestQuery(INSERT_POSITIONAL))

        dispatcher.handle(books[:2])

        assert fake_store.executed[1].values[0] == books[1].isbn
        assert fake_store.executed[1].values[5] is True

    def test_binding_failure_skips_only_that_record(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_UPDATE, query=IngestQuery(UPDATE_NAMED))
        rows = [book_json(b) for b in books[:3]]
        del rows[1]["title"]

        result = dispatcher.handle(rows)

        assert result.written == 2
        assert not result.ok
        assert result.failures[0].index == 1
        assert "title" in result.failures[0].reason
        assert result.failures[0].record == rows[1]

    def test_store_error_propagates_after_earlier_writes(self, fake_store, books):
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_INSERT, query=IngestQuery(INSERT_POSITIONAL))
        fake_store.fail_on = 2

        with pytest.raises(RuntimeError):
            dispatcher.handle([book_json(b) for b in books])
        assert len(fake_store.executed) == 2

    def test_values_coerced_with_statement_types(self, fake_store, books):
        fake_store.types = ["uuid", "text", "text", "int", "timestamp", "boolean"]
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_INSERT, query=IngestQuery(INSERT_POSITIONAL))

        dispatcher.handle(book_json(books[0]))

        assert fake_store.executed[0].values[0] == books[0].isbn

    def test_non_object_record(self, fake_store):
        dispatcher = SinkDispatcher(fake_store, SinkMode.INGEST_INSERT, query=IngestQuery(INSERT_POSITIONAL))

        with pytest.raises(PayloadError):
            dispatcher.handle("[1, 2]")


class TestFromSettings:

    def test_entity_mode(self, fake_store):
        dispatcher = SinkDispatcher.from_settings(SinkSettings(), fake_store)

        assert dispatcher.mode is SinkMode.ENTITY_INSERT
        assert dispatcher.entity_class is Book

    def test_unknown_entity(self, fake_store):
        with pytest.raises(ConfigurationError):
            SinkDispatcher.from_settings(SinkSettings(entity="magazine"), fake_store)

    def test_ingest_mode(self, fake_store):
        dispatcher = SinkDispatcher.from_settings(SinkSettings(ingest_query=UPDATE_NAMED), fake_store)

        assert dispatcher.mode is SinkMode.INGEST_UPDATE


def test_decode_payload():
    assert decode_payload(b'{"a": 1}') == {"a": 1}
    assert decode_payload({"a": 1}) == {"a": 1}
    with pytest.raises(PayloadError):
        decode_payload("{not json")
    with pytest.raises(PayloadError):
        decode_payload(b"\xff\xfe")
