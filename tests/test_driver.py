"""Tests for the row insertion driver."""

from typing import Any, Sequence

import pytest

from dataimport.database import Clob, StatementError
from dataimport.importer import (
    CollectingReporter,
    ColumnNotFoundError,
    ConversionError,
    DataFormat,
    ErrorReporter,
    InsertExecutionError,
    TableImporter,
    UnsupportedTypeError,
    import_rows,
)

COLUMNS = ["id", "name", "age"]


def select_people(service):
    with service.transaction():
        return service.execute("SELECT id, name, age FROM people ORDER BY id")


class TrackingClob(Clob):
    instances: list["TrackingClob"] = []

    def __init__(self, value):
        super().__init__(value)
        self.close_calls = 0
        TrackingClob.instances.append(self)

    def close(self):
        self.close_calls += 1
        super().close()


class RecordingService:
    """Wraps a real service, recording inserts and failing chosen rows."""

    def __init__(self, service, fail_on: Sequence[int] = ()):
        self._service = service
        self.fail_on = set(fail_on)
        self.calls: list[list[Any]] = []
        self.placeholder = service.placeholder

    def get_columns(self, table):
        return self._service.get_columns(table)

    def identifier_quote(self):
        return self._service.identifier_quote()

    def create_clob(self, text):
        return TrackingClob(text)

    def execute_insert(self, sql, params):
        self.calls.append(list(params))
        if len(self.calls) - 1 in self.fail_on:
            raise StatementError(sql, RuntimeError("rejected"))
        return self._service.execute_insert(sql, params)


class TestTolerant:
    def test_malformed_integer_row(self, people_service):
        reporter = CollectingReporter()
        rows = [["1", "ann", "30"], ["2", "bob", "x1"], ["3", "cid", "41"]]
        with people_service.transaction():
            summary = import_rows(people_service, "people", COLUMNS, iter(rows), reporter=reporter)

        assert summary.rows_processed == 3
        assert summary.rows_failed == 1
        assert summary.rows_inserted == 3
        assert len(reporter.records) == 1
        record = reporter.records[0]
        assert record.row_index == 1
        assert record.table == "people"
        assert record.column_name == "age"
        assert record.raw_value == "x1"
        assert isinstance(record.cause, ConversionError)
        assert select_people(people_service) == [
            {"id": 1, "name": "ann", "age": 30},
            {"id": 2, "name": "bob", "age": None},
            {"id": 3, "name": "cid", "age": 41},
        ]

    def test_rejected_row_reported_and_skipped(self, people_service):
        reporter = CollectingReporter()
        rows = [["1", "ann", "30"], ["2", None, "20"], ["3", "cid", "41"]]
        with people_service.transaction():
            summary = import_rows(people_service, "people", COLUMNS, rows, reporter=reporter)

        assert summary.rows_processed == 3
        assert summary.rows_inserted == 2
        assert summary.rows_failed == 1
        [record] = reporter.records
        assert isinstance(record.cause, InsertExecutionError)
        assert record.row_index == 1
        assert record.column_name is None
        assert [r["id"] for r in select_people(people_service)] == [1, 3]

    def test_conversion_and_execution_errors_in_one_row(self, people_service):
        reporter = CollectingReporter()
        rows = [["1", None, "bad"]]
        with people_service.transaction():
            summary = import_rows(people_service, "people", COLUMNS, rows, reporter=reporter)
        assert summary.rows_failed == 1
        assert [type(r.cause) for r in reporter.records] == [ConversionError, InsertExecutionError]

    def test_without_reporter(self, people_service):
        with people_service.transaction():
            summary = import_rows(people_service, "people", COLUMNS, [["1", "ann", "?"]])
        assert summary.rows_failed == 1

    def test_short_rows_bind_null(self, people_service):
        with people_service.transaction():
            import_rows(people_service, "people", COLUMNS, [["1", "ann"]])
        assert select_people(people_service) == [{"id": 1, "name": "ann", "age": None}]

    def test_failing_reporter_does_not_interrupt(self, people_service, caplog):
        class Broken(ErrorReporter):
            def handle(self, record):
                raise RuntimeError("sink down")

        rows = [["1", "ann", "x"], ["2", "bob", "20"]]
        with people_service.transaction():
            summary = import_rows(people_service, "people", COLUMNS, rows, reporter=Broken())
        assert summary.rows_processed == 2
        assert "Error reporter failed" in caplog.text


class TestAbortOnError:
    def test_stops_at_failing_row(self, people_service):
        attempted = []

        def rows():
            for row in [["1", "ann", "30"], ["2", "bob", "x1"], ["3", "cid", "41"]]:
                attempted.append(row[0])
                yield row

        with people_service.transaction():
            with pytest.raises(ConversionError) as exc_info:
                import_rows(people_service, "people", COLUMNS, rows(), abort_on_error=True)
            inserted = people_service.execute("SELECT id FROM people")

        error = exc_info.value
        assert (error.table, error.row_index, error.column_name) == ("people", 1, "age")
        assert error.raw_value == "x1"
        assert attempted == ["1", "2"]
        assert inserted == [{"id": 1}]

    def test_execution_error(self, people_service):
        with people_service.transaction():
            with pytest.raises(InsertExecutionError) as exc_info:
                import_rows(
                    people_service, "people", COLUMNS, [["1", None, "3"]], abort_on_error=True
                )
        assert exc_info.value.row_index == 0
        assert isinstance(exc_info.value.__cause__, StatementError)

    def test_importer_counts_survive_abort(self, people_service):
        with people_service.transaction():
            importer = TableImporter(people_service, "people", COLUMNS, abort_on_error=True)
            with pytest.raises(ConversionError):
                importer.insert_rows([["1", "ann", "1"], ["2", "bob", "nope"]])
        assert importer.context.row_index == 2
        assert importer.summary.rows_processed == 2
        assert importer.summary.rows_inserted == 1


class TestStructuralErrors:
    def test_missing_column(self, people_service):
        with people_service.transaction():
            with pytest.raises(ColumnNotFoundError):
                import_rows(people_service, "people", ["id", "email"], [["1", "a@b"]])

    def test_missing_column_tolerated(self, people_service):
        rows = [["1", "a@b", "ann"], ["2", "c@d", "bob"]]
        with people_service.transaction():
            summary = import_rows(
                people_service,
                "people",
                ["id", "email", "name"],
                rows,
                tolerate_missing_columns=True,
            )
        assert summary.rows_failed == 0
        assert select_people(people_service) == [
            {"id": 1, "name": "ann", "age": None},
            {"id": 2, "name": "bob", "age": None},
        ]

    def test_no_importable_columns(self, people_service):
        with people_service.transaction():
            with pytest.raises(Exception, match="No importable columns"):
                import_rows(people_service, "people", ["nope"], [], tolerate_missing_columns=True)

    @pytest.mark.parametrize("abort_on_error", [True, False])
    def test_unsupported_type_always_raises(self, db_service, abort_on_error):
        db_service.execute_ddl("CREATE TABLE shapes (id INTEGER, geom GEOMETRY)")
        reporter = CollectingReporter()
        with db_service.transaction():
            importer = TableImporter(
                db_service,
                "shapes",
                ["id", "geom"],
                abort_on_error=abort_on_error,
                reporter=reporter,
            )
            with pytest.raises(UnsupportedTypeError):
                importer.insert_rows([["1", "POINT(0 0)"], ["2", "POINT(1 1)"]])
        assert importer.context.row_index == 1
        assert reporter.records == []

    def test_unsupported_type_null_value_is_fine(self, db_service):
        db_service.execute_ddl("CREATE TABLE shapes (id INTEGER, geom GEOMETRY)")
        with db_service.transaction():
            summary = import_rows(db_service, "shapes", ["id", "geom"], [["1", None]])
        assert summary.rows_inserted == 1


class TestScopedResources:
    def test_clob_released_when_execution_fails(self, people_service):
        TrackingClob.instances.clear()
        service = RecordingService(people_service, fail_on=[1])
        reporter = CollectingReporter()
        rows = [["1", "ann", "n1"], ["2", "bob", "n2"], ["3", "cid", "n3"]]
        with people_service.transaction():
            summary = import_rows(service, "people", ["id", "name", "notes"], rows, reporter=reporter)

        assert summary.rows_processed == 3
        assert len(TrackingClob.instances) == 3
        assert [c.close_calls for c in TrackingClob.instances] == [1, 1, 1]
        assert reporter.records[0].row_index == 1

    def test_clob_released_when_aborting(self, people_service):
        TrackingClob.instances.clear()
        service = RecordingService(people_service, fail_on=[0])
        with people_service.transaction():
            with pytest.raises(InsertExecutionError):
                import_rows(
                    service, "people", ["id", "name", "notes"], [["1", "ann", "n"]],
                    abort_on_error=True,
                )
        [clob] = TrackingClob.instances
        assert clob.close_calls == 1

    def test_clob_released_when_binding_aborts(self, people_service):
        TrackingClob.instances.clear()
        service = RecordingService(people_service)
        with people_service.transaction():
            with pytest.raises(ConversionError):
                import_rows(
                    service, "people", ["notes", "age"], [["text", "bad"]], abort_on_error=True
                )
        [clob] = TrackingClob.instances
        assert clob.close_calls == 1
        assert service.calls == []

    def test_clob_content_inserted(self, people_service):
        with people_service.transaction():
            import_rows(people_service, "people", ["id", "name", "notes"], [["1", "a", "long"]])
            rows = people_service.execute("SELECT notes FROM people")
        assert rows == [{"notes": "long"}]


class TestBatchesAndStop:
    def test_row_index_continues_across_batches(self, people_service):
        reporter = CollectingReporter()
        with people_service.transaction():
            importer = TableImporter(people_service, "people", COLUMNS, reporter=reporter)
        with importer:
            with people_service.transaction():
                importer.insert_rows([["1", "ann", "1"], ["2", "bob", "2"]])
            with people_service.transaction():
                summary = importer.insert_rows([["3", "cid", "bad"]])
        assert summary.rows_processed == 3
        assert reporter.records[0].row_index == 2

    def test_reporter_cap_stops_import(self, people_service):
        reporter = CollectingReporter(max_errors=2)
        rows = [[str(i), f"p{i}", "bad"] for i in range(1, 6)]
        with people_service.transaction():
            summary = import_rows(people_service, "people", COLUMNS, rows, reporter=reporter)
        assert summary.stopped
        assert summary.rows_processed == 2
        assert len(reporter.records) == 2

    def test_binary_format_from_data_format(self, db_service):
        db_service.execute_ddl("CREATE TABLE files (id INTEGER, data BLOB)")
        with db_service.transaction():
            import_rows(
                db_service,
                "files",
                ["id", "data"],
                [["1", "aGk="]],
                data_format=DataFormat(binary_format="BASE64"),
            )
            rows = db_service.execute("SELECT data FROM files")
        assert rows == [{"data": b"hi"}]
