"""Tests for InsertContext row scoping."""

import pytest

from dataimport.database import Clob
from dataimport.importer import DataFormat, InsertContext


class Resource:
    def __init__(self, fail=False):
        self.closed = 0
        self.fail = fail

    def close(self):
        self.closed += 1
        if self.fail:
            raise OSError("boom")


@pytest.fixture
def context():
    return InsertContext(DataFormat(), "people")


class TestInsertContext:
    def test_counter_advances_per_row(self, context):
        for expected in range(3):
            with context.row() as row_index:
                assert row_index == expected
        assert context.row_index == 3

    def test_counter_advances_when_row_raises(self, context):
        with pytest.raises(RuntimeError):
            with context.row():
                raise RuntimeError("bad row")
        assert context.row_index == 1

    def test_resources_released_once_per_row(self, context):
        first = Resource()
        with context.row():
            context.register(first)
        second = Resource()
        with pytest.raises(RuntimeError):
            with context.row():
                context.register(second)
                raise RuntimeError("bad row")
        assert first.closed == 1
        assert second.closed == 1
        assert context.resource_count == 0

    def test_close_failure_does_not_stop_release(self, context, caplog):
        broken, fine = Resource(fail=True), Resource()
        with context.row():
            context.register(broken)
            context.register(fine)
        assert fine.closed == 1
        assert "Failed to close" in caplog.text

    def test_register_returns_resource(self, context):
        clob = Clob("x")
        assert context.register(clob) is clob
        assert context.release_resources() == 1
        assert clob.closed

    def test_close_drains(self):
        resource = Resource()
        with InsertContext(DataFormat(), "t") as context:
            context.register(resource)
        assert resource.closed == 1
