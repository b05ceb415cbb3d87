"""Large-object handles bound as parameters instead of inline values."""


class LargeObject:
    """A closeable handle around character, binary or XML content.

    Handles are scoped to one row: the importer registers each one it
    creates and closes it after the row, whatever the outcome.
    """

    def __init__(self, value):
        self._value = value
        self._closed = False

    @property
    def value(self):
        if self._closed:
            raise ValueError(f"{type(self).__name__} is closed")
        return self._value

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        self._closed = True
        self._value = None

    def __repr__(self) -> str:
        state = "closed" if self._closed else f"{len(self._value)} units"
        return f"<{type(self).__name__} {state}>"


class Clob(LargeObject):
    """Character large object."""


class NClob(Clob):
    """National character large object."""


class Blob(LargeObject):
    """Binary large object."""


class SqlXml(LargeObject):
    """XML value."""


class LobFactory:
    """Allocates large-object handles.

    The base implementation keeps content in memory. Backends that hold
    engine-side state for large objects override these methods.
    """

    def create_clob(self, text: str) -> Clob:
        return Clob(text)

    def create_nclob(self, text: str) -> NClob:
        return NClob(text)

    def create_blob(self, data: bytes) -> Blob:
        return Blob(data)

    def create_sqlxml(self, text: str) -> SqlXml:
        return SqlXml(text)
