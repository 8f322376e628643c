from collections.abc import Iterator
from contextlib import contextmanager

from psycopg import Connection

from workdesk.core.database import get_connection


class BaseRepository:
    """Shared connection handling.

    Every query method takes an optional ``connection``; services pass the one
    they opened so that all writes of an operation share a transaction.
    """

    def __init__(self, database_url: str | None = None) -> None:
        self.database_url = database_url

    @contextmanager
    def _use_connection(self, connection: Connection | None) -> Iterator[Connection]:
        if connection is not None:
            yield connection
            return
        with get_connection(self.database_url) as managed:
            yield managed
