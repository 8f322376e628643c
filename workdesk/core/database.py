from collections.abc import Iterator
from contextlib import contextmanager

from psycopg import Connection, connect
from psycopg.rows import dict_row

from workdesk.core.config import get_settings


def get_database_url() -> str:
    return get_settings().database_url


@contextmanager
def get_connection(database_url: str | None = None) -> Iterator[Connection]:
    """Open a connection whose block is one transaction.

    psycopg commits when the block exits cleanly and rolls back when it raises.
    """
    url = database_url or get_database_url()
    with connect(url, row_factory=dict_row) as connection:
        yield connection
