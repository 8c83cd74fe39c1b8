"""Bounded, thread-safe pool of database connections."""

import logging
import sqlite3
import time
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)

SQLITE_PREFIX = "sqlite://"
MEMORY_DATABASE = ":memory:"


def casefold(value):
    """SQL function: full Unicode case folding, NULL-safe."""
    return value.casefold() if isinstance(value, str) else value


def parse_database_url(database_url: str) -> str:
    """Turn ``sqlite:///<path>`` into the path sqlite3 expects.

    ``sqlite://`` and ``sqlite:///:memory:`` both mean an in-memory database.
    """
    if not database_url.startswith(SQLITE_PREFIX):
        raise ValueError(f"Unsupported database URL: {database_url}")
    path = database_url[len(SQLITE_PREFIX):]
    if path.startswith("/"):
        path = path[1:]
    return path or MEMORY_DATABASE


class ConnectionPool:
    """Hands out connections through :meth:`connection`, opening them lazily.

    At most ``size`` connections exist at once. A caller that finds every
    connection busy waits up to ``timeout`` seconds, then gets a ``TimeoutError``.
    An in-memory database is private to its connection, so it is served by a
    single shared connection.
    """

    def __init__(
        self,
        database_url: str,
        size: int = 5,
        timeout: float = 30.0,
        connect: Optional[Callable[[], sqlite3.Connection]] = None,
    ):
        self.database_path = parse_database_url(database_url)
        self.size = 1 if self.database_path == MEMORY_DATABASE else size
        self.timeout = timeout
        self._connect = connect or self._default_connect
        self._idle: List[sqlite3.Connection] = []
        self._available = threading.Condition()
        self._opened = 0
        self._closed = False
        logger.info(f"Connection pool created for {self.database_path} (size={self.size})")

    def _default_connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # Unicode-aware case folding; LIKE only folds ASCII
        conn.create_function("casefold", 1, casefold, deterministic=True)
        return conn

    def _acquire(self) -> sqlite3.Connection:
        deadline = time.monotonic() + self.timeout
        with self._available:
            while True:
                if self._closed:
                    raise RuntimeError("Connection pool is closed")
                if self._idle:
                    return self._idle.pop()
                if self._opened < self.size:
                    self._opened += 1
                    break
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(f"No database connection available after {self.timeout}s")
                self._available.wait(remaining)

        try:
            conn = self._connect()
        except BaseException:
            self._forget_slot()
            raise
        logger.debug(f"Opened pooled connection {self._opened}/{self.size}")
        return conn

    def _forget_slot(self) -> None:
        with self._available:
            self._opened -= 1
            self._available.notify()

    def _release(self, conn: sqlite3.Connection) -> None:
        with self._available:
            if not self._closed:
                self._idle.append(conn)
                self._available.notify()
                return
        self._discard(conn)

    def _discard(self, conn: sqlite3.Connection) -> None:
        self._forget_slot()
        try:
            conn.close()
        except sqlite3.Error as e:
            logger.warning(f"Error closing discarded connection: {e}")

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Acquire a connection for the duration of the ``with`` block.

        A connection that failed with a network-class error is dropped instead
        of being returned to the pool, and its slot is handed to the next waiter.
        """
        conn = self._acquire()
        try:
            yield conn
        except OSError:
            self._discard(conn)
            raise
        except Exception:
            conn.rollback()
            self._release(conn)
            raise
        else:
            self._release(conn)

    def close(self) -> None:
        """Close every idle connection and refuse further acquisitions."""
        with self._available:
            self._closed = True
            idle, self._idle = self._idle, []
            self._available.notify_all()
        for conn in idle:
            self._discard(conn)
        logger.info("Connection pool closed")
