"""Parameterized query execution with bounded retry on transient connection errors."""

import errno
import logging
import socket
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from school_directory.database.pool import ConnectionPool
from school_directory.errors import TransientConnectionError
from school_directory.utils.decorators import retry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 1.0

TRANSIENT_ERRNOS = {
    errno.ECONNRESET,
    errno.ETIMEDOUT,
    errno.ECONNREFUSED,
    errno.EHOSTUNREACH,
}


def is_transient_error(error: BaseException) -> bool:
    """Return True for network-class failures worth retrying.

    Covers connection reset, timeout, refused connection and DNS failure.
    Constraint violations and other database errors are never transient.
    """
    if isinstance(error, (ConnectionResetError, ConnectionRefusedError, TimeoutError, socket.gaierror)):
        return True
    if isinstance(error, OSError) and error.errno in TRANSIENT_ERRNOS:
        return True
    return False


@dataclass
class QueryResult:
    """Rows returned by a query plus write metadata."""
    rows: List[Dict[str, Any]] = field(default_factory=list)
    lastrowid: Optional[int] = None
    rowcount: int = -1


class QueryExecutor:
    """Runs queries on connections drawn from a shared :class:`ConnectionPool`."""

    def __init__(
        self,
        pool: ConnectionPool,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.pool = pool
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._execute_with_retry = retry(
            max_attempts=max_attempts,
            delay=retry_delay,
            should_retry=is_transient_error,
            on_exhausted=self._exhausted,
            sleep=sleep,
            logger_name=__name__,
        )(self._execute_once)

    @staticmethod
    def _exhausted(error: BaseException, attempts: int) -> TransientConnectionError:
        return TransientConnectionError(
            f"Query failed after {attempts} attempts: {error}",
            last_error=error,
        )

    def _execute_once(self, query: str, params: Sequence[Any]) -> QueryResult:
        with self.pool.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(query, tuple(params))
                rows = []
                if cursor.description:
                    columns = [column[0] for column in cursor.description]
                    rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
                conn.commit()
                return QueryResult(rows=rows, lastrowid=cursor.lastrowid, rowcount=cursor.rowcount)
            finally:
                cursor.close()

    def execute(self, query: str, params: Sequence[Any] = ()) -> QueryResult:
        """Execute ``query`` with positional ``params``.

        Raises:
            TransientConnectionError: every attempt failed with a transient error.
            Exception: any non-transient database error, unchanged and unretried.
        """
        logger.debug(f"Executing query: {query} params={list(params)}")
        return self._execute_with_retry(query, params)
