# src/rhosocial/sphinxql/connection.py
import logging

import pymysql
from pymysql.err import MySQLError

from .config import SphinxQLConnectionConfig
from .converters import decode_table
from .errors import ConnectionError
from .types import ResultSet, wire_type_name

logger = logging.getLogger('rhosocial.sphinxql')


class Connection:
    """A single connection to a SphinxQL (MySQL wire protocol) server.

    The connection is opened when it is created. ``execute`` submits SQL and
    returns the affected-row count; ``query`` submits SQL and returns every
    result set it produced, each decoded into a list of row dicts. Several
    ``;``-separated statements may be submitted at once.

    A connection owns exactly one native client handle. The handle is released
    by ``close``, when leaving a ``with`` block, or when the object is garbage
    collected. A connection is not safe to share between threads.

    Example::

        with Connection("127.0.0.1", 9306) as conn:
            tables = conn.query("SELECT id FROM articles WHERE MATCH('cats'); SHOW META")
    """

    # Class level defaults keep __del__ safe if __init__ fails before open()
    _handle = None
    _connected = False

    def __init__(self, host: str, port: int, **kwargs):
        """Validate the address and open the connection.

        Args:
            host: Server host name or address
            port: Server port
            **kwargs: Extra SphinxQLConnectionConfig fields (log_queries, log_level)

        Raises:
            TypeError: If host is not a str or port is not an int
            ValueError: If port is outside 0..65535
            ConnectionError: If the connection cannot be opened
        """
        if not isinstance(host, str):
            raise TypeError(f"host must be str, not {type(host).__name__}")
        if not isinstance(port, int) or isinstance(port, bool):
            raise TypeError(f"port must be int, not {type(port).__name__}")
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"port out of range: {port}")

        self.config = SphinxQLConnectionConfig(host=host, port=port, **kwargs)
        self.logger = logger
        self.open()

    @classmethod
    def from_config(cls, config: SphinxQLConnectionConfig) -> 'Connection':
        """Open a connection described by a config object."""
        return cls(config.host, config.port, log_queries=config.log_queries, log_level=config.log_level)

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def connected(self) -> bool:
        return self._connected

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    def open(self) -> bool:
        """Connect to the server.

        Returns:
            bool: True if the connection was opened, False if it was already open

        Raises:
            ConnectionError: If the client cannot be created or the server cannot be reached
        """
        if self._connected:
            return False

        try:
            handle = pymysql.connect(**self.config.to_dict())
        except (MySQLError, OSError) as e:
            self.log(logging.ERROR, f"Unable to initialize client: {e}")
            raise ConnectionError("Unable to initialize client") from e

        self._handle = handle
        try:
            handle.connect()
        except MySQLError as e:
            error = ConnectionError.from_native("Unable to connect", e)
            self.log(logging.ERROR, str(error))
            self._release_handle()
            raise error from e

        self._connected = True
        self.log(logging.INFO, f"Connected to {self.host}:{self.port}, server version {handle.get_server_info()}")
        return True

    def close(self) -> bool:
        """Close the connection.

        Returns:
            bool: True if the connection was closed, False if it was not open
        """
        if not self._connected:
            return False

        self._release_handle()
        self.log(logging.INFO, f"Disconnected from {self.host}:{self.port}")
        return True

    def execute(self, sql: str) -> int:
        """Execute one or more statements, discarding any rows they return.

        Args:
            sql: SQL text, possibly several ``;``-separated statements

        Returns:
            int: Affected-row count the client reports for the submission. For a
            multi-statement submission this is the first statement's count, not
            a sum over the statements.

        Raises:
            ConnectionError: If the connection is closed or the server rejects the SQL
        """
        self._check_sql(sql)
        self._ensure_connected()
        self._log_query(sql)

        cursor = self._handle.cursor()
        try:
            try:
                affected_rows = cursor.execute(sql)
                # Read off the remaining statements' results so the connection stays in sync
                while cursor.nextset():
                    pass
            except MySQLError as e:
                raise self._native_error("Failed to execute statement(s)", e) from e
        finally:
            cursor.close()

        self.log(logging.DEBUG, f"Statement(s) executed, affected {affected_rows} rows")
        return affected_rows

    def query(self, sql: str) -> ResultSet:
        """Execute one or more statements and return their result sets.

        Each result set is read and decoded in full before the next one is
        requested. Statements that produce no result set (UPDATE, SET, ...)
        contribute nothing to the returned list.

        Args:
            sql: SQL text, possibly several ``;``-separated statements

        Returns:
            ResultSet: One list of row dicts per result-producing statement, in order

        Raises:
            ConnectionError: If the connection is closed, the server rejects the SQL,
                or reading a later result fails. Nothing read before the failure
                is returned.
        """
        self._check_sql(sql)
        self._ensure_connected()
        self._log_query(sql)

        results: ResultSet = []
        cursor = self._handle.cursor()
        try:
            try:
                cursor.execute(sql)
            except MySQLError as e:
                raise self._native_error("Failed to execute statement(s)", e) from e

            while True:
                if cursor.description is not None:
                    table = decode_table(cursor.description, cursor.fetchall())
                    self.log(logging.DEBUG, (
                        f"Result set {len(results)}: {len(table)} rows, columns "
                        + ", ".join(f"{column[0]} {wire_type_name(column[1])}" for column in cursor.description)
                    ))
                    results.append(table)

                try:
                    if not cursor.nextset():
                        break
                except MySQLError as e:
                    raise self._native_error("Query execution failed", e) from e
        finally:
            cursor.close()

        return results

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise ConnectionError("Cannot execute query on a closed connection")

    @staticmethod
    def _check_sql(sql: str) -> None:
        if not isinstance(sql, str):
            raise TypeError(f"sql must be str, not {type(sql).__name__}")

    def _log_query(self, sql: str) -> None:
        if self.config.log_queries:
            self.log(self.config.log_level, f"Executing SQL: {sql}")

    def _native_error(self, message: str, error: MySQLError) -> ConnectionError:
        connection_error = ConnectionError.from_native(message, error)
        self.log(logging.ERROR, str(connection_error))
        return connection_error

    def _release_handle(self) -> None:
        """Close and forget the native handle. The only place the handle is closed."""
        handle, self._handle = self._handle, None
        self._connected = False
        if handle is None:
            return
        try:
            handle.close()
        except MySQLError as e:
            self.log(logging.WARNING, f"Error while closing client handle: {e}")

    def __enter__(self) -> 'Connection':
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __del__(self):
        if self._connected:
            self._release_handle()

    def __repr__(self) -> str:
        state = "open" if self._connected else "closed"
        return f"<{type(self).__name__} {self.host}:{self.port} {state}>"
