import gc
import logging

import pymysql
import pytest
from pymysql.constants import CLIENT

from rhosocial.sphinxql import Connection, ConnectionError, SphinxQLConnectionConfig

logger = logging.getLogger("sphinxql_test")


class TestConstruction:
    """Argument validation and opening at construction time"""

    def test_opens_on_construction(self, native):
        conn = Connection("127.0.0.1", 9306)

        assert conn.connected is True
        assert conn.host == "127.0.0.1"
        assert conn.port == 9306
        assert len(native.handles) == 1
        assert native.handle.connected is True
        conn.close()

    def test_native_handle_arguments(self, native):
        conn = Connection("search.local", 9312)
        kwargs = native.handle.kwargs

        assert kwargs['host'] == "search.local"
        assert kwargs['port'] == 9312
        assert kwargs['user'] == ''
        assert kwargs['password'] == ''
        assert kwargs['database'] is None
        assert kwargs['client_flag'] & CLIENT.MULTI_STATEMENTS
        assert kwargs['conv'] == {}
        assert kwargs['use_unicode'] is False
        assert kwargs['defer_connect'] is True
        conn.close()

    @pytest.mark.parametrize("host", [None, 127001, b"127.0.0.1", ["localhost"]])
    def test_host_must_be_str(self, native, host):
        with pytest.raises(TypeError, match="host must be str"):
            Connection(host, 9306)
        assert native.handles == []

    @pytest.mark.parametrize("port", ["9306", 9306.0, None, True])
    def test_port_must_be_int(self, native, port):
        with pytest.raises(TypeError, match="port must be int"):
            Connection("127.0.0.1", port)
        assert native.handles == []

    @pytest.mark.parametrize("port", [-1, 65536, 2 ** 32])
    def test_port_out_of_range(self, native, port):
        with pytest.raises(ValueError, match="port out of range"):
            Connection("127.0.0.1", port)

    def test_construction_fails_when_connect_fails(self, native):
        native.connect_error = pymysql.err.OperationalError(
            2003, "Can't connect to MySQL server on '127.0.0.1' ([Errno 111] Connection refused)"
        )

        with pytest.raises(ConnectionError) as exc_info:
            Connection("127.0.0.1", 9306)

        error = exc_info.value
        assert error.message == "Unable to connect"
        assert error.code == 2003
        assert str(error) == (
            "Unable to connect. Error 2003: "
            "Can't connect to MySQL server on '127.0.0.1' ([Errno 111] Connection refused)"
        )
        # The half-open handle is released exactly once
        assert native.handle.close_calls == 1

    def test_construction_fails_when_client_cannot_be_created(self, native):
        native.init_error = OSError("out of resources")

        with pytest.raises(ConnectionError) as exc_info:
            Connection("127.0.0.1", 9306)

        assert str(exc_info.value) == "Unable to initialize client"
        assert exc_info.value.code is None
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_from_config(self, native):
        config = SphinxQLConnectionConfig(host="10.0.0.5", port=9307, log_queries=True, log_level=logging.DEBUG)

        conn = Connection.from_config(config)

        assert conn.host == "10.0.0.5"
        assert conn.port == 9307
        assert conn.config.log_queries is True
        assert conn.config.log_level == logging.DEBUG
        conn.close()


class TestOpenClose:
    """open/close state machine"""

    def test_open_when_open_is_a_no_op(self, connection, native):
        assert connection.open() is False
        assert connection.connected is True
        assert len(native.handles) == 1

        # Still usable
        assert connection.query("SHOW META") == []

    def test_close(self, connection, native):
        assert connection.close() is True
        assert connection.connected is False
        assert native.handle.close_calls == 1

    def test_close_when_closed_is_a_no_op(self, connection, native):
        connection.close()

        assert connection.close() is False
        assert connection.connected is False
        assert native.handle.close_calls == 1

    def test_reopen_after_close(self, connection, native):
        connection.close()

        assert connection.open() is True
        assert connection.connected is True
        assert len(native.handles) == 2
        assert native.handles[0].close_calls == 1
        assert native.handles[1].connected is True

    def test_close_never_raises(self, connection, native):
        native.close_error = pymysql.err.Error("Already closed")

        assert connection.close() is True
        assert connection.connected is False

    def test_failed_open_leaves_connection_closed(self, connection, native):
        connection.close()
        native.connect_error = pymysql.err.OperationalError(2013, "Lost connection to MySQL server during query")

        with pytest.raises(ConnectionError, match="Unable to connect. Error 2013"):
            connection.open()

        assert connection.connected is False
        assert native.handle.close_calls == 1

    def test_context_manager_closes(self, native):
        with Connection("127.0.0.1", 9306) as conn:
            assert conn.connected is True

        assert conn.connected is False
        assert native.handle.close_calls == 1

    def test_context_manager_closes_on_error(self, native):
        with pytest.raises(RuntimeError):
            with Connection("127.0.0.1", 9306):
                raise RuntimeError("boom")

        assert native.handle.close_calls == 1

    def test_context_manager_reopens_closed_connection(self, connection, native):
        connection.close()

        with connection as conn:
            assert conn.connected is True

        assert len(native.handles) == 2

    def test_garbage_collection_closes_handle(self, native):
        conn = Connection("127.0.0.1", 9306)
        handle = native.handle

        del conn
        gc.collect()

        assert handle.close_calls == 1

    def test_garbage_collection_after_close_does_not_close_again(self, native):
        conn = Connection("127.0.0.1", 9306)
        handle = native.handle
        conn.close()

        del conn
        gc.collect()

        assert handle.close_calls == 1

    def test_repr(self, connection):
        assert repr(connection) == "<Connection 127.0.0.1:9306 open>"
        connection.close()
        assert repr(connection) == "<Connection 127.0.0.1:9306 closed>"


class TestLogging:
    def test_connect_and_disconnect_are_logged(self, native, caplog):
        with caplog.at_level(logging.INFO, logger="rhosocial.sphinxql"):
            conn = Connection("127.0.0.1", 9306)
            conn.close()

        assert "Connected to 127.0.0.1:9306, server version 2.2.11-id64-release (r2820)" in caplog.text
        assert "Disconnected from 127.0.0.1:9306" in caplog.text

    def test_queries_logged_when_enabled(self, native, caplog):
        conn = Connection("127.0.0.1", 9306, log_queries=True, log_level=logging.INFO)

        with caplog.at_level(logging.INFO, logger="rhosocial.sphinxql"):
            conn.execute("UPDATE articles SET views = 1 WHERE id = 1")

        assert "Executing SQL: UPDATE articles SET views = 1 WHERE id = 1" in caplog.text
        conn.close()

    def test_queries_not_logged_by_default(self, connection, caplog):
        with caplog.at_level(logging.DEBUG, logger="rhosocial.sphinxql"):
            connection.execute("UPDATE articles SET views = 1 WHERE id = 1")

        assert "Executing SQL" not in caplog.text

    def test_native_errors_logged(self, native, caplog):
        native.connect_error = pymysql.err.OperationalError(2003, "Connection refused")

        with caplog.at_level(logging.ERROR, logger="rhosocial.sphinxql"):
            with pytest.raises(ConnectionError):
                Connection("127.0.0.1", 9306)

        assert "Unable to connect. Error 2003: Connection refused" in caplog.text
