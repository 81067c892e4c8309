import datetime as dt
import io
import logging
import os
import unittest
from decimal import Decimal
from unittest import mock

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import NullPool

from querygrid import executor as executor_mod
from querygrid.dialects import Dialect
from querygrid.errors import ExecutionError, QueryGridError
from querygrid.executor import SqlAlchemyExecutor, normalize_value
from querygrid.logs import LOGGER, set_full_sql_logging


def _capture_logs(fn, level=logging.INFO):
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    old_level = LOGGER.level
    LOGGER.setLevel(level)
    LOGGER.addHandler(handler)
    try:
        fn()
    finally:
        LOGGER.removeHandler(handler)
        LOGGER.setLevel(old_level)
    return stream.getvalue()


class ExecutorTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite:///:memory:", poolclass=NullPool)
        self.addCleanup(self.engine.dispose)
        self.executor = SqlAlchemyExecutor({"mem": self.engine}, retry_wait_base=0)
        self._old_env = os.environ.get("QUERYGRID_LOG_FULL_SQL")
        set_full_sql_logging(None)

    def tearDown(self):
        set_full_sql_logging(None)
        if self._old_env is None:
            os.environ.pop("QUERYGRID_LOG_FULL_SQL", None)
        else:
            os.environ["QUERYGRID_LOG_FULL_SQL"] = self._old_env

    def test_select_returns_columns_and_rows(self):
        result = self.executor.execute("mem", "SELECT 1 AS a, 'x' AS b, NULL AS c")
        self.assertEqual(result.columns, ("a", "b", "c"))
        self.assertEqual(result.rows, ((1, "x", None),))

    def test_percent_and_colon_are_sent_verbatim(self):
        result = self.executor.execute("mem", "SELECT 'a:b %s 100%' AS v")
        self.assertEqual(result.rows[0][0], "a:b %s 100%")

    def test_non_row_statement_reports_affected_rows(self):
        result = self.executor.execute("mem", "CREATE TABLE t (id INTEGER)")
        self.assertEqual(result.columns, ("affected_rows",))
        self.assertEqual(result.rows, ((0,),))

    def test_database_error_becomes_execution_error(self):
        with self.assertRaises(ExecutionError) as ctx:
            self.executor.execute("mem", "SELECT * FROM missing_table")
        self.assertIn("missing_table", ctx.exception.message)
        self.assertEqual(ctx.exception.sql, "SELECT * FROM missing_table")

    def test_unknown_connection(self):
        with self.assertRaises(QueryGridError):
            self.executor.execute("nope", "SELECT 1")

    def test_dialect_and_current_database(self):
        self.assertIs(self.executor.resolve_dialect("mem"), Dialect.NONE)
        self.assertIsNone(self.executor.resolve_current_database("mem"))
        self.executor.set_current_database("mem", "other")
        self.assertEqual(self.executor.resolve_current_database("mem"), "other")

    def test_default_logs_excerpt_only(self):
        os.environ.pop("QUERYGRID_LOG_FULL_SQL", None)
        secret = "SECRET_ABC_123"
        sql = "SELECT '" + ("A" * 7000) + secret + "' AS x"
        logs = _capture_logs(lambda: self.executor.execute("mem", sql))
        self.assertIn("Executing SQL (excerpt)", logs)
        self.assertNotIn(secret, logs)

    def test_env_enabled_logs_full_sql(self):
        os.environ["QUERYGRID_LOG_FULL_SQL"] = "1"
        secret = "SECRET_ABC_123"
        sql = "SELECT '" + ("A" * 7000) + secret + "' AS x"
        logs = _capture_logs(lambda: self.executor.execute("mem", sql))
        self.assertIn("Executing SQL (full)", logs)
        self.assertIn(secret, logs)

    def test_failure_is_logged_with_excerpt(self):
        secret = "SECRET_ABC_123"
        sql = "SELECT * FROM missing_table -- " + ("A" * 7000) + secret

        def run_bad_query():
            with self.assertRaises(ExecutionError):
                self.executor.execute("mem", sql)

        logs = _capture_logs(run_bad_query)
        self.assertIn("SQL execution failed (excerpt)", logs)
        self.assertNotIn(secret, logs)

    def test_deadlock_is_retried(self):
        deadlock = OperationalError("UPDATE t", {}, Exception("deadlock detected"))
        ok = executor_mod.QueryResult(columns=["affected_rows"], rows=[[1]])
        with mock.patch.object(
            SqlAlchemyExecutor, "_execute_once", side_effect=[deadlock, ok]
        ) as once, mock.patch.object(executor_mod.time, "sleep") as sleep:
            result = self.executor.execute("mem", "UPDATE t SET a = 1")
        self.assertIs(result, ok)
        self.assertEqual(once.call_count, 2)
        sleep.assert_called_once()

    def test_retry_gives_up_after_max_attempts(self):
        deadlock = OperationalError("UPDATE t", {}, Exception("Deadlock found when trying to get lock"))
        with mock.patch.object(
            SqlAlchemyExecutor, "_execute_once", side_effect=deadlock
        ) as once, mock.patch.object(executor_mod.time, "sleep"):
            with self.assertRaises(ExecutionError):
                self.executor.execute("mem", "UPDATE t SET a = 1")
        self.assertEqual(once.call_count, executor_mod.MAX_ATTEMPTS)

    def test_other_errors_are_not_retried(self):
        error = OperationalError("UPDATE t", {}, Exception("no such table: t"))
        with mock.patch.object(SqlAlchemyExecutor, "_execute_once", side_effect=error) as once:
            with self.assertRaises(ExecutionError) as ctx:
                self.executor.execute("mem", "UPDATE t SET a = 1")
        self.assertEqual(once.call_count, 1)
        self.assertEqual(ctx.exception.message, "no such table: t")

    def test_use_database_for_bracket_dialect(self):
        connection = mock.Mock()
        with mock.patch.object(self.executor, "resolve_dialect", return_value=Dialect.BRACKET):
            self.executor._use_database(connection, "mem", "sales")
        connection.exec_driver_sql.assert_called_once_with("USE [sales]")

    def test_use_database_skipped_for_doublequote_dialect(self):
        connection = mock.Mock()
        with mock.patch.object(self.executor, "resolve_dialect", return_value=Dialect.DOUBLEQUOTE):
            self.executor._use_database(connection, "mem", "sales")
        connection.exec_driver_sql.assert_not_called()


class NormalizeValueTests(unittest.TestCase):
    def test_driver_values(self):
        self.assertEqual(normalize_value(dt.datetime(2024, 1, 2, 3, 4, 5)), "2024-01-02 03:04:05")
        self.assertEqual(normalize_value(dt.date(2024, 1, 2)), "2024-01-02")
        self.assertEqual(normalize_value(b"abc"), "abc")
        self.assertEqual(normalize_value(b"\xff\x00"), "/wA=")
        self.assertEqual(normalize_value(Decimal("1.50")), Decimal("1.50"))
        self.assertEqual(normalize_value({"a": 1}), {"a": 1})
        self.assertIs(normalize_value(True), True)


if __name__ == "__main__":
    unittest.main()
