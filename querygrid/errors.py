from __future__ import annotations

import textwrap
import traceback

from .i18n import t
from .logs import LOGGER, sql_for_log


class QueryGridError(Exception):
    """Base class for errors raised by querygrid."""


class ParseAmbiguous(QueryGridError):
    """The SQL text is outside the supported single-table SELECT subset."""


class NoTableResolved(ParseAmbiguous):
    def __init__(self, message: str | None = None):
        super().__init__(message or t("ERR_NO_TABLE"))


class NoChanges(QueryGridError):
    def __init__(self, message: str | None = None):
        super().__init__(message or t("MSG_NO_CHANGES"))


class ExecutionError(QueryGridError):
    """A statement failed on the database side.

    ``message`` is the database's text, kept opaque for display and logging.
    """

    def __init__(self, message: str, sql: str | None = None):
        super().__init__(message)
        self.message = message
        self.sql = sql


class DiscardConfirmationRequired(QueryGridError):
    def __init__(self, pending: int):
        super().__init__(t("ERR_DISCARD_CONFIRMATION", count=pending))
        self.pending = pending


class InvalidStateTransition(QueryGridError):
    def __init__(self, operation: str, state: str, message: str | None = None):
        super().__init__(message or t("ERR_INVALID_STATE", operation=operation, state=state))
        self.operation = operation
        self.state = state


class SessionBusy(InvalidStateTransition):
    def __init__(self, operation: str, state: str):
        super().__init__(operation, state, t("ERR_SESSION_BUSY"))


class CellOutOfRange(QueryGridError, IndexError):
    def __init__(self, row: int, col: int, rows: int, cols: int):
        super().__init__(t("ERR_CELL_OUT_OF_RANGE", row=row, col=col, rows=rows, cols=cols))
        self.row = row
        self.col = col


def unwrap_dbapi_original(exc: BaseException) -> BaseException:
    current = exc
    seen = {id(current)}
    while True:
        orig = getattr(current, "orig", None)
        if orig is None:
            return current
        if id(orig) in seen:
            return current
        seen.add(id(orig))
        current = orig


def best_exception_message(exc: BaseException) -> str:
    """Shortest non-empty text among the exception's string args and str()."""
    args = getattr(exc, "args", None) or ()
    candidates = []
    if len(args) >= 2 and isinstance(args[1], str) and args[1].strip():
        candidates.append(args[1].strip())
    for arg in args:
        if isinstance(arg, str) and arg.strip():
            candidates.append(arg.strip())
    msg = str(exc).strip()
    if msg:
        candidates.append(msg)
    if not candidates:
        return exc.__class__.__name__
    return min(candidates, key=len)


def format_error_for_ui(exc: BaseException, sql_query: str | None, max_chars: int = 2000) -> str:
    """Log the full error and return a shortened message for display."""
    label, logged_sql = sql_for_log(sql_query or "")
    LOGGER.error(
        "Error while executing SQL (%s):\n%s",
        label,
        logged_sql,
        exc_info=(type(exc), exc, exc.__traceback__),
    )

    formatted = traceback.format_exception_only(type(exc), exc)
    first_line = formatted[-1].strip() if formatted else str(exc)

    db_msg = getattr(exc, "message", None) or str(exc)
    db_msg_first_line = db_msg.splitlines()[0] if db_msg else ""

    sql_one_line = " ".join((sql_query or "").split())
    sql_preview = textwrap.shorten(sql_one_line, width=600, placeholder=" ...")

    msg = (
        f"{first_line}\n\n"
        f"{t('ERR_DB_MESSAGE')}\n{db_msg_first_line}\n\n"
        f"{t('ERR_SQL_PREVIEW')}\n{sql_preview}\n\n"
        f"{t('ERR_FULL_LOG')}"
    )
    if len(msg) > max_chars:
        msg = msg[:max_chars] + "\n" + t("MSG_UI_TRUNCATED")
    return msg
