"""Identifier and value escaping for the four quoting conventions.

Every generated statement goes through these helpers; nothing else in the
package builds SQL literals.
"""

from __future__ import annotations

import enum
import json
import math
from decimal import Decimal

from .models import Value


class Dialect(str, enum.Enum):
    BACKTICK = "backtick"  # MySQL / MariaDB
    DOUBLEQUOTE = "doublequote"  # PostgreSQL
    BRACKET = "bracket"  # SQL Server
    NONE = "none"  # SQLite: identifiers are emitted as-is

    @classmethod
    def parse(cls, raw) -> "Dialect":
        if isinstance(raw, Dialect):
            return raw
        text = str(raw or "").strip().lower()
        try:
            return cls(text)
        except ValueError:
            return dialect_for_backend(text)


# Backend names as reported by SQLAlchemy (engine.dialect.name) and by
# connection settings.
_BACKEND_DIALECTS = {
    "mysql": Dialect.BACKTICK,
    "mariadb": Dialect.BACKTICK,
    "postgres": Dialect.DOUBLEQUOTE,
    "postgresql": Dialect.DOUBLEQUOTE,
    "mssql": Dialect.BRACKET,
    "sqlserver": Dialect.BRACKET,
    "mssql_odbc": Dialect.BRACKET,
    "sqlite": Dialect.NONE,
}


def dialect_for_backend(backend: str | None) -> Dialect:
    """Map a backend name to its quoting dialect; unknown names get NONE."""
    return _BACKEND_DIALECTS.get((backend or "").strip().lower(), Dialect.NONE)


_QUOTES = {
    Dialect.BACKTICK: ("`", "`"),
    Dialect.DOUBLEQUOTE: ('"', '"'),
    Dialect.BRACKET: ("[", "]"),
}


def escape_identifier(name: str, dialect: Dialect) -> str:
    dialect = Dialect.parse(dialect)
    quotes = _QUOTES.get(dialect)
    if quotes is None:
        return name
    opening, closing = quotes
    return opening + name.replace(closing, closing * 2) + closing


def unescape_identifier(text: str) -> str:
    """Strip one level of backtick, double-quote or bracket quoting."""
    if len(text) >= 2:
        for opening, closing in _QUOTES.values():
            if text[0] == opening and text[-1] == closing:
                return text[1:-1].replace(closing * 2, closing)
    return text


def quote_string(text: str) -> str:
    return "'" + text.replace("'", "''") + "'"


def format_number(value) -> str:
    if isinstance(value, float):
        if not math.isfinite(value):
            return "NULL"
        if value.is_integer() and abs(value) < 1e16:
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return "NULL"
        return format(value, "f")
    return str(value)


def escape_value(value: Value, dialect: Dialect) -> str:
    dialect = Dialect.parse(dialect)
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        if dialect is Dialect.BACKTICK:
            return "1" if value else "0"
        return "TRUE" if value else "FALSE"
    if isinstance(value, (int, float, Decimal)):
        return format_number(value)
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, (dict, list, tuple)):
        return quote_string(json.dumps(value, ensure_ascii=False, separators=(",", ":")))
    return quote_string(str(value))


def build_qualified_name(table: str, dialect: Dialect, database: str | None = None) -> str:
    dialect = Dialect.parse(dialect)
    escaped_table = escape_identifier(table, dialect)
    if database and dialect is not Dialect.NONE:
        return f"{escape_identifier(database, dialect)}.{escaped_table}"
    return escaped_table
