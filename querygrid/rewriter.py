"""Re-query support: inject column filters and a sort order into a SELECT.

The statement is cut at top-level clause keywords into
``head | WHERE cond | GROUP BY/HAVING/WINDOW | ORDER BY | LIMIT/OFFSET/FETCH/FOR``
and reassembled. Filters are ANDed into the WHERE (the original condition is
parenthesized); the sort replaces any existing ORDER BY; the trailing
LIMIT/OFFSET part is kept verbatim. Always rewrite the original statement,
never a previous rewrite.
"""

from __future__ import annotations

from typing import Sequence

from . import sqlscan
from .dialects import Dialect, escape_identifier, quote_string
from .errors import ParseAmbiguous
from .i18n import t
from .locator import find_last_from
from .logs import LOGGER
from .models import FilterSpec, SortSpec, as_sort_spec

_AFTER_FROM = frozenset(
    {"WHERE", "GROUP BY", "HAVING", "WINDOW", "ORDER BY", "LIMIT", "OFFSET", "FETCH", "FOR", ";"}
)
_AFTER_WHERE = _AFTER_FROM - {"WHERE"}
_ORDER_REGION_START = frozenset({"ORDER BY", "LIMIT", "OFFSET", "FETCH", "FOR", ";"})
_SUFFIX_START = frozenset({"LIMIT", "OFFSET", "FETCH", "FOR", ";"})
_COMPOUND = frozenset({"UNION", "INTERSECT", "EXCEPT"})


LIKE_ESCAPE = "!"


def escape_like(needle: str, dialect: Dialect) -> str:
    """Make LIKE wildcards in needle match literally (with ESCAPE '!')."""
    specials = "%_" + LIKE_ESCAPE
    if dialect is Dialect.BRACKET:
        specials += "["
    return "".join(LIKE_ESCAPE + ch if ch in specials else ch for ch in needle)


def build_filter_predicate(column: str, needle: str, dialect: Dialect) -> str:
    """Case-insensitive "column contains needle" for the dialect."""
    dialect = Dialect.parse(dialect)
    col = escape_identifier(column, dialect)
    escaped = escape_like(needle, dialect)
    pattern = quote_string(f"%{escaped}%")
    escape_clause = f" ESCAPE '{LIKE_ESCAPE}'" if escaped != needle else ""
    if dialect is Dialect.DOUBLEQUOTE:
        return f"CAST({col} AS TEXT) ILIKE {pattern}{escape_clause}"
    if dialect is Dialect.BRACKET:
        return f"{col} LIKE {pattern} COLLATE SQL_Latin1_General_CP1_CI_AS{escape_clause}"
    # MySQL's default collations and SQLite's LIKE are case-insensitive
    return f"{col} LIKE {pattern}{escape_clause}"


def active_filters(filters: FilterSpec | None, columns: Sequence[str] | None = None) -> list[tuple[str, str]]:
    """Non-blank filters, in result column order, then any others in
    insertion order."""
    if not filters:
        return []
    entries = [(col, value) for col, value in filters.items() if value is not None and str(value).strip()]
    if not columns:
        return [(col, str(value)) for col, value in entries]
    order = {}
    for idx, name in enumerate(columns):
        order.setdefault(name, idx)
    entries.sort(key=lambda item: order.get(item[0], len(order)))
    return [(col, str(value)) for col, value in entries]


def build_order_by(sorts: SortSpec, dialect: Dialect) -> str:
    parts = [f"{escape_identifier(key.column, dialect)} {key.direction.value}" for key in sorts]
    return "ORDER BY " + ", ".join(parts)


def _text_between(sql: str, tokens, start: int, end: int) -> str:
    """Source text covered by tokens[start:end], trimmed."""
    if start >= end or start >= len(tokens):
        return ""
    return sql[tokens[start].start : tokens[end - 1].end].strip()


def rewrite(
    base_sql: str,
    filters: FilterSpec | None,
    sorts,
    dialect: Dialect,
    columns: Sequence[str] | None = None,
) -> str:
    """Return base_sql with filters and sorts applied.

    With no active filter and no sort key base_sql is returned unchanged.
    Raises ParseAmbiguous for statements outside the single-SELECT subset.
    """
    dialect = Dialect.parse(dialect)
    sorts = as_sort_spec(sorts)
    predicates = [build_filter_predicate(col, value, dialect) for col, value in active_filters(filters, columns)]
    if not predicates and not sorts:
        return base_sql

    sql = sqlscan.strip_comments(base_sql)
    tokens = sqlscan.significant(sqlscan.tokenize(sql))

    if sqlscan.find_top_level(tokens, _COMPOUND) < len(tokens):
        raise ParseAmbiguous(t("ERR_PARSE_COMPOUND"))
    from_idx = find_last_from(tokens)
    if from_idx == -1:
        raise ParseAmbiguous(t("ERR_PARSE_NO_FROM"))
    if sqlscan.find_top_level(tokens, {";"}) < from_idx:
        raise ParseAmbiguous(t("ERR_PARSE_MULTI_STATEMENT"))

    from_end = sqlscan.find_top_level(tokens, _AFTER_FROM, from_idx + 1)
    where_cond = ""
    middle_start = from_end
    if from_end < len(tokens) and tokens[from_end].is_word("WHERE"):
        where_end = sqlscan.find_top_level(tokens, _AFTER_WHERE, from_end + 1)
        where_cond = _text_between(sql, tokens, from_end + 1, where_end)
        middle_start = where_end

    order_start = sqlscan.find_top_level(tokens, _ORDER_REGION_START, middle_start)
    suffix_start = sqlscan.find_top_level(tokens, _SUFFIX_START, order_start)
    terminator = sqlscan.find_top_level(tokens, {";"}, suffix_start)
    if any(tok.kind != sqlscan.PUNCT or tok.text != ";" for tok in tokens[terminator + 1 :]):
        raise ParseAmbiguous(t("ERR_PARSE_MULTI_STATEMENT"))

    head = _text_between(sql, tokens, 0, from_end)
    middle = _text_between(sql, tokens, middle_start, order_start)
    existing_order = _text_between(sql, tokens, order_start, suffix_start)
    suffix = _text_between(sql, tokens, suffix_start, terminator)

    if predicates:
        new_conditions = " AND ".join(predicates)
        where = f"WHERE ({where_cond}) AND {new_conditions}" if where_cond else f"WHERE {new_conditions}"
    else:
        where = f"WHERE {where_cond}" if where_cond else ""

    order_by = build_order_by(sorts, dialect) if sorts else existing_order

    parts = [head, where, middle, order_by, suffix]
    rewritten = " ".join(part for part in parts if part)
    if terminator < len(tokens):
        rewritten += ";"

    LOGGER.debug(
        "Rewrote query with %d filter(s) and %d sort key(s)", len(predicates), len(sorts)
    )
    return rewritten
