"""Find the table a SELECT reads from.

Supported subset: the first table reference of the last top-level FROM
clause, optionally qualified as database.table, in any of the three quoting
styles. Anything else (subquery sources, three-part names, no FROM) is
reported as unresolved rather than guessed.
"""

from __future__ import annotations

from typing import Sequence

from . import sqlscan
from .dialects import unescape_identifier
from .errors import NoTableResolved, ParseAmbiguous
from .i18n import t
from .models import TableReference
from .sqlscan import PUNCT, QUOTED, WORD, Token

# Keywords that end the FROM clause's table list.
FROM_TERMINATORS = frozenset(
    {
        "WHERE",
        "GROUP BY",
        "ORDER BY",
        "HAVING",
        "LIMIT",
        "OFFSET",
        "FETCH",
        "UNION",
        "INTERSECT",
        "EXCEPT",
        "WINDOW",
        "FOR",
        "JOIN",
        "INNER",
        "LEFT",
        "RIGHT",
        "FULL",
        "CROSS",
        "NATURAL",
        "OUTER",
        "STRAIGHT_JOIN",
        "ON",
        "USING",
        ";",
    }
)


def find_last_from(tokens: Sequence[Token]) -> int:
    """Index of the last depth-0 FROM in significant tokens, or -1.

    FROM in "IS [NOT] DISTINCT FROM" is a comparison, not a clause.
    """
    found = -1
    for i, tok in enumerate(tokens):
        if tok.depth != 0 or not tok.is_word("FROM"):
            continue
        if i > 0 and tokens[i - 1].is_word("DISTINCT"):
            continue
        found = i
    return found


def _name_part(tok: Token) -> str | None:
    if tok.kind == QUOTED:
        return unescape_identifier(tok.text)
    if tok.kind == WORD:
        return tok.text
    return None


def _parse_reference(tokens: Sequence[Token]) -> TableReference:
    """Parse "db.table [alias]" from the first reference's tokens."""
    if not tokens:
        raise ParseAmbiguous(t("ERR_PARSE_NO_FROM"))
    if tokens[0].is_punct("("):
        raise ParseAmbiguous(t("ERR_PARSE_SUBQUERY"))

    segments: list[str] = []
    i = 0
    while i < len(tokens):
        part = _name_part(tokens[i])
        if part is None:
            break
        segments.append(part)
        if i + 1 < len(tokens) and tokens[i + 1].kind == PUNCT and tokens[i + 1].text == ".":
            i += 2
            continue
        break

    if not segments or any(not s for s in segments):
        raise ParseAmbiguous(t("ERR_PARSE_NO_FROM"))
    if len(segments) > 2:
        raise ParseAmbiguous(t("ERR_PARSE_SEGMENTS", name=".".join(segments)))
    if len(segments) == 2:
        return TableReference(table_name=segments[1], database=segments[0])
    return TableReference(table_name=segments[0], database=None)


def resolve(sql: str | None) -> TableReference:
    """Like locate() but raises ParseAmbiguous with the reason."""
    tokens = sqlscan.significant(sqlscan.tokenize(sql or ""))
    from_idx = find_last_from(tokens)
    if from_idx == -1:
        raise ParseAmbiguous(t("ERR_PARSE_NO_FROM"))

    end = sqlscan.find_top_level(tokens, FROM_TERMINATORS, from_idx + 1)
    clause = tokens[from_idx + 1 : end]

    # multi-table FROM is not supported: only the first reference counts
    first: list[Token] = []
    for tok in clause:
        if tok.depth == 0 and tok.is_punct(","):
            break
        first.append(tok)
    return _parse_reference(first)


def locate(sql: str | None) -> TableReference | None:
    try:
        return resolve(sql)
    except ParseAmbiguous:
        return None


def require_table(sql: str | None) -> TableReference:
    """locate() for save paths: raises NoTableResolved when unresolved."""
    try:
        return resolve(sql)
    except ParseAmbiguous as exc:
        raise NoTableResolved() from exc
