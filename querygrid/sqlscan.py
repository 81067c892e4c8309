"""Tolerant lexical scan of SQL text.

Not a parser: it only knows enough to tell comments, string literals and
quoted identifiers apart from keywords, and to track parenthesis depth so
callers can look for clause keywords at the top level of a statement.
Unterminated quotes and comments run to the end of the text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

WORD = "word"
QUOTED = "quoted"  # "ident", `ident`, [ident]
STRING = "string"
NUMBER = "number"
COMMENT = "comment"
SPACE = "space"
PUNCT = "punct"

# A word may start with digits (MySQL allows 2024_sales) unless the whole
# run reads as a number such as 1e5.
_TOKEN_RE = re.compile(
    r"""
    (?P<comment>--[^\n]*|/\*.*?(?:\*/|\Z))
    |(?P<string>[NnEe]?'(?:[^']|'')*(?:'|\Z))
    |(?P<quoted>"(?:[^"]|"")*(?:"|\Z)|`(?:[^`]|``)*(?:`|\Z)|\[(?:[^\]]|\]\])*(?:\]|\Z))
    |(?P<word>(?!\d+(?:\.\d*)?(?:[eE][+-]?\d+)?(?!\w))\d+[^\W\d]\w*|[^\W\d]\w*|[@#$:][\w$#@]*)
    |(?P<number>\d+(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?(?!\w))
    |(?P<space>\s+)
    |(?P<punct>.)
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    start: int
    end: int
    depth: int

    @property
    def upper(self) -> str:
        return self.text.upper()

    def is_word(self, *words: str) -> bool:
        return self.kind == WORD and self.text.upper() in words

    def is_punct(self, char: str) -> bool:
        return self.kind == PUNCT and self.text == char


def tokenize(sql: str) -> list[Token]:
    """Split sql into tokens; depth is the parenthesis nesting level."""
    tokens: list[Token] = []
    depth = 0
    for match in _TOKEN_RE.finditer(sql or ""):
        kind = match.lastgroup
        text = match.group()
        if kind == PUNCT and text == ")":
            depth = max(0, depth - 1)
        tokens.append(Token(kind, text, match.start(), match.end(), depth))
        if kind == PUNCT and text == "(":
            depth += 1
    return tokens


def strip_comments(sql: str) -> str:
    """Drop -- and /* */ comments (not inside literals) and trim the result."""
    parts = []
    for token in tokenize(sql):
        if token.kind == COMMENT:
            # keep tokens on either side apart: "a/*x*/b" must not become "ab"
            parts.append(" ")
        else:
            parts.append(token.text)
    return "".join(parts).strip()


def significant(tokens: Iterable[Token]) -> list[Token]:
    return [tok for tok in tokens if tok.kind not in (SPACE, COMMENT)]


# Clause keywords; multi-word ones are matched on their first word and
# confirmed by the following word.
_PAIRED = {"ORDER": "BY", "GROUP": "BY"}


def clause_keyword(tokens: Sequence[Token], index: int) -> str | None:
    """Name of the clause keyword starting at tokens[index], if any.

    tokens must be significant tokens (no whitespace/comments). Returns e.g.
    "ORDER BY", "WHERE", ";" or None.
    """
    tok = tokens[index]
    if tok.is_punct(";"):
        return ";"
    if tok.kind != WORD:
        return None
    word = tok.upper
    follower = _PAIRED.get(word)
    if follower is not None:
        if index + 1 < len(tokens) and tokens[index + 1].is_word(follower):
            return f"{word} {follower}"
        return None
    return word


def find_top_level(
    tokens: Sequence[Token],
    keywords: Iterable[str],
    start: int = 0,
) -> int:
    """Index of the first depth-0 token at or after start opening one of
    keywords; len(tokens) when there is none."""
    wanted = set(keywords)
    for i in range(start, len(tokens)):
        if tokens[i].depth != 0:
            continue
        if clause_keyword(tokens, i) in wanted:
            return i
    return len(tokens)
