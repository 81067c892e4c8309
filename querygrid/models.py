from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Mapping, Sequence, Tuple, Union

# None, bool, int/float, str, or a dict/list rendered as JSON text.
Value = Any
Coordinate = Tuple[int, int]

# Column name -> "contains" text; blank texts are ignored by the rewriter.
FilterSpec = Mapping[str, str]


def values_equal(a: Value, b: Value) -> bool:
    """Value equality that keeps True apart from 1 and NaN equal to itself."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
        return True
    try:
        return bool(a == b)
    except Exception:  # noqa: BLE001
        return a is b


@dataclass(frozen=True)
class QueryResult:
    """Columns in display order (names may repeat) and the fetched rows."""

    columns: Tuple[str, ...]
    rows: Tuple[Tuple[Value, ...], ...]

    def __post_init__(self):
        object.__setattr__(self, "columns", tuple(str(c) for c in self.columns))
        object.__setattr__(self, "rows", tuple(tuple(row) for row in self.rows))

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)

    def contains_cell(self, row: int, col: int) -> bool:
        return 0 <= row < len(self.rows) and 0 <= col < len(self.columns)

    @classmethod
    def empty(cls) -> "QueryResult":
        return cls(columns=(), rows=())


@dataclass(frozen=True)
class TableReference:
    table_name: str
    database: str | None = None


@dataclass(frozen=True)
class CellEdit:
    """Ledger entry: the baseline value and the value the user typed."""

    old_value: Value
    new_value: Value


class SortDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, raw: Union[str, "SortDirection"]) -> "SortDirection":
        if isinstance(raw, SortDirection):
            return raw
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown sort direction: {raw!r}") from None

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortKey:
    column: str
    direction: SortDirection = SortDirection.ASC


class SortSpec:
    """Ordered sort keys; position is priority and a column appears once."""

    def __init__(self, keys: Iterable[Union[SortKey, Tuple[str, Any]]] = ()):
        self._keys: list[SortKey] = []
        for key in keys:
            if not isinstance(key, SortKey):
                column, direction = key
                key = SortKey(column, SortDirection.parse(direction))
            self._set(key)

    def _index(self, column: str) -> int:
        for i, key in enumerate(self._keys):
            if key.column == column:
                return i
        return -1

    def _set(self, key: SortKey) -> None:
        idx = self._index(key.column)
        if idx == -1:
            self._keys.append(key)
        else:
            self._keys[idx] = key

    def toggle(self, column: str, additive: bool = False) -> None:
        """Header-click semantics.

        additive (shift-click): flip an existing key in place or append a new
        ascending key. Otherwise the column becomes the only key, flipping its
        direction if it already was the only key.
        """
        idx = self._index(column)
        if additive:
            if idx == -1:
                self._keys.append(SortKey(column))
            else:
                current = self._keys[idx]
                self._keys[idx] = SortKey(column, current.direction.flipped())
            return
        if idx != -1 and len(self._keys) == 1:
            self._keys = [SortKey(column, self._keys[0].direction.flipped())]
        else:
            self._keys = [SortKey(column)]

    def copy(self) -> "SortSpec":
        return SortSpec(self._keys)

    def __iter__(self) -> Iterator[SortKey]:
        return iter(list(self._keys))

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __eq__(self, other) -> bool:
        if isinstance(other, SortSpec):
            return self._keys == other._keys
        return NotImplemented

    def __repr__(self) -> str:
        inner = ", ".join(f"{k.column} {k.direction.value}" for k in self._keys)
        return f"SortSpec([{inner}])"


def as_sort_spec(sorts: Union[SortSpec, Sequence, None]) -> SortSpec:
    if sorts is None:
        return SortSpec()
    if isinstance(sorts, SortSpec):
        return sorts
    return SortSpec(sorts)
