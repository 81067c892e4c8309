"""In-memory cell edits over a fetched result, with undo/redo.

The ledger maps (row, col) to a CellEdit holding the baseline value and
the edited value. The displayed grid (the overlay) is never stored on its
own: it is the baseline with the ledger applied, so restoring a ledger
snapshot restores what the grid shows in the same step.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping

from .config import DEFAULT_HISTORY_LIMIT
from .errors import CellOutOfRange
from .logs import LOGGER
from .models import CellEdit, Coordinate, QueryResult, Value, values_equal


@dataclass(frozen=True)
class UndoStep:
    """Immutable snapshot of the ledger entries at one point in time."""

    entries: Mapping[Coordinate, CellEdit]

    @classmethod
    def capture(cls, entries: dict[Coordinate, CellEdit]) -> "UndoStep":
        return cls(MappingProxyType(dict(entries)))


class EditLedger:
    def __init__(self, baseline: QueryResult, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self._baseline = baseline
        self._entries: dict[Coordinate, CellEdit] = {}
        self._undo: deque[UndoStep] = deque(maxlen=max(1, int(history_limit)))
        self._redo: list[UndoStep] = []

    @property
    def baseline(self) -> QueryResult:
        return self._baseline

    # --- queries -------------------------------------------------------------

    def has_pending_changes(self) -> bool:
        return bool(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, row: int, col: int) -> CellEdit | None:
        return self._entries.get((row, col))

    def entries(self) -> dict[Coordinate, CellEdit]:
        """Copy of the entries, sorted row-major."""
        return {key: self._entries[key] for key in sorted(self._entries)}

    def edited_rows(self) -> list[int]:
        return sorted({row for row, _ in self._entries})

    def value_at(self, row: int, col: int) -> Value:
        """Displayed value: the edit if there is one, else the baseline."""
        self._check(row, col)
        entry = self._entries.get((row, col))
        if entry is not None:
            return entry.new_value
        return self._baseline.rows[row][col]

    def row_values(self, row: int) -> list[Value]:
        return [self.value_at(row, col) for col in range(self._baseline.column_count)]

    def rows(self) -> list[list[Value]]:
        """The overlay: every baseline row with edits applied."""
        return [self.row_values(row) for row in range(self._baseline.row_count)]

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    # --- mutations -----------------------------------------------------------

    def _check(self, row: int, col: int) -> None:
        if not self._baseline.contains_cell(row, col):
            raise CellOutOfRange(row, col, self._baseline.row_count, self._baseline.column_count)

    def _push_undo(self) -> None:
        self._undo.append(UndoStep.capture(self._entries))
        self._redo.clear()

    def _write(self, row: int, col: int, new_value: Value) -> None:
        old_value = self._baseline.rows[row][col]
        if values_equal(old_value, new_value):
            # back to the baseline: nothing left to save for this cell
            self._entries.pop((row, col), None)
        else:
            self._entries[(row, col)] = CellEdit(old_value=old_value, new_value=new_value)

    def set_cell(self, row: int, col: int, new_value: Value) -> bool:
        """Record an edit as one undo step.

        Returns False (and records nothing) when the cell already shows
        new_value.
        """
        return self.apply_values({(row, col): new_value}) > 0

    def batch_set(self, coordinates: Iterable[Coordinate], new_value: Value) -> int:
        """Set every coordinate to new_value as a single undo step."""
        return self.apply_values({(r, c): new_value for r, c in coordinates})

    def apply_values(self, values: Mapping[Coordinate, Value]) -> int:
        """Apply per-cell values as a single undo step; returns cells changed."""
        for row, col in values:
            self._check(row, col)
        changes = {
            key: value
            for key, value in values.items()
            if not values_equal(self.value_at(*key), value)
        }
        if not changes:
            return 0
        self._push_undo()
        for (row, col), value in changes.items():
            self._write(row, col, value)
        LOGGER.debug("Ledger: %d cell(s) changed, %d pending", len(changes), len(self._entries))
        return len(changes)

    def reset_all(self) -> bool:
        """Drop every edit (one undo step). False when there was nothing."""
        if not self._entries:
            return False
        self._push_undo()
        self._entries = {}
        LOGGER.debug("Ledger: all edits reverted")
        return True

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(UndoStep.capture(self._entries))
        self._entries = dict(self._undo.pop().entries)
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(UndoStep.capture(self._entries))
        self._entries = dict(self._redo.pop().entries)
        return True
