from __future__ import annotations

from .models import Coordinate


def rect_cells(anchor: Coordinate, focus: Coordinate) -> set[Coordinate]:
    """All cells of the inclusive bounding box of two corners."""
    (r1, c1), (r2, c2) = anchor, focus
    top, bottom = min(r1, r2), max(r1, r2)
    left, right = min(c1, c2), max(c1, c2)
    return {(r, c) for r in range(top, bottom + 1) for c in range(left, right + 1)}


class SelectionModel:
    """Selected cells of a result grid, in baseline (unfiltered) coordinates.

    The selection is always held as an explicit cell set. The anchor of
    the last rectangle is kept so shift-click can extend from it.
    """

    def __init__(self):
        self._cells: set[Coordinate] = set()
        self._anchor: Coordinate | None = None

    @property
    def anchor(self) -> Coordinate | None:
        return self._anchor

    def set_rect(self, anchor: Coordinate, focus: Coordinate) -> None:
        anchor = (int(anchor[0]), int(anchor[1]))
        focus = (int(focus[0]), int(focus[1]))
        self._cells = rect_cells(anchor, focus)
        self._anchor = anchor

    def select_cell(self, row: int, col: int) -> None:
        self.set_rect((row, col), (row, col))

    def toggle_cell(self, row: int, col: int) -> None:
        key = (int(row), int(col))
        if key in self._cells:
            self._cells.discard(key)
        else:
            self._cells.add(key)
            if self._anchor is None:
                self._anchor = key

    def extend_to(self, row: int, col: int) -> None:
        """Shift-click: rectangle from the last anchor to (row, col)."""
        if self._anchor is None:
            self.select_cell(row, col)
            return
        self.set_rect(self._anchor, (row, col))

    def select_all(self, row_count: int, col_count: int) -> None:
        if row_count <= 0 or col_count <= 0:
            self.clear()
            return
        self.set_rect((0, 0), (row_count - 1, col_count - 1))

    def clear(self) -> None:
        self._cells = set()
        self._anchor = None

    def contains(self, row: int, col: int) -> bool:
        return (row, col) in self._cells

    def materialize(self) -> list[Coordinate]:
        """Selected cells sorted row-major."""
        return sorted(self._cells)

    def rows(self) -> list[int]:
        return sorted({row for row, _ in self._cells})

    def is_empty(self) -> bool:
        return not self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"SelectionModel(cells={len(self._cells)}, anchor={self._anchor})"
