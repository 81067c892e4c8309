"""Grid copy/paste as plain text (TSV out, TSV/CSV/single value in)."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Callable, Iterable, Sequence

from .dialects import format_number
from .models import Coordinate, Value


def display_text(value: Value) -> str:
    """Text form of a cell value as the grid shows it; NULL is empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        text = format_number(value)
        return "" if text == "NULL" else text
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def copy_cells(cells: Iterable[Coordinate], value_at: Callable[[int, int], Value]) -> str:
    """TSV of the selected cells.

    Columns are the union of selected columns; a row that lacks one of them
    gets an empty field there.
    """
    cells = set(cells)
    if not cells:
        return ""
    rows = sorted({r for r, _ in cells})
    cols = sorted({c for _, c in cells})
    lines = []
    for row in rows:
        fields = [display_text(value_at(row, col)) if (row, col) in cells else "" for col in cols]
        lines.append("\t".join(fields))
    return "\n".join(lines)


def _split_line(line: str) -> list[str]:
    if "\t" in line:
        return line.split("\t")
    if "," in line:
        return [part.strip() for part in line.split(",")]
    return [line]


def parse_clipboard_text(text: str) -> list[list[str]]:
    """Rows of fields; blank lines are dropped."""
    normalized = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    return [_split_line(line) for line in normalized.split("\n") if line.strip()]


def plan_paste(
    grid: Sequence[Sequence[str]],
    selected: Sequence[Coordinate],
) -> dict[Coordinate, Value]:
    """Target value per cell for pasting grid onto the selection.

    One value fills every selected cell (blank means NULL). A larger grid is
    laid out from the selection's top-left corner onto the selected cells;
    blank fields and selected cells outside the grid are left alone.
    """
    if not grid or not selected:
        return {}
    if len(grid) == 1 and len(grid[0]) == 1:
        value = grid[0][0]
        target = value if value.strip() else None
        return {cell: target for cell in selected}

    top = min(r for r, _ in selected)
    left = min(c for _, c in selected)
    plan: dict[Coordinate, Value] = {}
    for row, col in selected:
        r, c = row - top, col - left
        if r < len(grid) and c < len(grid[r]):
            value = grid[r][c]
            if value.strip():
                plan[(row, col)] = value
    return plan
