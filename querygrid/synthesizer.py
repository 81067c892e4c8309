"""UPDATE/INSERT statement text for edited or selected rows.

Row identity: without a known key the WHERE clause lists every column's
original value (``col IS NULL`` for NULLs). On tables with duplicate rows
such a statement can touch more than one row; that is accepted, not
special-cased. When key_columns are given and all present in the result,
only they are used.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from .dialects import Dialect, build_qualified_name, escape_identifier, escape_value
from .errors import NoChanges, NoTableResolved
from .ledger import EditLedger
from .models import QueryResult, TableReference, Value


class StatementSynthesizer:
    def __init__(
        self,
        baseline: QueryResult,
        ledger: EditLedger,
        table: TableReference | None,
        dialect: Dialect,
        current_database: str | None = None,
        key_columns: Sequence[str] | None = None,
    ):
        self.baseline = baseline
        self.ledger = ledger
        self.table = table
        self.dialect = Dialect.parse(dialect)
        self.current_database = current_database
        self.key_columns = tuple(key_columns or ())

    def target_database(self) -> str | None:
        if self.table is None:
            return None
        return self.table.database or self.current_database

    def qualified_table(self) -> str:
        if self.table is None:
            raise NoTableResolved()
        return build_qualified_name(self.table.table_name, self.dialect, self.target_database())

    def _ident(self, name: str) -> str:
        return escape_identifier(name, self.dialect)

    def _identity_columns(self) -> list[int]:
        columns = self.baseline.columns
        if self.key_columns and all(key in columns for key in self.key_columns):
            return [columns.index(key) for key in self.key_columns]
        return list(range(len(columns)))

    def _where(self, original_row: Sequence[Value]) -> str:
        conditions = []
        for col in self._identity_columns():
            name = self._ident(self.baseline.columns[col])
            literal = escape_value(original_row[col], self.dialect)
            # None, NaN and infinities all render as NULL
            if literal == "NULL":
                conditions.append(f"{name} IS NULL")
            else:
                conditions.append(f"{name} = {literal}")
        return " AND ".join(conditions)

    def _assignments(self, values: Iterable[tuple[int, Value]]) -> str:
        return ", ".join(
            f"{self._ident(self.baseline.columns[col])} = {escape_value(value, self.dialect)}"
            for col, value in values
        )

    def generate_update_statements(self) -> list[str]:
        """One UPDATE per edited row, rows ascending, SET in column order."""
        table = self.qualified_table()
        entries = self.ledger.entries()
        if not entries:
            raise NoChanges()

        by_row: dict[int, list[tuple[int, Value]]] = {}
        for (row, col), edit in entries.items():
            by_row.setdefault(row, []).append((col, edit.new_value))

        statements = []
        for row, changes in by_row.items():
            original = self.baseline.rows[row]
            statements.append(f"UPDATE {table} SET {self._assignments(changes)} WHERE {self._where(original)};")
        return statements

    def _selected_rows(self, row_indices: Iterable[int]) -> list[int]:
        count = self.baseline.row_count
        return sorted({int(r) for r in row_indices if 0 <= int(r) < count})

    def generate_insert_statement(self, row_indices: Iterable[int]) -> str | None:
        """Multi-row INSERT of the current (edited) values of the given rows.

        None when no valid row is given.
        """
        table = self.qualified_table()
        rows = self._selected_rows(row_indices)
        if not rows:
            return None
        columns = ", ".join(self._ident(col) for col in self.baseline.columns)
        values = ", ".join(
            "(" + ", ".join(escape_value(v, self.dialect) for v in self.ledger.row_values(row)) + ")"
            for row in rows
        )
        return f"INSERT INTO {table} ({columns}) VALUES {values};"

    def generate_row_update_statements(self, row_indices: Iterable[int]) -> list[str]:
        """Full-row UPDATE for each given row: every column in SET."""
        table = self.qualified_table()
        statements = []
        for row in self._selected_rows(row_indices):
            current = self.ledger.row_values(row)
            assignments = self._assignments(enumerate(current))
            statements.append(f"UPDATE {table} SET {assignments} WHERE {self._where(self.baseline.rows[row])};")
        return statements
