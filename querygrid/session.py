"""One open result tab: the baseline result, its edit ledger and selection.

State machine::

    VIEWING --enter_edit--> EDITING --commit_edits--> SAVING --ok--> VIEWING
                                                        \\--failure--> EDITING
    VIEWING/EDITING --apply_filter_sort--> FILTERING --> VIEWING

Edits, paste, undo and redo are only accepted while EDITING. Nothing but
reads is accepted while SAVING. Leaving EDITING, filtering/sorting and
running a new query with pending edits go through the discard
confirmation callback; without a callback they raise
DiscardConfirmationRequired.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Sequence

from . import export as export_mod
from .clipboard import copy_cells, display_text, parse_clipboard_text, plan_paste
from .config import DEFAULT_HISTORY_LIMIT
from .dialects import Dialect
from .errors import (
    DiscardConfirmationRequired,
    ExecutionError,
    InvalidStateTransition,
    NoChanges,
    SessionBusy,
)
from .i18n import t
from .ledger import EditLedger
from .locator import locate
from .logs import LOGGER
from .models import QueryResult, SortSpec, TableReference, Value, as_sort_spec
from .rewriter import active_filters, rewrite
from .selection import SelectionModel
from .synthesizer import StatementSynthesizer


class SessionState(str, enum.Enum):
    VIEWING = "viewing"
    EDITING = "editing"
    SAVING = "saving"
    FILTERING = "filtering"

    def label(self) -> str:
        return t(f"STATE_{self.name}")


@dataclass
class CommitSummary:
    succeeded: int = 0
    failed: int = 0
    statements: list[str] = field(default_factory=list)
    errors: list[ExecutionError] = field(default_factory=list)
    refresh_error: str | None = None
    no_changes: bool = False

    @property
    def ok(self) -> bool:
        return not self.no_changes and self.failed == 0 and self.refresh_error is None

    @property
    def message(self) -> str:
        if self.no_changes:
            return t("MSG_NO_CHANGES")
        if self.failed:
            return t("MSG_COMMIT_PARTIAL", succeeded=self.succeeded, failed=self.failed)
        if self.refresh_error is not None:
            return t("MSG_REFRESH_FAILED", error=self.refresh_error)
        return t("MSG_COMMIT_OK", succeeded=self.succeeded)


ConfirmCallback = Callable[[str], bool]


class Session:
    def __init__(
        self,
        executor,
        connection_id: str,
        confirm_discard: ConfirmCallback | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        key_columns: Sequence[str] | None = None,
        database: str | None = None,
    ):
        self.executor = executor
        self.connection_id = connection_id
        self.confirm_discard = confirm_discard
        self.history_limit = history_limit
        self.key_columns = tuple(key_columns or ())
        self.database = database
        self.selection = SelectionModel()

        self._state = SessionState.VIEWING
        self._base_sql: str | None = None
        self._filters: dict[str, str] = {}
        self._sorts = SortSpec()
        self._replace_baseline(QueryResult.empty())

    # --- read-only view --------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def baseline(self) -> QueryResult:
        return self._baseline

    @property
    def ledger(self) -> EditLedger:
        return self._ledger

    @property
    def base_sql(self) -> str | None:
        return self._base_sql

    @property
    def filters(self) -> dict[str, str]:
        return dict(self._filters)

    @property
    def sorts(self) -> SortSpec:
        return self._sorts.copy()

    @property
    def table(self) -> TableReference | None:
        if not self._base_sql:
            return None
        return locate(self._base_sql)

    @property
    def dialect(self) -> Dialect:
        return Dialect.parse(self.executor.resolve_dialect(self.connection_id))

    def current_database(self) -> str | None:
        if self.database:
            return self.database
        return self.executor.resolve_current_database(self.connection_id)

    @property
    def effective_sql(self) -> str | None:
        """The statement the current baseline came from."""
        if self._base_sql is None:
            return None
        return rewrite(self._base_sql, self._filters, self._sorts, self.dialect, self._baseline.columns)

    def has_pending_changes(self) -> bool:
        return self._ledger.has_pending_changes()

    def displayed_rows(self) -> list[list[Value]]:
        return self._ledger.rows()

    # --- internals -------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        if state is not self._state:
            LOGGER.debug("Session %s: %s -> %s", self.connection_id, self._state.value, state.value)
        self._state = state

    def _require(self, operation: str, *allowed: SessionState) -> None:
        if self._state in allowed:
            return
        if self._state is SessionState.SAVING:
            raise SessionBusy(operation, self._state.label())
        raise InvalidStateTransition(operation, self._state.label())

    def _confirm_discard(self, message_key: str) -> bool:
        pending = len(self._ledger)
        if not pending:
            return True
        if self.confirm_discard is None:
            raise DiscardConfirmationRequired(pending)
        confirmed = bool(self.confirm_discard(t(message_key, count=pending)))
        if confirmed:
            LOGGER.info("Discarding %d pending edit(s)", pending)
        return confirmed

    def _replace_baseline(self, result: QueryResult) -> None:
        self._baseline = result
        self._ledger = EditLedger(result, self.history_limit)
        self.selection.clear()

    def _execution_database(self) -> str | None:
        if self.dialect is Dialect.NONE:
            return None
        table = self.table
        if table is not None and table.database:
            return table.database
        return self.current_database()

    def _execute(self, sql: str) -> QueryResult:
        return self.executor.execute(self.connection_id, sql, self._execution_database())

    def _synthesizer(self) -> StatementSynthesizer:
        return StatementSynthesizer(
            self._baseline,
            self._ledger,
            self.table,
            self.dialect,
            current_database=self.current_database(),
            key_columns=self.key_columns,
        )

    # --- queries -----------------------------------------------------------

    def run(self, sql: str) -> QueryResult | None:
        """Execute a new statement and make its result the baseline.

        Returns None when the user declines to discard pending edits.
        """
        self._require("run", SessionState.VIEWING, SessionState.EDITING)
        if not self._confirm_discard("MSG_CONFIRM_RUN"):
            return None
        previous_sql = self._base_sql
        self._base_sql = sql
        try:
            result = self._execute(sql)
        except ExecutionError:
            self._base_sql = previous_sql
            raise
        self._filters = {}
        self._sorts = SortSpec()
        self._replace_baseline(result)
        self._set_state(SessionState.VIEWING)
        return result

    def apply_filter_sort(
        self,
        filters: Mapping[str, str] | None = None,
        sorts: SortSpec | Iterable | None = None,
    ) -> QueryResult | None:
        """Re-run the original statement with filters and sorts applied.

        Returns None when the user declines to discard pending edits. On an
        execution error the previous result stays and the error propagates.
        """
        self._require("apply_filter_sort", SessionState.VIEWING, SessionState.EDITING)
        if self._base_sql is None:
            raise InvalidStateTransition("apply_filter_sort", self._state.label(), t("ERR_NO_QUERY"))

        new_filters = dict(active_filters(filters, self._baseline.columns))
        new_sorts = as_sort_spec(sorts).copy()
        sql = rewrite(self._base_sql, new_filters, new_sorts, self.dialect, self._baseline.columns)

        if not self._confirm_discard("MSG_CONFIRM_FILTER"):
            return None
        self._replace_baseline(self._baseline)
        self._set_state(SessionState.FILTERING)
        try:
            result = self._execute(sql)
        except ExecutionError:
            self._set_state(SessionState.VIEWING)
            raise
        self._filters = new_filters
        self._sorts = new_sorts
        self._replace_baseline(result)
        self._set_state(SessionState.VIEWING)
        return result

    def set_filter(self, column: str, text: str | None) -> QueryResult | None:
        filters = self.filters
        if text and text.strip():
            filters[column] = text
        else:
            filters.pop(column, None)
        return self.apply_filter_sort(filters, self._sorts)

    def toggle_sort(self, column: str, additive: bool = False) -> QueryResult | None:
        sorts = self.sorts
        sorts.toggle(column, additive=additive)
        return self.apply_filter_sort(self._filters, sorts)

    # --- edit mode -------------------------------------------------------

    def enter_edit(self) -> None:
        if self._state is SessionState.EDITING:
            return
        self._require("enter_edit", SessionState.VIEWING)
        self._replace_baseline(self._baseline)
        self._set_state(SessionState.EDITING)

    def exit_edit(self) -> bool:
        """Leave edit mode; False when the user keeps the pending edits."""
        self._require("exit_edit", SessionState.EDITING)
        if not self._confirm_discard("MSG_CONFIRM_EXIT_EDIT"):
            return False
        self._replace_baseline(self._baseline)
        self._set_state(SessionState.VIEWING)
        return True

    def edit_cell(self, row: int, col: int, value: Value) -> bool:
        self._require("edit_cell", SessionState.EDITING)
        return self._ledger.set_cell(row, col, value)

    def edit_cell_text(self, row: int, col: int, text: str) -> bool:
        """Edit from typed text: blank means NULL, unchanged text is ignored."""
        self._require("edit_cell", SessionState.EDITING)
        if text == display_text(self._ledger.value_at(row, col)):
            return False
        value = text if text.strip() else None
        return self._ledger.set_cell(row, col, value)

    def batch_edit(self, value: Value) -> int:
        """Set every selected cell to value as one undo step."""
        self._require("batch_edit", SessionState.EDITING)
        cells = [cell for cell in self.selection.materialize() if self._baseline.contains_cell(*cell)]
        return self._ledger.batch_set(cells, value)

    def paste_text(self, text: str) -> int:
        self._require("paste", SessionState.EDITING)
        selected = [cell for cell in self.selection.materialize() if self._baseline.contains_cell(*cell)]
        plan = plan_paste(parse_clipboard_text(text), selected)
        return self._ledger.apply_values(plan)

    def copy_selection(self) -> str:
        cells = [cell for cell in self.selection.materialize() if self._baseline.contains_cell(*cell)]
        return copy_cells(cells, self._ledger.value_at)

    def undo(self) -> bool:
        self._require("undo", SessionState.EDITING)
        return self._ledger.undo()

    def redo(self) -> bool:
        self._require("redo", SessionState.EDITING)
        return self._ledger.redo()

    def reset_all(self) -> bool:
        self._require("reset_all", SessionState.EDITING)
        return self._ledger.reset_all()

    # --- SQL generation --------------------------------------------------

    def generate_update_sql(self) -> list[str]:
        return self._synthesizer().generate_update_statements()

    def generate_insert_sql(self, rows: Iterable[int] | None = None) -> str | None:
        if rows is None:
            rows = self.selection.rows()
        return self._synthesizer().generate_insert_statement(rows)

    def generate_row_update_sql(self, rows: Iterable[int] | None = None) -> list[str]:
        if rows is None:
            rows = self.selection.rows()
        return self._synthesizer().generate_row_update_statements(rows)

    # --- save ----------------------------------------------------------------

    def commit_edits(self) -> CommitSummary:
        """Execute one UPDATE per edited row, then refresh the result.

        Every statement is attempted even after a failure. Any failure keeps
        the whole ledger pending and returns to EDITING.
        """
        self._require("commit_edits", SessionState.EDITING)
        try:
            statements = self.generate_update_sql()
        except NoChanges:
            return CommitSummary(no_changes=True)

        summary = CommitSummary(statements=list(statements))
        self._set_state(SessionState.SAVING)
        try:
            for sql in statements:
                try:
                    self._execute(sql)
                except ExecutionError as exc:
                    LOGGER.warning("Statement failed during save: %s", exc.message)
                    summary.failed += 1
                    summary.errors.append(exc)
                else:
                    summary.succeeded += 1

            if summary.failed:
                LOGGER.warning(
                    "Save finished with failures: %d succeeded, %d failed",
                    summary.succeeded,
                    summary.failed,
                )
                self._set_state(SessionState.EDITING)
                return summary

            LOGGER.info("Saved %d statement(s)", summary.succeeded)
            try:
                result = self._execute(self.effective_sql)
            except ExecutionError as exc:
                summary.refresh_error = exc.message
                self._set_state(SessionState.EDITING)
                return summary
        except BaseException:
            self._set_state(SessionState.EDITING)
            raise

        self._replace_baseline(result)
        self._set_state(SessionState.VIEWING)
        return summary

    # --- export --------------------------------------------------------------

    def export(self, path: str, fmt: str | None = None, csv_profile: dict | None = None) -> int:
        """Write the displayed grid (edits included) to a file."""
        return export_mod.export_grid(
            self._baseline.columns, self.displayed_rows(), path, fmt, csv_profile
        )
