"""Edit query results in a grid and write the changes back as SQL."""

from .dialects import Dialect, build_qualified_name, escape_identifier, escape_value
from .errors import (
    CellOutOfRange,
    DiscardConfirmationRequired,
    ExecutionError,
    InvalidStateTransition,
    NoChanges,
    NoTableResolved,
    ParseAmbiguous,
    QueryGridError,
    SessionBusy,
)
from .ledger import EditLedger
from .locator import locate
from .models import CellEdit, QueryResult, SortDirection, SortKey, SortSpec, TableReference
from .rewriter import rewrite
from .selection import SelectionModel
from .session import CommitSummary, Session, SessionState
from .synthesizer import StatementSynthesizer

__version__ = "1.0.0"
