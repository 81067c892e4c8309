"""Load CSV/JSON/Excel files and turn them into batched INSERT statements."""

from __future__ import annotations

import json
import os
import zipfile
from dataclasses import dataclass, field
from typing import Sequence

import pandas as pd

from .config import DEFAULT_IMPORT_BATCH_SIZE
from .dialects import Dialect, build_qualified_name, escape_identifier, escape_value
from .errors import QueryGridError
from .i18n import t
from .logs import LOGGER
from .models import Value

IMPORT_FORMATS = {
    ".csv": "csv",
    ".json": "json",
    ".xlsx": "excel",
    ".xls": "excel",
}


class ImportFormatError(QueryGridError):
    pass


@dataclass
class ImportData:
    columns: list[str]
    rows: list[list[Value]] = field(default_factory=list)


def _clean(value) -> Value:
    if value is None:
        return None
    if not isinstance(value, (list, dict)) and pd.isna(value):
        return None
    return value


def _fit(row: Sequence, width: int) -> list[Value]:
    cells = [_clean(v) for v in row][:width]
    cells.extend([None] * (width - len(cells)))
    return cells


def parse_json_records(data) -> ImportData:
    if not isinstance(data, list):
        raise ImportFormatError(t("ERR_IMPORT_JSON_ARRAY"))
    if not data:
        raise ImportFormatError(t("ERR_IMPORT_EMPTY", name="JSON"))
    first = data[0]
    if not isinstance(first, dict):
        raise ImportFormatError(t("ERR_IMPORT_JSON_OBJECTS"))
    columns = [str(key) for key in first]
    if not columns:
        raise ImportFormatError(t("ERR_IMPORT_NO_COLUMNS"))

    rows = []
    for item in data:
        if not isinstance(item, dict):
            raise ImportFormatError(t("ERR_IMPORT_JSON_OBJECTS"))
        row = []
        for col in columns:
            value = item.get(col)
            if isinstance(value, (dict, list)):
                value = json.dumps(value, ensure_ascii=False)
            row.append(value)
        rows.append(row)
    return ImportData(columns, rows)


def _read_csv(path: str) -> ImportData:
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        raise ImportFormatError(t("ERR_IMPORT_EMPTY", name=os.path.basename(path))) from None
    columns = [str(c).strip() for c in df.columns]
    rows = []
    for row in df.itertuples(index=False):
        rows.append(_fit([v.strip() if isinstance(v, str) else v for v in row], len(columns)))
    return ImportData(columns, rows)


def _read_json(path: str) -> ImportData:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except ValueError as exc:
        raise ImportFormatError(t("ERR_IMPORT_JSON", error=exc)) from exc
    return parse_json_records(data)


def _read_excel(path: str) -> ImportData:
    try:
        df = pd.read_excel(path, sheet_name=0, header=None, dtype=str, engine="openpyxl")
    except (ValueError, KeyError, OSError, zipfile.BadZipFile) as exc:
        raise ImportFormatError(t("ERR_IMPORT_EXCEL", error=exc)) from exc
    if df.empty:
        raise ImportFormatError(t("ERR_IMPORT_EMPTY", name=os.path.basename(path)))

    header = ["" if _clean(v) is None else str(v) for v in df.iloc[0].tolist()]
    if not any(col.strip() for col in header):
        raise ImportFormatError(t("ERR_IMPORT_NO_COLUMNS"))
    rows = [_fit(row, len(header)) for row in df.iloc[1:].itertuples(index=False)]
    return ImportData(header, rows)


def read_import_file(path: str) -> ImportData:
    """Parse a CSV, JSON or Excel file; the first row/object gives the columns."""
    fmt = IMPORT_FORMATS.get(os.path.splitext(path)[1].lower())
    if fmt is None:
        raise ImportFormatError(t("ERR_IMPORT_FORMAT"))
    if fmt == "csv":
        data = _read_csv(path)
    elif fmt == "json":
        data = _read_json(path)
    else:
        data = _read_excel(path)
    LOGGER.info("Read %d row(s) x %d column(s) from %s", len(data.rows), len(data.columns), path)
    return data


def generate_import_statements(
    table_name: str,
    data: ImportData,
    dialect: Dialect,
    database: str | None = None,
    batch_size: int = DEFAULT_IMPORT_BATCH_SIZE,
) -> list[str]:
    """Multi-row INSERTs of at most batch_size rows each."""
    dialect = Dialect.parse(dialect)
    batch_size = max(1, int(batch_size))
    table = build_qualified_name(table_name, dialect, database)
    columns = ", ".join(escape_identifier(col, dialect) for col in data.columns)

    statements = []
    for start in range(0, len(data.rows), batch_size):
        batch = data.rows[start : start + batch_size]
        values = ", ".join(
            "(" + ", ".join(escape_value(v, dialect) for v in row) + ")" for row in batch
        )
        statements.append(f"INSERT INTO {table} ({columns}) VALUES {values};")
    return statements
