from __future__ import annotations

import csv
import json
import os
from decimal import Decimal
from typing import Sequence

import pandas as pd

from .i18n import t
from .logs import LOGGER
from .models import Value

DEFAULT_CSV_PROFILE = {
    "name": "UTF-8 (comma)",
    "encoding": "utf-8",
    "delimiter": ",",
    "delimiter_replacement": "",
    "decimal": ".",
    "lineterminator": "\n",
    "quotechar": '"',
    "quoting": "minimal",
    "escapechar": "",
    "doublequote": True,
    "date_format": "",
}
XLSX_MAX_ROWS = 1_048_576
XLSX_MAX_COLS = 16_384

EXPORT_FORMATS = ("csv", "json", "xlsx")


class XlsxSizeError(ValueError):
    pass


class ExportFormatError(ValueError):
    pass


def csv_profile_to_kwargs(profile):
    quoting_map = {
        "all": csv.QUOTE_ALL,
        "none": csv.QUOTE_NONE,
        "minimal": csv.QUOTE_MINIMAL,
        "nonnumeric": csv.QUOTE_NONNUMERIC,
    }

    quoting_value = quoting_map.get(
        (profile.get("quoting") or DEFAULT_CSV_PROFILE["quoting"]).lower(),
        csv.QUOTE_MINIMAL,
    )

    line_terminator_value = (
        profile.get("line_terminator")
        or profile.get("lineterminator")
        or DEFAULT_CSV_PROFILE["lineterminator"]
    )

    return {
        "sep": profile.get("delimiter") or DEFAULT_CSV_PROFILE["delimiter"],
        "encoding": profile.get("encoding") or DEFAULT_CSV_PROFILE["encoding"],
        "decimal": profile.get("decimal") or DEFAULT_CSV_PROFILE["decimal"],
        # pandas expects the keyword "lineterminator" (without underscore)
        "lineterminator": line_terminator_value,
        "quotechar": profile.get("quotechar") or DEFAULT_CSV_PROFILE["quotechar"],
        "quoting": quoting_value,
        "escapechar": profile.get("escapechar") or None,
        "doublequote": bool(profile.get("doublequote", DEFAULT_CSV_PROFILE["doublequote"])),
        "date_format": profile.get("date_format") or None,
    }


def ensure_xlsx_limits(rows_count: int, columns_count: int, *, header_rows: int = 1) -> None:
    """Raise XlsxSizeError when the data would not fit on one sheet."""
    rows_count = max(0, int(rows_count))
    columns_count = max(0, int(columns_count))
    total_rows = rows_count + max(0, int(header_rows))
    if total_rows <= 0 or columns_count <= 0:
        return
    if total_rows > XLSX_MAX_ROWS or columns_count > XLSX_MAX_COLS:
        raise XlsxSizeError(
            t(
                "ERR_XLSX_TOO_LARGE",
                rows=rows_count,
                cols=columns_count,
                sheet_rows=total_rows,
                sheet_cols=columns_count,
                max_rows=XLSX_MAX_ROWS,
                max_cols=XLSX_MAX_COLS,
            )
        )


def infer_format(path: str) -> str:
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    if ext == "xls":
        ext = "xlsx"
    if ext not in EXPORT_FORMATS:
        raise ExportFormatError(t("ERR_EXPORT_FORMAT", fmt=ext or path))
    return ext


def _cell_for_file(value: Value) -> Value:
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return value


def _json_value(value: Value):
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, float) and value != value:
        return None
    return value


def _write_json(columns: Sequence[str], rows, path: str) -> None:
    records = []
    for row in rows:
        record = {}
        for name, value in zip(columns, row):
            record.setdefault(name, _json_value(value))
        records.append(record)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(records, f, ensure_ascii=False, indent=2, default=str)


def export_grid(
    columns: Sequence[str],
    rows: Sequence[Sequence[Value]],
    path: str,
    fmt: str | None = None,
    csv_profile: dict | None = None,
) -> int:
    """Write the grid to path and return the number of data rows written."""
    fmt = (fmt or infer_format(path)).lower()
    if fmt not in EXPORT_FORMATS:
        raise ExportFormatError(t("ERR_EXPORT_FORMAT", fmt=fmt))
    columns = list(columns)
    rows = [list(row) for row in rows]

    if fmt == "json":
        _write_json(columns, rows, path)
    else:
        if fmt == "xlsx":
            ensure_xlsx_limits(len(rows), len(columns), header_rows=1)
        df = pd.DataFrame([[_cell_for_file(v) for v in row] for row in rows], columns=columns)
        if fmt == "xlsx":
            df.to_excel(path, index=False, engine="openpyxl")
        else:
            profile = {**DEFAULT_CSV_PROFILE, **(csv_profile or {})}
            delimiter = profile.get("delimiter") or DEFAULT_CSV_PROFILE["delimiter"]
            delimiter_replacement = profile.get("delimiter_replacement", "")
            if delimiter and delimiter_replacement:
                df = df.map(
                    lambda value: value.replace(delimiter, delimiter_replacement)
                    if isinstance(value, str)
                    else value
                )
            df.to_csv(path, index=False, **csv_profile_to_kwargs(profile))

    LOGGER.info("Exported %d row(s) as %s to %s", len(rows), fmt, path)
    return len(rows)
