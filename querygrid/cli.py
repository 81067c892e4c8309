from __future__ import annotations

import argparse
import sys

from . import config
from .clipboard import display_text
from .dialects import Dialect
from .errors import NoChanges, NoTableResolved, QueryGridError, format_error_for_ui
from .executor import SqlAlchemyExecutor
from .export import ExportFormatError, XlsxSizeError
from .i18n import set_lang, t
from .importer import generate_import_statements, read_import_file
from .locator import locate
from .logs import LOGGER, set_full_sql_logging, setup_logging
from .models import SortDirection, SortSpec
from .session import Session

CLI_CONNECTION_ID = "cli"
_YES_ANSWERS = ("y", "yes", "t", "tak")


def _ask(question: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    try:
        answer = input(question + t("CLI_CONFIRM_SUFFIX"))
    except EOFError:
        return False
    return answer.strip().lower() in _YES_ANSWERS


def parse_filter(raw: str) -> tuple[str, str]:
    column, sep, text = raw.partition("=")
    if not sep or not column.strip():
        raise ValueError(t("CLI_BAD_FILTER", value=raw))
    return column.strip(), text


def parse_sort(raw: str) -> tuple[str, SortDirection]:
    column, sep, direction = raw.rpartition(":")
    if not sep:
        column, direction = raw, "asc"
    if not column.strip():
        raise ValueError(t("CLI_BAD_SORT", value=raw))
    try:
        return column.strip(), SortDirection.parse(direction or "asc")
    except ValueError:
        raise ValueError(t("CLI_BAD_SORT", value=raw)) from None


def parse_set(raw: str) -> tuple[int, str, str]:
    target, sep, value = raw.partition("=")
    row, colon, column = target.partition(":")
    if not sep or not colon or not column.strip():
        raise ValueError(t("CLI_BAD_SET", value=raw))
    try:
        row_index = int(row)
    except ValueError:
        raise ValueError(t("CLI_BAD_SET", value=raw)) from None
    return row_index, column.strip(), value


def parse_rows(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise ValueError(t("CLI_BAD_ROWS", value=raw)) from None


def resolve_column(columns, ref: str) -> int:
    if ref in columns:
        return columns.index(ref)
    if ref.isdigit() and int(ref) < len(columns):
        return int(ref)
    raise QueryGridError(t("CLI_UNKNOWN_COLUMN", column=ref))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="querygrid", description=t("CLI_DESC"))
    parser.add_argument("--url", help=t("CLI_URL_HELP"))
    parser.add_argument("--connection", help=t("CLI_CONNECTION_HELP"))
    parser.add_argument("--database", help=t("CLI_DATABASE_HELP"))
    parser.add_argument("--sql", help=t("CLI_SQL_HELP"))
    parser.add_argument("--filter", action="append", default=[], metavar="COL=TEXT", help=t("CLI_FILTER_HELP"))
    parser.add_argument("--sort", action="append", default=[], metavar="COL[:DIR]", help=t("CLI_SORT_HELP"))
    parser.add_argument("--set", action="append", default=[], metavar="ROW:COL=VALUE", help=t("CLI_SET_HELP"))
    parser.add_argument("--null", default=None, metavar="TEXT", help=t("CLI_NULL_HELP"))
    parser.add_argument("--insert-rows", metavar="ROWS", help=t("CLI_INSERT_ROWS_HELP"))
    parser.add_argument("--print-sql", action="store_true", help=t("CLI_PRINT_SQL_HELP"))
    parser.add_argument("--commit", action="store_true", help=t("CLI_COMMIT_HELP"))
    parser.add_argument("-y", "--yes", action="store_true", help=t("CLI_YES_HELP"))
    parser.add_argument("--export", metavar="PATH", help=t("CLI_EXPORT_HELP"))
    parser.add_argument("--import-file", metavar="PATH", help=t("CLI_IMPORT_HELP"))
    parser.add_argument("--table", help=t("CLI_TABLE_HELP"))
    parser.add_argument("--lang", choices=["en", "pl"], help=t("CLI_LANG_HELP"))
    parser.add_argument("--log-dir", help=t("CLI_LOG_DIR_HELP"))
    return parser


def _print_grid(columns, rows) -> None:
    print("\t".join(columns))
    for row in rows:
        print("\t".join(display_text(value) for value in row))
    print(t("CLI_ROWS_SUMMARY", rows=len(rows)))


def _print_import(args, settings, executor) -> None:
    data = read_import_file(args.import_file)
    table = args.table
    database = args.database
    if not table and args.sql:
        reference = locate(args.sql)
        if reference is not None:
            table = reference.table_name
            database = reference.database or database
    if not table:
        raise NoTableResolved()
    dialect = executor.resolve_dialect(CLI_CONNECTION_ID)
    if dialect is Dialect.NONE:
        database = None
    for sql in generate_import_statements(table, data, dialect, database, settings.import_batch_size):
        print(sql)


def _stage_edits(session: Session, edits, null_text: str | None) -> None:
    session.enter_edit()
    columns = list(session.baseline.columns)
    for row, column_ref, raw in edits:
        value = None if null_text is not None and raw == null_text else raw
        session.edit_cell(row, resolve_column(columns, column_ref), value)


def _commit(session: Session, assume_yes: bool) -> int:
    try:
        statements = session.generate_update_sql()
    except NoChanges as exc:
        print(exc)
        return 0
    if not _ask(t("CLI_CONFIRM_COMMIT", count=len(statements)), assume_yes):
        print(t("CLI_CANCELLED"))
        return 0
    summary = session.commit_edits()
    print(summary.message)
    for error in summary.errors:
        print(f"  {error.message}", file=sys.stderr)
    return 0 if summary.ok or summary.no_changes else 1


def main(argv=None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--lang", choices=["en", "pl"])
    pre_args, _ = pre_parser.parse_known_args(argv)
    settings = config.load_settings()
    if pre_args.lang:
        set_lang(pre_args.lang)
        config.persist_ui_lang(pre_args.lang)
    elif settings.ui_lang:
        set_lang(settings.ui_lang)

    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_dir or config.log_dir())
    if settings.log_full_sql:
        set_full_sql_logging(True)

    url = args.url
    if not url and args.connection:
        url = settings.connections.get(args.connection)
    if not url:
        parser.error(t("CLI_NO_CONNECTION"))
    if not args.sql and not args.import_file:
        parser.error(t("CLI_NO_SQL"))

    try:
        filters = dict(parse_filter(raw) for raw in args.filter)
        sorts = SortSpec(parse_sort(raw) for raw in args.sort)
        edits = [parse_set(raw) for raw in args.set]
        insert_rows = parse_rows(args.insert_rows) if args.insert_rows else None
    except ValueError as exc:
        parser.error(str(exc))

    executor = SqlAlchemyExecutor()
    executor.add_connection(CLI_CONNECTION_ID, url)
    if args.database:
        executor.set_current_database(CLI_CONNECTION_ID, args.database)

    session = Session(
        executor,
        CLI_CONNECTION_ID,
        confirm_discard=lambda question: _ask(question, args.yes),
        history_limit=settings.history_limit,
    )
    sql = args.sql
    try:
        if args.import_file:
            _print_import(args, settings, executor)
        if not args.sql:
            return 0

        session.run(args.sql)
        if filters or sorts:
            session.apply_filter_sort(filters, sorts)
        if edits:
            _stage_edits(session, edits, args.null)

        _print_grid(session.baseline.columns, session.displayed_rows())

        if args.print_sql:
            try:
                for statement in session.generate_update_sql():
                    print(statement)
            except NoChanges as exc:
                print(exc)
        if insert_rows is not None:
            statement = session.generate_insert_sql(insert_rows)
            if statement:
                print(statement)
        if args.export:
            count = session.export(args.export, csv_profile=settings.csv_profile)
            print(t("CLI_EXPORTED", rows=count, path=args.export))
        if args.commit:
            return _commit(session, args.yes)
        return 0
    except (QueryGridError, XlsxSizeError, ExportFormatError, OSError) as exc:
        print(format_error_for_ui(exc, getattr(exc, "sql", None) or sql), file=sys.stderr)
        return 1
    finally:
        executor.dispose()
        LOGGER.debug("CLI finished")


if __name__ == "__main__":
    sys.exit(main())
