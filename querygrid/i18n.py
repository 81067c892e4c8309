from __future__ import annotations

# =========================
# I18N (EN as source)
# =========================
I18N: dict[str, dict[str, str]] = {
    "en": {
        # Errors
        "ERR_NO_TABLE": (
            "Cannot determine the target table. Saving and INSERT generation "
            "need a query in the form SELECT ... FROM table."
        ),
        "ERR_PARSE_NO_FROM": "The statement has no FROM clause.",
        "ERR_PARSE_SUBQUERY": "The FROM clause reads from a subquery, not a table.",
        "ERR_PARSE_SEGMENTS": "Table name '{name}' has more than two parts.",
        "ERR_PARSE_COMPOUND": "UNION/INTERSECT/EXCEPT queries cannot be filtered or sorted.",
        "ERR_PARSE_MULTI_STATEMENT": "Only a single statement can be filtered or sorted.",
        "ERR_NO_QUERY": "There is no query to re-run.",
        "ERR_SESSION_BUSY": "Changes are being saved. Try again when saving finishes.",
        "ERR_INVALID_STATE": "'{operation}' is not allowed while {state}.",
        "ERR_CELL_OUT_OF_RANGE": (
            "Cell ({row}, {col}) is outside the result ({rows} rows x {cols} columns)."
        ),
        "ERR_DISCARD_CONFIRMATION": "Unsaved changes ({count}) need confirmation before they are discarded.",
        "ERR_DB_MESSAGE": "Database message:",
        "ERR_SQL_PREVIEW": "SQL (preview):",
        "ERR_FULL_LOG": "Full details were written to the log file.",
        "MSG_UI_TRUNCATED": "[message truncated]",
        "ERR_UNKNOWN_CONNECTION": "Unknown connection: {name}",
        "ERR_XLSX_TOO_LARGE": (
            "Result is too large for XLSX: {rows} rows x {cols} columns "
            "(sheet would need {sheet_rows} rows x {sheet_cols} columns, "
            "limit {max_rows} x {max_cols}). Export to CSV instead."
        ),
        "ERR_EXPORT_FORMAT": "Unsupported export format: {fmt}",
        "ERR_IMPORT_FORMAT": "Unsupported file type. Use CSV, JSON or Excel files.",
        "ERR_IMPORT_EMPTY": "The file '{name}' has no data.",
        "ERR_IMPORT_JSON": "JSON parse error: {error}",
        "ERR_IMPORT_JSON_ARRAY": "The JSON file must contain an array.",
        "ERR_IMPORT_JSON_OBJECTS": "JSON array elements must be objects.",
        "ERR_IMPORT_NO_COLUMNS": "The file has no usable header.",
        "ERR_IMPORT_EXCEL": "Excel parse error: {error}",
        # Session messages
        "MSG_NO_CHANGES": "No changes to save.",
        "MSG_COMMIT_OK": "Saved {succeeded} change(s).",
        "MSG_COMMIT_PARTIAL": "Saved: {succeeded}, failed: {failed}. Failed changes are still pending.",
        "MSG_REFRESH_FAILED": "Changes were saved but refreshing the result failed: {error}",
        "MSG_CONFIRM_EXIT_EDIT": "Discard {count} unsaved change(s) and leave edit mode?",
        "MSG_CONFIRM_FILTER": "Filtering or sorting re-runs the query and discards {count} unsaved change(s). Continue?",
        "MSG_CONFIRM_RUN": "Running a new query discards {count} unsaved change(s). Continue?",
        "STATE_VIEWING": "viewing",
        "STATE_EDITING": "editing",
        "STATE_SAVING": "saving",
        "STATE_FILTERING": "filtering",
        # CLI
        "CLI_DESC": "Run a query, edit the result and write the changes back as SQL.",
        "CLI_URL_HELP": "SQLAlchemy database URL (e.g. sqlite:///data.db).",
        "CLI_CONNECTION_HELP": "Name of a connection from querygrid.json.",
        "CLI_DATABASE_HELP": "Database used when the query does not name one.",
        "CLI_SQL_HELP": "SELECT statement to run.",
        "CLI_FILTER_HELP": "Column filter COLUMN=TEXT (contains, case-insensitive). Repeatable.",
        "CLI_SORT_HELP": "Sort key COLUMN[:asc|desc]. Repeatable; order is priority.",
        "CLI_SET_HELP": "Stage an edit ROW:COLUMN=VALUE (ROW 0-based, COLUMN name or index). Repeatable.",
        "CLI_NULL_HELP": "Text that stands for NULL in --set values.",
        "CLI_INSERT_ROWS_HELP": "Comma-separated row indexes to print as an INSERT statement.",
        "CLI_PRINT_SQL_HELP": "Print generated UPDATE statements.",
        "CLI_COMMIT_HELP": "Execute the staged edits against the database.",
        "CLI_YES_HELP": "Answer yes to confirmation prompts.",
        "CLI_EXPORT_HELP": "Export the displayed grid to PATH (.csv, .json or .xlsx).",
        "CLI_LANG_HELP": "Interface language.",
        "CLI_LOG_DIR_HELP": "Directory for the log file.",
        "CLI_NO_CONNECTION": "Give --url or a --connection defined in querygrid.json.",
        "CLI_BAD_FILTER": "Invalid --filter '{value}', expected COLUMN=TEXT.",
        "CLI_BAD_SORT": "Invalid --sort '{value}', expected COLUMN[:asc|desc].",
        "CLI_BAD_SET": "Invalid --set '{value}', expected ROW:COLUMN=VALUE.",
        "CLI_BAD_ROWS": "Invalid row list '{value}'.",
        "CLI_UNKNOWN_COLUMN": "Unknown column: {column}",
        "CLI_ROWS_SUMMARY": "{rows} row(s)",
        "CLI_EXPORTED": "Exported {rows} row(s) to {path}",
        "CLI_CONFIRM_SUFFIX": " [y/N] ",
        "CLI_CANCELLED": "Cancelled.",
        "CLI_CONFIRM_COMMIT": "Execute {count} UPDATE statement(s)?",
        "CLI_IMPORT_HELP": "Print INSERT statements for the rows of a CSV, JSON or Excel file.",
        "CLI_TABLE_HELP": "Target table for --import-file (default: the table of --sql).",
        "CLI_NO_SQL": "Give --sql or --import-file.",
    },
    "pl": {
        "ERR_NO_TABLE": (
            "Nie można ustalić tabeli docelowej. Zapis i generowanie INSERT "
            "wymagają zapytania w postaci SELECT ... FROM tabela."
        ),
        "ERR_PARSE_NO_FROM": "Zapytanie nie ma klauzuli FROM.",
        "ERR_PARSE_SUBQUERY": "Klauzula FROM odczytuje podzapytanie, a nie tabelę.",
        "ERR_PARSE_SEGMENTS": "Nazwa tabeli '{name}' ma więcej niż dwie części.",
        "ERR_PARSE_COMPOUND": "Zapytań UNION/INTERSECT/EXCEPT nie można filtrować ani sortować.",
        "ERR_PARSE_MULTI_STATEMENT": "Filtrować i sortować można tylko pojedyncze zapytanie.",
        "ERR_NO_QUERY": "Brak zapytania do ponownego uruchomienia.",
        "ERR_SESSION_BUSY": "Trwa zapisywanie zmian. Spróbuj ponownie po jego zakończeniu.",
        "ERR_INVALID_STATE": "Operacja '{operation}' jest niedozwolona w stanie: {state}.",
        "ERR_CELL_OUT_OF_RANGE": (
            "Komórka ({row}, {col}) jest poza wynikiem ({rows} wierszy x {cols} kolumn)."
        ),
        "ERR_DISCARD_CONFIRMATION": "Niezapisane zmiany ({count}) wymagają potwierdzenia przed odrzuceniem.",
        "ERR_DB_MESSAGE": "Komunikat bazy danych:",
        "ERR_SQL_PREVIEW": "SQL (podgląd):",
        "ERR_FULL_LOG": "Pełne szczegóły zapisano w pliku logu.",
        "MSG_UI_TRUNCATED": "[komunikat skrócony]",
        "ERR_UNKNOWN_CONNECTION": "Nieznane połączenie: {name}",
        "ERR_XLSX_TOO_LARGE": (
            "Wynik jest za duży dla XLSX: {rows} wierszy x {cols} kolumn "
            "(arkusz wymagałby {sheet_rows} wierszy x {sheet_cols} kolumn, "
            "limit {max_rows} x {max_cols}). Użyj eksportu do CSV."
        ),
        "ERR_EXPORT_FORMAT": "Nieobsługiwany format eksportu: {fmt}",
        "ERR_IMPORT_FORMAT": "Nieobsługiwany typ pliku. Użyj plików CSV, JSON lub Excel.",
        "ERR_IMPORT_EMPTY": "Plik '{name}' nie zawiera danych.",
        "ERR_IMPORT_JSON": "Błąd parsowania JSON: {error}",
        "ERR_IMPORT_JSON_ARRAY": "Plik JSON musi zawierać tablicę.",
        "ERR_IMPORT_JSON_OBJECTS": "Elementy tablicy JSON muszą być obiektami.",
        "ERR_IMPORT_NO_COLUMNS": "Plik nie ma poprawnego nagłówka.",
        "ERR_IMPORT_EXCEL": "Błąd parsowania pliku Excel: {error}",
        "MSG_NO_CHANGES": "Brak zmian do zapisania.",
        "MSG_COMMIT_OK": "Zapisano zmian: {succeeded}.",
        "MSG_COMMIT_PARTIAL": "Zapisano: {succeeded}, błędy: {failed}. Nieudane zmiany nadal czekają na zapis.",
        "MSG_REFRESH_FAILED": "Zmiany zapisano, ale odświeżenie wyniku nie powiodło się: {error}",
        "MSG_CONFIRM_EXIT_EDIT": "Odrzucić niezapisane zmiany ({count}) i wyjść z trybu edycji?",
        "MSG_CONFIRM_FILTER": "Filtrowanie lub sortowanie uruchomi zapytanie ponownie i odrzuci niezapisane zmiany ({count}). Kontynuować?",
        "MSG_CONFIRM_RUN": "Nowe zapytanie odrzuci niezapisane zmiany ({count}). Kontynuować?",
        "STATE_VIEWING": "przeglądanie",
        "STATE_EDITING": "edycja",
        "STATE_SAVING": "zapisywanie",
        "STATE_FILTERING": "filtrowanie",
        "CLI_DESC": "Uruchom zapytanie, edytuj wynik i zapisz zmiany jako SQL.",
        "CLI_URL_HELP": "URL bazy danych SQLAlchemy (np. sqlite:///dane.db).",
        "CLI_CONNECTION_HELP": "Nazwa połączenia z pliku querygrid.json.",
        "CLI_DATABASE_HELP": "Baza danych używana, gdy zapytanie jej nie wskazuje.",
        "CLI_SQL_HELP": "Zapytanie SELECT do uruchomienia.",
        "CLI_FILTER_HELP": "Filtr kolumny KOLUMNA=TEKST (zawiera, bez rozróżniania wielkości liter). Można powtarzać.",
        "CLI_SORT_HELP": "Klucz sortowania KOLUMNA[:asc|desc]. Można powtarzać; kolejność to priorytet.",
        "CLI_SET_HELP": "Zmiana WIERSZ:KOLUMNA=WARTOŚĆ (WIERSZ od 0, KOLUMNA nazwa lub numer). Można powtarzać.",
        "CLI_NULL_HELP": "Tekst oznaczający NULL w wartościach --set.",
        "CLI_INSERT_ROWS_HELP": "Numery wierszy (po przecinku) do wypisania jako INSERT.",
        "CLI_PRINT_SQL_HELP": "Wypisz wygenerowane instrukcje UPDATE.",
        "CLI_COMMIT_HELP": "Wykonaj przygotowane zmiany w bazie danych.",
        "CLI_YES_HELP": "Odpowiadaj 'tak' na pytania o potwierdzenie.",
        "CLI_EXPORT_HELP": "Eksportuj wyświetlaną siatkę do PATH (.csv, .json lub .xlsx).",
        "CLI_LANG_HELP": "Język interfejsu.",
        "CLI_LOG_DIR_HELP": "Katalog pliku logu.",
        "CLI_NO_CONNECTION": "Podaj --url albo --connection zdefiniowane w querygrid.json.",
        "CLI_BAD_FILTER": "Niepoprawny --filter '{value}', oczekiwano KOLUMNA=TEKST.",
        "CLI_BAD_SORT": "Niepoprawny --sort '{value}', oczekiwano KOLUMNA[:asc|desc].",
        "CLI_BAD_SET": "Niepoprawny --set '{value}', oczekiwano WIERSZ:KOLUMNA=WARTOŚĆ.",
        "CLI_BAD_ROWS": "Niepoprawna lista wierszy '{value}'.",
        "CLI_UNKNOWN_COLUMN": "Nieznana kolumna: {column}",
        "CLI_ROWS_SUMMARY": "Wierszy: {rows}",
        "CLI_EXPORTED": "Wyeksportowano wierszy: {rows} do {path}",
        "CLI_CONFIRM_SUFFIX": " [t/N] ",
        "CLI_CANCELLED": "Anulowano.",
        "CLI_CONFIRM_COMMIT": "Wykonać instrukcje UPDATE ({count})?",
        "CLI_IMPORT_HELP": "Wypisz instrukcje INSERT dla wierszy pliku CSV, JSON lub Excel.",
        "CLI_TABLE_HELP": "Tabela docelowa dla --import-file (domyślnie tabela z --sql).",
        "CLI_NO_SQL": "Podaj --sql albo --import-file.",
    },
}


def _detect_lang() -> str:
    # Default language is English.
    return "en"


_CURRENT_LANG = _detect_lang()


def normalize_ui_lang(lang: str | None) -> str | None:
    normalized = (lang or "").lower()
    return normalized if normalized in I18N else None


def set_lang(lang: str | None) -> None:
    global _CURRENT_LANG
    _CURRENT_LANG = normalize_ui_lang(lang) or "en"


def get_lang() -> str:
    return _CURRENT_LANG


def t(key: str, **kwargs) -> str:
    # fallback: current -> en -> key
    s = I18N.get(_CURRENT_LANG, {}).get(key) or I18N["en"].get(key) or key
    return s.format(**kwargs) if kwargs else s
