from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from .logs import LOGGER

APP_CONFIG_NAME = "querygrid.json"
DEFAULT_HISTORY_LIMIT = 50
DEFAULT_IMPORT_BATCH_SIZE = 100


def get_data_dir() -> str:
    override = os.environ.get("QUERYGRID_HOME")
    if override:
        return os.path.abspath(os.path.expanduser(override))
    return str(Path.home() / ".querygrid")


def app_config_path() -> str:
    return os.path.join(get_data_dir(), APP_CONFIG_NAME)


def log_dir() -> str:
    return os.path.join(get_data_dir(), "logs")


def load_app_config(path: str | None = None) -> dict:
    path = path or app_config_path()
    if not os.path.exists(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        LOGGER.exception("Cannot read config file %s", path)
        return {}
    return data if isinstance(data, dict) else {}


def save_app_config(cfg: dict, path: str | None = None) -> None:
    if not isinstance(cfg, dict):
        cfg = {}

    path = path or app_config_path()
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    tmp_path = f"{path}.tmp"
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(cfg, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError:
                pass


def _positive_int(value, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(1, number)


@dataclass
class AppSettings:
    connections: dict[str, str] = field(default_factory=dict)
    ui_lang: str | None = None
    history_limit: int = DEFAULT_HISTORY_LIMIT
    log_full_sql: bool = False
    import_batch_size: int = DEFAULT_IMPORT_BATCH_SIZE
    csv_profile: dict = field(default_factory=dict)

    @classmethod
    def from_config(cls, cfg: dict | None) -> "AppSettings":
        cfg = cfg if isinstance(cfg, dict) else {}
        raw_connections = cfg.get("connections")
        connections = {}
        if isinstance(raw_connections, dict):
            connections = {
                str(name): str(url)
                for name, url in raw_connections.items()
                if isinstance(url, str) and url.strip()
            }
        ui_lang = cfg.get("ui_lang")
        csv_profile = cfg.get("csv_profile")
        return cls(
            connections=connections,
            ui_lang=ui_lang if isinstance(ui_lang, str) else None,
            history_limit=_positive_int(cfg.get("history_limit"), DEFAULT_HISTORY_LIMIT),
            log_full_sql=bool(cfg.get("log_full_sql", False)),
            import_batch_size=_positive_int(cfg.get("import_batch_size"), DEFAULT_IMPORT_BATCH_SIZE),
            csv_profile=csv_profile if isinstance(csv_profile, dict) else {},
        )


def load_settings(path: str | None = None) -> AppSettings:
    return AppSettings.from_config(load_app_config(path))


def persist_ui_lang(ui_lang: str, path: str | None = None) -> None:
    cfg = load_app_config(path)
    cfg["ui_lang"] = ui_lang
    save_app_config(cfg, path)
