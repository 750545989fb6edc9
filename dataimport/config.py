from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml


@dataclass(frozen=True)
class Settings:
    # Paths
    log_dir: str = "./logs"
    report_dir: str = "./reports"
    db_path: str = "./data/import.sqlite3"

    # Logging
    log_level: str = "INFO"

    # CSV
    delimiter: str = ";"
    enclosure: str = '"'
    escape: str = "\\"
    header_row: int | None = 0
    encoding: str = "utf-8-sig"
    on_mismatch: str = "skip"

    # Import
    stop_on_error: bool = False
    report_items_limit: int = 200


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


ENV_NAMES = {
    "log_dir": "DATAIMPORT_LOG_DIR",
    "report_dir": "DATAIMPORT_REPORT_DIR",
    "db_path": "DATAIMPORT_DB_PATH",
    "log_level": "DATAIMPORT_LOG_LEVEL",
    "delimiter": "DATAIMPORT_DELIMITER",
    "enclosure": "DATAIMPORT_ENCLOSURE",
    "escape": "DATAIMPORT_ESCAPE",
    "header_row": "DATAIMPORT_HEADER_ROW",
    "encoding": "DATAIMPORT_ENCODING",
    "on_mismatch": "DATAIMPORT_ON_MISMATCH",
    "stop_on_error": "DATAIMPORT_STOP_ON_ERROR",
    "report_items_limit": "DATAIMPORT_REPORT_ITEMS_LIMIT",
}


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    # управляющие символы CSV могут быть пробельными, поэтому без strip
    v = os.getenv(name)
    if v is None or v == "":
        return None
    return v


def parse_int(v: str | None) -> int | None:
    if v is None:
        return None
    return int(v)


def parse_bool(v: str | None) -> bool | None:
    if v is None:
        return None
    vv = v.strip().lower()
    if vv in ("1", "true", "yes", "y"):
        return True
    if vv in ("0", "false", "no", "n"):
        return False
    raise ValueError(f"Invalid boolean env value: {v}")


def as_bool(v) -> bool:
    """
    Булево из YAML/ENV: bool как есть, строки через parse_bool, 0/1.
    """
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        return bool(parse_bool(v))
    if isinstance(v, int) and v in (0, 1):
        return bool(v)
    raise ValueError(f"Invalid boolean value: {v!r}")


def parse_header_row(v) -> int | None:
    """
    Номер строки заголовка: целое >= 0 или none/off (без заголовка).
    """
    if v is None:
        return None
    if isinstance(v, bool):
        raise ValueError(f"Invalid header row value: {v}")
    if isinstance(v, int):
        value = v
    else:
        text = str(v).strip().lower()
        if text in ("none", "off", "no", "false", "-"):
            return None
        value = int(text)
    if value < 0:
        raise ValueError(f"Header row must be >= 0, got {value}")
    return value


def load_settings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    # 2) env
    env = {key: _env_get(name) for key, name in ENV_NAMES.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")

    # merge config -> env -> cli
    merged = {key: cfg.get(key, getattr(defaults, key)) for key in ENV_NAMES}
    if "header_row" in cfg:
        merged["header_row"] = parse_header_row(cfg["header_row"])

    # apply env
    for key in ("log_dir", "report_dir", "db_path", "log_level", "delimiter", "enclosure", "escape", "encoding", "on_mismatch"):
        if env[key] is not None:
            merged[key] = env[key]
    if env["header_row"] is not None:
        merged["header_row"] = parse_header_row(env["header_row"])
    if env["stop_on_error"] is not None:
        merged["stop_on_error"] = parse_bool(env["stop_on_error"])
    if env["report_items_limit"] is not None:
        merged["report_items_limit"] = parse_int(env["report_items_limit"])

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        if k == "header_row":
            # "none" с CLI явно отключает заголовок
            merged[k] = parse_header_row(v)
            continue
        merged[k] = v

    on_mismatch = str(merged["on_mismatch"]).strip().lower()
    if on_mismatch not in ("skip", "error"):
        raise ValueError(f"Invalid on_mismatch value: {merged['on_mismatch']}")

    settings = Settings(
        log_dir=str(merged["log_dir"]),
        report_dir=str(merged["report_dir"]),
        db_path=str(merged["db_path"]),
        log_level=str(merged["log_level"]),
        delimiter=str(merged["delimiter"]),
        enclosure=str(merged["enclosure"]),
        escape=str(merged["escape"]),
        header_row=merged["header_row"],
        encoding=str(merged["encoding"]),
        on_mismatch=on_mismatch,
        stop_on_error=as_bool(merged["stop_on_error"]),
        report_items_limit=int(merged["report_items_limit"]),
    )

    return LoadedSettings(settings=settings, sources_used=sources)
