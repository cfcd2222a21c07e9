import json
from pathlib import Path
from typing import Any, Dict, List

from logger import LEVELS, logger

SETTINGS_PATH = Path(__file__).parent / "settings.json"
DEFAULT_WORKERS = 4
DEFAULT_BRIDGE_TIMEOUT = 10
DEFAULT_LOG_LEVEL = "INFO"


class SettingsError(RuntimeError):
    """Raised when settings.json cannot be parsed."""


def _ensure_list(value: Any, default: List[str]) -> List[str]:
    if value is None:
        return list(default)
    if isinstance(value, list):
        return [str(item) for item in value]
    return [str(value)]


def load_settings(path: Path | str | None = None) -> Dict[str, Any]:
    config_path = Path(path) if path else SETTINGS_PATH
    if not config_path.exists():
        raise SettingsError(f"settings file not found: {config_path}")

    logger.info("Loading settings from %s", config_path)
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise SettingsError(f"settings file is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise SettingsError("settings file must contain a JSON object")

    required_keys = ["type", "listen", "send", "ip", "superadmin"]
    missing = [key for key in required_keys if key not in data]
    if missing:
        raise SettingsError(f"Missing required keys in settings: {', '.join(missing)}")

    data["superadmin"] = _ensure_list(data.get("superadmin"), [])

    workers = data.get("workers", DEFAULT_WORKERS)
    data["workers"] = workers if isinstance(workers, int) and workers > 0 else DEFAULT_WORKERS

    timeout = data.get("bridge_timeout", DEFAULT_BRIDGE_TIMEOUT)
    data["bridge_timeout"] = timeout if isinstance(timeout, (int, float)) and timeout > 0 else DEFAULT_BRIDGE_TIMEOUT

    log_level = str(data.get("log_level", DEFAULT_LOG_LEVEL)).upper()
    if log_level not in LEVELS:
        raise SettingsError(f"Unknown log_level {data['log_level']!r}, expected one of {', '.join(LEVELS)}")
    data["log_level"] = log_level

    if str(data["type"]).lower() != "http":
        raise SettingsError("Current implementation only supports HTTP transport")

    return data
