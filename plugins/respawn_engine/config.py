"""Persisted configuration of the respawn plugin.

The file is versioned. Files written by an older release, including the flat
``Messaging``/``Options`` layout of the 0.1 series, are upgraded in place: every
value the operator set is kept under its new key, missing keys get defaults and
the upgraded file is written back.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

from logger import logger

CONFIG_VERSION = "0.2.0"


class ConfigError(RuntimeError):
    """Raised when the plugin configuration cannot be read."""


@dataclass(frozen=True)
class MessagingConfig:
    msg_color: str = "<color=#939393>"
    hil_color: str = "<color=orange>"
    err_color: str = "<color=red>"


@dataclass(frozen=True)
class WorkflowConfig:
    use_server_rewards: bool = True
    charge_on_server_command: bool = False
    charge_on_player_command: bool = False
    refund_on_server_command: bool = True
    refund_on_player_command: bool = False
    lock_bradley_on_respawn: bool = False
    respawn_costs: int = 10000
    currency_symbol: str = "RP"


@dataclass(frozen=True)
class PluginConfig:
    version: str
    messaging: MessagingConfig
    options: WorkflowConfig


DEFAULT_CONFIG: Dict[str, Any] = {
    "version": CONFIG_VERSION,
    "messaging": {
        "msg_color": MessagingConfig.msg_color,
        "hil_color": MessagingConfig.hil_color,
        "err_color": MessagingConfig.err_color,
    },
    "options": {
        "use_server_rewards": WorkflowConfig.use_server_rewards,
        "charge_on_server_command": WorkflowConfig.charge_on_server_command,
        "charge_on_player_command": WorkflowConfig.charge_on_player_command,
        "refund_on_server_command": WorkflowConfig.refund_on_server_command,
        "refund_on_player_command": WorkflowConfig.refund_on_player_command,
        "lock_bradley_on_respawn": WorkflowConfig.lock_bradley_on_respawn,
        "respawn_costs": WorkflowConfig.respawn_costs,
        "currency_symbol": WorkflowConfig.currency_symbol,
    },
}

# 0.1.x section/key -> current section/key
LEGACY_KEYS: Dict[str, Tuple[str, Dict[str, str]]] = {
    "Messaging": (
        "messaging",
        {"MsgColor": "msg_color", "HilColor": "hil_color", "ErrColor": "err_color"},
    ),
    "Options": (
        "options",
        {
            "UseServerRewards": "use_server_rewards",
            "ChargeOnServerCommand": "charge_on_server_command",
            "ChargeOnPlayerCommand": "charge_on_player_command",
            "RefundOnServerCommand": "refund_on_server_command",
            "RefundOnPlayerCommand": "refund_on_player_command",
            "LockBradleyOnRespawn": "lock_bradley_on_respawn",
            "RespawnCosts": "respawn_costs",
            "CurrencySymbol": "currency_symbol",
        },
    ),
}


def default_config() -> Dict[str, Any]:
    return copy.deepcopy(DEFAULT_CONFIG)


def _from_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    upgraded: Dict[str, Any] = {}
    for legacy_section, (section, keys) in LEGACY_KEYS.items():
        values = data.get(legacy_section)
        if not isinstance(values, dict):
            continue
        target = upgraded.setdefault(section, {})
        for legacy_key, key in keys.items():
            if legacy_key in values:
                target[key] = values[legacy_key]
    return upgraded


def _merge_defaults(obj: Dict[str, Any], defaults: Dict[str, Any], added: List[str], path: str = "") -> None:
    for key, value in defaults.items():
        child_path = f"{path}.{key}" if path else key
        if key not in obj:
            obj[key] = copy.deepcopy(value)
            added.append(child_path)
        elif isinstance(obj[key], dict) and isinstance(value, dict):
            _merge_defaults(obj[key], value, added, child_path)


def _version_tuple(value: Any) -> Tuple[int, ...]:
    try:
        return tuple(int(part) for part in str(value).split("."))
    except ValueError:
        return (0,)


def migrate_config(data: Dict[str, Any]) -> Tuple[Dict[str, Any], bool]:
    """Bring a stored config up to ``CONFIG_VERSION``. Returns (config, changed).

    A config written by a newer release is used as it is, with defaults filled
    in memory only, and is never reported as changed.
    """
    stored_version = data.get("version")
    if stored_version is not None and _version_tuple(stored_version) > _version_tuple(CONFIG_VERSION):
        logger.warning(
            "Config version %s is newer than %s, using it without rewriting the file",
            stored_version,
            CONFIG_VERSION,
        )
        current = copy.deepcopy(data)
        _merge_defaults(current, DEFAULT_CONFIG, [])
        return current, False

    if any(section in data for section in LEGACY_KEYS):
        upgraded = _from_legacy(data)
    else:
        upgraded = copy.deepcopy(data)

    added: List[str] = []
    _merge_defaults(upgraded, DEFAULT_CONFIG, added)
    upgraded["version"] = CONFIG_VERSION
    if added:
        logger.info("Config keys added with defaults: %s", ", ".join(added))
    return upgraded, upgraded != data


def _read_bool(section: Dict[str, Any], key: str) -> bool:
    value = section[key]
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in {"true", "false"}:
        return value.lower() == "true"
    raise ConfigError(f"options.{key} must be true or false, got {value!r}")


def _read_int(section: Dict[str, Any], key: str) -> int:
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"options.{key} must be a whole number, got {value!r}")
    try:
        number = int(value)
    except ValueError as exc:
        raise ConfigError(f"options.{key} must be a whole number, got {value!r}") from exc
    if number < 0:
        raise ConfigError(f"options.{key} must not be negative")
    return number


def parse_config(data: Dict[str, Any]) -> PluginConfig:
    messaging = data.get("messaging")
    options = data.get("options")
    if not isinstance(messaging, dict) or not isinstance(options, dict):
        raise ConfigError("config must contain 'messaging' and 'options' objects")
    return PluginConfig(
        version=str(data.get("version", CONFIG_VERSION)),
        messaging=MessagingConfig(
            msg_color=str(messaging["msg_color"]),
            hil_color=str(messaging["hil_color"]),
            err_color=str(messaging["err_color"]),
        ),
        options=WorkflowConfig(
            use_server_rewards=_read_bool(options, "use_server_rewards"),
            charge_on_server_command=_read_bool(options, "charge_on_server_command"),
            charge_on_player_command=_read_bool(options, "charge_on_player_command"),
            refund_on_server_command=_read_bool(options, "refund_on_server_command"),
            refund_on_player_command=_read_bool(options, "refund_on_player_command"),
            lock_bradley_on_respawn=_read_bool(options, "lock_bradley_on_respawn"),
            respawn_costs=_read_int(options, "respawn_costs"),
            currency_symbol=str(options["currency_symbol"]),
        ),
    )


def save_config(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(data, handle, ensure_ascii=False, indent=2)


def load_config(path: Path) -> PluginConfig:
    if not path.exists():
        logger.info("Creating a new configuration file %s", path)
        data = default_config()
        save_config(path, data)
        return parse_config(data)

    try:
        with path.open("r", encoding="utf-8") as handle:
            stored = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(stored, dict):
        raise ConfigError(f"{path} must contain a JSON object")

    data, changed = migrate_config(stored)
    config = parse_config(data)
    if changed:
        save_config(path, data)
        logger.warning(
            "Config file %s has been updated from version %s to %s",
            path,
            stored.get("version", "0.1.x"),
            CONFIG_VERSION,
        )
    return config
