from __future__ import annotations

import json
import logging

import pytest

from plugins.respawn_engine.config import (
    CONFIG_VERSION,
    ConfigError,
    WorkflowConfig,
    default_config,
    load_config,
    migrate_config,
)

LEGACY = {
    "Messaging": {"MsgColor": "<color=#ffffff>", "HilColor": "<color=yellow>", "ErrColor": "<color=#ff0000>"},
    "Options": {
        "UseServerRewards": False,
        "ChargeOnServerCommand": True,
        "ChargeOnPlayerCommand": True,
        "RefundOnServerCommand": False,
        "RefundOnPlayerCommand": True,
        "RespawnCosts": 2500,
        "CurrencySymbol": "Scrap",
    },
}


def test_missing_file_is_created_with_defaults(tmp_path) -> None:
    path = tmp_path / "respawnbradley.json"

    config = load_config(path)

    assert config.options == WorkflowConfig()
    assert config.version == CONFIG_VERSION
    assert json.loads(path.read_text(encoding="utf-8")) == default_config()


def test_legacy_file_is_migrated_and_rewritten(tmp_path, caplog) -> None:
    path = tmp_path / "respawnbradley.json"
    path.write_text(json.dumps(LEGACY), encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="respawnbot"):
        config = load_config(path)

    assert config.messaging.msg_color == "<color=#ffffff>"
    assert config.messaging.hil_color == "<color=yellow>"
    assert config.options.use_server_rewards is False
    assert config.options.charge_on_server_command is True
    assert config.options.charge_on_player_command is True
    assert config.options.refund_on_server_command is False
    assert config.options.refund_on_player_command is True
    assert config.options.lock_bradley_on_respawn is False
    assert config.options.respawn_costs == 2500
    assert config.options.currency_symbol == "Scrap"

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored["version"] == CONFIG_VERSION
    assert "Options" not in stored
    assert stored["options"]["respawn_costs"] == 2500
    assert "has been updated" in caplog.text


def test_current_file_is_left_alone(tmp_path, caplog) -> None:
    path = tmp_path / "respawnbradley.json"
    data = default_config()
    data["options"]["respawn_costs"] = 42
    text = json.dumps(data, indent=4)
    path.write_text(text, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="respawnbot"):
        config = load_config(path)

    assert config.options.respawn_costs == 42
    assert path.read_text(encoding="utf-8") == text
    assert "has been updated" not in caplog.text


def test_older_version_gains_new_keys_without_losing_values() -> None:
    data = default_config()
    data["version"] = "0.1.9"
    data["options"]["currency_symbol"] = "Gold"
    del data["options"]["lock_bradley_on_respawn"]

    upgraded, changed = migrate_config(data)

    assert changed is True
    assert upgraded["version"] == CONFIG_VERSION
    assert upgraded["options"]["currency_symbol"] == "Gold"
    assert upgraded["options"]["lock_bradley_on_respawn"] is False


def test_newer_version_is_not_downgraded(tmp_path, caplog) -> None:
    path = tmp_path / "respawnbradley.json"
    data = default_config()
    data["version"] = "9.0.0"
    data["options"]["respawn_costs"] = 7
    del data["options"]["currency_symbol"]
    text = json.dumps(data, indent=4)
    path.write_text(text, encoding="utf-8")

    with caplog.at_level(logging.WARNING, logger="respawnbot"):
        config = load_config(path)

    assert config.version == "9.0.0"
    assert config.options.respawn_costs == 7
    assert config.options.currency_symbol == "RP"
    assert path.read_text(encoding="utf-8") == text
    assert "newer than" in caplog.text
    assert "has been updated" not in caplog.text


@pytest.mark.parametrize("version", ["0.2.1", "0.10.0", "1.0"])
def test_migrate_leaves_newer_versions_unchanged(version) -> None:
    data = default_config()
    data["version"] = version

    upgraded, changed = migrate_config(data)

    assert changed is False
    assert upgraded["version"] == version


def test_invalid_json_raises(tmp_path) -> None:
    path = tmp_path / "respawnbradley.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.parametrize(
    "key, value",
    [("charge_on_player_command", "maybe"), ("respawn_costs", -5), ("respawn_costs", "lots"), ("respawn_costs", True)],
)
def test_invalid_option_values_raise(tmp_path, key, value) -> None:
    path = tmp_path / "respawnbradley.json"
    data = default_config()
    data["options"][key] = value
    path.write_text(json.dumps(data), encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)
