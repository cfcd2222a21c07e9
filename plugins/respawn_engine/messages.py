from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

from logger import logger

from .config import MessagingConfig

DEFAULT_LANGUAGE = "en"
COLOR_END = "</color>"

DEFAULT_MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "NoPermission": "{ErrCol}You do not have permission to use this command!{ColEnd}",
        "UnableToCharge": "{ErrCol}We were unable to charge you {amount} {currency}! Please contact an admin{ColEnd}",
        "PlayerCharged": "{MsgCol}You have been charged {ColEnd}{HilCol}{amount} {currency}{ColEnd} {MsgCol}for respawning Bradley{ColEnd}",
        "UnableToRefund": "{ErrCol}Unable to refund you {amount} {currency}! Please contact an admin{ColEnd}",
        "PlayerRefunded": "{HilCol}You have been refunded {amount} {currency}{ColEnd}",
        "UnableToRespawnBradley": "{MsgCol}Unable to respawn Bradley as it's still alive or not all of its debris has been cleared{ColEnd}",
        "RespawnFailed": "{ErrCol}Bradley could not be respawned! Please contact an admin{ColEnd}",
        "BradleyHasBeenRespawned": "{HilCol}Bradley has been respawned{ColEnd}",
        "BradleyLocked": "{MsgCol}Bradley has been locked to you{ColEnd}",
    },
    "zh": {
        "NoPermission": "{ErrCol}你没有使用该命令的权限！{ColEnd}",
        "UnableToCharge": "{ErrCol}无法扣除 {amount} {currency}！请联系管理员{ColEnd}",
        "PlayerCharged": "{MsgCol}重生 Bradley 已扣除 {ColEnd}{HilCol}{amount} {currency}{ColEnd}",
        "UnableToRefund": "{ErrCol}无法退还 {amount} {currency}！请联系管理员{ColEnd}",
        "PlayerRefunded": "{HilCol}已退还 {amount} {currency}{ColEnd}",
        "UnableToRespawnBradley": "{MsgCol}Bradley 仍然存活或其残骸尚未清理完毕，无法重生{ColEnd}",
        "RespawnFailed": "{ErrCol}Bradley 重生失败！请联系管理员{ColEnd}",
        "BradleyHasBeenRespawned": "{HilCol}Bradley 已重生{ColEnd}",
        "BradleyLocked": "{MsgCol}Bradley 已锁定给你{ColEnd}",
    },
}


class MessageTable:
    """Keyed message templates per language with color and value placeholders."""

    def __init__(self, messaging: MessagingConfig, messages: Dict[str, Dict[str, str]] | None = None) -> None:
        self.messaging = messaging
        self.messages = messages if messages is not None else {lang: dict(table) for lang, table in DEFAULT_MESSAGES.items()}

    def template(self, key: str, language: str | None = None) -> str:
        for lang in self._candidates(language):
            table = self.messages.get(lang) or {}
            if key in table:
                return table[key]
        logger.error("Missing message template %s", key)
        return key

    def format(self, key: str, language: str | None = None, **values: Any) -> str:
        text = self.template(key, language)
        for name, value in values.items():
            text = text.replace("{" + name + "}", str(value))
        return self.colorize(text)

    def colorize(self, text: str) -> str:
        return (
            text.replace("{MsgCol}", self.messaging.msg_color)
            .replace("{HilCol}", self.messaging.hil_color)
            .replace("{ErrCol}", self.messaging.err_color)
            .replace("{ColEnd}", COLOR_END)
        )

    @staticmethod
    def _candidates(language: str | None) -> list[str]:
        candidates: list[str] = []
        if language:
            lowered = language.lower()
            candidates.append(lowered)
            base = lowered.replace("_", "-").split("-", 1)[0]
            if base != lowered:
                candidates.append(base)
        candidates.append(DEFAULT_LANGUAGE)
        return candidates


def load_messages(lang_dir: Path, plugin: str) -> Dict[str, Dict[str, str]]:
    """Read per-language message files, writing or completing them from the built-in tables."""
    messages: Dict[str, Dict[str, str]] = {}
    for language, defaults in DEFAULT_MESSAGES.items():
        path = lang_dir / language / f"{plugin}.json"
        table = _read_table(path)
        missing = [key for key in defaults if key not in table]
        for key in missing:
            table[key] = defaults[key]
        if missing:
            _write_table(path, table)
        messages[language] = table

    if lang_dir.exists():
        for path in sorted(lang_dir.glob(f"*/{plugin}.json")):
            language = path.parent.name.lower()
            if language not in messages:
                messages[language] = _read_table(path)
    return messages


def _read_table(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (json.JSONDecodeError, OSError) as exc:
        logger.error("Ignoring unreadable message file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.error("Ignoring message file %s: expected a JSON object", path)
        return {}
    return {str(key): str(value) for key, value in data.items()}


def _write_table(path: Path, table: Dict[str, str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(table, handle, ensure_ascii=False, indent=2)
