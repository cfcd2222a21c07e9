from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List

from game_bridge import SERVER, Player
from logger import logger
from plugins.respawn_engine import (
    COMMAND,
    PERMISSION_NOLOCK,
    PERMISSION_USE,
    BradleyEncounter,
    MessageTable,
    Notice,
    PluginConfig,
    RespawnWorkflow,
    load_config,
    load_messages,
)

NAME = "RespawnBradley"
COMMAND_ALIASES = {COMMAND}

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
CONFIG_FILE = DATA_DIR / "respawnbradley.json"
LANG_DIR = DATA_DIR / "lang"

_run_lock = threading.Lock()
_config: PluginConfig | None = None
_messages: MessageTable | None = None
_workflow: RespawnWorkflow | None = None


def init(manager: Any) -> None:
    global _config, _messages, _workflow

    manager.register_permission(PERMISSION_USE, NAME)
    manager.register_permission(PERMISSION_NOLOCK, NAME)

    _config = load_config(CONFIG_FILE)
    _messages = MessageTable(_config.messaging, load_messages(LANG_DIR, COMMAND))
    if manager.bridge is None:
        logger.error("%s has no game bridge, the %s command is disabled", NAME, COMMAND)
        _workflow = None
        return
    _workflow = RespawnWorkflow(
        config=_config.options,
        encounter=BradleyEncounter(manager.bridge),
        players=manager.bridge,
        services=manager,
    )


def unload() -> None:
    global _config, _messages, _workflow
    _config = None
    _messages = None
    _workflow = None


def handle(
    command: str, params: List[str], context: Dict[str, Any], settings: Dict[str, Any]
) -> List[Dict[str, Any]] | None:
    if command not in COMMAND_ALIASES:
        return None

    caller = context.get("player")
    if not isinstance(caller, Player):
        caller = SERVER

    workflow, config, messages = _workflow, _config, _messages
    if workflow is None or config is None or messages is None:
        logger.error("%s invoked by %s but %s is not initialized", COMMAND, caller.id, NAME)
        return []

    with _run_lock:
        result = workflow.execute(caller, params)

    logger.info(
        "%s by %s -> %s%s",
        COMMAND,
        caller.id,
        result.kind.value,
        f" ({result.reason})" if result.reason else "",
    )
    return [_notice_response(notice, config, messages) for notice in result.notices]


def _notice_response(notice: Notice, config: PluginConfig, messages: MessageTable) -> Dict[str, Any]:
    text = messages.format(
        notice.key,
        notice.recipient.language,
        amount=config.options.respawn_costs,
        currency=config.options.currency_symbol,
    )
    if notice.recipient.is_server:
        return {"type": "send_console_msg", "text": text}
    return {"type": "send_player_msg", "number": notice.recipient.id, "text": text}
