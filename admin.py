from __future__ import annotations

from typing import Any, Dict, List

from game_bridge import Player
from logger import logger


class AdminHandler:
    """Processes commands reserved for super administrators and the server console."""

    def __init__(self, plugins: Any) -> None:
        self.plugins = plugins
        self._commands = {
            "ping": self._ping,
            "status": self._status,
            "plugins": self._list_plugins,
            "reload": self._reload,
            "unload": self._unload,
        }

    def handle(self, params: List[str], context: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not params:
            logger.error("Admin command invoked without sub-command")
            return [self._make_text_response(context, "Missing admin sub-command")]

        sub_command = params[0].lower()
        handler = self._commands.get(sub_command)
        if handler is None:
            logger.info("Unknown admin sub-command: %s", sub_command)
            return self._unknown(sub_command, context)
        logger.info("Admin sub-command resolved: %s", sub_command)
        return handler(params[1:], context)

    def _ping(self, _: List[str], context: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [self._make_text_response(context, "pong")]

    def _status(self, _: List[str], context: Dict[str, Any]) -> List[Dict[str, Any]]:
        details = f"source={context.get('source')} user={context.get('user_id')}"
        loaded = len(self.plugins.loaded_plugins())
        return [self._make_text_response(context, f"bot online, {loaded} plugins ({details})")]

    def _list_plugins(self, _: List[str], context: Dict[str, Any]) -> List[Dict[str, Any]]:
        names = self.plugins.loaded_plugins()
        lines = [f"Loaded plugins: {', '.join(names) if names else 'none'}"]
        permissions = sorted(self.plugins.permissions)
        if permissions:
            lines.append(f"Permissions: {', '.join(permissions)}")
        return [self._make_text_response(context, "\n".join(lines))]

    def _reload(self, params: List[str], context: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not params:
            return [self._make_text_response(context, "Usage: admin reload <plugin>")]
        name = params[0]
        if self.plugins.reload(name):
            return [self._make_text_response(context, f"Plugin {name} reloaded")]
        return [self._make_text_response(context, f"Unable to reload plugin {name}")]

    def _unload(self, params: List[str], context: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not params:
            return [self._make_text_response(context, "Usage: admin unload <plugin>")]
        name = params[0]
        if self.plugins.unload(name):
            return [self._make_text_response(context, f"Plugin {name} unloaded")]
        return [self._make_text_response(context, f"Plugin {name} is not loaded")]

    def _unknown(self, attempted: str, context: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [
            self._make_text_response(
                context,
                f"Unknown admin command: {attempted}. Try ping/status/plugins/reload/unload.",
            )
        ]

    @staticmethod
    def _make_text_response(context: Dict[str, Any], text: str) -> Dict[str, Any]:
        player = context.get("player")
        if not isinstance(player, Player) or player.is_server:
            return {"type": "send_console_msg", "text": text}
        return {"type": "send_player_msg", "number": player.id, "text": text}
