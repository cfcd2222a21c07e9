from __future__ import annotations

from typing import Any, Dict, List, Tuple

from admin import AdminHandler
from game_bridge import SERVER, GameBridgeClient, Player, player_from_payload
from logger import logger
from plugin_loader import PluginManager

COMMAND_PREFIXES = ("/", "!")


class MessageRouter:
    """Routes incoming bridge events to admin handlers or plugins."""

    def __init__(
        self,
        settings: Dict[str, Any],
        bridge: GameBridgeClient | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        self.settings = settings
        self.bridge = bridge or GameBridgeClient(settings)
        self.plugins = plugins or PluginManager(settings, bridge=self.bridge)
        self.admin_handler = AdminHandler(self.plugins)

    def process_event(self, event: Dict[str, Any]) -> None:
        if event.get("post_type") != "command":
            logger.info("Ignoring non-command event: %s", event.get("post_type"))
            return

        origin = event.get("origin")
        if origin not in {"player", "server"}:
            logger.info("Unsupported command origin: %s", origin)
            return

        caller = self._resolve_caller(origin, event.get("player"))
        if caller is None:
            logger.error("Event missing player: %s", event)
            return

        parsed = self._parse_event(event)
        if not parsed:
            logger.info("Event from %s carried no command", caller.id)
            return

        command, params = parsed
        logger.info("Command parsed: %s params=%s origin=%s", command, params, origin)

        context = {
            "source": origin,
            "player": caller,
            "user_id": caller.id,
            "params": params,
            "settings": self.settings,
        }

        responses: List[Dict[str, Any]] | None
        if command == "admin":
            responses = self._handle_admin(params, context)
        else:
            responses = self.plugins.dispatch(command, params, context)

        if responses:
            self.bridge.dispatch(responses, context)
        else:
            logger.info("No responses generated for command %s", command)

    def _handle_admin(self, params: List[str], context: Dict[str, Any]) -> List[Dict[str, Any]]:
        caller: Player = context["player"]
        supers = {str(uid) for uid in self.settings.get("superadmin", [])}
        if not caller.is_server and caller.id not in supers:
            logger.info("Unauthorized admin attempt from %s", caller.id)
            return [
                {
                    "type": "send_player_msg",
                    "number": caller.id,
                    "text": "You are not authorized to use admin commands.",
                }
            ]
        return self.admin_handler.handle(params, context)

    @staticmethod
    def _resolve_caller(origin: str, payload: Any) -> Player | None:
        if origin == "server":
            return SERVER
        if not isinstance(payload, dict):
            return None
        return player_from_payload(payload)

    @classmethod
    def _parse_event(cls, event: Dict[str, Any]) -> Tuple[str, List[str]] | None:
        command = event.get("command")
        if isinstance(command, str) and command.strip():
            args = event.get("args") or []
            if not isinstance(args, list):
                args = [args]
            name = command.strip().lstrip("".join(COMMAND_PREFIXES)).lower()
            if not name:
                return None
            return name, [str(arg) for arg in args]
        return cls._parse_command(str(event.get("raw_message") or "").strip())

    @staticmethod
    def _parse_command(message: str) -> Tuple[str, List[str]] | None:
        if not message:
            return None
        for prefix in COMMAND_PREFIXES:
            if message.startswith(prefix):
                trimmed = message[len(prefix) :].strip()
                if not trimmed:
                    return None
                parts = trimmed.split()
                if not parts:
                    return None
                command = parts[0].lower()
                params = parts[1:]
                return command, params
        return None
