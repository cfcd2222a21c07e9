from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List

import requests

from logger import logger

SERVER_ID = "server"


class BridgeError(RuntimeError):
    """Raised when the game bridge cannot be reached or answers with an error."""


@dataclass(frozen=True)
class Player:
    id: str
    name: str = ""
    language: str = "en"
    permissions: FrozenSet[str] = field(default_factory=frozenset)
    is_server: bool = False

    def has_permission(self, permission: str) -> bool:
        return permission in self.permissions


SERVER = Player(id=SERVER_ID, name="Server", is_server=True)


@dataclass(frozen=True)
class EntityHandle:
    net_id: int
    short_prefab_name: str = ""
    type_name: str = ""


def player_from_payload(payload: Dict[str, Any]) -> Player | None:
    player_id = payload.get("id")
    if player_id is None or str(player_id) == "":
        return None
    permissions = payload.get("permissions") or []
    if not isinstance(permissions, list):
        permissions = [permissions]
    return Player(
        id=str(player_id),
        name=str(payload.get("name") or ""),
        language=str(payload.get("language") or "en"),
        permissions=frozenset(str(item) for item in permissions),
    )


def entity_from_payload(payload: Any) -> EntityHandle | None:
    if not isinstance(payload, dict) or payload.get("net_id") is None:
        return None
    try:
        net_id = int(payload["net_id"])
    except (TypeError, ValueError):
        return None
    return EntityHandle(
        net_id=net_id,
        short_prefab_name=str(payload.get("short_prefab_name") or ""),
        type_name=str(payload.get("type") or ""),
    )


class GameBridgeClient:
    """HTTP client for the game server bridge: world queries, world actions and replies."""

    def __init__(self, settings: Dict[str, Any]) -> None:
        ip = settings["ip"]
        port = settings["send"]
        self.base_url = f"http://{ip}:{port}"
        self.timeout = settings.get("bridge_timeout", 10)
        logger.info("Game bridge client initialized for %s", self.base_url)

    # Replies

    def dispatch(self, responses: Iterable[Dict[str, Any]], context: Dict[str, Any]) -> None:
        for response in responses:
            action = response.get("type")
            if not action:
                logger.error("Response entry missing action type: %s", response)
                continue

            payload = response.get("payload")
            if not payload:
                payload = self._build_text_payload(action, response.get("text", ""), response.get("number"), context)
            if not payload:
                continue

            try:
                logger.info("POST %s -> %s", action, json.dumps(payload, ensure_ascii=False))
                self._request("POST", f"/{action}", payload=payload)
                logger.success("Action %s sent successfully", action)
            except BridgeError as exc:
                logger.error("Failed to call %s: %s", action, exc)

    @staticmethod
    def _build_text_payload(
        action: str, text: str, number: str | None, context: Dict[str, Any]
    ) -> Dict[str, Any] | None:
        if action == "send_player_msg":
            player = context.get("player")
            target = number or (player.id if isinstance(player, Player) and not player.is_server else None)
            if not target:
                logger.error("Missing player id for player message")
                return None
            return {"player_id": target, "message": text}

        if action == "send_console_msg":
            return {"message": text}

        logger.error("Unsupported action for automatic payload creation: %s", action)
        return None

    # World queries

    def find_player(self, player_id: str) -> Player | None:
        data = self._request("GET", f"/players/{player_id}")
        if not isinstance(data, dict):
            return None
        return player_from_payload(data)

    def spawner_state(self, name: str) -> Dict[str, Any] | None:
        data = self._request("GET", f"/spawners/{name}")
        return data if isinstance(data, dict) else None

    def find_entities(self, types: Iterable[str]) -> List[EntityHandle]:
        data = self._request("GET", "/entities", params={"types": ",".join(types)})
        if not isinstance(data, dict):
            return []
        entities: List[EntityHandle] = []
        for item in data.get("entities") or []:
            entity = entity_from_payload(item)
            if entity is not None:
                entities.append(entity)
        return entities

    # World actions

    def kill_entity(self, net_id: int, mode: str = "None") -> None:
        self._request("POST", f"/entities/{net_id}/kill", payload={"mode": mode})

    def clear_spawner(self, name: str) -> None:
        self._request("POST", f"/spawners/{name}/clear", payload={})

    def respawn(self, name: str) -> EntityHandle | None:
        data = self._request("POST", f"/spawners/{name}/respawn", payload={})
        if not isinstance(data, dict):
            return None
        return entity_from_payload(data.get("spawned"))

    def lock_entity(self, net_id: int, player_id: str, mode: str = "max_damage") -> None:
        self._request("POST", f"/entities/{net_id}/lock", payload={"player_id": player_id, "mode": mode})

    def _request(
        self,
        method: str,
        path: str,
        payload: Dict[str, Any] | None = None,
        params: Dict[str, Any] | None = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = requests.request(method, url, json=payload, params=params, timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            if not response.content:
                return {}
            return response.json()
        except requests.RequestException as exc:
            raise BridgeError(f"{method} {path} failed: {exc}") from exc
        except ValueError as exc:
            raise BridgeError(f"{method} {path} returned invalid JSON: {exc}") from exc
