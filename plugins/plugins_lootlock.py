from __future__ import annotations

from typing import Any, Dict, List

from game_bridge import EntityHandle
from logger import logger

NAME = "LootLock"
LOCK_MODE = "max_damage"


class BridgeLootLock:
    """Marks an entity as damage-locked to one player through the game bridge."""

    def __init__(self, bridge: Any) -> None:
        self.bridge = bridge

    def apply_max_damage_lock(self, instance: EntityHandle, attributed_to: str) -> None:
        self.bridge.lock_entity(instance.net_id, attributed_to, mode=LOCK_MODE)
        logger.info("Entity %s locked to %s", instance.net_id, attributed_to)


def init(manager: Any) -> None:
    if manager.bridge is None:
        logger.error("%s needs the game bridge, lock service not provided", NAME)
        return
    manager.provide(NAME, BridgeLootLock(manager.bridge), owner=NAME)


def handle(
    command: str, params: List[str], context: Dict[str, Any], settings: Dict[str, Any]
) -> List[Dict[str, Any]] | None:
    return None
