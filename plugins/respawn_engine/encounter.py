from __future__ import annotations

from typing import Any

from game_bridge import BridgeError, EntityHandle, entity_from_payload
from logger import logger

from .services import EncounterUnavailable

SPAWNER_NAME = "bradley"
PREFAB_MARKER = "bradley"
REMNANT_TYPES = ("HelicopterDebris", "LockedByEntCrate")
KILL_MODE = "None"


class BradleyEncounter:
    """Encounter state of the Bradley APC as seen through the game bridge.

    The encounter counts as active while the spawner tracks a live APC, or
    while any debris or locked crate it left behind still exists.
    """

    def __init__(self, bridge: Any, spawner: str = SPAWNER_NAME) -> None:
        self.bridge = bridge
        self.spawner = spawner

    def is_active(self) -> bool:
        try:
            state = self.bridge.spawner_state(self.spawner)
            if state is not None and state.get("spawned"):
                return True
            remnants = self.bridge.find_entities(REMNANT_TYPES)
        except BridgeError as exc:
            raise EncounterUnavailable(str(exc)) from exc

        for entity in remnants:
            if entity.type_name and entity.type_name not in REMNANT_TYPES:
                continue
            if PREFAB_MARKER in entity.short_prefab_name.lower():
                return True
        return False

    def force_respawn(self) -> EntityHandle | None:
        try:
            state = self.bridge.spawner_state(self.spawner)
            if state is None:
                logger.error("No Bradley spawner found!")
                return None

            spawned = state.get("spawned")
            if isinstance(spawned, dict) and spawned.get("net_id") is not None:
                current = entity_from_payload(spawned)
                if current is None:
                    logger.warning("Spawner reported an unusable Bradley entry: %s", spawned)
                else:
                    self.bridge.kill_entity(current.net_id, mode=KILL_MODE)

            self.bridge.clear_spawner(self.spawner)
            instance = self.bridge.respawn(self.spawner)
        except BridgeError as exc:
            raise EncounterUnavailable(str(exc)) from exc

        if instance is None:
            logger.error("Bradley spawner did not report a new instance")
        return instance
