from __future__ import annotations

from typing import Any, Dict, List, Tuple

import pytest

from game_bridge import EntityHandle, Player
from plugins.respawn_engine.config import WorkflowConfig
from plugins.respawn_engine.services import EncounterUnavailable, LEDGER_PLUGIN, LOCK_PLUGIN
from plugins.respawn_engine.workflow import PERMISSION_USE, RespawnWorkflow

BRADLEY = EntityHandle(net_id=42, short_prefab_name="bradleyapc")


class FakeEncounter:
    def __init__(self, active: bool = False, instance: EntityHandle | None = BRADLEY) -> None:
        self.active = active
        self.instance = instance
        self.unavailable = False
        self.state_error: Exception | None = None
        self.respawn_unavailable = False
        self.respawn_error: Exception | None = None
        self.is_active_calls = 0
        self.respawn_calls = 0

    def is_active(self) -> bool:
        self.is_active_calls += 1
        if self.unavailable:
            raise EncounterUnavailable("bridge down")
        if self.state_error is not None:
            raise self.state_error
        return self.active

    def force_respawn(self) -> EntityHandle | None:
        self.respawn_calls += 1
        if self.respawn_unavailable:
            raise EncounterUnavailable("bridge down")
        if self.respawn_error is not None:
            raise self.respawn_error
        return self.instance


class FakeLedger:
    def __init__(self, debit_result: Any = True, credit_result: Any = True) -> None:
        self.debit_result = debit_result
        self.credit_result = credit_result
        self.debits: List[Tuple[str, int]] = []
        self.credits: List[Tuple[str, int]] = []

    def debit(self, player_id: str, amount: int) -> bool:
        self.debits.append((player_id, amount))
        if isinstance(self.debit_result, Exception):
            raise self.debit_result
        return self.debit_result

    def credit(self, player_id: str, amount: int) -> bool:
        self.credits.append((player_id, amount))
        return self.credit_result


class FakeLock:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: List[Tuple[EntityHandle, str]] = []

    def apply_max_damage_lock(self, instance: EntityHandle, attributed_to: str) -> None:
        self.calls.append((instance, attributed_to))
        if self.error is not None:
            raise self.error


class FakeServices:
    def __init__(self, **services: Any) -> None:
        self.services: Dict[str, Any] = services
        self.resolved: List[str] = []

    def resolve(self, name: str, interface: type | None = None) -> Any:
        self.resolved.append(name)
        return self.services.get(name)


class FakePlayers:
    def __init__(self, *players: Player) -> None:
        self.players = {player.id: player for player in players}
        self.lookups: List[str] = []
        self.error: Exception | None = None

    def find_player(self, player_id: str) -> Player | None:
        self.lookups.append(player_id)
        if self.error is not None:
            raise self.error
        return self.players.get(player_id)


@pytest.fixture
def player() -> Player:
    return Player(id="76561198000000001", name="Alice", permissions=frozenset({PERMISSION_USE}))


@pytest.fixture
def shopper() -> Player:
    return Player(id="76561198000000002", name="Bob", language="zh")


@pytest.fixture
def encounter() -> FakeEncounter:
    return FakeEncounter()


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def lock() -> FakeLock:
    return FakeLock()


@pytest.fixture
def players(player: Player, shopper: Player) -> FakePlayers:
    return FakePlayers(player, shopper)


@pytest.fixture
def services(ledger: FakeLedger, lock: FakeLock) -> FakeServices:
    return FakeServices(**{LEDGER_PLUGIN: ledger, LOCK_PLUGIN: lock})


@pytest.fixture
def make_workflow(encounter: FakeEncounter, players: FakePlayers, services: FakeServices):
    def factory(**options: Any) -> RespawnWorkflow:
        return RespawnWorkflow(
            config=WorkflowConfig(**options),
            encounter=encounter,
            players=players,
            services=services,
        )

    return factory
