"""Interfaces of the collaborators the respawn workflow talks to."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from game_bridge import EntityHandle, Player

LEDGER_PLUGIN = "ServerRewards"
LOCK_PLUGIN = "LootLock"


class EncounterUnavailable(RuntimeError):
    """Raised when the encounter state cannot be queried or changed."""


@runtime_checkable
class EncounterState(Protocol):
    def is_active(self) -> bool: ...

    def force_respawn(self) -> EntityHandle | None: ...


@runtime_checkable
class LedgerService(Protocol):
    def debit(self, player_id: str, amount: int) -> bool: ...

    def credit(self, player_id: str, amount: int) -> bool: ...


@runtime_checkable
class LockService(Protocol):
    def apply_max_damage_lock(self, instance: EntityHandle, attributed_to: str) -> None: ...


@runtime_checkable
class PlayerDirectory(Protocol):
    def find_player(self, player_id: str) -> Player | None: ...


@runtime_checkable
class ServiceResolver(Protocol):
    def resolve(self, name: str, interface: type | None = None) -> object | None: ...
