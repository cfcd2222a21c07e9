"""Authorization, charge, respawn and refund flow of the respawnbradley command."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Sequence, Tuple

from game_bridge import EntityHandle, Player
from logger import logger

from .config import WorkflowConfig
from .services import (
    LEDGER_PLUGIN,
    LOCK_PLUGIN,
    EncounterState,
    EncounterUnavailable,
    LedgerService,
    LockService,
    PlayerDirectory,
    ServiceResolver,
)

COMMAND = "respawnbradley"
PERMISSION_USE = "respawnbradley.use"
PERMISSION_NOLOCK = "respawnbradley.nolock"


class ResultKind(Enum):
    DENIED = "denied"
    ALREADY_ACTIVE = "already_active"
    CHARGE_FAILED = "charge_failed"
    RESPAWN_FAILED = "respawn_failed"
    SUCCESS = "success"


class InvocationKind(Enum):
    DIRECT = "direct"
    INDIRECT = "indirect"


class _Charge(Enum):
    SKIPPED = "skipped"
    TAKEN = "taken"
    FAILED = "failed"


@dataclass(frozen=True)
class Notice:
    recipient: Player
    key: str


@dataclass
class WorkflowResult:
    kind: ResultKind
    reason: str | None = None
    refunded: bool | None = None
    target: Player | None = None
    notices: List[Notice] = field(default_factory=list)


class RespawnWorkflow:
    def __init__(
        self,
        config: WorkflowConfig,
        encounter: EncounterState,
        players: PlayerDirectory,
        services: ServiceResolver,
    ) -> None:
        self.config = config
        self.encounter = encounter
        self.players = players
        self.services = services

    def execute(self, caller: Player, args: Sequence[str]) -> WorkflowResult:
        notices: List[Notice] = []

        resolved = self._resolve_target(caller, args, notices)
        if isinstance(resolved, WorkflowResult):
            return resolved
        target, kind = resolved
        ledger = self._resolve_ledger()

        try:
            active = self.encounter.is_active()
        except EncounterUnavailable as exc:
            logger.error("Unable to query Bradley state: %s", exc)
            return self._respawn_failed(target, kind, False, ledger, notices)
        except Exception as exc:
            logger.error("Bradley state check raised: %s", exc)
            return self._respawn_failed(target, kind, False, ledger, notices)

        if active:
            if kind is InvocationKind.INDIRECT:
                self.refund_if_applicable(target, kind, ledger, notices)
            notices.append(Notice(target, "UnableToRespawnBradley"))
            return WorkflowResult(ResultKind.ALREADY_ACTIVE, target=target, notices=notices)

        charge = self._charge(target, kind, ledger, notices)
        if charge is _Charge.FAILED:
            return WorkflowResult(ResultKind.CHARGE_FAILED, target=target, notices=notices)

        try:
            instance = self.encounter.force_respawn()
        except EncounterUnavailable as exc:
            logger.error("Unable to respawn Bradley: %s", exc)
            instance = None
        except Exception as exc:
            logger.error("Bradley respawn raised: %s", exc)
            instance = None
        if instance is None:
            return self._respawn_failed(target, kind, charge is _Charge.TAKEN, ledger, notices)

        logger.success("Bradley respawned for %s (%s)", target.id, kind.value)
        if self.config.lock_bradley_on_respawn and not target.has_permission(PERMISSION_NOLOCK):
            self._lock(instance, target, notices)

        notices.append(Notice(target, "BradleyHasBeenRespawned"))
        return WorkflowResult(ResultKind.SUCCESS, target=target, notices=notices)

    def _resolve_target(
        self, caller: Player, args: Sequence[str], notices: List[Notice]
    ) -> Tuple[Player, InvocationKind] | WorkflowResult:
        if not caller.is_server:
            if not caller.has_permission(PERMISSION_USE):
                notices.append(Notice(caller, "NoPermission"))
                return WorkflowResult(ResultKind.DENIED, reason="no-permission", target=caller, notices=notices)
            return caller, InvocationKind.DIRECT

        if len(args) != 1:
            logger.error("Erroneous invocation of %s command! Usage: %s <playerId>", COMMAND, COMMAND)
            return WorkflowResult(ResultKind.DENIED, reason="bad-invocation", notices=notices)

        try:
            target = self.players.find_player(args[0])
        except Exception as exc:
            logger.error("Player lookup for '%s' failed: %s", args[0], exc)
            target = None
        if target is None:
            logger.error("Erroneous invocation of %s command! Unknown player id '%s'", COMMAND, args[0])
            return WorkflowResult(ResultKind.DENIED, reason="bad-invocation", notices=notices)
        return target, InvocationKind.INDIRECT

    def _resolve_ledger(self) -> LedgerService | None:
        if not self.config.use_server_rewards:
            return None
        return self.services.resolve(LEDGER_PLUGIN, LedgerService)

    def _ledger_missing(self, action: str) -> None:
        if not self.config.use_server_rewards:
            logger.error("Unable to %s: use_server_rewards is disabled in the config", action)
        else:
            logger.error("Unable to %s: %s plugin is not loaded", action, LEDGER_PLUGIN)

    def _charge(
        self, target: Player, kind: InvocationKind, ledger: LedgerService | None, notices: List[Notice]
    ) -> _Charge:
        gate = (
            self.config.charge_on_player_command
            if kind is InvocationKind.DIRECT
            else self.config.charge_on_server_command
        )
        if not gate:
            return _Charge.SKIPPED

        if ledger is None:
            self._ledger_missing("charge")
            notices.append(Notice(target, "UnableToCharge"))
            return _Charge.FAILED

        if not self._call_ledger(ledger.debit, target, "debit"):
            notices.append(Notice(target, "UnableToCharge"))
            return _Charge.FAILED

        notices.append(Notice(target, "PlayerCharged"))
        return _Charge.TAKEN

    def refund_if_applicable(
        self, target: Player, kind: InvocationKind, ledger: LedgerService | None, notices: List[Notice]
    ) -> bool:
        gate = (
            self.config.refund_on_player_command
            if kind is InvocationKind.DIRECT
            else self.config.refund_on_server_command
        )
        if not gate:
            return False
        return self._refund(target, ledger, notices)

    def _refund(self, target: Player, ledger: LedgerService | None, notices: List[Notice]) -> bool:
        if ledger is None:
            self._ledger_missing("refund")
            notices.append(Notice(target, "UnableToRefund"))
            return False

        if not self._call_ledger(ledger.credit, target, "credit"):
            logger.error("Refund of %s to %s failed", self.config.respawn_costs, target.id)
            notices.append(Notice(target, "UnableToRefund"))
            return False

        notices.append(Notice(target, "PlayerRefunded"))
        return True

    def _call_ledger(self, operation: Any, target: Player, label: str) -> bool:
        try:
            return bool(operation(target.id, self.config.respawn_costs))
        except Exception as exc:
            logger.error("%s %s of %s for %s raised: %s", LEDGER_PLUGIN, label, self.config.respawn_costs, target.id, exc)
            return False

    def _respawn_failed(
        self,
        target: Player,
        kind: InvocationKind,
        charge_taken: bool,
        ledger: LedgerService | None,
        notices: List[Notice],
    ) -> WorkflowResult:
        if charge_taken:
            refunded = self._refund(target, ledger, notices)
        elif kind is InvocationKind.INDIRECT:
            refunded = self.refund_if_applicable(target, kind, ledger, notices)
        else:
            refunded = False
        notices.append(Notice(target, "RespawnFailed"))
        return WorkflowResult(ResultKind.RESPAWN_FAILED, refunded=refunded, target=target, notices=notices)

    def _lock(self, instance: EntityHandle, target: Player, notices: List[Notice]) -> None:
        lock = self.services.resolve(LOCK_PLUGIN, LockService)
        if lock is None:
            logger.warning("Unable to lock Bradley to %s: %s plugin is not loaded", target.id, LOCK_PLUGIN)
            return
        try:
            lock.apply_max_damage_lock(instance, target.id)
        except Exception as exc:
            logger.warning("Unable to lock Bradley to %s: %s", target.id, exc)
            return
        notices.append(Notice(target, "BradleyLocked"))
