from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Dict, List

from game_bridge import Player
from logger import logger

NAME = "ServerRewards"
COMMAND_ALIASES = {"rp", "points"}
DATA_FILE = Path(__file__).resolve().parents[1] / "data" / "serverrewards.json"


class PointsLedger:
    """Reward points per player id, persisted to a JSON file on every change.

    A change is only applied in memory once it has been written to disk. An
    unreadable file is moved aside rather than overwritten.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()
        self._balances = self._load()

    def balance(self, player_id: str) -> int:
        with self._lock:
            return self._balances.get(str(player_id), 0)

    def debit(self, player_id: str, amount: int) -> bool:
        if amount <= 0:
            return False
        with self._lock:
            current = self._balances.get(str(player_id), 0)
            if current < amount:
                logger.info("Player %s has %s points, %s required", player_id, current, amount)
                return False
            self._commit(str(player_id), current - amount)
        return True

    def credit(self, player_id: str, amount: int) -> bool:
        if amount <= 0:
            return False
        with self._lock:
            self._commit(str(player_id), self._balances.get(str(player_id), 0) + amount)
        return True

    def _commit(self, player_id: str, value: int) -> None:
        updated = dict(self._balances)
        updated[player_id] = value
        self._save(updated)
        self._balances = updated

    def _load(self) -> Dict[str, int]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
        except json.JSONDecodeError as exc:
            self._quarantine(f"invalid JSON: {exc}")
            return {}
        if not isinstance(data, dict):
            self._quarantine(f"expected an object, got {type(data).__name__}")
            return {}
        balances: Dict[str, int] = {}
        for key, value in data.items():
            if isinstance(value, int) and not isinstance(value, bool):
                balances[str(key)] = value
        return balances

    def _quarantine(self, reason: str) -> None:
        backup = self.path.with_name(f"{self.path.name}.corrupt-{time.strftime('%Y%m%d%H%M%S')}")
        self.path.replace(backup)
        logger.error("%s unreadable (%s), moved to %s and starting empty", self.path.name, reason, backup.name)

    def _save(self, balances: Dict[str, int]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        staging = self.path.with_name(self.path.name + ".tmp")
        with staging.open("w", encoding="utf-8") as handle:
            json.dump(balances, handle, ensure_ascii=False, indent=2)
        staging.replace(self.path)


_ledger: PointsLedger | None = None


def init(manager: Any) -> None:
    global _ledger
    _ledger = PointsLedger(DATA_FILE)
    manager.provide(NAME, _ledger, owner=NAME)


def unload() -> None:
    global _ledger
    _ledger = None


def handle(
    command: str, params: List[str], context: Dict[str, Any], settings: Dict[str, Any]
) -> List[Dict[str, Any]] | None:
    if command not in COMMAND_ALIASES:
        return None

    ledger = _ledger
    caller = context.get("player")
    if ledger is None or not isinstance(caller, Player):
        return []

    if caller.is_server:
        return _handle_server(ledger, params)

    return [
        {
            "type": "send_player_msg",
            "number": caller.id,
            "text": f"You have {ledger.balance(caller.id)} RP",
        }
    ]


def _handle_server(ledger: PointsLedger, params: List[str]) -> List[Dict[str, Any]]:
    if len(params) != 3 or params[0].lower() != "add":
        return [{"type": "send_console_msg", "text": "Usage: rp add <playerId> <amount>"}]
    player_id, raw_amount = params[1], params[2]
    try:
        amount = int(raw_amount)
    except ValueError:
        return [{"type": "send_console_msg", "text": f"Invalid amount '{raw_amount}'"}]
    if not ledger.credit(player_id, amount):
        return [{"type": "send_console_msg", "text": f"Unable to add {amount} RP to {player_id}"}]
    logger.success("Added %s RP to %s", amount, player_id)
    return [
        {
            "type": "send_console_msg",
            "text": f"{player_id} now has {ledger.balance(player_id)} RP",
        }
    ]
