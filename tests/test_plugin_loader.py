from __future__ import annotations

from types import ModuleType
from typing import Any, Dict, List

import pytest

from plugin_loader import PluginManager
from plugins.respawn_engine.services import LedgerService


class PointsStub:
    def debit(self, player_id: str, amount: int) -> bool:
        return True

    def credit(self, player_id: str, amount: int) -> bool:
        return True


def _plugin(name: str, command: str | None = None, provides: Dict[str, Any] | None = None, fail: bool = False) -> ModuleType:
    module = ModuleType(f"plugins.plugins_{name.lower()}")
    module.NAME = name

    def init(manager: PluginManager) -> None:
        manager.register_permission(f"{name.lower()}.use", name)
        for service_name, service in (provides or {}).items():
            manager.provide(service_name, service, owner=name)
        if fail:
            raise RuntimeError("boom")

    def handle(cmd: str, params: List[str], context: Dict[str, Any], settings: Dict[str, Any]):
        if cmd != command:
            return None
        return [{"type": "send_console_msg", "text": f"{name}:{' '.join(params)}"}]

    module.init = init
    module.handle = handle
    return module


@pytest.fixture
def manager() -> PluginManager:
    return PluginManager(
        {},
        modules=[
            _plugin("ServerRewards", command="rp", provides={"ServerRewards": PointsStub()}),
            _plugin("Echo", command="echo"),
        ],
    )


def test_loaded_plugins_are_listed(manager) -> None:
    assert manager.loaded_plugins() == ["ServerRewards", "Echo"]
    assert manager.permissions == {"serverrewards.use": "ServerRewards", "echo.use": "Echo"}


def test_dispatch_reaches_owning_plugin(manager) -> None:
    assert manager.dispatch("echo", ["hi"], {}) == [{"type": "send_console_msg", "text": "Echo:hi"}]
    assert manager.dispatch("unknown", [], {}) is None


def test_resolve_returns_typed_service(manager) -> None:
    service = manager.resolve("ServerRewards", LedgerService)

    assert isinstance(service, PointsStub)
    assert manager.resolve("Economics", LedgerService) is None


def test_resolve_rejects_service_with_wrong_interface() -> None:
    manager = PluginManager({}, modules=[_plugin("Odd", provides={"ServerRewards": object()})])

    assert manager.resolve("ServerRewards") is not None
    assert manager.resolve("ServerRewards", LedgerService) is None


def test_unload_withdraws_services_and_permissions(manager) -> None:
    assert manager.unload("serverrewards") is True

    assert manager.resolve("ServerRewards", LedgerService) is None
    assert "serverrewards.use" not in manager.permissions
    assert manager.loaded_plugins() == ["Echo"]
    assert manager.dispatch("rp", [], {}) is None
    assert manager.unload("serverrewards") is False


def test_plugin_failing_init_is_not_loaded() -> None:
    manager = PluginManager({}, modules=[_plugin("Broken", command="x", provides={"Broken": PointsStub()}, fail=True)])

    assert manager.loaded_plugins() == []
    assert manager.resolve("Broken") is None
    assert manager.permissions == {}
    assert isinstance(manager.failures["Broken"], RuntimeError)


def test_module_without_handle_is_skipped() -> None:
    module = ModuleType("plugins.plugins_empty")

    manager = PluginManager({}, modules=[module])

    assert manager.loaded_plugins() == []


def test_permission_owned_by_another_plugin_is_kept(manager) -> None:
    manager.register_permission("echo.use", "Intruder")

    assert manager.permissions["echo.use"] == "Echo"
