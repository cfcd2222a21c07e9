from __future__ import annotations

import importlib
import pkgutil
import threading
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Iterable, List, Optional, Tuple

from logger import logger

PLUGIN_PACKAGE = "plugins"
PLUGIN_PREFIX = "plugins_"


def plugin_name(module: ModuleType) -> str:
    return str(getattr(module, "NAME", module.__name__.rsplit(".", 1)[-1]))


class PluginManager:
    """Loads and dispatches plugin handlers.

    Plugins may define ``init(manager)`` to register permissions and provide
    services to their siblings, and ``unload()`` to release resources. Services
    are looked up by provider name and dropped when the provider is unloaded.
    """

    def __init__(
        self,
        settings: Dict[str, Any],
        bridge: Any = None,
        modules: Optional[Iterable[ModuleType]] = None,
    ) -> None:
        self.settings = settings
        self.bridge = bridge
        self.modules: List[ModuleType] = []
        self.permissions: Dict[str, str] = {}
        self.failures: Dict[str, Exception] = {}
        self._services: Dict[str, Tuple[Any, str]] = {}
        self._lock = threading.RLock()
        if modules is None:
            self._load_plugins()
        else:
            for module in modules:
                self._activate(module)

    def _load_plugins(self) -> None:
        package_path = Path(__file__).parent / PLUGIN_PACKAGE
        if not package_path.exists():
            logger.error("Plugin directory not found: %s", package_path)
            return

        for module in pkgutil.iter_modules([str(package_path)]):
            if not module.name.startswith(PLUGIN_PREFIX):
                continue
            full_name = f"{PLUGIN_PACKAGE}.{module.name}"
            try:
                imported = importlib.import_module(full_name)
            except Exception as exc:  # pragma: no cover
                logger.error("Failed to import %s: %s", full_name, exc)
                continue
            self._activate(imported)

    def _activate(self, module: ModuleType) -> bool:
        if not hasattr(module, "handle"):
            logger.error("Plugin %s missing handle()", module.__name__)
            return False
        init = getattr(module, "init", None)
        if callable(init):
            try:
                init(self)
            except Exception as exc:
                logger.error("Plugin %s failed to initialize: %s", module.__name__, exc)
                self._drop_services(plugin_name(module))
                with self._lock:
                    self.failures[plugin_name(module)] = exc
                return False
        with self._lock:
            self.modules.append(module)
            self.failures.pop(plugin_name(module), None)
        logger.success("Loaded plugin %s", plugin_name(module))
        return True

    # Lifecycle

    def loaded_plugins(self) -> List[str]:
        with self._lock:
            return [plugin_name(module) for module in self.modules]

    def find(self, name: str) -> ModuleType | None:
        lowered = name.lower()
        with self._lock:
            for module in self.modules:
                if plugin_name(module).lower() == lowered:
                    return module
        return None

    def unload(self, name: str) -> bool:
        module = self.find(name)
        if module is None:
            logger.info("Plugin %s is not loaded", name)
            return False
        with self._lock:
            self.modules.remove(module)
        self._drop_services(plugin_name(module))
        hook = getattr(module, "unload", None)
        if callable(hook):
            try:
                hook()
            except Exception as exc:  # pragma: no cover
                logger.error("Plugin %s failed to unload cleanly: %s", plugin_name(module), exc)
        logger.info("Unloaded plugin %s", plugin_name(module))
        return True

    def reload(self, name: str) -> bool:
        module = self.find(name)
        if module is None:
            logger.info("Plugin %s is not loaded", name)
            return False
        self.unload(name)
        try:
            module = importlib.reload(module)
        except Exception as exc:
            logger.error("Failed to reload %s: %s", name, exc)
            return False
        return self._activate(module)

    # Permissions and services

    def register_permission(self, permission: str, owner: str) -> None:
        with self._lock:
            current = self.permissions.get(permission)
            if current and current != owner:
                logger.error("Permission %s already registered by %s", permission, current)
                return
            self.permissions[permission] = owner
        logger.info("Registered permission %s for %s", permission, owner)

    def provide(self, name: str, service: Any, owner: str | None = None) -> None:
        with self._lock:
            self._services[name] = (service, owner or name)
        logger.info("Service %s provided by %s", name, owner or name)

    def resolve(self, name: str, interface: type | None = None) -> Any:
        """Return the service registered under ``name``, or None when it is absent."""
        with self._lock:
            entry = self._services.get(name)
        if entry is None:
            return None
        service = entry[0]
        if interface is not None and not isinstance(service, interface):
            logger.error("Service %s does not implement %s", name, interface.__name__)
            return None
        return service

    def _drop_services(self, owner: str) -> None:
        with self._lock:
            stale = [name for name, (_, provider) in self._services.items() if provider == owner]
            for name in stale:
                del self._services[name]
            stale_permissions = [perm for perm, provider in self.permissions.items() if provider == owner]
            for perm in stale_permissions:
                del self.permissions[perm]
        for name in stale:
            logger.info("Service %s withdrawn", name)

    # Dispatch

    def dispatch(
        self, command: str, params: List[str], context: Dict[str, Any]
    ) -> Optional[List[Dict[str, Any]]]:
        with self._lock:
            modules = list(self.modules)
        for module in modules:
            try:
                result = module.handle(command, params, context, self.settings)
            except Exception as exc:  # pragma: no cover
                logger.error("Plugin %s crashed: %s", module.__name__, exc)
                continue
            if result is not None:
                logger.success("Plugin %s handled command %s", plugin_name(module), command)
                return result
        logger.info("No plugin handled command %s", command)
        return None
