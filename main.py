from __future__ import annotations

import threading
from queue import Queue

from listen import create_listener_app
from logger import logger
from message_router import MessageRouter
from plugin_loader import PluginManager
from plugins.respawn_engine.config import ConfigError
from settings import load_settings, SettingsError


def start_workers(queue: Queue, router: MessageRouter, worker_count: int) -> None:
    def worker_loop() -> None:
        while True:
            event = queue.get()
            try:
                router.process_event(event)
            except Exception as exc:  # pragma: no cover
                logger.error("Worker crashed: %s", exc)
            finally:
                queue.task_done()

    for idx in range(worker_count):
        thread = threading.Thread(target=worker_loop, name=f"bot-worker-{idx}", daemon=True)
        thread.start()
        logger.success("Started worker thread %s", thread.name)


def report_plugins(plugins: PluginManager) -> bool:
    """Log the plugin roster after startup. Returns False when any plugin failed to start."""
    loaded = plugins.loaded_plugins()
    logger.info("Plugins loaded: %s", ", ".join(loaded) if loaded else "none")
    for name, exc in sorted(plugins.failures.items()):
        if isinstance(exc, ConfigError):
            logger.error("Plugin %s is disabled, its config is invalid: %s", name, exc)
        else:
            logger.error("Plugin %s is disabled: %s", name, exc)
    return not plugins.failures


def main() -> None:
    try:
        settings = load_settings()
    except SettingsError as exc:
        logger.error("Unable to start bot: %s", exc)
        return
    logger.set_level(settings["log_level"])

    queue: Queue = Queue()
    router = MessageRouter(settings)
    if not report_plugins(router.plugins):
        logger.warning("Continuing without the disabled plugins, fix them and restart the bot")
    start_workers(queue, router, settings["workers"])

    app = create_listener_app(queue, settings, router.plugins.loaded_plugins)
    host = settings.get("ip", "127.0.0.1")
    port = int(settings.get("listen", 8080))
    logger.info("HTTP listener starting on %s:%s", host, port)
    app.run(host=host, port=port, threaded=True)


if __name__ == "__main__":
    main()
