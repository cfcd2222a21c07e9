import logging
from typing import Any

SUCCESS_LEVEL = 25
logging.addLevelName(SUCCESS_LEVEL, "SUCCESS")

LOGGER_NAME = "respawnbot"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s: %(message)s"
LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "SUCCESS": SUCCESS_LEVEL,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def _configure_bot_logger() -> logging.Logger:
    bot_logger = logging.getLogger(LOGGER_NAME)
    if bot_logger.handlers:
        return bot_logger
    bot_logger.setLevel(logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    bot_logger.addHandler(handler)
    return bot_logger


class BotLogger:
    """Logger facade for the host and its plugins.

    Worker threads share it, so the thread name is part of every record. The
    SUCCESS level sits between INFO and WARNING and marks completed actions.
    """

    def __init__(self) -> None:
        self._logger = _configure_bot_logger()

    def set_level(self, name: str) -> None:
        level = LEVELS.get(str(name).upper())
        if level is None:
            raise ValueError(f"unknown log level {name!r}, expected one of {', '.join(LEVELS)}")
        self._logger.setLevel(level)

    def info(self, message: str, *args: Any) -> None:
        self._logger.info(message, *args)

    def success(self, message: str, *args: Any) -> None:
        self._logger.log(SUCCESS_LEVEL, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        self._logger.warning(message, *args)

    def error(self, message: str, *args: Any) -> None:
        self._logger.error(message, *args)


logger = BotLogger()
