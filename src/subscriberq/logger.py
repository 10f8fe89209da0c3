import logging
from typing import Any, Optional

from subscriberq.settings import settings as api_settings

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_configured = False


def setup_global_logging(level: str = "INFO") -> None:
    """Configure the root logger once in a standardized format.

    Args:
        level: Log level name (e.g., "DEBUG", "INFO")
    """
    global _configured
    if _configured:
        return
    lvl = _LEVELS.get(level.upper(), logging.INFO)
    logging.basicConfig(
        level=lvl,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _configured = True


def get_logger(name: Optional[str] = None) -> "Logger":
    """Return a module/class logger (the package logger when no name). Ensures global logging is configured."""
    return Logger(name)


class Logger:
    """Thin wrapper over standard logging.

    - `.message(text)` logs at the level named by LOG_LEVEL (INFO when unset).
    - `.sql(statement)` logs a compiled statement at DEBUG, only when SQL_LOG is on.
    """

    def __init__(self, name: Optional[str] = None) -> None:
        if not _configured:
            setup_global_logging(api_settings.LOG_LEVEL)
        if not name:
            name = "subscriberq"
        elif name != "subscriberq" and not name.startswith("subscriberq."):
            name = f"subscriberq.{name}"
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(msg, *args, **kwargs)

    def message(self, msg: str, *args: Any, **kwargs: Any) -> None:
        level = (api_settings.LOG_LEVEL or "").upper()
        if level == "DEBUG":
            self.debug(msg, *args, **kwargs)
        elif level in ("INFO", ""):
            self.info(msg, *args, **kwargs)
        else:
            self._logger.log(_LEVELS.get(level, logging.INFO), msg, *args, **kwargs)

    def sql(self, statement: Any, label: str = "SQL") -> None:
        """Log a statement (CompiledQuery or debug string) when SQL_LOG is enabled."""
        if not api_settings.SQL_LOG:
            return
        self.debug("%s: %s", label, statement)
