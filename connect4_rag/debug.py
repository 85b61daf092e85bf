"""
debug.py - Component-tagged logging for connect4-rag

Every module logs through the `debug` singleton with a component tag:

    debug.info("Picked column 4 after 1 attempt(s)", "arbiter")

Components in use: controller, recorder, arbiter, commentary, index, store,
llm, cli.
Restricting output to some of them is done with configure(components=[...]).
Prompts and raw model responses go to the "llm" component at DEBUG level.

The slow calls (embedding, search, completion, the learn phase) are wrapped
in timers whose elapsed time is logged at DEBUG.
"""

import logging
import sys
import time
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Set


class DebugLevel(Enum):
    NONE = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4
    TRACE = 5


TRACE = 5
logging.addLevelName(TRACE, "TRACE")

LEVEL_MAP = {
    DebugLevel.NONE: logging.CRITICAL + 1,
    DebugLevel.ERROR: logging.ERROR,
    DebugLevel.WARNING: logging.WARNING,
    DebugLevel.INFO: logging.INFO,
    DebugLevel.DEBUG: logging.DEBUG,
    DebugLevel.TRACE: TRACE,
}

LOGGER_NAME = "connect4_rag"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"


class DebugManager:
    """Owns the package logger, the component filter and the timers."""

    def __init__(self):
        self._level = DebugLevel.WARNING
        self._components: Set[str] = set()  # empty: every component
        self._timers: Dict[str, float] = {}
        self._logger = logging.getLogger(LOGGER_NAME)
        self._logger.setLevel(LEVEL_MAP[self._level])
        self._logger.propagate = False
        if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
                   for h in self._logger.handlers):
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
            self._logger.addHandler(handler)

    @property
    def level(self) -> DebugLevel:
        return self._level

    def configure(self, level: Optional[DebugLevel] = None,
                  log_file: Optional[str] = None,
                  components: Optional[Iterable[str]] = None):
        """
        Args:
            level: Most verbose level to emit
            log_file: Also write to this file; an empty string stops file logging
            components: Only log these components (empty for all)
        """
        if level is not None:
            self._level = level
            self._logger.setLevel(LEVEL_MAP[level])

        if log_file is not None:
            self._set_log_file(log_file)

        if components is not None:
            self._components = set(components)

    def _set_log_file(self, log_file: str) -> None:
        for handler in list(self._logger.handlers):
            if isinstance(handler, logging.FileHandler):
                self._logger.removeHandler(handler)
                handler.close()
        if log_file:
            handler = logging.FileHandler(log_file, encoding="utf-8")
            handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
            self._logger.addHandler(handler)

    def log(self, level: DebugLevel, message: str, component: str = None):
        if level == DebugLevel.NONE or level.value > self._level.value:
            return
        if component and self._components and component not in self._components:
            return
        if component:
            message = f"[{component}] {message}"
        self._logger.log(LEVEL_MAP[level], message)

    def error(self, message: str, component: str = None):
        self.log(DebugLevel.ERROR, message, component)

    def warning(self, message: str, component: str = None):
        self.log(DebugLevel.WARNING, message, component)

    def info(self, message: str, component: str = None):
        self.log(DebugLevel.INFO, message, component)

    def debug(self, message: str, component: str = None):
        self.log(DebugLevel.DEBUG, message, component)

    def trace(self, message: str, component: str = None):
        self.log(DebugLevel.TRACE, message, component)

    def start_timer(self, name: str):
        self._timers[name] = time.perf_counter()

    def end_timer(self, name: str, component: str = None) -> Optional[float]:
        """Log and return the seconds since start_timer(name), or None if never started."""
        started = self._timers.pop(name, None)
        if started is None:
            self.warning(f"Timer '{name}' was not started", component)
            return None
        elapsed = time.perf_counter() - started
        self.debug(f"{name} took {elapsed:.3f}s", component)
        return elapsed

    @contextmanager
    def timer(self, name: str, component: str = None) -> Iterator[None]:
        """Time the enclosed block, even when it raises."""
        self.start_timer(name)
        try:
            yield
        finally:
            self.end_timer(name, component)

    def set_from_string(self, level_str: str) -> bool:
        """Set the level by name ("info", "DEBUG", ...); unknown names are ignored."""
        try:
            level = DebugLevel[level_str.strip().upper()]
        except KeyError:
            self.warning(f"Unknown debug level: {level_str}")
            return False
        self.configure(level=level)
        return True


debug = DebugManager()
