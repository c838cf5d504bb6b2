"""
Logging configuration for the anchoring engine

IndentLogger renders nested operations (a resolution and its strategy
attempts) as an indented tree.
"""

import logging
import sys
from contextlib import contextmanager


class IndentState:
    """Shared indentation depth for all IndentLogger instances"""

    _depth = 0
    _open: set[int] = set()

    @classmethod
    def push(cls) -> None:
        cls._open.add(cls._depth)
        cls._depth += 1

    @classmethod
    def pop(cls) -> None:
        if cls._depth > 0:
            cls._depth -= 1
            cls._open.discard(cls._depth)

    @classmethod
    def reset(cls) -> None:
        """Reset indentation state (useful for tests)"""
        cls._depth = 0
        cls._open = set()

    @classmethod
    def prefix(cls) -> str:
        if cls._depth == 0:
            return ""
        parts = ["│   " if level in cls._open else "    " for level in range(cls._depth - 1)]
        parts.append("├── " if (cls._depth - 1) in cls._open else "└── ")
        return "".join(parts)


class IndentLogger:
    """Logger wrapper that prefixes messages with the current tree indentation"""

    def __init__(self, base_logger: logging.Logger) -> None:
        self._logger = base_logger

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._logger.debug(f"{IndentState.prefix()}{msg}", *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._logger.info(f"{IndentState.prefix()}{msg}", *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._logger.warning(f"{IndentState.prefix()}{msg}", *args, **kwargs)

    def error(self, msg: str, *args, **kwargs) -> None:
        self._logger.error(f"{IndentState.prefix()}{msg}", *args, **kwargs)

    @contextmanager
    def indent_block(self, initial_message: str | None = None):
        """
        Context manager that indents everything logged inside it

        Args:
            initial_message: Optional debug message logged before indenting
        """
        if initial_message:
            self.debug(initial_message)
        IndentState.push()
        try:
            yield
        finally:
            IndentState.pop()


def setup_logging(level=logging.INFO):
    """
    Configure logging for the anchoring engine

    Args:
        level: Logging level (default: INFO)

    Returns:
        IndentLogger: Configured logger with indentation support
    """
    base_logger = logging.getLogger("textanchor")
    base_logger.setLevel(level)
    base_logger.handlers = []

    # stderr keeps log lines out of command output
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(levelname)8s %(message)s"))
    base_logger.addHandler(handler)

    return IndentLogger(base_logger)


logger = IndentLogger(logging.getLogger("textanchor"))
