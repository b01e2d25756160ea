"""Logging utilities for nlpform.

Every module obtains its logger through :func:`get_logger`. All nlpform
loggers share one handler configuration, including a :class:`RankFilter`
that decides which MPI rank is allowed to emit. By default only rank 0 of the
communicator speaks, like :meth:`NlpFormulation.print_summary`.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from typing import IO, Optional

from .parallel import Communicator, SerialCommunicator

_DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
_ALL_RANKS_FORMAT = "[%(levelname)s] [rank %(rank)d] %(name)s: %(message)s"

_loggers: dict[str, logging.Logger] = {}


class RankFilter(logging.Filter):
    """
    Passes records on the selected rank of ``comm`` only.

    Every record that reaches the filter is tagged with ``record.rank`` so
    format strings can refer to ``%(rank)d``. With ``rank=None`` every rank
    emits.
    """

    def __init__(self, comm: Optional[Communicator] = None, rank: Optional[int] = 0):
        super().__init__()
        self.comm = comm if comm is not None else SerialCommunicator()
        self.rank = rank

    def filter(self, record: logging.LogRecord) -> bool:
        record.rank = self.comm.rank
        return self.rank is None or self.comm.rank == self.rank


@dataclass
class _HandlerConfig:
    level: int = logging.WARNING
    format_string: str = _DEFAULT_FORMAT
    stream: Optional[IO[str]] = None
    rank_filter: RankFilter = field(default_factory=RankFilter)

    def make_handler(self) -> logging.Handler:
        handler = logging.StreamHandler(self.stream if self.stream is not None else sys.stderr)
        handler.setLevel(self.level)
        handler.setFormatter(logging.Formatter(self.format_string))
        handler.addFilter(self.rank_filter)
        return handler


_config = _HandlerConfig()


def _coerce_level(level: int | str) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return level


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get or create a logger for the given module name.

    Loggers are cached and do not propagate to the root logger. A logger
    created after :func:`configure_logging` picks up that configuration.

    Args:
        name: Logger name (typically ``__name__``). If None, returns the
            package logger.

    Example:
        >>> from nlpform.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("finalizing formulation")
    """
    if name is None:
        name = "nlpform"

    logger_name = name if name == "nlpform" or name.startswith("nlpform.") else f"nlpform.{name}"

    if logger_name in _loggers:
        return _loggers[logger_name]

    logger = logging.getLogger(logger_name)
    if not logger.handlers:
        logger.setLevel(_config.level)
        logger.addHandler(_config.make_handler())
        logger.propagate = False

    _loggers[logger_name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Set the logging level for all nlpform loggers and their handlers."""
    level = _coerce_level(level)
    for logger in _loggers.values():
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
    _config.level = level


def configure_logging(
    level: int | str = logging.WARNING,
    format_string: Optional[str] = None,
    stream: Optional[IO[str]] = None,
    comm: Optional[Communicator] = None,
    rank: Optional[int] = 0,
) -> None:
    """Configure logging for nlpform.

    Replaces the handlers of every nlpform logger, present and future, with a
    single stream handler filtered by rank.

    Args:
        level: Logging level (default: WARNING).
        format_string: Custom format string. If None, the default is used;
            when every rank of a multi-rank ``comm`` emits, the default also
            shows the rank.
        stream: Output stream (default: ``sys.stderr``).
        comm: Communicator whose rank selects the emitting process. Defaults
            to a :class:`~nlpform.parallel.SerialCommunicator`.
        rank: The only rank that emits, or None for all ranks.

    Example:
        >>> from nlpform import MPICommunicator
        >>> configure_logging(logging.INFO, comm=MPICommunicator(), rank=None)
    """
    rank_filter = RankFilter(comm, rank)
    if format_string is None:
        all_ranks = rank is None and rank_filter.comm.size > 1
        format_string = _ALL_RANKS_FORMAT if all_ranks else _DEFAULT_FORMAT

    _config.level = _coerce_level(level)
    _config.format_string = format_string
    _config.stream = stream
    _config.rank_filter = rank_filter

    for logger in _loggers.values():
        logger.setLevel(_config.level)
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.addHandler(_config.make_handler())


__all__ = ["RankFilter", "get_logger", "set_log_level", "configure_logging"]
