"""Logger adaptor backed by loguru.

Every module obtains its logger through :func:`get_logger` so records carry the
module name (``logger_name``) and share a single configured sink.
"""

import sys
from typing import Any, Dict, Optional

from loguru import logger as _loguru_logger

from conversion_sdk.constants import LOG_FORMAT, LOG_LEVEL

_loggers: Dict[str, "ConversionLogger"] = {}
_sink_configured = False


def _configure_sink() -> None:
    global _sink_configured
    if _sink_configured:
        return
    _loguru_logger.remove()
    _loguru_logger.add(
        sys.stderr,
        level=LOG_LEVEL,
        format=LOG_FORMAT,
        colorize=True,
        backtrace=False,
        diagnose=False,
    )
    _sink_configured = True


class ConversionLogger:
    """Thin wrapper forwarding to a loguru logger bound to ``logger_name``.

    Exposes the familiar .info/.error/.warning/.debug/.exception API. Keyword
    arguments other than ``exc_info`` are bound as structured extras.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._log = _loguru_logger.bind(logger_name=name)

    @property
    def name(self) -> str:
        return self._name

    def _emit(self, level: str, msg: str, *args: Any, **kwargs: Any) -> None:
        exc_info = kwargs.pop("exc_info", None)
        log = self._log.bind(**kwargs) if kwargs else self._log
        if exc_info:
            log = log.opt(exception=exc_info)
        log.log(level, msg, *args)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("INFO", msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("ERROR", msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("WARNING", msg, *args, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("DEBUG", msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("exc_info", True)
        self._emit("ERROR", msg, *args, **kwargs)

    def critical(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._emit("CRITICAL", msg, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> ConversionLogger:
    _configure_sink()
    if name is None:
        name = "conversion_sdk.observability.logger_adaptor"
    if name not in _loggers:
        _loggers[name] = ConversionLogger(name)
    return _loggers[name]

