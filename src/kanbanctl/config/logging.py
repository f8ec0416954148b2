"""Route structlog and stdlib logging to stderr through one formatter.

stdout belongs to command results (``--json`` output must stay parseable),
so every log line, including the executor's fallback warnings, goes to
stderr: as colored console lines by default, or as JSON with ``--log-json``.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.types import Processor

# Libraries whose INFO output would drown the debug log (httpx logs
# every request, including the health probe).
_QUIET_LIBRARIES = ("httpx", "httpcore")


def _pre_chain(log_json: bool) -> list[Processor]:
    """Processors applied to structlog and stdlib records alike."""
    stamp = structlog.processors.TimeStamper(fmt="iso", utc=True) if log_json else (
        structlog.processors.TimeStamper(fmt="%H:%M:%S", utc=False)
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        stamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Install the stderr handler and set levels.

    Args:
        verbose: DEBUG for ``kanbanctl.*`` loggers; otherwise WARNING.
        log_json: One JSON object per line instead of console output.
    """
    pre_chain = _pre_chain(log_json)
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("kanbanctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
