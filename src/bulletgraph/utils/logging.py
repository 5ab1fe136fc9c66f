"""Structured logging setup for bulletgraph.

Every command appends JSON events to one log file, so a rendering or an
edit can be traced after the fact without cluttering the console.
"""

import os
from pathlib import Path
from typing import Any

import structlog

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging() -> None:
    """
    Send structlog events to ~/.cache/bulletgraph/logs/bulletgraph.log.

    BULLETGRAPH_LOG_LEVEL picks the threshold (INFO when unset or unknown):
    - DEBUG: Graph build statistics, rerouting counts, removed duplicate edges
    - INFO: Commands, compiled graph summary, files written
    - WARNING: Duplicate ids, bad indentation
    - ERROR: Write failures, configuration errors

    Example:
        BULLETGRAPH_LOG_LEVEL=DEBUG bulletgraph render notes.outline
        jq 'select(.event == "graph_pruned")' ~/.cache/bulletgraph/logs/bulletgraph.log
    """
    log_dir = Path.home() / ".cache" / "bulletgraph" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level = os.environ.get("BULLETGRAPH_LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_dir / "bulletgraph.log", "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Logger bound to a module name, e.g. ``get_logger(__name__)``."""
    return structlog.get_logger(name)
