"""
Structured Logging Configuration.

- JSON format for batch runs (log aggregation tools)
- Human-readable format for interactive use
- Simulation context (scenario, replicate) attached to every record
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# =============================================================================
# Context Variables for Simulation Tracking
# =============================================================================

scenario_var: ContextVar[Optional[str]] = ContextVar("scenario", default=None)
replicate_var: ContextVar[Optional[int]] = ContextVar("replicate", default=None)


def set_simulation_context(
    scenario: Optional[str] = None,
    replicate: Optional[int] = None,
) -> None:
    """
    Set simulation context for logging.

    Args:
        scenario: Scenario currently being sampled/fitted
        replicate: Replicate index currently running
    """
    if scenario is not None:
        scenario_var.set(scenario)
    if replicate is not None:
        replicate_var.set(replicate)


def clear_simulation_context() -> None:
    """Clear all simulation context variables."""
    scenario_var.set(None)
    replicate_var.set(None)


def get_simulation_context() -> Dict[str, Any]:
    """Get current simulation context as a dictionary."""
    return {"scenario": scenario_var.get(), "replicate": replicate_var.get()}


# =============================================================================
# Formatters
# =============================================================================


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Format:
    {
        "timestamp": "2025-01-22T12:00:00.000000+00:00",
        "level": "INFO",
        "logger": "lords_paradox.simulation.driver",
        "message": "Simulation complete",
        "scenario": "scenario1",
        "replicate": 42
    }
    """

    def __init__(self, extra_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        scenario = scenario_var.get()
        replicate = replicate_var.get()
        if scenario:
            log_entry["scenario"] = scenario
        if replicate is not None:
            log_entry["replicate"] = replicate

        log_entry.update(self.extra_fields)

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ColoredFormatter(logging.Formatter):
    """
    Colored human-readable formatter.

    Format:
    2025-01-22 12:00:00 [INFO    ] lords_paradox.cli - Message here [scenario1 rep:42]
    """

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
        "RESET": "\033[0m",
        "GRAY": "\033[90m",
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")

        if self.use_colors:
            level_color = self.COLORS.get(record.levelname, "")
            reset = self.COLORS["RESET"]
            gray = self.COLORS["GRAY"]
        else:
            level_color = reset = gray = ""

        level = f"{level_color}[{record.levelname:8s}]{reset}"

        logger_name = record.name
        if len(logger_name) > 30:
            logger_name = "..." + logger_name[-27:]

        context_parts = []
        scenario = scenario_var.get()
        replicate = replicate_var.get()
        if scenario:
            context_parts.append(scenario)
        if replicate is not None:
            context_parts.append(f"rep:{replicate}")
        context_str = f" {gray}[{' '.join(context_parts)}]{reset}" if context_parts else ""

        output = f"{timestamp} {level} {logger_name} - {record.getMessage()}{context_str}"
        if record.exc_info:
            output += "\n" + self.formatException(record.exc_info)
        return output


class ContextFilter(logging.Filter):
    """Adds simulation context to records for %(scenario)s / %(replicate)s formats."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.scenario = scenario_var.get() or "-"
        replicate = replicate_var.get()
        record.replicate = "-" if replicate is None else replicate
        return True


# =============================================================================
# Logging Configuration
# =============================================================================


def configure_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure application logging (call once at startup).

    Args:
        level: Log level name. Defaults to $LOG_LEVEL or INFO.
        log_format: "text" or "json". Defaults to $LOG_FORMAT or text.
    """
    level = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    log_format = (log_format or os.environ.get("LOG_FORMAT", "text")).lower()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if log_format == "json":
        handler.setFormatter(JSONFormatter(extra_fields={"service": "lords-paradox"}))
    else:
        use_colors = os.environ.get("NO_COLOR", "").lower() not in ("1", "true", "yes")
        handler.setFormatter(ColoredFormatter(use_colors=use_colors))
    handler.setLevel(getattr(logging, level, logging.INFO))
    handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)

    # Quiet noisy third-party loggers
    for noisy_logger in ["matplotlib", "PIL", "fontTools"]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured: format={log_format}, level={level}")
