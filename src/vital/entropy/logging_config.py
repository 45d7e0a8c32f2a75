"""Logging configuration for the sample entropy package.

Provides structured logging with:
- Module-specific loggers under ``vital.entropy``
- Consistent format across kernel, batch and CLI code
- Array arguments summarised, never dumped
"""

from __future__ import annotations

import logging
from typing import Any

# Package logger
logger = logging.getLogger("vital.entropy")

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific submodule.

    Args:
        name: Submodule name (e.g., "matching", "vitals").

    Returns:
        Logger configured for the submodule.
    """
    return logging.getLogger(f"vital.entropy.{name}")


def configure_logging(level: int | str = logging.INFO, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
    """Attach a single stream handler to the package logger.

    Calling this repeatedly replaces the previous handler rather than
    stacking duplicates.

    Args:
        level: Logging level name or number.
        fmt: Format string for the handler.

    Returns:
        The package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    return logger


def log_function_entry(
    logger: logging.Logger,
    func_name: str,
    **params: Any,
) -> None:
    """Log function entry with parameters.

    Args:
        logger: Logger instance.
        func_name: Name of the function.
        **params: Key parameters to log (sanitized).
    """
    if not logger.isEnabledFor(logging.DEBUG):
        return

    # Summarise series instead of logging samples
    safe_params = {}
    for key, value in params.items():
        if isinstance(value, (int, float, str, bool, type(None))):
            safe_params[key] = value
        elif hasattr(value, "__len__") and not isinstance(value, dict):
            safe_params[key] = f"<{type(value).__name__} len={len(value)}>"
        else:
            safe_params[key] = f"<{type(value).__name__}>"

    param_str = ", ".join(f"{k}={v}" for k, v in safe_params.items())
    logger.debug(f"Entering {func_name}({param_str})")


def log_result(
    logger: logging.Logger,
    message: str,
    level: int = logging.DEBUG,
    **metrics: Any,
) -> None:
    """Log a result or key metric.

    Args:
        logger: Logger instance.
        message: Description of the result.
        level: Logging level, DEBUG by default since the kernel runs per series.
        **metrics: Key metrics to include.
    """
    if metrics:
        metric_str = ", ".join(f"{k}={v}" for k, v in metrics.items())
        logger.log(level, f"{message}: {metric_str}")
    else:
        logger.log(level, message)


def log_warning(
    logger: logging.Logger,
    message: str,
    **context: Any,
) -> None:
    """Log a warning with context.

    Args:
        logger: Logger instance.
        message: Warning message.
        **context: Additional context.
    """
    if context:
        context_str = ", ".join(f"{k}={v}" for k, v in context.items())
        logger.warning(f"{message} ({context_str})")
    else:
        logger.warning(message)
