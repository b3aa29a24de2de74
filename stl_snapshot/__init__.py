"""
stl_snapshot: frames an STL part for a single still render and crops the result.

The end-to-end entry point is stl_snapshot.render.take_snapshot.
"""

from stl_snapshot.logging_config import (
    setup_logging,
    get_logger,
    configure_default_logging,
    log_timing,
    timed,
    LogContext,
)

__version__ = "0.1.0"

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_default_logging",
    "log_timing",
    "timed",
    "LogContext",
]
