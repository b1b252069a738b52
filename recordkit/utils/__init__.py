"""
Utilities package for recordkit.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of domain-specific logic.
"""

from recordkit.utils.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
]
