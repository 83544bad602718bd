"""Helpers for optional, advisory operations"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F")


async def operation_with_fallback(operation: Callable[[], Awaitable[T]], fallback: F) -> T | F:
    """Run an operation whose failure is tolerable, returning fallback if it raises"""
    try:
        return await operation()
    except Exception as e:
        logger.debug(f"Optional operation failed, using fallback: {e}")
        return fallback
