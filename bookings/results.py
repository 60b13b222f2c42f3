"""Typed results returned by the service layer instead of raising."""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

from utils.exceptions import BookingSystemError, DatabaseError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

GENERIC_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


@dataclass
class OperationResult(Generic[T]):
    """Outcome of a service operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "OperationResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: BookingSystemError) -> "OperationResult[T]":
        # Storage details stay in the logs
        message = GENERIC_ERROR_MESSAGE if error.kind == ErrorKind.STORAGE else str(error)
        return cls(success=False, error=message, error_kind=error.kind)


async def run_operation(
    action: str, operation: Callable[[], Awaitable[T]]
) -> OperationResult[T]:
    """
    Run an operation and convert expected failures into a result.

    Only ``BookingSystemError`` subclasses are converted; anything else is a
    bug and propagates to the API boundary.
    """
    try:
        return OperationResult.ok(await operation())
    except DatabaseError as e:
        logger.error(f"Storage failure during {action}: {e}", exc_info=True)
        return OperationResult.fail(e)
    except BookingSystemError as e:
        logger.info(f"{action} rejected ({e.kind.value}): {e}")
        return OperationResult.fail(e)
