"""
Domain errors and the API exception handler.

Three families of failure exist:
- validation errors, raised before anything is written
- state conflicts, such as adding to a locked terminal
- write failures from the persistence layer

The handler renders all of them as {"error": ..., "code": ...} bodies.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class PlatformError(Exception):
    """Base class for domain errors surfaced to API clients."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details


class StockValidationError(PlatformError):
    """Input would break a stock invariant; nothing was written."""

    code = "stock_validation"


class OutOfStock(StockValidationError):
    code = "out_of_stock"


class TerminalLocked(PlatformError):
    """The outlet has received no stock today."""

    status_code = status.HTTP_409_CONFLICT
    code = "terminal_locked"


class CartStateError(PlatformError):
    status_code = status.HTTP_409_CONFLICT
    code = "cart_state"


class LedgerWriteError(PlatformError):
    """The database rejected or failed a write."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "write_failed"


class SettlementError(LedgerWriteError):
    code = "settlement_failed"


def api_exception_handler(exc, context):
    """
    DRF exception handler that understands PlatformError.

    Anything else falls through to the default DRF handler.
    """
    if isinstance(exc, PlatformError):
        view = context.get("view")
        logger.warning(
            "Request rejected: %s",
            exc.message,
            extra={"code": exc.code, "view": view.__class__.__name__ if view else None},
        )
        body = {"error": exc.message, "code": exc.code}
        if exc.details:
            body["details"] = exc.details
        return Response(body, status=exc.status_code)

    return exception_handler(exc, context)
