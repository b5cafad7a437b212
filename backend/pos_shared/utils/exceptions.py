"""
Centralized HTTP exceptions for consistent error handling.

Usage:
    from pos_shared.utils.exceptions import NotFoundError, ValidationError

    raise NotFoundError("Order", order_id)
    raise ValidationError("Cancellation reason is required when cancelling an order")
"""

from typing import Any

from fastapi import HTTPException, status

from pos_shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All domain exceptions inherit from this class so every rejected
    request leaves a log line with its context.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Item", item_id, outlet_id=str(outlet_id))
    """

    def __init__(self, entity: str, entity_id: Any = None, **log_context: Any):
        if entity_id is not None:
            detail = f"{entity} {entity_id} not found"
        else:
            detail = f"{entity} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            log_level="warning",
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            **log_context,
        )


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: Any = None, **log_context: Any):
        super().__init__("Order", order_id, **log_context)


class TableNotFoundError(NotFoundError):
    def __init__(self, table_id: Any = None, **log_context: Any):
        super().__init__("Table", table_id, **log_context)


class ItemNotFoundError(NotFoundError):
    def __init__(self, item_id: Any = None, **log_context: Any):
        super().__init__("Item", item_id, **log_context)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Quantity type is required for this item", item_id=str(item.id))
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="warning",
            **log_context,
        )


class InvalidStateError(ValidationError):
    """
    Entity is in a state that does not allow the operation.

    A custom detail overrides the generated message, e.g.
    InvalidStateError("Order", "COMPLETED", detail="Order is already completed").
    """

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        detail: str | None = None,
        **log_context: Any,
    ):
        if detail is None:
            if expected_states:
                states_str = ", ".join(expected_states)
                detail = f"{entity} is in state '{current_state}', expected one of: {states_str}"
            else:
                detail = f"{entity} in state '{current_state}' cannot be modified"

        super().__init__(detail, entity=entity, current_state=current_state, **log_context)


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).

    Usage:
        raise ConflictError("Table already has an active order")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            log_level="warning",
            **log_context,
        )
