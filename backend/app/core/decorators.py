"""
Service layer decorators for common functionality.

This module provides decorators for error handling, logging, and other
cross-cutting concerns in the service layer.
"""

import asyncio
import functools
import inspect
import structlog
from typing import Any, Callable, Dict, Optional, Type, ParamSpec, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import (
    DatabaseError,
    DependencyError,
    ServiceException,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# Type variables for generic decorator typing
P = ParamSpec("P")
R = TypeVar("R")


def _build_context(
    func: Callable[..., Any],
    service_name: str,
    include_context: bool,
    args: tuple,
    kwargs: dict,
) -> Dict[str, Any]:
    context: Dict[str, Any] = {
        "service": service_name,
        "operation": func.__name__,
    }
    if not include_context:
        return context

    bound_args = inspect.signature(func).bind(*args, **kwargs)
    bound_args.apply_defaults()
    arguments: Dict[str, Any] = {}
    for name, value in bound_args.arguments.items():
        if name in ["self", "db", "session"]:
            continue
        # Limit string values to avoid huge log entries
        if isinstance(value, str) and len(value) > 100:
            arguments[name] = value[:100] + "..."
        else:
            arguments[name] = str(value)[:200] if value is not None else None
    # Kept nested: ``event`` is the message argument of structlog loggers
    context["arguments"] = arguments
    return context


def service_error_handler(
    service_name: str,
    reraise: bool = True,
    include_context: bool = True,
    default_error_type: Type[ServiceException] = ServiceException,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for handling service method errors with structured logging.

    Service exceptions pass through unchanged. ``ValueError`` becomes
    :class:`ValidationError`; connectivity problems and timeouts become
    :class:`DependencyError`; SQLAlchemy failures become :class:`DatabaseError`.

    :param service_name: Name of the service (e.g., "ResolutionService")
    :param reraise: Whether to re-raise exceptions after logging
    :param include_context: Whether to include method parameters in error context
    :param default_error_type: Default exception type to wrap generic errors
    :returns: Decorated function with error handling

    :example:
        @service_error_handler("ResolutionService")
        async def resolve_lag(self, finding_id: int, actor_id: str) -> LagFindingResponse:
            ...
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        operation_name = func.__name__

        @functools.wraps(func)
        async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            context = _build_context(
                func, service_name, include_context, args, kwargs
            )
            error_kwargs = {
                "service": service_name,
                "operation": operation_name,
                "context": context if include_context else {},
            }

            try:
                logger.debug("Service method called", **context)
                result = await func(*args, **kwargs)
                logger.debug("Service method completed successfully", **context)
                return result

            except ServiceException as e:
                logger.warning(
                    "Service operation failed",
                    error_type=e.__class__.__name__,
                    error_message=e.message,
                    error_context=e.context,
                    **context,
                )
                if reraise:
                    raise
                return None  # type: ignore[return-value]

            except ValueError as e:
                logger.error(
                    "Validation error in service operation",
                    error_message=str(e),
                    **context,
                )
                if reraise:
                    raise ValidationError(message=str(e), **error_kwargs) from e
                return None  # type: ignore[return-value]

            except (ConnectionError, TimeoutError, asyncio.TimeoutError) as e:
                logger.error(
                    "Dependency connectivity error",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    **context,
                )
                if reraise:
                    raise DependencyError(
                        message=str(e) or type(e).__name__,
                        original_error=e,
                        **error_kwargs,
                    ) from e
                return None  # type: ignore[return-value]

            except SQLAlchemyError as e:
                logger.error(
                    "Database error in service operation",
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    **context,
                )
                if reraise:
                    raise DatabaseError(
                        message=str(e), original_error=e, **error_kwargs
                    ) from e
                return None  # type: ignore[return-value]

            except Exception as e:
                error_message = (
                    f"Unexpected error in {service_name}.{operation_name}: {str(e)}"
                )
                logger.error(
                    "Unexpected error in service operation",
                    error_type=e.__class__.__name__,
                    error_message=str(e),
                    **context,
                )
                if reraise:
                    raise default_error_type(
                        message=error_message, original_error=e, **error_kwargs
                    ) from e
                return None  # type: ignore[return-value]

        return async_wrapper  # type: ignore[return-value]

    return decorator


def input_validation(
    validate_non_empty: Optional[list[str]] = None,
    validate_positive: Optional[list[str]] = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for input validation in async service methods.

    :param validate_non_empty: List of parameter names that must not be empty
    :param validate_positive: List of parameter names that must be positive numbers

    :example:
        @input_validation(
            validate_non_empty=["actor_id"],
            validate_positive=["finding_id"],
        )
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            bound_args = inspect.signature(func).bind(*args, **kwargs)
            bound_args.apply_defaults()

            for param_name in validate_non_empty or []:
                if param_name in bound_args.arguments:
                    value = bound_args.arguments[param_name]
                    if value is None or (isinstance(value, str) and not value.strip()):
                        raise ValueError(f"{param_name} cannot be empty or None")

            for param_name in validate_positive or []:
                if param_name in bound_args.arguments:
                    value = bound_args.arguments[param_name]
                    if isinstance(value, (int, float)) and value <= 0:
                        raise ValueError(f"{param_name} must be positive")

            return await func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator
