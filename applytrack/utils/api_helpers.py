"""
Common API utilities and helper functions to reduce code redundancy across API modules.
"""
import logging
from typing import Optional, Sequence

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

_PYDANTIC_PREFIXES = ("Value error, ", "Assertion failed, ")


def validate_non_empty_string(value: Optional[str], field_name: str) -> None:
    """
    Validates that a string field is not None or empty.

    Raises:
        HTTPException: If value is None or empty
    """
    if not value or not value.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field_name} is required"
        )


def format_validation_errors(errors: Sequence[dict]) -> str:
    """
    Flatten pydantic error dicts into one human-readable message.

    Custom validator messages are used as-is; built-in errors are prefixed
    with the offending field name.
    """
    messages = []
    for error in errors:
        msg = error.get("msg", "Invalid value")
        if msg.startswith(_PYDANTIC_PREFIXES):
            messages.append(msg.split(", ", 1)[1])
            continue
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        messages.append(f"{'.'.join(location)}: {msg}" if location else msg)
    return ", ".join(messages) or "Invalid request"


def handle_service_error(error: Exception, service_name: str) -> HTTPException:
    """
    Standardized error handling for service layer exceptions.

    Args:
        error: The exception that occurred
        service_name: Name of the service for logging/error messages

    Returns:
        HTTPException with appropriate status code and message
    """
    error_msg = str(error)
    logger.error("%s service error: %s", service_name, error_msg)

    if isinstance(error, ValueError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_msg
        )
    elif isinstance(error, RuntimeError):
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{service_name} service is currently unavailable"
        )
    else:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to complete {service_name}"
        )


def check_resource_exists(resource: Optional[object], resource_type: str) -> None:
    """
    Raise a 404 when a lookup came back empty. Rows owned by another user
    are looked up with the owner in the filter, so they land here too.
    """
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type} not found"
        )
