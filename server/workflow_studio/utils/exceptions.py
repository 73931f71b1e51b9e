"""
Centralized exception handling utilities for the application.

Defines the domain exceptions raised by the workflow store and snapshot
importer, plus decorators and factory functions that translate them into
consistent HTTP responses at the API layer.
"""

import asyncio
import logging
import traceback
from functools import wraps
from typing import Callable, List, Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class WorkflowStudioError(Exception):
    """Base class for workflow studio errors."""


class SnapshotImportError(WorkflowStudioError):
    """Imported payload is not a well-formed workflow snapshot."""

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        super().__init__(message)
        self.problems = problems or []


class ElementNotFoundError(WorkflowStudioError):
    """A node or edge id does not exist in the workflow."""

    def __init__(self, element: str, element_id: str):
        super().__init__(f"{element} '{element_id}' not found")
        self.element = element
        self.element_id = element_id


class DuplicateElementError(WorkflowStudioError):
    """A node or edge id is already taken."""

    def __init__(self, element: str, element_id: str):
        super().__init__(f"{element} '{element_id}' already exists")
        self.element = element
        self.element_id = element_id


class ErrorResponse:
    """Factory for creating standardized HTTPException responses."""

    @staticmethod
    def validation_error(detail: str) -> HTTPException:
        """Create a 400 validation error response."""
        return HTTPException(status_code=400, detail=detail)

    @staticmethod
    def not_found(resource: str) -> HTTPException:
        """Create a 404 not found error response."""
        return HTTPException(status_code=404, detail=f"{resource} not found")

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """Create a 409 conflict error response."""
        return HTTPException(status_code=409, detail=detail)

    @staticmethod
    def internal_error(detail: str, include_traceback: bool = False) -> HTTPException:
        """Create a 500 internal server error response."""
        if include_traceback:
            detail = f"{detail}\n{traceback.format_exc()}"
        return HTTPException(status_code=500, detail=detail)


def to_http_exception(error: Exception, default_status: int = 500) -> HTTPException:
    """Map a domain exception onto the matching HTTP error."""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, SnapshotImportError):
        return ErrorResponse.validation_error(str(error))
    if isinstance(error, ElementNotFoundError):
        return ErrorResponse.not_found(f"{error.element} '{error.element_id}'")
    if isinstance(error, DuplicateElementError):
        return ErrorResponse.conflict(str(error))
    if default_status == 500:
        return ErrorResponse.internal_error(f"Internal error: {str(error)}")
    return HTTPException(status_code=default_status, detail=f"Internal error: {str(error)}")


def handle_api_errors(
    default_status: int = 500,
    log_errors: bool = True
):
    """
    Decorator for consistent error handling in API endpoints.

    Domain errors become 400/404/409 responses, HTTPException passes through
    untouched and anything else becomes ``default_status``.

    Usage:
        @handle_api_errors(default_status=500)
        async def my_endpoint():
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except HTTPException:
                raise
            except WorkflowStudioError as e:
                if log_errors:
                    logger.warning(f"Request rejected in {func.__name__}: {str(e)}")
                raise to_http_exception(e, default_status)
            except Exception as e:
                if log_errors:
                    logger.error(f"Unexpected error in {func.__name__}: {str(e)}\n{traceback.format_exc()}")
                raise to_http_exception(e, default_status)

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except HTTPException:
                raise
            except WorkflowStudioError as e:
                if log_errors:
                    logger.warning(f"Request rejected in {func.__name__}: {str(e)}")
                raise to_http_exception(e, default_status)
            except Exception as e:
                if log_errors:
                    logger.error(f"Unexpected error in {func.__name__}: {str(e)}\n{traceback.format_exc()}")
                raise to_http_exception(e, default_status)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
