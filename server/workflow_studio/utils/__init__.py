"""Utility functions and helper classes."""

from .exceptions import (
    WorkflowStudioError,
    SnapshotImportError,
    ElementNotFoundError,
    DuplicateElementError,
    ErrorResponse,
    to_http_exception,
    handle_api_errors
)

from .general import (
    format_sse_data,
    now_ms,
    generate_id
)

__all__ = [
    # Exception handling
    'WorkflowStudioError',
    'SnapshotImportError',
    'ElementNotFoundError',
    'DuplicateElementError',
    'ErrorResponse',
    'to_http_exception',
    'handle_api_errors',
    # General utilities
    'format_sse_data',
    'now_ms',
    'generate_id'
]
