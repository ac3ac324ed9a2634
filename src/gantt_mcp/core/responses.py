"""
Standard response contracts for schedule operations.
Provides consistent response structures for the MCP tool and the CLI.

Response Schema Contract
========================

Every response follows the same envelope:

    {
        "success": bool,       # Required: operation success/failure
        "data": {...},         # Required: primary payload (error details on failure)
        "error": str | null,   # Required: error message or null on success
        "meta": {              # Required: response metadata
            "version": "response-v2",
            "request_id": "req_abc123"?,
            "warnings": ["..."]?,
            "telemetry": { ... }?
        }
    }

Key Principle:
    - `success=True` means the operation executed correctly, even when nothing
      changed (e.g. collapsing a summary that is already collapsed).
    - `success=False` means the operation was rejected or failed; the task list
      the caller sent is returned to it unmodified.
    - Keep schedule data (tasks, flattened rows, cascade records) inside `data`
      and operational context inside `meta`.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from gantt_mcp.core.context import get_correlation_id

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable error codes for schedule responses.

    Categories:
        - Validation (input errors, hierarchy limits)
        - Resource (not found)
        - System (internal)
    """

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_FORMAT = "INVALID_FORMAT"
    MISSING_REQUIRED = "MISSING_REQUIRED"
    INVALID_PARENT = "INVALID_PARENT"
    INVALID_SELECTION = "INVALID_SELECTION"
    MAX_DEPTH_EXCEEDED = "MAX_DEPTH_EXCEEDED"
    CIRCULAR_HIERARCHY = "CIRCULAR_HIERARCHY"

    # Resource errors
    NOT_FOUND = "NOT_FOUND"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ErrorType(str, Enum):
    """Error categories for routing and client-side handling.

    Each type corresponds to an HTTP status code analog.
    """

    VALIDATION = "validation"  # 400 - No retry, fix input
    NOT_FOUND = "not_found"  # 404 - No retry
    CONFLICT = "conflict"  # 409 - Re-read state, then retry
    INTERNAL = "internal"  # 500


@dataclass
class ToolResponse:
    """
    Standard response structure for schedule operations.

    Attributes:
        success: Whether the operation completed successfully
        data: The primary payload (operation-specific structured data)
        error: Error message if success is False, None otherwise
        meta: Response metadata including version identifier
    """

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=lambda: {"version": "response-v2"})


def _build_meta(
    *,
    request_id: Optional[str] = None,
    warnings: Optional[Sequence[str]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    extra: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Construct a metadata payload that always includes the response version.

    When ``request_id`` is not given, the correlation ID of the active request
    context is used.
    """
    meta: Dict[str, Any] = {"version": "response-v2"}

    effective_request_id = request_id or get_correlation_id() or None
    if effective_request_id:
        meta["request_id"] = effective_request_id
    if warnings:
        meta["warnings"] = list(warnings)
    if telemetry:
        meta["telemetry"] = dict(telemetry)
    if extra:
        meta.update(dict(extra))

    return meta


def success_response(
    data: Optional[Mapping[str, Any]] = None,
    *,
    warnings: Optional[Sequence[str]] = None,
    telemetry: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
    **fields: Any,
) -> ToolResponse:
    """Create a standardized success response.

    Args:
        data: Optional mapping used as the base payload.
        warnings: Non-fatal issues to surface in ``meta.warnings``.
        telemetry: Timing/performance metadata.
        request_id: Correlation identifier propagated through logs.
        meta: Arbitrary extra metadata to merge into ``meta``.
        **fields: Additional payload fields (shorthand for ``data.update``).
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))
    if fields:
        payload.update(fields)

    meta_payload = _build_meta(
        request_id=request_id,
        warnings=warnings,
        telemetry=telemetry,
        extra=meta,
    )

    return ToolResponse(success=True, data=payload, error=None, meta=meta_payload)


def error_response(
    message: str,
    *,
    data: Optional[Mapping[str, Any]] = None,
    error_code: Optional[Union[ErrorCode, str]] = None,
    error_type: Optional[Union[ErrorType, str]] = None,
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
    meta: Optional[Mapping[str, Any]] = None,
) -> ToolResponse:
    """Create a standardized error response.

    Args:
        message: Human-readable description of the failure.
        data: Optional mapping with additional machine-readable context.
        error_code: Canonical error code (``ErrorCode`` enum or string).
        error_type: Error category for routing (``ErrorType`` enum or string).
        remediation: User-facing guidance on how to fix the issue.
        details: Nested structure describing the failure.
        request_id: Correlation identifier propagated through logs.
        meta: Arbitrary extra metadata to merge into ``meta``.

    Example:
        >>> error_response(
        ...     "Cannot paste: would exceed maximum nesting depth of 3 levels",
        ...     error_code=ErrorCode.MAX_DEPTH_EXCEEDED,
        ...     error_type=ErrorType.VALIDATION,
        ... )
    """
    payload: Dict[str, Any] = {}
    if data:
        payload.update(dict(data))

    effective_error_code: Union[ErrorCode, str] = (
        error_code if error_code is not None else ErrorCode.INTERNAL_ERROR
    )
    effective_error_type: Union[ErrorType, str] = (
        error_type if error_type is not None else ErrorType.INTERNAL
    )

    if "error_code" not in payload:
        payload["error_code"] = (
            effective_error_code.value
            if isinstance(effective_error_code, Enum)
            else effective_error_code
        )
    if "error_type" not in payload:
        payload["error_type"] = (
            effective_error_type.value
            if isinstance(effective_error_type, Enum)
            else effective_error_type
        )
    if remediation is not None and "remediation" not in payload:
        payload["remediation"] = remediation
    if details and "details" not in payload:
        payload["details"] = dict(details)

    meta_payload = _build_meta(request_id=request_id, extra=meta)

    return ToolResponse(success=False, data=payload, error=message, meta=meta_payload)


# ---------------------------------------------------------------------------
# Specialized Error Helpers
# ---------------------------------------------------------------------------


def validation_error(
    message: str,
    *,
    field: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    remediation: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ToolResponse:
    """Create a validation error response (HTTP 400 analog).

    Example:
        >>> validation_error(
        ...     "direction must be 'above' or 'below'",
        ...     field="direction",
        ... )
    """
    error_details = dict(details) if details else {}
    if field and "field" not in error_details:
        error_details["field"] = field

    return error_response(
        message,
        error_code=ErrorCode.VALIDATION_ERROR,
        error_type=ErrorType.VALIDATION,
        details=error_details if error_details else None,
        remediation=remediation,
        request_id=request_id,
    )


def not_found_error(
    resource_type: str,
    resource_id: str,
    *,
    remediation: Optional[str] = None,
    request_id: Optional[str] = None,
) -> ToolResponse:
    """Create a not found error response (HTTP 404 analog).

    Example:
        >>> not_found_error("Task", "a1b2")
    """
    code = ErrorCode.TASK_NOT_FOUND if resource_type.lower() == "task" else ErrorCode.NOT_FOUND
    return error_response(
        f"{resource_type} '{resource_id}' not found",
        error_code=code,
        error_type=ErrorType.NOT_FOUND,
        details={"resource_type": resource_type, "resource_id": resource_id},
        remediation=remediation or f"Verify the {resource_type.lower()} ID exists in the task list.",
        request_id=request_id,
    )


def max_depth_error(
    message: str,
    *,
    max_depth: int,
    details: Optional[Mapping[str, Any]] = None,
    request_id: Optional[str] = None,
) -> ToolResponse:
    """Create a nesting-depth violation response.

    Raised by paste and group when the resulting hierarchy would reach or
    exceed ``max_depth`` levels.
    """
    error_details = {"max_depth": max_depth}
    if details:
        error_details.update(dict(details))

    return error_response(
        message,
        error_code=ErrorCode.MAX_DEPTH_EXCEEDED,
        error_type=ErrorType.VALIDATION,
        details=error_details,
        remediation="Paste or group at a shallower position, or flatten the copied rows first.",
        request_id=request_id,
    )


def internal_error(
    message: str = "An internal error occurred",
    *,
    request_id: Optional[str] = None,
) -> ToolResponse:
    """Create an internal error response (HTTP 500 analog)."""
    return error_response(
        message,
        error_code=ErrorCode.INTERNAL_ERROR,
        error_type=ErrorType.INTERNAL,
        remediation="Check server logs for the request ID and retry.",
        request_id=request_id,
    )
