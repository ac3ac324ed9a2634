"""JSON output helpers for the gantt CLI.

This module provides the sole output mechanism for the CLI. It wraps the
canonical response helpers from gantt_mcp.core.responses so CLI output
matches the response-v2 envelope returned by the MCP tool.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Mapping, Sequence, NoReturn

from gantt_mcp.cli.logging import generate_request_id, get_request_id, set_request_id
from gantt_mcp.core.responses import error_response, success_response


def _ensure_request_id() -> str:
    request_id = get_request_id()
    if request_id:
        return request_id
    request_id = generate_request_id()
    set_request_id(request_id)
    return request_id


def emit(data: Any) -> None:
    """Emit JSON to stdout.

    This is the single output function for all CLI commands.
    Data is serialized in minified format for smaller payloads.

    Args:
        data: Any JSON-serializable data structure.
    """
    print(json.dumps(data, separators=(",", ":"), default=str))


def emit_error(
    message: str,
    code: str = "INTERNAL_ERROR",
    *,
    error_type: str = "internal",
    remediation: str | None = None,
    details: Mapping[str, Any] | None = None,
) -> NoReturn:
    """Emit error JSON to stderr and exit with code 1.

    Error info is structured in the `data` field with `error_code`,
    `error_type`, and `remediation` fields. The `error` field contains the
    human-readable message.

    Args:
        message: Human-readable error description.
        code: Error code in SCREAMING_SNAKE_CASE (e.g., VALIDATION_ERROR).
        error_type: Error category for routing (validation, not_found, internal).
        remediation: Actionable guidance for resolving the error.
        details: Optional additional error context.

    Raises:
        SystemExit: Always exits with code 1.
    """
    response = error_response(
        message=message,
        error_code=code,
        error_type=error_type,
        remediation=remediation,
        details=details,
        request_id=_ensure_request_id(),
    )
    print(json.dumps(asdict(response), separators=(",", ":"), default=str), file=sys.stderr)
    sys.exit(1)


def emit_success(
    data: Any,
    *,
    warnings: Sequence[str] | None = None,
    telemetry: Mapping[str, Any] | None = None,
    meta: Mapping[str, Any] | None = None,
) -> None:
    """Emit success response envelope to stdout.

    All responses include meta.version: "response-v2".

    Args:
        data: The operation-specific payload.
        warnings: Non-fatal issues to surface in meta.warnings.
        telemetry: Timing/performance metadata.
        meta: Additional metadata to merge into meta object.
    """
    # Wrap non-dict data in a result key
    payload = data if isinstance(data, dict) else {"result": data}
    response = success_response(
        data=payload,
        warnings=warnings,
        telemetry=telemetry,
        meta=meta,
        request_id=_ensure_request_id(),
    )
    emit(asdict(response))
