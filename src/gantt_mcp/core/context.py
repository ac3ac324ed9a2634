"""Request context propagation for log correlation.

Every schedule operation dispatched from the MCP tool or the CLI runs inside a
request context so that the log lines it produces share one correlation ID.

Usage:
    from gantt_mcp.core.context import sync_request_context, get_correlation_id

    with sync_request_context(client_id="cli") as ctx:
        print(ctx.correlation_id)  # e.g., "req_a1b2c3d4e5f6"
"""

from __future__ import annotations

import secrets
import time
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Generator, Optional

__all__ = [
    "correlation_id_var",
    "client_id_var",
    "start_time_var",
    "RequestContext",
    "generate_correlation_id",
    "sync_request_context",
    "get_correlation_id",
    "get_client_id",
    "get_start_time",
]

# -----------------------------------------------------------------------------
# Context Variables
# -----------------------------------------------------------------------------

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
"""Request correlation ID for tracing requests across components."""

client_id_var: ContextVar[str] = ContextVar("client_id", default="anonymous")
"""Identifier for the surface making the request (mcp, cli, ...)."""

start_time_var: ContextVar[float] = ContextVar("start_time", default=0.0)
"""Request start time as Unix timestamp."""


# -----------------------------------------------------------------------------
# Correlation ID Generation
# -----------------------------------------------------------------------------


def generate_correlation_id(prefix: str = "req") -> str:
    """Generate a unique correlation ID with optional prefix.

    Format: {prefix}_{12_hex_chars}

    Args:
        prefix: ID prefix (default: "req")

    Returns:
        Unique correlation ID string
    """
    return f"{prefix}_{secrets.token_hex(6)}"


# -----------------------------------------------------------------------------
# Request Context
# -----------------------------------------------------------------------------


@dataclass
class RequestContext:
    """Snapshot of the current request context.

    Attributes:
        correlation_id: Unique request identifier
        client_id: Client/surface identifier
        start_time: Request start timestamp
    """

    correlation_id: str = ""
    client_id: str = "anonymous"
    start_time: float = field(default_factory=time.time)


@contextmanager
def sync_request_context(
    *,
    correlation_id: Optional[str] = None,
    client_id: Optional[str] = None,
) -> Generator[RequestContext, None, None]:
    """Set up context variables for the duration of the with block.

    Args:
        correlation_id: Request ID (auto-generated if None)
        client_id: Client identifier (default: "anonymous")

    Yields:
        RequestContext snapshot
    """
    corr_id = correlation_id or generate_correlation_id()
    client = client_id or "anonymous"
    start = time.time()

    token_corr = correlation_id_var.set(corr_id)
    token_client = client_id_var.set(client)
    token_start = start_time_var.set(start)

    try:
        yield RequestContext(
            correlation_id=corr_id,
            client_id=client,
            start_time=start,
        )
    finally:
        correlation_id_var.reset(token_corr)
        client_id_var.reset(token_client)
        start_time_var.reset(token_start)


# -----------------------------------------------------------------------------
# Context Accessors
# -----------------------------------------------------------------------------


def get_correlation_id() -> str:
    """Get the current correlation ID, or empty string if not set."""
    return correlation_id_var.get()


def get_client_id() -> str:
    """Get the current client ID, or "anonymous" if not set."""
    return client_id_var.get()


def get_start_time() -> float:
    """Get the request start time, or 0.0 if not set."""
    return start_time_var.get()
