"""
Root pytest configuration and shared fixtures.

Provides task-list builders, a deterministic id factory and response helpers
shared by the core, tool and CLI tests.
"""

import itertools
import json
from typing import Any, Callable, Dict, List, Optional, Union

import pytest
from mcp.types import TextContent

# Response contract version from responses.py
RESPONSE_CONTRACT_VERSION = "response-v2"


def extract_response_dict(result: Union[Dict[str, Any], TextContent]) -> Dict[str, Any]:
    """Extract dict from tool result, handling both dict and TextContent.

    Tools wrapped with canonical_tool return TextContent with minified JSON.
    This helper extracts the dict for test assertions.

    Raises:
        TypeError: If result is neither dict nor TextContent
    """
    if isinstance(result, dict):
        return result
    if isinstance(result, TextContent):
        return json.loads(result.text)
    raise TypeError(
        f"Expected dict or TextContent, got {type(result).__name__}"
    )


def make_task(
    task_id: str,
    *,
    parent: Optional[str] = None,
    order: int = 0,
    type: str = "task",
    start_date: str = "",
    end_date: str = "",
    duration: int = 0,
    open: Optional[bool] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a task dict with the keys the editor expects."""
    task = {
        "id": task_id,
        "name": extra.pop("name", task_id.upper()),
        "start_date": start_date,
        "end_date": end_date,
        "duration": duration,
        "progress": 0,
        "color": "#0F6CBD",
        "order": order,
        "type": type,
        "parent": parent,
        "metadata": {},
    }
    if open is not None:
        task["open"] = open
    task.update(extra)
    return task


def by_id(tasks: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {task["id"]: task for task in tasks}


@pytest.fixture
def id_factory() -> Callable[[], str]:
    """Sequential ids: new-1, new-2, ..."""
    counter = itertools.count(1)
    return lambda: f"new-{next(counter)}"


@pytest.fixture
def sample_tasks() -> List[Dict[str, Any]]:
    """A small schedule.

    phase (summary)
      a   2025-01-01 .. 2025-01-05
      b   2025-01-06 .. 2025-01-10
    c     2025-01-11 .. 2025-01-15
    m     milestone 2025-01-20
    """
    return [
        make_task(
            "phase",
            type="summary",
            order=0,
            start_date="2025-01-01",
            end_date="2025-01-10",
            duration=10,
        ),
        make_task("a", parent="phase", order=1, start_date="2025-01-01", end_date="2025-01-05", duration=5),
        make_task("b", parent="phase", order=2, start_date="2025-01-06", end_date="2025-01-10", duration=5),
        make_task("c", order=3, start_date="2025-01-11", end_date="2025-01-15", duration=5),
        make_task("m", type="milestone", order=4, start_date="2025-01-20", end_date="2025-01-20", duration=0),
    ]


@pytest.fixture
def sample_dependencies() -> List[Dict[str, Any]]:
    return [
        {"id": "d1", "from_task_id": "a", "to_task_id": "b", "type": "FS"},
        {"id": "d2", "from_task_id": "b", "to_task_id": "c", "type": "FS"},
        {"id": "d3", "from_task_id": "phase", "to_task_id": "m", "type": "FS"},
    ]
