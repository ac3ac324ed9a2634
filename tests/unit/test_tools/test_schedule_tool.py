"""Tests for the unified schedule tool.

Tests dispatch logic, action handlers, error conditions and response
envelopes for every schedule action.
"""

import copy
import json
from unittest.mock import MagicMock

import pytest

from gantt_mcp.config import HierarchyConfig, ServerConfig
from gantt_mcp.core.clipboard import ROW_PREFIX
from gantt_mcp.core.context import get_client_id, get_correlation_id
from gantt_mcp.tools.schedule import register_schedule_tool
from tests.conftest import by_id, extract_response_dict, make_task


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def config():
    return ServerConfig(hierarchy=HierarchyConfig())


@pytest.fixture
def schedule_tool(config):
    """Register the tool on a mock FastMCP and return the wrapped function."""
    mcp = MagicMock()
    registered = {}

    def tool(*args, **kwargs):
        def decorator(func):
            registered[kwargs["name"]] = func
            return func

        return decorator

    mcp.tool = MagicMock(side_effect=tool)
    register_schedule_tool(mcp, config)
    return registered["schedule"]


@pytest.fixture
def call(schedule_tool):
    def _call(action, **kwargs):
        return extract_response_dict(schedule_tool(action=action, **kwargs))

    return _call


# =============================================================================
# Dispatch
# =============================================================================


class TestDispatch:
    def test_registered_under_canonical_name(self, schedule_tool):
        assert schedule_tool.__name__ == "schedule"

    def test_unknown_action(self, call):
        result = call("explode")
        assert result["success"] is False
        assert result["data"]["error_code"] == "VALIDATION_ERROR"
        assert "flatten" in result["data"]["details"]["allowed_actions"]

    def test_invalid_tasks_payload(self, call):
        result = call("flatten", tasks=[{"name": "no id"}])
        assert result["success"] is False
        assert result["data"]["error_code"] == "VALIDATION_ERROR"
        assert result["data"]["details"]["field"] == "tasks[0].id"

    def test_envelope_has_request_id(self, call, sample_tasks):
        result = call("flatten", tasks=sample_tasks)
        assert result["meta"]["version"] == "response-v2"
        assert result["meta"]["request_id"].startswith("schedule_")

    def test_unexpected_failure_is_internal_error(self, call, monkeypatch):
        import gantt_mcp.tools.schedule as schedule_module

        def boom(*args, **kwargs):
            raise RuntimeError("kaput")

        monkeypatch.setattr(schedule_module, "build_flattened_task_list", boom)
        result = call("flatten", tasks=[])
        assert result["success"] is False
        assert result["data"]["error_code"] == "INTERNAL_ERROR"
        assert "kaput" in result["error"]

    def test_handlers_run_inside_request_context(self, call, monkeypatch):
        import gantt_mcp.tools.schedule as schedule_module

        seen = {}

        def record(*args, **kwargs):
            seen["correlation_id"] = get_correlation_id()
            seen["client_id"] = get_client_id()
            return []

        monkeypatch.setattr(schedule_module, "build_flattened_task_list", record)
        result = call("flatten", tasks=[])

        assert seen["correlation_id"] == result["meta"]["request_id"]
        assert seen["client_id"] == "mcp"
        assert get_correlation_id() == ""


# =============================================================================
# Read-only actions
# =============================================================================


class TestQueries:
    def test_flatten(self, call, sample_tasks):
        result = call("flatten", tasks=sample_tasks, collapsed_ids=["phase"])
        assert result["success"] is True
        assert result["data"]["count"] == 3
        assert [row["task"]["id"] for row in result["data"]["rows"]] == ["phase", "c", "m"]
        assert "duration_ms" in result["meta"]["telemetry"]

    def test_normalize(self, call):
        tasks = [make_task("a", order=10), make_task("b", order=20)]
        result = call("normalize", tasks=tasks)
        assert [t["order"] for t in result["data"]["tasks"]] == [0, 1]

    def test_summary_dates(self, call, sample_tasks):
        result = call("summary_dates", tasks=sample_tasks, task_id="phase")
        assert result["data"]["summary_dates"] == {
            "start_date": "2025-01-01",
            "end_date": "2025-01-10",
            "duration": 10,
        }

    def test_summary_dates_not_found(self, call, sample_tasks):
        result = call("summary-dates", tasks=sample_tasks, task_id="ghost")
        assert result["data"]["error_code"] == "TASK_NOT_FOUND"

    def test_cascade(self, call, sample_tasks):
        by_id(sample_tasks)["b"]["end_date"] = "2025-01-20"
        result = call("cascade", tasks=sample_tasks, task_ids=["phase"])
        assert result["data"]["cascade"][0]["new_values"]["end_date"] == "2025-01-20"

    def test_cascade_requires_ids(self, call, sample_tasks):
        result = call("cascade", tasks=sample_tasks)
        assert result["data"]["details"]["field"] == "task_ids"

    def test_move_set(self, call, sample_tasks):
        result = call("move-set", tasks=sample_tasks, selected_ids=["phase", "c"])
        assert result["data"] == {"task_ids": ["a", "b", "c"], "count": 3}


# =============================================================================
# Editing actions
# =============================================================================


class TestInsert:
    def test_insert_below(self, call, sample_tasks):
        result = call("insert", tasks=sample_tasks, task_id="a", count=2)
        assert result["success"] is True
        insertion = result["data"]["insertion"]
        assert len(insertion["generated_ids"]) == 2
        assert insertion["description"] == "Inserted 2 tasks below"
        assert len(result["data"]["tasks"]) == 7

    def test_bad_direction(self, call, sample_tasks):
        result = call("insert", tasks=sample_tasks, task_id="a", direction="left")
        assert result["data"]["details"]["field"] == "direction"

    def test_bad_count(self, call, sample_tasks):
        result = call("insert", tasks=sample_tasks, task_id="a", count=0)
        assert result["data"]["details"]["field"] == "count"

    def test_missing_reference(self, call, sample_tasks):
        result = call("insert", tasks=sample_tasks, task_id="ghost")
        assert result["data"]["error_code"] == "TASK_NOT_FOUND"

    def test_uses_configured_duration(self, sample_tasks):
        # Config is bound at registration; build a tool with a custom duration
        mcp = MagicMock()
        registered = {}
        mcp.tool = MagicMock(
            side_effect=lambda **kw: (lambda f: registered.setdefault(kw["name"], f))
        )
        register_schedule_tool(mcp, ServerConfig(hierarchy=HierarchyConfig(default_task_duration=2)))
        result = extract_response_dict(
            registered["schedule"](action="insert", tasks=sample_tasks, task_id="c")
        )
        assert result["data"]["insertion"]["task"]["duration"] == 2
        assert result["data"]["insertion"]["task"]["start_date"] == "2025-01-16"
        assert result["data"]["insertion"]["task"]["end_date"] == "2025-01-17"


class TestClipboard:
    def test_copy_then_paste_text(self, call, sample_tasks, sample_dependencies):
        copied = call(
            "copy",
            tasks=sample_tasks,
            dependencies=sample_dependencies,
            selected_ids=["a", "b"],
        )
        assert copied["data"]["clipboard_text"].startswith(ROW_PREFIX)
        assert [d["id"] for d in copied["data"]["dependencies"]] == ["d1"]

        pasted = call(
            "paste",
            tasks=sample_tasks,
            dependencies=sample_dependencies,
            clipboard_text=copied["data"]["clipboard_text"],
            active_task_id="c",
        )
        data = pasted["data"]
        assert pasted["success"] is True
        assert len(data["new_task_ids"]) == 2
        assert data["target_parent"] is None
        assert data["insert_order"] == 3
        assert len(data["tasks"]) == 7
        assert len(data["dependencies"]) == 4
        assert set(data["id_mapping"]) == {"a", "b"}

    def test_copy_uses_active_task_without_selection(self, call, sample_tasks):
        result = call("copy", tasks=sample_tasks, active_task_id="c")
        assert [t["id"] for t in result["data"]["tasks"]] == ["c"]

    def test_copy_requires_selection(self, call, sample_tasks):
        result = call("copy", tasks=sample_tasks)
        assert result["data"]["details"]["field"] == "selected_ids"

    def test_paste_into_summary_refreshes_dates(self, call, sample_tasks):
        clipboard = [make_task("x", start_date="2025-03-01", end_date="2025-03-02")]
        result = call("paste", tasks=sample_tasks, clipboard_tasks=clipboard, active_task_id="b")
        phase = by_id(result["data"]["tasks"])["phase"]
        assert phase["end_date"] == "2025-03-02"

    def test_paste_foreign_text(self, call, sample_tasks):
        result = call("paste", tasks=sample_tasks, clipboard_text="hello")
        assert result["data"]["error_code"] == "INVALID_FORMAT"

    def test_paste_nothing(self, call, sample_tasks):
        result = call("paste", tasks=sample_tasks)
        assert result["data"]["details"]["field"] == "clipboard_tasks"

    def test_paste_text_with_duplicate_ids(self, call, sample_tasks):
        text = ROW_PREFIX + json.dumps(
            {"tasks": [make_task("x"), make_task("x")], "dependencies": []}
        )
        result = call("paste", tasks=sample_tasks, clipboard_text=text)
        assert result["success"] is False
        assert result["data"]["error_code"] == "VALIDATION_ERROR"
        assert result["data"]["details"]["field"] == "clipboard_tasks[1].id"

    def test_paste_text_with_malformed_dependency(self, call, sample_tasks):
        text = ROW_PREFIX + json.dumps({"tasks": [make_task("x")], "dependencies": ["oops"]})
        result = call("paste", tasks=sample_tasks, clipboard_text=text)
        assert result["success"] is False
        assert result["data"]["error_code"] == "VALIDATION_ERROR"
        assert result["data"]["details"]["field"] == "clipboard_dependencies[0]"

    def test_cut_paste_removes_source_rows(self, call, sample_tasks, sample_dependencies):
        copied = call("copy", tasks=sample_tasks, dependencies=sample_dependencies, selected_ids=["c"])
        result = call(
            "paste",
            tasks=sample_tasks,
            dependencies=sample_dependencies,
            clipboard_text=copied["data"]["clipboard_text"],
            active_task_id="b",
            operation="cut",
            cut_task_ids=["c"],
        )
        data = result["data"]
        assert result["success"] is True
        assert data["operation"] == "cut"
        assert data["cut"]["removed_task_ids"] == ["c"]
        new_id = data["new_task_ids"][0]
        ordered = sorted(data["tasks"], key=lambda t: t["order"])
        assert [t["id"] for t in ordered] == ["phase", "a", new_id, "b", "m"]
        assert [t["order"] for t in ordered] == [0, 1, 2, 3, 4]
        assert [d["id"] for d in data["dependencies"]] == ["d1", "d3"]

    def test_cut_paste_requires_source_ids(self, call, sample_tasks):
        result = call(
            "paste",
            tasks=sample_tasks,
            clipboard_tasks=[make_task("x")],
            operation="cut",
        )
        assert result["data"]["details"]["field"] == "cut_task_ids"

    def test_paste_unknown_operation(self, call, sample_tasks):
        result = call(
            "paste",
            tasks=sample_tasks,
            clipboard_tasks=[make_task("x")],
            operation="move",
        )
        assert result["data"]["details"]["field"] == "operation"

    def test_paste_too_deep(self, call, sample_tasks):
        clipboard = [
            make_task("s", type="summary"),
            make_task("t", parent="s", type="summary"),
            make_task("u", parent="t"),
        ]
        result = call("paste", tasks=sample_tasks, clipboard_tasks=clipboard, active_task_id="a")
        assert result["success"] is False
        assert result["data"]["error_code"] == "MAX_DEPTH_EXCEEDED"
        assert result["error"] == "Cannot paste: would exceed maximum nesting depth of 3 levels"
        assert result["data"]["details"]["max_depth"] == 3


class TestStructure:
    def test_indent_uses_selection(self, call, sample_tasks):
        result = call("indent", tasks=sample_tasks, selected_ids=["c"])
        assert result["data"]["changes"] == [{"task_id": "c", "old_parent": None, "new_parent": "phase"}]

    def test_explicit_task_ids_win(self, call, sample_tasks):
        result = call("outdent", tasks=sample_tasks, task_ids=["a"], selected_ids=["b"])
        assert [c["task_id"] for c in result["data"]["changes"]] == ["a"]

    def test_group(self, call, sample_tasks):
        result = call("group", tasks=sample_tasks, selected_ids=["c", "m"])
        group = result["data"]["group"]
        assert group["description"] == "Grouped 2 tasks"
        assert by_id(result["data"]["tasks"])["c"]["parent"] == group["summary_task_id"]

    def test_group_mixed_parents(self, call, sample_tasks):
        result = call("group", tasks=sample_tasks, selected_ids=["a", "c"])
        assert result["data"]["error_code"] == "INVALID_SELECTION"

    def test_group_too_deep(self, call):
        tasks = [
            make_task("top", type="summary", order=0),
            make_task("mid", parent="top", type="summary", order=1),
            make_task("leaf", parent="mid", order=2),
        ]
        result = call("group", tasks=tasks, selected_ids=["leaf"])
        assert result["data"]["error_code"] == "MAX_DEPTH_EXCEEDED"

    @pytest.mark.parametrize(
        "action, kwargs, allowed",
        [
            ("indent", {"selected_ids": ["c"]}, True),
            ("indent", {"selected_ids": ["a"]}, False),
            ("outdent", {"task_ids": ["a"]}, True),
            ("outdent", {"task_ids": ["c"]}, False),
            ("group", {"selected_ids": ["a", "b"]}, True),
            ("group", {"selected_ids": ["a", "c"]}, False),
        ],
    )
    def test_dry_run_reports_without_editing(self, call, sample_tasks, action, kwargs, allowed):
        before = copy.deepcopy(sample_tasks)
        result = call(action, tasks=sample_tasks, dry_run=True, **kwargs)

        assert result["success"] is True
        assert result["data"] == {"allowed": allowed, "dry_run": True}
        assert sample_tasks == before

    def test_ungroup(self, call, sample_tasks, sample_dependencies):
        result = call(
            "ungroup",
            tasks=sample_tasks,
            dependencies=sample_dependencies,
            selected_ids=["phase"],
        )
        assert [t["id"] for t in result["data"]["tasks"]] == ["a", "b", "c", "m"]
        assert [d["id"] for d in result["data"]["dependencies"]] == ["d1", "d2"]

    def test_ungroup_nothing_warns(self, call, sample_tasks):
        result = call("ungroup", tasks=sample_tasks, selected_ids=["c"])
        assert result["success"] is True
        assert result["data"]["ungroup"] is None
        assert result["meta"]["warnings"]


class TestExpandCollapse:
    def test_collapse_one(self, call, sample_tasks):
        result = call("collapse", tasks=sample_tasks, task_id="phase")
        assert result["data"]["changed"] is True
        assert by_id(result["data"]["tasks"])["phase"]["open"] is False

    def test_expand_all(self, call, sample_tasks):
        sample_tasks[0]["open"] = False
        result = call("expand", tasks=sample_tasks, all_tasks=True)
        assert result["data"]["changed"] is True

    def test_expand_unknown(self, call, sample_tasks):
        result = call("expand", tasks=sample_tasks, task_id="ghost")
        assert result["data"]["error_code"] == "TASK_NOT_FOUND"

    def test_expand_requires_target(self, call, sample_tasks):
        result = call("expand", tasks=copy.deepcopy(sample_tasks))
        assert result["data"]["details"]["field"] == "task_id"
