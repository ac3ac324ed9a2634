"""
Unit tests for gantt_mcp.core.structure module.

Tests indent, outdent, group, ungroup and expand/collapse, including the
depth limit and the summary cascade each edit triggers.
"""

import pytest

from gantt_mcp.core.structure import (
    GroupResult,
    StructureError,
    can_group,
    can_indent,
    can_outdent,
    group_tasks,
    indent_tasks,
    outdent_tasks,
    set_all_tasks_open,
    set_task_open,
    toggle_task_collapsed,
    ungroup_tasks,
)
from tests.conftest import by_id, make_task


@pytest.fixture
def deep_tasks():
    """top > mid > (leaf, x), plus root task r."""
    return [
        make_task("top", type="summary", order=0),
        make_task("mid", parent="top", type="summary", order=1),
        make_task("leaf", parent="mid", order=2, start_date="2025-01-01", end_date="2025-01-02"),
        make_task("x", parent="mid", order=3, start_date="2025-01-03", end_date="2025-01-04"),
        make_task("r", order=4),
    ]


def _display(tasks):
    return [t["id"] for t in sorted(tasks, key=lambda t: t["order"])]


class TestIndent:
    def test_under_previous_sibling(self, sample_tasks):
        changes = indent_tasks(sample_tasks, ["b"])

        assert [c.to_dict() for c in changes] == [
            {"task_id": "b", "old_parent": "phase", "new_parent": "a"}
        ]
        assert by_id(sample_tasks)["b"]["parent"] == "a"

    def test_root_task_joins_summary_and_cascades(self, sample_tasks):
        indent_tasks(sample_tasks, ["c"])

        tasks = by_id(sample_tasks)
        assert tasks["c"]["parent"] == "phase"
        assert tasks["phase"]["end_date"] == "2025-01-15"
        assert _display(sample_tasks) == ["phase", "a", "b", "c", "m"]

    def test_first_child_cannot_indent(self, sample_tasks):
        assert indent_tasks(sample_tasks, ["a"]) == []
        assert by_id(sample_tasks)["a"]["parent"] == "phase"

    def test_previous_sibling_must_be_unselected(self, sample_tasks):
        assert indent_tasks(sample_tasks, ["a", "b"]) == []

    def test_milestone_cannot_become_parent(self, sample_tasks):
        sample_tasks.append(make_task("n", order=5))
        assert indent_tasks(sample_tasks, ["n"]) == []

    def test_depth_limit(self, deep_tasks):
        assert indent_tasks(deep_tasks, ["x"]) == []
        assert indent_tasks(deep_tasks, ["x"], max_depth=4)[0].new_parent == "leaf"

    def test_collapsed_parent_opens(self, sample_tasks):
        sample_tasks[0]["open"] = False
        indent_tasks(sample_tasks, ["c"])
        assert sample_tasks[0]["open"] is True

    def test_child_of_collapsed_summary(self, sample_tasks):
        sample_tasks[0]["open"] = False
        changes = indent_tasks(sample_tasks, ["b"])

        assert [c.new_parent for c in changes] == ["a"]
        assert sorted(t["order"] for t in sample_tasks) == [0, 1, 2, 3, 4]

    def test_selected_rows_are_skipped_when_finding_sibling(self, sample_tasks):
        changes = indent_tasks(sample_tasks, ["m", "c"])
        assert [c.task_id for c in changes] == ["c", "m"]
        assert {c.new_parent for c in changes} == {"phase"}
        assert _display(sample_tasks) == ["phase", "a", "b", "c", "m"]

    def test_can_indent(self, sample_tasks, deep_tasks):
        assert can_indent(sample_tasks, ["b"]) is True
        assert can_indent(sample_tasks, ["a"]) is False
        assert can_indent(deep_tasks, ["x"]) is False


class TestOutdent:
    def test_to_grandparent(self, sample_tasks):
        changes = outdent_tasks(sample_tasks, ["a"])

        assert [c.to_dict() for c in changes] == [
            {"task_id": "a", "old_parent": "phase", "new_parent": None}
        ]
        tasks = by_id(sample_tasks)
        assert tasks["a"]["parent"] is None
        # The old parent now spans only b
        assert tasks["phase"]["start_date"] == "2025-01-06"
        assert tasks["phase"]["duration"] == 5
        assert _display(sample_tasks) == ["phase", "b", "a", "c", "m"]

    def test_nested_to_middle_level(self, deep_tasks):
        outdent_tasks(deep_tasks, ["leaf"])
        assert by_id(deep_tasks)["leaf"]["parent"] == "top"

    def test_root_and_orphans_skipped(self, sample_tasks):
        sample_tasks.append(make_task("orphan", parent="ghost", order=9))
        assert outdent_tasks(sample_tasks, ["c", "orphan"]) == []

    def test_can_outdent(self, sample_tasks):
        assert can_outdent(sample_tasks, ["a"]) is True
        assert can_outdent(sample_tasks, ["c"]) is False


class TestGroup:
    def test_wraps_siblings_in_new_summary(self, sample_tasks, id_factory):
        result = group_tasks(sample_tasks, ["a", "b"], id_factory=id_factory)

        assert isinstance(result, GroupResult)
        assert result.summary_id == "new-1"
        assert result.description == "Grouped 2 tasks"
        summary = by_id(sample_tasks)["new-1"]
        assert summary["type"] == "summary"
        assert summary["parent"] == "phase"
        assert summary["name"] == "New Group"
        assert summary["open"] is True
        assert (summary["start_date"], summary["end_date"], summary["duration"]) == (
            "2025-01-01",
            "2025-01-10",
            10,
        )
        assert by_id(sample_tasks)["a"]["parent"] == "new-1"
        assert _display(sample_tasks) == ["phase", "new-1", "a", "b", "c", "m"]
        assert [c.old_parent for c in result.changes] == ["phase", "phase"]
        assert [entry.id for entry in result.cascade] == ["new-1", "phase"]

    def test_selected_descendants_travel_with_ancestor(self, sample_tasks, id_factory):
        result = group_tasks(sample_tasks, ["phase", "a"], id_factory=id_factory)
        assert [c.task_id for c in result.changes] == ["phase"]
        assert result.description == "Grouped 1 task"
        assert by_id(sample_tasks)["a"]["parent"] == "phase"

    def test_custom_name_and_color(self, sample_tasks, id_factory):
        result = group_tasks(
            sample_tasks, ["c"], group_name="Phase 2", color="#FF0000", id_factory=id_factory
        )
        assert result.summary_task["name"] == "Phase 2"
        assert result.summary_task["color"] == "#FF0000"
        assert result.summary_task["parent"] is None

    @pytest.mark.parametrize(
        "selected,message",
        [
            ([], "No tasks selected"),
            (["ghost"], "No root tasks in selection"),
            (["a", "c"], "Cannot group: selected tasks must share the same parent"),
        ],
    )
    def test_rejections(self, sample_tasks, selected, message):
        before = [dict(t) for t in sample_tasks]
        result = group_tasks(sample_tasks, selected)
        assert result == StructureError(message)
        assert sample_tasks == before

    def test_depth_limit(self, deep_tasks):
        result = group_tasks(deep_tasks, ["leaf"])
        assert isinstance(result, StructureError)
        assert result.error_code == "MAX_DEPTH_EXCEEDED"
        assert len(deep_tasks) == 5

    def test_can_group(self, sample_tasks):
        assert can_group(sample_tasks, ["a", "b"]) is True
        assert can_group(sample_tasks, ["a", "c"]) is False

    def test_to_dict(self, sample_tasks, id_factory):
        payload = group_tasks(sample_tasks, ["c"], id_factory=id_factory).to_dict()
        assert payload["summary_task_id"] == "new-1"
        assert payload["changes"] == [{"task_id": "c", "old_parent": None, "new_parent": "new-1"}]


class TestUngroup:
    def test_children_move_up_and_summary_removed(self, sample_tasks, sample_dependencies):
        result = ungroup_tasks(sample_tasks, ["phase"], sample_dependencies)

        assert result.removed_summary_ids == ["phase"]
        assert result.child_ids == ["a", "b"]
        assert result.description == "Ungrouped 1 task"
        assert [t["id"] for t in sample_tasks] == ["a", "b", "c", "m"]
        assert all(t["parent"] is None for t in sample_tasks)
        assert [t["order"] for t in sample_tasks] == [0, 1, 2, 3]

    def test_dependencies_on_removed_summary_dropped(self, sample_tasks, sample_dependencies):
        result = ungroup_tasks(sample_tasks, ["phase"], sample_dependencies)
        assert [d["id"] for d in result.removed_dependencies] == ["d3"]
        assert [d["id"] for d in sample_dependencies] == ["d1", "d2"]

    def test_nested_summaries(self, deep_tasks):
        result = ungroup_tasks(deep_tasks, ["top", "mid"])
        assert result.removed_summary_ids == ["mid", "top"]
        assert result.description == "Ungrouped 2 tasks"
        assert _display(deep_tasks) == ["leaf", "x", "r"]
        assert all(t["parent"] is None for t in deep_tasks)

    def test_inner_summary_cascades_outer(self, deep_tasks):
        deep_tasks.append(
            make_task("y", parent="top", order=5, start_date="2025-02-01", end_date="2025-02-02")
        )
        result = ungroup_tasks(deep_tasks, ["mid"])
        top = by_id(deep_tasks)["top"]
        assert (top["start_date"], top["end_date"]) == ("2025-01-01", "2025-02-02")
        assert [entry.id for entry in result.cascade] == ["top"]

    def test_nothing_to_ungroup(self, sample_tasks):
        assert ungroup_tasks(sample_tasks, ["a", "ghost"]) is None
        childless = [make_task("s", type="summary")]
        assert ungroup_tasks(childless, ["s"]) is None


class TestExpandCollapse:
    def test_set_task_open(self, sample_tasks):
        assert set_task_open(sample_tasks, "phase", False) is True
        assert sample_tasks[0]["open"] is False
        assert set_task_open(sample_tasks, "phase", False) is False
        assert set_task_open(sample_tasks, "phase", True) is True

    def test_only_summaries_with_children(self, sample_tasks):
        assert set_task_open(sample_tasks, "c", False) is False
        assert "open" not in by_id(sample_tasks)["c"]
        assert set_task_open(sample_tasks, "ghost", False) is False

    def test_toggle(self, sample_tasks):
        assert toggle_task_collapsed(sample_tasks, "phase") is True
        assert sample_tasks[0]["open"] is False
        assert toggle_task_collapsed(sample_tasks, "phase") is True
        assert sample_tasks[0]["open"] is True
        assert toggle_task_collapsed(sample_tasks, "a") is False

    def test_set_all(self, deep_tasks):
        assert set_all_tasks_open(deep_tasks, False) is True
        assert by_id(deep_tasks)["top"]["open"] is False
        assert by_id(deep_tasks)["mid"]["open"] is False
        assert set_all_tasks_open(deep_tasks, False) is False
