"""
Unit tests for gantt_mcp.core.flatten module.

Tests display ordering, collapse handling, orphans and order normalization.
"""

import logging

from gantt_mcp.core.flatten import (
    build_flattened_task_list,
    find_visual_index,
    is_collapsed,
    normalize_task_order,
)
from tests.conftest import make_task


def _ids(rows):
    return [row.task["id"] for row in rows]


class TestBuildFlattenedTaskList:
    def test_children_follow_parent(self, sample_tasks):
        rows = build_flattened_task_list(sample_tasks)
        assert _ids(rows) == ["phase", "a", "b", "c", "m"]
        assert [row.level for row in rows] == [0, 1, 1, 0, 0]

    def test_has_children_flag(self, sample_tasks):
        rows = {row.task["id"]: row for row in build_flattened_task_list(sample_tasks)}
        assert rows["phase"].has_children is True
        assert rows["a"].has_children is False

    def test_rows_reference_original_dicts(self, sample_tasks):
        rows = build_flattened_task_list(sample_tasks)
        assert rows[0].task is sample_tasks[0]

    def test_children_before_later_siblings_regardless_of_order(self):
        # Child order is larger than the next root's order
        tasks = [
            make_task("p", type="summary", order=0),
            make_task("child", parent="p", order=10),
            make_task("next", order=1),
        ]
        assert _ids(build_flattened_task_list(tasks)) == ["p", "child", "next"]

    def test_open_false_hides_children(self, sample_tasks):
        sample_tasks[0]["open"] = False
        rows = build_flattened_task_list(sample_tasks)
        assert _ids(rows) == ["phase", "c", "m"]
        assert rows[0].has_children is True

    def test_collapsed_ids_hide_children(self, sample_tasks):
        rows = build_flattened_task_list(sample_tasks, ["phase"])
        assert _ids(rows) == ["phase", "c", "m"]

    def test_orphan_rendered_at_root(self):
        tasks = [
            make_task("a", order=0),
            make_task("orphan", parent="ghost", order=1),
        ]
        rows = build_flattened_task_list(tasks)
        assert _ids(rows) == ["a", "orphan"]
        assert rows[1].level == 0

    def test_expand_all_ignores_collapse_state(self, sample_tasks):
        sample_tasks[0]["open"] = False
        rows = build_flattened_task_list(sample_tasks, ["phase"], expand_all=True)
        assert _ids(rows) == ["phase", "a", "b", "c", "m"]

    def test_empty_list(self):
        assert build_flattened_task_list([]) == []

    def test_deep_chain_without_recursion_limit(self):
        tasks = [make_task("t0", order=0)]
        for i in range(1, 3000):
            tasks.append(make_task(f"t{i}", parent=f"t{i - 1}", order=i))
        rows = build_flattened_task_list(tasks)
        assert len(rows) == 3000
        assert rows[-1].level == 2999

    def test_to_dict(self, sample_tasks):
        row = build_flattened_task_list(sample_tasks)[1]
        assert row.to_dict() == {"task": sample_tasks[1], "level": 1, "has_children": False}


class TestCollapseHelpers:
    def test_is_collapsed(self):
        assert is_collapsed(make_task("a", open=False)) is True
        assert is_collapsed(make_task("a")) is False
        assert is_collapsed(make_task("a"), {"a"}) is True

    def test_find_visual_index(self, sample_tasks):
        rows = build_flattened_task_list(sample_tasks)
        assert find_visual_index(rows, "c") == 3
        assert find_visual_index(rows, "missing") == -1
        assert find_visual_index(rows, None) == -1


class TestNormalizeTaskOrder:
    def test_dense_orders_in_display_order(self):
        tasks = [
            make_task("p", type="summary", order=5),
            make_task("x", order=7),
            make_task("child", parent="p", order=100),
        ]
        normalize_task_order(tasks)
        orders = {t["id"]: t["order"] for t in tasks}
        assert orders == {"p": 0, "child": 1, "x": 2}

    def test_ignores_collapse_state(self, sample_tasks):
        sample_tasks[0]["open"] = False
        normalize_task_order(sample_tasks)
        assert [t["order"] for t in sample_tasks] == [0, 1, 2, 3, 4]

    def test_children_of_closed_summary_get_fresh_orders(self):
        tasks = [
            make_task("p", type="summary", order=0, open=False),
            make_task("c1", parent="p", order=1),
            make_task("x", order=2),
        ]
        normalize_task_order(tasks)
        assert {t["id"]: t["order"] for t in tasks} == {"p": 0, "c1": 1, "x": 2}

    def test_idempotent(self, sample_tasks):
        normalize_task_order(sample_tasks)
        first = [t["order"] for t in sample_tasks]
        normalize_task_order(sample_tasks)
        assert [t["order"] for t in sample_tasks] == first

    def test_warns_on_cycle(self, caplog):
        tasks = [
            make_task("ok", order=0),
            make_task("x", parent="y", order=1),
            make_task("y", parent="x", order=2),
        ]
        with caplog.at_level(logging.WARNING, logger="gantt_mcp.core.flatten"):
            normalize_task_order(tasks)
        assert tasks[0]["order"] == 0
        assert "parent cycle" in caplog.text
        # Unreachable tasks are numbered after the rest, keeping orders unique
        assert sorted(t["order"] for t in tasks) == [0, 1, 2]
