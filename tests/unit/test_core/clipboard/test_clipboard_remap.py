"""Unit tests for gantt_mcp.core.clipboard.remap module."""

from gantt_mcp.core.clipboard import remap_dependencies, remap_task_ids
from tests.conftest import make_task


class TestRemapTaskIds:
    def test_fresh_ids_and_internal_parents(self, id_factory):
        tasks = [
            make_task("p", type="summary"),
            make_task("c", parent="p"),
        ]
        remapped, mapping = remap_task_ids(tasks, id_factory)

        assert mapping == {"p": "new-1", "c": "new-2"}
        assert [t["id"] for t in remapped] == ["new-1", "new-2"]
        assert remapped[1]["parent"] == "new-1"

    def test_external_parent_cleared(self, id_factory):
        remapped, _ = remap_task_ids([make_task("c", parent="outside")], id_factory)
        assert remapped[0]["parent"] is None

    def test_source_not_modified(self, id_factory):
        tasks = [make_task("c", parent="outside")]
        remap_task_ids(tasks, id_factory)
        assert tasks[0]["id"] == "c"
        assert tasks[0]["parent"] == "outside"

    def test_default_ids_are_unique(self):
        tasks = [make_task("a"), make_task("b")]
        remapped, mapping = remap_task_ids(tasks)
        assert len(set(mapping.values())) == 2
        assert not set(mapping.values()) & {"a", "b"}


class TestRemapDependencies:
    def test_rewrites_endpoints_and_ids(self, id_factory):
        deps = [{"id": "d1", "from_task_id": "a", "to_task_id": "b", "type": "FS", "lag": 2}]
        result = remap_dependencies(deps, {"a": "A2", "b": "B2"}, id_factory)
        assert result == [{"id": "new-1", "from_task_id": "A2", "to_task_id": "B2", "type": "FS", "lag": 2}]

    def test_drops_links_leaving_the_batch(self):
        deps = [
            {"id": "d1", "from_task_id": "a", "to_task_id": "b"},
            {"id": "d2", "from_task_id": "a", "to_task_id": "outside"},
        ]
        result = remap_dependencies(deps, {"a": "A2", "b": "B2"})
        assert len(result) == 1
        assert result[0]["from_task_id"] == "A2"
