"""Core task-tree operations for gantt-mcp."""

from gantt_mcp.core.hierarchy import (
    MAX_HIERARCHY_DEPTH,
    PLACEHOLDER_TASK_ID,
    build_task_index,
    can_have_children,
    get_max_depth,
    get_max_descendant_level,
    get_task_children,
    get_task_descendants,
    get_task_level,
    get_task_path,
    would_create_circular_hierarchy,
)

from gantt_mcp.core.flatten import (
    FlattenedTask,
    build_flattened_task_list,
    normalize_task_order,
)

from gantt_mcp.core.summary import (
    SummaryCascadeEntry,
    SummaryDates,
    calculate_summary_dates,
    recalculate_summary_ancestors,
)

from gantt_mcp.core.selection import (
    get_effective_task_ids,
    get_effective_tasks_to_move,
    get_root_selected_ids,
)

from gantt_mcp.core.insertion import InsertionResult, insert_tasks_relative

from gantt_mcp.core.structure import (
    group_tasks,
    indent_tasks,
    outdent_tasks,
    ungroup_tasks,
)

__all__ = [
    "MAX_HIERARCHY_DEPTH",
    "PLACEHOLDER_TASK_ID",
    "build_task_index",
    "can_have_children",
    "get_max_depth",
    "get_max_descendant_level",
    "get_task_children",
    "get_task_descendants",
    "get_task_level",
    "get_task_path",
    "would_create_circular_hierarchy",
    "FlattenedTask",
    "build_flattened_task_list",
    "normalize_task_order",
    "SummaryCascadeEntry",
    "SummaryDates",
    "calculate_summary_dates",
    "recalculate_summary_ancestors",
    "get_effective_task_ids",
    "get_effective_tasks_to_move",
    "get_root_selected_ids",
    "InsertionResult",
    "insert_tasks_relative",
    "group_tasks",
    "indent_tasks",
    "outdent_tasks",
    "ungroup_tasks",
]
