"""
Clipboard pipeline: collect -> remap -> position -> assemble.

Also carries the text payload codec and the cell-level paste rules.
"""

from gantt_mcp.core.clipboard.cells import (
    CellPasteCheck,
    can_paste_cell_value,
    get_clear_value_for_field,
)
from gantt_mcp.core.clipboard.collect import (
    CopiedRows,
    collect_internal_dependencies,
    collect_tasks_with_children,
    copy_rows,
    deep_clone,
)
from gantt_mcp.core.clipboard.paste import (
    CutApplyResult,
    RowPasteError,
    RowPasteResult,
    apply_summary_recalculation,
    apply_cut_deletion,
    prepare_row_paste,
)
from gantt_mcp.core.clipboard.payload import (
    CELL_PREFIX,
    EDITABLE_FIELDS,
    ROW_PREFIX,
    decode_cell,
    decode_rows,
    detect_payload_kind,
    encode_cell,
    encode_rows,
)
from gantt_mcp.core.clipboard.position import determine_insert_position
from gantt_mcp.core.clipboard.remap import remap_dependencies, remap_task_ids

__all__ = [
    # Collection
    "CopiedRows",
    "collect_tasks_with_children",
    "collect_internal_dependencies",
    "copy_rows",
    "deep_clone",
    # Remapping
    "remap_task_ids",
    "remap_dependencies",
    # Position
    "determine_insert_position",
    # Assembly
    "RowPasteResult",
    "RowPasteError",
    "prepare_row_paste",
    "apply_summary_recalculation",
    "CutApplyResult",
    "apply_cut_deletion",
    # Payload codec
    "ROW_PREFIX",
    "CELL_PREFIX",
    "EDITABLE_FIELDS",
    "encode_rows",
    "encode_cell",
    "decode_rows",
    "decode_cell",
    "detect_payload_kind",
    # Cells
    "CellPasteCheck",
    "can_paste_cell_value",
    "get_clear_value_for_field",
]
