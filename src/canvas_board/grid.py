"""
Grid layout engine for Canvas Board collections.

A collection lays its children out on a sparse (row, column) grid.  The
engine turns whatever cell coordinates the children carry into a dense
grid, sizes every row and column to its largest member, and derives each
child's absolute pixel position from the collection's origin.

Because a collection is itself a node, a size change inside a nested
collection changes that collection's own width/height, so ``recompute``
walks up through every enclosing grid.

Sizing rules (B = border width, T = top bar height):

  - Column width: the widest member's width + B, plus B more for the
    last column (trailing border).
  - Row height: the tallest member's height + B, plus 1.5 B for the last
    row, minus 0.5 B for row 0.
  - Collection width: sum of column widths.
  - Collection height: sum of row heights + T.
  - Child x: origin + widths of columns to the left + B.
  - Child y: origin + heights of rows above + T + B, plus 0.5 B below
    row 0.

A column's entry is only replaced when a member's raw width exceeds the
stored (already margined) value, so the result depends on child order
exactly as the collection lists them.

Cell uniqueness is the caller's job (see ``selection``); the engine lays
out whatever it is given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from .config import COLLECTION_BORDER_WIDTH, TOOLBAR_HEIGHT, CanvasConfig
from .models import CanvasNode, collection_data

logger = logging.getLogger(__name__)


@dataclass
class GridMetrics:
    """Pixel constants the sizing rules are built from."""
    border_width: float = COLLECTION_BORDER_WIDTH
    toolbar_height: float = TOOLBAR_HEIGHT

    @classmethod
    def from_config(cls, config: CanvasConfig) -> GridMetrics:
        return cls(border_width=config.border_width, toolbar_height=config.toolbar_height)


# ---------------------------------------------------------------------------
# Cell assignment
# ---------------------------------------------------------------------------

def assign_cell(node: CanvasNode, row: int, column: int) -> None:
    """Record a cell on ``node``.  Does not check for collisions."""
    node.grid_row = row
    node.grid_column = column


def normalize_cells(nodes: Iterable[CanvasNode]) -> None:
    """Collapse sparse cell indices into a dense 0-based grid.

    Distinct rows and distinct columns are each remapped in sorted order,
    so gaps left by removed nodes disappear and negative origins shift
    to 0.  Relative order is preserved; already-dense input is unchanged.
    """
    nodes = list(nodes)
    unique_rows = sorted({node.grid_row for node in nodes})
    unique_cols = sorted({node.grid_column for node in nodes})
    row_remap = {row: idx for idx, row in enumerate(unique_rows)}
    col_remap = {col: idx for idx, col in enumerate(unique_cols)}

    for node in nodes:
        node.grid_row = row_remap[node.grid_row]
        node.grid_column = col_remap[node.grid_column]


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def grid_children(collection: CanvasNode, nodes: Mapping[str, CanvasNode]) -> list[CanvasNode]:
    """Return the live children of ``collection`` in grid order."""
    data = collection_data(collection)
    return [nodes[child_id] for child_id in data.child_ids if child_id in nodes]


def occupied_cells(collection: CanvasNode, nodes: Mapping[str, CanvasNode]) -> dict[tuple[int, int], str]:
    """Map each occupied (row, column) to the id of the node in it."""
    return {child.cell: child.id for child in grid_children(collection, nodes)}


def width_left_of_column(collection: CanvasNode, column: int) -> float:
    """Total width of every column strictly left of ``column``."""
    widths = collection_data(collection).column_widths
    return sum(width for col, width in widths.items() if col < column)


def height_above_row(collection: CanvasNode, row: int) -> float:
    """Total height of every row strictly above ``row``."""
    heights = collection_data(collection).row_heights
    return sum(height for r, height in heights.items() if r < row)


# ---------------------------------------------------------------------------
# Stacking order
# ---------------------------------------------------------------------------

def bring_children_to_front(collection: CanvasNode, nodes: Mapping[str, CanvasNode]) -> None:
    """Stack every child one above the collection, recursing into nested grids."""
    for child in grid_children(collection, nodes):
        child.z_index = collection.z_index + 1
        if child.is_collection:
            bring_children_to_front(child, nodes)


# ---------------------------------------------------------------------------
# Sizing and positioning
# ---------------------------------------------------------------------------

def recompute(
    collection: CanvasNode,
    nodes: Mapping[str, CanvasNode],
    metrics: Optional[GridMetrics] = None,
) -> None:
    """Rebuild the sizing cache, resize the collection and place its children.

    Steps:
    1. Normalize child cells
    2. Reset the column/row caches
    3. Record the largest occupied row and column
    4. Size each column and row from its members
    5. Sum the caches into the collection's width/height
    6. Position every child (and restack it above the collection)
    7. Cascade into the enclosing grid, if any
    """
    metrics = metrics or GridMetrics()
    data = collection_data(collection)
    children = grid_children(collection, nodes)

    # --- Step 1: Normalize ---
    normalize_cells(children)

    # --- Step 2: Reset caches ---
    data.column_widths = {}
    data.row_heights = {}

    # --- Step 3: Grid extent ---
    data.col_count = max((child.grid_column for child in children), default=0)
    data.row_count = max((child.grid_row for child in children), default=0)

    # --- Step 4: Column widths and row heights ---
    for child in children:
        _update_max_dimensions(collection, child, metrics)

    # --- Step 5: Collection size ---
    if children:
        collection.width = sum(data.column_widths.values())
        collection.height = sum(data.row_heights.values()) + metrics.toolbar_height

    # --- Step 6: Child positions ---
    position_children(collection, nodes, metrics)

    logger.debug(
        "Recomputed grid %s: %d children, %sx%s",
        collection.id, len(children), collection.width, collection.height,
    )

    # --- Step 7: Cascade upward ---
    if collection.parent_grid is not None:
        parent = nodes.get(collection.parent_grid)
        if parent is not None:
            recompute(parent, nodes, metrics)


def position_children(
    collection: CanvasNode,
    nodes: Mapping[str, CanvasNode],
    metrics: Optional[GridMetrics] = None,
) -> None:
    """Place each child at its cell's pixel offset inside ``collection``.

    A child collection that moves takes its own grid content along with it.
    """
    metrics = metrics or GridMetrics()
    border = metrics.border_width
    bring_children_to_front(collection, nodes)

    for child in grid_children(collection, nodes):
        grid_x = collection.x + width_left_of_column(collection, child.grid_column)
        grid_y = collection.y + height_above_row(collection, child.grid_row)
        new_x = grid_x + border
        new_y = grid_y + metrics.toolbar_height + border
        if child.grid_row != 0:
            new_y += border / 2

        moved = (new_x, new_y) != (child.x, child.y)
        child.x = new_x
        child.y = new_y
        if moved and child.is_collection:
            position_children(child, nodes, metrics)


def _update_max_dimensions(collection: CanvasNode, node: CanvasNode, metrics: GridMetrics) -> None:
    data = collection_data(collection)
    border = metrics.border_width
    column = node.grid_column
    row = node.grid_row

    current_width = data.column_widths.get(column)
    if current_width is None or current_width < node.width:
        width = node.width + border
        if column == data.col_count:
            width += border
        data.column_widths[column] = width

    current_height = data.row_heights.get(row)
    if current_height is None or current_height < node.height:
        height = node.height + border
        if row == data.row_count:
            height += border + border / 2
        if row == 0:
            height -= border / 2
        data.row_heights[row] = height
