"""
Grid cell picker — the caller-side contract for putting nodes in a grid.

The grid engine never checks for two nodes in one cell.  This module is
where that rule is enforced: a picker is opened for a collection and the
nodes to add, the user sizes the grid (for an empty collection), then
clicks one cell per node in order.  Occupied cells are refused.

Once every node has a cell, ``Board.commit_grid_selection`` hands the
result to the engine.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Sequence

from .config import (
    CELL_OCCUPIED_MESSAGE,
    GRID_TOO_SMALL_MESSAGE,
    CanvasConfig,
)
from .grid import assign_cell, grid_children
from .models import CanvasNode, collection_data

logger = logging.getLogger(__name__)


class GridSelectionError(ValueError):
    """A grid pick the caller must refuse."""


class CellOccupiedError(GridSelectionError):
    pass


class GridTooSmallError(GridSelectionError):
    pass


class GridSelection:
    """One pass of assigning ``nodes_to_add`` to cells of ``collection``.

    For a collection that already has children the picker is pre-sized
    to the current grid plus ``extra_rows_to_show`` spare rows/columns and
    the existing cells start out occupied.  Otherwise it starts unsized
    and ``choose_size`` must be called first.

    Only free nodes on the board can be picked; anything else raises
    ``GridSelectionError`` before a cell is written.
    """

    def __init__(
        self,
        collection: CanvasNode,
        nodes_to_add: Sequence[CanvasNode],
        nodes: Mapping[str, CanvasNode],
        config: Optional[CanvasConfig] = None,
    ):
        self.collection = collection
        self.nodes_to_add = list(nodes_to_add)
        self.config = config or CanvasConfig()
        self._nodes = nodes
        self._assigned: list[tuple[int, int]] = []
        for node in self.nodes_to_add:
            self._check_candidate(node)

        existing = grid_children(collection, nodes)
        self.adding_to_existing = bool(existing)
        self._existing_cells = {child.cell for child in existing}

        if self.adding_to_existing:
            data = collection_data(collection)
            extra = self.config.extra_rows_to_show
            self.rows = data.row_count + extra
            self.columns = data.col_count + extra
            self.size_chosen = True
        else:
            self.reset()

    # --- Reads ---

    @property
    def next_node(self) -> Optional[CanvasNode]:
        """The node the next ``assign`` call will place, if any remain."""
        index = len(self._assigned)
        if index < len(self.nodes_to_add):
            return self.nodes_to_add[index]
        return None

    @property
    def assignment_done(self) -> bool:
        return len(self._assigned) == len(self.nodes_to_add)

    def is_occupied(self, row: int, column: int) -> bool:
        return (row, column) in self._existing_cells or (row, column) in self._assigned

    def grid(self) -> list[list[bool]]:
        """Occupancy matrix, rows by columns."""
        return [
            [self.is_occupied(row, column) for column in range(self.columns)]
            for row in range(self.rows)
        ]

    # --- Mutations ---

    def reset(self) -> None:
        """Return an unsized picker to its initial state."""
        side = self.config.starting_grid_selector_size
        self.rows = side
        self.columns = side
        self.size_chosen = False
        self._assigned = []

    def choose_size(self, rows: int, columns: int) -> None:
        """Fix the grid size for an empty collection."""
        if self.size_chosen:
            raise GridSelectionError("Grid size is already fixed for this collection.")
        if rows < 1 or columns < 1 or rows * columns < len(self.nodes_to_add):
            self.reset()
            raise GridTooSmallError(GRID_TOO_SMALL_MESSAGE)
        self.rows = rows
        self.columns = columns
        self.size_chosen = True

    def assign(self, row: int, column: int) -> CanvasNode:
        """Give the next unplaced node the cell (row, column)."""
        node = self.next_node
        if node is None:
            raise GridSelectionError("Every node already has a cell.")
        if not self.size_chosen:
            raise GridSelectionError("Choose a grid size first.")
        if not (0 <= row < self.rows and 0 <= column < self.columns):
            raise GridSelectionError(f"Cell ({row}, {column}) is outside the grid.")
        self._check_candidate(node)
        if self.is_occupied(row, column):
            raise CellOccupiedError(CELL_OCCUPIED_MESSAGE)

        assign_cell(node, row, column)
        self._assigned.append((row, column))
        logger.debug("Assigned %s to cell (%d, %d)", node.id, row, column)
        return node

    # --- Internals ---

    def _check_candidate(self, node: CanvasNode) -> None:
        if node.id not in self._nodes:
            raise GridSelectionError(f"Node {node.id} is not on this board")
        if node.in_grid:
            raise GridSelectionError(f"Node {node.id} is already in a grid")
        if node.id == self.collection.id:
            raise GridSelectionError(f"Node {node.id} cannot be placed inside its own grid")

