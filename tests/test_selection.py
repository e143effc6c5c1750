"""Tests for the grid cell picker."""

import pytest

from canvas_board.config import CELL_OCCUPIED_MESSAGE, GRID_TOO_SMALL_MESSAGE
from canvas_board.selection import (
    CellOccupiedError,
    GridSelection,
    GridSelectionError,
    GridTooSmallError,
)


class TestNewCollection:
    @pytest.fixture()
    def selection(self, make_node, make_collection, arena):
        nodes = [make_node(), make_node(), make_node()]
        return GridSelection(make_collection(), nodes, arena)

    def test_starts_unsized(self, selection):
        assert selection.size_chosen is False
        assert (selection.rows, selection.columns) == (10, 10)
        with pytest.raises(GridSelectionError):
            selection.assign(0, 0)

    def test_grid_must_fit_every_node(self, selection):
        with pytest.raises(GridTooSmallError, match=GRID_TOO_SMALL_MESSAGE):
            selection.choose_size(1, 2)
        assert selection.size_chosen is False

    def test_assigns_in_order(self, selection):
        selection.choose_size(2, 2)
        first = selection.assign(1, 1)
        assert first is selection.nodes_to_add[0]
        assert first.cell == (1, 1)
        assert selection.next_node is selection.nodes_to_add[1]

    def test_occupied_cell_is_refused(self, selection):
        selection.choose_size(2, 2)
        selection.assign(0, 0)
        with pytest.raises(CellOccupiedError, match=CELL_OCCUPIED_MESSAGE):
            selection.assign(0, 0)
        assert selection.next_node is selection.nodes_to_add[1]

    def test_out_of_range_is_refused(self, selection):
        selection.choose_size(2, 2)
        with pytest.raises(GridSelectionError):
            selection.assign(2, 0)

    def test_done_after_last_node(self, selection):
        selection.choose_size(2, 2)
        for cell in ((0, 0), (0, 1), (1, 0)):
            selection.assign(*cell)
        assert selection.assignment_done
        assert selection.next_node is None
        assert selection.grid() == [[True, True], [True, False]]
        with pytest.raises(GridSelectionError):
            selection.assign(1, 1)

    def test_size_cannot_change_once_chosen(self, selection):
        selection.choose_size(3, 3)
        with pytest.raises(GridSelectionError):
            selection.choose_size(4, 4)


class TestExistingCollection:
    def test_presized_with_spare_rows_and_existing_cells_taken(
        self, make_node, make_collection, arena,
    ):
        from canvas_board import grid

        a = make_node(row=0, column=0)
        b = make_node(row=1, column=1)
        collection = make_collection([a, b])
        grid.recompute(collection, arena)

        selection = GridSelection(collection, [make_node()], arena)
        assert selection.adding_to_existing
        assert selection.size_chosen
        assert (selection.rows, selection.columns) == (3, 3)
        assert selection.is_occupied(1, 1)
        with pytest.raises(CellOccupiedError):
            selection.assign(0, 0)
        selection.assign(2, 2)
        assert selection.assignment_done


class TestCandidates:
    def test_node_outside_the_arena_is_refused(self, make_node, make_collection, arena):
        stray = make_node()
        del arena[stray.id]
        with pytest.raises(GridSelectionError, match="not on this board"):
            GridSelection(make_collection(), [make_node(), stray], arena)

    def test_gridded_node_is_refused(self, make_node, make_collection, arena):
        a = make_node(row=0, column=1)
        make_collection([a])
        with pytest.raises(GridSelectionError, match="already in a grid"):
            GridSelection(make_collection(), [a], arena)
        assert a.cell == (0, 1)

    def test_collection_cannot_pick_itself(self, make_collection, arena):
        collection = make_collection()
        with pytest.raises(GridSelectionError, match="its own grid"):
            GridSelection(collection, [collection], arena)

    def test_node_gridded_after_opening_keeps_its_cell(self, make_node, make_collection, arena):
        a = make_node()
        selection = GridSelection(make_collection(), [a], arena)
        selection.choose_size(2, 2)
        make_collection([a])
        a.grid_row, a.grid_column = 0, 0

        with pytest.raises(GridSelectionError, match="already in a grid"):
            selection.assign(1, 1)
        assert a.cell == (0, 0)
        assert selection.next_node is a
