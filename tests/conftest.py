"""Shared test fixtures for canvas_board tests."""

import pytest

from canvas_board.board import Board
from canvas_board.config import CanvasConfig
from canvas_board.factory import create_node
from canvas_board.models import CanvasNode, CollectionPayload, NodeKind


@pytest.fixture()
def board():
    """An empty board with default layout constants."""
    return Board(CanvasConfig())


@pytest.fixture()
def make_text(board):
    """Factory for text nodes already placed on ``board``."""
    def _make(title="note", width=None, height=None):
        node = create_node(NodeKind.PLAIN_TEXT, title, f"{title} body", config=board.config)
        if width is not None:
            node.width = width
        if height is not None:
            node.height = height
        return board.add_node(node)
    return _make


@pytest.fixture()
def arena():
    """A bare node arena for engine-level tests."""
    return {}


@pytest.fixture()
def make_node(arena):
    """Factory for plain nodes registered in ``arena``."""
    def _make(row=0, column=0, width=100.0, height=100.0, **kwargs):
        node = CanvasNode(grid_row=row, grid_column=column, width=width, height=height, **kwargs)
        arena[node.id] = node
        return node
    return _make


@pytest.fixture()
def make_collection(arena):
    """Factory for collections whose children are given nodes, registered in ``arena``."""
    def _make(children=(), x=0.0, y=0.0):
        collection = CanvasNode(x=x, y=y, payload=CollectionPayload())
        arena[collection.id] = collection
        for child in children:
            collection.payload.child_ids.append(child.id)
            child.parent_grid = collection.id
        return collection
    return _make
