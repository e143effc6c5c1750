"""Tests for the MCP server tool registration and handlers."""

import asyncio
import json

import pytest

import canvas_board.server as server_mod
from canvas_board.board import Board


EXPECTED_TOOLS = {
    "add_node",
    "create_collection",
    "assign_cells",
    "attempt_link",
    "remove_link",
    "remove_all_links",
    "list_links",
    "delete_node",
    "resize_node",
    "move_node",
    "bring_to_front",
    "toggle_editable",
    "center_node",
    "get_board",
}


@pytest.fixture()
def fresh_board(monkeypatch):
    board = Board()
    monkeypatch.setattr(server_mod, "_board", board)
    return board


def call(name, arguments=None):
    result = asyncio.run(server_mod.call_tool(name, arguments or {}))
    assert len(result) == 1
    return json.loads(result[0].text)


def add_text(title="note"):
    return call("add_node", {"kind": "plain_text", "title": title, "content": "body"})["node"]["id"]


class TestToolRegistration:
    def test_all_tools_listed(self):
        tools = asyncio.run(server_mod.list_tools())
        assert {tool.name for tool in tools} == EXPECTED_TOOLS

    def test_unknown_tool(self, fresh_board):
        assert "error" in call("paint_everything")


class TestToolHandlers:
    def test_add_node(self, fresh_board):
        data = call("add_node", {"kind": "web", "title": "Docs", "content": "https://example.com"})
        assert data["status"] == "success"
        assert data["node"]["kind"] == "web"
        assert fresh_board.get(data["node"]["id"]) is not None

    def test_add_node_invalid_url(self, fresh_board):
        data = call("add_node", {"kind": "web", "title": "Docs", "content": "nope"})
        assert data["error"] == "Invalid URL. Please enter a valid, absolute URL."
        assert fresh_board.nodes() == []

    def test_link_round_trip(self, fresh_board):
        a, b = add_text("a"), add_text("b")
        first = call("attempt_link", {"node_id": a})
        assert first == {"linked": False, "link_state": "pending", "pending_start": a}
        second = call("attempt_link", {"node_id": b})
        assert second["linked"] is True
        assert second["link_state"] == "idle"

        links = call("list_links", {"node_id": a})["links"]
        assert [link["id"] for link in links] == [b]

        call("attempt_link", {"node_id": a})
        dup = call("attempt_link", {"node_id": b})
        assert dup["linked"] is False
        assert dup["notices"] == ["Link already created."]

        call("remove_link", {"node_a": a, "node_b": b})
        assert call("list_links", {"node_id": b})["links"] == []

    def test_collection_tools(self, fresh_board):
        a, b, c = add_text("a"), add_text("b"), add_text("c")
        created = call("create_collection", {
            "title": "Group",
            "cells": [
                {"node_id": a, "row": 0, "column": 0},
                {"node_id": b, "row": 0, "column": 1},
            ],
        })
        collection_id = created["collection"]["id"]
        assert [child["cell"] for child in created["children"]] == [[0, 0], [0, 1]]

        clash = call("assign_cells", {
            "collection_id": collection_id,
            "cells": [{"node_id": c, "row": 0, "column": 1}],
        })
        assert clash["error"] == "This cell is already assigned to a node."

        added = call("assign_cells", {
            "collection_id": collection_id,
            "cells": [{"node_id": c, "row": 1, "column": 0}],
        })
        assert len(added["children"]) == 3

    def test_delete_and_resize(self, fresh_board):
        a, b = add_text("a"), add_text("b")
        clamped = call("resize_node", {"node_id": a, "dw": -1000})
        assert clamped["status"] == "clamped"
        assert clamped["node"]["width"] == 100
        assert clamped["notices"] == ["Width must be at least 100px"]

        call("delete_node", {"node_id": a})
        board = call("get_board")
        assert [node["id"] for node in board["nodes"]] == [b]

    def test_move_front_edit_and_center(self, fresh_board):
        a = add_text("a")
        moved = call("move_node", {"node_id": a, "dx": 5, "dy": 10})
        assert moved["detached"] is False
        assert (moved["node"]["x"], moved["node"]["y"]) == (505, 510)

        before = fresh_board.get(a).z_index
        front = call("bring_to_front", {"node_id": a})
        assert front["node"]["z_index"] > before

        assert call("toggle_editable", {"node_id": a})["editable"] is True

        centered = call("center_node", {"node_id": a, "viewport_width": 1000, "viewport_height": 1000})
        assert centered["pan"] == {"x": -155, "y": -160}

    def test_unknown_node(self, fresh_board):
        data = call("attempt_link", {"node_id": "missing"})
        assert data == {"error": "Unknown node: missing"}
