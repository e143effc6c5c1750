"""Canvas Board server — MCP tools for driving a live canvas session."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .board import Board
from .config import load_config
from .factory import create_node
from .models import CanvasNode, NodeKind
from .selection import GridSelectionError

logger = logging.getLogger(__name__)

server = Server("canvas-board")

_board: Optional[Board] = None


def _get_board() -> Board:
    global _board
    if _board is None:
        _board = Board(load_config())
    return _board


def _node_id_schema(description: str = "Id of the node") -> dict:
    return {"type": "string", "description": description}


_CELLS_SCHEMA = {
    "type": "array",
    "description": "Nodes to place, in order, each with its target cell.",
    "items": {
        "type": "object",
        "properties": {
            "node_id": {"type": "string"},
            "row": {"type": "integer", "minimum": 0},
            "column": {"type": "integer", "minimum": 0},
        },
        "required": ["node_id", "row", "column"],
    },
}


# --- Tool definitions ---

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="add_node",
            description=(
                "Create a content node and put it on the board. "
                "Content is the text for text kinds, the source for image/video, "
                "the URL for web nodes and the system message for chat nodes."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "kind": {
                        "type": "string",
                        "enum": [k.value for k in NodeKind if k != NodeKind.COLLECTION],
                    },
                    "title": {"type": "string"},
                    "content": {"type": "string"},
                    "prompt": {
                        "type": "string",
                        "description": "Generation prompt, for generated images only.",
                    },
                },
                "required": ["kind", "title", "content"],
            },
        ),
        Tool(
            name="create_collection",
            description=(
                "Create a grid collection from free nodes. Every node needs a distinct cell; "
                "the grid is sized to fit the cells given."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "cells": _CELLS_SCHEMA,
                },
                "required": ["title", "cells"],
            },
        ),
        Tool(
            name="assign_cells",
            description="Add free nodes to an existing collection at unoccupied cells.",
            inputSchema={
                "type": "object",
                "properties": {
                    "collection_id": _node_id_schema("Id of the collection"),
                    "cells": _CELLS_SCHEMA,
                },
                "required": ["collection_id", "cells"],
            },
        ),
        Tool(
            name="attempt_link",
            description=(
                "Click a node's link control. The first click picks the start node, "
                "clicking it again cancels, clicking another node completes the link."
            ),
            inputSchema={
                "type": "object",
                "properties": {"node_id": _node_id_schema()},
                "required": ["node_id"],
            },
        ),
        Tool(
            name="remove_link",
            description="Remove the link between two nodes.",
            inputSchema={
                "type": "object",
                "properties": {
                    "node_a": _node_id_schema("First node"),
                    "node_b": _node_id_schema("Second node"),
                },
                "required": ["node_a", "node_b"],
            },
        ),
        Tool(
            name="remove_all_links",
            description="Remove every link of a node.",
            inputSchema={
                "type": "object",
                "properties": {"node_id": _node_id_schema()},
                "required": ["node_id"],
            },
        ),
        Tool(
            name="list_links",
            description="List the nodes linked to a node.",
            inputSchema={
                "type": "object",
                "properties": {"node_id": _node_id_schema()},
                "required": ["node_id"],
            },
        ),
        Tool(
            name="delete_node",
            description=(
                "Delete a node. full=true removes it from the board with all its links; "
                "full=false only takes it out of its collection."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "node_id": _node_id_schema(),
                    "full": {"type": "boolean", "default": True},
                },
                "required": ["node_id"],
            },
        ),
        Tool(
            name="resize_node",
            description="Resize a node by a delta. Sizes below the minimum are clamped.",
            inputSchema={
                "type": "object",
                "properties": {
                    "node_id": _node_id_schema(),
                    "dw": {"type": "number", "default": 0},
                    "dh": {"type": "number", "default": 0},
                },
                "required": ["node_id"],
            },
        ),
        Tool(
            name="move_node",
            description=(
                "Drag a node by a delta. A node in a collection detaches once the "
                "drag distance passes the detach threshold."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "node_id": _node_id_schema(),
                    "dx": {"type": "number", "default": 0},
                    "dy": {"type": "number", "default": 0},
                    "end_drag": {"type": "boolean", "default": True},
                },
                "required": ["node_id"],
            },
        ),
        Tool(
            name="bring_to_front",
            description="Stack a node above everything else.",
            inputSchema={
                "type": "object",
                "properties": {"node_id": _node_id_schema()},
                "required": ["node_id"],
            },
        ),
        Tool(
            name="toggle_editable",
            description="Toggle a node's edit mode (drag, resize, delete and link controls).",
            inputSchema={
                "type": "object",
                "properties": {"node_id": _node_id_schema()},
                "required": ["node_id"],
            },
        ),
        Tool(
            name="center_node",
            description="Pan the board so a node is centred in a viewport of the given size.",
            inputSchema={
                "type": "object",
                "properties": {
                    "node_id": _node_id_schema(),
                    "viewport_width": {"type": "number"},
                    "viewport_height": {"type": "number"},
                },
                "required": ["node_id", "viewport_width", "viewport_height"],
            },
        ),
        Tool(
            name="get_board",
            description="Return every node, link and the pending link state as JSON.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    board = _get_board()
    notice_mark = len(board.notices)
    try:
        if name == "add_node":
            result = _add_node(board, arguments)
        elif name == "create_collection":
            result = _create_collection(board, arguments)
        elif name == "assign_cells":
            result = _assign_cells(board, arguments)
        elif name == "attempt_link":
            result = _attempt_link(board, arguments)
        elif name == "remove_link":
            result = _remove_link(board, arguments)
        elif name == "remove_all_links":
            result = _remove_all_links(board, arguments)
        elif name == "list_links":
            result = _list_links(board, arguments)
        elif name == "delete_node":
            result = _delete_node(board, arguments)
        elif name == "resize_node":
            result = _resize_node(board, arguments)
        elif name == "move_node":
            result = _move_node(board, arguments)
        elif name == "bring_to_front":
            result = _bring_to_front(board, arguments)
        elif name == "toggle_editable":
            result = _toggle_editable(board, arguments)
        elif name == "center_node":
            result = _center_node(board, arguments)
        elif name == "get_board":
            result = board.snapshot()
        else:
            return _text({"error": f"Unknown tool: {name}"})
    except (KeyError, ValueError) as e:
        logger.warning("Tool %s failed: %s", name, e)
        return _text({"error": e.args[0] if e.args else str(e)})

    notices = board.notices[notice_mark:]
    if notices:
        result["notices"] = notices
    return _text(result)


def _text(data: dict) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(data))]


def _node(board: Board, node_id: str) -> CanvasNode:
    node = board.get(node_id)
    if node is None:
        raise KeyError(f"Unknown node: {node_id}")
    return node


def _summary(node: CanvasNode) -> dict[str, Any]:
    return {
        "id": node.id,
        "kind": node.kind.value,
        "title": node.title,
        "x": node.x,
        "y": node.y,
        "width": node.width,
        "height": node.height,
        "z_index": node.z_index,
        "parent_grid": node.parent_grid,
        "cell": list(node.cell) if node.in_grid else None,
        "has_links": node.has_links,
        "pending_link": node.pending_link,
    }


# --- Tool handlers ---

def _add_node(board: Board, args: dict) -> dict:
    node = create_node(
        args["kind"],
        args["title"],
        args["content"],
        config=board.config,
        prompt=args.get("prompt"),
    )
    board.add_node(node)
    return {"status": "success", "node": _summary(node)}


def _create_collection(board: Board, args: dict) -> dict:
    cells = args["cells"]
    if not cells:
        raise GridSelectionError("No nodes given for the collection")
    nodes = [_node(board, cell["node_id"]) for cell in cells]
    selection = board.begin_grid_selection(nodes)
    selection.choose_size(
        max(cell["row"] for cell in cells) + 1,
        max(cell["column"] for cell in cells) + 1,
    )
    for cell in cells:
        selection.assign(cell["row"], cell["column"])
    collection = board.commit_grid_selection(selection, title=args["title"])
    return {
        "status": "success",
        "collection": _summary(collection),
        "children": [_summary(child) for child in board.children_of(collection)],
    }


def _assign_cells(board: Board, args: dict) -> dict:
    collection = _node(board, args["collection_id"])
    if not collection.is_collection:
        raise ValueError(f"Node {collection.id} is not a collection")
    cells = args["cells"]
    nodes = [_node(board, cell["node_id"]) for cell in cells]
    selection = board.begin_grid_selection(nodes, collection)
    for cell in cells:
        selection.assign(cell["row"], cell["column"])
    board.commit_grid_selection(selection)
    return {
        "status": "success",
        "collection": _summary(collection),
        "children": [_summary(child) for child in board.children_of(collection)],
    }


def _attempt_link(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    linked = board.attempt_link(node)
    pending = board.links.pending_start
    return {
        "linked": linked,
        "link_state": board.links.state.value,
        "pending_start": pending.id if pending else None,
    }


def _remove_link(board: Board, args: dict) -> dict:
    node_a = _node(board, args["node_a"])
    node_b = _node(board, args["node_b"])
    board.remove_link(node_a, node_b)
    return {"status": "success", "node_a": _summary(node_a), "node_b": _summary(node_b)}


def _remove_all_links(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    board.remove_all_links(node)
    return {"status": "success", "node": _summary(node)}


def _list_links(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    return {
        "node_id": node.id,
        "links": [{"id": peer.id, "title": peer.get_label()} for peer in board.links_of(node)],
    }


def _delete_node(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    full = args.get("full", True)
    board.delete_node(node, full=full)
    return {"status": "success", "deleted": node.id, "full": full}


def _resize_node(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    accepted = board.resize_by(node, args.get("dw", 0), args.get("dh", 0))
    return {"status": "success" if accepted else "clamped", "node": _summary(node)}


def _move_node(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    detached = board.move_by(node, args.get("dx", 0), args.get("dy", 0))
    if args.get("end_drag", True):
        board.end_drag(node)
    return {"status": "success", "detached": detached, "node": _summary(node)}


def _bring_to_front(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    board.bring_to_front(node)
    return {"status": "success", "node": _summary(node)}


def _toggle_editable(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    return {"status": "success", "editable": board.toggle_editable(node)}


def _center_node(board: Board, args: dict) -> dict:
    node = _node(board, args["node_id"])
    board.center_node(node.id, args["viewport_width"], args["viewport_height"])
    return {"status": "success", "pan": {"x": board.root.x, "y": board.root.y}}


def main():
    """Entry point for the MCP server."""
    import asyncio

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(_run())


async def _run():
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    main()
