"""
Board — the root collection and the session state around it.

The board owns everything one canvas session mutates:

  - the node arena (``id -> CanvasNode``)
  - the root collection node, whose ``x``/``y`` is the pan offset
  - one ``LinkManager`` over the arena
  - the ``ZOrderAllocator`` (passed in, or built fresh)

Every node on the canvas is a child of the root.  Gridded nodes are
additionally children of one grid collection.  Deleting is the point
where the link graph and the grid meet: a full delete drops links,
leaves the grid (recomputing it) and leaves the root, in that order.

Change notification
-------------------
``subscribe(listener, node_id=None)`` registers a synchronous callback
``listener(node, change)`` fired after each mutation.  ``node_id=None``
listens to every node.  Change names: ``added``, ``deleted``, ``moved``,
``resized``, ``z_order``, ``links``, ``grid``, ``editable``.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Callable, Iterable, Optional

from . import grid
from .config import (
    COLLECTION_LINK_MESSAGE,
    MIN_HEIGHT_MESSAGE,
    MIN_WIDTH_MESSAGE,
    NO_COLLECTIONS_WARNING_MESSAGE,
    NO_TITLE_WARNING_MESSAGE,
    NODE_ASSIGNMENT_WARNING_MESSAGE,
    TOO_MANY_COLLECTIONS_WARNING_MESSAGE,
    CanvasConfig,
)
from .factory import create_collection
from .linking import LinkManager
from .models import CanvasNode, CollectionPayload, collection_data
from .selection import GridSelection, GridSelectionError
from .zorder import ZOrderAllocator

logger = logging.getLogger(__name__)

ChangeListener = Callable[[CanvasNode, str], None]


class Board:
    """A canvas session: the root collection plus both layout engines."""

    def __init__(
        self,
        config: Optional[CanvasConfig] = None,
        allocator: Optional[ZOrderAllocator] = None,
        on_notice: Optional[Callable[[str], None]] = None,
        title: str = "Main Node Collection",
    ):
        self.config = config or CanvasConfig()
        self.allocator = allocator or ZOrderAllocator()
        self.metrics = grid.GridMetrics.from_config(self.config)
        self.root = CanvasNode(title=title, x=0.0, y=0.0, payload=CollectionPayload())
        self.notices: list[str] = []

        self._nodes: dict[str, CanvasNode] = {}
        self._on_notice = on_notice
        self._listeners: dict[Optional[str], list[ChangeListener]] = {}
        self._deleting: set[str] = set()
        self._drag: dict[str, tuple[float, float]] = {}

        self.links = LinkManager(self._nodes, on_notice=self.notify)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, node_id: str) -> Optional[CanvasNode]:
        return self._nodes.get(node_id)

    def __contains__(self, node: CanvasNode) -> bool:
        return node.id in self._nodes

    def nodes(self) -> list[CanvasNode]:
        """Every live node, in the order it was added."""
        return grid.grid_children(self.root, self._nodes)

    def children_of(self, collection: CanvasNode) -> list[CanvasNode]:
        return grid.grid_children(collection, self._nodes)

    def links_of(self, node: CanvasNode) -> list[CanvasNode]:
        return self.links.links_of(node)

    def nodes_eligible_for_grid(self, include_collections: bool = False) -> list[CanvasNode]:
        """Editable, ungridded nodes.

        Collections only qualify when ``include_collections`` is set, which
        is the rule for building a new collection (nesting).
        """
        return [
            node for node in self.nodes()
            if node.editable and not node.in_grid
            and (include_collections or not node.is_collection)
        ]

    def editable_collections(self) -> list[CanvasNode]:
        return [node for node in self.nodes() if node.is_collection and node.editable]

    def snapshot(self) -> dict[str, Any]:
        """JSON-ready view of the whole board."""
        pending = self.links.pending_start
        return {
            "root": {"id": self.root.id, "title": self.root.title, "x": self.root.x, "y": self.root.y},
            "nodes": [node.model_dump(mode="json") for node in self.nodes()],
            "links": [list(edge) for edge in self.links.edges()],
            "link_state": self.links.state.value,
            "pending_start": pending.id if pending else None,
        }

    # ------------------------------------------------------------------
    # Notices and listeners
    # ------------------------------------------------------------------

    def notify(self, message: str) -> None:
        """Record a user-facing notice and pass it to ``on_notice``."""
        self.notices.append(message)
        if self._on_notice is not None:
            self._on_notice(message)

    def subscribe(self, listener: ChangeListener, node_id: Optional[str] = None) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        self._listeners.setdefault(node_id, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(node_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _emit(self, node: CanvasNode, change: str) -> None:
        for listener in list(self._listeners.get(node.id, [])):
            listener(node, change)
        for listener in list(self._listeners.get(None, [])):
            listener(node, change)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add_node(self, node: CanvasNode) -> CanvasNode:
        """Put ``node`` on the board with a fresh stacking order."""
        if node.id in self._nodes:
            return node
        self._nodes[node.id] = node
        collection_data(self.root).child_ids.append(node.id)
        node.root_collection = self.root.id
        logger.info("Added %s node %s", node.kind.value, node.get_label())
        self._emit(node, "added")
        self.bring_to_front(node)
        return node

    def add_nodes(self, nodes: Iterable[CanvasNode]) -> None:
        for node in nodes:
            self.add_node(node)

    def add_to_grid(self, collection: CanvasNode, nodes: Iterable[CanvasNode]) -> None:
        """Insert nodes into ``collection``'s grid at their current cells.

        The caller guarantees the cells are free (see ``GridSelection``).
        """
        nodes = list(nodes)
        data = collection_data(collection)
        if collection.id not in self._nodes:
            raise ValueError(f"Collection {collection.id} is not on this board")
        self._check_grid_candidates(collection, nodes)

        for node in nodes:
            data.child_ids.append(node.id)
            node.parent_grid = collection.id
            node.z_index = self.allocator.next()

        grid.recompute(collection, self._nodes, self.metrics)
        logger.info("Placed %d node(s) in collection %s", len(nodes), collection.get_label())
        for node in nodes:
            self._emit(node, "grid")
        self._emit(collection, "resized")

    def _check_grid_candidates(self, collection: CanvasNode, nodes: list[CanvasNode]) -> None:
        """Raise GridSelectionError unless every node may join ``collection``."""
        ancestors = {collection.id}
        parent_id = collection.parent_grid
        while parent_id is not None:
            ancestors.add(parent_id)
            parent = self._nodes.get(parent_id)
            parent_id = parent.parent_grid if parent else None

        seen: set[str] = set()
        for node in nodes:
            if node.id not in self._nodes:
                raise GridSelectionError(f"Node {node.id} is not on this board")
            if node.in_grid:
                raise GridSelectionError(f"Node {node.id} is already in a grid")
            if node.id in ancestors:
                raise GridSelectionError(f"Node {node.id} cannot be placed inside its own grid")
            if node.id in seen:
                raise GridSelectionError(f"Node {node.id} is listed twice")
            seen.add(node.id)

    def begin_grid_selection(
        self,
        nodes: Iterable[CanvasNode],
        collection: Optional[CanvasNode] = None,
    ) -> GridSelection:
        """Open a cell picker; a new untitled collection is made if none is given."""
        if collection is None:
            collection = create_collection("", self.config)
        return GridSelection(collection, list(nodes), self._nodes, self.config)

    def begin_new_collection(self) -> GridSelection:
        """Open a picker for a new collection over every node in edit mode."""
        nodes = self.nodes_eligible_for_grid(include_collections=True)
        if not nodes:
            raise GridSelectionError(NODE_ASSIGNMENT_WARNING_MESSAGE)
        return self.begin_grid_selection(nodes)

    def begin_adding_to_collection(self) -> GridSelection:
        """Open a picker that adds the nodes in edit mode to the one editable collection."""
        collections = self.editable_collections()
        if not collections:
            raise GridSelectionError(NO_COLLECTIONS_WARNING_MESSAGE)
        if len(collections) > 1:
            raise GridSelectionError(TOO_MANY_COLLECTIONS_WARNING_MESSAGE)
        nodes = self.nodes_eligible_for_grid()
        if not nodes:
            raise GridSelectionError(NODE_ASSIGNMENT_WARNING_MESSAGE)

        collection = collections[0]
        selection = self.begin_grid_selection(nodes, collection)
        collection.editable = False
        self._emit(collection, "editable")
        return selection

    def commit_grid_selection(self, selection: GridSelection, title: Optional[str] = None) -> CanvasNode:
        """Hand a finished pick to the grid engine and return the collection.

        Every check runs before the board is touched, so a refused commit
        leaves the board and existing cells as they were.
        """
        collection = selection.collection
        if title is not None:
            collection.title = title
        if not selection.assignment_done:
            raise GridSelectionError(NODE_ASSIGNMENT_WARNING_MESSAGE)
        if not collection.title:
            raise GridSelectionError(NO_TITLE_WARNING_MESSAGE)
        if selection.adding_to_existing and collection.id not in self._nodes:
            raise GridSelectionError(f"Collection {collection.id} is not on this board")
        self._check_grid_candidates(collection, selection.nodes_to_add)

        if selection.adding_to_existing:
            grid.normalize_cells(selection.nodes_to_add + self.children_of(collection))
        else:
            grid.normalize_cells(selection.nodes_to_add)

        self.add_node(collection)
        self.add_to_grid(collection, selection.nodes_to_add)
        return collection

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    def delete_node(self, node: CanvasNode, full: bool = True) -> None:
        """Delete ``node`` from its grid only (``full=False``) or from the board."""
        if node.id not in self._nodes or node.id in self._deleting:
            return
        if not full:
            self._remove_from_grid(node)
            return

        self._deleting.add(node.id)
        try:
            self._on_before_delete(node)
            self.links.remove_all_links(node)
            self._remove_from_grid(node)
            root = collection_data(self.root)
            root.child_ids = [child_id for child_id in root.child_ids if child_id != node.id]
            del self._nodes[node.id]
            node.root_collection = None
            self._drag.pop(node.id, None)
            logger.info("Deleted %s node %s", node.kind.value, node.get_label())
            self._emit(node, "deleted")
        finally:
            self._deleting.discard(node.id)

    def _on_before_delete(self, node: CanvasNode) -> None:
        if node.is_collection:
            for child in self.children_of(node):
                self.delete_node(child, full=True)

    def _remove_from_grid(self, node: CanvasNode) -> None:
        if node.parent_grid is None:
            return
        parent = self._nodes.get(node.parent_grid)
        node.parent_grid = None
        self._emit(node, "grid")
        if parent is None:
            return

        data = collection_data(parent)
        data.child_ids = [child_id for child_id in data.child_ids if child_id != node.id]
        if parent.id in self._deleting:
            return
        if not data.child_ids:
            logger.info("Collection %s is empty, deleting it", parent.get_label())
            self.delete_node(parent, full=True)
            return
        grid.recompute(parent, self._nodes, self.metrics)
        self._emit(parent, "resized")

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def set_width(self, node: CanvasNode, width: float) -> bool:
        """Set the width, clamped to the floor.  Returns False if clamped."""
        accepted = True
        minimum = self.config.minimum_node_size
        if width < minimum:
            self.notify(MIN_WIDTH_MESSAGE.format(minimum=_px(minimum)))
            width = minimum
            accepted = False
        node.width = width
        self._after_resize(node)
        return accepted

    def set_height(self, node: CanvasNode, height: float) -> bool:
        """Set the height, clamped to the floor.  Returns False if clamped."""
        accepted = True
        minimum = self.config.minimum_node_size
        if height < minimum:
            self.notify(MIN_HEIGHT_MESSAGE.format(minimum=_px(minimum)))
            height = minimum
            accepted = False
        node.height = height
        self._after_resize(node)
        return accepted

    def resize_by(self, node: CanvasNode, dw: float, dh: float) -> bool:
        width_ok = self.set_width(node, node.width + dw)
        height_ok = self.set_height(node, node.height + dh)
        return width_ok and height_ok

    def _after_resize(self, node: CanvasNode) -> None:
        if node.parent_grid is not None:
            parent = self._nodes.get(node.parent_grid)
            if parent is not None:
                grid.recompute(parent, self._nodes, self.metrics)
        self._emit(node, "resized")

    def move_by(self, node: CanvasNode, dx: float, dy: float) -> bool:
        """Drag ``node`` by a delta.

        Free nodes move directly.  A gridded node stays in its cell until
        the accumulated drag exceeds ``detach_distance``; then it leaves
        the grid and jumps by the whole accumulated delta.  Returns True
        when that detach happened.
        """
        if not node.in_grid:
            self._translate(node, dx, dy)
            return False

        acc_x, acc_y = self._drag.get(node.id, (0.0, 0.0))
        acc_x += dx
        acc_y += dy
        if math.hypot(acc_x, acc_y) > self.config.detach_distance:
            self._drag.pop(node.id, None)
            self.delete_node(node, full=False)
            self._translate(node, acc_x, acc_y)
            logger.info("Detached %s from its grid", node.get_label())
            return True

        self._drag[node.id] = (acc_x, acc_y)
        return False

    def end_drag(self, node: CanvasNode) -> None:
        self._drag.pop(node.id, None)

    def _translate(self, node: CanvasNode, dx: float, dy: float) -> None:
        node.x += dx
        node.y += dy
        if node.is_collection:
            grid.position_children(node, self._nodes, self.metrics)
        self._emit(node, "moved")

    def center_node(self, node_id: str, viewport_width: float, viewport_height: float) -> bool:
        """Pan the root so the node sits in the middle of the viewport."""
        node = self._nodes.get(node_id)
        if node is None:
            return False
        self.root.x = -node.x + viewport_width / 2 - node.width / 2
        self.root.y = -node.y + viewport_height / 2 - node.height / 2
        self._emit(self.root, "moved")
        return True

    # ------------------------------------------------------------------
    # Stacking and edit state
    # ------------------------------------------------------------------

    def bring_to_front(self, node: CanvasNode) -> None:
        node.z_index = self.allocator.next()
        self._on_z_order_changed(node)

    def _on_z_order_changed(self, node: CanvasNode) -> None:
        if node.is_collection:
            grid.bring_children_to_front(node, self._nodes)
        self._emit(node, "z_order")

    def toggle_editable(self, node: CanvasNode) -> bool:
        node.editable = not node.editable
        self._emit(node, "editable")
        return node.editable

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def attempt_link(self, node: CanvasNode) -> bool:
        """One click of the link protocol; collections are never linkable."""
        if node.id not in self._nodes:
            return False
        if node.is_collection:
            logger.warning("Rejected link click on collection %s", node.id)
            self.notify(COLLECTION_LINK_MESSAGE)
            return False
        start = self.links.pending_start
        linked = self.links.attempt_link(node)
        self._emit(node, "links")
        if start is not None and start.id != node.id:
            self._emit(start, "links")
        return linked

    def remove_link(self, node_a: CanvasNode, node_b: CanvasNode) -> None:
        self.links.remove_link(node_a, node_b)
        self._emit(node_a, "links")
        self._emit(node_b, "links")

    def remove_all_links(self, node: CanvasNode) -> None:
        peers = self.links.links_of(node)
        self.links.remove_all_links(node)
        self._emit(node, "links")
        for peer in peers:
            self._emit(peer, "links")


def _px(value: float) -> str:
    return f"{value:g}"
