"""
Link manager — the undirected link graph over a board's nodes.

Links are created by a two-click protocol:

    Idle ──click N──▶ Pending(N)
    Pending(N) ──click N──▶ Idle            (cancel, no link)
    Pending(N) ──click M──▶ Idle            (link N↔M, or reject if linked)

The manager owns an adjacency map keyed by node id and keeps each node's
``linked_peers``/``has_links``/``pending_link`` fields in step with it.
Every removal is tolerant: unknown or unlinked nodes are a no-op, since a
delete can race a link-completion click.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Mapping, Optional

from .config import LINK_EXISTS_MESSAGE
from .models import CanvasNode

logger = logging.getLogger(__name__)


class LinkState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"


class LinkManager:
    """Undirected, loop-free link graph with a two-phase selection protocol.

    ``nodes`` is the board's arena; the manager only reads it to reach
    the node records whose link fields it maintains.  ``on_notice`` is
    called with a user-facing message when a link attempt is rejected.
    """

    def __init__(
        self,
        nodes: Mapping[str, CanvasNode],
        on_notice: Optional[Callable[[str], None]] = None,
    ):
        self._nodes = nodes
        self._adjacency: dict[str, list[str]] = {}
        self._pending_start: Optional[str] = None
        self._on_notice = on_notice

    # --- Reads ---

    @property
    def state(self) -> LinkState:
        return LinkState.PENDING if self.pending_start is not None else LinkState.IDLE

    @property
    def pending_start(self) -> Optional[CanvasNode]:
        """The chosen start node, or None when idle.

        A start node that has left the arena counts as idle.
        """
        if self._pending_start is None:
            return None
        return self._nodes.get(self._pending_start)

    def is_registered(self, node: CanvasNode) -> bool:
        return node.id in self._adjacency

    def is_linked(self, node_a: CanvasNode, node_b: CanvasNode) -> bool:
        return node_b.id in self._adjacency.get(node_a.id, [])

    def links_of(self, node: CanvasNode) -> list[CanvasNode]:
        """Return the nodes linked to ``node``; empty if none."""
        peers = []
        for peer_id in self._adjacency.get(node.id, []):
            peer = self._nodes.get(peer_id)
            if peer is not None:
                peers.append(peer)
        return peers

    def edges(self) -> list[tuple[str, str]]:
        """Return every link once, as (id_a, id_b) in registration order."""
        seen: set[frozenset[str]] = set()
        edges: list[tuple[str, str]] = []
        for node_id, peers in self._adjacency.items():
            for peer_id in peers:
                pair = frozenset((node_id, peer_id))
                if pair in seen:
                    continue
                seen.add(pair)
                edges.append((node_id, peer_id))
        return edges

    # --- Mutations ---

    def register_node(self, node: CanvasNode) -> None:
        if node.id not in self._adjacency:
            self._adjacency[node.id] = []

    def attempt_link(self, node: CanvasNode) -> bool:
        """Feed one click of the two-phase protocol.

        Returns True only when this click completed a new link.  A click
        on a node that is no longer in the arena changes nothing.
        """
        if node.id not in self._nodes:
            logger.debug("Ignored link click on removed node %s", node.id)
            return False

        self._drop_stale_pending()
        self.register_node(node)
        start = self.pending_start

        if start is None:
            self._pending_start = node.id
            node.pending_link = True
            logger.debug("Link pending from %s", node.id)
            return False

        if start.id == node.id:
            node.pending_link = False
            self._pending_start = None
            logger.debug("Link from %s cancelled", node.id)
            return False

        self.register_node(start)
        self._pending_start = None
        start.pending_link = False
        node.pending_link = False

        if self.is_linked(start, node):
            logger.warning("Rejected duplicate link %s <-> %s", start.id, node.id)
            self._notify(LINK_EXISTS_MESSAGE)
            return False

        self._adjacency[start.id].append(node.id)
        self._adjacency[node.id].append(start.id)
        start.linked_peers.append(node.id)
        node.linked_peers.append(start.id)
        start.has_links = True
        node.has_links = True
        logger.debug("Linked %s <-> %s", start.id, node.id)
        return True

    def remove_link(self, node_a: CanvasNode, node_b: CanvasNode) -> None:
        """Remove the single link between two nodes, if there is one."""
        if node_a.id not in self._adjacency or node_b.id not in self._adjacency:
            return
        self._unlink(node_a.id, node_b.id)
        node_a.linked_peers = [p for p in node_a.linked_peers if p != node_b.id]
        node_b.linked_peers = [p for p in node_b.linked_peers if p != node_a.id]
        node_a.has_links = len(node_a.linked_peers) > 0
        node_b.has_links = len(node_b.linked_peers) > 0

    def remove_all_links(self, node: CanvasNode) -> None:
        """Drop every link of ``node`` and forget it entirely."""
        if self._pending_start == node.id:
            self._pending_start = None
            node.pending_link = False
        self._drop_stale_pending()
        if node.id not in self._adjacency:
            return

        for peer_id in list(self._adjacency[node.id]):
            self._unlink(node.id, peer_id)
            peer = self._nodes.get(peer_id)
            if peer is not None:
                peer.has_links = len(peer.linked_peers) > 0

        del self._adjacency[node.id]

        node.linked_peers = []
        node.has_links = False
        logger.debug("Removed all links of %s", node.id)

    # --- Internals ---

    def _unlink(self, node_id: str, peer_id: str) -> None:
        for a, b in ((node_id, peer_id), (peer_id, node_id)):
            links = self._adjacency.get(a)
            if links is not None and b in links:
                links.remove(b)
            record = self._nodes.get(a)
            if record is not None and b in record.linked_peers:
                record.linked_peers = [p for p in record.linked_peers if p != b]

    def _drop_stale_pending(self) -> None:
        if self._pending_start is not None and self._pending_start not in self._nodes:
            self._pending_start = None

    def _notify(self, message: str) -> None:
        if self._on_notice is not None:
            self._on_notice(message)
