"""
Data models for Canvas Board — the node record and its payloads.

A board is a flat arena of nodes keyed by id.  Structure lives in id
references, never in nested objects:

    Board (root collection, pan offset)
    └── Node                 — any positioned, sized block
        ├── parent_grid      — the collection whose grid cell it occupies
        ├── root_collection  — the board root that owns it
        └── linked_peers     — symmetric links to other nodes

A **collection** is a node whose payload carries the ids of its grid
children plus the derived grid-sizing cache (per-column widths, per-row
heights, max occupied indices).  Collections nest: a collection can sit
in another collection's grid.

This module also defines the **node kind system** — seven kinds, each
with its own payload model:

    plain_text — static text
    rich_text  — formatted, editable text
    image      — uploaded or generated image
    video      — embedded video
    web        — embedded web page
    chat       — chat assistant with a system message
    collection — grid container of other nodes
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class NodeKind(str, Enum):
    PLAIN_TEXT = "plain_text"
    RICH_TEXT = "rich_text"
    IMAGE = "image"
    VIDEO = "video"
    WEB = "web"
    CHAT = "chat"
    COLLECTION = "collection"


# ---------------------------------------------------------------------------
# Payloads (kind-specific content)
# ---------------------------------------------------------------------------

class TextPayload(BaseModel):
    kind: Literal["plain_text"] = "plain_text"
    text: str = ""


class RichTextPayload(BaseModel):
    kind: Literal["rich_text"] = "rich_text"
    text: str = ""


class ImagePayload(BaseModel):
    """An image node.  ``prompt`` is set when the image was generated."""
    kind: Literal["image"] = "image"
    src: str = ""
    prompt: Optional[str] = None


class VideoPayload(BaseModel):
    kind: Literal["video"] = "video"
    src: str = ""


class WebPayload(BaseModel):
    kind: Literal["web"] = "web"
    url: str = ""


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    message: str


class ChatPayload(BaseModel):
    kind: Literal["chat"] = "chat"
    system_message: str = ""
    messages: list[ChatMessage] = Field(default_factory=list)


class CollectionPayload(BaseModel):
    """Grid content and derived sizing for a collection.

    Attributes:
        child_ids:     Ordered ids of the nodes laid out in this grid.
        column_widths: Column index -> widest member plus border margins.
        row_heights:   Row index -> tallest member plus border margins.
        row_count:     Largest occupied row index (not a count of rows).
        col_count:     Largest occupied column index.

    The four sizing fields are a cache rebuilt by ``grid.recompute``;
    nothing else should write them.
    """
    kind: Literal["collection"] = "collection"
    child_ids: list[str] = Field(default_factory=list)
    column_widths: dict[int, float] = Field(default_factory=dict)
    row_heights: dict[int, float] = Field(default_factory=dict)
    row_count: int = 0
    col_count: int = 0


NodePayload = Annotated[
    Union[
        TextPayload,
        RichTextPayload,
        ImagePayload,
        VideoPayload,
        WebPayload,
        ChatPayload,
        CollectionPayload,
    ],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Node
# ---------------------------------------------------------------------------

def _new_id() -> str:
    return uuid.uuid4().hex


class CanvasNode(BaseModel):
    """A node — the base structural unit of the board.

    Geometry
    --------
    ``x``/``y`` live in the board's shared coordinate space.  For a
    gridded node they are derived by the grid engine and overwritten on
    every recompute.  ``width``/``height`` are floored by the board at
    the configured minimum before they ever reach the grid engine.

    Membership
    ----------
    ``root_collection`` and ``parent_grid`` are ids, not objects.
    ``grid_row``/``grid_column`` only mean something while
    ``parent_grid`` is set.

    Links
    -----
    ``linked_peers`` mirrors the link manager's adjacency for this node
    and is kept symmetric by it.  ``has_links`` is true iff the list is
    non-empty; ``pending_link`` is true while this node is the chosen
    start of an unfinished link.
    """
    id: str = Field(default_factory=_new_id)
    title: Optional[str] = None
    x: float = 0.0
    y: float = 0.0
    width: float = 300.0
    height: float = 300.0
    z_index: int = 0
    editable: bool = False
    root_collection: Optional[str] = None
    parent_grid: Optional[str] = None
    grid_row: int = 0
    grid_column: int = 0
    linked_peers: list[str] = Field(default_factory=list)
    has_links: bool = False
    pending_link: bool = False
    payload: NodePayload = Field(default_factory=TextPayload)

    @property
    def kind(self) -> NodeKind:
        return NodeKind(self.payload.kind)

    @property
    def is_collection(self) -> bool:
        return isinstance(self.payload, CollectionPayload)

    @property
    def in_grid(self) -> bool:
        return self.parent_grid is not None

    @property
    def cell(self) -> tuple[int, int]:
        return (self.grid_row, self.grid_column)

    def get_label(self) -> str:
        """Return ``title`` if set, otherwise the id."""
        return self.title if self.title else self.id


def collection_data(node: CanvasNode) -> CollectionPayload:
    """Return the collection payload of ``node``.

    Raises TypeError for any other kind.
    """
    if not isinstance(node.payload, CollectionPayload):
        raise TypeError(f"Node {node.id} is a {node.payload.kind} node, not a collection")
    return node.payload
