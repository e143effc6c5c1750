"""Node factory — builds fully initialised nodes from a kind, title and content."""

from __future__ import annotations

import re
from typing import Optional

from .config import INVALID_URL_MESSAGE, MISSING_FIELDS_MESSAGE, CanvasConfig
from .models import (
    CanvasNode,
    ChatPayload,
    CollectionPayload,
    ImagePayload,
    NodeKind,
    RichTextPayload,
    TextPayload,
    VideoPayload,
    WebPayload,
)

URL_PATTERN = re.compile(
    r"^(https?://)?"                                  # protocol
    r"((([a-z\d]([a-z\d-]*[a-z\d])*)\.)+[a-z]{2,}|"   # domain name
    r"((\d{1,3}\.){3}\d{1,3}))"                       # or IPv4 address
    r"(:\d+)?(/[-a-z\d%_.~+]*)*"                      # port and path
    r"(\?[;&a-z\d%_.~+=-]*)?"                         # query string
    r"(#[-a-z\d_]*)?$",                               # fragment
    re.IGNORECASE,
)


def is_valid_url(url: str) -> bool:
    return bool(URL_PATTERN.match(url))


def create_node(
    kind: NodeKind | str,
    title: str,
    content: str,
    config: Optional[CanvasConfig] = None,
    prompt: Optional[str] = None,
) -> CanvasNode:
    """Create a content node.

    ``content`` is the text for text kinds, the source for image and
    video, the URL for web and the system message for chat.  Raises
    ValueError when a field is empty or a web URL is malformed.
    """
    kind = NodeKind(kind)
    if kind == NodeKind.COLLECTION:
        raise ValueError("Use create_collection() for collection nodes")
    if not title or not content:
        raise ValueError(MISSING_FIELDS_MESSAGE)

    if kind == NodeKind.PLAIN_TEXT:
        payload = TextPayload(text=content)
    elif kind == NodeKind.RICH_TEXT:
        payload = RichTextPayload(text=content)
    elif kind == NodeKind.IMAGE:
        payload = ImagePayload(src=content, prompt=prompt)
    elif kind == NodeKind.VIDEO:
        payload = VideoPayload(src=content)
    elif kind == NodeKind.WEB:
        if not is_valid_url(content):
            raise ValueError(INVALID_URL_MESSAGE)
        payload = WebPayload(url=content)
    else:
        payload = ChatPayload(system_message=content)

    return _new_node(title, payload, config or CanvasConfig())


def create_collection(title: str = "", config: Optional[CanvasConfig] = None) -> CanvasNode:
    """Create an empty grid collection.

    The title may start empty; it is required when nodes are committed
    into the collection.
    """
    return _new_node(title, CollectionPayload(), config or CanvasConfig())


def _new_node(title: str, payload, config: CanvasConfig) -> CanvasNode:
    return CanvasNode(
        title=title,
        x=config.starting_node_size,
        y=config.starting_node_size,
        width=config.default_node_size,
        height=config.default_node_size,
        payload=payload,
    )
