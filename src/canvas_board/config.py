"""Configuration and user-facing notices for Canvas Board.

Layout constants default to the values the canvas was designed around
(5px collection borders, a 20px top bar, 100px minimum node size).  They
can be overridden from a YAML file::

    border_width: 5
    toolbar_height: 20
    minimum_node_size: 100
    detach_distance: 300

The file path comes from the ``CANVAS_BOARD_CONFIG`` environment variable
when ``load_config()`` is called without an explicit path.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel


# --- Layout defaults ---

COLLECTION_BORDER_WIDTH = 5
TOOLBAR_HEIGHT = 20
MINIMUM_NODE_SIZE = 100
STARTING_NODE_SIZE = 500
DEFAULT_NODE_SIZE = 300
DETACH_DISTANCE = 300
EXTRA_ROWS_TO_SHOW = 2
STARTING_GRID_SELECTOR_SIZE = 10

CONFIG_ENV_VAR = "CANVAS_BOARD_CONFIG"


# --- Notices shown to the user ---

LINK_EXISTS_MESSAGE = "Link already created."
COLLECTION_LINK_MESSAGE = "Collections cannot be linked."
MIN_WIDTH_MESSAGE = "Width must be at least {minimum}px"
MIN_HEIGHT_MESSAGE = "Height must be at least {minimum}px"
NODE_ASSIGNMENT_WARNING_MESSAGE = "Please assign nodes to the collection"
NO_TITLE_WARNING_MESSAGE = "Please enter a title"
NO_COLLECTIONS_WARNING_MESSAGE = "There are no collections selected."
TOO_MANY_COLLECTIONS_WARNING_MESSAGE = "Please only select one collection."
GRID_TOO_SMALL_MESSAGE = "The size of the grid must fit all of the selected nodes."
CELL_OCCUPIED_MESSAGE = "This cell is already assigned to a node."
MISSING_FIELDS_MESSAGE = "Please fill in all fields"
INVALID_URL_MESSAGE = "Invalid URL. Please enter a valid, absolute URL."


class CanvasConfig(BaseModel):
    """Tunable layout constants for a board.

    Attributes:
        border_width:      Collection border in pixels; drives every grid margin.
        toolbar_height:    Height of a collection's top bar.
        minimum_node_size: Floor applied to node width and height.
        starting_node_size: Initial x/y offset for freshly created nodes.
        default_node_size: Initial width/height for freshly created nodes.
        detach_distance:   Drag distance that pulls a node out of its grid.
        extra_rows_to_show: Spare rows/columns offered when adding to a grid.
        starting_grid_selector_size: Side of the unsized grid picker.
    """
    border_width: float = COLLECTION_BORDER_WIDTH
    toolbar_height: float = TOOLBAR_HEIGHT
    minimum_node_size: float = MINIMUM_NODE_SIZE
    starting_node_size: float = STARTING_NODE_SIZE
    default_node_size: float = DEFAULT_NODE_SIZE
    detach_distance: float = DETACH_DISTANCE
    extra_rows_to_show: int = EXTRA_ROWS_TO_SHOW
    starting_grid_selector_size: int = STARTING_GRID_SELECTOR_SIZE


def load_config(config_path: Optional[Path] = None) -> CanvasConfig:
    """Load config from a YAML file. Falls back to defaults if the file is missing."""
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return CanvasConfig()
        config_path = Path(env_path)

    config_path = Path(config_path).expanduser()
    if config_path.exists():
        raw: dict[str, Any] = yaml.safe_load(config_path.read_text()) or {}
        return CanvasConfig(**raw)

    return CanvasConfig()
