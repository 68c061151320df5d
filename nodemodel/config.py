"""
Runtime configuration for the node model.

Values are read from the environment (prefix ``NODEMODEL_``) so an embedding
editor can tune defaults without code changes, e.g.::

    NODEMODEL_DEFAULT_WIDTH=120
    NODEMODEL_MULTIPLE_NODE_TEXT=true
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class NodeModelSettings(BaseSettings):
    """Defaults applied when a node or graph is created."""

    model_config = SettingsConfigDict(env_prefix="NODEMODEL_")

    # Geometry
    default_width: float = 100
    default_height: float = 80
    min_width: float = 30
    min_height: float = 30
    max_width: float = 2000
    max_height: float = 2000
    circle_radius: float = 50

    # Labels: the overlay renders each label in a 20x20 box, so the default
    # position is shifted up-left by half of it and staggered per index.
    label_offset: float = 10
    label_stagger: float = 20
    multiple_node_text: bool = False
    node_text_vertical: bool = False

    # "default" or "increase" (see OverlapMode)
    overlap_mode: str = "default"

    @model_validator(mode="after")
    def check_bounds(self) -> "NodeModelSettings":
        """Keep advisory bounds ordered."""
        if self.min_width > self.max_width:
            raise ValueError("min_width must not exceed max_width")
        if self.min_height > self.max_height:
            raise ValueError("min_height must not exceed max_height")
        return self


@lru_cache
def get_settings() -> NodeModelSettings:
    """Return the process-wide settings instance."""
    return NodeModelSettings()
