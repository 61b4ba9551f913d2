from __future__ import annotations

"""Typed views over the ``page_tree`` configuration section."""

from dataclasses import dataclass, field
import logging
import os
from typing import Any, Mapping, Optional

from .manager import ConfigManager

__all__ = ["GatewaySettings", "PageTreeSettings", "load_settings"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewaySettings:
    """Connection settings for the REST persistence gateway."""
    base_url: str = ""
    timeout_seconds: float = 10.0
    token_env: str = "PAGETREE_API_TOKEN"

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    def resolve_token(self) -> Optional[str]:
        token = os.environ.get(self.token_env, "").strip() if self.token_env else ""
        return token or None


@dataclass(frozen=True)
class PageTreeSettings:
    """Editor limits.

    Attributes
    ----------
    max_depth
        Deepest level a page may occupy below its root (root is level 0).
    nest_edge_fraction
        Top/bottom share of a row meaning "insert beside" when nesting is
        permitted. Must lie strictly between 0 and 0.5.
    """
    max_depth: int = 2
    nest_edge_fraction: float = 0.25
    gateway: GatewaySettings = field(default_factory=GatewaySettings)

    def __post_init__(self) -> None:
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if not 0.0 < self.nest_edge_fraction < 0.5:
            raise ValueError(f"nest_edge_fraction must be in (0, 0.5), got {self.nest_edge_fraction}")

    @classmethod
    def from_config(cls, data: Optional[Mapping[str, Any]]) -> "PageTreeSettings":
        """Build settings from a config mapping; unknown keys are ignored."""
        data = data or {}
        gw = data.get("gateway") or {}
        gateway = GatewaySettings(
            base_url=str(gw.get("base_url") or "").rstrip("/"),
            timeout_seconds=float(gw.get("timeout_seconds", 10.0)),
            token_env=str(gw.get("token_env") or "PAGETREE_API_TOKEN"),
        )
        return cls(
            max_depth=int(data.get("max_depth", 2)),
            nest_edge_fraction=float(data.get("nest_edge_fraction", 0.25)),
            gateway=gateway,
        )


def load_settings() -> PageTreeSettings:
    """Read settings through :class:`ConfigManager`, falling back to defaults on bad values."""
    raw = ConfigManager().get_page_tree_config()
    try:
        return PageTreeSettings.from_config(raw)
    except (TypeError, ValueError) as exc:
        logger.error("Invalid page_tree config (%s); using built-in defaults", exc)
        return PageTreeSettings()
