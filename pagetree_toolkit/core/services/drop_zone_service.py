from __future__ import annotations

"""Pointer-to-intent classification for drops on page rows.

A row accepts up to three intents. When nesting is allowed at the row the
split is 25/50/25 (above / inside / below); when only reordering is allowed
the row is split 50/50 (above / below) so there is no dead band. Rows too deep
for either yield no intent.

Boundaries are half-open: an offset of exactly ``edge * height`` is already
inside, and exactly ``(1 - edge) * height`` is already below.
"""

from dataclasses import dataclass
import logging
from typing import Optional

from pagetree_toolkit.core.models import DropIntent, PageTree
from pagetree_toolkit.core.services.tree_analysis import subtree_depth

__all__ = ["DepthCeilings", "DropZoneClassifier"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DepthCeilings:
    """Deepest target levels at which a given dragged subtree may land.

    Attributes
    ----------
    max_inside_level
        Nesting into a row is allowed when the row's level is at most this.
    max_beside_level
        Reordering next to a row is allowed when the row's level is at most this.
    """
    max_inside_level: int
    max_beside_level: int

    @classmethod
    def for_subtree(cls, dragged_depth: int, max_depth: int = 2) -> "DepthCeilings":
        # Deepest level the dragged page itself may occupy
        own_limit = max_depth - dragged_depth
        return cls(max_inside_level=own_limit - 1, max_beside_level=own_limit)

    def allows_inside(self, target_level: int) -> bool:
        return target_level <= self.max_inside_level

    def allows_beside(self, target_level: int) -> bool:
        return target_level <= self.max_beside_level


class DropZoneClassifier:
    """Converts a pointer position over a row into a :class:`DropIntent`.

    Parameters
    ----------
    max_depth : int, default=2
        Deepest level any page may occupy (root is level 0).
    edge_fraction : float, default=0.25
        Height share of the top and bottom bands when nesting is allowed.
    """

    def __init__(self, max_depth: int = 2, edge_fraction: float = 0.25) -> None:
        if not 0.0 < edge_fraction < 0.5:
            raise ValueError(f"edge_fraction must be in (0, 0.5), got {edge_fraction}")
        self.max_depth = max_depth
        self.edge_fraction = edge_fraction

    @classmethod
    def from_settings(cls, settings) -> "DropZoneClassifier":
        return cls(max_depth=settings.max_depth, edge_fraction=settings.nest_edge_fraction)

    def ceilings_for(self, tree: PageTree, dragged_id: str) -> DepthCeilings:
        """Depth ceilings for dragging ``dragged_id`` with its whole subtree."""
        depth = subtree_depth(tree.get(dragged_id))
        return DepthCeilings.for_subtree(depth, self.max_depth)

    def classify(
        self,
        offset: float,
        row_height: float,
        target_level: int,
        ceilings: DepthCeilings,
    ) -> Optional[DropIntent]:
        """Classify a pointer offset (from the row's top edge) into an intent.

        Returns None when the row cannot take the dragged page at all or the
        row has no usable height.
        """
        if row_height <= 0:
            return None
        inside_ok = ceilings.allows_inside(target_level)
        beside_ok = ceilings.allows_beside(target_level)
        if not beside_ok and not inside_ok:
            return None

        ratio = min(max(offset / row_height, 0.0), 1.0)
        if inside_ok:
            if beside_ok and ratio < self.edge_fraction:
                return DropIntent.ABOVE
            if beside_ok and ratio >= 1.0 - self.edge_fraction:
                return DropIntent.BELOW
            return DropIntent.INSIDE
        return DropIntent.ABOVE if ratio < 0.5 else DropIntent.BELOW

    def classify_row(
        self,
        tree: PageTree,
        dragged_id: str,
        target_id: str,
        offset: float,
        row_height: float,
    ) -> Optional[DropIntent]:
        """Classify a pointer position over ``target_id`` for the given dragged page."""
        if target_id not in tree:
            return None
        intent = self.classify(offset, row_height, tree.level_of(target_id), self.ceilings_for(tree, dragged_id))
        logger.debug("Zone: dragged=%s target=%s offset=%.1f/%.1f -> %s",
                     dragged_id, target_id, offset, row_height, intent.value if intent else None)
        return intent

    def permits(self, tree: PageTree, dragged_id: str, target_id: str, intent: DropIntent) -> bool:
        """Return True if ``intent`` on ``target_id`` still fits the depth ceilings of ``tree``."""
        ceilings = self.ceilings_for(tree, dragged_id)
        level = tree.level_of(target_id)
        if intent is DropIntent.INSIDE:
            return ceilings.allows_inside(level)
        return ceilings.allows_beside(level)
