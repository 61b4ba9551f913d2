from __future__ import annotations

"""Drop gesture value objects.

A completed gesture resolves to exactly one :data:`DropTarget` variant, each
carrying only the fields it needs:

- :class:`RowTarget`     - a page row plus the inferred :class:`DropIntent`
- :class:`RootTarget`    - the explicit "move to top level" zone
- :class:`SectionTarget` - a section header

The order recalculator turns a target into a :class:`PageMutation`, the single
payload handed to the persistence gateway.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Union

__all__ = [
    "APPEND_ORDER",
    "DropIntent",
    "DropZoneRegion",
    "RowTarget",
    "RootTarget",
    "SectionTarget",
    "DropTarget",
    "PageMutation",
]

# Greater than any real sibling order; the store appends the page last
APPEND_ORDER = 10**9


class DropIntent(str, Enum):
    ABOVE = "above"
    INSIDE = "inside"
    BELOW = "below"


class DropZoneRegion(str, Enum):
    """Indicator regions the presentation layer draws."""
    ROW_ABOVE_LINE = "row-above-line"
    ROW_BELOW_LINE = "row-below-line"
    ROW_CONTAINER = "row-container"
    ROOT_ZONE = "root-zone"
    SECTION_HEADER = "section-header"


_INTENT_REGIONS = {
    DropIntent.ABOVE: DropZoneRegion.ROW_ABOVE_LINE,
    DropIntent.INSIDE: DropZoneRegion.ROW_CONTAINER,
    DropIntent.BELOW: DropZoneRegion.ROW_BELOW_LINE,
}


@dataclass(frozen=True)
class RowTarget:
    target_id: str
    intent: DropIntent

    @property
    def region(self) -> DropZoneRegion:
        return _INTENT_REGIONS[self.intent]


@dataclass(frozen=True)
class RootTarget:
    @property
    def region(self) -> DropZoneRegion:
        return DropZoneRegion.ROOT_ZONE


@dataclass(frozen=True)
class SectionTarget:
    section_id: str

    @property
    def region(self) -> DropZoneRegion:
        return DropZoneRegion.SECTION_HEADER


DropTarget = Union[RowTarget, RootTarget, SectionTarget]


@dataclass(frozen=True)
class PageMutation:
    """Placement change for one page, as committed to the gateway.

    Attributes
    ----------
    node_id
        Page being moved.
    order
        Requested sibling order, or :data:`APPEND_ORDER` to append.
    parent_id
        New parent page, None for root level.
    section_id
        New section; always None when ``parent_id`` is set.
    """
    node_id: str
    order: int
    parent_id: Optional[str]
    section_id: Optional[str]

    def __post_init__(self) -> None:
        if self.parent_id is not None and self.section_id is not None:
            raise ValueError("Nested pages cannot carry a section")

    @property
    def appends(self) -> bool:
        return self.order >= APPEND_ORDER

    def to_payload(self) -> Dict[str, Any]:
        """Wire body of the reorder request."""
        return {
            "newOrder": self.order,
            "newParentPage": self.parent_id,
            "sectionId": self.section_id,
        }
