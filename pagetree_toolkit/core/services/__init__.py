from __future__ import annotations

"""Page tree services: structural analysis, drop classification, placement
arithmetic, persistence gateways and the local section registry.
"""

from .results import OperationResult  # noqa: F401
from .tree_analysis import is_cycle_target, subtree_depth  # noqa: F401
from .drop_zone_service import DepthCeilings, DropZoneClassifier  # noqa: F401
from .order_service import OrderRecalculator  # noqa: F401
from .persistence import InMemoryPageStore, PersistenceGateway  # noqa: F401
from .http_gateway import HttpPageGateway  # noqa: F401
from .section_service import SectionGroup, SectionService, group_by_section  # noqa: F401

__all__: list[str] = [
    "OperationResult",
    "is_cycle_target",
    "subtree_depth",
    "DepthCeilings",
    "DropZoneClassifier",
    "OrderRecalculator",
    "InMemoryPageStore",
    "PersistenceGateway",
    "HttpPageGateway",
    "SectionGroup",
    "SectionService",
    "group_by_section",
]
