from __future__ import annotations

"""UI controllers. Toolkit-free so they can be driven from tests."""

from .drag_session import CommitNotice, DecisionStore, DragPhase, DragSession, RenderState  # noqa: F401

__all__: list[str] = ["CommitNotice", "DecisionStore", "DragPhase", "DragSession", "RenderState"]
