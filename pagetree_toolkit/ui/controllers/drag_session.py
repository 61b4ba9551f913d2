from __future__ import annotations

"""Drag-and-drop session controller for the page tree.

Phases::

    IDLE -> DRAGGING -> TARGETING <-> DRAGGING -> (drop) COMMITTING -> IDLE
                     \\______________ cancel() _______________/

State is split in two:

- the *decision store* (dragged page, last accepted target) is written
  synchronously and is what every following event reads;
- the *render state* is derived from it and published through a scheduler,
  one tick later, coalescing bursts of drag-over events.

The tree snapshot is read-only here. A drop produces a
:class:`~pagetree_toolkit.core.models.PageMutation`, resets the session at
once and hands the mutation to the commit dispatcher; on success the tree is
refetched and swapped in wholesale.

No UI toolkit code lives in this module.
"""

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, List, Optional, Tuple

from pagetree_toolkit.core.exceptions import StaleTargetError
from pagetree_toolkit.core.models import (
    DropIntent,
    DropTarget,
    DropZoneRegion,
    PageMutation,
    PageTree,
    RootTarget,
    RowTarget,
    SectionTarget,
)
from pagetree_toolkit.core.services.drop_zone_service import DropZoneClassifier
from pagetree_toolkit.core.services.order_service import OrderRecalculator
from pagetree_toolkit.core.services.persistence import PersistenceGateway
from pagetree_toolkit.core.services.results import OperationResult
from pagetree_toolkit.core.services.section_service import SectionService
from pagetree_toolkit.core.services.tree_analysis import is_cycle_target
from pagetree_toolkit.ui.scheduling import (
    CommitDispatcher,
    ImmediateDispatcher,
    ImmediateScheduler,
    Scheduler,
)

__all__ = ["CommitNotice", "DecisionStore", "DragPhase", "DragSession", "RenderState"]

logger = logging.getLogger(__name__)


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    TARGETING = "targeting"
    COMMITTING = "committing"


@dataclass
class DecisionStore:
    """Immediately consistent gesture state."""
    dragged_id: Optional[str] = None
    target: Optional[DropTarget] = None

    def clear(self) -> None:
        self.dragged_id = None
        self.target = None


@dataclass(frozen=True)
class RenderState:
    """What the presentation layer should draw.

    Attributes
    ----------
    dragged_id
        Row drawn as "being dragged", or None.
    target_id
        Row carrying the drop indicator (row targets only).
    intent
        Drop intent for ``target_id``.
    region
        Indicator region: line above/below a row, row highlighted as
        container, root drop zone or section header.
    section_id
        Highlighted section header (section targets only).
    """
    dragged_id: Optional[str] = None
    target_id: Optional[str] = None
    intent: Optional[DropIntent] = None
    region: Optional[DropZoneRegion] = None
    section_id: Optional[str] = None

    @classmethod
    def from_store(cls, store: DecisionStore) -> "RenderState":
        target = store.target
        if isinstance(target, RowTarget):
            return cls(store.dragged_id, target.target_id, target.intent, target.region)
        if isinstance(target, SectionTarget):
            return cls(store.dragged_id, region=target.region, section_id=target.section_id)
        if isinstance(target, RootTarget):
            return cls(store.dragged_id, region=target.region)
        return cls(store.dragged_id)


@dataclass(frozen=True)
class CommitNotice:
    """Transient feedback about a finished commit."""
    success: bool
    message: str
    mutation: PageMutation


RenderListener = Callable[[RenderState], None]
NoticeListener = Callable[[CommitNotice], None]
TreeListener = Callable[[PageTree], None]


class DragSession:
    """Coordinates cycle guard, zone classifier and order arithmetic over one gesture.

    Parameters
    ----------
    tree : PageTree
        Current snapshot.
    gateway : PersistenceGateway
        Receives the computed mutation and serves the refetch.
    classifier : DropZoneClassifier, optional
        Defaults to the 2-level, 25% edge classifier.
    recalculator : OrderRecalculator, optional
    sections : SectionService, optional
        When given, drops on unknown section headers are refused.
    render_scheduler : Scheduler, optional
        Delays render publication; defaults to inline delivery.
    commit_dispatcher : CommitDispatcher, optional
        Runs the commit; defaults to inline execution.
    on_render, on_notice, on_tree_replaced : callables, optional
        Convenience single listeners (more can be added later).
    """

    def __init__(
        self,
        tree: PageTree,
        gateway: PersistenceGateway,
        *,
        classifier: Optional[DropZoneClassifier] = None,
        recalculator: Optional[OrderRecalculator] = None,
        sections: Optional[SectionService] = None,
        render_scheduler: Optional[Scheduler] = None,
        commit_dispatcher: Optional[CommitDispatcher] = None,
        on_render: Optional[RenderListener] = None,
        on_notice: Optional[NoticeListener] = None,
        on_tree_replaced: Optional[TreeListener] = None,
    ) -> None:
        self._tree = tree
        self._gateway = gateway
        self._classifier = classifier or DropZoneClassifier()
        self._recalculator = recalculator or OrderRecalculator()
        self._sections = sections
        self._scheduler: Scheduler = render_scheduler or ImmediateScheduler()
        self._dispatcher: CommitDispatcher = commit_dispatcher or ImmediateDispatcher()

        self._phase = DragPhase.IDLE
        self._store = DecisionStore()
        self._render_state = RenderState()
        self._render_pending = False

        self._render_listeners: List[RenderListener] = [on_render] if on_render else []
        self._notice_listeners: List[NoticeListener] = [on_notice] if on_notice else []
        self._tree_listeners: List[TreeListener] = [on_tree_replaced] if on_tree_replaced else []

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def phase(self) -> DragPhase:
        return self._phase

    @property
    def tree(self) -> PageTree:
        return self._tree

    @property
    def dragged_id(self) -> Optional[str]:
        return self._store.dragged_id

    @property
    def target(self) -> Optional[DropTarget]:
        return self._store.target

    @property
    def render_state(self) -> RenderState:
        """Last render state delivered to listeners (may lag the decision store)."""
        return self._render_state

    @property
    def is_active(self) -> bool:
        return self._phase is not DragPhase.IDLE

    def add_render_listener(self, listener: RenderListener) -> None:
        self._render_listeners.append(listener)

    def add_notice_listener(self, listener: NoticeListener) -> None:
        self._notice_listeners.append(listener)

    def add_tree_listener(self, listener: TreeListener) -> None:
        self._tree_listeners.append(listener)

    # ------------------------------------------------------------------
    # Gesture events
    # ------------------------------------------------------------------
    def start_drag(self, node_id: str) -> bool:
        """Begin dragging ``node_id``. A still-active prior session is cancelled first."""
        if self._phase is not DragPhase.IDLE:
            logger.warning("Drag: start while %s (dragged=%s); cancelling prior session",
                           self._phase.value, self._store.dragged_id)
            self.cancel()
        if node_id not in self._tree:
            logger.warning("Drag: start refused, unknown page=%s", node_id)
            return False
        self._store.dragged_id = node_id
        self._store.target = None
        self._phase = DragPhase.DRAGGING
        logger.debug("Drag: start page=%s", node_id)
        self._request_render()
        return True

    def drag_over(self, target_id: str, offset: float, row_height: float) -> Optional[DropIntent]:
        """Evaluate the pointer over a page row; return the accepted intent or None."""
        if not self._ready_for_target():
            return None
        dragged_id = self._store.dragged_id
        if is_cycle_target(self._tree, dragged_id, target_id):
            logger.debug("Drag: over %s rejected (own subtree)", target_id)
            self._clear_target()
            return None
        intent = self._classifier.classify_row(self._tree, dragged_id, target_id, offset, row_height)
        if intent is None:
            self._clear_target()
            return None
        self._set_target(RowTarget(target_id, intent))
        return intent

    def drag_over_root(self) -> bool:
        """Pointer over the explicit "move to top level" zone."""
        if not self._ready_for_target():
            return False
        self._set_target(RootTarget())
        return True

    def drag_over_section(self, section_id: str) -> bool:
        """Pointer over a section header."""
        if not self._ready_for_target():
            return False
        if self._sections is not None and section_id not in self._sections:
            logger.debug("Drag: over unknown section %s rejected", section_id)
            self._clear_target()
            return False
        self._set_target(SectionTarget(section_id))
        return True

    def drag_leave(self) -> None:
        """Pointer left every drop site; forget the recorded target."""
        if self._ready_for_target():
            self._clear_target()

    def drop(self) -> Optional[PageMutation]:
        """Finish the gesture.

        Returns the mutation handed to the gateway, or None when nothing was
        committed (no accepted target, a target the current snapshot no
        longer allows, stale reference, idle session).
        """
        if self._phase is DragPhase.IDLE:
            return None
        dragged_id, target = self._store.dragged_id, self._store.target
        if dragged_id is None or target is None:
            logger.debug("Drag: drop without target; cancelling")
            self.cancel()
            return None

        self._phase = DragPhase.COMMITTING
        if isinstance(target, RowTarget) and not self._target_still_legal(dragged_id, target):
            self.cancel()
            return None
        try:
            mutation = self._recalculator.compute(self._tree, dragged_id, target)
        except StaleTargetError as exc:
            logger.warning("Drag: drop cancelled, stale reference: %s", exc)
            self.cancel()
            return None

        self._reset()
        logger.info("Drag: drop page=%s -> parent=%s order=%s section=%s",
                    mutation.node_id, mutation.parent_id, mutation.order, mutation.section_id)
        self._dispatcher.submit(lambda: self._commit(mutation), self._on_commit_done)
        return mutation

    def cancel(self) -> None:
        """Abort the gesture with no mutation. Safe to call repeatedly."""
        if self._phase is DragPhase.IDLE and self._store.dragged_id is None:
            return
        logger.debug("Drag: cancel page=%s", self._store.dragged_id)
        self._reset()

    def replace_tree(self, tree: PageTree) -> None:
        """Swap in a freshly fetched snapshot."""
        self._tree = tree
        for listener in list(self._tree_listeners):
            listener(tree)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _ready_for_target(self) -> bool:
        if self._phase not in (DragPhase.DRAGGING, DragPhase.TARGETING):
            return False
        if self._store.dragged_id not in self._tree:
            logger.warning("Drag: dragged page %s vanished from snapshot; cancelling", self._store.dragged_id)
            self.cancel()
            return False
        return True

    def _target_still_legal(self, dragged_id: str, target: RowTarget) -> bool:
        """Re-check a row target against the current snapshot before committing."""
        if dragged_id not in self._tree or target.target_id not in self._tree:
            # Missing pages are reported by the recalculator as stale
            return True
        if is_cycle_target(self._tree, dragged_id, target.target_id):
            logger.warning("Drag: drop cancelled, %s now lies in the subtree of %s", target.target_id, dragged_id)
            return False
        if not self._classifier.permits(self._tree, dragged_id, target.target_id, target.intent):
            logger.warning("Drag: drop cancelled, %s %s would exceed max depth %d",
                           target.intent.value, target.target_id, self._classifier.max_depth)
            return False
        return True

    def _set_target(self, target: DropTarget) -> None:
        self._store.target = target
        self._phase = DragPhase.TARGETING
        self._request_render()

    def _clear_target(self) -> None:
        if self._store.target is None and self._phase is DragPhase.DRAGGING:
            return
        self._store.target = None
        self._phase = DragPhase.DRAGGING
        self._request_render()

    def _reset(self) -> None:
        self._store.clear()
        self._phase = DragPhase.IDLE
        self._request_render()

    def _request_render(self) -> None:
        if self._render_pending:
            return
        self._render_pending = True
        self._scheduler.call_soon(self._flush_render)

    def _flush_render(self) -> None:
        self._render_pending = False
        state = RenderState.from_store(self._store)
        if state == self._render_state:
            return
        self._render_state = state
        for listener in list(self._render_listeners):
            listener(state)

    def _commit(self, mutation: PageMutation) -> Tuple[OperationResult, PageMutation, Optional[PageTree]]:
        """Commit and, on success, refetch. Runs on the dispatcher's thread."""
        try:
            result = self._gateway.commit(mutation)
        except Exception as exc:
            # Any gateway failure becomes a failed notice
            logger.error("Edit FAIL: commit page=%s error=%s", mutation.node_id, exc, exc_info=True)
            result = OperationResult(False, "Failed to move page.", {"error": str(exc)})
        if not result.success:
            return result, mutation, None
        try:
            return result, mutation, self._gateway.fetch_tree()
        except Exception as exc:
            # The move is stored; only the snapshot is out of date
            logger.error("Refetch FAIL after commit page=%s: %s", mutation.node_id, exc, exc_info=True)
            return OperationResult(True, f"{result.message} Tree refresh failed.", result.details), mutation, None

    def _on_commit_done(self, outcome: Tuple[OperationResult, PageMutation, Optional[PageTree]]) -> None:
        result, mutation, tree = outcome
        if tree is not None:
            self.replace_tree(tree)
        notice = CommitNotice(result.success, result.message, mutation)
        for listener in list(self._notice_listeners):
            listener(notice)
