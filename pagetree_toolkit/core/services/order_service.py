from __future__ import annotations

"""Placement arithmetic for committed drops.

Turns a resolved :data:`DropTarget` into the :class:`PageMutation` handed to
the persistence gateway:

- ``inside``        -> child of the target, appended last, no section
- ``above``/``below`` -> sibling of the target, order derived from the target
- root zone         -> top level, appended last, no section
- section header    -> top level, appended last, in that section

For ``above``/``below`` the requested order is an index among the siblings
that remain once the dragged page has been taken out. When the page was
already before the target under the same parent, taking it out shifts the
target back by one, hence the ``-1`` correction::

    siblings a(0) D(1) b(2) c(3); drag D below b -> order 2 -> a b D c
    siblings a(0) b(1) D(2) c(3); drag D above b -> order 1 -> a D b c

Examples
--------
    recalc = OrderRecalculator()
    mutation = recalc.compute(tree, "page-5", RowTarget("page-2", DropIntent.ABOVE))
"""

import logging
from typing import Optional

from pagetree_toolkit.core.exceptions import StaleTargetError
from pagetree_toolkit.core.models import (
    APPEND_ORDER,
    DropIntent,
    DropTarget,
    PageMutation,
    PageNode,
    PageTree,
    RootTarget,
    RowTarget,
    SectionTarget,
)

__all__ = ["OrderRecalculator"]

logger = logging.getLogger(__name__)


class OrderRecalculator:
    """Computes parent, order and section for a page after a drop."""

    def compute(self, tree: PageTree, dragged_id: str, target: DropTarget) -> PageMutation:
        """Dispatch on the drop target variant.

        Raises
        ------
        StaleTargetError
            If the dragged page or the target row is missing from ``tree``.
        TypeError
            For an unknown target type.
        """
        if isinstance(target, RowTarget):
            return self.for_row(tree, dragged_id, target.target_id, target.intent)
        if isinstance(target, RootTarget):
            return self.to_root(tree, dragged_id)
        if isinstance(target, SectionTarget):
            return self.to_section(tree, dragged_id, target.section_id)
        raise TypeError(f"Unsupported drop target: {target!r}")

    def for_row(self, tree: PageTree, dragged_id: str, target_id: str, intent: DropIntent) -> PageMutation:
        dragged = self._require(tree, dragged_id)
        target = self._require(tree, target_id)

        if intent is DropIntent.INSIDE:
            return PageMutation(dragged.id, APPEND_ORDER, target.id, None)

        same_parent = dragged.parent_id == target.parent_id
        dragged_was_before = same_parent and dragged.order < target.order
        if intent is DropIntent.ABOVE:
            order = target.order - 1 if dragged_was_before else target.order
        elif intent is DropIntent.BELOW:
            order = target.order if dragged_was_before else target.order + 1
        else:
            raise ValueError(f"Unsupported drop intent: {intent!r}")

        parent_id = target.parent_id
        section_id = None if parent_id is not None else target.section_id
        logger.debug("Order: %s %s %s (same_parent=%s before=%s) -> parent=%s order=%d section=%s",
                     dragged.id, intent.value, target.id, same_parent, dragged_was_before,
                     parent_id, order, section_id)
        return PageMutation(dragged.id, order, parent_id, section_id)

    def to_root(self, tree: PageTree, dragged_id: str) -> PageMutation:
        dragged = self._require(tree, dragged_id)
        return PageMutation(dragged.id, APPEND_ORDER, None, None)

    def to_section(self, tree: PageTree, dragged_id: str, section_id: Optional[str]) -> PageMutation:
        dragged = self._require(tree, dragged_id)
        return PageMutation(dragged.id, APPEND_ORDER, None, section_id)

    @staticmethod
    def _require(tree: PageTree, node_id: str) -> PageNode:
        node = tree.get(node_id)
        if node is None:
            raise StaleTargetError("Page is not part of the current tree snapshot.", node_id)
        return node
