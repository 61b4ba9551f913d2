from __future__ import annotations

"""Structural checks used while a page is being dragged.

- :func:`subtree_depth` measures the tallest branch a dragged page carries
  along, which bounds where it may be dropped.
- :func:`is_cycle_target` rejects targets inside the dragged page's own
  subtree (including the page itself).

Both are pure reads of a :class:`PageTree` snapshot.
"""

from typing import Optional

from pagetree_toolkit.core.models import PageNode, PageTree

__all__ = ["subtree_depth", "is_cycle_target"]


def subtree_depth(node: Optional[PageNode]) -> int:
    """Return the number of levels below ``node`` along its tallest branch.

    A leaf has depth 0. Every branch is visited, not only the first one.
    """
    if node is None or not node.children:
        return 0
    return 1 + max(subtree_depth(child) for child in node.children)


def is_cycle_target(tree: PageTree, dragged_id: Optional[str], target_id: Optional[str]) -> bool:
    """Return True if dropping ``dragged_id`` relative to ``target_id`` must be refused.

    The drop is refused when the target is the dragged page itself or any
    page in its subtree. Unknown dragged pages have no subtree, so only the
    identity check applies to them.
    """
    if dragged_id is None or target_id is None:
        return False
    if target_id == dragged_id:
        return True
    if dragged_id not in tree:
        return False
    return target_id in tree.descendant_ids(dragged_id)
