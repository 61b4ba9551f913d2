from __future__ import annotations

"""Persistence gateway contract and the in-memory reference store.

The editor never patches its tree snapshot. Every accepted drop is committed
through a :class:`PersistenceGateway` and, on success, the whole tree is
fetched again.

:class:`InMemoryPageStore` is the reference gateway used by the demo shell and
the test-suite. It re-validates each mutation (existence, acyclicity, depth)
and applies it with reindex-on-write: after every move the source and
destination sibling lists are renumbered ``0..n-1``. The requested order is
read as an insertion index among the destination siblings that remain once
the page has been taken out, and :data:`APPEND_ORDER` appends. Sibling orders
therefore stay distinct whatever sequence of moves is committed.
"""

import itertools
import logging
import threading
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Protocol, runtime_checkable

from pagetree_toolkit.core.models import PageMutation, PageNode, PageTree
from pagetree_toolkit.core.services.results import OperationResult

__all__ = ["PersistenceGateway", "InMemoryPageStore"]

logger = logging.getLogger(__name__)


@runtime_checkable
class PersistenceGateway(Protocol):
    """Commits page placement changes and serves full tree snapshots.

    ``commit`` reports expected failures (validation, network) through the
    returned :class:`OperationResult`; ``fetch_tree`` raises
    :class:`~pagetree_toolkit.core.exceptions.GatewayError` when no snapshot
    can be produced.
    """

    def commit(self, mutation: PageMutation) -> OperationResult:
        ...

    def fetch_tree(self) -> PageTree:
        ...


class InMemoryPageStore:
    """Authoritative page records held in memory.

    Parameters
    ----------
    pages : Iterable[PageNode], optional
        Initial pages. Sibling orders are normalised to ``0..n-1`` on load.
    max_depth : int, default=2
        Deepest level a page may occupy; commits exceeding it are refused.

    Notes
    -----
    Calls are serialised with a lock because threaded commit dispatch may
    reach the store from a worker thread.
    """

    def __init__(self, pages: Iterable[PageNode] = (), max_depth: int = 2) -> None:
        self._max_depth = max_depth
        self._lock = threading.RLock()
        self._ids = itertools.count(1)
        # Validate the initial shape through a snapshot build
        snapshot = PageTree(pages)
        self._records: Dict[str, PageNode] = {
            n.id: replace(n, children=[]) for n in snapshot
        }
        self._normalise_all()

    @classmethod
    def from_tree(cls, tree: PageTree, max_depth: int = 2) -> "InMemoryPageStore":
        return cls(list(tree), max_depth=max_depth)

    # ------------------------------------------------------------------
    # Gateway API
    # ------------------------------------------------------------------
    def fetch_tree(self) -> PageTree:
        with self._lock:
            return PageTree([replace(n, children=[]) for n in self._records.values()])

    def commit(self, mutation: PageMutation) -> OperationResult:
        logger.info("Edit: commit page=%s parent=%s order=%s section=%s",
                    mutation.node_id, mutation.parent_id, mutation.order, mutation.section_id)
        with self._lock:
            node = self._records.get(mutation.node_id)
            if node is None:
                logger.warning("Edit FAIL: commit page_not_found page=%s", mutation.node_id)
                return OperationResult(False, f"Page not found for id '{mutation.node_id}'.",
                                       {"node_id": mutation.node_id})

            parent_id = mutation.parent_id
            if parent_id is not None:
                if parent_id not in self._records:
                    logger.warning("Edit FAIL: commit parent_not_found page=%s parent=%s", node.id, parent_id)
                    return OperationResult(False, "Destination page not found.", {"parent_id": parent_id})
                if parent_id == node.id or self._is_ancestor(node.id, parent_id):
                    logger.warning("Edit FAIL: commit cycle page=%s parent=%s", node.id, parent_id)
                    return OperationResult(False, "Cannot move a page into its own subtree.",
                                           {"node_id": node.id, "parent_id": parent_id})

            new_level = 0 if parent_id is None else self._level(parent_id) + 1
            if new_level + self._depth_below(node.id) > self._max_depth:
                logger.warning("Edit FAIL: commit depth page=%s level=%d", node.id, new_level)
                return OperationResult(False, "Move would exceed the maximum nesting depth.",
                                       {"node_id": node.id, "max_depth": self._max_depth})

            old_parent = node.parent_id
            node.parent_id = parent_id
            node.section_id = mutation.section_id if parent_id is None else None
            node.order = -1  # excluded from the renumbering below until inserted

            self._renumber(self._siblings(old_parent, exclude=node.id))
            remaining = self._siblings(parent_id, exclude=node.id)
            index = min(max(mutation.order, 0), len(remaining))
            remaining.insert(index, node)
            self._renumber(remaining)

        logger.info("Edit OK: commit page=%s parent=%s index=%d", node.id, parent_id, index)
        return OperationResult(True, "Moved page.",
                               {"node_id": node.id, "parent_id": parent_id, "order": node.order})

    # ------------------------------------------------------------------
    # Page creation / deletion (stand-ins for the external flows)
    # ------------------------------------------------------------------
    def add_page(
        self,
        title: str,
        parent_id: Optional[str] = None,
        section_id: Optional[str] = None,
        *,
        page_id: Optional[str] = None,
        icon: Optional[str] = None,
        slug: Optional[str] = None,
    ) -> OperationResult:
        """Append a new page under ``parent_id`` (root level when None)."""
        with self._lock:
            if parent_id is not None and parent_id not in self._records:
                return OperationResult(False, "Parent page not found.", {"parent_id": parent_id})
            if parent_id is not None and self._level(parent_id) + 1 > self._max_depth:
                return OperationResult(False, "Parent is already at the maximum nesting depth.",
                                       {"parent_id": parent_id})
            new_id = page_id or self._next_id()
            if new_id in self._records:
                return OperationResult(False, f"Page id '{new_id}' already exists.", {"node_id": new_id})
            siblings = self._siblings(parent_id)
            node = PageNode(
                id=new_id,
                title=title,
                icon=icon,
                slug=slug,
                parent_id=parent_id,
                order=len(siblings),
                section_id=section_id if parent_id is None else None,
            )
            self._records[new_id] = node
        logger.info("Edit OK: add_page page=%s parent=%s", new_id, parent_id)
        return OperationResult(True, "Page created.", {"node_id": new_id})

    def delete_page(self, node_id: str) -> OperationResult:
        """Remove a page; its children move up to the deleted page's parent."""
        with self._lock:
            node = self._records.pop(node_id, None)
            if node is None:
                return OperationResult(False, f"Page not found for id '{node_id}'.", {"node_id": node_id})
            orphans = self._siblings(node_id)
            remaining = self._siblings(node.parent_id)
            for child in orphans:
                child.parent_id = node.parent_id
                child.section_id = node.section_id if node.is_root else None
            self._renumber(remaining + orphans)
        logger.info("Edit OK: delete_page page=%s promoted=%d", node_id, len(orphans))
        return OperationResult(True, "Page deleted.", {"node_id": node_id, "promoted": len(orphans)})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _next_id(self) -> str:
        while True:
            candidate = f"page-{next(self._ids)}"
            if candidate not in self._records:
                return candidate

    def _siblings(self, parent_id: Optional[str], exclude: Optional[str] = None) -> List[PageNode]:
        nodes = [n for n in self._records.values() if n.parent_id == parent_id and n.id != exclude]
        nodes.sort(key=lambda n: (n.order, n.id))
        return nodes

    @staticmethod
    def _renumber(nodes: List[PageNode]) -> None:
        for index, n in enumerate(nodes):
            n.order = index

    def _normalise_all(self) -> None:
        parents = {n.parent_id for n in self._records.values()}
        for parent_id in parents:
            self._renumber(self._siblings(parent_id))
        for n in self._records.values():
            if n.parent_id is not None:
                n.section_id = None

    def _is_ancestor(self, ancestor_id: str, node_id: str) -> bool:
        cur = self._records.get(node_id)
        while cur is not None and cur.parent_id is not None:
            if cur.parent_id == ancestor_id:
                return True
            cur = self._records.get(cur.parent_id)
        return False

    def _level(self, node_id: str) -> int:
        level = 0
        cur = self._records[node_id]
        while cur.parent_id is not None:
            level += 1
            cur = self._records[cur.parent_id]
        return level

    def _depth_below(self, node_id: str) -> int:
        children = [n.id for n in self._records.values() if n.parent_id == node_id]
        if not children:
            return 0
        return 1 + max(self._depth_below(c) for c in children)
