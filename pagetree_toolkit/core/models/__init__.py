from __future__ import annotations

"""Shared data structures used across the PageTree Toolkit core.

This package exposes the page tree snapshot (:class:`PageTree`), its nodes and
the flat section labels. It is intentionally free of UI / I/O code so that the
contained objects can be reused in any context (unit-tests, CLI, GUI, etc.).

A :class:`PageTree` is a read-only snapshot: it is rebuilt wholesale from the
persistence gateway after every successful commit and never patched in place.
"""

from dataclasses import dataclass, field, replace
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Set, Tuple

from pagetree_toolkit.core.exceptions import TreeIntegrityError

from .drop import (
    APPEND_ORDER,
    DropIntent,
    DropTarget,
    DropZoneRegion,
    PageMutation,
    RootTarget,
    RowTarget,
    SectionTarget,
)

__all__ = [
    "APPEND_ORDER",
    "DropIntent",
    "DropTarget",
    "DropZoneRegion",
    "PageMutation",
    "PageNode",
    "PageTree",
    "RootTarget",
    "RowTarget",
    "Section",
    "SectionTarget",
]

logger = logging.getLogger(__name__)


@dataclass
class PageNode:
    """One entry of the content hierarchy.

    ``children`` is derived view data filled in by :class:`PageTree`; the
    canonical relation is each child's ``parent_id``.
    """
    id: str
    title: str = ""
    icon: Optional[str] = None
    slug: Optional[str] = None
    parent_id: Optional[str] = None
    order: int = 0
    section_id: Optional[str] = None
    children: List['PageNode'] = field(default_factory=list, repr=False, compare=False)

    def has_children(self) -> bool:
        """Return True if this page has sub-pages."""
        return len(self.children) > 0

    @property
    def is_root(self) -> bool:
        return self.parent_id is None


@dataclass(frozen=True)
class Section:
    """Flat grouping label for root-level pages (not part of the hierarchy)."""
    id: str
    name: str


def _sibling_key(node: PageNode) -> Tuple[int, str]:
    # Ties on order are broken by id so sibling sequencing stays deterministic
    return (node.order, node.id)


def _ref_id(value: Any) -> Optional[str]:
    """Normalise a reference field which may be an id or a populated record."""
    if value is None or value == "":
        return None
    if isinstance(value, Mapping):
        value = value.get("_id", value.get("id"))
        if value is None:
            return None
    return str(value)


class PageTree:
    """Immutable snapshot of the page hierarchy with an id-indexed lookup map.

    Parameters
    ----------
    nodes : Iterable[PageNode]
        Flat collection of pages. Nodes are copied; the caller's instances are
        never modified.

    Raises
    ------
    TreeIntegrityError
        On duplicate ids or when the parent relation contains a cycle.

    Notes
    -----
    Pages whose parent is missing from the snapshot are promoted to roots
    (with a warning) rather than dropped, so an inconsistent fetch still shows
    every page.
    """

    def __init__(self, nodes: Iterable[PageNode] = ()) -> None:
        self._by_id: Dict[str, PageNode] = {}
        for node in nodes:
            if node.id in self._by_id:
                raise TreeIntegrityError("Duplicate page id in snapshot.", node.id)
            self._by_id[node.id] = replace(node, children=[])

        for node in self._by_id.values():
            if node.parent_id is not None and node.parent_id not in self._by_id:
                logger.warning("Snapshot: page %s references missing parent %s; promoted to root",
                               node.id, node.parent_id)
                node.parent_id = None

        self._check_acyclic()

        self._roots: List[PageNode] = []
        for node in sorted(self._by_id.values(), key=_sibling_key):
            if node.is_root:
                self._roots.append(node)
            else:
                self._by_id[node.parent_id].children.append(node)

        self._levels: Dict[str, int] = {}
        for node, level in self.walk():
            self._levels[node.id] = level

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    @classmethod
    def from_records(cls, records: Sequence[Mapping[str, Any]]) -> "PageTree":
        """Build a snapshot from fetched page records.

        Accepts either a flat list or a nested list where each record carries
        its sub-pages under ``children``. Both the wire names (``_id``,
        ``parentPage``, ``sectionId``) and the Python names (``id``,
        ``parent_id``, ``section_id``) are understood.
        """
        nodes: List[PageNode] = []

        def visit(record: Mapping[str, Any], parent_hint: Optional[str]) -> None:
            node_id = _ref_id(record.get("_id", record.get("id")))
            if node_id is None:
                raise TreeIntegrityError(f"Page record without id: {dict(record)!r}")
            if "parentPage" in record:
                parent_id = _ref_id(record.get("parentPage"))
            elif "parent_id" in record:
                parent_id = _ref_id(record.get("parent_id"))
            else:
                parent_id = parent_hint
            section_id = _ref_id(record.get("sectionId", record.get("section_id")))
            try:
                order = int(record.get("order") or 0)
            except (TypeError, ValueError):
                order = 0
            nodes.append(PageNode(
                id=node_id,
                title=str(record.get("title") or ""),
                icon=record.get("icon"),
                slug=record.get("slug"),
                parent_id=parent_id,
                order=order,
                section_id=section_id,
            ))
            for child in record.get("children") or ():
                visit(child, node_id)

        for rec in records or ():
            visit(rec, None)
        return cls(nodes)

    def to_records(self) -> List[Dict[str, Any]]:
        """Return a flat, pre-ordered list of wire-format page records."""
        return [
            {
                "_id": node.id,
                "title": node.title,
                "icon": node.icon,
                "slug": node.slug,
                "parentPage": node.parent_id,
                "order": node.order,
                "sectionId": node.section_id,
            }
            for node, _level in self.walk()
        ]

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------
    def get(self, node_id: Optional[str]) -> Optional[PageNode]:
        if node_id is None:
            return None
        return self._by_id.get(node_id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[PageNode]:
        for node, _level in self.walk():
            yield node

    @property
    def roots(self) -> List[PageNode]:
        return list(self._roots)

    def children_of(self, parent_id: Optional[str]) -> List[PageNode]:
        """Ordered direct children of ``parent_id`` (roots when None)."""
        if parent_id is None:
            return list(self._roots)
        node = self._by_id.get(parent_id)
        return list(node.children) if node is not None else []

    def sibling_list(self, node_id: str) -> List[PageNode]:
        """Ordered children of the node's parent, the node itself included."""
        node = self._by_id.get(node_id)
        if node is None:
            return []
        return self.children_of(node.parent_id)

    def parent_of(self, node_id: str) -> Optional[PageNode]:
        node = self._by_id.get(node_id)
        if node is None or node.parent_id is None:
            return None
        return self._by_id.get(node.parent_id)

    def level_of(self, node_id: str) -> int:
        """Hierarchy level of the node (roots are level 0).

        Raises KeyError for unknown ids.
        """
        return self._levels[node_id]

    def max_order(self, parent_id: Optional[str]) -> Optional[int]:
        """Largest sibling order under ``parent_id``, or None if it has no children."""
        siblings = self.children_of(parent_id)
        if not siblings:
            return None
        return max(n.order for n in siblings)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def walk(self) -> Iterator[Tuple[PageNode, int]]:
        """Pre-order traversal yielding ``(node, level)`` pairs."""
        stack: List[Tuple[PageNode, int]] = [(n, 0) for n in reversed(self._roots)]
        while stack:
            node, level = stack.pop()
            yield node, level
            for child in reversed(node.children):
                stack.append((child, level + 1))

    def iter_subtree(self, node_id: str) -> Iterator[PageNode]:
        """Pre-order traversal of the subtree rooted at ``node_id`` (root included)."""
        root = self._by_id.get(node_id)
        if root is None:
            return
        stack = [root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def descendant_ids(self, node_id: str) -> Set[str]:
        """Ids of every node strictly below ``node_id``."""
        return {n.id for n in self.iter_subtree(node_id) if n.id != node_id}

    def is_descendant(self, ancestor_id: str, node_id: str) -> bool:
        """Return True if ``node_id`` lies strictly below ``ancestor_id``."""
        cur = self._by_id.get(node_id)
        while cur is not None and cur.parent_id is not None:
            if cur.parent_id == ancestor_id:
                return True
            cur = self._by_id.get(cur.parent_id)
        return False

    # ------------------------------------------------------------------
    # Integrity
    # ------------------------------------------------------------------
    def validate(self, max_depth: int = 2) -> List[str]:
        """Return human-readable consistency problems (empty when the tree is sound)."""
        problems: List[str] = []
        for node, level in self.walk():
            if level > max_depth:
                problems.append(f"depth: page {node.id} sits at level {level} (max {max_depth})")
            if not node.is_root and node.section_id is not None:
                problems.append(f"section: nested page {node.id} carries section {node.section_id}")
        parents: List[Optional[str]] = [None] + list(self._by_id)
        for parent_id in parents:
            orders = [n.order for n in self.children_of(parent_id)]
            if len(orders) != len(set(orders)):
                problems.append(f"order: duplicate sibling orders under {parent_id or 'root'}: {sorted(orders)}")
        return problems

    def _check_acyclic(self) -> None:
        cleared: Set[str] = set()
        for start in self._by_id:
            path: Set[str] = set()
            cur: Optional[str] = start
            while cur is not None and cur not in cleared:
                if cur in path:
                    raise TreeIntegrityError("Parent references form a cycle.", cur)
                path.add(cur)
                cur = self._by_id[cur].parent_id
            cleared.update(path)

    def __repr__(self) -> str:
        return f"PageTree(pages={len(self)}, roots={len(self._roots)})"
