from __future__ import annotations

"""Local section registry and root-level grouping.

Sections are flat labels for top-level pages. They live only in the editing
session and are not validated against the tree: removing a section leaves
pages pointing at it, and :func:`group_by_section` simply shows those pages
as unsectioned.
"""

from dataclasses import dataclass, field
import logging
from typing import Dict, List, Optional
import uuid

from pagetree_toolkit.core.models import PageNode, PageTree, Section
from pagetree_toolkit.core.services.results import OperationResult

__all__ = ["SectionGroup", "SectionService", "group_by_section"]

logger = logging.getLogger(__name__)


@dataclass
class SectionGroup:
    """Root pages shown under one section header (``section`` None = unsectioned)."""
    section: Optional[Section]
    pages: List[PageNode] = field(default_factory=list)


class SectionService:
    """Add, rename and remove sections, keeping insertion order."""

    def __init__(self, sections: Optional[List[Section]] = None) -> None:
        self._sections: Dict[str, Section] = {}
        for s in sections or []:
            self._sections[s.id] = s

    def list_sections(self) -> List[Section]:
        return list(self._sections.values())

    def get(self, section_id: Optional[str]) -> Optional[Section]:
        if section_id is None:
            return None
        return self._sections.get(section_id)

    def __contains__(self, section_id: object) -> bool:
        return section_id in self._sections

    def add_section(self, name: str) -> OperationResult:
        clean = (name or "").strip()
        if not clean:
            return OperationResult(False, "Section name is required.")
        section = Section(id=uuid.uuid4().hex[:12], name=clean)
        self._sections[section.id] = section
        logger.info("Edit OK: add_section id=%s name=%s", section.id, clean)
        return OperationResult(True, "Section added.", {"section": section})

    def rename_section(self, section_id: str, name: str) -> OperationResult:
        clean = (name or "").strip()
        current = self._sections.get(section_id)
        if current is None:
            return OperationResult(False, f"Section not found for id '{section_id}'.", {"section_id": section_id})
        if not clean:
            return OperationResult(False, "Section name is required.", {"section_id": section_id})
        if clean == current.name:
            return OperationResult(True, "Section name unchanged.", {"section": current})
        renamed = Section(id=section_id, name=clean)
        self._sections[section_id] = renamed
        logger.info("Edit OK: rename_section id=%s", section_id)
        return OperationResult(True, "Section renamed.", {"section": renamed})

    def remove_section(self, section_id: str) -> OperationResult:
        removed = self._sections.pop(section_id, None)
        if removed is None:
            return OperationResult(False, f"Section not found for id '{section_id}'.", {"section_id": section_id})
        logger.info("Edit OK: remove_section id=%s", section_id)
        return OperationResult(True, "Section removed. Its pages are now unsectioned.", {"section": removed})


def group_by_section(tree: PageTree, sections: List[Section]) -> List[SectionGroup]:
    """Group root pages for display.

    The unsectioned group comes first (always present), followed by one group
    per section in the given order, empty groups included. Pages whose
    section is unknown fall back to unsectioned.
    """
    unsectioned = SectionGroup(section=None)
    groups: Dict[str, SectionGroup] = {s.id: SectionGroup(section=s) for s in sections}
    for page in tree.roots:
        group = groups.get(page.section_id) if page.section_id is not None else None
        (group or unsectioned).pages.append(page)
    return [unsectioned] + [groups[s.id] for s in sections]
