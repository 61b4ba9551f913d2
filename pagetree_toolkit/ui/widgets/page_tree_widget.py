from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Any, Callable, List, Optional, Set, Tuple

from pagetree_toolkit.core.models import PageTree, Section
from pagetree_toolkit.core.services.section_service import group_by_section

_ROOT_ZONE_TEXT = "Drop here to move to top level"
_SECTION_PREFIX = "section:"
_PAGE_PREFIX = "page:"
_DRAG_THRESHOLD = 4

# Indicator tags per drop zone region value
_REGION_TAGS = {
    "row-above-line": "drop_above",
    "row-below-line": "drop_below",
    "row-container": "drop_inside",
}
_INDICATOR_TAGS = ("dragging", "drop_above", "drop_below", "drop_inside", "drop_section")


class PageTreeWidget(ttk.Frame):
    """Tkinter widget presenting the page tree grouped by sections.

    The widget turns raw pointer events into drag callbacks and draws drop
    indicators from a render state. It holds no drag decisions of its own and
    never talks to a controller directly.

    Callbacks:
        - on_drag_start(page_id) -> bool: pointer moved past the drag threshold
          while pressed on a page row. Return False to refuse the drag.
        - on_drag_over_row(page_id, offset, row_height): pointer over a page row;
          ``offset`` is measured from the row's top edge.
        - on_drag_over_section(section_id): pointer over a section header.
        - on_drag_over_root(): pointer over the top-level drop zone.
        - on_drag_leave(): pointer over no drop site.
        - on_drop(): button released during a drag.
        - on_cancel(): Escape pressed during a drag.
        - on_selection_changed(page_id | None, section_id | None).

    Notes
    -----
    Tree item ids are ``page:<id>`` and ``section:<id>``; the unsectioned group
    has no header row. Expansion state is preserved across repopulation.
    """

    def __init__(
        self,
        master: "tk.Widget",
        *,
        on_drag_start: Optional[Callable[[str], bool]] = None,
        on_drag_over_row: Optional[Callable[[str, float, float], Any]] = None,
        on_drag_over_section: Optional[Callable[[str], Any]] = None,
        on_drag_over_root: Optional[Callable[[], Any]] = None,
        on_drag_leave: Optional[Callable[[], None]] = None,
        on_drop: Optional[Callable[[], Any]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        on_selection_changed: Optional[Callable[[Optional[str], Optional[str]], None]] = None,
    ) -> None:
        super().__init__(master)
        self._on_drag_start = on_drag_start
        self._on_drag_over_row = on_drag_over_row
        self._on_drag_over_section = on_drag_over_section
        self._on_drag_over_root = on_drag_over_root
        self._on_drag_leave = on_drag_leave
        self._on_drop = on_drop
        self._on_cancel = on_cancel
        self._on_selection_changed = on_selection_changed

        self._root_zone = ttk.Label(self, text=_ROOT_ZONE_TEXT, anchor="center", padding=(6, 4))
        self._root_zone.grid(row=0, column=0, columnspan=2, sticky="ew")

        self._tree = ttk.Treeview(self, show="tree", selectmode="browse", height=14)
        self._vsb = ttk.Scrollbar(self, orient="vertical", command=self._tree.yview)
        self._tree.configure(yscrollcommand=self._vsb.set)
        self._tree.grid(row=1, column=0, sticky="nsew")
        self._vsb.grid(row=1, column=1, sticky="ns")
        self.columnconfigure(0, weight=1)
        self.rowconfigure(1, weight=1)

        self._tree.tag_configure("section_header", font=("TkDefaultFont", 9, "bold"))
        self._tree.tag_configure("dragging", foreground="#9E9E9E")
        self._tree.tag_configure("drop_above", background="#E3F2FD")
        self._tree.tag_configure("drop_below", background="#E8EAF6")
        self._tree.tag_configure("drop_inside", background="#BBDEFB")
        self._tree.tag_configure("drop_section", background="#E3F2FD")

        self._press: Optional[Tuple[str, int, int]] = None
        self._dragging = False
        self._indicator_items: Set[str] = set()
        self._indicator_text = tk.StringVar(value="")
        self._indicator = ttk.Label(self, textvariable=self._indicator_text, foreground="#0B6BD3")
        self._indicator.grid(row=2, column=0, columnspan=2, sticky="w")

        self._tree.bind("<ButtonPress-1>", self._on_press_event, add="+")
        self._tree.bind("<B1-Motion>", self._on_motion_event, add="+")
        self._tree.bind("<ButtonRelease-1>", self._on_release_event, add="+")
        self._tree.bind("<Escape>", self._on_escape_event, add="+")
        self._tree.bind("<<TreeviewSelect>>", self._on_select_event, add="+")

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------
    def populate(self, tree: PageTree, sections: List[Section]) -> None:
        """Rebuild rows from a snapshot, keeping expanded items open."""
        opened = {iid for iid in self._all_items() if self._is_open(iid)}
        first_build = not self._tree.get_children("")
        self._tree.delete(*self._tree.get_children(""))
        self._indicator_items.clear()

        for group in group_by_section(tree, sections):
            parent_iid = ""
            if group.section is not None:
                parent_iid = f"{_SECTION_PREFIX}{group.section.id}"
                label = group.section.name if group.pages else f"{group.section.name} (no pages)"
                self._tree.insert("", "end", iid=parent_iid, text=label, open=True, tags=("section_header",))
            for page in group.pages:
                self._insert_page(parent_iid, page, opened, first_build)

    def _insert_page(self, parent_iid: str, page, opened: Set[str], expand_all: bool) -> None:
        iid = f"{_PAGE_PREFIX}{page.id}"
        text = f"{page.icon} {page.title}" if page.icon else page.title
        self._tree.insert(parent_iid, "end", iid=iid, text=text, open=expand_all or iid in opened)
        for child in page.children:
            self._insert_page(iid, child, opened, expand_all)

    def _is_open(self, iid: str) -> bool:
        return bool(self._tree.tk.getboolean(self._tree.item(iid, "open")))

    def _all_items(self) -> List[str]:
        out: List[str] = []
        stack = list(self._tree.get_children(""))
        while stack:
            iid = stack.pop()
            out.append(iid)
            stack.extend(self._tree.get_children(iid))
        return out

    # ------------------------------------------------------------------
    # Lookup helpers
    # ------------------------------------------------------------------
    def find_item(self, page_id: str) -> Optional[str]:
        iid = f"{_PAGE_PREFIX}{page_id}"
        return iid if self._tree.exists(iid) else None

    def find_section_item(self, section_id: str) -> Optional[str]:
        iid = f"{_SECTION_PREFIX}{section_id}"
        return iid if self._tree.exists(iid) else None

    @staticmethod
    def _split_iid(iid: str) -> Tuple[Optional[str], Optional[str]]:
        """Return ``(page_id, section_id)`` for a tree item id."""
        if iid.startswith(_PAGE_PREFIX):
            return iid[len(_PAGE_PREFIX):], None
        if iid.startswith(_SECTION_PREFIX):
            return None, iid[len(_SECTION_PREFIX):]
        return None, None

    def get_selected(self) -> Tuple[Optional[str], Optional[str]]:
        sel = self._tree.selection()
        return self._split_iid(sel[0]) if sel else (None, None)

    def expand_page(self, page_id: str) -> None:
        """Open a page row and scroll it into view (ancestors are opened too)."""
        iid = self.find_item(page_id)
        if iid is None:
            return
        self._tree.item(iid, open=True)
        self._tree.see(iid)

    # ------------------------------------------------------------------
    # Pointer handling (coordinates are tree-relative)
    # ------------------------------------------------------------------
    def handle_press(self, x: int, y: int) -> None:
        iid = self._tree.identify_row(y)
        page_id, _section = self._split_iid(iid) if iid else (None, None)
        self._press = (page_id, x, y) if page_id else None
        self._dragging = False

    def handle_motion(self, x: int, y: int, over_root_zone: bool = False) -> None:
        if self._press is None:
            return
        page_id, px, py = self._press
        if not self._dragging:
            if abs(x - px) < _DRAG_THRESHOLD and abs(y - py) < _DRAG_THRESHOLD:
                return
            started = self._on_drag_start(page_id) if self._on_drag_start else False
            if not started:
                self._press = None
                return
            self._dragging = True

        if over_root_zone:
            if self._on_drag_over_root:
                self._on_drag_over_root()
            return

        iid = self._tree.identify_row(y)
        row_page, row_section = self._split_iid(iid) if iid else (None, None)
        if row_page is not None:
            bbox = self._tree.bbox(iid)
            if bbox and self._on_drag_over_row:
                _bx, by, _bw, bh = bbox
                self._on_drag_over_row(row_page, float(y - by), float(bh))
                return
        elif row_section is not None and self._on_drag_over_section:
            self._on_drag_over_section(row_section)
            return
        if self._on_drag_leave:
            self._on_drag_leave()

    def handle_release(self) -> None:
        was_dragging = self.is_dragging
        self._press = None
        self._dragging = False
        if was_dragging and self._on_drop:
            self._on_drop()

    def cancel_drag(self) -> None:
        was_dragging = self.is_dragging
        self._press = None
        self._dragging = False
        if was_dragging and self._on_cancel:
            self._on_cancel()

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def apply_render_state(self, state) -> None:
        """Draw indicators for a render state (dragged row, target row/section, root zone)."""
        for iid in list(self._indicator_items):
            if self._tree.exists(iid):
                tags = [t for t in self.item_tags(iid) if t not in _INDICATOR_TAGS]
                self._tree.item(iid, tags=tags)
        self._indicator_items.clear()

        if state.dragged_id is not None:
            self._add_tag(self.find_item(state.dragged_id), "dragging")

        region = state.region.value if state.region is not None else None
        text = ""
        if state.target_id is not None and region in _REGION_TAGS:
            target_iid = self.find_item(state.target_id)
            self._add_tag(target_iid, _REGION_TAGS[region])
            title = self._tree.item(target_iid, "text") if target_iid else ""
            text = f"{state.intent.value.capitalize()} '{title.strip()}'"
        elif state.section_id is not None:
            self._add_tag(self.find_section_item(state.section_id), "drop_section")
            text = "Move to section"
        elif region == "root-zone":
            text = "Move to top level"

        self._root_zone.configure(relief="solid" if region == "root-zone" else "flat")
        self._indicator_text.set(text)

    def _add_tag(self, iid: Optional[str], tag: str) -> None:
        if not iid:
            return
        tags = list(self.item_tags(iid))
        if tag not in tags:
            tags.append(tag)
        self._tree.item(iid, tags=tags)
        self._indicator_items.add(iid)

    def item_tags(self, iid: str) -> Tuple[str, ...]:
        return tuple(self._tree.tk.splitlist(self._tree.item(iid, "tags")))

    @property
    def indicator_text(self) -> str:
        return self._indicator_text.get()

    # ------------------------------------------------------------------
    # Tk event adapters
    # ------------------------------------------------------------------
    def _on_press_event(self, event: tk.Event) -> None:
        self._tree.focus_set()
        self.handle_press(event.x, event.y)

    def _on_motion_event(self, event: tk.Event) -> None:
        under = self.winfo_containing(event.x_root, event.y_root)
        self.handle_motion(event.x, event.y, over_root_zone=under is self._root_zone)

    def _on_release_event(self, _event: tk.Event) -> None:
        self.handle_release()

    def _on_escape_event(self, _event: tk.Event) -> None:
        self.cancel_drag()

    def _on_select_event(self, _event: tk.Event) -> None:
        if self._on_selection_changed is None:
            return
        page_id, section_id = self.get_selected()
        self._on_selection_changed(page_id, section_id)
