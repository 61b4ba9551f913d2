# -*- coding: utf-8 -*-
"""Tk-based GUI front-end for PageTree Toolkit.

Exposes the :class:`PageTreeApp` widget, which is instantiated by ``run.py``.
It wires the page tree widget to a :class:`DragSession`, picks the persistence
gateway from configuration and shows transient commit notices.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import tkinter as tk
from tkinter import messagebox, simpledialog, ttk

from pagetree_toolkit.config import PageTreeSettings, load_settings
from pagetree_toolkit.core.models import PageNode, PageTree, Section
from pagetree_toolkit.core.services import (
    DropZoneClassifier,
    HttpPageGateway,
    InMemoryPageStore,
    PersistenceGateway,
    SectionService,
)
from pagetree_toolkit.ui.controllers.drag_session import CommitNotice, DragSession, RenderState
from pagetree_toolkit.ui.scheduling import ThreadedDispatcher, TkScheduler
from pagetree_toolkit.ui.widgets.page_tree_widget import PageTreeWidget

logger = logging.getLogger(__name__)

__all__ = ["PageTreeApp", "demo_store"]

_NOTICE_CLEAR_MS = 4000


def demo_store(max_depth: int = 2) -> InMemoryPageStore:
    """Small knowledge base used when no gateway URL is configured."""
    pages = [
        PageNode("welcome", "Welcome", icon="👋", order=0, section_id="start"),
        PageNode("install", "Installation", order=1, section_id="start"),
        PageNode("linux", "Linux", parent_id="install", order=0),
        PageNode("windows", "Windows", parent_id="install", order=1),
        PageNode("guides", "Guides", icon="📘", order=2, section_id="guides"),
        PageNode("editing", "Editing pages", parent_id="guides", order=0),
        PageNode("shortcuts", "Shortcuts", parent_id="editing", order=0),
        PageNode("publishing", "Publishing", parent_id="guides", order=1),
        PageNode("faq", "FAQ", order=3),
        PageNode("changelog", "Changelog", order=4),
    ]
    return InMemoryPageStore(pages, max_depth=max_depth)


class PageTreeApp:
    """Main application widget wrapping the page tree editor."""

    def __init__(
        self,
        root: tk.Tk,
        settings: Optional[PageTreeSettings] = None,
        gateway: Optional[PersistenceGateway] = None,
    ) -> None:
        self.root = root
        self.settings = settings or load_settings()
        self.gateway = gateway or self._create_gateway()
        self.sections = SectionService(self._initial_sections())
        self._notice_job: Optional[str] = None

        scheduler = TkScheduler(root)
        self.session = DragSession(
            PageTree(),
            self.gateway,
            classifier=DropZoneClassifier.from_settings(self.settings),
            sections=self.sections,
            render_scheduler=scheduler,
            commit_dispatcher=ThreadedDispatcher(scheduler),
        )

        self._build_ui()
        self.session.add_render_listener(self._on_render)
        self.session.add_notice_listener(self._on_notice)
        self.session.add_tree_listener(lambda _tree: self._refresh_view())

        self.refresh()

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def _create_gateway(self) -> PersistenceGateway:
        gw = self.settings.gateway
        if gw.enabled:
            logger.info("Using REST gateway at %s", gw.base_url)
            return HttpPageGateway.from_settings(gw)
        logger.info("No gateway URL configured; using the in-memory demo store")
        return demo_store(self.settings.max_depth)

    def _initial_sections(self):
        if isinstance(self.gateway, InMemoryPageStore):
            return [Section("start", "Getting started"), Section("guides", "Guides")]
        return []

    def _build_ui(self) -> None:
        container = ttk.Frame(self.root, padding=10)
        container.pack(fill="both", expand=True)

        toolbar = ttk.Frame(container)
        toolbar.pack(fill="x", pady=(0, 6))
        ttk.Button(toolbar, text="Add section", command=self.add_section).pack(side="left")
        ttk.Button(toolbar, text="Rename section", command=self.rename_section).pack(side="left", padx=4)
        ttk.Button(toolbar, text="Remove section", command=self.remove_section).pack(side="left")
        ttk.Button(toolbar, text="Refresh", command=self.refresh).pack(side="right")

        self.tree_widget = PageTreeWidget(
            container,
            on_drag_start=self.session.start_drag,
            on_drag_over_row=self.session.drag_over,
            on_drag_over_section=self.session.drag_over_section,
            on_drag_over_root=self.session.drag_over_root,
            on_drag_leave=self.session.drag_leave,
            on_drop=self.session.drop,
            on_cancel=self.session.cancel,
            on_selection_changed=self._on_selection_changed,
        )
        self.tree_widget.pack(fill="both", expand=True)

        self.status_label = ttk.Label(container, text="", font=("Segoe UI", 10))
        self.status_label.pack(fill="x", pady=(6, 0))
        self._selected_section: Optional[str] = None

    # ------------------------------------------------------------------
    # Tree loading
    # ------------------------------------------------------------------
    def refresh(self) -> None:
        """Fetch a fresh snapshot on a worker thread."""
        self.status_label.config(text="Loading pages...")
        threading.Thread(target=self._run_fetch_thread, daemon=True).start()

    def _run_fetch_thread(self) -> None:
        try:
            tree = self.gateway.fetch_tree()
        except Exception as exc:
            logger.error("Tree fetch failed: %s", exc, exc_info=True)
            self.root.after(0, self._on_fetch_failure, exc)
            return
        self.root.after(0, self._on_fetch_success, tree)

    def _on_fetch_success(self, tree: PageTree) -> None:
        self.session.replace_tree(tree)
        self.status_label.config(text="")
        problems = tree.validate(self.settings.max_depth)
        for problem in problems:
            logger.warning("Snapshot check: %s", problem)

    def _on_fetch_failure(self, error: Exception) -> None:
        self.status_label.config(text="Could not load pages.")
        messagebox.showerror("Load Error", f"Failed to load the page tree:\n\n{error}")

    def _refresh_view(self) -> None:
        self.tree_widget.populate(self.session.tree, self.sections.list_sections())

    # ------------------------------------------------------------------
    # Session feedback
    # ------------------------------------------------------------------
    def _on_render(self, state: RenderState) -> None:
        self.tree_widget.apply_render_state(state)

    def _on_notice(self, notice: CommitNotice) -> None:
        if notice.success and notice.mutation.parent_id is not None:
            # Show the moved page under its new parent
            self.tree_widget.expand_page(notice.mutation.parent_id)
        self._show_status(notice.message if notice.success else f"Move failed: {notice.message}")

    def _show_status(self, text: str) -> None:
        self.status_label.config(text=text)
        if self._notice_job is not None:
            self.root.after_cancel(self._notice_job)
        self._notice_job = self.root.after(_NOTICE_CLEAR_MS, self._clear_status)

    def _clear_status(self) -> None:
        self._notice_job = None
        self.status_label.config(text="")

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------
    def _on_selection_changed(self, _page_id: Optional[str], section_id: Optional[str]) -> None:
        self._selected_section = section_id

    def add_section(self) -> None:
        name = simpledialog.askstring("Add section", "Section name:", parent=self.root)
        if name is None:
            return
        result = self.sections.add_section(name)
        self._after_section_edit(result)

    def rename_section(self) -> None:
        current = self.sections.get(self._selected_section)
        if current is None:
            messagebox.showinfo("Rename section", "Select a section header first.")
            return
        name = simpledialog.askstring("Rename section", "New name:", initialvalue=current.name, parent=self.root)
        if name is None:
            return
        self._after_section_edit(self.sections.rename_section(current.id, name))

    def remove_section(self) -> None:
        current = self.sections.get(self._selected_section)
        if current is None:
            messagebox.showinfo("Remove section", "Select a section header first.")
            return
        if not messagebox.askyesno("Remove section", f"Remove section '{current.name}'?"):
            return
        self._selected_section = None
        self._after_section_edit(self.sections.remove_section(current.id))

    def _after_section_edit(self, result) -> None:
        if not result.success:
            messagebox.showwarning("Sections", result.message)
            return
        self._refresh_view()
        self._show_status(result.message)
