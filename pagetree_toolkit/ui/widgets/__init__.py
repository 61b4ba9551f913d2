"""Tk widgets."""

from .page_tree_widget import PageTreeWidget

__all__ = ["PageTreeWidget"]
