"""PageTree Toolkit: drag-and-drop reordering for a hierarchical page tree.

The GUI-free core lives in :mod:`pagetree_toolkit.core`; the Tk front-end in
:mod:`pagetree_toolkit.ui` and :mod:`pagetree_toolkit.app`.
"""

from pagetree_toolkit.core.models import PageMutation, PageNode, PageTree, Section

__all__ = ["PageMutation", "PageNode", "PageTree", "Section"]

__version__ = "1.0.0"
