from __future__ import annotations

"""Page tree exception classes.

Expected invalid actions (illegal drop targets, blank section names, failed
commits) are reported through ``OperationResult`` and never raise. The
exceptions below are reserved for inconsistent input that callers must not
silently continue with.
"""

from typing import Optional


class PageTreeError(Exception):
    """Base exception for all page tree errors."""

    def __init__(self, message: str, node_id: Optional[str] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.node_id = node_id
        self.cause = cause

    def __str__(self) -> str:
        if self.node_id:
            return f"[Page: {self.node_id}] {super().__str__()}"
        return super().__str__()


class TreeIntegrityError(PageTreeError):
    """Raised when fetched page records cannot form a valid tree.

    This includes duplicate ids and parent references that form a cycle.
    """
    pass


class StaleTargetError(PageTreeError):
    """Raised when a drop references a page missing from the current snapshot.

    Typically the page was deleted by another actor while the gesture was in
    progress. The drag session cancels instead of committing.
    """
    pass


class GatewayError(PageTreeError):
    """Raised when the persistence gateway cannot deliver a tree snapshot."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 cause: Optional[Exception] = None) -> None:
        super().__init__(message, None, cause)
        self.status_code = status_code
