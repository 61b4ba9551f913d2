from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

__all__ = ["OperationResult"]


@dataclass(frozen=True)
class OperationResult:
    """Result of a page tree operation.

    Attributes
    ----------
    success
        Whether the operation completed successfully.
    message
        Human-readable summary suitable for logs or UI display.
    details
        Optional structured details for diagnostics or caller logic.
    """
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None
