"""
REST persistence gateway for the knowledge-base page tree.

Talks to the page API of the support application:

- ``GET  {base}/api/knowledge-base/pages``               full tree refetch
- ``PUT  {base}/api/knowledge-base/pages/{id}/reorder``  commit a placement

The reorder body is ``{"newOrder": int, "newParentPage": id|null,
"sectionId": id|null}``.
"""

import logging
from typing import Optional

import requests

from pagetree_toolkit.core.exceptions import GatewayError, PageTreeError
from pagetree_toolkit.core.models import PageMutation, PageTree
from pagetree_toolkit.core.services.results import OperationResult

__all__ = ["HttpPageGateway"]

logger = logging.getLogger(__name__)


class HttpPageGateway:
    """Commits mutations and fetches snapshots over HTTP."""

    PAGES_PATH = "/api/knowledge-base/pages"

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the gateway.

        Args:
            base_url: API root, e.g. ``https://support.example.com``
            token: Optional bearer token sent with every request
            timeout: Request timeout in seconds
            session: Optional pre-configured requests session
        """
        if not base_url:
            raise ValueError("base_url is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"

    @classmethod
    def from_settings(cls, gateway_settings) -> "HttpPageGateway":
        return cls(
            gateway_settings.base_url,
            token=gateway_settings.resolve_token(),
            timeout=gateway_settings.timeout_seconds,
        )

    def fetch_tree(self) -> PageTree:
        """
        Fetch the complete page tree.

        Returns:
            PageTree: snapshot built from the (nested or flat) page list

        Raises:
            GatewayError: on network errors, non-2xx responses or bad payloads
        """
        url = f"{self.base_url}{self.PAGES_PATH}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error("Fetch FAIL: status=%s url=%s", status, url)
            raise GatewayError(f"Failed to fetch page tree (HTTP {status})", status_code=status, cause=e)
        except requests.RequestException as e:
            logger.error("Fetch FAIL: network error url=%s error=%s", url, e)
            raise GatewayError(f"Network error while fetching page tree: {e}", cause=e)
        except ValueError as e:
            logger.error("Fetch FAIL: invalid JSON url=%s", url)
            raise GatewayError("Page tree response is not valid JSON", cause=e)

        if isinstance(payload, dict):
            payload = payload.get("pages", [])
        if not isinstance(payload, list):
            raise GatewayError("Unexpected page tree payload shape")

        try:
            tree = PageTree.from_records(payload)
        except PageTreeError as e:
            logger.error("Fetch FAIL: inconsistent page tree url=%s error=%s", url, e)
            raise GatewayError(f"Page tree response is inconsistent: {e}", cause=e)
        except (AttributeError, TypeError) as e:
            logger.error("Fetch FAIL: malformed page records url=%s error=%s", url, e)
            raise GatewayError("Page tree response contains malformed records", cause=e)
        logger.info("Fetch OK: pages=%d", len(tree))
        return tree

    def commit(self, mutation: PageMutation) -> OperationResult:
        """
        Send one placement change.

        Never raises for HTTP or network failures; they come back as a failed
        OperationResult carrying the server message when there is one.
        """
        url = f"{self.base_url}{self.PAGES_PATH}/{mutation.node_id}/reorder"
        logger.info("Edit: commit page=%s parent=%s order=%s section=%s",
                    mutation.node_id, mutation.parent_id, mutation.order, mutation.section_id)
        try:
            response = self.session.put(url, json=mutation.to_payload(), timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Edit FAIL: commit network page=%s error=%s", mutation.node_id, e)
            return OperationResult(False, "Failed to move page (network error).", {"error": str(e)})

        if response.status_code >= 400:
            message = self._server_message(response) or f"Failed to move page (HTTP {response.status_code})."
            logger.warning("Edit FAIL: commit page=%s status=%d", mutation.node_id, response.status_code)
            return OperationResult(False, message, {"status_code": response.status_code})

        logger.info("Edit OK: commit page=%s", mutation.node_id)
        return OperationResult(True, "Moved page.", {"node_id": mutation.node_id})

    @staticmethod
    def _server_message(response: requests.Response) -> Optional[str]:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
            return str(message) if message else None
        return None
