"""Confluence Cloud REST client (``/wiki/rest/api``).

Blocking, built on ``requests`` with one session per thread so calls can be
dispatched through ``asyncio.to_thread``.
"""

import logging
import threading
from typing import Any

import requests

from ..config import Config
from .models import RemoteAttachment, RemoteDocument

logger = logging.getLogger(__name__)

API_TOKEN_URL = "https://id.atlassian.com/manage-profile/security/api-tokens"


class ConfluenceApiError(Exception):
    """Raised when a Confluence REST call fails.

    Attributes:
        status_code: HTTP status, or 0 when no response was received.
        message: Error message from the response body (or transport error).
        reason: Optional machine-readable reason from the response body.
    """

    def __init__(
        self, status_code: int, message: str, reason: str | None = None
    ):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.reason = reason

    def help_text(self) -> str:
        """Return a human-actionable explanation keyed by status code."""
        match self.status_code:
            case 401:
                return (
                    "Authentication failed\n"
                    "  → Set CONFLUENCE_EMAIL and CONFLUENCE_API_TOKEN\n"
                    f"  → Generate token at {API_TOKEN_URL}"
                )
            case 403:
                return (
                    "Permission denied\n"
                    "  → Verify you have access to this space/page\n"
                    "  → Check if API token has required permissions"
                )
            case 404:
                return (
                    "Page not found\n"
                    "  → Check confluence-page-id in frontmatter\n"
                    "  → Verify the page exists and you have access"
                )
            case 409:
                return (
                    "Version conflict\n"
                    "  → The page was modified while syncing\n"
                    "  → Re-run to sync against the latest version"
                )
            case 0:
                return f"Could not reach Confluence: {self.message}"
            case _:
                return self.message

    def __repr__(self) -> str:
        return (
            f"ConfluenceApiError(status_code={self.status_code}, "
            f"message={self.message!r})"
        )


class ConfluenceClient:
    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.base_url = f"https://{config.domain}/wiki/rest/api"

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.auth = (self.config.email, self.config.api_token)
        session.headers.update({"Accept": "application/json"})
        return session

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            ConfluenceApiError: On a non-2xx response or a transport failure.
        """
        url = f"{self.base_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._get_session().request(
                method, url, timeout=(10, 60), **kwargs
            )
        except requests.RequestException as e:
            raise ConfluenceApiError(0, str(e)) from e

        if not response.ok:
            raise self._error_from_response(response)

        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_from_response(response: requests.Response) -> ConfluenceApiError:
        message = response.reason or f"HTTP {response.status_code}"
        reason = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            reason = body.get("reason")
            message = body.get("message") or reason or message
        return ConfluenceApiError(response.status_code, message, reason)

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def get_page(self, page_id: str) -> RemoteDocument:
        """
        Fetch a page by id, including its version and storage body.
        """
        data = self._request(
            "GET",
            f"/content/{page_id}",
            params={"expand": "version,body.storage,space,ancestors"},
        )
        return RemoteDocument.from_api(data)

    def get_page_by_title(
        self, space_key: str, title: str
    ) -> RemoteDocument | None:
        """
        Look up a page by exact title within a space.

        Returns:
            The first match, or None when the space has no such page.
        """
        data = self._request(
            "GET",
            "/content",
            params={
                "spaceKey": space_key,
                "title": title,
                "expand": "version,body.storage",
            },
        )
        results = data.get("results") or []
        if not results:
            return None
        return RemoteDocument.from_api(results[0])

    def create_page(
        self,
        space_key: str,
        title: str,
        markup: str,
        parent_id: str | None = None,
    ) -> RemoteDocument:
        """
        Create a page in *space_key*, optionally under *parent_id*.
        """
        body: dict[str, Any] = {
            "type": "page",
            "title": title,
            "space": {"key": space_key},
            "body": {
                "storage": {"value": markup, "representation": "storage"}
            },
        }
        if parent_id:
            body["ancestors"] = [{"id": parent_id}]

        data = self._request("POST", "/content", json=body)
        return RemoteDocument.from_api(data)

    def update_page(
        self, page_id: str, title: str, markup: str, base_version: int
    ) -> RemoteDocument:
        """
        Replace a page's title and body.

        Args:
            page_id: Page to update
            title: New title
            markup: New storage format body
            base_version: Version the change is based on; the request
                submits ``base_version + 1``

        Raises:
            ConfluenceApiError: 409 when *base_version* is no longer current.
        """
        body = {
            "type": "page",
            "title": title,
            "version": {"number": base_version + 1},
            "body": {
                "storage": {"value": markup, "representation": "storage"}
            },
        }
        data = self._request("PUT", f"/content/{page_id}", json=body)
        return RemoteDocument.from_api(data)

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def get_attachments(self, page_id: str) -> list[RemoteAttachment]:
        data = self._request("GET", f"/content/{page_id}/child/attachment")
        return [
            RemoteAttachment.from_api(item)
            for item in data.get("results") or []
        ]

    def upload_attachment(
        self, page_id: str, filename: str, data: bytes, content_type: str
    ) -> RemoteAttachment:
        """
        Upload a new attachment to a page.
        """
        return self._post_attachment(
            f"/content/{page_id}/child/attachment",
            filename,
            data,
            content_type,
        )

    def update_attachment(
        self,
        page_id: str,
        attachment_id: str,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> RemoteAttachment:
        """
        Upload new data for an existing attachment, keeping its id.
        """
        return self._post_attachment(
            f"/content/{page_id}/child/attachment/{attachment_id}/data",
            filename,
            data,
            content_type,
        )

    def _post_attachment(
        self, path: str, filename: str, data: bytes, content_type: str
    ) -> RemoteAttachment:
        result = self._request(
            "POST",
            path,
            files={"file": (filename, data, content_type)},
            headers={"X-Atlassian-Token": "nocheck"},
        )
        # Confluence returns either the attachment or a results wrapper
        if "results" in result:
            result = result["results"][0]
        return RemoteAttachment.from_api(result)
