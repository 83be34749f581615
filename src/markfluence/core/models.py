"""Pydantic models for Confluence REST payloads.

- ``RemoteDocument``: a page as returned by ``/content`` endpoints.
- ``RemoteAttachment``: an attachment as returned by ``/child/attachment``.

Both are frozen and built from raw JSON with ``from_api``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class RemoteDocument(BaseModel):
    """A Confluence page as fetched immediately before a sync decision.

    Attributes:
        id: Content id.
        title: Page title.
        version: Current version number.
        body: Current storage format markup ("" when not expanded).
        space_key: Key of the space the page lives in, if expanded.
        ancestor_ids: Ancestor page ids, root first, if expanded.
        webui: Relative web UI link (``/spaces/KEY/pages/ID/Title``).
    """

    id: str
    title: str
    version: int
    body: str = ""
    space_key: str | None = None
    ancestor_ids: list[str] = []
    webui: str = ""

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> RemoteDocument:
        body = (payload.get("body") or {}).get("storage") or {}
        space = payload.get("space") or {}
        return cls(
            id=str(payload["id"]),
            title=payload.get("title", ""),
            version=int((payload.get("version") or {}).get("number", 0)),
            body=body.get("value", "") or "",
            space_key=space.get("key"),
            ancestor_ids=[
                str(a["id"]) for a in payload.get("ancestors") or [] if "id" in a
            ],
            webui=(payload.get("_links") or {}).get("webui", ""),
        )

    def web_url(self, domain: str) -> str:
        """Return the page's browser URL on *domain*."""
        return f"https://{domain}/wiki{self.webui}"


class RemoteAttachment(BaseModel):
    """An attachment on a Confluence page.

    Attributes:
        id: Attachment content id (stable across data updates).
        title: Attachment filename.
        media_type: MIME type reported by Confluence.
    """

    id: str
    title: str
    media_type: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> RemoteAttachment:
        return cls(
            id=str(payload["id"]),
            title=payload.get("title", ""),
            media_type=(payload.get("metadata") or {}).get("mediaType"),
        )
