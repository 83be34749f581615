"""Shared pytest fixtures for markfluence tests."""

from __future__ import annotations

import pytest

from markfluence.config import Config
from markfluence.converters.context import ConversionContext
from markfluence.core.client import ConfluenceApiError
from markfluence.core.models import RemoteAttachment, RemoteDocument

_ENV_VARS = (
    "CONFLUENCE_DOMAIN",
    "CONFLUENCE_SPACE",
    "CONFLUENCE_EMAIL",
    "CONFLUENCE_API_TOKEN",
    "CONFLUENCE_PARENT_PAGE_ID",
    "MARKFLUENCE_MERMAID",
    "MARKFLUENCE_VERBOSE",
    "MARKFLUENCE_CONFIG",
    "MERMAID_CLI",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep the developer's Confluence settings out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mock_config():
    """Create a Config instance for testing."""
    return Config(
        domain="acme.atlassian.net",
        space="DOCS",
        email="dev@example.com",
        api_token="secret-token",
    )


@pytest.fixture
def context(mock_config):
    """Conversion context with diagrams enabled."""
    return ConversionContext(config=mock_config)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeConfluenceClient:
    """In-memory ConfluenceClient replacement.

    Pages live in a dict keyed by id. Every call is recorded in ``calls`` as
    ``(method, args)``; an entry in ``errors`` makes that method raise.
    """

    def __init__(
        self,
        pages: list[RemoteDocument] | None = None,
        attachments: dict[str, list[RemoteAttachment]] | None = None,
    ) -> None:
        self.pages: dict[str, RemoteDocument] = {p.id: p for p in pages or []}
        self.attachments: dict[str, list[RemoteAttachment]] = attachments or {}
        self.calls: list[tuple[str, tuple]] = []
        self.errors: dict[str, ConfluenceApiError] = {}
        self._next_id = 1000

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, args))
        if method in self.errors:
            raise self.errors[method]

    def called(self, method: str) -> list[tuple]:
        return [args for name, args in self.calls if name == method]

    def get_page(self, page_id: str) -> RemoteDocument:
        self._record("get_page", page_id)
        if page_id not in self.pages:
            raise ConfluenceApiError(404, "No content found with id")
        return self.pages[page_id]

    def get_page_by_title(
        self, space_key: str, title: str
    ) -> RemoteDocument | None:
        self._record("get_page_by_title", space_key, title)
        for page in self.pages.values():
            if page.title == title and page.space_key in (None, space_key):
                return page
        return None

    def create_page(
        self,
        space_key: str,
        title: str,
        markup: str,
        parent_id: str | None = None,
    ) -> RemoteDocument:
        self._record("create_page", space_key, title, markup, parent_id)
        self._next_id += 1
        page_id = str(self._next_id)
        page = RemoteDocument(
            id=page_id,
            title=title,
            version=1,
            body=markup,
            space_key=space_key,
            ancestor_ids=[parent_id] if parent_id else [],
            webui=f"/spaces/{space_key}/pages/{page_id}",
        )
        self.pages[page_id] = page
        return page

    def update_page(
        self, page_id: str, title: str, markup: str, base_version: int
    ) -> RemoteDocument:
        self._record("update_page", page_id, title, markup, base_version)
        current = self.pages[page_id]
        if current.version != base_version:
            raise ConfluenceApiError(409, "Version must be incremented")
        page = current.model_copy(
            update={"title": title, "body": markup, "version": base_version + 1}
        )
        self.pages[page_id] = page
        return page

    def get_attachments(self, page_id: str) -> list[RemoteAttachment]:
        self._record("get_attachments", page_id)
        return list(self.attachments.get(page_id, []))

    def upload_attachment(
        self, page_id: str, filename: str, data: bytes, content_type: str
    ) -> RemoteAttachment:
        self._record("upload_attachment", page_id, filename, data, content_type)
        attachment = RemoteAttachment(
            id=f"att{len(self.calls)}", title=filename, media_type=content_type
        )
        self.attachments.setdefault(page_id, []).append(attachment)
        return attachment

    def update_attachment(
        self,
        page_id: str,
        attachment_id: str,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> RemoteAttachment:
        self._record(
            "update_attachment",
            page_id,
            attachment_id,
            filename,
            data,
            content_type,
        )
        return RemoteAttachment(
            id=attachment_id, title=filename, media_type=content_type
        )


class FakeDiagramBackend:
    """Diagram renderer that returns predictable bytes without a browser."""

    command = "fake-mmdc"

    def __init__(
        self, is_available: bool = True, failing: set[str] | None = None
    ) -> None:
        self.is_available = is_available
        self.failing = failing or set()
        self.rendered: list[str] = []

    def available(self) -> bool:
        return self.is_available

    async def render(self, source: str) -> bytes:
        self.rendered.append(source)
        if source in self.failing:
            from markfluence.diagrams.errors import DiagramRenderError

            raise DiagramRenderError(f"cannot render: {source}")
        return b"PNG:" + source.encode("utf-8")


@pytest.fixture
def fake_client():
    return FakeConfluenceClient()


@pytest.fixture
def fake_backend():
    return FakeDiagramBackend()
