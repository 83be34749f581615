"""Tests for mermaid diagram collection, rendering and preprocessing."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from conftest import FakeDiagramBackend

from markfluence.converters.context import ConversionContext
from markfluence.converters.parser import parse
from markfluence.diagrams import (
    DiagramBackendUnavailable,
    DiagramRenderError,
    MermaidRenderer,
    collect_diagram_blocks,
    diagram_filename,
    diagram_hash,
    preprocess_diagrams,
)

DOC = """# Diagrams

```mermaid
graph TD; A-->B
```

Text between.

```mermaid
sequenceDiagram; X->>Y: hi
```

```mermaid
graph TD; A-->B
```

```python
print("not a diagram")
```
"""


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def test_diagram_hash_is_stable_and_short():
    assert diagram_hash("graph TD; A-->B") == diagram_hash("graph TD; A-->B")
    assert len(diagram_hash("graph TD; A-->B")) == 12


def test_diagram_filename_format():
    name = diagram_filename("graph TD; A-->B")
    assert name.startswith("mermaid-")
    assert name.endswith(".png")
    assert name == f"mermaid-{diagram_hash('graph TD; A-->B')}.png"


def test_different_sources_different_names():
    assert diagram_filename("graph TD; A-->B") != diagram_filename(
        "graph TD; B-->A"
    )


# ---------------------------------------------------------------------------
# collect_diagram_blocks
# ---------------------------------------------------------------------------


def test_collect_in_document_order_deduplicated():
    blocks = collect_diagram_blocks(parse(DOC).tree)
    assert [b.source for b in blocks] == [
        "graph TD; A-->B",
        "sequenceDiagram; X->>Y: hi",
    ]


def test_collect_skips_empty_blocks():
    assert collect_diagram_blocks(parse("```mermaid\n```\n").tree) == []


# ---------------------------------------------------------------------------
# preprocess_diagrams
# ---------------------------------------------------------------------------


async def test_preprocess_adds_attachments(context, fake_backend):
    await preprocess_diagrams(parse(DOC).tree, context, fake_backend)

    assert len(fake_backend.rendered) == 2
    name = diagram_filename("graph TD; A-->B")
    assert context.attachments[name].data == b"PNG:graph TD; A-->B"
    assert context.attachments[name].content_type == "image/png"


async def test_preprocess_noop_when_disabled(mock_config, fake_backend):
    mock_config.mermaid = False
    context = ConversionContext(config=mock_config)
    await preprocess_diagrams(parse(DOC).tree, context, fake_backend)
    assert fake_backend.rendered == []
    assert context.attachments == {}


async def test_preprocess_noop_without_diagrams(context):
    # No backend needed when there is nothing to render
    await preprocess_diagrams(parse("# Plain\n").tree, context, None)
    assert context.attachments == {}


async def test_backend_unavailable_raises(context):
    backend = FakeDiagramBackend(is_available=False)
    with pytest.raises(DiagramBackendUnavailable, match="fake-mmdc"):
        await preprocess_diagrams(parse(DOC).tree, context, backend)
    assert backend.rendered == []


async def test_missing_backend_names_configured_cli(context):
    with pytest.raises(DiagramBackendUnavailable, match="mmdc") as exc_info:
        await preprocess_diagrams(parse(DOC).tree, context, None)
    assert "--no-mermaid" in str(exc_info.value)


async def test_failed_diagram_is_logged_and_skipped(context, caplog):
    backend = FakeDiagramBackend(failing={"graph TD; A-->B"})
    with caplog.at_level(logging.WARNING):
        await preprocess_diagrams(parse(DOC).tree, context, backend)

    assert list(context.attachments) == [
        diagram_filename("sequenceDiagram; X->>Y: hi")
    ]
    assert "Failed to render mermaid diagram" in caplog.text


# ---------------------------------------------------------------------------
# MermaidRenderer
# ---------------------------------------------------------------------------


def test_renderer_available_uses_which():
    with patch("markfluence.diagrams.render.shutil.which", return_value=None):
        assert MermaidRenderer("mmdc").available() is False
    with patch(
        "markfluence.diagrams.render.shutil.which", return_value="/usr/bin/mmdc"
    ):
        assert MermaidRenderer("mmdc").available() is True


def _fake_process(returncode: int, stderr: bytes = b""):
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(b"", stderr))
    return proc


async def test_renderer_returns_output_bytes():
    async def _exec(*cmd, **kwargs):
        output = cmd[cmd.index("--output") + 1]
        with open(output, "wb") as fh:
            fh.write(b"\x89PNG")
        return _fake_process(0)

    with patch(
        "markfluence.diagrams.render.asyncio.create_subprocess_exec",
        side_effect=_exec,
    ) as mock_exec:
        data = await MermaidRenderer("mmdc", scale=2).render("graph TD; A-->B")

    assert data == b"\x89PNG"
    cmd = mock_exec.call_args[0]
    assert cmd[0] == "mmdc"
    assert cmd[cmd.index("--scale") + 1] == "2"
    assert cmd[cmd.index("--backgroundColor") + 1] == "white"


async def test_renderer_nonzero_exit_raises():
    with patch(
        "markfluence.diagrams.render.asyncio.create_subprocess_exec",
        AsyncMock(return_value=_fake_process(1, b"Parse error on line 1")),
    ):
        with pytest.raises(DiagramRenderError, match="Parse error") as exc_info:
            await MermaidRenderer().render("graph ???")
    assert exc_info.value.returncode == 1


async def test_renderer_missing_output_raises():
    with patch(
        "markfluence.diagrams.render.asyncio.create_subprocess_exec",
        AsyncMock(return_value=_fake_process(0)),
    ):
        with pytest.raises(DiagramRenderError, match="did not produce"):
            await MermaidRenderer().render("graph TD; A-->B")


async def test_renderer_start_failure_raises():
    with patch(
        "markfluence.diagrams.render.asyncio.create_subprocess_exec",
        AsyncMock(side_effect=FileNotFoundError("mmdc")),
    ):
        with pytest.raises(DiagramRenderError, match="Failed to start"):
            await MermaidRenderer().render("graph TD; A-->B")


async def test_renderer_passes_elk_config_file():
    seen = {}

    async def _exec(*cmd, **kwargs):
        config_file = cmd[cmd.index("--configFile") + 1]
        with open(config_file, encoding="utf-8") as fh:
            seen["config"] = json.load(fh)
        output = cmd[cmd.index("--output") + 1]
        with open(output, "wb") as fh:
            fh.write(b"\x89PNG")
        return _fake_process(0)

    with patch(
        "markfluence.diagrams.render.asyncio.create_subprocess_exec",
        side_effect=_exec,
    ):
        await MermaidRenderer().render("flowchart TD\n  subgraph A\n  x-->y\n  end")

    assert seen["config"] == {
        "flowchart": {"defaultRenderer": "elk", "htmlLabels": False},
        "securityLevel": "strict",
    }
