"""Mermaid rendering backend built on the mermaid CLI (``mmdc``)."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

from .errors import DiagramRenderError

logger = logging.getLogger(__name__)

DIAGRAM_LANGUAGE = "mermaid"
DIAGRAM_CONTENT_TYPE = "image/png"

# Passed to mmdc via --configFile. Flowcharts use the ELK layout, not dagre.
MERMAID_CONFIG = {
    "flowchart": {"defaultRenderer": "elk", "htmlLabels": False},
    "securityLevel": "strict",
}


def diagram_hash(source: str) -> str:
    """Return a 12 character content hash for diagram *source*.

    Examples:
        >>> len(diagram_hash("graph TD; A-->B"))
        12
    """
    return hashlib.md5(source.encode("utf-8")).hexdigest()[:12]


def diagram_filename(source: str) -> str:
    """Return the attachment filename for diagram *source*."""
    return f"mermaid-{diagram_hash(source)}.png"


class DiagramBackend(Protocol):
    """Anything that can turn diagram source into image bytes."""

    def available(self) -> bool: ...

    async def render(self, source: str) -> bytes: ...


class MermaidRenderer:
    """Render Mermaid source to PNG by running ``mmdc`` in a subprocess.

    Args:
        command: Executable name or path of the mermaid CLI.
        scale: Puppeteer scale factor; higher values give crisper images.
        background: Background colour passed to ``mmdc -b``.
    """

    def __init__(
        self,
        command: str = "mmdc",
        scale: int = 4,
        background: str = "white",
    ):
        self.command = command
        self.scale = scale
        self.background = background

    def available(self) -> bool:
        return shutil.which(self.command) is not None

    async def render(self, source: str) -> bytes:
        """Render one diagram and return the PNG bytes.

        Raises:
            DiagramRenderError: If ``mmdc`` exits non-zero or writes no image.
        """
        with tempfile.TemporaryDirectory(prefix="markfluence-") as tmp:
            input_path = Path(tmp) / "diagram.mmd"
            config_path = Path(tmp) / "mermaid-config.json"
            output_path = Path(tmp) / "diagram.png"
            input_path.write_text(source, encoding="utf-8")
            config_path.write_text(json.dumps(MERMAID_CONFIG), encoding="utf-8")

            cmd = [
                self.command,
                "--input",
                str(input_path),
                "--output",
                str(output_path),
                "--configFile",
                str(config_path),
                "--backgroundColor",
                self.background,
                "--scale",
                str(self.scale),
                "--quiet",
            ]
            logger.debug("Running %s", " ".join(cmd))

            try:
                proc = await asyncio.create_subprocess_exec(
                    *cmd,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except OSError as e:
                raise DiagramRenderError(
                    f"Failed to start {self.command}: {e}"
                ) from e

            _, stderr = await proc.communicate()
            if proc.returncode != 0:
                details = stderr.decode("utf-8", errors="replace").strip()
                raise DiagramRenderError(
                    f"{self.command} exited with status {proc.returncode}: "
                    f"{details or 'no output'}",
                    returncode=proc.returncode,
                )

            if not output_path.exists():
                raise DiagramRenderError(
                    f"{self.command} did not produce an image"
                )
            return output_path.read_bytes()
