"""Configuration file schema for markfluence.

Defines Pydantic models for the YAML config structure with dedicated
sections for the Confluence connection and logging.

Usage:
    from markfluence.config_schema import build_config

    raw = load_hierarchical_config()
    file_config = build_config(raw)
    fallbacks = file_config.confluence.fallbacks()
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class ConfluenceSection(BaseModel):
    """Confluence connection settings.

    All fields are optional: env vars and CLI args can supply them at
    runtime instead.
    """

    domain: str | None = Field(
        default=None, description="Confluence host, e.g. acme.atlassian.net"
    )
    space: str | None = Field(default=None, description="Space key")
    email: str | None = Field(default=None, description="Account email")
    api_token: str | None = Field(default=None, description="API token")
    parent_page_id: str | None = Field(
        default=None, description="Parent page id for new pages"
    )
    mermaid: bool = Field(
        default=True, description="Render mermaid diagrams to images"
    )
    verbose: bool = Field(default=False, description="Verbose diagnostics")
    mermaid_cli: str | None = Field(
        default=None, description="Mermaid CLI executable"
    )

    model_config = {"frozen": True}

    @field_validator("parent_page_id", mode="before")
    @classmethod
    def _page_id_as_str(cls, value: Any) -> Any:
        # Page ids are numeric in YAML unless quoted
        if isinstance(value, int):
            return str(value)
        return value

    def fallbacks(self) -> dict[str, Any]:
        """Return the explicitly set fields as a ``load_config`` fallback dict."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="WARNING", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------


class FileConfig(BaseModel):
    """Top-level config file model.

    Every section has defaults, so ``FileConfig()`` (zero-config) is valid.
    """

    confluence: ConfluenceSection = Field(default_factory=ConfluenceSection)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> FileConfig:
    """Construct a ``FileConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults. A ``null`` section is treated as absent.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``FileConfig`` instance.
    """
    if not raw_data:
        return FileConfig()

    sections = {k: v for k, v in raw_data.items() if v is not None}
    return FileConfig(**sections)
