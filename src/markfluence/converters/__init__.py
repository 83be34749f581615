"""Markdown to Confluence storage format conversion."""

from .context import AttachmentInfo, ConversionContext
from .nodes import SyntaxNode
from .parser import ParsedDocument, parse
from .registry import NodeRegistry, convert, registry
from .storage_format import is_task_list, split_admonition

__all__ = [
    "AttachmentInfo",
    "ConversionContext",
    "NodeRegistry",
    "ParsedDocument",
    "SyntaxNode",
    "convert",
    "is_task_list",
    "parse",
    "registry",
    "split_admonition",
]
