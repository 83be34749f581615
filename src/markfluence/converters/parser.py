"""Markdown parsing using mistune's AST renderer.

mistune's token stream is mapped onto ``SyntaxNode`` trees so the emitters
never see parser-specific token shapes.
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

import mistune
import yaml

from . import nodes
from .nodes import SyntaxNode

logger = logging.getLogger(__name__)

# YAML front matter between leading --- delimiters
FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\n(.*?)^---[ \t]*(?:\n|\Z)", re.DOTALL | re.MULTILINE
)

_markdown = mistune.create_markdown(
    renderer="ast", plugins=["table", "strikethrough", "task_lists"]
)


@dataclass(frozen=True)
class ParsedDocument:
    """Result of parsing one Markdown document.

    Attributes:
        frontmatter: Front-matter mapping ({} when absent or invalid).
        tree: Root ``SyntaxNode``.
        title: Derived page title.
    """

    frontmatter: dict[str, Any] = field(default_factory=dict)
    tree: SyntaxNode = field(default_factory=lambda: SyntaxNode(nodes.ROOT))
    title: str = "Untitled"


def parse(text: str, filename: str | None = None) -> ParsedDocument:
    """Parse Markdown *text* into front matter, a syntax tree and a title.

    Args:
        text: Markdown source, optionally starting with YAML front matter.
        filename: Source path, used as a title fallback.

    Returns:
        ParsedDocument
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    frontmatter, body = split_frontmatter(text)

    tokens = _markdown(body)
    tree = SyntaxNode(nodes.ROOT, children=_convert_tokens(tokens))  # type: ignore[arg-type]

    return ParsedDocument(
        frontmatter=frontmatter,
        tree=tree,
        title=derive_title(frontmatter, tree, filename),
    )


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Separate leading YAML front matter from the Markdown body.

    Invalid YAML or a non-mapping document is ignored: the block is still
    removed from the body and the front matter is ``{}``.
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        return {}, text

    body = text[match.end() :]
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        logger.debug("Ignoring invalid front matter: %s", e)
        return {}, body

    if not isinstance(data, dict):
        return {}, body
    return data, body


def derive_title(
    frontmatter: dict[str, Any], tree: SyntaxNode, filename: str | None = None
) -> str:
    """Pick a page title.

    Precedence: front-matter ``title``, first top-level ``# heading``,
    filename stem, then ``"Untitled"``.
    """
    title = frontmatter.get("title")
    if title:
        return str(title)

    for child in tree.children:
        if child.kind == nodes.HEADING and child.get("depth") == 1:
            return nodes.plain_text(child)

    if filename:
        return PurePath(filename).stem

    return "Untitled"


# =============================================================================
# Token mapping
# =============================================================================

_SIMPLE_CONTAINERS: dict[str, str] = {
    "paragraph": nodes.PARAGRAPH,
    "block_text": nodes.PARAGRAPH,
    "emphasis": nodes.EMPHASIS,
    "strong": nodes.STRONG,
    "strikethrough": nodes.STRIKE,
    "block_quote": nodes.BLOCKQUOTE,
    "table_cell": nodes.TABLE_CELL,
    "table_row": nodes.TABLE_ROW,
}


def _convert_tokens(tokens: list[dict[str, Any]]) -> tuple[SyntaxNode, ...]:
    converted: list[SyntaxNode] = []
    for token in tokens:
        node = _convert_token(token)
        if node is None:
            continue
        # Adjacent text runs are merged so marker matching sees one string
        if (
            node.kind == nodes.TEXT
            and converted
            and converted[-1].kind == nodes.TEXT
        ):
            converted[-1] = converted[-1].with_value(
                converted[-1].value + node.value
            )
        else:
            converted.append(node)
    return tuple(converted)


def _convert_token(token: dict[str, Any]) -> SyntaxNode | None:
    token_type: str = token.get("type") or ""
    attrs: dict[str, Any] = token.get("attrs") or {}
    children = token.get("children") or []

    if token_type in _SIMPLE_CONTAINERS:
        return SyntaxNode(
            _SIMPLE_CONTAINERS[token_type], children=_convert_tokens(children)
        )

    if token_type == "text":
        return nodes.text(html.unescape(token.get("raw", "")))

    if token_type == "softbreak":
        return nodes.text("\n")

    if token_type == "linebreak":
        return SyntaxNode(nodes.BREAK)

    if token_type == "codespan":
        return SyntaxNode(nodes.INLINE_CODE, value=token.get("raw", ""))

    if token_type == "heading":
        return SyntaxNode(
            nodes.HEADING,
            children=_convert_tokens(children),
            attrs={"depth": attrs.get("level", 1)},
        )

    if token_type == "block_code":
        code = token.get("raw", "")
        if code.endswith("\n"):
            code = code[:-1]
        info = (attrs.get("info") or "").split()
        return SyntaxNode(
            nodes.CODE_BLOCK,
            value=code,
            attrs={"lang": info[0] if info else ""},
        )

    if token_type == "list":
        return SyntaxNode(
            nodes.LIST,
            children=_convert_tokens(children),
            attrs={
                "ordered": bool(attrs.get("ordered", False)),
                "start": attrs.get("start", 1),
            },
        )

    if token_type in ("list_item", "task_list_item"):
        checked = attrs.get("checked") if token_type == "task_list_item" else None
        return SyntaxNode(
            nodes.LIST_ITEM,
            children=_convert_tokens(children),
            attrs={"checked": checked},
        )

    if token_type == "table":
        return _convert_table(children)

    if token_type == "link":
        return SyntaxNode(
            nodes.LINK,
            children=_convert_tokens(children),
            attrs={"url": attrs.get("url", ""), "title": attrs.get("title")},
        )

    if token_type == "image":
        alt = nodes.plain_text(
            SyntaxNode(nodes.PARAGRAPH, children=_convert_tokens(children))
        )
        return SyntaxNode(
            nodes.IMAGE,
            attrs={
                "url": attrs.get("url", ""),
                "alt": alt,
                "title": attrs.get("title"),
            },
        )

    if token_type in ("block_html", "inline_html"):
        return SyntaxNode(nodes.HTML, value=token.get("raw", "").rstrip("\n"))

    if token_type == "thematic_break":
        return SyntaxNode(nodes.THEMATIC_BREAK)

    if token_type == "blank_line":
        return None

    # Anything else keeps its own kind; the registry falls through on it
    return SyntaxNode(
        token_type,
        children=_convert_tokens(children),
        value=token.get("raw", ""),
    )


def _convert_table(sections: list[dict[str, Any]]) -> SyntaxNode:
    """Flatten mistune's head/body sections into rows, header first."""
    rows: list[SyntaxNode] = []
    align: list[str | None] = []

    for section in sections:
        if section.get("type") == "table_head":
            cells = section.get("children") or []
            align = [(cell.get("attrs") or {}).get("align") for cell in cells]
            rows.append(
                SyntaxNode(nodes.TABLE_ROW, children=_convert_tokens(cells))
            )
        elif section.get("type") == "table_body":
            rows.extend(_convert_tokens(section.get("children") or []))

    return SyntaxNode(nodes.TABLE, children=tuple(rows), attrs={"align": align})
