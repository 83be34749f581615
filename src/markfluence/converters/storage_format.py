"""Confluence storage format emitters.

Each function renders one node kind and registers itself on the default
registry. Storage format is XHTML plus the ``ac:`` (macros, tasks, links)
and ``ri:`` (resource identifiers) namespaces.
"""

from __future__ import annotations

import re
from urllib.parse import unquote

from ..diagrams.errors import DiagramNotRenderedError
from ..diagrams.render import DIAGRAM_LANGUAGE, diagram_filename
from . import nodes
from .common import (
    confluence_language,
    escape_attr,
    escape_xml,
    macro,
    plain_text_macro,
)
from .context import ConversionContext
from .nodes import SyntaxNode
from .registry import ChildConverter, registry

# =============================================================================
# Block elements
# =============================================================================


@registry.register(nodes.ROOT)
def render_root(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return convert_children(node)


@registry.register(nodes.PARAGRAPH)
def render_paragraph(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<p>{convert_children(node)}</p>"


@registry.register(nodes.HEADING)
def render_heading(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    level = min(max(int(node.get("depth", 1)), 1), 6)
    return f"<h{level}>{convert_children(node)}</h{level}>"


@registry.register(nodes.THEMATIC_BREAK)
def render_thematic_break(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return "<hr/>"


@registry.register(nodes.HTML)
def render_html(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    """Pass raw HTML through; Confluence decides whether it renders."""
    return node.value


# =============================================================================
# Blockquotes and admonitions
# =============================================================================
#
# GitHub style alerts:
#
#   > [!WARNING]
#   > Mind the gap.
#
# become Confluence callout macros. The marker must open the first text run
# of the quote's first paragraph.
# =============================================================================

ADMONITION_PATTERN = re.compile(
    r"^\[!(NOTE|WARNING|TIP|IMPORTANT|CAUTION)\]\s*", re.IGNORECASE
)

ADMONITION_MACROS: dict[str, str] = {
    "NOTE": "info",
    "TIP": "tip",
    "IMPORTANT": "note",
    "WARNING": "warning",
    "CAUTION": "warning",
}


def split_admonition(node: SyntaxNode) -> tuple[str, SyntaxNode] | None:
    """Detect an admonition marker on blockquote *node*.

    Returns:
        ``(tag, rewritten)`` where *rewritten* is a new blockquote without the
        marker, or None when *node* is a plain quote. *node* is not modified.
    """
    if not node.children:
        return None
    first = node.children[0]
    if first.kind != nodes.PARAGRAPH or not first.children:
        return None
    first_inline = first.children[0]
    if first_inline.kind != nodes.TEXT:
        return None

    match = ADMONITION_PATTERN.match(first_inline.value)
    if not match:
        return None

    stripped = first_inline.with_value(first_inline.value[match.end() :])
    paragraph = first.with_children((stripped, *first.children[1:]))
    rewritten = node.with_children((paragraph, *node.children[1:]))
    return match.group(1).upper(), rewritten


@registry.register(nodes.BLOCKQUOTE)
def render_blockquote(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    admonition = split_admonition(node)
    if admonition is None:
        return f"<blockquote>{convert_children(node)}</blockquote>"

    tag, rewritten = admonition
    return macro(ADMONITION_MACROS.get(tag, "info"), {}, convert_children(rewritten))


# =============================================================================
# Lists
# =============================================================================


def is_task_list(node: SyntaxNode) -> bool:
    """True when any item of list *node* carries a checked state."""
    return any(
        isinstance(item.get("checked"), bool)
        for item in node.children
        if item.kind == nodes.LIST_ITEM
    )


def _task_body(item: SyntaxNode, convert_children: ChildConverter) -> str:
    # A lone paragraph is unwrapped; anything richer keeps its markup
    if len(item.children) == 1 and item.children[0].kind == nodes.PARAGRAPH:
        return convert_children(item.children[0])
    return convert_children(item)


def _render_task_list(node: SyntaxNode, convert_children: ChildConverter) -> str:
    tasks = []
    for item in node.children:
        if item.kind != nodes.LIST_ITEM:
            continue
        status = "complete" if item.get("checked") is True else "incomplete"
        tasks.append(
            "<ac:task>\n"
            f"<ac:task-status>{status}</ac:task-status>\n"
            f"<ac:task-body>{_task_body(item, convert_children)}</ac:task-body>\n"
            "</ac:task>"
        )
    return f"<ac:task-list>{''.join(tasks)}</ac:task-list>"


@registry.register(nodes.LIST)
def render_list(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    if is_task_list(node):
        return _render_task_list(node, convert_children)

    tag = "ol" if node.get("ordered") else "ul"
    return f"<{tag}>{convert_children(node)}</{tag}>"


@registry.register(nodes.LIST_ITEM)
def render_list_item(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<li>{convert_children(node)}</li>"


# =============================================================================
# Tables
# =============================================================================


def _align_style(align: str | None) -> str:
    return f' style="text-align: {align}"' if align else ""


def _render_cells(
    row: SyntaxNode,
    tag: str,
    align: list[str | None],
    convert_children: ChildConverter,
) -> str:
    cells = []
    for i, cell in enumerate(row.children):
        style = _align_style(align[i] if i < len(align) else None)
        cells.append(f"<{tag}{style}>{convert_children(cell)}</{tag}>")
    return "".join(cells)


@registry.register(nodes.TABLE)
def render_table(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    """Render a table; the first row is always the header."""
    rows = node.children
    if not rows:
        return ""

    align: list[str | None] = list(node.get("align") or [])
    header = (
        "<thead><tr>"
        + _render_cells(rows[0], "th", align, convert_children)
        + "</tr></thead>"
    )

    body = ""
    if len(rows) > 1:
        body = (
            "<tbody>"
            + "".join(
                f"<tr>{_render_cells(row, 'td', align, convert_children)}</tr>"
                for row in rows[1:]
            )
            + "</tbody>"
        )

    return f"<table>{header}{body}</table>"


@registry.register(nodes.TABLE_ROW)
def render_table_row(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<tr>{convert_children(node)}</tr>"


@registry.register(nodes.TABLE_CELL)
def render_table_cell(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<td>{convert_children(node)}</td>"


# =============================================================================
# Code
# =============================================================================


@registry.register(nodes.CODE_BLOCK)
def render_code_block(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    """Render fenced code as a ``code`` macro, or a mermaid block as an image.

    Raises:
        DiagramNotRenderedError: A mermaid block has no rendered attachment.
    """
    lang: str = node.get("lang") or ""
    code = node.value

    if lang == DIAGRAM_LANGUAGE:
        if not context.diagrams_enabled:
            return plain_text_macro(
                "code", {"language": "text", "title": "Mermaid"}, code
            )

        filename = diagram_filename(code)
        if filename not in context.attachments:
            raise DiagramNotRenderedError(filename)

        return (
            '<ac:image ac:align="center" ac:layout="center" ac:width="800" '
            'ac:thumbnail="true">'
            f'<ri:attachment ri:filename="{escape_attr(filename)}"/>'
            "</ac:image>"
        )

    params = {"language": confluence_language(lang)} if lang else {}
    return plain_text_macro("code", params, code)


@registry.register(nodes.INLINE_CODE)
def render_inline_code(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<code>{escape_xml(node.value)}</code>"


# =============================================================================
# Inline elements
# =============================================================================


@registry.register(nodes.TEXT)
def render_text(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return escape_xml(node.value)


@registry.register(nodes.EMPHASIS)
def render_emphasis(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<em>{convert_children(node)}</em>"


@registry.register(nodes.STRONG)
def render_strong(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<strong>{convert_children(node)}</strong>"


@registry.register(nodes.STRIKE)
def render_strike(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    return f"<del>{convert_children(node)}</del>"


@registry.register(nodes.BREAK)
def render_break(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    # Exactly <br/>: no surrounding whitespace
    return "<br/>"


@registry.register(nodes.LINK)
def render_link(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    url: str = node.get("url") or ""
    title: str | None = node.get("title")
    text = convert_children(node)

    if url.startswith("#"):
        return (
            f'<ac:link ac:anchor="{escape_attr(url[1:])}">'
            f"<ac:link-body>{text}</ac:link-body></ac:link>"
        )

    title_attr = f' title="{escape_attr(title)}"' if title else ""
    return f'<a href="{escape_attr(url)}"{title_attr}>{text}</a>'


_REMOTE_URL = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def is_remote_url(url: str) -> bool:
    """True for scheme-qualified URLs such as ``https://host/a.png``."""
    return bool(_REMOTE_URL.match(url))


@registry.register(nodes.IMAGE)
def render_image(
    node: SyntaxNode, context: ConversionContext, convert_children: ChildConverter
) -> str:
    """Render a remote image by URL or a local image as an attachment."""
    url: str = node.get("url") or ""
    alt: str = node.get("alt") or ""
    title: str | None = node.get("title")

    alt_attr = f' ac:alt="{escape_attr(alt)}"' if alt else ""
    title_attr = f' ac:title="{escape_attr(title)}"' if title else ""

    if is_remote_url(url):
        resource = f'<ri:url ri:value="{escape_attr(url)}"/>'
    else:
        filename = unquote(url.rsplit("/", 1)[-1] or url)
        resource = f'<ri:attachment ri:filename="{escape_attr(filename)}"/>'

    return f"<ac:image{alt_attr}{title_attr}>{resource}</ac:image>"
