"""Syntax tree node type shared by the parser, preprocessor and emitters.

A ``SyntaxNode`` is a tagged variant: ``kind`` is the discriminant and the
kind-specific fields live in ``attrs``:

- heading: ``depth``
- list: ``ordered``, ``start``
- list_item: ``checked`` (``True``/``False`` for task items, ``None`` otherwise)
- code_block: ``lang``
- link: ``url``, ``title``
- image: ``url``, ``alt``, ``title``
- table: ``align`` (one entry per column, ``None`` when unaligned)

Leaf kinds carry their content in ``value`` (text, inline_code, code_block,
html). Nodes are frozen; rewrites build new nodes via ``with_children``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable

ROOT = "root"
PARAGRAPH = "paragraph"
HEADING = "heading"
TEXT = "text"
EMPHASIS = "emphasis"
STRONG = "strong"
STRIKE = "strike"
INLINE_CODE = "inline_code"
CODE_BLOCK = "code_block"
LIST = "list"
LIST_ITEM = "list_item"
TABLE = "table"
TABLE_ROW = "table_row"
TABLE_CELL = "table_cell"
LINK = "link"
IMAGE = "image"
BLOCKQUOTE = "blockquote"
BREAK = "break"
THEMATIC_BREAK = "thematic_break"
HTML = "html"

CONTAINER_KINDS: frozenset[str] = frozenset(
    {
        ROOT,
        PARAGRAPH,
        HEADING,
        EMPHASIS,
        STRONG,
        STRIKE,
        LIST,
        LIST_ITEM,
        TABLE,
        TABLE_ROW,
        TABLE_CELL,
        LINK,
        BLOCKQUOTE,
    }
)


@dataclass(frozen=True)
class SyntaxNode:
    """One element of a parsed Markdown document.

    Attributes:
        kind: Node kind tag (see module constants).
        children: Ordered child nodes (empty for leaves).
        value: Literal content for leaf kinds.
        attrs: Kind-specific fields.
    """

    kind: str
    children: tuple[SyntaxNode, ...] = ()
    value: str = ""
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS or bool(self.children)

    def get(self, key: str, default: Any = None) -> Any:
        return self.attrs.get(key, default)

    def with_children(self, children: Iterable[SyntaxNode]) -> SyntaxNode:
        """Return a copy of this node with *children* replacing its own."""
        return replace(self, children=tuple(children))

    def with_value(self, value: str) -> SyntaxNode:
        return replace(self, value=value)


def text(value: str) -> SyntaxNode:
    return SyntaxNode(TEXT, value=value)


def plain_text(node: SyntaxNode) -> str:
    """Concatenate the literal content of *node* and its descendants."""
    if node.value:
        return node.value
    return "".join(plain_text(child) for child in node.children)


def walk(node: SyntaxNode) -> Iterable[SyntaxNode]:
    """Yield *node* and every descendant in document order."""
    yield node
    for child in node.children:
        yield from walk(child)
