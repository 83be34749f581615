"""Node converter registry: maps a node kind to its rendering function.

Every renderer has the signature::

    def render(node, context, convert_children) -> str

``convert_children`` converts any container node's children with the same
registry and context, so a renderer decides whether (and on which node) its
children are converted. This is what allows pre-processing such as the
blockquote admonition rewrite.

Kinds without a renderer fall through to concatenating their children; a
leaf with no renderer yields an empty string. Either case is logged as a
warning in verbose mode.
"""

from __future__ import annotations

import logging
from typing import Callable

from .context import ConversionContext
from .nodes import SyntaxNode

logger = logging.getLogger(__name__)

ChildConverter = Callable[[SyntaxNode], str]
Renderer = Callable[[SyntaxNode, ConversionContext, ChildConverter], str]


class NodeRegistry:
    """Kind -> renderer mapping with fall-through dispatch."""

    def __init__(self) -> None:
        self._renderers: dict[str, Renderer] = {}

    def register(self, kind: str, fn: Renderer | None = None):
        """Install *fn* as the renderer for *kind*.

        The last registration for a kind wins. Without *fn* this returns a
        decorator::

            @registry.register("heading")
            def _heading(node, context, convert_children): ...
        """
        if fn is not None:
            self._renderers[kind] = fn
            return fn

        def decorator(func: Renderer) -> Renderer:
            self._renderers[kind] = func
            return func

        return decorator

    def get(self, kind: str) -> Renderer | None:
        return self._renderers.get(kind)

    def __contains__(self, kind: str) -> bool:
        return kind in self._renderers

    def copy(self) -> NodeRegistry:
        """Return an independent registry with the same renderers."""
        clone = NodeRegistry()
        clone._renderers = dict(self._renderers)
        return clone

    def convert(self, node: SyntaxNode, context: ConversionContext) -> str:
        """Convert *node* (and, through its renderer, its subtree) to markup."""
        renderer = self._renderers.get(node.kind)
        if renderer is None:
            if context.verbose:
                logger.warning("Unknown node kind: %s", node.kind)
            if node.is_container:
                return self.convert_children(node, context)
            return ""
        return renderer(
            node,
            context,
            lambda parent: self.convert_children(parent, context),
        )

    def convert_children(
        self, node: SyntaxNode, context: ConversionContext
    ) -> str:
        return "".join(
            self.convert(child, context) for child in node.children
        )


# Default registry; the storage format emitters register themselves here.
registry = NodeRegistry()


def convert(node: SyntaxNode, context: ConversionContext) -> str:
    """Convert *node* using the default registry."""
    # Importing the emitters populates the default registry.
    from . import storage_format  # noqa: F401

    return registry.convert(node, context)
