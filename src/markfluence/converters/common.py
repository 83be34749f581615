"""Markup helpers shared by the storage format emitters."""

import re

# =============================================================================
# Escaping
# =============================================================================

_XML_ENTITIES: dict[str, str] = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}

_XML_SPECIAL = re.compile(r"[&<>\"']")


def escape_xml(value: str) -> str:
    """Replace the five reserved XML characters with entity references.

    Examples:
        >>> escape_xml('a < b & "c"')
        'a &lt; b &amp; &quot;c&quot;'
    """
    return _XML_SPECIAL.sub(lambda m: _XML_ENTITIES[m.group(0)], value)


def escape_attr(value: str) -> str:
    """Escape a value for use inside a double-quoted attribute."""
    return escape_xml(value)


def cdata(value: str) -> str:
    """Wrap *value* in a CDATA section.

    A literal ``]]>`` inside *value* would close the section early, so it is
    split across two adjacent sections.
    """
    return "<![CDATA[" + value.replace("]]>", "]]]]><![CDATA[>") + "]]>"


# =============================================================================
# Macros
# =============================================================================


def _macro_params(params: dict[str, str]) -> str:
    return "".join(
        f'<ac:parameter ac:name="{escape_attr(key)}">{escape_xml(value)}</ac:parameter>'
        for key, value in params.items()
    )


def macro(
    name: str, params: dict[str, str] | None = None, body: str | None = None
) -> str:
    """Render a structured macro whose body is already-converted markup."""
    params_xml = _macro_params(params or {})
    open_tag = f'<ac:structured-macro ac:name="{escape_attr(name)}">'

    if body is not None:
        return (
            f"{open_tag}{params_xml}"
            f"<ac:rich-text-body>{body}</ac:rich-text-body>"
            "</ac:structured-macro>"
        )
    if params_xml:
        return f"{open_tag}{params_xml}</ac:structured-macro>"
    return f'<ac:structured-macro ac:name="{escape_attr(name)}"/>'


def plain_text_macro(
    name: str, params: dict[str, str] | None = None, body: str | None = None
) -> str:
    """Render a structured macro whose body is verbatim text (e.g. code)."""
    params_xml = _macro_params(params or {})
    open_tag = f'<ac:structured-macro ac:name="{escape_attr(name)}">'

    if body is not None:
        return (
            f"{open_tag}{params_xml}"
            f"<ac:plain-text-body>{cdata(body)}</ac:plain-text-body>"
            "</ac:structured-macro>"
        )
    return f"{open_tag}{params_xml}</ac:structured-macro>"


# =============================================================================
# Code Block Language Mapping
# =============================================================================
#
# Markdown fence language -> Confluence code macro language.
# Unknown languages pass through lower-cased.
#
# NOTE: "md" maps to plain "text" rather than a markup highlighter; this
# mirrors long-standing behaviour and is pending product review.
# =============================================================================

_LANGUAGE_ALIASES: dict[str, str] = {
    "js": "javascript",
    "ts": "typescript",
    "py": "python",
    "rb": "ruby",
    "sh": "bash",
    "shell": "bash",
    "yml": "yaml",
    "md": "text",
    "dockerfile": "bash",
}


def confluence_language(lang: str) -> str:
    """Map a Markdown fence language to the code macro language.

    Examples:
        >>> confluence_language("ts")
        'typescript'
        >>> confluence_language("Python")
        'python'
    """
    lang_lower = lang.lower()
    return _LANGUAGE_ALIASES.get(lang_lower, lang_lower)
