"""Tests for Markdown parsing: front matter, titles and tree mapping."""

from markfluence.converters import nodes
from markfluence.converters.parser import derive_title, parse, split_frontmatter


def _kinds(node):
    return [child.kind for child in node.children]


# ---------------------------------------------------------------------------
# Front matter
# ---------------------------------------------------------------------------


class TestSplitFrontmatter:
    def test_frontmatter_parsed_and_removed(self):
        data, body = split_frontmatter(
            "---\ntitle: Guide\nconfluence-page-id: 42\n---\n# Body\n"
        )
        assert data == {"title": "Guide", "confluence-page-id": 42}
        assert body == "# Body\n"

    def test_no_frontmatter(self):
        data, body = split_frontmatter("# Only body\n")
        assert data == {}
        assert body == "# Only body\n"

    def test_invalid_yaml_ignored_but_removed(self):
        data, body = split_frontmatter("---\ntitle: [unclosed\n---\nText\n")
        assert data == {}
        assert body == "Text\n"

    def test_non_mapping_frontmatter_ignored(self):
        data, body = split_frontmatter("---\n- a\n- b\n---\nText\n")
        assert data == {}
        assert body == "Text\n"

    def test_frontmatter_must_start_document(self):
        text = "Intro\n---\ntitle: x\n---\n"
        data, body = split_frontmatter(text)
        assert data == {}
        assert body == text

    def test_crlf_line_endings(self):
        doc = parse("---\r\ntitle: Windows\r\n---\r\nBody\r\n")
        assert doc.frontmatter == {"title": "Windows"}
        assert doc.title == "Windows"


# ---------------------------------------------------------------------------
# Title derivation
# ---------------------------------------------------------------------------


class TestDeriveTitle:
    def test_frontmatter_title_wins(self):
        doc = parse("---\ntitle: From Meta\n---\n# From Heading\n", "file.md")
        assert doc.title == "From Meta"

    def test_non_string_frontmatter_title(self):
        doc = parse("---\ntitle: 2024\n---\nBody\n")
        assert doc.title == "2024"

    def test_first_h1(self):
        doc = parse("Intro\n\n## Sub\n\n# Main *Title*\n\n# Second\n")
        assert doc.title == "Main Title"

    def test_h2_is_not_a_title(self):
        doc = parse("## Only Sub\n", "docs/getting-started.md")
        assert doc.title == "getting-started"

    def test_filename_stem(self):
        doc = parse("No headings here\n", "/tmp/notes/release-notes.md")
        assert doc.title == "release-notes"

    def test_untitled(self):
        assert parse("No headings here\n").title == "Untitled"

    def test_nested_h1_ignored(self):
        tree = parse("> # Quoted\n").tree
        assert derive_title({}, tree, None) == "Untitled"


# ---------------------------------------------------------------------------
# Tree mapping
# ---------------------------------------------------------------------------


class TestTreeMapping:
    def test_heading_depth(self):
        tree = parse("### Three\n").tree
        heading = tree.children[0]
        assert heading.kind == nodes.HEADING
        assert heading.get("depth") == 3

    def test_blank_lines_dropped(self):
        tree = parse("A\n\n\n\nB\n").tree
        assert _kinds(tree) == [nodes.PARAGRAPH, nodes.PARAGRAPH]

    def test_code_block_lang_and_value(self):
        tree = parse("```python title=x\nprint(1)\n```\n").tree
        code = tree.children[0]
        assert code.kind == nodes.CODE_BLOCK
        assert code.get("lang") == "python"
        assert code.value == "print(1)"

    def test_code_block_without_lang(self):
        code = parse("```\nx\n```\n").tree.children[0]
        assert code.get("lang") == ""

    def test_ordered_list_attrs(self):
        lst = parse("3. c\n4. d\n").tree.children[0]
        assert lst.kind == nodes.LIST
        assert lst.get("ordered") is True
        assert lst.get("start") == 3

    def test_task_items_checked(self):
        lst = parse("- [x] done\n- [ ] open\n- plain\n").tree.children[0]
        assert [item.get("checked") for item in lst.children] == [
            True,
            False,
            None,
        ]

    def test_adjacent_text_merged(self):
        paragraph = parse("one\ntwo\n").tree.children[0]
        assert len(paragraph.children) == 1
        assert paragraph.children[0].value == "one\ntwo"

    def test_table_rows_header_first(self):
        table = parse("| A | B |\n| :- | -: |\n| 1 | 2 |\n").tree.children[0]
        assert table.kind == nodes.TABLE
        assert table.get("align") == ["left", "right"]
        assert _kinds(table) == [nodes.TABLE_ROW, nodes.TABLE_ROW]
        assert nodes.plain_text(table.children[0]) == "AB"

    def test_image_alt_and_url(self):
        image = parse("![A *nice* pic](img/pic.png)\n").tree.children[0].children[0]
        assert image.kind == nodes.IMAGE
        assert image.get("alt") == "A nice pic"
        assert image.get("url") == "img/pic.png"

    def test_link_attrs(self):
        link = parse('[x](https://e.com "T")\n').tree.children[0].children[0]
        assert link.kind == nodes.LINK
        assert link.get("url") == "https://e.com"
        assert link.get("title") == "T"

    def test_walk_visits_every_node(self):
        tree = parse("# A\n\n- b\n").tree
        kinds = [n.kind for n in nodes.walk(tree)]
        assert kinds[0] == nodes.ROOT
        assert nodes.LIST_ITEM in kinds
        assert kinds.count(nodes.TEXT) == 2
