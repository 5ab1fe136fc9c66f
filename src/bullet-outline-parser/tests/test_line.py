"""Unit tests for the bullet line grammar."""

import pytest

from bullet_outline.line import (
    BulletKind,
    LineRecord,
    Visibility,
    measure_depth,
    parse_line,
    render_component_section,
    rewrite_line,
    sanitize_label,
    strip_id,
)


class TestParseBullet:
    """Tests for bullet kind, label and depth."""

    def test_default_bullet(self, id_supplier):
        """Test parsing a plain data bullet."""
        record = parse_line("- Hello world", 0, id_supplier=id_supplier)

        assert record.is_valid
        assert record.depth == 0
        assert record.bullet_kind is BulletKind.DEFAULT
        assert record.label == "Hello world"
        assert record.visibility is Visibility.NORMAL
        assert record.is_highlight is False
        assert record.explicit_id is None
        assert record.id == "ph_1"
        assert record.is_placeholder_id
        assert record.has_component_section is False
        assert record.ids_in == []
        assert record.ids_out == []

    def test_flow_bullet(self, id_supplier):
        """Test '>' gives a process bullet."""
        record = parse_line("  > Compile", 4, id_supplier=id_supplier)

        assert record.bullet_kind is BulletKind.FLOW
        assert record.label == "Compile"
        assert record.depth == 1
        assert record.line_index == 4

    def test_flow_break_bullet(self, id_supplier):
        """Test '<' gives a flow-break bullet."""
        record = parse_line("< Restart", 0, id_supplier=id_supplier)

        assert record.bullet_kind is BulletKind.FLOW_BREAK
        assert record.label == "Restart"

    def test_unknown_bullet_character_is_kept_in_label(self, id_supplier):
        """Test a line without bullet character is a default bullet."""
        record = parse_line("* Item", 0, id_supplier=id_supplier)

        assert record.bullet_kind is BulletKind.DEFAULT
        assert record.label == "* Item"

    def test_label_unsafe_characters_removed(self, id_supplier):
        """Test '&', '<' and '>' are stripped from labels."""
        record = parse_line("- A & B <c>", 0, id_supplier=id_supplier)

        assert record.label == "A  B c"

    def test_double_quotes_replaced(self, id_supplier):
        """Test double quotes become single quotes."""
        record = parse_line('- Say "hi"', 0, id_supplier=id_supplier)

        assert record.label == "Say 'hi'"

    def test_raw_text_preserved(self, id_supplier):
        """Test the record keeps the line exactly as written."""
        line = '\t- Say "hi" // x'
        record = parse_line(line, 0, id_supplier=id_supplier)

        assert record.text == line


class TestSkippedLines:
    """Tests for blank, comment and script lines."""

    @pytest.mark.parametrize("line", ["", "   ", "\t\t"])
    def test_blank_line_is_invalid(self, line, id_supplier):
        """Test blank lines give an invalid record without id."""
        record = parse_line(line, 2, id_supplier=id_supplier)

        assert record.depth == -1
        assert not record.is_valid
        assert record.id == ""
        assert id_supplier.placeholders == 0

    def test_comment_line(self, id_supplier):
        """Test comment lines are not parsed further."""
        record = parse_line("    // - Not a bullet // id", 7, id_supplier=id_supplier)

        assert record.is_comment
        assert not record.is_valid
        assert record.line_index == 7
        assert record.label == ""
        assert record.explicit_id is None

    def test_script_line(self, id_supplier):
        """Test script directive lines are excluded from the graph."""
        record = parse_line("$ fold node_a", 0, id_supplier=id_supplier)

        assert record.is_script
        assert not record.is_valid
        assert record.label == ""


class TestMeasureDepth:
    """Tests for indentation measurement."""

    @pytest.mark.parametrize(
        "line,indent_size,expected",
        [
            ("- a", 2, 0),
            ("  - a", 2, 1),
            ("    - a", 2, 2),
            ("\t- a", 2, 1),
            ("\t\t- a", 4, 2),
            ("    - a", 4, 1),
            ("\t  - a", 2, 2),
            (" - a", 2, 1),
            ("   - a", 2, 2),
        ],
    )
    def test_depth(self, line, indent_size, expected):
        """Test indent units are counted from spaces and tabs."""
        assert measure_depth(line, indent_size) == expected

    def test_parse_line_uses_indent_size(self, id_supplier):
        """Test parse_line honours a custom indent size."""
        record = parse_line("        - Deep", 0, id_supplier=id_supplier, indent_size=4)

        assert record.depth == 2


class TestMetadata:
    """Tests for the component section after the separator."""

    def test_all_components(self, id_supplier):
        """Test visibility, highlight, id and links are classified."""
        record = parse_line(
            "- Task // [+] [!] task1 >out1 <in1 >out2", 0, id_supplier=id_supplier
        )

        assert record.label == "Task"
        assert record.has_component_section
        assert record.visibility is Visibility.FOLD
        assert record.is_highlight
        assert record.explicit_id == "task1"
        assert record.id == "task1"
        assert not record.is_placeholder_id
        assert record.ids_out == ["out1", "out2"]
        assert record.ids_in == ["in1"]

    @pytest.mark.parametrize(
        "token,visibility",
        [("[+]", Visibility.FOLD), ("[++]", Visibility.FOLD_HIDDEN), ("[x]", Visibility.HIDE)],
    )
    def test_visibility_tokens(self, token, visibility, id_supplier):
        """Test each visibility token."""
        record = parse_line(f"- A // {token}", 0, id_supplier=id_supplier)

        assert record.visibility is visibility
        assert record.explicit_id is None

    def test_punctuation_stripped_from_ids(self, id_supplier):
        """Test punctuation is removed from id tokens."""
        record = parse_line("- A // my-id >b.c <d:e", 0, id_supplier=id_supplier)

        assert record.explicit_id == "myid"
        assert record.ids_out == ["bc"]
        assert record.ids_in == ["de"]

    def test_underscores_survive(self, id_supplier):
        """Test underscores are valid id characters."""
        record = parse_line("- A // id_c2", 0, id_supplier=id_supplier)

        assert record.explicit_id == "id_c2"

    def test_duplicate_links_kept(self, id_supplier):
        """Test repeated references are all recorded."""
        record = parse_line("- A // >b >b", 0, id_supplier=id_supplier)

        assert record.ids_out == ["b", "b"]

    def test_bare_sigil_ignored(self, id_supplier):
        """Test a sigil without id is not a link."""
        record = parse_line("- A // > <", 0, id_supplier=id_supplier)

        assert record.ids_out == []
        assert record.ids_in == []
        assert record.explicit_id is None

    def test_empty_section(self, id_supplier):
        """Test a separator without tokens."""
        record = parse_line("- A //", 0, id_supplier=id_supplier)

        assert record.has_component_section
        assert record.label == "A"
        assert record.explicit_id is None

    def test_placeholder_still_generated_with_explicit_id(self, id_supplier):
        """Test the placeholder is kept next to the explicit id."""
        record = parse_line("- A // a", 0, id_supplier=id_supplier)

        assert record.placeholder_id == "ph_1"
        assert record.id == "a"


class TestHelpers:
    """Tests for label and id sanitizers."""

    def test_sanitize_label(self):
        assert sanitize_label("  <b>bold</b> & co ") == "bbold/b  co"

    def test_strip_id(self):
        assert strip_id(">node-1.{x}") == "node1x"


class TestRenderComponentSection:
    """Tests for rendering metadata back to text."""

    def test_empty_record(self):
        """Test nothing is rendered for a record without metadata."""
        assert render_component_section(LineRecord()) == ""

    def test_token_order(self):
        """Test tokens are written visibility first, then highlight, id, links."""
        record = LineRecord(
            visibility=Visibility.HIDE,
            is_highlight=True,
            explicit_id="n1",
            ids_out=["a", "b"],
            ids_in=["c"],
        )

        assert render_component_section(record) == "// [x] [!] n1 >a >b <c"

    def test_placeholder_id_not_written(self):
        """Test placeholder ids stay out of the document."""
        record = LineRecord(placeholder_id="ph_9", visibility=Visibility.FOLD)

        assert render_component_section(record) == "// [+]"


class TestRewriteLine:
    """Tests for rewriting a line with updated metadata."""

    def test_replace_existing_section(self, id_supplier):
        """Test the section is replaced and the head kept."""
        record = parse_line("  - Task // [+] t1", 0, id_supplier=id_supplier)
        record.visibility = Visibility.NORMAL

        assert rewrite_line(record) == "  - Task // t1"

    def test_empty_section_collapses(self, id_supplier):
        """Test an emptied section disappears with its separator."""
        record = parse_line("  - Task // [+]", 0, id_supplier=id_supplier)
        record.visibility = Visibility.NORMAL

        assert rewrite_line(record) == "  - Task"

    def test_append_section(self, id_supplier):
        """Test a section is appended to a line without one."""
        record = parse_line("\t- Task", 0, id_supplier=id_supplier)
        record.visibility = Visibility.FOLD

        assert rewrite_line(record) == "\t- Task // [+]"

    def test_label_text_untouched(self, id_supplier):
        """Test quotes and unsafe characters in the label are kept verbatim."""
        record = parse_line('- Say "hi" & bye // x', 0, id_supplier=id_supplier)
        record.is_highlight = True

        assert rewrite_line(record) == '- Say "hi" & bye // [!] x'

    def test_unchanged_record_round_trips(self, id_supplier):
        """Test a parsed line rewrites to the same text."""
        line = "    > Step // [x] [!] s1 >a <b"
        record = parse_line(line, 0, id_supplier=id_supplier)

        assert rewrite_line(record) == line
