"""Tests for Bracketeer parser."""

import pytest
from bracketeer.parser import (
    ParseError,
    TagType,
    build_pattern,
    find_tag_names,
    is_valid_tag,
    is_valid_tag_name,
    iter_matches,
    merge_defaults,
    parse_all,
    parse_attributes,
    parse_tag,
    strip_c_slashes,
)


class TestPattern:
    """Test the six-group tag pattern."""

    def test_self_closing_groups(self):
        """Self-closing tags set group 4 and leave content unset."""
        found = build_pattern(["img"]).search('x [img src="a.png" /] y')
        assert found.groups() == ("", "img", ' src="a.png" ', "/", None, "")

    def test_enclosing_groups(self):
        found = build_pattern(["b"]).search("[b]bold[/b]")
        assert found.group(2) == "b"
        assert found.group(5) == "bold"

    def test_escaped_groups(self):
        found = build_pattern(["b"]).search("[[b]]")
        assert found.group(1) == "["
        assert found.group(6) == "]"

    def test_name_must_not_continue(self):
        """[tag2] and [tag-x] are not [tag]."""
        pattern = build_pattern(["tag"])
        assert pattern.search("[tag2]") is None
        assert pattern.search("[tag-x]") is None
        assert pattern.search("[tag x=1]") is not None

    def test_slash_inside_attribute(self):
        found = build_pattern(["link"]).search('[link href="http://a/b"]go[/link]')
        assert found.group(3) == ' href="http://a/b"'
        assert found.group(4) is None
        assert found.group(5) == "go"

    def test_names_are_escaped(self):
        pattern = build_pattern(["a.b"])
        assert pattern.search("[axb]") is None
        assert pattern.search("[a.b]") is not None

    def test_pattern_is_cached_by_name_set(self):
        assert build_pattern(["a", "b"]) is build_pattern(["b", "a", "a"])

    def test_empty_name_set_rejected(self):
        with pytest.raises(ValueError):
            build_pattern([])


class TestMatches:
    """Test match extraction."""

    def test_tag_types(self):
        text = "[a]x[/a] [a /] [[a]] [a]"
        types = [match.tag_type for match in iter_matches(text, ["a"])]
        assert types == [TagType.DOUBLE, TagType.SINGLE, TagType.ESCAPED, TagType.BARE]

    def test_absent_and_empty_content_differ(self):
        empty, bare = parse_all("[a][/a] and [a]", ["a"])
        assert bare.content is None
        assert empty.content == ""

    def test_same_name_nesting_captures_inner_markup(self):
        """The outer tag's content keeps the nested tag verbatim."""
        matches = parse_all("[box][box]inner[/box]outer[/box]", ["box"])
        assert len(matches) == 1
        assert matches[0].content == "[box]inner[/box]outer"
        assert matches[0].raw == "[box][box]inner[/box]outer[/box]"

    def test_deep_same_name_nesting(self):
        matches = parse_all("[box][box][box]a[/box]b[/box]c[/box] d", ["box"])
        assert len(matches) == 1
        assert matches[0].content == "[box][box]a[/box]b[/box]c"

    def test_escaped_tag_inside_content_is_literal(self):
        matches = parse_all("[box][[box]] a[/box] b[/box]", ["box"])
        assert len(matches) == 1
        assert matches[0].content == "[[box]] a"
        assert matches[0].raw == "[box][[box]] a[/box]"

    def test_unbalanced_nesting_uses_first_close(self):
        matches = parse_all("[box]a [box] b[/box] tail", ["box"])
        assert len(matches) == 1
        assert matches[0].content == "a [box] b"

    def test_sibling_tags_are_separate(self):
        matches = parse_all("[b]1[/b] [b]2[/b]", ["b"])
        assert [match.content for match in matches] == ["1", "2"]

    def test_self_closing_inner_tag_does_not_nest(self):
        matches = parse_all("[box][box /]x[/box] [box]y[/box]", ["box"])
        assert [match.content for match in matches] == ["[box /]x", "y"]

    def test_spans_cover_raw_text(self):
        text = "pre [q a=1]x[/q] post"
        match = parse_all(text, ["q"])[0]
        assert text[match.start : match.end] == match.raw == "[q a=1]x[/q]"
        assert match.attributes == {"a": "1"}

    def test_unregistered_names_ignored(self):
        assert parse_all("[unknown]x[/unknown]", ["b"]) == []

    def test_find_tag_names(self):
        assert find_tag_names("[a] [b x=1] [/a] [[c]]") == ["a", "b", "c"]


class TestParseTag:
    """Test single-tag parsing."""

    def test_parse_self_closing(self):
        tag = parse_tag("[hello /]")
        assert tag.tag_type == TagType.SINGLE
        assert tag.name == "hello"

    def test_parse_container(self):
        tag = parse_tag("[echo]Hello World[/echo]")
        assert tag.tag_type == TagType.DOUBLE
        assert tag.content == "Hello World"

    def test_is_valid_tag(self):
        assert is_valid_tag("[hello /]") is True
        assert is_valid_tag("[echo]content[/echo]") is True
        assert is_valid_tag("not a tag") is False
        assert is_valid_tag("[incomplete") is False
        assert is_valid_tag("[a] trailing [b]") is False

    def test_parse_tag_rejects_malformed(self):
        with pytest.raises(ParseError):
            parse_tag("[]")


class TestAttributes:
    """Test attribute parsing."""

    def test_mixed_quoting_and_bare_token(self):
        assert parse_attributes(' a="1" b=\'2\' c=3 bare ') == {"a": "1", "b": "2", "c": "3", 0: "bare"}

    def test_positional_only(self):
        assert parse_attributes(" \"one\" 'two' three") == ["one", "two", "three"]

    def test_empty_and_whitespace(self):
        assert parse_attributes("") == ""
        assert parse_attributes("   ") == ""

    def test_empty_quotes_give_empty_list(self):
        assert parse_attributes('""') == []

    def test_names_are_lower_cased(self):
        assert parse_attributes(' Title="Hi"') == {"title": "Hi"}

    def test_spaces_around_equals(self):
        assert parse_attributes(' width = "100" ') == {"width": "100"}

    def test_backslash_escapes_resolved(self):
        assert parse_attributes(r' text="a\tb"') == {"text": "a\tb"}

    def test_non_breaking_spaces_separate_attributes(self):
        assert parse_attributes('a="1"\u00a0b="2"\u200bc="3"') == {"a": "1", "b": "2", "c": "3"}

    def test_closed_markup_kept(self):
        assert parse_attributes(' title="<b>bold</b>"') == {"title": "<b>bold</b>"}

    def test_unclosed_markup_rejected(self):
        assert parse_attributes(' title="<b oops" x=1') == {"title": "", "x": "1"}
        assert parse_attributes(' "<i"') == [""]

    def test_strip_c_slashes(self):
        assert strip_c_slashes(r"say \"hi\"") == 'say "hi"'
        assert strip_c_slashes(r"\x41\101\\") == "AA\\"
        assert strip_c_slashes("plain") == "plain"


class TestMergeDefaults:
    """Test default filling."""

    def test_supplied_values_win_even_when_empty(self):
        merged = merge_defaults({"a": "x", "b": "y"}, {"a": "", "c": "z"})
        assert merged == {"a": "", "b": "y"}

    def test_positional_attributes_fall_back_to_defaults(self):
        assert merge_defaults({"a": "x"}, ["one", "two"]) == {"a": "x"}

    def test_string_attributes_fall_back_to_defaults(self):
        assert merge_defaults({"a": "x"}, "") == {"a": "x"}


class TestTagNames:
    """Test tag-name validation."""

    @pytest.mark.parametrize("name", ["b", "lxw-badge", "metatags_key", "x.y"])
    def test_valid(self, name):
        assert is_valid_tag_name(name) is True

    @pytest.mark.parametrize("name", ["", "   ", "a b", "a/b", "a]", "[a", "a<b", "a&b", "a=b", "a\tb"])
    def test_invalid(self, name):
        assert is_valid_tag_name(name) is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
