"""Tests for the structural SVG clean-up passes."""

import pytest

from mermaidflow.svg.cleaner import (
    collapse_tag_newlines,
    ensure_text_fill,
    node_id_from_group_id,
    normalize_entities,
    post_css_cleanup,
    prepare_markup,
    remove_empty_defs,
    remove_filters_and_clip_paths,
    remove_unsupported_elements,
    repair_font_family_quotes,
    replace_current_color,
    strip_node_group_strokes,
)
from mermaidflow.svg.markup import SVG_NS, XLINK_NS, ensure_namespace, parse_svg, serialize


def _apply(svg, *passes):
    soup = parse_svg(svg)
    for fn in passes:
        fn(soup)
    return serialize(soup)


class TestNodeIdFromGroupId:
    @pytest.mark.parametrize(
        "group_id, node_id",
        [
            ("flowchart-A-0", "A"),
            ("flowchart-Node_2-13", "Node_2"),
            ("mermaid-1-flowchart-start-4", "start"),
        ],
    )
    def test_node_groups(self, group_id, node_id):
        assert node_id_from_group_id(group_id) == node_id

    @pytest.mark.parametrize("group_id", ["", "L_A_B_0", "flowchart-A", "myflowchart-A-0"])
    def test_other_ids(self, group_id):
        assert node_id_from_group_id(group_id) is None


class TestRemoveUnsupportedElements:
    def test_removes_with_children(self):
        svg = (
            "<svg><title>Chart</title>"
            "<foreignObject width='10'><div xmlns='http://www.w3.org/1999/xhtml'>hi</div></foreignObject>"
            "<script/><rect/></svg>"
        )
        soup = parse_svg(svg)
        assert remove_unsupported_elements(soup) == 3
        assert serialize(soup) == "<svg><rect/></svg>"

    def test_nested_matches(self):
        soup = parse_svg("<svg><foreignObject><title>t</title></foreignObject><rect/></svg>")
        remove_unsupported_elements(soup)
        assert serialize(soup) == "<svg><rect/></svg>"

    def test_keeps_text(self):
        assert _apply("<svg><text>title</text></svg>", remove_unsupported_elements) == "<svg><text>title</text></svg>"


class TestCollapseTagNewlines:
    def test_attributes_joined(self):
        assert collapse_tag_newlines('<rect\n   x="1"\r\n   y="2"/>') == '<rect x="1" y="2"/>'

    def test_text_content_untouched(self):
        svg = "<text>line one\nline two</text>"
        assert collapse_tag_newlines(svg) == svg


class TestRepairFontFamilyQuotes:
    def test_nested_quotes(self):
        svg = '<text font-family=""trebuchet ms", verdana" x="1">a</text>'
        assert repair_font_family_quotes(svg) == "<text font-family=\"'trebuchet ms', verdana\" x=\"1\">a</text>"

    def test_well_formed_untouched(self):
        svg = '<text font-family="verdana, arial">a</text>'
        assert repair_font_family_quotes(svg) == svg


class TestNormalizeEntities:
    def test_html_entities(self):
        assert normalize_entities("a&nbsp;b R&D &copy; &amp; &#169; &lt;") == (
            "a&#160;b R&amp;D &amp;copy; &amp; &#169; &lt;"
        )


class TestPrepareMarkup:
    def test_repairs_before_parsing(self):
        svg = '<svg\n  width="10"><text>a&nbsp;b<br>c</text></svg>'
        assert prepare_markup(svg) == f'<svg xmlns="{SVG_NS}" width="10"><text>a&#160;b<br/>c</text></svg>'

    def test_parses_to_plain_text(self):
        soup = parse_svg(prepare_markup("<svg><text>R&D&nbsp;x</text></svg>"))
        assert soup.find("text").get_text() == "R&D\xa0x"


class TestFiltersAndClipPaths:
    def test_definitions_and_references_removed(self):
        svg = (
            '<svg><defs><filter id="f"><feGaussianBlur stdDeviation="2"/></filter>'
            '<clipPath id="c"><rect/></clipPath></defs>'
            '<rect filter="url(#f)" style="clip-path:url(#c);fill:red"/>'
            '<g clip-path="url(#c)"/></svg>'
        )
        out = _apply(svg, remove_filters_and_clip_paths, remove_empty_defs)
        assert out == '<svg><rect style="fill:red"/><g/></svg>'

    def test_style_dropped_when_emptied(self):
        out = _apply('<svg><rect style="filter:url(#f)"/></svg>', remove_filters_and_clip_paths)
        assert out == "<svg><rect/></svg>"

    def test_markers_in_defs_survive(self):
        svg = '<svg><defs><marker id="m"/></defs></svg>'
        assert _apply(svg, remove_filters_and_clip_paths, remove_empty_defs) == svg


class TestRemoveEmptyDefs:
    @pytest.mark.parametrize("defs", ["<defs/>", "<defs></defs>", "<defs>\n  </defs>"])
    def test_empty(self, defs):
        assert _apply(f"<svg>{defs}<rect/></svg>", remove_empty_defs) == "<svg><rect/></svg>"


class TestReplaceCurrentColor:
    def test_any_case(self):
        out = _apply('<svg><path stroke="currentColor" fill="currentcolor"/></svg>', replace_current_color)
        assert out == '<svg><path fill="#333333" stroke="#333333"/></svg>'

    def test_inline_style(self):
        soup = parse_svg('<svg><rect style="stroke:currentColor;fill:red"/></svg>')
        replace_current_color(soup, "#000")
        assert soup.find("rect")["style"] == "stroke:#000;fill:red"

    def test_text_content_untouched(self):
        soup = parse_svg('<svg><text fill="currentColor">Set stroke to currentColor</text></svg>')
        replace_current_color(soup)
        text = soup.find("text")
        assert text["fill"] == "#333333"
        assert text.get_text() == "Set stroke to currentColor"


class TestEnsureTextFill:
    def test_only_missing_fill(self):
        svg = '<svg><text>a</text><text fill="red">b</text><text style="fill: blue">c</text></svg>'
        assert _apply(svg, ensure_text_fill) == (
            '<svg><text fill="#333333">a</text><text fill="red">b</text><text style="fill: blue">c</text></svg>'
        )

    def test_tspan_untouched(self):
        svg = '<svg><text fill="red"><tspan>x</tspan></text></svg>'
        assert _apply(svg, ensure_text_fill) == svg


class TestStripNodeGroupStrokes:
    def test_node_group(self):
        svg = '<svg><g id="flowchart-A-0" stroke="#000" stroke-width="2" style="stroke:#111;opacity:1"><rect/></g></svg>'
        assert _apply(svg, strip_node_group_strokes) == '<svg><g id="flowchart-A-0" style="opacity:1"><rect/></g></svg>'

    def test_other_groups_untouched(self):
        svg = '<svg><g id="edges" stroke="#000"><rect stroke="#000"/></g></svg>'
        assert _apply(svg, strip_node_group_strokes) == svg


class TestEnsureNamespace:
    def test_adds_svg_namespace(self):
        assert ensure_namespace("<svg><rect/></svg>") == f'<svg xmlns="{SVG_NS}"><rect/></svg>'

    def test_adds_xlink_when_used(self):
        out = ensure_namespace(f'<svg xmlns="{SVG_NS}"><use xlink:href="#a"/></svg>')
        assert f'xmlns:xlink="{XLINK_NS}"' in out
        assert out.count("xmlns=") == 1

    def test_present_is_noop(self):
        svg = f'<svg xmlns="{SVG_NS}" width="10"></svg>'
        assert ensure_namespace(svg) == svg


class TestPostCssCleanup:
    def test_combined(self):
        svg = (
            '<svg><defs><filter id="f"/></defs>'
            '<g id="flowchart-A-0" stroke-width="2"><rect filter="url(#f)" stroke="currentColor"/>'
            "<text>A</text></g></svg>"
        )
        soup = parse_svg(svg)
        post_css_cleanup(soup)
        assert soup.find("defs") is None
        assert soup.find("g").attrs == {"id": "flowchart-A-0"}
        assert soup.find("rect").attrs == {"stroke": "#333333"}
        assert soup.find("text")["fill"] == "#333333"
