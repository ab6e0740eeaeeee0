import unittest

from bs4 import BeautifulSoup
from bs4.element import Comment

from lingualive.extractor import (
    NodeKind,
    classify,
    describe,
    extract_display_leaves,
    extract_units,
)
from lingualive.structures import UnitKind


def parse(markup):
    return BeautifulSoup(markup, "html.parser")


def summarise(units):
    return [(unit.kind, unit.original_text) for unit in units]


class ClassifyTests(unittest.TestCase):
    def test_node_kinds(self):
        soup = parse(
            "<div><p>Hi</p><input><textarea></textarea><select></select>"
            "<script>x = 1;</script><!-- note --></div>"
        )
        self.assertIs(classify(soup.p.string), NodeKind.TEXT)
        self.assertIs(classify(soup.p), NodeKind.CONTAINER)
        self.assertIs(classify(soup.input), NodeKind.FIELD)
        self.assertIs(classify(soup.textarea), NodeKind.FIELD)
        self.assertIs(classify(soup.select), NodeKind.OPTION_LIST)
        self.assertIs(classify(soup.script), NodeKind.SKIP)
        self.assertIs(classify(soup.script.string), NodeKind.SKIP)
        comment = soup.find(string=lambda value: isinstance(value, Comment))
        self.assertIs(classify(comment), NodeKind.SKIP)


class ExtractUnitsTests(unittest.TestCase):
    def test_pre_order_over_nested_content(self):
        soup = parse(
            "<div><h1>Title</h1><div><p>One <b>two</b></p>"
            '<input placeholder="Search"></div><p>Three</p></div>'
        )
        units = extract_units(soup)
        self.assertEqual(
            summarise(units),
            [
                (UnitKind.TEXT_CONTENT, "Title"),
                (UnitKind.TEXT_CONTENT, "One "),
                (UnitKind.TEXT_CONTENT, "two"),
                (UnitKind.PLACEHOLDER, "Search"),
                (UnitKind.TEXT_CONTENT, "Three"),
            ],
        )

    def test_extraction_is_deterministic(self):
        soup = parse(
            '<div><p>A</p><select><option>Yes</option><option>No</option></select>'
            '<input placeholder="P" value="V"><span>B</span></div>'
        )
        first = [(unit.kind, unit.original_text, id(unit.node)) for unit in extract_units(soup)]
        second = [(unit.kind, unit.original_text, id(unit.node)) for unit in extract_units(soup)]
        self.assertEqual(first, second)

    def test_placeholder_without_value_yields_single_unit(self):
        soup = parse('<input placeholder="Search">')
        units = extract_units(soup)
        self.assertEqual(summarise(units), [(UnitKind.PLACEHOLDER, "Search")])
        self.assertFalse([unit for unit in units if unit.kind is UnitKind.VALUE])

    def test_input_with_placeholder_and_value(self):
        soup = parse('<input type="text" placeholder="Name" value="Anonymous">')
        self.assertEqual(
            summarise(extract_units(soup)),
            [(UnitKind.PLACEHOLDER, "Name"), (UnitKind.VALUE, "Anonymous")],
        )

    def test_button_input_value_is_translated(self):
        soup = parse('<input type="submit" value="Send">')
        self.assertEqual(summarise(extract_units(soup)), [(UnitKind.VALUE, "Send")])

    def test_non_text_input_values_are_ignored(self):
        soup = parse(
            '<form><input type="hidden" value="token"><input type="password" value="secret">'
            '<input type="email" value="a@b.c"><input value="   "></form>'
        )
        self.assertEqual(extract_units(soup), [])

    def test_textarea_content_is_its_value(self):
        soup = parse('<textarea placeholder="Notes">Write here</textarea>')
        self.assertEqual(
            summarise(extract_units(soup)),
            [(UnitKind.PLACEHOLDER, "Notes"), (UnitKind.VALUE, "Write here")],
        )

    def test_select_yields_one_unit_per_option(self):
        soup = parse("<select><option>Yes</option><option>No</option></select>")
        units = extract_units(soup)
        self.assertEqual(
            summarise(units),
            [(UnitKind.OPTION_LABEL, "Yes"), (UnitKind.OPTION_LABEL, "No")],
        )
        options = soup.find_all("option")
        self.assertIs(units[0].node, options[0])
        self.assertIs(units[1].node, options[1])

    def test_option_labels_collapse_whitespace_and_skip_blanks(self):
        soup = parse(
            '<select><optgroup label="G"><option>  First \n choice </option></optgroup>'
            "<option> </option></select>"
        )
        self.assertEqual(
            summarise(extract_units(soup)),
            [(UnitKind.OPTION_LABEL, "First choice")],
        )

    def test_scripts_styles_and_comments_are_skipped(self):
        soup = parse(
            '<div><p>Hi</p><script>var x = "hello";</script>'
            "<style>p { color: red; }</style><!-- note --><noscript>Enable JS</noscript></div>"
        )
        self.assertEqual(summarise(extract_units(soup)), [(UnitKind.TEXT_CONTENT, "Hi")])

    def test_whitespace_only_text_yields_nothing(self):
        soup = parse("<div>\n   <p> </p>\t</div>")
        self.assertEqual(extract_units(soup), [])

    def test_text_node_root(self):
        soup = parse("<p>Hello</p>")
        units = extract_units(soup.p.string)
        self.assertEqual(summarise(units), [(UnitKind.TEXT_CONTENT, "Hello")])

    def test_deep_nesting_is_walked(self):
        markup = "<div>" * 1500 + "Deep" + "</div>" * 1500
        soup = parse(markup)
        self.assertEqual(summarise(extract_units(soup)), [(UnitKind.TEXT_CONTENT, "Deep")])


class WriteBackTests(unittest.TestCase):
    def test_text_unit_replaces_text_node(self):
        soup = parse("<p>Hello <b>world</b></p>")
        units = extract_units(soup)
        units[0].apply("Hola ")
        units[1].apply("mundo")
        self.assertEqual(str(soup), "<p>Hola <b>mundo</b></p>")

    def test_attribute_units_overwrite_attributes(self):
        soup = parse('<input placeholder="Name" value="Anonymous">')
        placeholder, value = extract_units(soup)
        placeholder.apply("Nombre")
        value.apply("Anónimo")
        self.assertEqual(soup.input["placeholder"], "Nombre")
        self.assertEqual(soup.input["value"], "Anónimo")

    def test_textarea_and_option_units_replace_content(self):
        soup = parse("<textarea>Write here</textarea><select><option>Yes</option></select>")
        value, option = extract_units(soup)
        value.apply("Escribe aquí")
        option.apply("Sí")
        self.assertEqual(soup.textarea.string, "Escribe aquí")
        self.assertEqual(str(soup.option), "<option>Sí</option>")


class DisplayLeavesTests(unittest.TestCase):
    def test_only_leaf_display_elements_are_selected(self):
        soup = parse(
            "<div><p>Hello</p><p>Hi <b>there</b></p><li> </li>"
            "<div>Skip</div><span>Leaf</span><a href='#'>Link</a></div>"
        )
        units = extract_display_leaves(soup)
        self.assertEqual(
            summarise(units),
            [
                (UnitKind.TEXT_CONTENT, "Hello"),
                (UnitKind.TEXT_CONTENT, "Leaf"),
                (UnitKind.TEXT_CONTENT, "Link"),
            ],
        )

    def test_leaf_setter_replaces_whole_text(self):
        soup = parse("<button>Close</button>")
        (unit,) = extract_display_leaves(soup)
        unit.apply("Cerrar")
        self.assertEqual(str(soup), "<button>Cerrar</button>")

    def test_text_root_has_no_display_leaves(self):
        soup = parse("<p>Hello</p>")
        self.assertEqual(extract_display_leaves(soup.p.string), [])


class DescribeTests(unittest.TestCase):
    def test_describe_builds_tag_path(self):
        soup = parse('<div id="menu"><p>Hi</p></div>')
        self.assertEqual(describe(soup.p.string), "div#menu > p > #text")
        self.assertEqual(describe(soup.p), "div#menu > p")


if __name__ == "__main__":
    unittest.main()
