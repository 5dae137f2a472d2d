"""
Tests for data-driven field extraction.

============================================================
PURPOSE
============================================================
1. Individual rule factories against HTML and JSON nodes
2. First non-empty rule wins
3. Profile row selection (dedupe, skip classes)

============================================================
"""

from event_sources.extraction import (
    ExtractionProfile,
    cell_text,
    css_attr,
    css_text,
    first_non_empty,
    json_field,
    own_attr,
    own_text,
    parse_html,
)


# ============================================================
# FIXTURES
# ============================================================

TABLE_HTML = """
<table>
  <tr class="row header"><th>Cur</th><th>Event</th></tr>
  <tr class="row event" data-currency="EUR">
    <td class="cur"> EUR </td>
    <td class="name"><a href="/ev/1">German ZEW</a></td>
    <td class="imp"><span title="High Impact" class="icon red"></span></td>
  </tr>
  <tr class="row event" data-currency="JPY">
    <td class="cur"></td>
    <td class="name">Tankan</td>
  </tr>
</table>
"""


def rows():
    return parse_html(TABLE_HTML).select("tr.event")


# ============================================================
# RULE TESTS
# ============================================================

class TestRules:

    def test_css_text_and_attr(self):
        row = rows()[0]
        assert css_text(".name")(row) == "German ZEW"
        assert css_attr(".name a", "href")(row) == "/ev/1"
        assert css_attr(".imp span", "class")(row) == "icon red"
        assert css_text(".missing")(row) is None

    def test_cell_text(self):
        row = rows()[0]
        assert cell_text(0)(row) == "EUR"
        assert cell_text(9)(row) is None

    def test_own_rules(self):
        row = rows()[1]
        assert own_attr("data-currency")(row) == "JPY"
        assert own_attr("data-nope")(row) is None
        assert own_text()(row) == "Tankan"

    def test_html_rules_ignore_json(self):
        assert css_text("td")({"td": "x"}) is None
        assert own_attr("id")({"id": "x"}) is None

    def test_json_field(self):
        node = {"source": {"name": "Reuters"}, "importance": 3, "tags": ["a"], "blank": None}
        assert json_field("source", "name")(node) == "Reuters"
        assert json_field("importance")(node) == "3"
        assert json_field("tags")(node) is None
        assert json_field("source")(node) is None
        assert json_field("blank")(node) is None
        assert json_field("source", "name", "deeper")(node) is None


class TestFirstNonEmpty:

    def test_falls_through_empty_values(self):
        row = rows()[1]
        rules = [css_text(".cur"), own_attr("data-currency")]
        assert first_non_empty(rules, row) == "JPY"

    def test_all_empty(self):
        assert first_non_empty([json_field("a")], {}) is None


# ============================================================
# PROFILE TESTS
# ============================================================

class TestExtractionProfile:

    def test_rows_dedupe_and_skip(self):
        profile = ExtractionProfile(
            row_selectors=("tr.event", "tr.row"),
            skip_classes=("header",),
        )
        found = profile.rows(parse_html(TABLE_HTML))

        assert [r.get("data-currency") for r in found] == ["EUR", "JPY"]

    def test_extract_fields(self):
        profile = ExtractionProfile(
            row_selectors=("tr.event",),
            fields={
                "currency": (css_text(".cur"), own_attr("data-currency")),
                "impact": (css_attr(".imp span", "title"),),
            },
        )
        extracted = [profile.extract(r) for r in profile.rows(parse_html(TABLE_HTML))]

        assert extracted == [
            {"currency": "EUR", "impact": "High Impact"},
            {"currency": "JPY", "impact": ""},
        ]
