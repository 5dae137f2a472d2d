"""
Data-driven field extraction.

Upstream markup and JSON schemas drift, so every field is read with an
ordered chain of fallback rules. A rule is a pure function
`node -> str | None`; the first rule yielding a non-empty value wins.
A new source is a new ExtractionProfile, not a new code path.

HTML is parsed with BeautifulSoup; JSON nodes are plain dicts.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Tag

from normalization.text import clean_text


Rule = Callable[[Any], Optional[str]]

HTML_PARSER = "html.parser"


def parse_html(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, HTML_PARSER)


def _attr_value(tag: Tag, attribute: str) -> Optional[str]:
    value = tag.get(attribute)
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


# =============================================================
# RULE FACTORIES
# =============================================================


def css_text(selector: str) -> Rule:
    """Text of the first descendant matching a CSS selector."""
    def rule(node: Any) -> Optional[str]:
        if not isinstance(node, Tag):
            return None
        found = node.select_one(selector)
        if found is None:
            return None
        return found.get_text(" ", strip=True)
    return rule


def css_attr(selector: str, attribute: str) -> Rule:
    """Attribute of the first descendant matching a CSS selector."""
    def rule(node: Any) -> Optional[str]:
        if not isinstance(node, Tag):
            return None
        found = node.select_one(selector)
        if found is None:
            return None
        return _attr_value(found, attribute)
    return rule


def cell_text(index: int) -> Rule:
    """Text of the n-th table cell of a row."""
    def rule(node: Any) -> Optional[str]:
        if not isinstance(node, Tag):
            return None
        cells = node.find_all(["td", "th"])
        if index < len(cells):
            return cells[index].get_text(" ", strip=True)
        return None
    return rule


def own_attr(attribute: str) -> Rule:
    """Attribute of the node itself (e.g. data-currency on the row)."""
    def rule(node: Any) -> Optional[str]:
        if not isinstance(node, Tag):
            return None
        return _attr_value(node, attribute)
    return rule


def own_text() -> Rule:
    """Text of the node itself."""
    def rule(node: Any) -> Optional[str]:
        if not isinstance(node, Tag):
            return None
        return node.get_text(" ", strip=True)
    return rule


def json_field(*keys: str) -> Rule:
    """Nested lookup in a JSON object: json_field("source", "name")."""
    def rule(node: Any) -> Optional[str]:
        current = node
        for key in keys:
            if not isinstance(current, dict):
                return None
            current = current.get(key)
            if current is None:
                return None
        if isinstance(current, (dict, list)):
            return None
        return str(current)
    return rule


def first_non_empty(rules: Iterable[Rule], node: Any) -> Optional[str]:
    """Apply rules in order and return the first non-empty cleaned value."""
    for rule in rules:
        value = clean_text(rule(node))
        if value:
            return value
    return None


# =============================================================
# PROFILES
# =============================================================


@dataclass(frozen=True)
class ExtractionProfile:
    """
    Row selectors plus per-field rule chains for one page layout.

    Rows matched by several selectors are returned once, in the order
    they were first found.
    """
    row_selectors: Sequence[str]
    fields: dict[str, Sequence[Rule]] = field(default_factory=dict)
    skip_classes: Sequence[str] = ()

    def rows(self, soup: Any) -> list[Tag]:
        seen: set[int] = set()
        rows: list[Tag] = []
        for selector in self.row_selectors:
            for row in soup.select(selector):
                if id(row) in seen or self._is_skipped(row):
                    continue
                seen.add(id(row))
                rows.append(row)
        return rows

    def extract(self, node: Any) -> dict[str, str]:
        return {
            name: first_non_empty(rules, node) or ""
            for name, rules in self.fields.items()
        }

    def _is_skipped(self, row: Tag) -> bool:
        if not self.skip_classes:
            return False
        classes = row.get("class") or []
        return any(cls in classes for cls in self.skip_classes)
