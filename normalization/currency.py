"""
Currency Normalization - single lookup table for currency resolution.

Sources describe currencies as ISO codes ("EUR"), countries or regions
("Euro Zone", "Germany"), currency names ("Japanese Yen") or central
bank tokens ("ECB", "BoJ"). Everything resolves through CURRENCY_ALIASES.
"""

import re
from typing import Optional

from .models import BASE_CURRENCY, SUPPORTED_CURRENCIES


# Lowercased alias -> ISO code
CURRENCY_ALIASES: dict[str, str] = {
    # United States
    "us": "USD",
    "usa": "USD",
    "u.s.": "USD",
    "united states": "USD",
    "america": "USD",
    "us dollar": "USD",
    "u.s. dollar": "USD",
    "dollar": "USD",
    "greenback": "USD",
    "federal reserve": "USD",
    "fed": "USD",
    "fomc": "USD",
    "powell": "USD",
    # Euro area
    "euro area": "EUR",
    "euro zone": "EUR",
    "eurozone": "EUR",
    "european union": "EUR",
    "emu": "EUR",
    "eu": "EUR",
    "germany": "EUR",
    "france": "EUR",
    "italy": "EUR",
    "spain": "EUR",
    "netherlands": "EUR",
    "euro": "EUR",
    "ecb": "EUR",
    "european central bank": "EUR",
    "lagarde": "EUR",
    # United Kingdom
    "uk": "GBP",
    "united kingdom": "GBP",
    "great britain": "GBP",
    "britain": "GBP",
    "england": "GBP",
    "pound": "GBP",
    "sterling": "GBP",
    "pound sterling": "GBP",
    "british pound": "GBP",
    "boe": "GBP",
    "bank of england": "GBP",
    # Japan
    "japan": "JPY",
    "yen": "JPY",
    "japanese yen": "JPY",
    "boj": "JPY",
    "bank of japan": "JPY",
    # Canada
    "canada": "CAD",
    "canadian dollar": "CAD",
    "loonie": "CAD",
    "boc": "CAD",
    "bank of canada": "CAD",
    # Australia
    "australia": "AUD",
    "australian dollar": "AUD",
    "aussie": "AUD",
    "rba": "AUD",
    "reserve bank of australia": "AUD",
    # New Zealand
    "new zealand": "NZD",
    "new zealand dollar": "NZD",
    "kiwi": "NZD",
    "rbnz": "NZD",
    "reserve bank of new zealand": "NZD",
    # Switzerland
    "switzerland": "CHF",
    "swiss franc": "CHF",
    "franc": "CHF",
    "snb": "CHF",
    "swiss national bank": "CHF",
}

# Aliases that are too ambiguous to trigger on inside free text
# ("us" is a pronoun, "dollar" alone is every dollar bloc).
_FREE_TEXT_EXCLUDED = frozenset({"us", "eu", "emu", "dollar", "franc", "fed", "euro"})

_CODE_PATTERN = re.compile(r"\b(" + "|".join(SUPPORTED_CURRENCIES) + r")\b")

_ALIAS_PATTERN = re.compile(
    r"(?<![a-z])("
    + "|".join(
        re.escape(alias)
        for alias in sorted(CURRENCY_ALIASES, key=len, reverse=True)
        if alias not in _FREE_TEXT_EXCLUDED
    )
    + r")(?![a-z])"
)


def _clean(text: Optional[str]) -> str:
    if not text:
        return ""
    return " ".join(str(text).split())


def resolve_currency(text: Optional[str]) -> Optional[str]:
    """
    Resolve free text or a code to a supported ISO code.

    Order: exact code, alias table, then an embedded supported code
    ("EUR/USD" resolves to EUR). Returns None when nothing matches.
    """
    cleaned = _clean(text)
    if not cleaned:
        return None

    upper = cleaned.upper()
    if upper in SUPPORTED_CURRENCIES:
        return upper

    alias = CURRENCY_ALIASES.get(cleaned.lower().strip(" .,"))
    if alias:
        return alias

    match = _CODE_PATTERN.search(upper)
    if match:
        return match.group(1)

    return None


def normalize_currency(text: Optional[str]) -> str:
    """
    Resolve to a supported code, falling back to BASE_CURRENCY.

    The fallback is lossy. Adapters use resolve_currency() instead so
    that unresolvable records are dropped rather than relabelled.
    """
    return resolve_currency(text) or BASE_CURRENCY


def extract_currencies(text: Optional[str]) -> list[str]:
    """
    Find every supported currency mentioned in a headline.

    Matches ISO codes (case-sensitive, word-bounded) and unambiguous
    names. Results are in first-mention order without duplicates.
    """
    cleaned = _clean(text)
    if not cleaned:
        return []

    hits: list[tuple[int, str]] = []
    for match in _CODE_PATTERN.finditer(cleaned):
        hits.append((match.start(), match.group(1)))
    for match in _ALIAS_PATTERN.finditer(cleaned.lower()):
        hits.append((match.start(), CURRENCY_ALIASES[match.group(1)]))

    hits.sort(key=lambda hit: hit[0])

    found: list[str] = []
    for _, code in hits:
        if code not in found:
            found.append(code)
    return found
