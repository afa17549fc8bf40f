"""Ingredient line normalization utilities."""

import re
import unicodedata

UNIT_WORDS = (
    "g",
    "kg",
    "hg",
    "mg",
    "dl",
    "cl",
    "l",
    "ml",
    "msk",
    "tsk",
    "krm",
    "st",
    "styck",
    "förp",
    "pkt",
    "burk",
    "burkar",
    "klyfta",
    "klyftor",
    "blad",
)

STOPWORDS = (
    "att",
    "till",
    "i",
    "ca",
    "cirka",
    "gärna",
    "valfritt",
    "finhackad",
    "hackad",
    "skivad",
    "riven",
    "nymalen",
    "nystött",
    "att steka i",
    "till stekning",
    "att garnera med",
)

_VULGAR_FRACTIONS = {"½": " 1/2 ", "¼": " 1/4 ", "¾": " 3/4 "}

_PARENTHESIZED = re.compile(r"\([^)]*\)")
_LEADING_QUANTITY = re.compile(r"^(?:\d+\s+\d+/\d+|\d+/\d+|\d+(?:[.,]\d+)?)\s*")
_LEADING_UNIT = re.compile(
    r"^(?:" + "|".join(re.escape(unit) for unit in UNIT_WORDS) + r")\b\s*",
    re.IGNORECASE,
)
# A comma between two digits is a decimal separator ("1,5 dl"), not a comment.
_COMMENT_COMMA = re.compile(r"(?<!\d),|,(?!\d)")
_TRADEMARKS = re.compile(r"[®™]")
_WHITESPACE = re.compile(r"\s+")
# Longest phrases first so "att steka i" goes before "att" and "i".
_STOPWORD_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(word)}\b")
    for word in sorted(STOPWORDS, key=len, reverse=True)
)


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def normalize_ingredient(line: str) -> str:
    """Reduce a recipe ingredient line to a bare, matchable ingredient name.

    "2 dl mjölk" becomes "mjölk" and "1 msk olivolja, att steka i" becomes
    "olivolja". Returns an empty string when nothing but quantities, units
    and filler words remain.
    """
    s = line.strip().lower()
    s = _PARENTHESIZED.sub(" ", s)
    # Anything after a comma is a comment: "smör, att steka i"
    s = _COMMENT_COMMA.split(s, maxsplit=1)[0].strip()

    for glyph, ascii_fraction in _VULGAR_FRACTIONS.items():
        s = s.replace(glyph, ascii_fraction)
    s = s.strip()

    s = _LEADING_QUANTITY.sub("", s, count=1)
    s = _LEADING_UNIT.sub("", s, count=1)
    s = _TRADEMARKS.sub("", s)
    s = _collapse(s)

    for pattern in _STOPWORD_PATTERNS:
        s = pattern.sub("", s).strip()

    return _collapse(s)


def fold_text(text: str) -> str:
    """Case and whitespace fold used for duplicate comparisons."""
    return unicodedata.normalize("NFC", text).strip().lower()
