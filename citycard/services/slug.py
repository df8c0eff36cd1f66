"""
City slug utilities.

Turns a human-entered city name into a deterministic, path-safe identifier.
Letters and digits of every script are kept (杭州 stays 杭州); only
punctuation, whitespace and symbols collapse to dashes.
"""

import re
import unicodedata

# Combining diacritical marks block
_COMBINING_MARKS = re.compile("[\u0300-\u036f]")
_DASH_RUN = re.compile(r"-{2,}")

UNKNOWN_CITY = "unknown-city"


def _is_letter_or_number(ch: str) -> bool:
    return unicodedata.category(ch)[0] in ("L", "N")


def _dash_non_alnum(text: str) -> str:
    """Replace each maximal run of non letter/number characters with one dash."""
    out = []
    in_run = False
    for ch in text:
        if _is_letter_or_number(ch):
            out.append(ch)
            in_run = False
        elif not in_run:
            out.append("-")
            in_run = True
    return "".join(out)


def _hex_fallback(text: str) -> str:
    return "u-" + "".join(f"{ord(ch):04x}" for ch in text)


def slugify_city(city: str) -> str:
    """
    Convert a city name to a slug.

    Never raises and never returns an empty string. Names made only of
    symbols or emoji fall back to their hex codepoints ("🌆" -> "u-1f306").
    """
    trimmed = (city or "").strip()

    compact = unicodedata.normalize("NFKD", trimmed)
    compact = _COMBINING_MARKS.sub("", compact)
    compact = _dash_non_alnum(compact)
    compact = _DASH_RUN.sub("-", compact.strip("-"))
    compact = compact.lower()

    if compact:
        return compact

    if not trimmed:
        return UNKNOWN_CITY

    return _hex_fallback(trimmed)
