# storefront/utils/collation.py
#
# Ukrainian collation for product names, close to what a browser does with
# localeCompare(a, b, "uk"): spaces and punctuation first, then digits, then
# Cyrillic in Ukrainian alphabet order, then Latin. Accents only break ties
# between otherwise equal strings, and case breaks ties after that
# (lowercase first).

import unicodedata
from typing import Iterable, List, Tuple

UKRAINIAN_ALPHABET = "абвгґдеєжзиіїйклмнопрстуфхцчшщьюя"
_UK_RANK = {ch: i for i, ch in enumerate(UKRAINIAN_ALPHABET)}

# Latin letters NFD does not decompose
_LATIN_EXTRA = {
    "ł": ("l", 1),
    "ø": ("o", 1),
    "đ": ("d", 1),
    "ß": ("ss", 0),
    "æ": ("ae", 0),
    "œ": ("oe", 0),
}

_GROUP_PUNCT = 0
_GROUP_DIGIT = 1
_GROUP_CYRILLIC = 2
_GROUP_LATIN = 3
_GROUP_OTHER = 4

Primary = Tuple[int, int]


def _char_weights(ch: str) -> List[Tuple[Primary, int, int]]:
    """Return (primary, secondary, tertiary) weights for one character."""
    lower = ch.lower()
    tertiary = 0 if ch == lower else 1

    if lower in _UK_RANK:
        return [((_GROUP_CYRILLIC, _UK_RANK[lower]), 0, tertiary)]

    if lower in _LATIN_EXTRA:
        base, accent = _LATIN_EXTRA[lower]
        return [((_GROUP_LATIN, ord(b) - ord("a")), accent, tertiary) for b in base]

    decomposed = unicodedata.normalize("NFD", lower)
    base = decomposed[0]
    marks = decomposed[1:]
    secondary = ord(marks[0]) if marks else 0

    if "a" <= base <= "z":
        return [((_GROUP_LATIN, ord(base) - ord("a")), secondary, tertiary)]
    if base in _UK_RANK:
        # e.g. a Russian "ё" decomposes to "е" + diaeresis
        return [((_GROUP_CYRILLIC, _UK_RANK[base]), secondary, tertiary)]
    if unicodedata.category(base).startswith("L") and "CYRILLIC" in unicodedata.name(base, ""):
        return [((_GROUP_CYRILLIC, 100 + ord(base)), secondary, tertiary)]
    if base.isdigit():
        return [((_GROUP_DIGIT, unicodedata.digit(base, 0)), 0, 0)]
    if base.isspace() or unicodedata.category(base)[0] in ("P", "S", "Z", "C"):
        return [((_GROUP_PUNCT, ord(base)), 0, 0)]
    return [((_GROUP_OTHER, ord(base)), secondary, tertiary)]


def uk_sort_key(text: str) -> Tuple[tuple, tuple, tuple, str]:
    weights = [w for ch in (text or "") for w in _char_weights(ch)]
    primary = tuple(w[0] for w in weights)
    secondary = tuple(w[1] for w in weights)
    tertiary = tuple(w[2] for w in weights)
    # last resort keeps the order total and deterministic
    return primary, secondary, tertiary, text or ""


def sort_uk(names: Iterable[str]) -> List[str]:
    return sorted(names, key=uk_sort_key)
