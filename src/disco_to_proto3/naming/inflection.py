"""English singular forms for resource collection names."""

from __future__ import annotations

_UNCOUNTABLE = frozenset(
    {
        "data",
        "equipment",
        "info",
        "information",
        "metadata",
        "news",
        "series",
        "settings",
        "species",
        "status",
    }
)

_IRREGULAR = {
    "children": "child",
    "people": "person",
    "indices": "index",
    "matrices": "matrix",
    "vertices": "vertex",
}

# Ordered most specific first; the first matching suffix wins.
_SUFFIX_RULES: tuple[tuple[str, str], ...] = (
    ("sses", "ss"),
    ("uses", "us"),
    ("xes", "x"),
    ("zzes", "zz"),
    ("ches", "ch"),
    ("shes", "sh"),
    ("ies", "y"),
    ("ss", "ss"),
    ("us", "us"),
    ("is", "is"),
    ("s", ""),
)


def singularize(word: str) -> str:
    """Return the singular form of a (possibly camel-cased) plural word.

    Only the trailing word of a camel-cased identifier is inflected, so
    ``targetHttpProxies`` becomes ``targetHttpProxy``.
    """
    if not word:
        return word
    head, tail = _split_last_word(word)
    lowered = tail.lower()
    if lowered in _UNCOUNTABLE:
        return word
    if lowered in _IRREGULAR:
        return head + _match_case(tail, _IRREGULAR[lowered])
    for suffix, replacement in _SUFFIX_RULES:
        if lowered.endswith(suffix) and len(lowered) > len(suffix):
            return head + tail[: len(tail) - len(suffix)] + replacement
    return word


def _split_last_word(word: str) -> tuple[str, str]:
    for index in range(len(word) - 1, 0, -1):
        if word[index].isupper():
            return word[:index], word[index:]
    return "", word


def _match_case(original: str, replacement: str) -> str:
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement
