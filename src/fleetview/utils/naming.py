"""English pluralization for resource kind names.

API servers name resource collections with the lower-cased plural of the
kind (``Deployment`` -> ``deployments``, ``NetworkPolicy`` ->
``networkpolicies``). Kinds are concatenated words, so the suffix rules match
on the end of the word rather than the whole word.
"""

from __future__ import annotations

import re

# Words that are identical in singular and plural form.
UNCOUNTABLE: frozenset[str] = frozenset(
    {
        "data",
        "endpoints",
        "equipment",
        "fish",
        "information",
        "news",
        "series",
        "sheep",
        "species",
    }
)

# Whole-word irregulars only; suffix matching would turn "sandbox" into "sandboxen".
IRREGULAR: dict[str, str] = {
    "child": "children",
    "person": "people",
    "man": "men",
    "woman": "women",
    "ox": "oxen",
    "quiz": "quizzes",
    "index": "indices",
}

# Ordered (pattern, replacement) pairs; first match wins.
_SUFFIX_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(alias|status|bus|campus)$"), r"\1es"),
    (re.compile(r"(octop|vir)us$"), r"\1i"),
    (re.compile(r"(ax|test|cris)is$"), r"\1es"),
    (re.compile(r"(analy|ba|diagno|parenthe|progno|synop|the)sis$"), r"\1ses"),
    (re.compile(r"(matr|vert)ix$"), r"\1ices"),
    (re.compile(r"(x|ch|ss|sh|zz)$"), r"\1es"),
    (re.compile(r"([^aeiouy]|qu)y$"), r"\1ies"),
    (re.compile(r"(hive)$"), r"\1s"),
    (re.compile(r"([^f])fe$"), r"\1ves"),
    (re.compile(r"([lr]|ea|oa)f$"), r"\1ves"),
    (re.compile(r"([ti])um$"), r"\1a"),
    (re.compile(r"(buffal|tomat|potat|her)o$"), r"\1oes"),
    (re.compile(r"s$"), "s"),
]


def pluralize(word: str) -> str:
    """Return the plural of a lower-cased kind name.

    Args:
        word: Singular word, e.g. ``"propagationpolicy"``.

    Returns:
        Plural form, e.g. ``"propagationpolicies"``.
    """
    if not word:
        return word

    if word in IRREGULAR:
        return IRREGULAR[word]

    for uncountable in UNCOUNTABLE:
        if word.endswith(uncountable):
            return word

    for pattern, replacement in _SUFFIX_RULES:
        if pattern.search(word):
            return pattern.sub(replacement, word, count=1)

    return word + "s"


def resource_name_for_kind(kind: str) -> str:
    """Derive the collection name used in API paths for a kind."""
    return pluralize(kind.lower())
