"""
Minimal English inflection for association and model names.

Covers the regular rules plus a short irregular table; enough for names
like ``tasks``, ``categories``, ``addresses`` and ``people``.
"""

import re


IRREGULAR = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
    "goose": "geese",
    "datum": "data",
}

UNCOUNTABLE = {"equipment", "information", "money", "news", "series", "species", "sheep", "fish"}

_PLURAL_RULES = [
    (re.compile(r"(quiz)$", re.I), r"\1zes"),
    (re.compile(r"([^aeiouy]|qu)y$", re.I), r"\1ies"),
    (re.compile(r"(x|ch|ss|sh|z)$", re.I), r"\1es"),
    (re.compile(r"(?:([^f])fe|([lr])f)$", re.I), r"\1\2ves"),
    (re.compile(r"(bus|status|alias)$", re.I), r"\1es"),
    (re.compile(r"s$", re.I), "s"),
    (re.compile(r"$"), "s"),
]

_SINGULAR_RULES = [
    (re.compile(r"(quiz)zes$", re.I), r"\1"),
    (re.compile(r"(bus|status|alias)es$", re.I), r"\1"),
    (re.compile(r"([^aeiouy]|qu)ies$", re.I), r"\1y"),
    (re.compile(r"(x|ch|ss|sh|z)es$", re.I), r"\1"),
    (re.compile(r"([lr])ves$", re.I), r"\1f"),
    (re.compile(r"([^f])ves$", re.I), r"\1fe"),
    (re.compile(r"(ss|us)$", re.I), r"\1"),
    (re.compile(r"s$", re.I), ""),
]


def _apply(word: str, rules) -> str:
    for pattern, replacement in rules:
        if pattern.search(word):
            return pattern.sub(replacement, word, count=1)
    return word


def _split_last(word: str) -> tuple:
    """Inflect only the last underscore-separated part: ``line_item``."""
    head, sep, last = word.rpartition("_")
    return head + sep, last


def pluralize(word: str) -> str:
    prefix, last = _split_last(word)
    lower = last.lower()
    if lower in UNCOUNTABLE or lower in IRREGULAR.values():
        return word
    if lower in IRREGULAR:
        return prefix + IRREGULAR[lower]
    return prefix + _apply(last, _PLURAL_RULES)


def singularize(word: str) -> str:
    prefix, last = _split_last(word)
    lower = last.lower()
    if lower in UNCOUNTABLE or lower in IRREGULAR:
        return word
    for singular, plural in IRREGULAR.items():
        if lower == plural:
            return prefix + singular
    return prefix + _apply(last, _SINGULAR_RULES)


def underscore(name: str) -> str:
    """``UrgentTask`` -> ``urgent_task``; ``HTTPLink`` -> ``http_link``."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    name = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", name)
    return name.replace("-", "_").lower()
