"""Class-name inflection helpers used by the naming conventions.

Only the handful of rules the conventions need: CamelCase <-> snake_case and a small
English pluralizer for table names.
"""

from __future__ import annotations

import re

_IRREGULAR = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "mouse": "mice",
}
_UNCOUNTABLE = {"equipment", "information", "series", "species", "news", "data"}


def camelize(value: str) -> str:
    """'blog_post' -> 'BlogPost'."""
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[_\s]+", value) if part)


def underscore(value: str) -> str:
    """'BlogPost' -> 'blog_post'."""
    value = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", value)
    value = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", value)
    return value.replace("-", "_").lower()


def demodulize(value: str) -> str:
    """'app.models.User' -> 'User'."""
    return value.rsplit(".", 1)[-1]


def deconstantize(value: str) -> str:
    """'app.models.User' -> 'app.models'."""
    return value.rsplit(".", 1)[0] if "." in value else ""


def pluralize(word: str) -> str:
    head, _, last = word.rpartition("_")
    lower = last.lower()
    if lower in _UNCOUNTABLE:
        plural = last
    elif lower in _IRREGULAR:
        plural = _IRREGULAR[lower]
    elif re.search(r"[^aeiou]y$", lower):
        plural = last[:-1] + "ies"
    elif re.search(r"(s|x|z|ch|sh)$", lower):
        plural = last + "es"
    else:
        plural = last + "s"
    return f"{head}_{plural}" if head else plural


def singularize(word: str) -> str:
    head, _, last = word.rpartition("_")
    lower = last.lower()
    irregular = {plural: single for single, plural in _IRREGULAR.items()}
    if lower in _UNCOUNTABLE:
        single = last
    elif lower in irregular:
        single = irregular[lower]
    elif lower.endswith("ies"):
        single = last[:-3] + "y"
    elif re.search(r"(ss|x|z|ch|sh)es$", lower):
        single = last[:-2]
    elif lower.endswith("s") and not lower.endswith("ss"):
        single = last[:-1]
    else:
        single = last
    return f"{head}_{single}" if head else single


def strip_suffix(name: str, *suffixes: str) -> str:
    """Remove the first matching suffix, leaving names that are only the suffix alone."""
    for suffix in suffixes:
        if suffix and name.endswith(suffix) and name != suffix:
            return name[: -len(suffix)]
    return name
