"""Name inflection helpers.

The default pluralization rules are a minimal suffix heuristic. Pass a
real inflection function (for example one backed by a linguistic library)
to ``Inflector`` when table names need anything beyond the basic rules.

Case conversion only round-trips identifiers made of lowercase ASCII
words joined by single underscores. Leading capitals, runs of capitals and
double underscores are outside that grammar and are left as-is.
"""

from __future__ import annotations

import re
from collections.abc import Callable

_UPPER = re.compile(r"[A-Z]")
_UNDERSCORE_LOWER = re.compile(r"_([a-z])")
_SIBILANT_PLURAL = re.compile(r"(s|x|z|ch|sh)es$")
_SIBILANT_ENDINGS = ("s", "x", "z", "ch", "sh")


def default_pluralize(word: str) -> str:
    if word.endswith("y"):
        return word[:-1] + "ies"
    if word.endswith(_SIBILANT_ENDINGS):
        return word + "es"
    return word + "s"


def default_singularize(word: str) -> str:
    if word.endswith("ies"):
        return word[:-3] + "y"
    if _SIBILANT_PLURAL.search(word):
        return word[:-2]
    if word.endswith("s"):
        return word[:-1]
    return word


def to_snake_case(identifier: str) -> str:
    """Insert ``_`` before every uppercase letter and lowercase it."""
    return _UPPER.sub(lambda m: "_" + m.group(0).lower(), identifier)


def to_camel_case(identifier: str) -> str:
    """Drop each ``_`` that precedes a lowercase letter and uppercase the letter."""
    return _UNDERSCORE_LOWER.sub(lambda m: m.group(1).upper(), identifier)


class Inflector:
    """Bundles pluralization and case conversion.

    Args:
        pluralize: Replacement for ``default_pluralize``.
        singularize: Replacement for ``default_singularize``.
    """

    def __init__(
        self,
        pluralize: Callable[[str], str] | None = None,
        singularize: Callable[[str], str] | None = None,
    ) -> None:
        self._pluralize = pluralize or default_pluralize
        self._singularize = singularize or default_singularize

    def pluralize(self, word: str) -> str:
        return self._pluralize(word)

    def singularize(self, word: str) -> str:
        return self._singularize(word)

    @staticmethod
    def to_snake_case(identifier: str) -> str:
        return to_snake_case(identifier)

    @staticmethod
    def to_camel_case(identifier: str) -> str:
        return to_camel_case(identifier)
