"""Path expression matchers used by per-file owner sets.

Three syntaxes are supported, selected through the ``path_expressions``
setting of the code-owners configuration:

``SIMPLE``
    ``*`` matches any characters except ``/``; ``...`` matches any
    characters including ``/``.  Everything else is literal.
``GLOB``
    Glob syntax: ``*`` (no ``/``), ``**`` (crosses directories),
    ``?``, character classes ``[abc]`` / ``[a-c]`` / ``[!a]`` and
    alternation groups ``{a,b}``.
``FIND_OWNERS_GLOB``
    Like ``GLOB`` but a single ``*`` also crosses directory boundaries.

Expressions are always matched against the path *relative* to the
directory that holds the declaration.  Invalid expressions never match;
the failure is logged rather than raised so that one broken rule does
not block evaluation of the others.

Example
-------
>>> matcher = GlobMatcher()
>>> matcher.matches("*.md", "README.md")
True
>>> matcher.matches("*.md", "docs/README.md")
False
>>> matcher.matches("**.md", "docs/README.md")
True
"""
from __future__ import annotations

import functools
import logging
import re
from abc import ABC, abstractmethod
from enum import Enum

logger = logging.getLogger(__name__)


class InvalidPathExpressionError(ValueError):
    """Raised internally when a path expression cannot be translated."""


# ---------------------------------------------------------------------------
# Translation
# ---------------------------------------------------------------------------


def _translate_class(expression: str, start: int) -> tuple[str, int]:
    """Translate a ``[...]`` character class starting at *start*.

    Returns the regex fragment and the index just past the closing bracket.
    """
    index = start + 1
    negate = False
    if index < len(expression) and expression[index] in "!^":
        negate = True
        index += 1
    members: list[str] = []
    first = True
    while index < len(expression):
        char = expression[index]
        if char == "]" and not first:
            body = "".join(members)
            # Character classes never match the directory separator.
            fragment = f"[^/{body}]" if negate else f"(?:(?!/)[{body}])"
            return fragment, index + 1
        if char == "/":
            raise InvalidPathExpressionError(
                f"Character class in {expression!r} must not contain '/'."
            )
        if char == "\\" and index + 1 < len(expression):
            index += 1
            char = expression[index]
        if char == "-" and members and index + 1 < len(expression) and expression[index + 1] != "]":
            members.append("-")
        else:
            members.append(re.escape(char))
        first = False
        index += 1
    raise InvalidPathExpressionError(f"Unclosed character class in {expression!r}.")


def _translate_glob(expression: str, single_star_crosses_directories: bool) -> str:
    fragments: list[str] = []
    in_group = False
    index = 0
    while index < len(expression):
        char = expression[index]
        if char == "*":
            if index + 1 < len(expression) and expression[index + 1] == "*":
                fragments.append(".*")
                index += 2
                continue
            fragments.append(".*" if single_star_crosses_directories else "[^/]*")
        elif char == "?":
            fragments.append("[^/]")
        elif char == "[":
            fragment, index = _translate_class(expression, index)
            fragments.append(fragment)
            continue
        elif char == "{":
            if in_group:
                raise InvalidPathExpressionError(
                    f"Nested groups are not supported in {expression!r}."
                )
            in_group = True
            fragments.append("(?:")
        elif char == "}" and in_group:
            in_group = False
            fragments.append(")")
        elif char == "," and in_group:
            fragments.append("|")
        elif char == "\\":
            if index + 1 >= len(expression):
                raise InvalidPathExpressionError(
                    f"Dangling escape at end of {expression!r}."
                )
            index += 1
            fragments.append(re.escape(expression[index]))
        else:
            fragments.append(re.escape(char))
        index += 1
    if in_group:
        raise InvalidPathExpressionError(f"Unclosed group in {expression!r}.")
    return "".join(fragments)


def _translate_simple(expression: str) -> str:
    fragments: list[str] = []
    index = 0
    while index < len(expression):
        if expression.startswith("...", index):
            fragments.append(".*")
            index += 3
        elif expression[index] == "*":
            fragments.append("[^/]*")
            index += 1
        else:
            fragments.append(re.escape(expression[index]))
            index += 1
    return "".join(fragments)


@functools.lru_cache(maxsize=4096)
def _compile(syntax: str, expression: str) -> re.Pattern[str] | None:
    """Compile *expression* for *syntax*; return ``None`` when invalid."""
    try:
        match syntax:
            case "simple":
                body = _translate_simple(expression)
            case "glob":
                body = _translate_glob(expression, single_star_crosses_directories=False)
            case "find_owners_glob":
                body = _translate_glob(expression, single_star_crosses_directories=True)
            case _:
                raise InvalidPathExpressionError(f"Unknown syntax {syntax!r}.")
        return re.compile(f"(?s:{body})\\Z")
    except (InvalidPathExpressionError, re.error) as exc:
        logger.warning("Ignoring invalid path expression %r: %s", expression, exc)
        return None


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


class PathExpressionMatcher(ABC):
    """Abstract base for path expression matchers."""

    syntax: str = ""

    def matches(self, expression: str, relative_path: str) -> bool:
        """Return ``True`` if *relative_path* matches *expression*.

        Parameters
        ----------
        expression:
            A path expression in this matcher's syntax.
        relative_path:
            Path relative to the declaring directory, without leading ``/``.

        Returns
        -------
        bool
            ``False`` for invalid expressions.
        """
        pattern = _compile(self.syntax, expression)
        if pattern is None:
            return False
        return pattern.match(relative_path.lstrip("/")) is not None

    @abstractmethod
    def describe(self) -> str:
        """Return a short human-readable description of the syntax."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SimplePathExpressionMatcher(PathExpressionMatcher):
    """``*`` stays within a directory, ``...`` crosses directories."""

    syntax = "simple"

    def describe(self) -> str:
        return "simple ('*' within a directory, '...' across directories)"


class GlobMatcher(PathExpressionMatcher):
    """Glob matching where only ``**`` crosses directories."""

    syntax = "glob"

    def describe(self) -> str:
        return "glob ('*', '**', '?', '[a-z]', '{a,b}')"


class FindOwnersGlobMatcher(PathExpressionMatcher):
    """Glob matching where a single ``*`` also crosses directories."""

    syntax = "find_owners_glob"

    def describe(self) -> str:
        return "find-owners glob ('*' matches across directories)"


class PathExpressions(str, Enum):
    """Selectable path expression syntaxes."""

    SIMPLE = "SIMPLE"
    GLOB = "GLOB"
    FIND_OWNERS_GLOB = "FIND_OWNERS_GLOB"

    @property
    def matcher(self) -> PathExpressionMatcher:
        """The matcher implementing this syntax."""
        return _MATCHERS[self]()


_MATCHERS: dict[PathExpressions, type[PathExpressionMatcher]] = {
    PathExpressions.SIMPLE: SimplePathExpressionMatcher,
    PathExpressions.GLOB: GlobMatcher,
    PathExpressions.FIND_OWNERS_GLOB: FindOwnersGlobMatcher,
}
