"""Version selectors.

A selector is a whitespace separated list of clauses, each an operator
followed by a version (``>=3.2.0 <3.10.0``, ``=3.11.0``). All clauses must
match. The empty selector matches every version.

Pre-release suffixes are dropped before comparing, so ``3.11.0-SNAPSHOT``
is treated exactly like ``3.11.0``. Missing trailing components compare as
zero (``21`` equals ``21.0.0``).
"""

from __future__ import annotations

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

from daffodil_bin.errors import ConfigurationError, SelectorSyntaxError

# Longest operators first so "<=" is never read as "<" followed by "=..."
_CLAUSE_PATTERN = re.compile(r"^(<=|>=|<|>|=)(\S+)$")

# Version components are ASCII digits only
_COMPONENT_PATTERN = re.compile(r"\d+", re.ASCII)

_OPERATORS: dict[str, Callable[[tuple[int, ...], tuple[int, ...]], bool]] = {
    "=": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

VersionKey = tuple[int, ...]


def strip_suffix(version: str) -> str:
    """Drop everything from the first hyphen on (``4.0.0-SNAPSHOT`` -> ``4.0.0``)."""
    return version.strip().split("-", 1)[0]


def parse_version(version: str) -> VersionKey:
    """Parse a version string into a tuple of integer components.

    Args:
        version: Version such as ``3.10.0``, ``21`` or ``4.0.0-SNAPSHOT``.

    Returns:
        Integer components with the pre-release suffix removed.

    Raises:
        ConfigurationError: If a component is not a non-negative integer.

    Example:
        >>> parse_version("3.11.0-SNAPSHOT")
        (3, 11, 0)
    """
    base = strip_suffix(version)
    parts = base.split(".")
    if not base or not all(_COMPONENT_PATTERN.fullmatch(part) for part in parts):
        raise ConfigurationError(f"Invalid version '{version}'")
    return tuple(int(part) for part in parts)


def _pad(left: VersionKey, right: VersionKey) -> tuple[VersionKey, VersionKey]:
    width = max(len(left), len(right))
    return (
        left + (0,) * (width - len(left)),
        right + (0,) * (width - len(right)),
    )


def compare_versions(left: str, right: str) -> int:
    """Compare two versions, returning -1, 0 or 1."""
    a, b = _pad(parse_version(left), parse_version(right))
    return (a > b) - (a < b)


@dataclass(frozen=True)
class Clause:
    """A single ``<op><version>`` condition."""

    op: str
    version: VersionKey

    def matches(self, version: VersionKey) -> bool:
        candidate, bound = _pad(version, self.version)
        return _OPERATORS[self.op](candidate, bound)

    def __str__(self) -> str:
        return self.op + ".".join(str(part) for part in self.version)


class VersionSelector:
    """A parsed version range expression.

    Attributes:
        text: The selector text as written.
        clauses: Parsed clauses, all of which must match.

    Example:
        >>> VersionSelector(">=3.2.0 <3.10.0").matches("3.9.0")
        True
        >>> VersionSelector("").matches("1.0.0")
        True
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.clauses = self._parse(text)

    @staticmethod
    def _parse(text: str) -> tuple[Clause, ...]:
        clauses: list[Clause] = []
        for token in text.split():
            match = _CLAUSE_PATTERN.match(token)
            if match is None:
                raise SelectorSyntaxError(text, f"cannot parse clause '{token}'")
            op, version = match.groups()
            if "-" in version:
                version = strip_suffix(version)
            parts = version.split(".")
            if not all(_COMPONENT_PATTERN.fullmatch(part) for part in parts):
                raise SelectorSyntaxError(text, f"invalid version in clause '{token}'")
            clauses.append(Clause(op, tuple(int(part) for part in parts)))
        return tuple(clauses)

    def matches(self, version: str) -> bool:
        """Return True if every clause matches ``version``.

        Raises:
            ConfigurationError: If ``version`` is not a valid version.
        """
        key = parse_version(version)
        return all(clause.matches(key) for clause in self.clauses)

    def __repr__(self) -> str:
        return f"VersionSelector({self.text!r})"

    def __str__(self) -> str:
        return " ".join(str(clause) for clause in self.clauses)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionSelector):
            return NotImplemented
        return self.clauses == other.clauses

    def __hash__(self) -> int:
        return hash(self.clauses)


@lru_cache(maxsize=256)
def parse_selector(text: str) -> VersionSelector:
    """Parse a selector, caching the result."""
    return VersionSelector(text)


def matches(selector: str, version: str) -> bool:
    """Return True if ``version`` satisfies ``selector``.

    Example:
        >>> matches(">=3.11.0", "3.11.0-SNAPSHOT")
        True
        >>> matches("<3.11.0", "3.11.0")
        False
    """
    return parse_selector(selector).matches(version)
