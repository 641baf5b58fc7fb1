"""Range-keyed version tables.

A VersionTable maps selectors to values. Looking up a version returns the
values of every selector that matches it, in declaration order. Nothing
stops two selectors from overlapping; tables that must yield exactly one
value should be written with non-overlapping selectors and looked up with
``resolve_one``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Generic, TypeVar

from daffodil_bin.errors import NoCompatibleMappingError
from daffodil_bin.versions.selector import VersionSelector, parse_selector

T = TypeVar("T")
E = TypeVar("E")


class VersionTable(Generic[T]):
    """Ordered mapping from version selectors to values.

    Attributes:
        name: Human-readable table name used in error messages.
        entries: (selector, value) pairs in declaration order.

    Example:
        >>> generations = VersionTable("generations", {">3.8.0": 2, "<=3.8.0": 1})
        >>> generations.resolve_one("3.9.0")
        2
    """

    def __init__(
        self,
        name: str,
        entries: Mapping[str, T] | Iterable[tuple[str, T]],
    ) -> None:
        self.name = name
        items = entries.items() if isinstance(entries, Mapping) else entries
        # Selectors are parsed eagerly so a malformed table fails at import time
        self.entries: tuple[tuple[VersionSelector, T], ...] = tuple(
            (parse_selector(selector), value) for selector, value in items
        )

    def __iter__(self) -> Iterator[tuple[VersionSelector, T]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"VersionTable({self.name!r}, {len(self.entries)} entries)"

    def resolve(self, version: str) -> list[T]:
        """Return the value of every entry whose selector matches ``version``.

        Args:
            version: Concrete version to look up.

        Returns:
            Matching values in declaration order. May be empty.
        """
        return [value for selector, value in self.entries if selector.matches(version)]

    def resolve_one(self, version: str) -> T:
        """Return a single value for ``version``.

        When more than one selector matches, the first one in declaration
        order wins.

        Raises:
            NoCompatibleMappingError: If no selector matches.
        """
        values = self.resolve(version)
        if not values:
            raise NoCompatibleMappingError(version, self.name)
        return values[0]


def resolve_all(table: VersionTable[Sequence[E]], version: str) -> list[E]:
    """Concatenate the list values of every entry matching ``version``.

    Example:
        >>> deps = VersionTable("deps", {">=3.0.0": ["a"], ">=3.5.0": ["b"]})
        >>> resolve_all(deps, "3.6.0")
        ['a', 'b']
    """
    result: list[E] = []
    for values in table.resolve(version):
        result.extend(values)
    return result
