"""Fluent query builder over a Resource Graph.

    ResourceQuery(resources).with_operation("POST").is_restful().sort_by_name().limit(5).execute()

Builder calls only record predicates and options; `execute()` walks the
tree once, keeps resources matching every predicate, sorts, then truncates.
"""

import re
from collections.abc import Callable, Sequence

from api_resource_explorer.config import DEFAULT_MAX_DEPTH
from api_resource_explorer.graph.traversal import iter_resources
from api_resource_explorer.parser.base import ParsedResource


class ResourceQuery:
    def __init__(self, resources: Sequence[ParsedResource]):
        self._resources = resources
        self._predicates: list[Callable[[ParsedResource], bool]] = []
        self._include_nested = True
        self._max_depth = DEFAULT_MAX_DEPTH
        self._sort_key: Callable[[ParsedResource], object] | None = None
        self._reverse = False
        self._limit: int | None = None

    # -- filters --------------------------------------------------------------

    def where(self, predicate: Callable[[ParsedResource], bool]) -> "ResourceQuery":
        self._predicates.append(predicate)
        return self

    def by_name(self, pattern: "str | re.Pattern") -> "ResourceQuery":
        """Plain strings match as case-insensitive substrings, compiled patterns with search()."""
        if isinstance(pattern, re.Pattern):
            return self.where(lambda r: pattern.search(r.name) is not None)
        needle = str(pattern).lower()
        return self.where(lambda r: needle in r.name.lower())

    def with_operation(self, method: str) -> "ResourceQuery":
        return self.where(lambda r: r.has_method(method))

    def is_restful(self, restful: bool = True) -> "ResourceQuery":
        return self.where(lambda r: r.is_restful == restful)

    def of_type(self, resource_type: str) -> "ResourceQuery":
        return self.where(lambda r: r.resource_type == resource_type)

    def with_tag(self, tag: str) -> "ResourceQuery":
        return self.where(lambda r: tag in r.tags)

    def has_sub_resources(self, has: bool = True) -> "ResourceQuery":
        return self.where(lambda r: bool(r.sub_resources) == has)

    # -- scope, ordering and size -----------------------------------------------

    def include_nested(self, include: bool = True) -> "ResourceQuery":
        self._include_nested = include
        return self

    def max_depth(self, depth: int) -> "ResourceQuery":
        self._max_depth = depth
        return self

    def sort_by(self, key: Callable[[ParsedResource], object], reverse: bool = False) -> "ResourceQuery":
        self._sort_key = key
        self._reverse = reverse
        return self

    def sort_by_name(self, reverse: bool = False) -> "ResourceQuery":
        return self.sort_by(lambda r: r.name, reverse)

    def limit(self, count: int) -> "ResourceQuery":
        self._limit = max(count, 0)
        return self

    # -- execution ----------------------------------------------------------------

    def execute(self) -> list[ParsedResource]:
        results = [
            visit.resource
            for visit in iter_resources(self._resources, self._max_depth, self._include_nested)
            if all(predicate(visit.resource) for predicate in self._predicates)
        ]
        if self._sort_key is not None:
            results.sort(key=self._sort_key, reverse=self._reverse)
        if self._limit is not None:
            results = results[: self._limit]
        return results

    def count(self) -> int:
        return len(self.execute())

    def exists(self) -> bool:
        return self.first() is not None

    def first(self) -> ParsedResource | None:
        results = self.execute()
        return results[0] if results else None
