"""One depth-limited walk over a resource tree.

Every search, statistic and query in the graph package goes through
`iter_resources`, so they all honour the same recursion guard.
"""

from collections.abc import Callable, Iterator, Sequence
from typing import NamedTuple

from api_resource_explorer.config import DEFAULT_MAX_DEPTH
from api_resource_explorer.parser.base import ParsedResource


class Visit(NamedTuple):
    resource: ParsedResource
    depth: int  # number of ancestors; 0 for top-level
    ancestors: tuple[ParsedResource, ...]


def is_resource_list(resources) -> bool:
    return isinstance(resources, (list, tuple))


def iter_resources(
    resources: Sequence[ParsedResource],
    max_depth: int | None = DEFAULT_MAX_DEPTH,
    include_nested: bool = True,
) -> Iterator[Visit]:
    """Depth-first pre-order walk.

    Nodes deeper than `max_depth` are not visited; None disables the limit.
    The generator is lazy, so consumers can stop early.
    """
    if not is_resource_list(resources):
        return

    stack: list[Visit] = [Visit(r, 0, ()) for r in reversed(resources)]
    while stack:
        visit = stack.pop()
        yield visit

        if not include_nested:
            continue
        if max_depth is not None and visit.depth >= max_depth:
            continue
        ancestors = visit.ancestors + (visit.resource,)
        for child in reversed(visit.resource.sub_resources):
            stack.append(Visit(child, visit.depth + 1, ancestors))


def find_first(
    resources: Sequence[ParsedResource],
    predicate: Callable[[ParsedResource], bool],
    max_depth: int | None = DEFAULT_MAX_DEPTH,
) -> Visit | None:
    """First visit (pre-order) whose resource satisfies the predicate."""
    return next((v for v in iter_resources(resources, max_depth) if predicate(v.resource)), None)


def collect(
    resources: Sequence[ParsedResource],
    predicate: Callable[[ParsedResource], bool],
    max_depth: int | None = DEFAULT_MAX_DEPTH,
    include_nested: bool = True,
) -> list[ParsedResource]:
    return [v.resource for v in iter_resources(resources, max_depth, include_nested) if predicate(v.resource)]
