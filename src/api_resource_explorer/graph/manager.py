"""Read-only navigation over a Resource Graph.

All functions take a sequence of top-level ParsedResource and return new
values; none of them mutates its input. Absence is reported as None (or an
empty list), never as an exception.
"""

from collections.abc import Callable, Sequence

from pydantic import BaseModel

from api_resource_explorer.config import DEFAULT_MAX_DEPTH
from api_resource_explorer.graph.traversal import (
    collect,
    find_first,
    is_resource_list,
    iter_resources,
)
from api_resource_explorer.parser.base import ParsedResource


class ResourceHierarchy(BaseModel):
    """Where a resource sits in the tree."""

    resource: ParsedResource
    path: list[str]  # names from the top-level ancestor down to the resource
    depth: int
    is_top_level: bool
    has_sub_resources: bool


class ResourceStats(BaseModel):
    total: int = 0
    top_level: int = 0
    restful: int = 0
    with_sub_resources: int = 0
    max_depth: int = 0
    operation_counts: dict[str, int] = {}


class RelationshipReport(BaseModel):
    relationships: dict[str, list[str]] = {}  # parent id -> child ids
    orphaned_resources: list[ParsedResource] = []


def _blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def find_by_name(
    resources: Sequence[ParsedResource],
    name: str,
    prefer_top_level: bool = True,
    include_sub_resources: bool = True,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ParsedResource | None:
    """Find a resource by name.

    With `prefer_top_level`, each level is searched before descending into
    its children; otherwise the tree is searched depth-first. `max_depth`
    bounds the number of levels below the top one that are inspected.
    """
    if _blank(name) or not is_resource_list(resources):
        return None

    if not include_sub_resources:
        max_depth = 0

    if not prefer_top_level:
        visit = find_first(resources, lambda r: r.name == name, max_depth)
        return visit.resource if visit else None

    return _find_level_first(resources, name, 0, max_depth)


def _find_level_first(resources, name: str, depth: int, max_depth: int) -> ParsedResource | None:
    for resource in resources:
        if resource.name == name:
            return resource
    if depth >= max_depth:
        return None
    for resource in resources:
        if resource.sub_resources:
            found = _find_level_first(resource.sub_resources, name, depth + 1, max_depth)
            if found is not None:
                return found
    return None


def find_by_id(
    resources: Sequence[ParsedResource],
    resource_id: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ParsedResource | None:
    if _blank(resource_id):
        return None
    visit = find_first(resources, lambda r: r.id == resource_id, max_depth)
    return visit.resource if visit else None


def find_by_path(
    resources: Sequence[ParsedResource],
    resource_path: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ParsedResource | None:
    """Resolve a dotted path such as "users.posts.comments".

    The first name is looked up among the top-level resources, each following
    name among the direct children of the previous hop.
    """
    if _blank(resource_path) or not is_resource_list(resources):
        return None

    names = resource_path.split(".")
    if len(names) - 1 > max_depth:
        return None

    current = None
    level = resources
    for name in names:
        current = next((r for r in level if r.name == name), None)
        if current is None:
            return None
        level = current.sub_resources
    return current


def get_resource_hierarchy(
    resources: Sequence[ParsedResource],
    name: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> ResourceHierarchy | None:
    """Locate a resource and describe its ancestry, preferring top-level matches."""
    if _blank(name) or not is_resource_list(resources):
        return None

    top = next((r for r in resources if r.name == name), None)
    if top is not None:
        return ResourceHierarchy(
            resource=top,
            path=[top.name],
            depth=0,
            is_top_level=True,
            has_sub_resources=bool(top.sub_resources),
        )

    visit = find_first(resources, lambda r: r.name == name, max_depth)
    if visit is None:
        return None
    return ResourceHierarchy(
        resource=visit.resource,
        path=[a.name for a in visit.ancestors] + [visit.resource.name],
        depth=visit.depth,
        is_top_level=visit.depth == 0,
        has_sub_resources=bool(visit.resource.sub_resources),
    )


def get_stats(resources: Sequence[ParsedResource], max_depth: int = DEFAULT_MAX_DEPTH) -> ResourceStats:
    """Counters gathered in a single walk; empty input gives all zeros."""
    stats = {
        "total": 0,
        "restful": 0,
        "with_sub_resources": 0,
        "max_depth": 0,
    }
    operation_counts: dict[str, int] = {}

    for visit in iter_resources(resources, max_depth):
        resource = visit.resource
        stats["total"] += 1
        if resource.is_restful:
            stats["restful"] += 1
        if resource.sub_resources:
            stats["with_sub_resources"] += 1
        stats["max_depth"] = max(stats["max_depth"], visit.depth)
        for method in resource.methods:
            operation_counts[method] = operation_counts.get(method, 0) + 1

    top_level = len(resources) if is_resource_list(resources) else 0
    return ResourceStats(top_level=top_level, operation_counts=operation_counts, **stats)


def get_top_level_resources(resources: Sequence[ParsedResource]) -> list[ParsedResource]:
    if not is_resource_list(resources):
        return []
    return [r for r in resources if r.parent_resource_id is None]


def get_all_sub_resources(resource: ParsedResource, max_depth: int = DEFAULT_MAX_DEPTH) -> list[ParsedResource]:
    """Every descendant of `resource`, flattened in pre-order."""
    return [v.resource for v in iter_resources(resource.sub_resources, max(max_depth - 1, 0))]


def supports_operation(resource: ParsedResource, operation: str) -> bool:
    return isinstance(operation, str) and resource.has_method(operation)


def find_resources(
    resources: Sequence[ParsedResource],
    predicate: Callable[[ParsedResource], bool],
    include_sub_resources: bool = True,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[ParsedResource]:
    return collect(resources, predicate, max_depth, include_nested=include_sub_resources)


def find_resources_by_operation(
    resources: Sequence[ParsedResource],
    operation: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[ParsedResource]:
    if _blank(operation):
        return []
    return collect(resources, lambda r: r.has_method(operation), max_depth)


def find_resources_by_tag(
    resources: Sequence[ParsedResource],
    tag: str,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[ParsedResource]:
    if _blank(tag):
        return []
    return collect(resources, lambda r: tag in r.tags, max_depth)


def get_suggestions(
    resources: Sequence[ParsedResource],
    partial: str,
    limit: int = 5,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[ParsedResource]:
    """Resources whose name starts with, then contains, `partial` (case-insensitive)."""
    if _blank(partial) or limit <= 0:
        return []
    needle = partial.strip().lower()

    prefix, contains = [], []
    for visit in iter_resources(resources, max_depth):
        name = visit.resource.name.lower()
        if name.startswith(needle):
            prefix.append(visit.resource)
        elif needle in name:
            contains.append(visit.resource)
    return (prefix + contains)[:limit]


def analyze_relationships(
    resources: Sequence[ParsedResource],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> RelationshipReport:
    """Parent -> children id map, plus resources whose parent id is not in the tree."""
    visits = list(iter_resources(resources, max_depth))
    known_ids = {v.resource.id for v in visits}

    relationships: dict[str, list[str]] = {}
    orphaned = []
    for visit in visits:
        resource = visit.resource
        if resource.sub_resources:
            relationships[resource.id] = [child.id for child in resource.sub_resources]
        if resource.parent_resource_id is not None and resource.parent_resource_id not in known_ids:
            orphaned.append(resource)
    return RelationshipReport(relationships=relationships, orphaned_resources=orphaned)
