"""Structural validation of parsed resources.

Findings are returned as data in three independent severities. Only
`errors` affect validity; warnings and suggestions are advisory.
"""

from pydantic import BaseModel, computed_field

from api_resource_explorer.config import DEFAULT_MAX_DEPTH
from api_resource_explorer.parser.base import CRUD_METHODS, ParsedResource


class ValidationResult(BaseModel):
    errors: list[str] = []
    warnings: list[str] = []
    suggestions: list[str] = []

    @computed_field
    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_resource(resource: ParsedResource, max_depth: int = DEFAULT_MAX_DEPTH) -> ValidationResult:
    """Check a resource and its sub-resources.

    errors: missing id, name or path (the resource is unusable).
    warnings: a RESTful resource lacking one of GET/POST/PUT/DELETE, or no
    HTTP methods at all.
    suggestions: no schema defined.
    """
    result = ValidationResult()
    _validate(resource, result, prefix="", depth=0, max_depth=max_depth)
    return result


def _validate(resource: ParsedResource, result: ValidationResult, prefix: str, depth: int, max_depth: int) -> None:
    if not resource.id:
        result.errors.append(f"{prefix}Resource is missing an id")
    if not resource.name:
        result.errors.append(f"{prefix}Resource is missing a name")
    if not resource.path:
        result.errors.append(f"{prefix}Resource is missing a path")

    label = resource.name or resource.id or "<unnamed>"
    if not resource.methods:
        result.warnings.append(f"{prefix}Resource '{label}' has no HTTP methods")
    elif resource.is_restful:
        missing = [m for m in CRUD_METHODS if m not in resource.methods]
        if missing:
            result.warnings.append(f"{prefix}RESTful resource '{label}' is missing methods: {', '.join(missing)}")

    if not resource.schema_:
        result.suggestions.append(f"{prefix}Resource '{label}' has no schema defined")

    if depth >= max_depth:
        return
    for index, child in enumerate(resource.sub_resources):
        _validate(child, result, f"{prefix}sub_resources[{index}]: ", depth + 1, max_depth)


def validate_resources(resources, max_depth: int = DEFAULT_MAX_DEPTH) -> dict[str, ValidationResult]:
    """Validate every top-level resource, keyed by resource id."""
    return {r.id: validate_resource(r, max_depth) for r in resources}
