"""OpenAPI / Swagger resource discovery.

Parses OpenAPI 3.x and Swagger 2.0 documents into a tree of ParsedResource
models. Paths are clustered by their resource chain (`/users` and
`/users/{id}` both belong to `users`), each cluster is admitted or dropped
by the admission policy, and the admitted resources are nested under their
nearest admitted ancestor.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from pydantic import ValidationError

from api_resource_explorer.config import DiscoveryOptions
from api_resource_explorer.errors import ConfigurationError
from api_resource_explorer.parser.base import (
    CRUD_METHODS,
    HTTP_METHODS,
    MUTATING_METHODS,
    OpenAPIAnalysis,
    OperationInfo,
    Parameter,
    ParsedResource,
)
from api_resource_explorer.parser.detect import detect_version, load_document
from api_resource_explorer.parser.paths import (
    is_item_path,
    resource_chain,
    resource_identifier,
    select_main_path,
)
from api_resource_explorer.parser.schema import SchemaExtractor

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = ("200", "201")


def parse_file(file_path: Path, options: DiscoveryOptions | None = None) -> OpenAPIAnalysis:
    """Load an OpenAPI/Swagger file (YAML or JSON) and analyze it."""
    return parse_openapi(load_document(file_path), options)


def parse_openapi(
    document: dict,
    options: DiscoveryOptions | None = None,
    parsed_at: str | None = None,
) -> OpenAPIAnalysis:
    """Analyze a whole document: metadata, counters and the resource tree."""
    options = options or DiscoveryOptions()
    resources = discover(document, options)

    info = document.get("info") if isinstance(document.get("info"), dict) else {}
    servers = _extract_servers(document)

    analysis = OpenAPIAnalysis(
        title=str(info.get("title") or "Untitled API"),
        version=str(info.get("version") or ""),
        description=str(info.get("description") or ""),
        base_url=servers[0] if servers else "",
        servers=tuple(servers),
        resources=tuple(resources),
        total_paths=len(document["paths"]),
        total_operations=_count_operations(document["paths"]),
        restful_apis=_count_restful(resources),
        tags=tuple(_extract_all_tags(document)),
        last_parsed=parsed_at or datetime.now(timezone.utc).isoformat(),
    )
    logger.info(f"Analyzed '{analysis.title}': {analysis.total_paths} paths, {analysis.restful_apis} RESTful resources")
    return analysis


def discover(document: dict, options: DiscoveryOptions | None = None) -> list[ParsedResource]:
    """Build the resource tree of a document.

    Raises:
        ConfigurationError: if the document root or its `paths` is unusable.
    """
    options = options or DiscoveryOptions()
    _validate_document(document)

    extractor = SchemaExtractor(document, max_depth=options.max_schema_depth)
    clusters = _cluster_paths(document["paths"], extractor, options)

    nodes: dict[str, dict] = {}
    for key, cluster in clusters.items():
        node = _build_resource(key, cluster, extractor, options)
        if node is not None:
            nodes[key] = node

    return _assemble(nodes, options)


def _validate_document(document) -> None:
    if not isinstance(document, dict):
        raise ConfigurationError("Invalid OpenAPI document: root must be an object")
    if not isinstance(document.get("paths"), dict):
        raise ConfigurationError("Invalid OpenAPI document: missing or invalid 'paths'")


# -- clustering -----------------------------------------------------------------


def _cluster_paths(paths: dict, extractor: SchemaExtractor, options: DiscoveryOptions) -> dict[str, dict]:
    """Group path templates by resource chain, keeping first-seen order."""
    clusters: dict[str, dict] = {}

    for raw_path, path_item in paths.items():
        path = str(raw_path)
        if not isinstance(path_item, dict):
            logger.warning(f"Skipping malformed path entry: {path}")
            continue

        chain = resource_chain(path, options.action_segments)
        if not chain:
            continue
        if len(chain) > options.max_nesting_depth:
            logger.warning(f"Skipping {path}: nesting deeper than {options.max_nesting_depth} resources")
            continue

        try:
            operations = _parse_operations(path, path_item, extractor)
        except ValidationError as e:
            logger.warning(f"Skipping malformed path entry: {path} ({e.error_count()} invalid values)")
            continue

        key = ".".join(chain)
        cluster = clusters.setdefault(key, {"chain": chain, "paths": []})
        cluster["paths"].append((path, path_item, operations))

    return clusters


def _parse_operations(path: str, path_item: dict, extractor: SchemaExtractor) -> dict[str, OperationInfo]:
    shared_params = path_item.get("parameters") if isinstance(path_item.get("parameters"), list) else []
    scope = "item" if is_item_path(path) else "collection"

    operations = {}
    for method in HTTP_METHODS:
        operation = path_item.get(method.lower())
        if operation is None:
            continue
        if not isinstance(operation, dict):
            logger.warning(f"Skipping malformed operation: {method} {path}")
            continue

        raw_params = shared_params + (operation.get("parameters") if isinstance(operation.get("parameters"), list) else [])
        raw_params = [_resolve(p, extractor) for p in raw_params]
        tags = operation.get("tags") if isinstance(operation.get("tags"), list) else []

        operations[method] = OperationInfo(
            method=method,
            path=path,
            scope=scope,
            operation_id=_text(operation.get("operationId")) or None,
            summary=_text(operation.get("summary")),
            description=_text(operation.get("description")),
            parameters=tuple(_parse_parameters(raw_params)),
            request_body=_parse_request_body(operation, raw_params, extractor),
            responses=_parse_responses(operation.get("responses")),
            tags=tuple(str(t) for t in tags),
        )
    return operations


def _text(value) -> str:
    return "" if value is None else str(value)


def _resolve(node, extractor: SchemaExtractor):
    if isinstance(node, dict) and "$ref" in node:
        return extractor.resolve_ref(node["$ref"]) or {}
    return node


def _parse_parameters(params: list) -> list[Parameter]:
    result = []
    for p in params:
        if not isinstance(p, dict) or not p.get("name") or p.get("in") == "body":
            continue
        schema = p.get("schema")
        if not isinstance(schema, dict):
            # Swagger 2.0 declares the type inline
            schema = {k: p[k] for k in ("type", "format", "enum", "items") if k in p}

        result.append(
            Parameter(
                name=str(p["name"]),
                location=str(p.get("in") or "query"),
                required=bool(p.get("required", False)),
                description=_text(p.get("description")),
                schema_=schema,
            )
        )
    return result


def _parse_request_body(operation: dict, params: list, extractor: SchemaExtractor) -> dict | None:
    body = _resolve(operation.get("requestBody"), extractor)
    if isinstance(body, dict) and body:
        return _content_schema(body.get("content"))

    for p in params:
        if isinstance(p, dict) and p.get("in") == "body" and isinstance(p.get("schema"), dict):
            return p["schema"]
    return None


def _content_schema(content) -> dict | None:
    if not isinstance(content, dict):
        return None
    for content_type in ("application/json", "*/*"):
        media = content.get(content_type)
        if isinstance(media, dict) and isinstance(media.get("schema"), dict):
            return media["schema"]
    for content_type, media in content.items():
        if "json" in content_type and isinstance(media, dict) and isinstance(media.get("schema"), dict):
            return media["schema"]
    # Fallback: return first available schema
    for media in content.values():
        if isinstance(media, dict) and isinstance(media.get("schema"), dict):
            return media["schema"]
    return None


def _parse_responses(responses) -> dict[str, str]:
    if not isinstance(responses, dict):
        return {}
    result = {}
    for status_code, resp in responses.items():
        description = resp.get("description") if isinstance(resp, dict) else None
        result[str(status_code)] = _text(description)
    return result


# -- resources ------------------------------------------------------------------


def _build_resource(key: str, cluster: dict, extractor: SchemaExtractor, options: DiscoveryOptions) -> dict | None:
    chain = cluster["chain"]
    name = chain[-1]
    entries = cluster["paths"]

    methods_seen = {m for _, _, ops in entries for m in ops}
    methods = tuple(m for m in HTTP_METHODS if m in methods_seen)

    admission = {m.upper() for m in options.admission_methods}
    if options.require_mutating_method and not admission & methods_seen:
        logger.info(f"Resource {name} exposes no mutating method, skipping")
        return None

    operations: dict[str, OperationInfo] = {}
    tags: list[str] = []
    for _, _, ops in entries:
        for method, op in ops.items():
            if _prefer(operations.get(method), op):
                operations[method] = op
            for tag in op.tags:
                if tag not in tags:
                    tags.append(tag)

    all_paths = [p for p, _, _ in entries]
    item_paths = [p for p in all_paths if is_item_path(p)]

    return {
        "id": key,
        "name": name,
        "path": select_main_path(all_paths),
        "item_path": item_paths[0] if item_paths else None,
        "id_field": resource_identifier(name, item_paths),
        "methods": methods,
        "schema_": tuple(_extract_resource_schema(name, entries, extractor, options)),
        "operations": {m: operations[m] for m in methods},
        "is_restful": any(m in methods_seen for m in MUTATING_METHODS),
        "resource_type": _resource_type(methods_seen),
        "tags": tuple(tags),
        "chain": chain,
    }


def _prefer(current: OperationInfo | None, candidate: OperationInfo) -> bool:
    """GET/POST describe the collection route, PUT/PATCH/DELETE the item route."""
    if current is None:
        return True
    preferred = "collection" if candidate.method in ("GET", "POST") else "item"
    return current.scope != preferred and candidate.scope == preferred


def _resource_type(methods: set[str]) -> str:
    if all(m in methods for m in CRUD_METHODS):
        return "full_crud"
    if "GET" in methods and methods <= {"GET", "HEAD", "OPTIONS"}:
        return "read_only"
    return "custom"


def _extract_resource_schema(name: str, entries, extractor: SchemaExtractor, options: DiscoveryOptions):
    """Fields of one resource item.

    Sources, first non-empty wins: the collection GET response (envelope
    unwrapped), the POST request body, the item GET response.
    """
    collection_get = _find_operation(entries, "GET", "collection")
    if collection_get is not None:
        response_schema = _success_schema(collection_get, extractor)
        if response_schema is not None:
            item_schema = extractor.find_item_schema(response_schema, name, options.envelope_keys)
            fields = _dedupe(extractor.extract_fields(item_schema)) if item_schema is not None else []
            if fields:
                return fields
            logger.debug(f"No list item schema in GET {collection_get['path']} for {name}")

    post = _find_operation(entries, "POST", None)
    if post is not None and post["op"].request_body:
        fields = _dedupe(extractor.extract_fields(post["op"].request_body))
        if fields:
            return fields

    item_get = _find_operation(entries, "GET", "item")
    if item_get is not None:
        response_schema = _success_schema(item_get, extractor)
        single = extractor.find_single_schema(response_schema) if response_schema is not None else None
        if single is not None:
            fields = _dedupe(extractor.extract_fields(single))
            if fields:
                return fields

    logger.debug(f"No schema found for resource {name}")
    return []


def _find_operation(entries, method: str, scope: str | None) -> dict | None:
    for path, path_item, ops in entries:
        op = ops.get(method)
        if op is not None and (scope is None or op.scope == scope):
            return {"path": path, "path_item": path_item, "op": op}
    return None


def _success_schema(found: dict, extractor: SchemaExtractor) -> dict | None:
    """Response schema of the first success status of an operation."""
    responses = _raw_responses(found)
    if not responses:
        return None

    statuses = [s for s in SUCCESS_STATUSES if s in responses]
    statuses += sorted(s for s in responses if s.startswith("2") and s not in statuses)
    if "default" in responses:
        statuses.append("default")

    for status in statuses:
        response = _resolve(responses[status], extractor)
        if not isinstance(response, dict):
            continue
        schema = _content_schema(response.get("content"))
        if schema is None and isinstance(response.get("schema"), dict):
            schema = response["schema"]  # Swagger 2.0
        if schema is not None:
            return schema
    return None


def _raw_responses(found: dict) -> dict:
    op: OperationInfo = found["op"]
    path_item = found["path_item"]
    operation = path_item.get(op.method.lower()) or {}
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return {}
    return {str(k): v for k, v in responses.items()}


def _dedupe(fields):
    seen = set()
    result = []
    for f in fields:
        if f.name not in seen:
            seen.add(f.name)
            result.append(f)
    return result


# -- hierarchy ------------------------------------------------------------------


def _assemble(nodes: dict[str, dict], options: DiscoveryOptions) -> list[ParsedResource]:
    """Attach each resource to its nearest admitted ancestor and freeze the tree."""
    ordered = sorted(nodes, key=lambda k: len(nodes[k]["chain"]))
    roots: list[str] = []
    children: dict[str, list[str]] = {k: [] for k in nodes}
    parents: dict[str, str | None] = {}

    for key in ordered:
        chain = nodes[key]["chain"]
        parent = None
        for i in range(len(chain) - 1, 0, -1):
            candidate = ".".join(chain[:i])
            if candidate in nodes:
                parent = candidate
                break

        if parent is None:
            roots.append(key)
        elif options.include_sub_resources:
            children[parent].append(key)
        parents[key] = parent

    def build(key: str) -> ParsedResource:
        node = {k: v for k, v in nodes[key].items() if k != "chain"}
        return ParsedResource(
            **node,
            parent_resource_id=parents[key],
            sub_resources=tuple(build(child) for child in children[key]),
        )

    return [build(key) for key in roots]


# -- document-wide facts ----------------------------------------------------------


def _extract_servers(document: dict) -> list[str]:
    if detect_version(document) == "v2":
        host = document.get("host") or "localhost"
        base_path = document.get("basePath") or ""
        schemes = document.get("schemes") or ["http"]
        return [f"{scheme}://{host}{base_path}" for scheme in schemes]

    servers = document.get("servers")
    if not isinstance(servers, list):
        return []
    return [s["url"] for s in servers if isinstance(s, dict) and isinstance(s.get("url"), str)]


def _extract_all_tags(document: dict) -> list[str]:
    tags: list[str] = []

    def add(tag):
        if tag and tag not in tags:
            tags.append(tag)

    if isinstance(document.get("tags"), list):
        for tag in document["tags"]:
            if isinstance(tag, dict):
                add(tag.get("name"))

    for path_item in document["paths"].values():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method.lower())
            if isinstance(operation, dict) and isinstance(operation.get("tags"), list):
                for tag in operation["tags"]:
                    add(tag)
    return tags


def _count_operations(paths: dict) -> int:
    count = 0
    for path_item in paths.values():
        if isinstance(path_item, dict):
            count += sum(1 for m in HTTP_METHODS if isinstance(path_item.get(m.lower()), dict))
    return count


def _count_restful(resources) -> int:
    return sum(
        (1 if r.is_restful else 0) + _count_restful(r.sub_resources)
        for r in resources
    )
