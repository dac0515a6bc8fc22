"""FieldSchema extraction.

Converts OpenAPI schema nodes into FieldDescriptor trees, resolves local
`$ref` pointers, unwraps list envelopes, and rebuilds a JSON schema from a
resource's descriptors so the response transformer can be fed from the graph.
"""

import logging

from pydantic import ValidationError

from api_resource_explorer.parser.base import FieldDescriptor, ParsedResource

logger = logging.getLogger(__name__)

STRING_FORMATS = {
    "date": "date",
    "date-time": "datetime",
    "email": "email",
    "uri": "url",
    "url": "url",
}

CONSTRAINT_KEYS = {
    "minimum": "minimum",
    "maximum": "maximum",
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "minItems": "min_items",
    "maxItems": "max_items",
    "uniqueItems": "unique_items",
    "multipleOf": "multiple_of",
}

_NUMBER = (int, float)
CONSTRAINT_TYPES = {
    "minimum": _NUMBER,
    "maximum": _NUMBER,
    "minLength": int,
    "maxLength": int,
    "pattern": str,
    "minItems": int,
    "maxItems": int,
    "uniqueItems": bool,
    "multipleOf": _NUMBER,
}

SINGLE_ENVELOPE_KEYS = ("data", "item", "result", "record", "content")


def _schema_type(schema: dict):
    t = schema.get("type")
    # OpenAPI 3.1 allows ["string", "null"]
    if isinstance(t, list):
        t = next((x for x in t if x != "null"), None)
    return t


def map_field_type(schema) -> str:
    """Map a schema node to one of the FieldDescriptor types."""
    if not isinstance(schema, dict):
        return "string"

    t = _schema_type(schema)
    if not t:
        if "$ref" in schema or schema.get("properties") or any(k in schema for k in ("allOf", "oneOf", "anyOf")):
            return "object"
        if "items" in schema:
            return "array"
        return "string"

    if t in ("integer", "number", "boolean", "array", "object"):
        return t
    if t == "string":
        return STRING_FORMATS.get(schema.get("format"), "string")
    return "string"


def is_array_schema(schema: dict) -> bool:
    return map_field_type(schema) == "array"


def _constraint_ok(key: str, value) -> bool:
    expected = CONSTRAINT_TYPES[key]
    if isinstance(value, bool):
        return expected is bool
    return isinstance(value, expected)


def _leaf(name: str, field_type: str, required: bool = False, description: str = "") -> FieldDescriptor:
    """A descriptor whose nested content is not expanded."""
    kwargs = {}
    if field_type == "array":
        kwargs["items"] = FieldDescriptor(name="item", type="string")
    elif field_type == "object":
        kwargs["properties"] = {}
    return FieldDescriptor(name=name, type=field_type, required=required, description=description, **kwargs)


class SchemaExtractor:
    """Extracts FieldDescriptors from the schema nodes of one document.

    Only local references (`#/components/schemas/...`, `#/definitions/...`)
    are resolved. A reference that is already being expanded further up the
    current branch ends as an empty object, and nesting stops at `max_depth`.
    """

    def __init__(self, document: dict | None = None, max_depth: int = 32):
        self.document = document or {}
        self.max_depth = max_depth

    # -- references -----------------------------------------------------------

    def resolve_ref(self, ref: str) -> dict | None:
        if not isinstance(ref, str) or not ref.startswith("#/"):
            logger.warning(f"External references not supported: {ref}")
            return None

        node = self.document
        for part in ref[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                logger.warning(f"Unresolvable reference: {ref}")
                return None
        return node if isinstance(node, dict) else None

    def deref(self, schema, stack: tuple = ()) -> tuple[dict, tuple, bool]:
        """Follow a `$ref` chain.

        Returns (resolved schema, extended ref stack, cyclic flag).
        """
        if not isinstance(schema, dict):
            return {}, stack, False

        while "$ref" in schema:
            ref = schema["$ref"]
            if ref in stack:
                logger.debug(f"Circular reference detected: {ref}")
                return schema, stack, True
            target = self.resolve_ref(ref)
            if target is None:
                return {"type": "object"}, stack, False
            stack = stack + (ref,)
            schema = target
        return schema, stack, False

    # -- fields ---------------------------------------------------------------

    def extract_fields(self, schema, depth: int = 0, stack: tuple = ()) -> list[FieldDescriptor]:
        """Fields of an object schema; arrays are unwrapped to their items."""
        schema, stack, cyclic = self.deref(schema, stack)
        if cyclic or not schema:
            return []
        if depth > self.max_depth:
            logger.warning(f"Schema nesting deeper than {self.max_depth} levels, truncating")
            return []

        fields: list[FieldDescriptor] = []
        seen: set[str] = set()

        def add(new_fields):
            for f in new_fields:
                if f.name not in seen:
                    seen.add(f.name)
                    fields.append(f)

        if isinstance(schema.get("allOf"), list):
            for sub in schema["allOf"]:
                add(self.extract_fields(sub, depth + 1, stack))

        for key in ("oneOf", "anyOf"):
            branches = schema.get(key)
            if isinstance(branches, list) and branches and not schema.get("properties"):
                add(self.extract_fields(branches[0], depth + 1, stack))
                break

        if is_array_schema(schema) and "properties" not in schema:
            add(self.extract_fields(schema.get("items"), depth + 1, stack))
            return fields

        properties = schema.get("properties")
        if isinstance(properties, dict):
            required = schema.get("required")
            required = {str(r) for r in required} if isinstance(required, list) else set()
            add(
                self.create_field(str(name), prop, str(name) in required, depth + 1, stack)
                for name, prop in properties.items()
            )

        return fields

    def create_field(self, name: str, schema, required: bool = False, depth: int = 0, stack: tuple = ()) -> FieldDescriptor:
        """Build one FieldDescriptor, recursing into nested objects and arrays."""
        original = schema if isinstance(schema, dict) else {}
        resolved, inner_stack, cyclic = self.deref(original, stack)
        description = original.get("description") or resolved.get("description") or ""
        description = description if isinstance(description, str) else str(description)

        if cyclic:
            return _leaf(name, "object", required, description)

        field_type = map_field_type(resolved)
        if depth >= self.max_depth:
            return _leaf(name, field_type, required, description)

        kwargs = {
            "name": name,
            "type": field_type,
            "format": resolved.get("format") if isinstance(resolved.get("format"), str) else None,
            "description": description,
            "required": required,
            "example": resolved.get("example"),
        }
        if isinstance(resolved.get("enum"), list):
            kwargs["enum"] = list(resolved["enum"])
        for key, attr in CONSTRAINT_KEYS.items():
            if key in resolved:
                if _constraint_ok(key, resolved[key]):
                    kwargs[attr] = resolved[key]
                else:
                    logger.warning(f"Ignoring invalid {key} on field '{name}': {resolved[key]!r}")

        if field_type == "array":
            items = resolved.get("items")
            if isinstance(items, dict):
                kwargs["items"] = self.create_field("item", items, False, depth + 1, inner_stack)
            else:
                kwargs["items"] = FieldDescriptor(name="item", type="string")
        elif field_type == "object":
            nested = self.extract_fields(resolved, depth + 1, inner_stack)
            kwargs["properties"] = {f.name: f for f in nested}

        try:
            return FieldDescriptor(**kwargs)
        except ValidationError as e:
            logger.warning(f"Field '{name}' has malformed metadata, keeping name and type only ({e.error_count()} invalid values)")
            return _leaf(name, field_type, required, description)

    # -- envelopes ------------------------------------------------------------

    def find_item_schema(self, response_schema, resource_name: str, envelope_keys) -> dict | None:
        """Locate the per-item schema inside a list response schema.

        A bare array yields its `items`. An object is searched for an array
        property under the envelope keys, then the resource's own name, then
        any array property.
        """
        schema, _, cyclic = self.deref(response_schema)
        if cyclic or not schema:
            return None

        if is_array_schema(schema) and "properties" not in schema:
            items = schema.get("items")
            return items if isinstance(items, dict) else None

        properties = schema.get("properties")
        if not isinstance(properties, dict):
            return None

        for key in [*envelope_keys, resource_name]:
            items = self._array_items(properties.get(key))
            if items is not None:
                return items

        for key, prop in properties.items():
            items = self._array_items(prop)
            if items is not None:
                logger.debug(f"Using array property '{key}' for {resource_name} schema extraction")
                return items
        return None

    def find_single_schema(self, response_schema, envelope_keys=SINGLE_ENVELOPE_KEYS) -> dict | None:
        """Locate a single-resource schema, unwrapping a `{data: {...}}` style envelope."""
        schema, _, cyclic = self.deref(response_schema)
        if cyclic or not schema or map_field_type(schema) != "object":
            return None

        properties = schema.get("properties")
        if isinstance(properties, dict):
            for key in envelope_keys:
                inner, _, inner_cyclic = self.deref(properties.get(key))
                if not inner_cyclic and inner.get("properties") and map_field_type(inner) == "object":
                    return inner
        return schema

    def _array_items(self, prop) -> dict | None:
        if prop is None:
            return None
        prop, _, cyclic = self.deref(prop)
        if cyclic or not is_array_schema(prop):
            return None
        items = prop.get("items")
        return items if isinstance(items, dict) else None


def extract_fields(schema, document: dict | None = None, max_depth: int = 32) -> list[FieldDescriptor]:
    """Convenience wrapper around SchemaExtractor.extract_fields."""
    return SchemaExtractor(document, max_depth).extract_fields(schema)


# -- descriptors back to JSON schema ------------------------------------------

_FORMAT_FOR_TYPE = {
    "date": "date",
    "datetime": "date-time",
    "email": "email",
    "url": "uri",
}


def descriptor_to_schema(field: FieldDescriptor) -> dict:
    """Rebuild the JSON schema node a descriptor was extracted from."""
    if field.type in _FORMAT_FOR_TYPE:
        schema = {"type": "string", "format": field.format or _FORMAT_FOR_TYPE[field.type]}
    else:
        schema = {"type": field.type}
        if field.format:
            schema["format"] = field.format

    if field.description:
        schema["description"] = field.description
    if field.enum is not None:
        schema["enum"] = list(field.enum)
    for key, attr in CONSTRAINT_KEYS.items():
        value = getattr(field, attr)
        if value is not None:
            schema[key] = value

    if field.items is not None:
        schema["items"] = descriptor_to_schema(field.items)
    if field.properties is not None:
        schema.update(_object_schema(field.properties.values()))
    return schema


def _object_schema(fields) -> dict:
    fields = list(fields)
    schema = {
        "type": "object",
        "properties": {f.name: descriptor_to_schema(f) for f in fields},
    }
    required = [f.name for f in fields if f.required]
    if required:
        schema["required"] = required
    return schema


def resource_schema(resource: ParsedResource) -> dict:
    """JSON schema object of a single item of `resource`."""
    return _object_schema(resource.schema_)
