from pathlib import Path

from api_resource_explorer.parser.base import FieldDescriptor, ParsedResource
from api_resource_explorer.parser.schema import (
    SchemaExtractor,
    descriptor_to_schema,
    extract_fields,
    map_field_type,
    resource_schema,
)
from api_resource_explorer.parser.swagger import parse_file

FIXTURES = Path(__file__).parent / "fixtures"


def _check_nesting(fields):
    for f in fields:
        assert (f.items is not None) == (f.type == "array")
        assert (f.properties is not None) == (f.type == "object")
        if f.items is not None:
            _check_nesting([f.items])
        if f.properties is not None:
            _check_nesting(f.properties.values())


class TestMapFieldType:
    def test_primitive_types(self):
        assert map_field_type({"type": "integer"}) == "integer"
        assert map_field_type({"type": "boolean"}) == "boolean"
        assert map_field_type({"type": "string"}) == "string"

    def test_string_formats(self):
        assert map_field_type({"type": "string", "format": "date"}) == "date"
        assert map_field_type({"type": "string", "format": "date-time"}) == "datetime"
        assert map_field_type({"type": "string", "format": "email"}) == "email"
        assert map_field_type({"type": "string", "format": "uri"}) == "url"
        assert map_field_type({"type": "string", "format": "hostname"}) == "string"

    def test_nullable_type_list(self):
        assert map_field_type({"type": ["integer", "null"]}) == "integer"

    def test_untyped(self):
        assert map_field_type({"properties": {"a": {}}}) == "object"
        assert map_field_type({"items": {}}) == "array"
        assert map_field_type({}) == "string"
        assert map_field_type(None) == "string"


class TestExtractFields:
    def test_required_flags(self):
        fields = extract_fields(
            {
                "type": "object",
                "required": ["id"],
                "properties": {"id": {"type": "integer"}, "note": {"type": "string"}},
            }
        )
        assert [(f.name, f.required) for f in fields] == [("id", True), ("note", False)]

    def test_all_of_merged(self):
        doc = {
            "components": {
                "schemas": {
                    "Base": {"type": "object", "properties": {"id": {"type": "integer"}}},
                }
            }
        }
        schema = {
            "allOf": [
                {"$ref": "#/components/schemas/Base"},
                {"type": "object", "properties": {"label": {"type": "string"}, "id": {"type": "string"}}},
            ]
        }
        fields = extract_fields(schema, doc)
        assert [f.name for f in fields] == ["id", "label"]
        assert fields[0].type == "integer"

    def test_one_of_uses_first_branch(self):
        schema = {
            "oneOf": [
                {"type": "object", "properties": {"a": {"type": "string"}}},
                {"type": "object", "properties": {"b": {"type": "string"}}},
            ]
        }
        assert [f.name for f in extract_fields(schema)] == ["a"]

    def test_array_unwrapped(self):
        schema = {"type": "array", "items": {"type": "object", "properties": {"x": {"type": "number"}}}}
        assert [f.name for f in extract_fields(schema)] == ["x"]

    def test_constraints_copied(self):
        schema = {
            "type": "object",
            "properties": {
                "age": {"type": "integer", "minimum": 0, "maximum": 150},
                "code": {"type": "string", "pattern": "^[A-Z]+$", "minLength": 2},
            },
        }
        age, code = extract_fields(schema)
        assert (age.minimum, age.maximum) == (0, 150)
        assert code.pattern == "^[A-Z]+$"
        assert code.min_length == 2

    def test_escaped_ref_pointer(self):
        doc = {"components": {"schemas": {"a/b": {"type": "object", "properties": {"z": {"type": "string"}}}}}}
        extractor = SchemaExtractor(doc)
        assert extractor.resolve_ref("#/components/schemas/a~1b") is not None

    def test_external_ref_not_resolved(self):
        assert SchemaExtractor({}).resolve_ref("https://example.com/schema.json") is None

    def test_depth_limit_truncates(self):
        schema = {
            "type": "object",
            "properties": {
                "outer": {"type": "object", "properties": {"inner": {"type": "string"}}},
            },
        }
        shallow = extract_fields(schema, max_depth=1)
        assert shallow[0].type == "object"
        assert shallow[0].properties == {}

        deep = extract_fields(schema)
        assert list(deep[0].properties) == ["inner"]


class TestCyclicSchema:
    def test_cycle_ends_in_empty_object(self):
        analysis = parse_file(FIXTURES / "cyclic.yaml")
        employees = analysis.resources[0]
        fields = {f.name: f for f in employees.schema_}

        assert fields["name"].type == "string"
        assert fields["manager"].type == "object"
        assert fields["manager"].properties == {}
        assert fields["reports"].type == "array"
        assert fields["reports"].items.type == "object"
        assert fields["reports"].items.properties == {}

    def test_nesting_invariant(self, blog_resources):
        analysis = parse_file(FIXTURES / "cyclic.yaml")
        _check_nesting(analysis.resources[0].schema_)
        for resource in blog_resources:
            _check_nesting(resource.schema_)


class TestEnvelopes:
    def test_item_schema_by_resource_name(self):
        extractor = SchemaExtractor({})
        schema = {
            "type": "object",
            "properties": {"orders": {"type": "array", "items": {"type": "object", "properties": {"n": {}}}}},
        }
        items = extractor.find_item_schema(schema, "orders", ["data"])
        assert items["properties"] == {"n": {}}

    def test_item_schema_any_array(self):
        extractor = SchemaExtractor({})
        schema = {"type": "object", "properties": {"rows": {"type": "array", "items": {"type": "string"}}}}
        assert extractor.find_item_schema(schema, "orders", ["data"]) == {"type": "string"}

    def test_item_schema_missing(self):
        extractor = SchemaExtractor({})
        assert extractor.find_item_schema({"type": "object", "properties": {"ok": {"type": "boolean"}}}, "x", ["data"]) is None

    def test_single_schema_unwrapped(self):
        extractor = SchemaExtractor({})
        inner = {"type": "object", "properties": {"id": {"type": "integer"}}}
        schema = {"type": "object", "properties": {"data": inner, "meta": {"type": "object"}}}
        assert extractor.find_single_schema(schema) == inner


class TestResourceSchema:
    def test_rebuilds_json_schema(self, blog_resources):
        schema = resource_schema(blog_resources[0])
        assert schema["type"] == "object"
        assert schema["required"] == ["id", "name"]
        assert schema["properties"]["email"] == {"type": "string", "format": "email"}
        assert schema["properties"]["roles"] == {"type": "array", "items": {"type": "string"}}
        assert schema["properties"]["address"]["properties"]["city"] == {"type": "string"}

    def test_empty_resource(self):
        r = ParsedResource(id="x", name="x", path="/x")
        assert resource_schema(r) == {"type": "object", "properties": {}}

    def test_descriptor_constraints(self):
        f = FieldDescriptor(name="n", type="integer", minimum=1, description="count")
        assert descriptor_to_schema(f) == {"type": "integer", "description": "count", "minimum": 1}
