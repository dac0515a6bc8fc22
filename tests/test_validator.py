from api_resource_explorer.graph.validator import validate_resource, validate_resources
from api_resource_explorer.parser.base import FieldDescriptor, ParsedResource

FIELDS = (FieldDescriptor(name="id", type="integer"),)


class TestValidateResource:
    def test_complete_resource(self):
        r = ParsedResource(
            id="users",
            name="users",
            path="/users",
            methods=("GET", "POST", "PUT", "DELETE"),
            is_restful=True,
            schema=FIELDS,
        )
        result = validate_resource(r)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []
        assert result.suggestions == []

    def test_missing_identity(self):
        r = ParsedResource(id="", name="", path="", methods=("GET",), schema=FIELDS)
        result = validate_resource(r)
        assert not result.is_valid
        assert len(result.errors) == 3

    def test_restful_missing_methods(self):
        r = ParsedResource(id="posts", name="posts", path="/posts", methods=("GET", "POST"), is_restful=True, schema=FIELDS)
        result = validate_resource(r)
        assert result.is_valid
        assert result.warnings == ["RESTful resource 'posts' is missing methods: PUT, DELETE"]

    def test_no_methods(self):
        r = ParsedResource(id="x", name="x", path="/x", schema=FIELDS)
        assert validate_resource(r).warnings == ["Resource 'x' has no HTTP methods"]

    def test_no_schema_is_suggestion(self):
        r = ParsedResource(id="x", name="x", path="/x", methods=("POST",))
        result = validate_resource(r)
        assert result.is_valid
        assert result.suggestions == ["Resource 'x' has no schema defined"]

    def test_sub_resources_prefixed(self):
        child = ParsedResource(id="", name="child", path="/p/{id}/child", methods=("GET",), schema=FIELDS)
        parent = ParsedResource(id="p", name="p", path="/p", methods=("GET",), schema=FIELDS, sub_resources=(child,))
        result = validate_resource(parent)
        assert result.errors == ["sub_resources[0]: Resource is missing an id"]

    def test_serialized_validity(self):
        r = ParsedResource(id="", name="x", path="/x")
        assert validate_resource(r).model_dump()["is_valid"] is False


class TestValidateResources:
    def test_blog(self, blog_resources):
        results = validate_resources(blog_resources)
        assert list(results) == ["users"]
        users = results["users"]
        assert users.is_valid
        assert "sub_resources[0]: RESTful resource 'posts' is missing methods: PUT" in users.warnings
