import pytest

from api_resource_explorer.config import TransformOptions
from api_resource_explorer.errors import ConfigurationError, ParseError
from api_resource_explorer.parser.schema import resource_schema
from api_resource_explorer.transform.response import (
    ResponseTransformer,
    is_resource_data,
    transform_list,
    transform_single,
)

USER_SCHEMA = {
    "type": "object",
    "properties": {"id": {"type": "integer"}, "name": {"type": "string"}},
    "required": ["id", "name"],
}


class TestIsResourceData:
    def test_object_required_keys(self):
        assert is_resource_data({"id": 1, "name": "a"}, USER_SCHEMA)
        assert is_resource_data({"id": "not-checked", "name": None}, USER_SCHEMA)
        assert not is_resource_data({"id": 1}, USER_SCHEMA)
        assert not is_resource_data([{"id": 1, "name": "a"}], USER_SCHEMA)

    def test_primitives(self):
        assert is_resource_data("x", {"type": "string"})
        assert is_resource_data(1.5, {"type": "number"})
        assert is_resource_data(3.0, {"type": "integer"})
        assert not is_resource_data(3.5, {"type": "integer"})
        assert is_resource_data(False, {"type": "boolean"})
        assert is_resource_data([], {"type": "array"})

    def test_bool_is_not_a_number(self):
        assert not is_resource_data(True, {"type": "number"})
        assert not is_resource_data(True, {"type": "integer"})

    def test_ref_matches_any_object(self):
        assert is_resource_data({}, {"$ref": "#/components/schemas/User"})
        assert not is_resource_data("x", {"$ref": "#/components/schemas/User"})

    def test_none_and_empty_schema(self):
        assert not is_resource_data(None, USER_SCHEMA)
        assert not is_resource_data({"id": 1}, {})


class TestTransformList:
    def test_bare_array(self):
        body = [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]
        result = transform_list(body, USER_SCHEMA)
        assert result.data == body
        assert result.pagination.model_dump() == {"page": 1, "page_size": 2, "total": 2, "total_pages": 1}

    def test_empty_array(self):
        result = transform_list([], USER_SCHEMA)
        assert result.data == []
        assert result.pagination.total == 0

    def test_mismatched_array(self):
        with pytest.raises(ParseError):
            transform_list([{"foo": 1}], USER_SCHEMA)

    def test_data_envelope(self):
        body = {
            "data": [{"id": 1, "name": "a"}],
            "pagination": {"page": 2, "pageSize": 10, "total": 35},
        }
        result = transform_list(body, USER_SCHEMA)
        assert result.data == [{"id": 1, "name": "a"}]
        assert result.pagination.page == 2
        assert result.pagination.page_size == 10
        assert result.pagination.total == 35
        assert result.pagination.total_pages == 4

    def test_envelope_key_order(self):
        body = {"items": [{"id": 2, "name": "b"}], "data": [{"id": 1, "name": "a"}]}
        assert transform_list(body, USER_SCHEMA).data == [{"id": 1, "name": "a"}]

    def test_non_matching_envelope_skipped(self):
        body = {"data": [{"unrelated": True}], "results": [{"id": 1, "name": "a"}]}
        assert transform_list(body, USER_SCHEMA).data == [{"id": 1, "name": "a"}]

    def test_unconventional_key(self):
        body = {"users": [{"id": 1, "name": "a"}], "count": 1}
        result = transform_list(body, USER_SCHEMA)
        assert result.data == [{"id": 1, "name": "a"}]
        assert result.pagination.total == 1

    def test_no_matching_array(self):
        with pytest.raises(ParseError):
            transform_list({"message": "ok", "tags": ["a"]}, USER_SCHEMA)

    def test_null_body(self):
        with pytest.raises(ParseError):
            transform_list(None, USER_SCHEMA)

    def test_scalar_body(self):
        with pytest.raises(ParseError):
            transform_list("users", USER_SCHEMA)

    def test_missing_schema(self):
        with pytest.raises(ConfigurationError) as exc_info:
            transform_list([], None)
        assert exc_info.value.status_code == 400


class TestPagination:
    def test_root_level_fields(self):
        body = {"items": [], "page": 3, "limit": 5, "totalCount": 12}
        p = transform_list(body, USER_SCHEMA).pagination
        assert (p.page, p.page_size, p.total, p.total_pages) == (3, 5, 12, 3)

    def test_meta_container(self):
        body = {"data": [], "meta": {"current": 2, "per_page": 25, "totalElements": 100}}
        p = transform_list(body, USER_SCHEMA).pagination
        assert (p.page, p.page_size, p.total, p.total_pages) == (2, 25, 100, 4)

    def test_defaults_without_total(self):
        p = transform_list({"data": []}, USER_SCHEMA).pagination
        assert (p.page, p.page_size, p.total, p.total_pages) == (1, 20, 20, 1)

    def test_explicit_zero_total(self):
        p = transform_list({"data": [], "total": 0}, USER_SCHEMA).pagination
        assert p.total == 0
        assert p.total_pages == 0

    def test_zero_page_size(self):
        p = transform_list({"data": [], "pagination": {"size": 0, "total": 10}}, USER_SCHEMA).pagination
        assert p.total_pages == 1

    def test_first_listed_name_wins(self):
        p = transform_list({"data": [], "total": 7, "count": 3, "size": 7}, USER_SCHEMA).pagination
        assert p.total == 7

    def test_bool_values_ignored(self):
        p = transform_list({"data": [], "page": True}, USER_SCHEMA).pagination
        assert p.page == 1

    def test_non_finite_values_ignored(self):
        body = {"data": [{"id": 1, "name": "a"}], "total": float("inf"), "size": float("nan")}
        p = transform_list(body, USER_SCHEMA).pagination
        assert p.page_size == 20
        assert p.total == 20
        assert p.total_pages == 1

    def test_custom_default_page_size(self):
        transformer = ResponseTransformer(TransformOptions(default_page_size=50))
        assert transformer.transform_list({"data": []}, USER_SCHEMA).pagination.page_size == 50


class TestTransformSingle:
    def test_direct_match(self):
        body = {"id": 1, "name": "a"}
        assert transform_single(body, USER_SCHEMA) == body

    def test_data_envelope(self):
        body = {"data": {"id": 1, "name": "a"}, "status": "ok"}
        assert transform_single(body, USER_SCHEMA) == {"id": 1, "name": "a"}

    def test_unconventional_key(self):
        body = {"user": {"id": 1, "name": "a"}}
        assert transform_single(body, USER_SCHEMA) == {"id": 1, "name": "a"}

    def test_none_passes_through(self):
        assert transform_single(None, USER_SCHEMA) is None

    def test_non_object_passes_through(self):
        assert transform_single([1, 2], USER_SCHEMA) == [1, 2]
        assert transform_single("text", USER_SCHEMA) == "text"

    def test_unrelated_fields(self):
        with pytest.raises(ParseError):
            transform_single({"unrelated": 1}, USER_SCHEMA)

    def test_missing_schema(self):
        with pytest.raises(ConfigurationError):
            transform_single({"id": 1}, {})


class TestTransformFromGraph:
    def test_schema_from_discovered_resource(self, blog_resources):
        schema = resource_schema(blog_resources[0])
        body = {
            "data": [{"id": 1, "name": "Ada", "email": "ada@example.com"}],
            "pagination": {"page": 1, "pageSize": 20, "total": 1},
        }
        result = transform_list(body, schema)
        assert result.data[0]["name"] == "Ada"
        assert result.pagination.total_pages == 1

    def test_only_required_keys_matter(self, blog_resources):
        schema = resource_schema(blog_resources[0])
        body = {"data": {"id": 9, "name": "Grace"}}
        assert transform_single(body, schema) == {"id": 9, "name": "Grace"}
