"""Schema-guided response transformer.

Extracts list or single resource payloads from live JSON bodies using only
the resource schema supplied by the caller. Wrapper keys are tried in a
fixed, configurable order and the first structural match wins; when nothing
matches a typed error is raised instead of returning empty data.
"""

import logging
import math
from typing import Any

from pydantic import BaseModel

from api_resource_explorer.config import TransformOptions
from api_resource_explorer.errors import ConfigurationError, ParseError
from api_resource_explorer.parser.base import PaginationInfo

logger = logging.getLogger(__name__)


class ListResult(BaseModel):
    data: list[Any]
    pagination: PaginationInfo


def _is_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _is_mapping(value) -> bool:
    return isinstance(value, dict)


def is_resource_data(data, schema: dict | None) -> bool:
    """Shallow structural match of a value against a schema.

    Objects only need every `required` property to be present; property
    values are not type-checked.
    """
    if data is None or not schema:
        return False

    # references are not resolved here
    if "$ref" in schema:
        return _is_mapping(data)

    schema_type = schema.get("type")
    if isinstance(schema_type, list):
        schema_type = next((t for t in schema_type if t != "null"), None)

    if schema_type == "object":
        if not _is_mapping(data):
            return False
        if not schema.get("properties"):
            return True
        required = schema.get("required")
        if isinstance(required, list):
            return all(name in data for name in required)
        return True
    if schema_type == "string":
        return isinstance(data, str)
    if schema_type == "number":
        return _is_number(data)
    if schema_type == "integer":
        if isinstance(data, float):
            return data.is_integer()
        return isinstance(data, int) and not isinstance(data, bool)
    if schema_type == "boolean":
        return isinstance(data, bool)
    if schema_type == "array":
        return isinstance(data, list)

    # untyped schemas, with or without properties, describe objects
    if schema.get("properties") and isinstance(schema.get("required"), list):
        return _is_mapping(data) and all(name in data for name in schema["required"])
    return _is_mapping(data)


class ResponseTransformer:
    """Normalizes response bodies for one resource schema at a time."""

    def __init__(self, options: TransformOptions | None = None):
        self.options = options or TransformOptions()

    def transform_list(self, response_data, resource_schema: dict | None) -> ListResult:
        """Extract the list payload and pagination of a list response.

        Raises:
            ConfigurationError: if no schema is given.
            ParseError: if no array in the body matches the schema.
        """
        if not resource_schema:
            raise ConfigurationError("resource_schema is required for list data transformation")

        if response_data is None:
            raise ParseError("Expected list response but got null")

        if isinstance(response_data, list):
            if response_data and not self._array_matches(response_data, resource_schema):
                raise ParseError("Array elements do not match the provided resource_schema")
            return ListResult(data=response_data, pagination=default_pagination(len(response_data)))

        if not _is_mapping(response_data):
            raise ParseError("Expected list response to be object or array")

        tried = set()
        for key in self.options.list_keys:
            value = response_data.get(key)
            if isinstance(value, list):
                tried.add(key)
                if self._array_matches(value, resource_schema):
                    return ListResult(data=value, pagination=self.extract_pagination(response_data))

        for key, value in response_data.items():
            if key in tried or not isinstance(value, list):
                continue
            if self._array_matches(value, resource_schema):
                logger.debug(f"List data found under non-conventional key '{key}'")
                return ListResult(data=value, pagination=self.extract_pagination(response_data))

        raise ParseError("Could not extract list data using provided resource_schema")

    def transform_single(self, response_data, resource_schema: dict | None):
        """Extract a single resource from a response body.

        None and non-object bodies are returned unchanged.

        Raises:
            ConfigurationError: if no schema is given.
            ParseError: if neither the body nor a wrapped object matches.
        """
        if not resource_schema:
            raise ConfigurationError("resource_schema is required for single resource transformation")

        if response_data is None or not _is_mapping(response_data):
            return response_data

        if is_resource_data(response_data, resource_schema):
            return response_data

        for key in self.options.single_keys:
            if key in response_data and is_resource_data(response_data[key], resource_schema):
                return response_data[key]

        for key, value in response_data.items():
            if _is_mapping(value) and is_resource_data(value, resource_schema):
                logger.debug(f"Single resource found under non-conventional key '{key}'")
                return value

        raise ParseError("Could not extract single resource data using provided resource_schema")

    def extract_pagination(self, obj: dict) -> PaginationInfo:
        """Pagination from a pagination container, else from root-level fields.

        Missing total means a single page: total = page size.
        """
        source = obj
        for key in self.options.pagination_keys:
            if _is_mapping(obj.get(key)):
                source = obj[key]
                break

        page = _first_number(source, self.options.page_keys)
        page_size = _first_number(source, self.options.page_size_keys)
        total = _first_number(source, self.options.total_keys)

        page = int(page) if page is not None else 1
        page_size = int(page_size) if page_size is not None else self.options.default_page_size
        total = int(total) if total is not None else page_size

        total_pages = math.ceil(total / page_size) if page_size > 0 else 1
        return PaginationInfo(page=page, page_size=page_size, total=total, total_pages=total_pages)

    def _array_matches(self, items: list, resource_schema: dict) -> bool:
        """An empty array matches; otherwise the first non-null element decides."""
        if not items:
            return True
        sample = next((item for item in items if item is not None), None)
        return sample is not None and is_resource_data(sample, resource_schema)


def _first_number(source: dict, keys):
    for key in keys:
        value = source.get(key)
        if _is_number(value):
            return value
    return None


def default_pagination(total: int) -> PaginationInfo:
    return PaginationInfo(page=1, page_size=total, total=total, total_pages=1)


def transform_list(response_data, resource_schema: dict | None, options: TransformOptions | None = None) -> ListResult:
    return ResponseTransformer(options).transform_list(response_data, resource_schema)


def transform_single(response_data, resource_schema: dict | None, options: TransformOptions | None = None):
    return ResponseTransformer(options).transform_single(response_data, resource_schema)
