"""Unified data models for parsed API documents.

Discovery converts an OpenAPI / Swagger document into these models. Graph
models are frozen and hold their children in tuples, so a Resource Graph
cannot change after it is built.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

FieldType = Literal[
    "string", "number", "integer", "boolean", "object", "array",
    "date", "datetime", "email", "url",
]

ResourceType = Literal["full_crud", "read_only", "custom"]

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD")
MUTATING_METHODS = ("POST", "PUT", "PATCH", "DELETE")
CRUD_METHODS = ("GET", "POST", "PUT", "DELETE")


class FieldDescriptor(BaseModel):
    """A single field of a resource schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: FieldType = "string"
    format: str | None = None
    description: str = ""
    required: bool = False
    enum: list[Any] | None = None
    items: "FieldDescriptor | None" = None  # array only
    properties: "dict[str, FieldDescriptor] | None" = None  # object only
    minimum: float | None = None
    maximum: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool | None = None
    multiple_of: float | None = None
    example: Any = None

    @model_validator(mode="after")
    def _check_nesting(self) -> "FieldDescriptor":
        if (self.items is not None) != (self.type == "array"):
            raise ValueError(f"field '{self.name}': items must be set iff type is array")
        if (self.properties is not None) != (self.type == "object"):
            raise ValueError(f"field '{self.name}': properties must be set iff type is object")
        return self


class Parameter(BaseModel):
    """A non-body operation parameter (query, path, header, or cookie)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    location: str  # query / path / header / cookie
    required: bool = False
    description: str = ""
    schema_: dict = Field(default_factory=dict, alias="schema")


class OperationInfo(BaseModel):
    """Metadata of one HTTP operation attached to a resource."""

    model_config = ConfigDict(frozen=True)

    method: str  # GET / POST / PUT / PATCH / DELETE
    path: str  # /users/{id}
    scope: Literal["collection", "item"] = "collection"
    operation_id: str | None = None
    summary: str = ""
    description: str = ""
    parameters: tuple[Parameter, ...] = ()
    request_body: dict | None = None
    responses: dict[str, str] = {}  # {status_code: description}
    tags: tuple[str, ...] = ()


class ParsedResource(BaseModel):
    """A node of the Resource Graph."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str  # dotted resource chain: users.posts
    name: str
    path: str
    base_path: str = ""
    item_path: str | None = None
    id_field: str = "id"
    methods: tuple[str, ...] = ()
    schema_: tuple[FieldDescriptor, ...] = Field(default=(), alias="schema")
    operations: dict[str, OperationInfo] = {}
    sub_resources: "tuple[ParsedResource, ...]" = ()
    is_restful: bool = False
    parent_resource_id: str | None = None
    resource_type: ResourceType = "custom"
    tags: tuple[str, ...] = ()

    def has_method(self, method: str) -> bool:
        return method.upper() in self.methods


class OpenAPIAnalysis(BaseModel):
    """Aggregate result of ingesting one document."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    title: str
    version: str
    description: str = ""
    base_url: str = ""
    servers: tuple[str, ...] = ()
    resources: tuple[ParsedResource, ...] = ()
    total_paths: int = 0
    total_operations: int = 0
    restful_apis: int = 0
    tags: tuple[str, ...] = ()
    last_parsed: str = ""


class PaginationInfo(BaseModel):
    """Pagination derived from one list response."""

    page: int = 1
    page_size: int
    total: int
    total_pages: int
