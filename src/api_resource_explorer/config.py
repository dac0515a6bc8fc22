"""Options for discovery, graph queries and response transformation.

Defaults cover the common conventions of real-world REST services. Every
heuristic name list is plain data so hosts can extend it, and each setting
can be overridden from an ``API_RESOURCE_*`` environment variable (list
values as JSON arrays, e.g. ``API_RESOURCE_LIST_KEYS='["rows", "data"]'``).
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "API_RESOURCE_"

DEFAULT_MAX_DEPTH = 10


class DiscoveryOptions(BaseSettings):
    """Controls how path clusters become resources."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)

    include_sub_resources: bool = True
    max_nesting_depth: int = Field(default=5, ge=1)
    max_schema_depth: int = Field(default=32, ge=0)
    require_mutating_method: bool = True
    admission_methods: list[str] = ["POST", "PUT", "PATCH", "DELETE"]
    action_segments: list[str] = [
        "actions", "action", "status", "health", "metrics", "search",
        "login", "logout", "refresh", "validate", "verify",
    ]
    envelope_keys: list[str] = ["data", "items", "list", "results", "records", "content"]


class QueryOptions(BaseSettings):
    """Recursion guard shared by graph walks."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)

    max_depth: int = Field(default=DEFAULT_MAX_DEPTH, ge=0)


class TransformOptions(BaseSettings):
    """Candidate wrapper and pagination keys, tried in list order."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)

    list_keys: list[str] = ["data", "items", "list", "results", "records", "content"]
    single_keys: list[str] = ["data", "item", "result", "record", "content"]
    pagination_keys: list[str] = ["pagination", "page", "meta"]
    page_keys: list[str] = ["page", "current", "number"]
    page_size_keys: list[str] = ["pageSize", "page_size", "size", "limit", "per_page"]
    total_keys: list[str] = ["total", "totalCount", "total_count", "totalElements", "count"]
    default_page_size: int = Field(default=20, ge=1)
