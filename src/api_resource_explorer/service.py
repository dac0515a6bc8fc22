"""Analysis catalog: parse documents once, serve the cached analyses.

The cache is a collaborator passed in by the host. Anything with
get/set/delete/clear works; the in-memory default is enough for a single
process.
"""

import logging
from pathlib import Path
from typing import Protocol

from api_resource_explorer.config import DiscoveryOptions
from api_resource_explorer.errors import ConfigurationError
from api_resource_explorer.parser.base import OpenAPIAnalysis, ParsedResource
from api_resource_explorer.parser.detect import load_document
from api_resource_explorer.parser.swagger import parse_openapi

logger = logging.getLogger(__name__)


class AnalysisCache(Protocol):
    def get(self, api_id: str) -> OpenAPIAnalysis | None: ...

    def set(self, api_id: str, analysis: OpenAPIAnalysis) -> None: ...

    def delete(self, api_id: str) -> None: ...

    def clear(self) -> None: ...


class InMemoryAnalysisCache:
    """Dict-backed cache, keyed by API id."""

    def __init__(self):
        self._entries: dict[str, OpenAPIAnalysis] = {}

    def get(self, api_id: str) -> OpenAPIAnalysis | None:
        return self._entries.get(api_id)

    def set(self, api_id: str, analysis: OpenAPIAnalysis) -> None:
        self._entries[api_id] = analysis

    def delete(self, api_id: str) -> None:
        self._entries.pop(api_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class ResourceCatalog:
    """Parses OpenAPI documents and caches one analysis per API id."""

    def __init__(self, cache: AnalysisCache | None = None, options: DiscoveryOptions | None = None):
        self.cache = cache if cache is not None else InMemoryAnalysisCache()
        self.options = options or DiscoveryOptions()

    def ingest(self, api_id: str, document: dict | Path) -> OpenAPIAnalysis:
        """Return the cached analysis for `api_id`, parsing `document` on a miss.

        `document` is either an already-loaded dict or a path to a YAML/JSON
        file.

        Raises:
            ConfigurationError: if `api_id` is blank or the document is unusable.
        """
        if not isinstance(api_id, str) or not api_id.strip():
            raise ConfigurationError("api_id is required")

        cached = self.cache.get(api_id)
        if cached is not None:
            logger.debug(f"Using cached analysis for {api_id}")
            return cached

        if isinstance(document, Path):
            document = load_document(document)

        analysis = parse_openapi(document, self.options)
        analysis = analysis.model_copy(
            update={
                "id": api_id,
                "resources": tuple(_with_base_path(r, analysis.base_url) for r in analysis.resources),
            }
        )
        self.cache.set(api_id, analysis)
        logger.info(f"Cached analysis {api_id} with {len(analysis.resources)} top-level resources")
        return analysis

    def reload(self, api_id: str, document: dict | Path) -> OpenAPIAnalysis:
        """Drop any cached analysis for `api_id` and parse again."""
        self.cache.delete(api_id)
        return self.ingest(api_id, document)

    def get(self, api_id: str) -> OpenAPIAnalysis | None:
        return self.cache.get(api_id)

    def is_cached(self, api_id: str) -> bool:
        return self.cache.get(api_id) is not None

    def clear(self, api_id: str | None = None) -> None:
        if api_id is None:
            self.cache.clear()
        else:
            self.cache.delete(api_id)


def _with_base_path(resource: ParsedResource, base_url: str) -> ParsedResource:
    return resource.model_copy(
        update={
            "base_path": base_url.rstrip("/") + resource.path,
            "sub_resources": tuple(_with_base_path(child, base_url) for child in resource.sub_resources),
        }
    )
