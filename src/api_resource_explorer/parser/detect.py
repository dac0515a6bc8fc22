"""Load OpenAPI / Swagger documents and detect their version."""

import json
import logging
from pathlib import Path

import yaml

from api_resource_explorer.errors import ConfigurationError

logger = logging.getLogger(__name__)


def load_document(file_path: Path) -> dict:
    """Read a YAML or JSON document from disk.

    YAML is a superset of JSON, so one loader covers both; plain JSON parsing
    is tried as a fallback for files PyYAML rejects (e.g. tabs in strings).
    """
    text = file_path.read_text(encoding="utf-8")

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        try:
            data = json.loads(text)
        except (json.JSONDecodeError, ValueError) as e:
            raise ConfigurationError(f"{file_path} is neither valid YAML nor JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{file_path} does not contain an OpenAPI document object")
    if not is_openapi_document(data):
        logger.warning(f"{file_path} declares neither 'openapi' nor 'swagger', reading it as OpenAPI 3")
    return data


def load_json(file_path: Path):
    """Read a JSON response body captured from a live API."""
    text = file_path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError) as e:
        raise ConfigurationError(f"{file_path} is not valid JSON: {e}") from e


def detect_version(document: dict) -> str:
    """Detect the document flavour.

    Returns: 'v3' for OpenAPI 3.x, 'v2' for Swagger 2.0. Documents that
    declare neither are treated as 'v3'.
    """
    if document.get("openapi"):
        return "v3"
    if document.get("swagger"):
        return "v2"
    return "v3"


def is_openapi_document(document) -> bool:
    """Return True if the object looks like an OpenAPI / Swagger document."""
    if not isinstance(document, dict):
        return False
    return "openapi" in document or "swagger" in document
