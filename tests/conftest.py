from pathlib import Path

import pytest

from api_resource_explorer.parser.detect import load_document
from api_resource_explorer.parser.swagger import discover

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def blog_doc():
    return load_document(FIXTURES / "blog.yaml")


@pytest.fixture
def blog_resources(blog_doc):
    return discover(blog_doc)
