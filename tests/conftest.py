"""Pytest configuration and fixtures."""
from pathlib import Path

import pytest

from shv.core.extractor import HandlerContextExtractor

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def sst_repo():
    """
    Sample SST project with a mix of valid and broken handler references.

    Broken references (in walk order):
      infra/api.ts     -> functions/uplod.handler (file-not-found)
      infra/bucket.ts  -> invalid-format-string (invalid-format)
      infra/queue.ts   -> functions/details.missing (function-not-found)
    """
    return FIXTURES / "sst_repo"


@pytest.fixture
def make_project(tmp_path):
    """Write a project from a {relative path: content} mapping and return its root."""

    def _make(files, marker=True):
        if marker:
            files = {"sst.config.ts": "export default $config({});\n", **files}
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def extractor():
    return HandlerContextExtractor()
