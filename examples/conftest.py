"""Shared pytest configuration for etch examples.

``example_app`` executes the ``app.py`` beside the requesting test in a fresh
module namespace. Examples that render through the module-level API share the
default environment, so its template cache is emptied after each test.
"""

import importlib.util
from pathlib import Path

import pytest

import etch


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    """Run the sibling app.py and yield it as a module."""
    app_path = Path(request.path).parent / "app.py"
    if not app_path.exists():
        pytest.skip(f"no app.py beside {Path(request.path).name}")
    spec = importlib.util.spec_from_file_location(f"etch_example_{app_path.parent.name}", app_path)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    yield module
    etch.clear_cache()
