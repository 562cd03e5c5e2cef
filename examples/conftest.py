"""pytest wiring for the runnable scimitar examples.

Each example directory holds an ``app.py`` and a ``test_*.py`` next to it.
The ``example_app`` fixture imports that ``app.py`` afresh for every test, so
each test gets its own Engine and template cache.
"""

import importlib.util
import sys
from pathlib import Path
from types import ModuleType

import pytest


def load_app(app_path: Path) -> ModuleType:
    """Import ``app_path`` as ``example_<directory>`` and register it.

    Generated templates import the module that defines their model type, so
    the app module has to be importable by name while it runs.
    """
    module_name = f"example_{app_path.parent.name}"
    spec = importlib.util.spec_from_file_location(module_name, app_path)
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load example app {app_path}")
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        del sys.modules[module_name]
        raise
    return module


@pytest.fixture
def example_app(request: pytest.FixtureRequest):
    module = load_app(Path(request.path).parent / "app.py")
    yield module
    sys.modules.pop(module.__name__, None)
