import doctest
import importlib
from types import ModuleType

import pytest

DOCTEST_MODULES = [
    "ops_app.core.status",
    "ops_app.analytics.pipeline.normalize",
    "ops_app.analytics.metrics.incidents",
    "ops_app.core.store_client",
    "ops_app.core.service",
    "ops_app.features.filters",
]


@pytest.mark.parametrize("name", DOCTEST_MODULES)
def test_module_doctests(name):
    module = importlib.import_module(name)
    assert isinstance(module, ModuleType)
    result = doctest.testmod(module)
    assert result.attempted > 0
    assert result.failed == 0
