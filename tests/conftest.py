"""Shared fixtures for the tre_regex test suite.

Tests marked ``native`` run against the real libtre and are skipped when it
cannot be loaded (point TRE_LIBRARY at the shared object if it lives
somewhere unusual). Everything else runs against ScriptedEngine.
"""

from __future__ import annotations

import pytest

from tre_regex import NativeEngine, get_engine, native_available


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if native_available():
        return
    skip = pytest.mark.skip(reason="TRE shared library not available (set TRE_LIBRARY)")
    for item in items:
        if "native" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
def native() -> NativeEngine:
    """The process-wide libtre engine."""
    return get_engine()
