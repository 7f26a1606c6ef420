"""Global pytest configuration and fixtures."""

from __future__ import annotations

import pytest


def pytest_collection_modifyitems(items):
    """Mark everything under tests/integration with the integration marker."""
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)
