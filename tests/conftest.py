"""
Pytest configuration and shared fixtures.
"""

import pytest

from specmachine import Router


@pytest.fixture
def router():
    """An empty router for tests to register handlers on."""
    return Router(controller="Items")
