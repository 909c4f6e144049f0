"""
Shared fixtures for the Trampoline test suites.
"""

import pytest
from trampoline_cell.store import CellStore
from trampoline_chain.mock_chain import MockChain


@pytest.fixture
def cell_store():
    """Create a fresh CellStore instance for each test."""
    return CellStore()


@pytest.fixture
def chain():
    """Create a fresh MockChain with the always-success lock deployed."""
    return MockChain()


@pytest.fixture
def provider(chain):
    """Provider view of the chain fixture."""
    return chain.inner()
