"""
Pytest fixtures for the rolltables test suite.

Provides seeded dice, clean logs, and isolated registries, caches and
evaluation contexts.
"""

import sys

import pytest

from rolltables.data_models import DiceRoller
from rolltables.observability.run_log import reset_run_log
from rolltables.tables import (
    RollCache,
    RollContext,
    TableRegistry,
    get_roll_cache,
    reset_table_registry,
)


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_seed(42)
    yield DiceRoller()
    DiceRoller.clear_roll_log()


@pytest.fixture
def clean_dice():
    """Provide a clean DiceRoller without seed."""
    DiceRoller.clear_roll_log()
    yield DiceRoller()
    DiceRoller.clear_roll_log()


@pytest.fixture
def reset_logs():
    """Reset all logs before and after tests."""
    DiceRoller.clear_roll_log()
    reset_run_log()
    yield
    DiceRoller.clear_roll_log()
    reset_run_log()


# =============================================================================
# ENGINE FIXTURES
# =============================================================================


@pytest.fixture
def registry():
    """An empty, isolated table registry."""
    return TableRegistry()


@pytest.fixture
def ctx(registry, seeded_dice):
    """An evaluation context over the isolated registry and a fresh cache."""
    return RollContext(registry=registry, cache=RollCache())


@pytest.fixture
def global_registry():
    """The process-wide registry and cache, emptied around the test."""
    registry = reset_table_registry()
    get_roll_cache().clear()
    yield registry
    reset_table_registry()
    get_roll_cache().clear()


@pytest.fixture
def shallow_recursion():
    """Lower the interpreter recursion limit so runaway recursion fails fast."""
    limit = sys.getrecursionlimit()
    sys.setrecursionlimit(400)
    yield
    sys.setrecursionlimit(limit)
