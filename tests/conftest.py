"""Pytest configuration for dataknobs_rules tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from dataknobs_rules import RuleRegistry, StrategyRegistry, Validator  # noqa: E402


@pytest.fixture
def rules():
    """Isolated rule registry."""
    return RuleRegistry("test")


@pytest.fixture
def strategies():
    """Isolated strategy registry with the built-in strategies."""
    return StrategyRegistry("test")


@pytest.fixture
def validator(rules, strategies):
    """Engine bound to the isolated registries."""
    return Validator(rules, strategies)
