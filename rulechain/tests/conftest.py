"""
Shared pytest fixtures for rule chain tests.

This module provides reusable facts and specification classes so
individual test modules stay focused on behaviour.
"""
import sys
from dataclasses import dataclass
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest

from chaining import Fact, FactMap


@dataclass
class Applicant:
    """Loan applicant used as a non-primitive fact value."""
    credit_score: int
    cash_on_hand: float
    first_time_buyer: bool


@pytest.fixture
def mixed_facts():
    """
    FactMap holding values of several types.

    Returns:
        FactMap with ints, a str and a float
    """
    return FactMap([
        Fact("a", 5),
        Fact("b", 7),
        Fact("label", "hello"),
        Fact("ratio", 0.25),
    ])


@pytest.fixture
def applicants():
    """
    FactMap of two loan applicants plus a loan amount.

    Returns:
        FactMap keyed by applicant name
    """
    return FactMap([
        Fact("applicant1", Applicant(650, 20000.0, True)),
        Fact("applicant2", Applicant(620, 30000.0, True)),
        Fact("amount", 175000),
    ])


@pytest.fixture
def chain_logger(caplog):
    """Capture ERROR records from the chaining core."""
    caplog.set_level("DEBUG", logger="chaining")
    caplog.set_level("DEBUG", logger="binding")
    return caplog
