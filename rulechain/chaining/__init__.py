"""
Rule chaining core.

Provides the fact model, the shared Result slot, the Rule state machine
and the RuleBook that links rules into an ordered chain.
"""
from .facts import Fact, FactMap
from .result import Result
from .rules import Action, Rule, RuleOutcome, RuleState, run_chain
from .rule_book import RuleBook


__all__ = [
    'Fact',
    'FactMap',
    'Result',
    'Action',
    'Rule',
    'RuleOutcome',
    'RuleState',
    'RuleBook',
    'run_chain',
]
