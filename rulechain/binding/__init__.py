"""
Declarative binding layer.

Lets rules be written as plain classes tagged with @rule, given(),
result(), @when and @then, and adapts them onto the chaining core.
"""
from .annotations import (
    GivenBinding,
    RuleSpecification,
    RuleSpecificationError,
    given,
    is_rule_specification,
    result,
    rule,
    specification_of,
    then,
    when,
)
from .adapter import RuleAdapter


__all__ = [
    'GivenBinding',
    'RuleSpecification',
    'RuleSpecificationError',
    'RuleAdapter',
    'given',
    'is_rule_specification',
    'result',
    'rule',
    'specification_of',
    'then',
    'when',
]
