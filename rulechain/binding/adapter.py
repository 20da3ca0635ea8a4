"""
Adapter turning a declarative rule specification into a chain rule.

The adapter wraps an underlying Rule and fills in what the specification
declares: given-fields are kept in sync with the current FactMap, the
@when method becomes the condition and every @then method becomes an
action. The underlying Rule never learns how the specification was
written.
"""
from typing import Any, Callable, List, Optional, Union
import collections.abc
import types
import logging
import typing

from chaining.facts import Fact, FactMap
from chaining.result import Result
from chaining.rules import Action, Rule, RuleOutcome, RuleState, run_chain

from .annotations import GivenBinding, RuleSpecification, specification_of


logger = logging.getLogger(__name__)

_LIST_TYPES = (list, tuple, collections.abc.Sequence, collections.abc.Collection, collections.abc.Iterable)
_SET_TYPES = (set, collections.abc.Set, collections.abc.MutableSet)
_FROZENSET_TYPES = (frozenset,)
_MAP_TYPES = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_UNION_TYPES = (Union, getattr(types, "UnionType", Union))


class RuleAdapter:
    """
    Chain rule backed by a @rule specification object.

    Exposes the same interface as Rule, so adapters and programmatic
    rules can be linked into one chain.
    """

    def __init__(self, spec: Any, rule: Optional[Rule] = None, logger: Optional[logging.Logger] = None):
        """
        Initialize the adapter.

        Args:
            spec: Instance of a class marked with @rule
            rule: Underlying rule. Defaults to a Rule over all fact types.
            logger: Logger for binding and invocation errors

        Raises:
            RuleSpecificationError: If spec isn't marked with @rule
        """
        self._spec: RuleSpecification = specification_of(spec)
        self._target = spec
        self._rule = rule if rule is not None else Rule(fact_type=object, name=self._spec.name)
        self._logger = logger or logging.getLogger(__name__)
        self._actions_resolved = False

    @property
    def specification(self) -> RuleSpecification:
        return self._spec

    @property
    def target(self) -> Any:
        """The specification object the adapter drives."""
        return self._target

    @property
    def name(self) -> str:
        return self._rule.name

    # --- facts -------------------------------------------------------------

    def given(self, *facts) -> "RuleAdapter":
        self._rule.given(*facts)
        self._bind_given_fields()
        return self

    def add_facts(self, *facts):
        self._rule.add_facts(*facts)
        self._bind_given_fields()

    def set_facts(self, facts: FactMap):
        self._rule.set_facts(facts)
        self._bind_given_fields()

    @property
    def facts(self) -> FactMap:
        return self._rule.facts

    # --- configuration forwarded to the underlying rule ---------------------

    def when(self, condition: Callable[[FactMap], bool]) -> "RuleAdapter":
        self._rule.when(condition)
        return self

    def then(self, action: Callable, with_result: Optional[bool] = None) -> "RuleAdapter":
        self._rule.then(action, with_result)
        return self

    def using(self, *fact_names: str) -> "RuleAdapter":
        """
        Not available:  methods read given-fields, not a scoped FactMap.

        Raises:
            TypeError: Always
        """
        raise TypeError(f"using() is not supported on rule specification {self.name}")

    def stop(self) -> "RuleAdapter":
        self._rule.stop()
        return self

    def set_rule_state(self, state: RuleState):
        self._rule.set_rule_state(state)

    @property
    def rule_state(self) -> RuleState:
        return self._rule.rule_state

    def set_result(self, result: Result):
        self._rule.set_result(result)

    @property
    def result(self) -> Result:
        return self._rule.result

    def set_next_rule(self, rule):
        self._rule.set_next_rule(rule)

    @property
    def next_rule(self):
        return self._rule.next_rule

    # --- resolution --------------------------------------------------------

    @property
    def condition(self) -> Callable[[FactMap], bool]:
        """
        The condition the rule runs with.

        An explicitly set condition wins; otherwise the @when method,
        failing closed. Without either, a condition that is always False.
        """
        if self._rule.condition is not None:
            return self._rule.condition

        if self._spec.when_method is None:
            return lambda facts: False

        method = getattr(self._target, self._spec.when_method)

        def condition(facts: FactMap) -> bool:
            try:
                return bool(method())
            except Exception as e:
                self._logger.warning(f"Condition {self.name}.{self._spec.when_method} failed: {e}")
                return False

        return condition

    @property
    def actions(self) -> List[Action]:
        """Actions built from the @then methods, resolved once."""
        self._resolve_actions()
        return self._rule.actions

    def _resolve_actions(self):
        if self._actions_resolved:
            return
        if not self._rule.actions:
            for method_name in self._spec.then_methods:
                self._rule.then(self._build_action(method_name))
        self._actions_resolved = True

    def _build_action(self, method_name: str) -> Action:
        method = getattr(self._target, method_name)
        result_field = self._spec.result_field

        if result_field is not None:
            def action_with_result(facts: FactMap, result: Result):
                try:
                    self._apply_return(method())
                    result.set_value(getattr(self._target, result_field))
                except Exception as e:
                    self._logger.error(
                        f"Unable to invoke {self.name}.{method_name} as an action with result: {e}",
                        exc_info=True
                    )

            return Action(action_with_result, with_result=True)

        def action(facts: FactMap):
            try:
                self._apply_return(method())
            except Exception as e:
                self._logger.error(f"Unable to invoke {self.name}.{method_name} as an action: {e}", exc_info=True)

        return Action(action, with_result=False)

    def _apply_return(self, value: Any):
        if value is RuleState.BREAK:
            self._rule.set_rule_state(RuleState.BREAK)

    # --- execution ---------------------------------------------------------

    def invoke(self) -> RuleOutcome:
        if self._rule.condition is None:
            self._rule.when(self.condition)
        self._resolve_actions()
        return self._rule.invoke()

    def run(self, on_outcome: Optional[Callable[[RuleOutcome], None]] = None):
        run_chain(self, on_outcome)

    # --- given-field binding -----------------------------------------------

    def _bind_given_fields(self):
        """
        Copy facts into the specification's given-fields.

        A failure on one field is logged and doesn't stop the others.
        """
        facts = self._rule.facts
        for binding in self._spec.given_fields:
            try:
                found, value = _resolve_given(binding, facts)
                if found:
                    setattr(self._target, binding.attribute, value)
            except Exception as e:
                self._logger.error(
                    f"Unable to update field '{binding.attribute}' in rule object "
                    f"'{type(self._target).__qualname__}': {e}"
                )

    def __repr__(self) -> str:
        return f"RuleAdapter({type(self._target).__qualname__}, rule={self._rule!r})"


def _resolve_given(binding: GivenBinding, facts: FactMap) -> tuple:
    """
    Work out what a given-field receives.

    Returns:
        Tuple of (found, value); found is False when the field is left untouched
    """
    declared = _unwrap_optional(binding.declared_type)
    origin = typing.get_origin(declared) or declared
    args = typing.get_args(declared)
    fact = facts.get(binding.fact_name)

    if origin is Fact:
        return True, fact

    # Parameters are not checked: List[int] takes any list value
    if fact is not None and (declared is Any or type(fact.value) is origin):
        return True, fact.value

    if declared is FactMap:
        return True, facts

    if origin in _MAP_TYPES:
        value_type = args[1] if len(args) == 2 else Any
        return True, {
            name: value for name, value in facts.items()
            if _exact_type(value, value_type)
        }

    element_type = args[0] if args else Any
    values = [item.value for item in facts.values() if _exact_type(item.value, element_type)]

    if origin in _SET_TYPES:
        return True, set(values)
    if origin in _FROZENSET_TYPES:
        return True, frozenset(values)
    if origin is tuple:
        return True, tuple(values)
    if origin in _LIST_TYPES:
        return True, values

    return False, None


def _exact_type(value: Any, expected: Any) -> bool:
    return expected is Any or type(value) is expected


def _unwrap_optional(declared: Any) -> Any:
    """Optional[X] -> X; other annotations unchanged."""
    if typing.get_origin(declared) in _UNION_TYPES:
        members = [arg for arg in typing.get_args(declared) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return declared
