"""
Rule state machine and chain traversal.

A Rule holds a condition, an ordered list of actions, optional per-action
fact-name filters and a stop flag. Running a rule evaluates the condition
against the shared FactMap, executes the actions with a scoped view of the
facts, then hands the same FactMap and Result to the next rule.

Design decisions:
- Traversal is iterative (run_chain) so long chains don't hit the recursion limit
- One try/except wraps the condition and the whole action loop: an error in
  action i skips the remaining actions of that rule, never the rest of the chain
- The stop flag is latched by stop() and ends the chain on every later run
  in which the rule fires
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import inspect
import logging

from .facts import Fact, FactMap
from .result import Result


logger = logging.getLogger(__name__)

Condition = Callable[[FactMap], bool]


class RuleState(Enum):
    """Whether the chain continues after a rule."""
    NEXT = "next"
    BREAK = "break"


@dataclass
class RuleOutcome:
    """What a single rule invocation did."""
    rule_name: str
    fired: bool = False
    actions_run: int = 0
    error: Optional[str] = None
    proceed: bool = True


class Action:
    """An action callable plus whether it also consumes the Result."""

    def __init__(self, func: Callable, with_result: Optional[bool] = None):
        self.func = func
        self.with_result = _takes_result(func) if with_result is None else with_result

    def __call__(self, facts: FactMap, result: Result):
        if self.with_result:
            return self.func(facts, result)
        return self.func(facts)

    def __repr__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"Action({name}, with_result={self.with_result})"


def _takes_result(func: Callable) -> bool:
    """True if func accepts at least two positional arguments."""
    try:
        params = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False

    positional = 0
    for param in params:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
    return positional >= 2


class Rule:
    """
    Execution unit of a rule chain.

    Facts whose value is an instance of fact_type are what an action sees
    when no using() filter was registered for it.
    """

    def __init__(
        self,
        fact_type: type = object,
        name: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        fact_filter: Optional[Callable[[Any], bool]] = None
    ):
        """
        Initialize the rule.

        Args:
            fact_type: Declared type of the facts this rule works on
            name: Name used in logs, traces and reports
            logger: Logger for evaluation errors. Defaults to the module logger.
            fact_filter: Explicit predicate replacing the isinstance(value, fact_type) check
        """
        self.fact_type = fact_type
        self.name = name or f"{type(self).__name__}<{getattr(fact_type, '__name__', fact_type)}>"
        self._logger = logger or logging.getLogger(__name__)
        self._accepts = fact_filter or (lambda value: isinstance(value, fact_type))

        self._facts = FactMap()
        self._condition: Optional[Condition] = None
        self._actions: List[Action] = []
        self._fact_names: Dict[int, List[str]] = {}
        self._state = RuleState.NEXT
        self._next_rule = None
        self._result = Result()

    # --- configuration -----------------------------------------------------

    def given(self, *facts) -> "Rule":
        """
        Seed or replace the rule's facts.

        Accepts given(name, value), given(fact, ...), given([fact, ...])
        or given(fact_map). A FactMap replaces the current map; everything
        else is put into it.
        """
        if len(facts) == 2 and isinstance(facts[0], str):
            self._facts.put(Fact(facts[0], facts[1]))
        elif len(facts) == 1 and isinstance(facts[0], FactMap):
            self.set_facts(facts[0])
        else:
            self.add_facts(*facts)
        return self

    def add_facts(self, *facts):
        for item in facts:
            if isinstance(item, Fact):
                self._facts.put(item)
            elif isinstance(item, FactMap):
                for fact in item.values():
                    self._facts.put(fact)
            else:
                for fact in item:
                    self._facts.put(fact)

    def set_facts(self, facts: FactMap):
        self._facts = facts

    @property
    def facts(self) -> FactMap:
        return self._facts

    def when(self, condition: Condition) -> "Rule":
        """Set the condition; it receives the rule's full FactMap."""
        self._condition = condition
        return self

    def then(self, action: Callable, with_result: Optional[bool] = None) -> "Rule":
        """
        Append an action.

        Args:
            action: Callable taking (facts) or (facts, result)
            with_result: Force the arity instead of inferring it from the signature
        """
        self._actions.append(action if isinstance(action, Action) else Action(action, with_result))
        return self

    def using(self, *fact_names: str) -> "Rule":
        """
        Restrict the facts visible to the preceding then() to the named ones.

        Before any then() has been added, the filter applies to the first one.
        Names that aren't in the rule's facts yet, or whose current value
        doesn't match the declared fact type, are dropped. Calling using()
        again before the next then() adds to the set.
        """
        index = max(len(self._actions) - 1, 0)
        matching = []
        for name in fact_names:
            fact = self._facts.get(name)
            if fact is not None and self._accepts(fact.value):
                matching.append(name)
        existing = self._fact_names.setdefault(index, [])
        existing.extend(name for name in matching if name not in existing)
        return self

    def stop(self) -> "Rule":
        """End the chain once this rule fires and its actions have run."""
        self._state = RuleState.BREAK
        return self

    def set_rule_state(self, state: RuleState):
        self._state = state

    @property
    def rule_state(self) -> RuleState:
        return self._state

    @property
    def condition(self) -> Optional[Condition]:
        return self._condition

    @property
    def actions(self) -> List[Action]:
        return self._actions

    def fact_names_for(self, index: int) -> Optional[List[str]]:
        """Return the using() filter registered for an action index, if any."""
        names = self._fact_names.get(index)
        return list(names) if names is not None else None

    def set_result(self, result: Result):
        self._result = result

    @property
    def result(self) -> Result:
        return self._result

    def set_next_rule(self, rule):
        """
        Link the chain successor.

        Raises:
            ValueError: If this rule is already linked to a different rule
        """
        if self._next_rule is not None and rule is not self._next_rule:
            raise ValueError(f"Rule {self.name} is already linked to {self._next_rule.name}")
        self._next_rule = rule

    @property
    def next_rule(self):
        return self._next_rule

    # --- execution ---------------------------------------------------------

    def visible_facts(self, index: int) -> FactMap:
        """
        Build the FactMap handed to the action at index.

        With a using() filter, exactly those names looked up now;
        otherwise every fact of the declared type.
        """
        names = self._fact_names.get(index)
        if names is None:
            return self._facts.filter(self._accepts)

        scoped = FactMap()
        for name in names:
            fact = self._facts.get(name)
            if fact is not None:
                scoped.put(fact)
        return scoped

    def invoke(self) -> RuleOutcome:
        """
        Run this rule only: condition, actions, stop decision.

        Errors raised by the condition or an action are logged and end this
        rule's work; the outcome still lets the chain proceed.
        """
        outcome = RuleOutcome(rule_name=self.name)
        condition = self.condition
        actions = self.actions

        try:
            if condition is None or condition(self._facts):
                outcome.fired = True
                for index, action in enumerate(actions):
                    action(self.visible_facts(index), self._result)
                    outcome.actions_run += 1
                outcome.proceed = self._state is not RuleState.BREAK

        except Exception as e:
            self._logger.error(f"Error occurred when evaluating rule {self.name}: {e}", exc_info=True)
            outcome.error = str(e)

        return outcome

    def run(self, on_outcome: Optional[Callable[[RuleOutcome], None]] = None):
        """Run this rule and then the rest of the chain."""
        run_chain(self, on_outcome)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, actions={len(self._actions)}, state={self._state.value})"


def run_chain(head, on_outcome: Optional[Callable[[RuleOutcome], None]] = None) -> List[RuleOutcome]:
    """
    Run a chain of rules starting at head.

    Each rule fully completes before the next one starts. The successor
    receives the same FactMap and Result instances the current rule used.

    Args:
        head: First rule of the chain (Rule or anything with the same interface)
        on_outcome: Optional callback receiving each RuleOutcome as it happens

    Returns:
        Outcomes of every rule that ran, in order
    """
    outcomes = []
    rule = head

    while rule is not None:
        outcome = rule.invoke()
        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

        if not outcome.proceed:
            logger.debug(f"Rule {outcome.rule_name} stopped the chain")
            break

        successor = rule.next_rule
        if successor is not None:
            successor.set_facts(rule.facts)
            successor.set_result(rule.result)
        rule = successor

    return outcomes
