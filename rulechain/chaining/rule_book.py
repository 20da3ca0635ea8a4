"""
RuleBook: an explicit, ordered chain of rules with a shared Result.

The book owns the sequence; each rule's next link is set exactly once,
when the following rule is added. Running the book seeds the head rule
with a FactMap, resets the Result to its default and walks the chain.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from .facts import FactMap
from .result import Result
from .rules import RuleOutcome, run_chain


logger = logging.getLogger(__name__)


class RuleBook:
    """
    Ordered sequence of rules executed as one chain.

    Rules are run in the order they were added. Declarative rule
    specifications are wrapped in a RuleAdapter on the way in.
    """

    def __init__(
        self,
        rules: Iterable = (),
        default_result: Any = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the rule book.

        Args:
            rules: Rules (or rule specifications) to add, in chain order
            default_result: Value the Result holds before any rule assigns it
            logger: Logger handed to adapters built from specifications
        """
        self._rules: List = []
        self._result = Result(default_result)
        self._logger = logger or logging.getLogger(__name__)

        for item in rules:
            self.add(item)

    @classmethod
    def from_specifications(cls, specifications: Iterable, **kwargs) -> "RuleBook":
        """
        Build a RuleBook from declarative specifications ordered by their declared order.

        Specifications with the same order keep their relative position.
        """
        from binding.annotations import specification_of

        ordered = sorted(specifications, key=lambda spec: specification_of(spec).order)
        book = cls(**kwargs)
        for spec in ordered:
            book.add_specification(spec)
        return book

    def add(self, item) -> "RuleBook":
        """Add a rule, or a rule specification if item isn't a rule."""
        if hasattr(item, "invoke") and hasattr(item, "set_next_rule"):
            return self.add_rule(item)
        return self.add_specification(item)

    def add_rule(self, rule) -> "RuleBook":
        """
        Append a rule and link the current tail to it.

        Raises:
            ValueError: If the rule is already part of this book
        """
        if any(existing is rule for existing in self._rules):
            raise ValueError(f"Rule {rule.name} is already in this rule book")

        if self._rules:
            self._rules[-1].set_next_rule(rule)
        rule.set_result(self._result)
        self._rules.append(rule)
        return self

    def add_specification(self, spec) -> "RuleBook":
        """Wrap a declarative specification (instance or class) and append it."""
        from binding.adapter import RuleAdapter

        if isinstance(spec, type):
            spec = spec()
        return self.add_rule(RuleAdapter(spec, logger=self._logger))

    @property
    def rules(self) -> List:
        return list(self._rules)

    def has_rules(self) -> bool:
        return bool(self._rules)

    @property
    def result(self) -> Result:
        return self._result

    def set_default_result(self, value: Any):
        self._result.set_default(value)

    def run(
        self,
        facts: FactMap,
        on_outcome: Optional[Callable[[RuleOutcome], None]] = None
    ) -> Result:
        """
        Run the chain over facts.

        Args:
            facts: FactMap shared (and mutated) by every rule
            on_outcome: Optional callback receiving each RuleOutcome

        Returns:
            The shared Result
        """
        self._result.reset()

        if not self._rules:
            logger.debug("Rule book has no rules; returning default result")
            return self._result

        head = self._rules[0]
        head.set_result(self._result)
        head.set_facts(facts)

        outcomes = run_chain(head, on_outcome)
        logger.debug(f"Rule book ran {len(outcomes)} of {len(self._rules)} rules")
        return self._result

    def explain(self, facts: FactMap) -> Dict[str, Any]:
        """
        Run the chain and describe what each rule did.

        Returns:
            Dictionary with the result value, evaluation trace and the rule
            that stopped the chain (None if it ran to the end)
        """
        trace = []
        stopped_by = None

        def record(outcome: RuleOutcome):
            nonlocal stopped_by
            trace.append({
                'rule': outcome.rule_name,
                'fired': outcome.fired,
                'actions_run': outcome.actions_run,
                'error': outcome.error
            })
            if not outcome.proceed:
                stopped_by = outcome.rule_name

        result = self.run(facts, on_outcome=record)

        return {
            'result': result.value,
            'evaluation_trace': trace,
            'total_rules_evaluated': len(trace),
            'stopped_by': stopped_by
        }

    def __len__(self) -> int:
        return len(self._rules)
