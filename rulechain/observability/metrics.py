"""
Metrics collection for rule chain runs.

This module provides ChainMetrics, a dataclass that tracks what happened
during a single chain execution:
- How many rules were evaluated and which of them fired
- How many actions ran
- Which rules raised errors
- Which rule, if any, stopped the chain
- The final value of the Result

Design decisions:
- Single metrics object per run
- Filled from RuleOutcome callbacks, so the engine itself stays unaware of it
- Defaultdict used for automatic initialization of counters
- Serializable to_dict() for JSON/YAML output
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from collections import defaultdict

from chaining.rules import RuleOutcome


@dataclass
class ChainMetrics:
    """
    Metrics for a single chain run.

    Pass record_outcome as the on_outcome callback of RuleBook.run()
    or run_chain().
    """
    run_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None

    # Core counts
    rules_total: int = 0
    rules_evaluated: int = 0
    actions_executed: int = 0
    errors: int = 0

    # Key: rule name, Value: times its condition held
    rules_fired: Dict[str, int] = field(default_factory=lambda: defaultdict(int))

    # Rule that ended the chain early
    stopped_by: Optional[str] = None

    final_result: Any = None

    # One entry per rule that raised
    rule_errors: List[Dict] = field(default_factory=list)

    def record_outcome(self, outcome: RuleOutcome):
        """
        Record what one rule invocation did.

        Args:
            outcome: RuleOutcome reported by the chain
        """
        self.rules_evaluated += 1
        self.actions_executed += outcome.actions_run

        if outcome.fired:
            self.rules_fired[outcome.rule_name] += 1

        if outcome.error is not None:
            self.record_error(outcome.error, {"rule": outcome.rule_name})

        if not outcome.proceed:
            self.stopped_by = outcome.rule_name

    def record_error(self, error: str, context: Dict = None):
        """
        Record an error encountered during the run.

        Args:
            error: Error message
            context: Optional dict with additional context (e.g., rule name)
        """
        self.errors += 1
        self.rule_errors.append({
            "message": error,
            "context": context or {}
        })

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert metrics to dictionary for serialization.

        Returns:
            Dictionary representation with plain dicts and ISO timestamps
        """
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "rules_total": self.rules_total,
            "rules_evaluated": self.rules_evaluated,
            "actions_executed": self.actions_executed,
            "errors": self.errors,
            "rules_fired": dict(self.rules_fired),
            "stopped_by": self.stopped_by,
            "final_result": self.final_result,
            "rule_errors": self.rule_errors
        }
