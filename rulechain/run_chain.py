#!/usr/bin/env python3
"""
Runner for rule chains.

This module wires the outer collaborators around the chaining core:
1. Configuration: Load engine settings from YAML and configure logging
2. Assembly: Build a RuleBook from rules and/or rule specifications
3. Execution: Run the chain over a FactMap, collecting metrics
4. Reporting: Optionally write a Markdown run report

The runner neither discovers nor loads rules itself; the CLI imports a
factory callable named on the command line and runs what it returns.

Usage:
    python run_chain.py --rules mypackage.rules:build_rules \
        --fact amount=1000 --fact country=US [--config config.yaml]
"""
import sys
import argparse
import importlib
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

import yaml

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent))

from chaining import FactMap, RuleBook
from engine_config import EngineConfig, configure_logging, load_config
from observability import ChainMetrics, ChainReporter


logger = logging.getLogger(__name__)


class ChainRunner:
    """
    Runs a rule chain with configuration, metrics and reporting around it.

    Each run gets its own RuleBook and Result. Reusing one FactMap across
    concurrent runs is not supported.
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        config: Optional[EngineConfig] = None
    ):
        """
        Initialize the runner.

        Args:
            config_path: Path to YAML configuration file
            config: Already-built configuration (takes precedence over config_path)

        Raises:
            FileNotFoundError: If config_path doesn't exist
            ValueError: If the configuration is invalid
        """
        if config is not None:
            self.config = config
        elif config_path is not None:
            self.config = load_config(config_path)
        else:
            self.config = EngineConfig()

        self.reporter = ChainReporter()
        self.last_report_path: Optional[Path] = None

        logger.info(f"Chain runner initialized (default result: {self.config.default_result!r})")

    def build_rule_book(self, rules: Iterable) -> RuleBook:
        """Build a RuleBook holding rules and specifications in the given order."""
        return RuleBook(rules, default_result=self.config.default_result)

    def run(self, rules: Iterable, facts: Union[FactMap, Dict[str, Any]]) -> ChainMetrics:
        """
        Execute one chain run.

        Args:
            rules: Rules and/or rule specifications, in chain order
            facts: FactMap, or mapping of fact name -> value

        Returns:
            ChainMetrics for the run; final_result holds the Result's value
        """
        if not isinstance(facts, FactMap):
            facts = FactMap(facts)

        book = self.build_rule_book(rules)
        metrics = ChainMetrics(
            run_id=f"run-{uuid.uuid4().hex[:12]}",
            started_at=datetime.utcnow(),
            rules_total=len(book)
        )

        logger.info(f"=== Starting Chain Run: {metrics.run_id} ({len(book)} rules, {len(facts)} facts) ===")

        result = book.run(facts, on_outcome=metrics.record_outcome)

        metrics.final_result = result.value
        metrics.completed_at = datetime.utcnow()

        logger.info(
            f"=== Chain Complete: {metrics.rules_evaluated} rules evaluated, "
            f"{metrics.errors} errors, result={metrics.final_result!r} ==="
        )
        if metrics.stopped_by:
            logger.info(f"Chain stopped by rule {metrics.stopped_by}")

        if self.config.reporting_enabled:
            report = self.reporter.generate_report(metrics)
            self.last_report_path = self.reporter.save_report(report, self.config.report_dir)
            logger.info(f"Report: {self.last_report_path}")

        return metrics


def load_rules_factory(reference: str) -> Callable[[], Iterable]:
    """
    Resolve a 'module:callable' reference.

    Raises:
        ValueError: If the reference is malformed or doesn't name a callable
    """
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Rules reference must look like 'module:callable', got {reference!r}")

    module = importlib.import_module(module_name)
    factory = getattr(module, attribute, None)
    if not callable(factory):
        raise ValueError(f"{reference} is not callable")
    return factory


def parse_facts(assignments: List[str]) -> FactMap:
    """
    Parse 'name=value' pairs into a FactMap.

    Values are read as YAML scalars, so 5 is an int, 4.5 a float and
    true a bool.
    """
    facts = FactMap()
    for assignment in assignments:
        name, sep, raw_value = assignment.partition("=")
        if not sep or not name:
            raise ValueError(f"Fact must look like 'name=value', got {assignment!r}")
        facts.set_value(name.strip(), yaml.safe_load(raw_value))
    return facts


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Run a rule chain over a set of facts"
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--rules",
        required=True,
        help="Factory returning the rules to run, as module:callable"
    )
    parser.add_argument(
        "--fact",
        action="append",
        default=[],
        help="Fact as name=value (repeatable)"
    )
    args = parser.parse_args(argv)

    try:
        runner = ChainRunner(config_path=args.config)
        configure_logging(runner.config)

        rules = list(load_rules_factory(args.rules)())
        metrics = runner.run(rules, parse_facts(args.fact))

        print("\n" + "=" * 60)
        print("Chain Summary")
        print("=" * 60)
        print(f"Run ID: {metrics.run_id}")
        print(f"Rules Evaluated: {metrics.rules_evaluated}/{metrics.rules_total}")
        print(f"Errors: {metrics.errors}")
        print(f"Stopped By: {metrics.stopped_by or '-'}")
        print(f"Result: {metrics.final_result!r}")
        print("=" * 60)

        sys.exit(0)

    except Exception as e:
        logger.error(f"Chain run failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
