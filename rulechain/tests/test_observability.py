"""
Lightweight validation tests for the observability layer.

These tests verify:
- ChainMetrics records rule outcomes correctly
- ChainMetrics serializes to dict properly
- ChainReporter generates valid Markdown output
"""
from datetime import datetime

from chaining import FactMap, Rule, RuleBook, RuleOutcome
from observability import ChainMetrics, ChainReporter


def test_chain_metrics_records_outcomes():
    """Verify ChainMetrics counts fired rules, actions and errors."""
    metrics = ChainMetrics(run_id="test_run", started_at=datetime.utcnow())

    metrics.record_outcome(RuleOutcome(rule_name="r1", fired=True, actions_run=2))
    metrics.record_outcome(RuleOutcome(rule_name="r2", fired=False))
    metrics.record_outcome(RuleOutcome(rule_name="r3", fired=True, actions_run=0, error="boom"))
    metrics.record_outcome(RuleOutcome(rule_name="r1", fired=True, actions_run=1, proceed=False))

    assert metrics.rules_evaluated == 4
    assert metrics.actions_executed == 3
    assert metrics.rules_fired["r1"] == 2
    assert "r2" not in metrics.rules_fired
    assert metrics.errors == 1
    assert metrics.rule_errors[0]["context"] == {"rule": "r3"}
    assert metrics.stopped_by == "r1"


def test_chain_metrics_from_rule_book_run():
    """Verify ChainMetrics works as the on_outcome callback."""
    metrics = ChainMetrics(run_id="test_run", started_at=datetime.utcnow())
    book = RuleBook([
        Rule(name="fires").then(lambda facts: None),
        Rule(name="quiet").when(lambda facts: False),
    ])

    book.run(FactMap(), on_outcome=metrics.record_outcome)

    assert metrics.rules_evaluated == 2
    assert dict(metrics.rules_fired) == {"fires": 1}


def test_chain_metrics_serialization():
    """Verify ChainMetrics can be serialized to dict."""
    metrics = ChainMetrics(
        run_id="test_run",
        started_at=datetime(2024, 1, 1, 12, 0, 0),
        completed_at=datetime(2024, 1, 1, 12, 0, 1),
        rules_total=3,
        final_result=4.5
    )
    metrics.record_outcome(RuleOutcome(rule_name="r1", fired=True, actions_run=1))

    result = metrics.to_dict()

    assert result["run_id"] == "test_run"
    assert result["started_at"] == "2024-01-01T12:00:00"
    assert result["completed_at"] == "2024-01-01T12:00:01"
    assert result["rules_fired"] == {"r1": 1}
    assert type(result["rules_fired"]) is dict
    assert result["final_result"] == 4.5
    assert result["stopped_by"] is None


def test_reporter_generates_markdown():
    """Verify ChainReporter produces Markdown with tables."""
    metrics = ChainMetrics(
        run_id="test_run",
        started_at=datetime(2024, 1, 1, 12, 0, 0),
        completed_at=datetime(2024, 1, 1, 12, 0, 2),
        rules_total=2
    )
    metrics.record_outcome(RuleOutcome(rule_name="r1", fired=True, actions_run=1))
    metrics.record_outcome(RuleOutcome(rule_name="r2", fired=True, error="kaput"))

    report = ChainReporter().generate_report(metrics)

    assert "# Rule Chain Run Report" in report
    assert "**Run ID:** test_run" in report
    assert "**Duration:** 2.000 seconds" in report
    assert "## Rules Fired" in report
    assert "## Rule Errors" in report
    assert "kaput" in report
    assert "|" in report


def test_reporter_saves_report(tmp_path):
    """Verify ChainReporter writes the report to a timestamped file."""
    reporter = ChainReporter()

    path = reporter.save_report("# Report", tmp_path / "reports")

    assert path.exists()
    assert path.name.startswith("chain-report-")
    assert path.read_text() == "# Report"
