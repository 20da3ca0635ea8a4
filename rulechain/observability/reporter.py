"""
Generate human-readable chain run reports in Markdown format.

This module provides ChainReporter, which turns ChainMetrics into a
Markdown report.

Report sections:
- Header with run metadata (ID, timestamp, duration)
- Summary table with core metrics
- Rules fired and how often
- Rule errors

Design decisions:
- Markdown output for readability and version control friendliness
- Uses tabulate library for table formatting (GitHub-flavored)
- Reports saved with timestamp for historical tracking
"""
from datetime import datetime
from pathlib import Path
from tabulate import tabulate

from .metrics import ChainMetrics


class ChainReporter:
    """Generates Markdown reports from chain run metrics."""

    def generate_report(self, metrics: ChainMetrics) -> str:
        """
        Generate full run report in Markdown format.

        Args:
            metrics: ChainMetrics from a completed run

        Returns:
            Markdown-formatted report as string
        """
        lines = []

        lines.append("# Rule Chain Run Report")
        lines.append(f"**Run ID:** {metrics.run_id}")
        lines.append(f"**Started:** {metrics.started_at.isoformat()}")
        if metrics.completed_at:
            duration = (metrics.completed_at - metrics.started_at).total_seconds()
            lines.append(f"**Duration:** {duration:.3f} seconds")
        lines.append("")

        lines.append("## Summary")
        summary_data = [
            ["Rules", metrics.rules_total],
            ["Rules Evaluated", metrics.rules_evaluated],
            ["Actions Executed", metrics.actions_executed],
            ["Errors", metrics.errors],
            ["Stopped By", metrics.stopped_by or "-"],
            ["Result", metrics.final_result],
        ]
        lines.append(tabulate(summary_data, headers=["Metric", "Value"], tablefmt="github"))
        lines.append("")

        if metrics.rules_fired:
            lines.append("## Rules Fired")
            rules_data = [[k, v] for k, v in sorted(metrics.rules_fired.items())]
            lines.append(tabulate(rules_data, headers=["Rule", "Count"], tablefmt="github"))
            lines.append("")

        if metrics.rule_errors:
            lines.append("## Rule Errors")
            error_data = [
                [error["context"].get("rule", "-"), error["message"]]
                for error in metrics.rule_errors
            ]
            lines.append(tabulate(error_data, headers=["Rule", "Error"], tablefmt="github"))
            lines.append("")

        return "\n".join(lines)

    def save_report(self, report: str, output_dir: Path) -> Path:
        """
        Save report to file with timestamp.

        Args:
            report: Markdown report content
            output_dir: Directory to save report in

        Returns:
            Path to saved report file
        """
        output_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.utcnow().strftime("%Y%m%d-%H%M%S-%f")
        filepath = output_dir / f"chain-report-{timestamp}.md"
        filepath.write_text(report)
        return filepath
