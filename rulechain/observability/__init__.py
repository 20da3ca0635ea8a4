"""
Observability layer for rule chain runs.

Main exports:
- ChainMetrics: Tracks metrics for a chain run
- ChainReporter: Generates Markdown reports
"""
from .metrics import ChainMetrics
from .reporter import ChainReporter

__all__ = [
    "ChainMetrics",
    "ChainReporter",
]
