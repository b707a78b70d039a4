"""
Shared output helpers for the CLI.
"""

import sys
from typing import Optional

from imagetest.runner.suite import SuiteReport

BANNER_WIDTH = 70


def print_box(text: str, width: int = BANNER_WIDTH, char: str = "="):
    """Print text in a box for emphasis."""
    print(char * width)
    print(text)
    print(char * width)


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


def format_failure_report(report: SuiteReport) -> str:
    """List failed scenarios and their failed checks."""
    lines = [f"FAILED: {len(report.failed_scenarios)} of {len(report.outcomes)} scenarios"]
    for name in report.failed_scenarios:
        lines.append(f"  {name}")
        for record in report.check.records_for(name):
            if not record.passed:
                lines.append(f"    - {record.description}")
    return "\n".join(lines)


def print_report(report: SuiteReport):
    """Final banner: success only when every check of every scenario passed."""
    if report.passed:
        print_box(f"SUCCESS: all {len(report.outcomes)} scenarios passed")
    else:
        print(format_failure_report(report), file=sys.stderr)
