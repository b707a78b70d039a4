"""
Assertion primitives with accumulated pass/fail state.

Assertions never raise. A mismatch is logged with both values and recorded,
and the caller carries on with its next statement; the runner reads the
accumulated records to decide the exit status.

Example:
    >>> log = AssertionLog()
    >>> log.assert_equal("Hello world", "Hello world")
    True
    >>> log.assert_contains("Running application...", "Running")
    True
    >>> log.passed
    True
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class AssertionRecord:
    """Outcome of a single check."""

    description: str
    expected: Any
    actual: Any
    passed: bool
    scenario: Optional[str] = None


class AssertionLog:
    """Collects assertion records for a whole suite run."""

    def __init__(self):
        self.records: List[AssertionRecord] = []
        self.scenario: Optional[str] = None

    @property
    def failures(self) -> List[AssertionRecord]:
        return [record for record in self.records if not record.passed]

    @property
    def passed(self) -> bool:
        """True while no recorded check has failed."""
        return not self.failures

    def assert_equal(self, actual: Any, expected: Any, description: str = "") -> bool:
        """
        Check that two values are identical.

        Strings must match character for character, including whitespace
        and trailing newlines.

        Args:
            actual: Observed value
            expected: Expected value
            description: What is being checked, for diagnostics

        Returns:
            True if the check passed
        """
        passed = actual == expected
        return self._record(description or "values are equal", expected, actual, passed)

    def assert_contains(self, haystack: str, needle: str, description: str = "") -> bool:
        """
        Check that needle occurs as a contiguous substring of haystack.

        Args:
            haystack: Text to search (build log, response body, output)
            needle: Expected fragment
            description: What is being checked, for diagnostics

        Returns:
            True if the check passed
        """
        passed = haystack is not None and needle in haystack
        return self._record(
            description or "text contains fragment", needle, haystack, passed
        )

    def fail(self, description: str, expected: Any = None, actual: Any = None) -> bool:
        """Record a failure that is not a value comparison (timeouts, aborted steps)."""
        return self._record(description, expected, actual, False)

    def records_for(self, scenario: str) -> List[AssertionRecord]:
        return [record for record in self.records if record.scenario == scenario]

    def summary(self) -> Dict[str, int]:
        failed = len(self.failures)
        return {
            "total": len(self.records),
            "passed": len(self.records) - failed,
            "failed": failed,
        }

    def _record(self, description: str, expected: Any, actual: Any, passed: bool) -> bool:
        record = AssertionRecord(
            description=description,
            expected=expected,
            actual=actual,
            passed=passed,
            scenario=self.scenario,
        )
        self.records.append(record)

        if passed:
            logger.debug(f"PASS: {description}")
        else:
            prefix = f"[{self.scenario}] " if self.scenario else ""
            logger.error(f"{prefix}FAIL: {description}")
            logger.error(f"  expected: {expected!r}")
            logger.error(f"  actual:   {actual!r}")
        return passed
