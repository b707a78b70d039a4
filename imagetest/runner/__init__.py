"""
Scenario orchestration: pipelines, scenario context and the suite runner.
"""

from .context import ScenarioContext
from .pipeline import Pipeline, PipelineState, TRANSITIONS
from .suite import ScenarioOutcome, Suite, SuiteReport, TestCase, TestRunner

__all__ = [
    "ScenarioContext",
    "Pipeline",
    "PipelineState",
    "TRANSITIONS",
    "ScenarioOutcome",
    "Suite",
    "SuiteReport",
    "TestCase",
    "TestRunner",
]
