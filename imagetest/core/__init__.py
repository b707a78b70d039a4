"""
Core functionality for imagetest.

This package contains the leaf modules the rest of the harness depends on:
process invocation, assertions, readiness polling, locking and exceptions.
"""

from .assertions import AssertionLog, AssertionRecord

from .exceptions import (
    ImageTestError,
    SetupError,
    ConfigError,
    ToolNotFoundError,
    CommandError,
    ContainerEngineError,
    NamespaceLockedError,
    PipelineStateError,
)

from .locking import namespace_lock

from .polling import (
    ReadinessPoller,
    Ready,
    PollTimeout,
    PollResult,
    join_url,
)

from .process import CommandResult, run_command

__all__ = [
    "AssertionLog",
    "AssertionRecord",
    "ImageTestError",
    "SetupError",
    "ConfigError",
    "ToolNotFoundError",
    "CommandError",
    "ContainerEngineError",
    "NamespaceLockedError",
    "PipelineStateError",
    "namespace_lock",
    "ReadinessPoller",
    "Ready",
    "PollTimeout",
    "PollResult",
    "join_url",
    "CommandResult",
    "run_command",
]
