"""
Centralized exception hierarchy for imagetest.

Failures that belong to a scenario (build failures, assertion mismatches,
poll timeouts) are values, not exceptions. The exceptions below cover steps
that cannot continue: missing tools, engine errors, bad configuration and
pipeline misuse.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class ImageTestError(Exception):
    """Base exception for all imagetest errors."""

    pass


class SetupError(ImageTestError):
    """Raised when a fatal precondition of the suite is not met."""

    pass


class ConfigError(ImageTestError):
    """Configuration parsing or validation error."""

    pass


# ============================================================================
# External Process Exceptions
# ============================================================================


class ToolNotFoundError(ImageTestError):
    """Raised when an external CLI (build tool, container engine) is missing."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"{tool} not found in PATH")


class CommandError(ImageTestError):
    """Raised when an external command that must succeed exits nonzero."""

    def __init__(self, args, returncode: int, output: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.output = output
        msg = f"Command {' '.join(self.args_list)} failed with code {returncode}"
        if output:
            msg += f":\n{output.rstrip()}"
        super().__init__(msg)


# ============================================================================
# Container Exceptions
# ============================================================================


class ContainerEngineError(ImageTestError):
    """Raised when a mandatory container engine operation fails."""

    pass


class NamespaceLockedError(ImageTestError):
    """Raised when another run holds the image/container namespace."""

    pass


# ============================================================================
# Pipeline Exceptions
# ============================================================================


class PipelineStateError(ImageTestError):
    """Raised on a transition the scenario pipeline does not allow."""

    def __init__(self, app: str, current, requested):
        self.app = app
        self.current = current
        self.requested = requested
        super().__init__(
            f"{app}: cannot move from {current.value} to {requested.value}"
        )
