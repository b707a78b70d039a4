"""
Scenario registry and sequential test runner.

Scenarios are registered in declaration order and run one after another.
Each runs inside its own ResourceScope; whatever it raises is recorded as a
failure of that scenario and the runner moves on to the next one.
"""

import logging
import time
import traceback
from dataclasses import dataclass
from typing import Callable, List, Optional

from imagetest.builders.base import ImageBuilder
from imagetest.builders.dockerfile import DockerfileBuilder
from imagetest.builders.s2i import S2IBuilder
from imagetest.config.parser import SuiteConfig
from imagetest.containers.engine import ContainerEngine
from imagetest.containers.scope import CleanupRegistry, ResourceScope
from imagetest.core.assertions import AssertionLog
from imagetest.core.exceptions import SetupError
from imagetest.core.polling import ReadinessPoller
from imagetest.runner.context import ScenarioContext

logger = logging.getLogger(__name__)


@dataclass
class TestCase:
    """A named scenario procedure."""

    __test__ = False

    name: str
    body: Callable[[ScenarioContext], None]
    remote: bool = False


class Suite:
    """Ordered collection of test cases."""

    def __init__(self):
        self.cases: List[TestCase] = []

    def scenario(self, name: str, remote: bool = False):
        """
        Decorator registering a scenario body.

        Example:
            >>> suite = Suite()
            >>> @suite.scenario("console output")
            ... def console(ctx):
            ...     pass
        """

        def decorator(func: Callable[[ScenarioContext], None]):
            if any(case.name == name for case in self.cases):
                raise ValueError(f"Duplicate scenario name: {name}")
            self.cases.append(TestCase(name=name, body=func, remote=remote))
            return func

        return decorator

    def select(self, remote_only: bool = False) -> List[TestCase]:
        """The remote-repository subset, or every local scenario."""
        return [case for case in self.cases if case.remote == remote_only]

    def __len__(self) -> int:
        return len(self.cases)


@dataclass
class ScenarioOutcome:
    """Result of running one scenario."""

    name: str
    passed: bool
    checks: int
    duration: float
    error: Optional[str] = None


@dataclass
class SuiteReport:
    """Result of a whole run."""

    outcomes: List[ScenarioOutcome]
    check: AssertionLog

    @property
    def passed(self) -> bool:
        return self.check.passed and all(outcome.passed for outcome in self.outcomes)

    @property
    def failed_scenarios(self) -> List[str]:
        return [outcome.name for outcome in self.outcomes if not outcome.passed]

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


class TestRunner:
    """
    Runs scenarios sequentially against the images named in the config.

    Collaborators default to the real engine, s2i and requests-based
    poller; tests inject fakes.
    """

    __test__ = False

    def __init__(
        self,
        config: SuiteConfig,
        engine: Optional[ContainerEngine] = None,
        builder: Optional[ImageBuilder] = None,
        runtime_builder: Optional[ImageBuilder] = None,
        poller: Optional[ReadinessPoller] = None,
        check: Optional[AssertionLog] = None,
        registry: Optional[CleanupRegistry] = None,
    ):
        self.config = config
        self.engine = engine or ContainerEngine(config.engine, port=config.port)
        self.builder = builder or S2IBuilder(self.engine, tool=config.build_tool)
        self.runtime_builder = runtime_builder or DockerfileBuilder(self.engine)
        self.poller = poller or ReadinessPoller(
            max_attempts=config.poll_attempts, delay=config.poll_delay
        )
        self.check = check or AssertionLog()
        self.registry = registry

    def check_setup(self) -> None:
        """
        Verify the engine answers and both images under test exist.

        Raises:
            SetupError: If a precondition is not met
            ToolNotFoundError: If the engine CLI is missing
        """
        if not self.engine.available():
            raise SetupError(f"Container engine '{self.engine.binary}' is not usable")

        for image in (self.config.image_name, self.config.runtime_image_name):
            if not self.engine.image_exists(image):
                raise SetupError(f"Image not found: {image}")
            logger.debug(f"Found image {image}")

    def run_case(self, case: TestCase) -> ScenarioOutcome:
        """Run one scenario; never raises for failures inside the scenario."""
        print(f"=== {case.name} ===", flush=True)
        self.check.scenario = case.name
        before = len(self.check.failures)
        start = time.monotonic()
        error = None

        try:
            with ResourceScope(self.engine, registry=self.registry) as scope:
                ctx = ScenarioContext(
                    config=self.config,
                    engine=self.engine,
                    builder=self.builder,
                    runtime_builder=self.runtime_builder,
                    poller=self.poller,
                    check=self.check,
                    scope=scope,
                )
                case.body(ctx)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.error(f"[{case.name}] aborted: {error}")
            if self.config.verbose:
                traceback.print_exc()
            self.check.fail(f"{case.name} aborted", actual=error)
        finally:
            self.check.scenario = None

        duration = time.monotonic() - start
        checks = len(self.check.records_for(case.name))
        passed = len(self.check.failures) == before
        status = "PASSED" if passed else "FAILED"
        print(f"--- {case.name}: {status} ({checks} checks, {duration:.1f}s)", flush=True)

        return ScenarioOutcome(
            name=case.name,
            passed=passed,
            checks=checks,
            duration=duration,
            error=error,
        )

    def run(self, cases: List[TestCase]) -> SuiteReport:
        """Run scenarios in order; every scenario runs regardless of earlier failures."""
        logger.info(
            f"Testing {self.config.image_name} with runtime {self.config.runtime_image_name}"
        )
        outcomes = [self.run_case(case) for case in cases]
        return SuiteReport(outcomes=outcomes, check=self.check)
