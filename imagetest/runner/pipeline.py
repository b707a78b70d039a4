"""
Per-application scenario pipeline.

A Pipeline walks one fixture application through

    NEW -> BUILT -> RUNNING -> READY -> VERIFIED -> TORN_DOWN

with BUILD_FAILED as the alternative to BUILT. Transitions are guarded: a
step that needs an image cannot run after a failed build, and nothing runs
after teardown. Guard violations raise PipelineStateError, which ends the
scenario early; teardown still happens through the scenario's scope.

Checks made through a pipeline record into the shared AssertionLog and
never raise.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from requests.exceptions import RequestException

from imagetest.builders.base import BuildResult, Built, ImageBuilder, Source
from imagetest.containers.engine import ContainerEngine, ContainerHandle
from imagetest.core.assertions import AssertionLog
from imagetest.core.exceptions import PipelineStateError
from imagetest.core.polling import PollResult, ReadinessPoller

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    NEW = "new"
    BUILT = "built"
    BUILD_FAILED = "build-failed"
    RUNNING = "running"
    READY = "ready"
    VERIFIED = "verified"
    TORN_DOWN = "torn-down"


_LIVE = {
    PipelineState.RUNNING,
    PipelineState.READY,
    PipelineState.VERIFIED,
    PipelineState.TORN_DOWN,
}

TRANSITIONS = {
    PipelineState.NEW: {
        PipelineState.BUILT,
        PipelineState.BUILD_FAILED,
        PipelineState.TORN_DOWN,
    },
    PipelineState.BUILT: {
        PipelineState.RUNNING,
        PipelineState.VERIFIED,
        PipelineState.TORN_DOWN,
    },
    PipelineState.BUILD_FAILED: {PipelineState.VERIFIED, PipelineState.TORN_DOWN},
    PipelineState.RUNNING: _LIVE,
    PipelineState.READY: _LIVE,
    PipelineState.VERIFIED: _LIVE,
    PipelineState.TORN_DOWN: set(),
}


class Pipeline:
    """
    Build, run, probe and verify one application image.

    Args:
        app: Fixture name; image and container names derive from it
        tag: Image tag to build
        container_name: Name for detached containers
        base_image: Builder image used for the build
        engine: Container engine
        builder: Image builder
        poller: Readiness poller
        check: Shared assertion log
        default_source: Source used when build() gets none
    """

    def __init__(
        self,
        app: str,
        tag: str,
        container_name: str,
        base_image: str,
        engine: ContainerEngine,
        builder: ImageBuilder,
        poller: ReadinessPoller,
        check: AssertionLog,
        default_source: Optional[Source] = None,
    ):
        self.app = app
        self.tag = tag
        self.container_name = container_name
        self.base_image = base_image
        self.engine = engine
        self.builder = builder
        self.poller = poller
        self.check = check
        self.default_source = default_source

        self.state = PipelineState.NEW
        self.result: Optional[BuildResult] = None
        self.container: Optional[ContainerHandle] = None
        self._ready = False
        self._owns_image = True

    def __repr__(self) -> str:
        return f"Pipeline({self.app!r}, state={self.state.value})"

    # --- State handling ---

    def _transition(self, requested: PipelineState) -> None:
        if requested not in TRANSITIONS[self.state]:
            raise PipelineStateError(self.app, self.state, requested)
        if requested is not self.state:
            logger.debug(f"{self.app}: {self.state.value} -> {requested.value}")
        self.state = requested

    def _require_open(self, requested: PipelineState) -> None:
        if self.state is PipelineState.TORN_DOWN:
            raise PipelineStateError(self.app, self.state, requested)

    @property
    def image(self) -> str:
        """Tag of the built image; only valid after a successful build."""
        if not isinstance(self.result, Built):
            current = (
                PipelineState.BUILD_FAILED if self.result is not None else self.state
            )
            raise PipelineStateError(self.app, current, PipelineState.RUNNING)
        return self.result.tag

    def _require_container(self) -> ContainerHandle:
        if self.container is None or self.state not in _LIVE - {PipelineState.TORN_DOWN}:
            raise PipelineStateError(self.app, self.state, PipelineState.RUNNING)
        return self.container

    # --- Steps ---

    def build(
        self,
        source: Optional[Source] = None,
        env: Optional[Dict[str, str]] = None,
        **options,
    ) -> BuildResult:
        """Build the application image; extra options go to the builder."""
        if self.state is not PipelineState.NEW:
            raise PipelineStateError(self.app, self.state, PipelineState.BUILT)

        source = source if source is not None else self.default_source
        if source is None:
            raise ValueError(f"No source for {self.app}")

        self.result = self.builder.build(
            source, self.base_image, self.tag, env=env, **options
        )
        if self.result.success:
            self._transition(PipelineState.BUILT)
        else:
            logger.info(f"Build of {self.app} failed")
            self._transition(PipelineState.BUILD_FAILED)
        return self.result

    @property
    def log(self) -> str:
        return self.result.log if self.result is not None else ""

    def run(
        self,
        cmd: Optional[Sequence[str]] = None,
        user: Optional[Union[int, str]] = None,
    ) -> str:
        """Run the image in the foreground and return its output."""
        self._require_open(PipelineState.VERIFIED)
        if user is None:
            return self.engine.run(self.image, cmd)
        return self.engine.run_as(self.image, user, cmd)

    def use_image(self, image: str) -> BuildResult:
        """
        Skip the build and run an existing image.

        The image is not owned by the pipeline and survives teardown.
        """
        if self.state is not PipelineState.NEW:
            raise PipelineStateError(self.app, self.state, PipelineState.BUILT)
        self.result = Built(log="", image=image)
        self._owns_image = False
        self._transition(PipelineState.BUILT)
        return self.result

    def start(
        self,
        cmd: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
        user: Optional[Union[int, str]] = None,
    ) -> ContainerHandle:
        """
        Start a detached container of the image.

        A container already started by this pipeline is removed first.
        """
        image = self.image
        self._transition(PipelineState.RUNNING)

        if self.container is not None:
            self.engine.remove_container(self.container)
            self.container = None

        if user is None:
            handle = self.engine.run_detached(
                image, cmd=cmd, env=env, name=self.container_name
            )
        else:
            handle = self.engine.run_as_detached(
                image, user, cmd=cmd, env=env, name=self.container_name
            )
        self.container = handle
        self._ready = False
        return handle

    def wait_ready(self, path: str = "/", max_attempts: Optional[int] = None) -> PollResult:
        """Poll the container until it answers HTTP; a timeout is recorded as a failure."""
        handle = self._require_container()
        result = self.poller.poll_http(handle.base_url, path, max_attempts)

        if result.ready:
            self._ready = True
            self._transition(PipelineState.READY)
        else:
            self.check.fail(f"{self.app}: {result}")
        return result

    def wait_for_log(self, text: str, max_attempts: Optional[int] = None) -> bool:
        """Wait until the container log contains `text`, then check it."""
        handle = self._require_container()
        attempts = self.poller.attempts_for(max_attempts)
        logged = self.poller.poll_until(
            lambda: text in self.engine.logs(handle),
            max_attempts=attempts,
            description=f"{self.app} log contains {text!r}",
        )
        if not logged:
            self.check.fail(
                f"{self.app}: {text!r} not logged after {attempts} attempts",
                expected=text,
                actual=self.engine.logs(handle),
            )
            self._verified()
            return False

        passed = self.check.assert_contains(
            self.engine.logs(handle), text, f"{self.app}: container log contains {text!r}"
        )
        self._verified()
        return passed

    def exec(self, cmd: Sequence[str], user: Optional[Union[int, str]] = None) -> str:
        return self.engine.exec(self._require_container(), cmd, user=user)

    def copy_into(self, src: Union[Path, str], dest: str) -> None:
        self.engine.copy_into(self._require_container(), src, dest)

    def logs(self) -> str:
        return self.engine.logs(self._require_container())

    def process_command_line(self, pid: int = 1) -> str:
        return self.engine.process_command_line(self._require_container(), pid)

    # --- Checks ---

    def _verified(self) -> None:
        self._transition(PipelineState.VERIFIED)

    def expect_build_success(self) -> bool:
        self._require_open(PipelineState.VERIFIED)
        passed = self.check.assert_equal(
            self.result is not None and self.result.success,
            True,
            f"{self.app}: build succeeds",
        )
        if not passed:
            logger.info(f"Build log of {self.app}:\n{self.log}")
        self._verified()
        return passed

    def expect_build_failure(self) -> bool:
        self._require_open(PipelineState.VERIFIED)
        passed = self.check.assert_equal(
            self.result is not None and self.result.success,
            False,
            f"{self.app}: build fails",
        )
        self._verified()
        return passed

    def expect_log(self, needle: str) -> bool:
        """Check the build log for a fragment."""
        self._require_open(PipelineState.VERIFIED)
        passed = self.check.assert_contains(
            self.log, needle, f"{self.app}: build log contains {needle!r}"
        )
        self._verified()
        return passed

    def expect_output(
        self,
        expected: str,
        cmd: Optional[Sequence[str]] = None,
        user: Optional[Union[int, str]] = None,
        contains: bool = False,
    ) -> bool:
        """Run the image in the foreground and check its output."""
        output = self.run(cmd, user=user)
        description = f"{self.app}: output of {' '.join(cmd) if cmd else 'default command'}"
        if contains:
            passed = self.check.assert_contains(output, expected, description)
        else:
            passed = self.check.assert_equal(output, expected, description)
        self._verified()
        return passed

    def expect_exec(
        self,
        cmd: Sequence[str],
        expected: str,
        user: Optional[Union[int, str]] = None,
        contains: bool = False,
    ) -> bool:
        """Run a command in the running container and check its output."""
        output = self.exec(cmd, user=user)
        description = f"{self.app}: exec {' '.join(cmd)}"
        if contains:
            passed = self.check.assert_contains(output, expected, description)
        else:
            passed = self.check.assert_equal(output, expected, description)
        self._verified()
        return passed

    def expect_file(self, path: str) -> bool:
        """Check that a path exists in the built image."""
        passed = self.check.assert_equal(
            self.engine.file_exists(self.image, path),
            True,
            f"{self.app}: {path} exists in image",
        )
        self._verified()
        return passed

    def expect_response(
        self,
        path: str,
        expected: str,
        contains: bool = False,
        max_attempts: Optional[int] = None,
    ) -> bool:
        """
        Request `path` from the running container and check the body.

        The first request polls for readiness. A poll timeout is recorded
        as its own failure and the content comparison is skipped.
        """
        handle = self._require_container()
        description = f"{self.app}: GET {path}"

        if not self._ready:
            result = self.wait_ready(path, max_attempts)
            if not result.ready:
                return False
            body = result.body
        else:
            try:
                body = self.poller.get(handle.base_url, path).text
            except RequestException as e:
                return self.check.fail(f"{description} failed: {e}", expected=expected)

        if contains:
            passed = self.check.assert_contains(body, expected, description)
        else:
            passed = self.check.assert_equal(body, expected, description)
        self._verified()
        return passed

    # --- Teardown ---

    def teardown(self) -> None:
        """Remove the container and image of this pipeline. Safe to call twice."""
        if self.state is PipelineState.TORN_DOWN:
            return
        if self.container is not None:
            self.engine.remove_container(self.container)
            self.container = None
        if self.result is not None and self._owns_image:
            self.engine.remove_image(self.tag)
        self._transition(PipelineState.TORN_DOWN)
