"""
Unit tests for the scenario pipeline.
"""

import pytest
import requests
import responses

from imagetest.builders.base import NO_IMAGE
from imagetest.core.exceptions import PipelineStateError
from imagetest.runner.pipeline import Pipeline, PipelineState
from tests.mocks.engine import url_for

BASE_URL = url_for("imagetest-helloworld-container")


@pytest.fixture
def source(tmp_path):
    path = tmp_path / "helloworld"
    path.mkdir()
    return path


@pytest.fixture
def pipeline(engine, builder, poller, check, source):
    return Pipeline(
        app="helloworld",
        tag="imagetest-helloworld",
        container_name="imagetest-helloworld-container",
        base_image="builder:test",
        engine=engine,
        builder=builder,
        poller=poller,
        check=check,
        default_source=source,
    )


class TestBuild:
    """Tests for the build step."""

    def test_build_success(self, pipeline, builder, source):
        """A successful build moves to BUILT and exposes the image."""
        result = pipeline.build()

        assert result.success is True
        assert pipeline.state is PipelineState.BUILT
        assert pipeline.image == "imagetest-helloworld"
        assert builder.calls[0]["source"] == source
        assert builder.calls[0]["base_image"] == "builder:test"

    def test_build_options_forwarded(self, pipeline, builder):
        """Env and extra options reach the builder."""
        pipeline.build(env={"A": "1"}, assemble_user="0")

        assert builder.calls[0]["env"] == {"A": "1"}
        assert builder.calls[0]["options"] == {"assemble_user": "0"}

    def test_build_failure(self, pipeline, builder):
        """A failed build moves to BUILD_FAILED and has no image."""
        builder.fail("helloworld", "error: no project\n")

        result = pipeline.build()

        assert result.tag == NO_IMAGE
        assert pipeline.state is PipelineState.BUILD_FAILED
        assert pipeline.log == "error: no project\n"

    def test_no_source(self, engine, builder, poller, check):
        """Building without any source is a programming error."""
        pipeline = Pipeline("x", "t", "c", "b", engine, builder, poller, check)

        with pytest.raises(ValueError):
            pipeline.build()

    def test_build_twice(self, pipeline):
        """A pipeline builds once."""
        pipeline.build()

        with pytest.raises(PipelineStateError):
            pipeline.build()

    def test_use_image(self, pipeline, engine, builder):
        """use_image skips the build and never removes the image."""
        pipeline.use_image("builder:test")

        assert pipeline.image == "builder:test"
        assert builder.calls == []

        pipeline.teardown()
        assert "builder:test" in engine.images


class TestStateGuards:
    """Tests for guarded transitions."""

    def test_run_after_failed_build(self, pipeline, builder):
        """Running after a failed build is refused."""
        builder.fail("helloworld", "boom")
        pipeline.build()

        with pytest.raises(PipelineStateError, match="build-failed"):
            pipeline.start()

    def test_start_before_build(self, pipeline):
        with pytest.raises(PipelineStateError):
            pipeline.start()

    def test_exec_without_container(self, pipeline):
        """Container operations need a started container."""
        pipeline.build()

        with pytest.raises(PipelineStateError):
            pipeline.exec(["id", "-u"])

    def test_nothing_after_teardown(self, pipeline):
        """A torn down pipeline refuses further steps."""
        pipeline.build()
        pipeline.teardown()

        with pytest.raises(PipelineStateError):
            pipeline.start()
        with pytest.raises(PipelineStateError):
            pipeline.expect_log("x")

    def test_failed_build_can_be_verified(self, pipeline, builder, check):
        """A failed build can still have its log checked."""
        builder.fail("helloworld", "error: no project\n")
        pipeline.build()

        assert pipeline.expect_build_failure() is True
        assert pipeline.expect_log("no project") is True
        assert pipeline.state is PipelineState.VERIFIED
        assert check.passed is True


class TestChecks:
    """Tests for recorded checks."""

    def test_expect_output(self, pipeline, engine, check):
        """Foreground output is compared exactly."""
        engine.outputs[()] = "Hello World!\n"
        pipeline.build()

        assert pipeline.expect_output("Hello World!\n") is True
        assert pipeline.expect_output("Hello World!") is False
        assert len(check.failures) == 1
        assert pipeline.state is PipelineState.VERIFIED

    def test_expect_output_as_user(self, pipeline, engine):
        """User overrides use run_as."""
        engine.outputs[("id", "-u")] = "1001\n"
        pipeline.build()

        assert pipeline.expect_output("1001\n", cmd=["id", "-u"], user=1001) is True
        assert engine.calls_named("run")[-1][3] == 1001

    def test_expect_build_success_on_failure(self, pipeline, builder, check):
        """A failed build is recorded, not raised."""
        builder.fail("helloworld", "boom")
        pipeline.build()

        assert pipeline.expect_build_success() is False
        assert check.failures[0].description == "helloworld: build succeeds"

    def test_expect_file(self, pipeline, engine):
        pipeline.build()
        engine.files.add(("imagetest-helloworld", "/opt/app-root/app.tar.gz"))

        assert pipeline.expect_file("/opt/app-root/app.tar.gz") is True
        assert pipeline.expect_file("/missing") is False


class TestRunning:
    """Tests for detached containers."""

    def test_start(self, pipeline, engine):
        """start() runs detached under the container name."""
        pipeline.build()

        handle = pipeline.start(cmd=["sleep", "infinity"], env={"DEV_MODE": "true"}, user=12345)

        assert handle.name == "imagetest-helloworld-container"
        assert pipeline.state is PipelineState.RUNNING
        start = engine.calls_named("start")[0]
        assert start[1:] == (
            "imagetest-helloworld",
            ("sleep", "infinity"),
            12345,
            {"DEV_MODE": "true"},
        )

    def test_restart_removes_previous(self, pipeline, engine):
        """Starting again replaces the previous container."""
        pipeline.build()
        first = pipeline.start()
        pipeline.start()

        assert ("rm", first.container_id) in engine.calls
        assert len(engine.containers) == 1

    @responses.activate
    def test_expect_response(self, pipeline, check):
        """The first request polls for readiness; later ones are single GETs."""
        responses.add(responses.GET, f"{BASE_URL}/", body="Hello world")
        responses.add(responses.GET, f"{BASE_URL}/TextFile.txt", body="A text file.")
        pipeline.build()
        pipeline.start()

        assert pipeline.expect_response("/", "Hello world") is True
        assert pipeline.state is PipelineState.VERIFIED
        assert pipeline.expect_response("/TextFile.txt", "A text file.") is True
        assert check.passed is True

    @responses.activate
    def test_content_mismatch(self, pipeline, check):
        """A wrong body is a mismatch, not a timeout."""
        responses.add(responses.GET, f"{BASE_URL}/", body="Goodbye")
        pipeline.build()
        pipeline.start()

        assert pipeline.expect_response("/", "Hello world") is False
        failure = check.failures[0]
        assert failure.expected == "Hello world"
        assert failure.actual == "Goodbye"

    @responses.activate
    def test_timeout_distinct_from_mismatch(self, pipeline, check):
        """A server that never answers is recorded as a timeout, without comparison."""
        responses.add(
            responses.GET, f"{BASE_URL}/", body=requests.exceptions.ConnectionError("refused")
        )
        pipeline.build()
        pipeline.start()

        assert pipeline.expect_response("/", "Hello world") is False
        assert len(check.failures) == 1
        assert "no response from" in check.failures[0].description
        assert check.failures[0].expected is None
        assert len(responses.calls) == 3

    def test_wait_for_log(self, pipeline, engine, check):
        """Log polling retries until the text shows up."""
        engine.logs_sequence = ["", "starting\n", "Running application...\n"]
        pipeline.build()
        pipeline.start()

        assert pipeline.wait_for_log("Running application...") is True
        assert check.passed is True

    def test_wait_for_log_timeout(self, pipeline, engine, check):
        """Missing log text is recorded as a timeout, not as a content mismatch."""
        engine.logs_sequence = ["nothing\n"]
        pipeline.build()
        pipeline.start()

        assert pipeline.wait_for_log("Running application...") is False
        assert check.passed is False
        assert len(check.failures) == 1
        failure = check.failures[0]
        assert failure.description == "helloworld: 'Running application...' not logged after 3 attempts"
        assert failure.actual == "nothing\n"

    def test_process_command_line(self, pipeline, engine):
        engine.cmdline = "dotnet\0app.dll\0"
        pipeline.build()
        pipeline.start()

        assert pipeline.process_command_line() == "dotnet app.dll"


class TestTeardown:
    """Tests for teardown."""

    def test_removes_container_and_image(self, pipeline, engine):
        pipeline.build()
        handle = pipeline.start()

        pipeline.teardown()

        assert ("rm", handle.container_id) in engine.calls
        assert ("rmi", "imagetest-helloworld") in engine.calls
        assert pipeline.state is PipelineState.TORN_DOWN

    def test_idempotent(self, pipeline, engine):
        """Tearing down twice removes once."""
        pipeline.build()
        pipeline.teardown()
        removals = len(engine.calls_named("rmi"))

        pipeline.teardown()

        assert len(engine.calls_named("rmi")) == removals

    def test_unbuilt_pipeline(self, pipeline, engine):
        """A pipeline that never built removes nothing."""
        pipeline.teardown()

        assert engine.calls_named("rmi") == []
        assert pipeline.state is PipelineState.TORN_DOWN
