"""
Unit tests for the scenario registry and the sequential runner.
"""

import pytest

from imagetest.containers.scope import CleanupRegistry
from imagetest.core.exceptions import SetupError
from imagetest.runner.suite import Suite, TestCase, TestRunner


@pytest.fixture
def runner(suite_config, engine, builder, poller, check):
    return TestRunner(
        suite_config,
        engine=engine,
        builder=builder,
        runtime_builder=builder,
        poller=poller,
        check=check,
    )


class TestSuite:
    """Tests for scenario registration."""

    def test_declaration_order(self):
        """Scenarios keep the order they were declared in."""
        suite = Suite()

        @suite.scenario("b")
        def second(ctx):
            pass

        @suite.scenario("a")
        def first(ctx):
            pass

        assert [case.name for case in suite.cases] == ["b", "a"]
        assert len(suite) == 2

    def test_duplicate_name(self):
        suite = Suite()
        suite.scenario("x")(lambda ctx: None)

        with pytest.raises(ValueError, match="Duplicate"):
            suite.scenario("x")(lambda ctx: None)

    def test_select(self):
        """Remote-only selection returns just the remote scenarios, and vice versa."""
        suite = Suite()
        suite.scenario("local")(lambda ctx: None)
        suite.scenario("remote", remote=True)(lambda ctx: None)

        assert [case.name for case in suite.select(remote_only=True)] == ["remote"]
        assert [case.name for case in suite.select()] == ["local"]


class TestRunnerSetup:
    """Tests for the setup check."""

    def test_images_present(self, runner):
        runner.check_setup()

    def test_missing_builder_image(self, runner, engine):
        """A missing image under test is fatal."""
        engine.images.discard("builder:test")

        with pytest.raises(SetupError, match="builder:test"):
            runner.check_setup()

    def test_engine_unavailable(self, runner, engine):
        engine.available = lambda: False

        with pytest.raises(SetupError, match="not usable"):
            runner.check_setup()


class TestRunnerRun:
    """Tests for running scenarios."""

    def test_all_pass(self, runner, capsys):
        """Passing scenarios give exit code 0 and progress banners."""
        cases = [
            TestCase("one", lambda ctx: ctx.check.assert_equal(1, 1)),
            TestCase("two", lambda ctx: ctx.check.assert_contains("abc", "b")),
        ]

        report = runner.run(cases)

        assert report.exit_code == 0
        assert [outcome.checks for outcome in report.outcomes] == [1, 1]
        out = capsys.readouterr().out
        assert "=== one ===" in out
        assert "--- two: PASSED" in out

    def test_continue_after_failure(self, runner):
        """A failing scenario does not stop the ones after it."""
        ran = []

        def failing(ctx):
            ctx.check.assert_equal("a", "b")
            ran.append("failing")

        cases = [
            TestCase("failing", failing),
            TestCase("passing", lambda ctx: ran.append("passing")),
        ]

        report = runner.run(cases)

        assert ran == ["failing", "passing"]
        assert report.exit_code == 1
        assert report.failed_scenarios == ["failing"]

    def test_exception_recorded_and_cleaned_up(self, runner, engine, check):
        """An exception aborts the scenario, is recorded and resources are released."""

        def body(ctx):
            pipeline = ctx.pipeline("helloworld")
            pipeline.build()
            pipeline.start()
            raise RuntimeError("engine exploded")

        report = runner.run([TestCase("boom", body)])

        outcome = report.outcomes[0]
        assert outcome.passed is False
        assert outcome.error == "RuntimeError: engine exploded"
        assert check.failures[-1].description == "boom aborted"
        assert engine.containers == {}
        assert "imagetest-helloworld" not in engine.images

    def test_scenario_tag_reset(self, runner, check):
        """Checks outside scenarios are not attributed to the last one."""
        runner.run([TestCase("one", lambda ctx: None)])

        assert check.scenario is None

    def test_registry_released(self, suite_config, engine, builder, poller, check):
        """Scopes are unregistered once their scenario ends."""
        registry = CleanupRegistry(install_handlers=False)
        runner = TestRunner(
            suite_config, engine, builder, builder, poller, check, registry=registry
        )

        runner.run([TestCase("one", lambda ctx: ctx.scope.image("x"))])

        assert registry._scopes == set()
        assert ("rmi", "x") in engine.calls

    def test_empty_run_passes(self, runner):
        assert runner.run([]).exit_code == 0
