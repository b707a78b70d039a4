"""
Pytest configuration and shared fixtures for imagetest tests.
"""

import pytest

from imagetest.config.parser import SuiteConfig
from imagetest.containers.scope import ResourceScope
from imagetest.core.assertions import AssertionLog
from imagetest.core.polling import ReadinessPoller
from imagetest.runner.context import ScenarioContext
from tests.mocks import FakeBuilder, FakeEngine


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests against a real container engine and images",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless --integration flag is provided."""
    if not config.getoption("--integration"):
        skip_integration = pytest.mark.skip(reason="need --integration option to run")
        for item in items:
            if "integration" in item.keywords:
                item.add_marker(skip_integration)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def suite_config(tmp_path) -> SuiteConfig:
    """Config pointing at a temporary fixture directory, with no poll delay."""
    return SuiteConfig(
        image_name="builder:test",
        runtime_image_name="runtime:test",
        test_dir=tmp_path / "fixtures",
        poll_attempts=3,
        slow_poll_attempts=5,
        poll_delay=0,
    )


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def builder(engine) -> FakeBuilder:
    return FakeBuilder(engine)


@pytest.fixture
def check() -> AssertionLog:
    return AssertionLog()


@pytest.fixture
def poller() -> ReadinessPoller:
    return ReadinessPoller(max_attempts=3, delay=0, timeout=1)


@pytest.fixture
def scenario_context(suite_config, engine, builder, poller, check):
    """ScenarioContext wired to fakes; the scope is closed after the test."""
    with ResourceScope(engine) as scope:
        yield ScenarioContext(
            config=suite_config,
            engine=engine,
            builder=builder,
            runtime_builder=FakeBuilder(engine),
            poller=poller,
            check=check,
            scope=scope,
        )
