"""
Everything a scenario body works with.
"""

import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from imagetest.builders.base import ImageBuilder, Source
from imagetest.config.parser import SuiteConfig
from imagetest.containers.engine import ContainerEngine
from imagetest.containers.scope import ResourceScope
from imagetest.core.assertions import AssertionLog
from imagetest.core.polling import ReadinessPoller
from imagetest.runner.pipeline import Pipeline


class ScenarioContext:
    """
    Collaborators and resource scope of one running scenario.

    Pipelines and scratch directories created here are released when the
    scenario's scope closes.
    """

    def __init__(
        self,
        config: SuiteConfig,
        engine: ContainerEngine,
        builder: ImageBuilder,
        runtime_builder: ImageBuilder,
        poller: ReadinessPoller,
        check: AssertionLog,
        scope: ResourceScope,
    ):
        self.config = config
        self.engine = engine
        self.builder = builder
        self.runtime_builder = runtime_builder
        self.poller = poller
        self.check = check
        self.scope = scope

    def pipeline(
        self,
        app: str,
        name: Optional[str] = None,
        builder: Optional[ImageBuilder] = None,
        base_image: Optional[str] = None,
        source: Optional[Source] = None,
    ) -> Pipeline:
        """
        New pipeline for fixture `app`, torn down with the scenario.

        Args:
            app: Fixture directory name
            name: Name for derived image/container ids (defaults to app)
            builder: Builder to use (defaults to the s2i builder)
            base_image: Base image (defaults to the builder image under test)
            source: Build source (defaults to the fixture directory)
        """
        name = name or app
        pipeline = Pipeline(
            app=name,
            tag=self.config.image_tag(name),
            container_name=self.config.container_name(name),
            base_image=base_image or self.config.image_name,
            engine=self.engine,
            builder=builder or self.builder,
            poller=self.poller,
            check=self.check,
            default_source=source if source is not None else self.config.fixture(app),
        )
        self.scope.callback(f"pipeline {name}", pipeline.teardown)
        return pipeline

    def built(
        self,
        app: str,
        env: Optional[Dict[str, str]] = None,
        build_options: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> Pipeline:
        """Pipeline for `app` that has been built and checked for build success."""
        pipeline = self.pipeline(app, **kwargs)
        pipeline.build(env=env, **(build_options or {}))
        pipeline.expect_build_success()
        return pipeline

    def scratch_dir(self, prefix: str = "imagetest-") -> Path:
        """Temporary directory deleted with the scenario."""
        return self.scope.path(Path(tempfile.mkdtemp(prefix=prefix)))
