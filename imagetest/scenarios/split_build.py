"""
Chained build: publish with the builder image, run on the runtime image.
"""

from imagetest.scenarios.registry import APP_DIR, scenario
from imagetest.scenarios.web import WEB_APP


@scenario("split build")
def split_build(ctx):
    app = ctx.built(WEB_APP)

    artifacts = ctx.scratch_dir()
    source = ctx.scope.container(
        ctx.engine.create(app.image, name=ctx.config.container_name("split-source"))
    )
    ctx.engine.copy_from(source, APP_DIR, artifacts / "app")

    runtime = ctx.pipeline(
        WEB_APP,
        name=f"{WEB_APP}-runtime",
        builder=ctx.runtime_builder,
        base_image=ctx.config.runtime_image_name,
        source=artifacts,
    )
    runtime.build()
    runtime.expect_build_success()

    # No command: the runtime image must find the application on its own
    runtime.start()
    runtime.expect_response("/", "Hello world")
