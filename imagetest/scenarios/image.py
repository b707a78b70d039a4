"""
Checks on the images themselves, without a fixture build.
"""

from imagetest.scenarios.registry import S2I_SCRIPTS, scenario


@scenario("usage script")
def usage(ctx):
    image = ctx.pipeline("usage")
    image.use_image(ctx.config.image_name)
    image.expect_output("s2i build", cmd=[f"{S2I_SCRIPTS}/usage"], contains=True)


@scenario("image environment")
def image_environment(ctx):
    urls = f"http://*:{ctx.config.port}\n"
    for name, tag in (
        ("builder-env", ctx.config.image_name),
        ("runtime-env", ctx.config.runtime_image_name),
    ):
        image = ctx.pipeline(name)
        image.use_image(tag)
        image.expect_output(urls, cmd=["printenv", "ASPNETCORE_URLS"])
