"""
Dev mode: building and running from sources copied into a live container.
"""

from imagetest.scenarios.registry import APP_DIR, OTHER_UID, S2I_SCRIPTS, SOURCE_DIR, scenario

DEV_APP = "asp-net-hello-world-dev"
NO_PROJECT_LINE = "error: DOTNET_STARTUP_PROJECT not found"
RUNNING_LINE = "Running application..."


@scenario("dev mode as non-build user")
def dev_mode_other_user(ctx):
    """A user other than the build user can assemble uploaded sources."""
    app = ctx.pipeline("helloworld", name="dev-mode-user")
    app.use_image(ctx.config.image_name)
    app.start(cmd=["sleep", "infinity"], user=OTHER_UID)

    app.copy_into(f"{ctx.config.fixture('helloworld')}/.", SOURCE_DIR)
    app.expect_exec([f"{S2I_SCRIPTS}/assemble"], "---> Publishing application...", contains=True)
    app.expect_exec(["dotnet", f"{APP_DIR}/helloworld.dll"], "Hello World!\n")


@scenario("dev mode picks up sources")
def dev_mode_sources(ctx):
    slow = ctx.config.slow_poll_attempts
    app = ctx.pipeline(DEV_APP, name="dev-mode")
    app.use_image(ctx.config.image_name)
    app.start(cmd=[f"{S2I_SCRIPTS}/run"], env={"DEV_MODE": "true"})

    app.wait_for_log(NO_PROJECT_LINE)

    app.copy_into(f"{ctx.config.fixture(DEV_APP)}/.", SOURCE_DIR)
    app.wait_for_log(RUNNING_LINE, max_attempts=slow)
    app.expect_response("/", "Hello World!", max_attempts=slow)
