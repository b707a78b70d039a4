"""
Web application scenarios: responses, process identity and user remapping.
"""

from imagetest.scenarios.registry import DEFAULT_UID, OTHER_UID, scenario

WEB_APP = "asp-net-hello-world"


@scenario("web application")
def web_application(ctx):
    app = ctx.built(WEB_APP)
    app.start()

    app.expect_response("/", "Hello world")
    app.expect_response("/TextFile.txt", "A text file.")

    # The app must be the container's primary process, not a child of a shell
    ctx.check.assert_equal(
        app.process_command_line(),
        f"dotnet {WEB_APP}.dll",
        f"{WEB_APP}: command line of pid 1",
    )


@scenario("user remapping")
def user_remapping(ctx):
    """Assemble as root, then run as the default and as an arbitrary user."""
    app = ctx.built(WEB_APP, build_options={"assemble_user": "0"})
    app.expect_output(f"{DEFAULT_UID}\n", cmd=["id", "-u"])

    app.start(user=OTHER_UID)
    app.expect_exec(["id", "-u"], f"{OTHER_UID}\n")
    app.expect_response("/", "Hello world")
