"""
Build failure when the startup project cannot be chosen.
"""

from imagetest.scenarios.registry import scenario

FIRST_PROJECT = "src/app/app.csproj"
SECOND_PROJECT = "src/lib/lib.csproj"

AMBIGUOUS_PROJECT_ERROR = (
    "error: DOTNET_STARTUP_PROJECT has no project file\n"
    "You can specify the startup project by adding an '.s2i/environment' file "
    "to the source repository.\n"
    "The source repository contains the following projects:\n"
    f"- {FIRST_PROJECT}\n"
    f"- {SECOND_PROJECT}\n"
    "Update the '.s2i/environment' file to specify the project you want to "
    f"publish, for example DOTNET_STARTUP_PROJECT={FIRST_PROJECT}.\n"
)


@scenario("ambiguous startup project")
def ambiguous_project(ctx):
    app = ctx.pipeline("ambiguous-project")
    app.build()
    app.expect_build_failure()
    app.expect_log(AMBIGUOUS_PROJECT_ERROR)
