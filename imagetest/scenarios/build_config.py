"""
Build behaviour selected through the fixtures' build-time environment files.

Each fixture carries an `.s2i/environment` file; only the observable effects
are checked here: build log fragments and files in the resulting image.
"""

from imagetest.scenarios.registry import APP_DIR, scenario


@scenario("startup project")
def startup_project(ctx):
    app = ctx.built("startup-project")
    app.expect_log("---> Publishing application...")
    app.expect_output("Hello World!", contains=True)


@scenario("test projects")
def test_projects(ctx):
    app = ctx.built("test-projects")
    app.expect_log("---> Running test project")
    app.expect_log("Passed!")


@scenario("assembly name")
def assembly_name(ctx):
    app = ctx.built("assembly-name")
    app.expect_file(f"{APP_DIR}/custom-name.dll")


@scenario("package sources")
def package_sources(ctx):
    source = ctx.config.package_source
    app = ctx.built("package-sources", env={"DOTNET_RESTORE_SOURCES": source})
    app.expect_log(source)


@scenario("pack")
def pack(ctx):
    app = ctx.built("pack")
    app.expect_log("---> Packing application...")
    app.expect_file("/opt/app-root/app.tar.gz")


@scenario("tools")
def tools(ctx):
    app = ctx.built("tools")
    app.expect_log("Tool 'dotnet-ef'")
    app.expect_log("was successfully installed")
    app.expect_file("/opt/app-root/.dotnet/tools/dotnet-ef")
