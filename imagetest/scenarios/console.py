"""
Console applications.

Several source languages go through identical build and run steps; only
the expected output differs.
"""

from imagetest.scenarios.registry import scenario

CONSOLE_APPS = [
    ("helloworld", "Hello World!\n"),
    ("helloworld-fs", "Hello World from F#!\n"),
    ("helloworld-vb", "Hello World!\n"),
]


def _console_app(app: str, expected: str):
    def body(ctx):
        ctx.built(app).expect_output(expected)

    body.__name__ = f"console_{app.replace('-', '_')}"
    return body


for _app, _expected in CONSOLE_APPS:
    scenario(f"console {_app}")(_console_app(_app, _expected))


@scenario("multi-target framework")
def multi_target(ctx):
    """The fixture targets several frameworks; the configured one must be published."""
    app = ctx.built("multi-target")
    app.expect_output(ctx.config.target_framework, contains=True)


@scenario("published file")
def published_file(ctx):
    """The app reads a non-code file published next to its binary."""
    ctx.built("published-file").expect_output("A text file.", contains=True)
