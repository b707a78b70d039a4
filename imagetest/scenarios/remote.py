"""
Build from a hosted git repository.
"""

from imagetest.builders.base import GitSource
from imagetest.scenarios.registry import scenario


@scenario("remote repository", remote=True)
def remote_repository(ctx):
    config = ctx.config
    source = GitSource(
        url=config.remote_repo,
        ref=config.remote_ref,
        context_dir=config.remote_context_dir,
    )
    app = ctx.built("remote", source=source)
    app.start()
    # First run restores packages from the network
    app.expect_response(
        "/", config.remote_marker, contains=True, max_attempts=config.slow_poll_attempts
    )
