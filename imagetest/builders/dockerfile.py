"""
Dockerfile build adapter.

Used to assemble a runtime image from artifacts that were copied out of a
builder image: the artifacts directory becomes the build context and a
generated Dockerfile adds them on top of the runtime base image.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from imagetest.builders.base import BuildFailed, BuildResult, Built, GitSource, ImageBuilder, Source
from imagetest.containers.engine import ContainerEngine
from imagetest.core.process import run_command

logger = logging.getLogger(__name__)

DEFAULT_APP_DIR = "/opt/app-root/app"


def render_dockerfile(
    base_image: str,
    artifacts: List[str],
    app_dir: str = DEFAULT_APP_DIR,
    env: Optional[Dict[str, str]] = None,
) -> str:
    """
    Render a Dockerfile adding `artifacts` (context-relative) to `app_dir`.

    Example:
        >>> print(render_dockerfile("runtime:latest", ["app"]), end="")
        FROM runtime:latest
        ADD app/. /opt/app-root/app/
    """
    lines = [f"FROM {base_image}"]
    for key, value in (env or {}).items():
        lines.append(f"ENV {key}={value}")
    for artifact in artifacts:
        lines.append(f"ADD {artifact}/. {app_dir.rstrip('/')}/")
    return "\n".join(lines) + "\n"


class DockerfileBuilder(ImageBuilder):
    """Builds images with `<engine> build` from a local context directory."""

    def __init__(self, engine: ContainerEngine, app_dir: str = DEFAULT_APP_DIR):
        self.engine = engine
        self.app_dir = app_dir

    def build(
        self,
        source: Source,
        base_image: str,
        tag: str,
        env: Optional[Dict[str, str]] = None,
    ) -> BuildResult:
        """
        Build `tag` from the artifact directories inside `source`.

        Every top-level directory of the context is added to the app
        directory of the image.
        """
        if isinstance(source, GitSource):
            raise ValueError("DockerfileBuilder only accepts a local context directory")

        self.engine.remove_image(tag)

        context = Path(source)
        artifacts = sorted(p.name for p in context.iterdir() if p.is_dir())
        dockerfile = context / "Dockerfile"
        dockerfile.write_text(
            render_dockerfile(base_image, artifacts, self.app_dir, env),
            encoding="utf-8",
        )
        logger.info(f"Building {tag} from {context} on {base_image}")

        result = run_command(
            [self.engine.binary, "build", "-t", tag, str(context)],
            combine_output=True,
        )
        if not result.success:
            return BuildFailed(log=result.stdout, exit_code=result.returncode)
        return Built(log=result.stdout, image=tag)
