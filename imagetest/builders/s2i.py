"""
Source-to-image build adapter.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from imagetest.builders.base import (
    BuildFailed,
    BuildResult,
    Built,
    GitSource,
    ImageBuilder,
    Source,
)
from imagetest.containers.engine import ContainerEngine
from imagetest.core.process import run_command

logger = logging.getLogger(__name__)


class S2IBuilder(ImageBuilder):
    """
    Builds application images with the s2i tool.

    Local sources never pull the base image (the image under test is
    usually only present locally); git sources always pull and pass the
    ref and context directory through.
    """

    def __init__(self, engine: ContainerEngine, tool: str = "s2i"):
        self.engine = engine
        self.tool = tool

    def build(
        self,
        source: Source,
        base_image: str,
        tag: str,
        env: Optional[Dict[str, str]] = None,
        assemble_user: Optional[str] = None,
    ) -> BuildResult:
        """
        Build `tag` from `source` on top of `base_image`.

        Args:
            source: Local fixture directory or GitSource
            base_image: Builder image
            tag: Resulting image tag
            env: Build-time environment (--env)
            assemble_user: User the assemble script runs as

        Raises:
            ToolNotFoundError: If the s2i tool is not installed
        """
        self.engine.remove_image(tag)

        args = self._build_args(source, base_image, tag, env or {}, assemble_user)
        logger.info(f"Building {tag} from {source}")

        result = run_command(args, combine_output=True)
        log = result.stdout

        if not result.success:
            logger.debug(f"Build of {tag} failed with exit code {result.returncode}")
            return BuildFailed(log=log, exit_code=result.returncode)

        logger.debug(f"Built {tag}")
        return Built(log=log, image=tag)

    def _build_args(
        self,
        source: Source,
        base_image: str,
        tag: str,
        env: Dict[str, str],
        assemble_user: Optional[str] = None,
    ) -> List[str]:
        args = [self.tool, "build"]

        if isinstance(source, GitSource):
            args.append("--pull-policy=always")
            if source.ref:
                args.append(f"--ref={source.ref}")
            if source.context_dir:
                args.append(f"--context-dir={source.context_dir}")
            location = source.url
        else:
            args.append("--pull-policy=never")
            location = f"file://{Path(source).resolve()}"

        if assemble_user is not None:
            args.append(f"--assemble-user={assemble_user}")
        for key, value in env.items():
            args.extend(["--env", f"{key}={value}"])

        args.extend([location, base_image, tag])
        return args
