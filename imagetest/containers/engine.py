"""
Container lifecycle management through the container engine CLI.

ContainerEngine wraps `docker` (or a CLI-compatible engine such as `podman`)
for everything the scenarios need: foreground and detached runs, exec,
copying files in and out, logs, inspection and idempotent removal.

All operations block until the engine CLI returns.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from imagetest.core.exceptions import ContainerEngineError
from imagetest.core.process import CommandResult, run_command

logger = logging.getLogger(__name__)

DEFAULT_PORT = 8080


@dataclass
class ContainerHandle:
    """A container started by the engine."""

    container_id: str
    name: Optional[str]
    image: str
    base_url: Optional[str] = None
    detached: bool = True
    user: Optional[Union[int, str]] = None

    def __str__(self) -> str:
        return self.name or self.container_id[:12]


def parse_port_output(output: str) -> str:
    """
    Turn `docker port` output into a base URL.

    The engine may print several bindings (IPv4 and IPv6); the first one is
    used. Wildcard hosts are mapped to the loopback address.

    Example:
        >>> parse_port_output("0.0.0.0:32768\\n[::]:32768\\n")
        'http://127.0.0.1:32768'
    """
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        raise ContainerEngineError("No published port found")

    binding = lines[0]
    host, _, port = binding.rpartition(":")
    if not port.isdigit():
        raise ContainerEngineError(f"Unexpected port binding: {binding}")

    host = host.strip("[]")
    if host in ("", "0.0.0.0", "::"):
        host = "127.0.0.1"
    elif ":" in host:
        host = f"[{host}]"

    return f"http://{host}:{port}"


class ContainerEngine:
    """
    Synchronous wrapper around the container engine CLI.

    Args:
        binary: Engine executable (docker, podman)
        port: Application port published by detached containers
    """

    def __init__(self, binary: str = "docker", port: int = DEFAULT_PORT):
        self.binary = binary
        self.port = port

    def _run(self, *args: Union[str, Path], combine_output: bool = False) -> CommandResult:
        return run_command([self.binary, *args], combine_output=combine_output)

    # --- Setup checks ---

    def available(self) -> bool:
        """Check that the engine CLI answers."""
        return self._run("version").success

    def image_exists(self, tag: str) -> bool:
        return self._run("image", "inspect", tag).success

    # --- Foreground runs ---

    def run(self, image: str, cmd: Optional[Sequence[str]] = None) -> str:
        """
        Run a container in the foreground and remove it on exit.

        Returns:
            Captured standard output
        """
        return self._run_foreground(image, cmd)

    def run_as(
        self, image: str, uid: Union[int, str], cmd: Optional[Sequence[str]] = None
    ) -> str:
        """Like run() with an overridden effective user."""
        return self._run_foreground(image, cmd, user=uid)

    def _run_foreground(
        self,
        image: str,
        cmd: Optional[Sequence[str]],
        user: Optional[Union[int, str]] = None,
    ) -> str:
        args: List[str] = ["run", "--rm"]
        if user is not None:
            args.extend(["--user", str(user)])
        args.append(image)
        if cmd:
            args.extend(cmd)

        result = self._run(*args)
        if not result.success:
            logger.warning(
                f"Container of {image} exited with code {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout

    # --- Detached runs ---

    def run_detached(
        self,
        image: str,
        cmd: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
        name: Optional[str] = None,
    ) -> ContainerHandle:
        """
        Start a long-lived container; the caller owns its teardown.

        The application port is published on an ephemeral loopback port and
        the resulting base URL is stored on the handle.

        Raises:
            ContainerEngineError: If the container cannot be started
        """
        return self._start(image, cmd=cmd, env=env, name=name)

    def run_as_detached(
        self,
        image: str,
        uid: Union[int, str],
        cmd: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
        name: Optional[str] = None,
    ) -> ContainerHandle:
        """Like run_detached() with an overridden effective user."""
        return self._start(image, cmd=cmd, env=env, name=name, user=uid)

    def _start(
        self,
        image: str,
        cmd: Optional[Sequence[str]] = None,
        env: Optional[Dict[str, str]] = None,
        name: Optional[str] = None,
        user: Optional[Union[int, str]] = None,
    ) -> ContainerHandle:
        if name:
            # Names are deterministic, so a leftover from an earlier run blocks reuse
            self.remove_container(name)

        args: List[str] = ["run", "-d", "-p", f"127.0.0.1::{self.port}"]
        if name:
            args.extend(["--name", name])
        if user is not None:
            args.extend(["--user", str(user)])
        for key, value in (env or {}).items():
            args.extend(["-e", f"{key}={value}"])
        args.append(image)
        if cmd:
            args.extend(cmd)

        result = self._run(*args)
        if not result.success:
            raise ContainerEngineError(
                f"Failed to start container from {image}: {result.stderr.strip()}"
            )

        handle = ContainerHandle(
            container_id=result.stdout.strip(),
            name=name,
            image=image,
            detached=True,
            user=user,
        )
        logger.debug(f"Started container {handle} from {image}")
        try:
            handle.base_url = self.resolve_url(handle)
        except ContainerEngineError:
            self.remove_container(handle)
            raise
        return handle

    def create(self, image: str, name: Optional[str] = None) -> ContainerHandle:
        """Create (but do not start) a container, e.g. to copy files out of an image."""
        if name:
            self.remove_container(name)

        args: List[str] = ["create"]
        if name:
            args.extend(["--name", name])
        args.append(image)

        result = self._run(*args)
        if not result.success:
            raise ContainerEngineError(
                f"Failed to create container from {image}: {result.stderr.strip()}"
            )
        return ContainerHandle(
            container_id=result.stdout.strip(), name=name, image=image, detached=False
        )

    # --- Interaction ---

    def exec(
        self,
        handle: ContainerHandle,
        cmd: Sequence[str],
        user: Optional[Union[int, str]] = None,
    ) -> str:
        """Run a command inside a running container and return its stdout."""
        args: List[str] = ["exec"]
        if user is not None:
            args.extend(["--user", str(user)])
        args.append(handle.container_id)
        args.extend(cmd)

        result = self._run(*args)
        if not result.success:
            logger.warning(
                f"exec in {handle} exited with code {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout

    def resolve_url(self, handle: ContainerHandle) -> str:
        """Base URL of the application port published by a detached container."""
        result = self._run("port", handle.container_id, f"{self.port}/tcp")
        if not result.success:
            raise ContainerEngineError(
                f"Cannot resolve endpoint of {handle}: {result.stderr.strip()}"
            )
        url = parse_port_output(result.stdout)
        logger.debug(f"{handle} is reachable at {url}")
        return url

    def copy_into(self, handle: ContainerHandle, src: Union[Path, str], dest: str) -> None:
        """Copy a host path into a container."""
        result = self._run("cp", str(src), f"{handle.container_id}:{dest}")
        if not result.success:
            raise ContainerEngineError(
                f"Failed to copy {src} into {handle}:{dest}: {result.stderr.strip()}"
            )

    def copy_from(self, handle: ContainerHandle, src: str, dest: Path) -> None:
        """Copy a container path to the host."""
        result = self._run("cp", f"{handle.container_id}:{src}", str(dest))
        if not result.success:
            raise ContainerEngineError(
                f"Failed to copy {handle}:{src} to {dest}: {result.stderr.strip()}"
            )

    def logs(self, handle: ContainerHandle) -> str:
        """Combined stdout/stderr log of a container."""
        return self._run("logs", handle.container_id, combine_output=True).stdout

    def inspect(self, target: str) -> Dict[str, Any]:
        """Full inspect output of a container or image."""
        result = self._run("inspect", target)
        if not result.success:
            raise ContainerEngineError(f"inspect failed: {result.stderr.strip()}")
        return json.loads(result.stdout)[0]

    def is_running(self, handle: ContainerHandle) -> bool:
        result = self._run(
            "inspect", "--format", "{{.State.Running}}", handle.container_id
        )
        return result.stdout.strip().lower() == "true"

    def file_exists(self, image: str, path: str) -> bool:
        """Check whether a path exists in an image."""
        result = self._run("run", "--rm", "--entrypoint", "test", image, "-e", path)
        return result.success

    def process_command_line(self, handle: ContainerHandle, pid: int = 1) -> str:
        """
        Command line of a process inside the container.

        /proc/<pid>/cmdline separates arguments with NUL bytes; they are
        joined with single spaces.
        """
        raw = self.exec(handle, ["cat", f"/proc/{pid}/cmdline"])
        return " ".join(part for part in raw.split("\0") if part)

    # --- Removal ---

    def remove_container(self, target: Union[ContainerHandle, str]) -> None:
        """Force-remove a container. Removing a missing container is not an error."""
        container = target.container_id if isinstance(target, ContainerHandle) else target
        result = self._run("rm", "-f", container)
        if result.success:
            logger.debug(f"Removed container {target}")
        else:
            logger.debug(f"Container {target} not removed: {result.stderr.strip()}")

    def remove_image(self, tag: str) -> None:
        """Force-remove an image. Removing a missing image is not an error."""
        result = self._run("rmi", "-f", tag)
        if result.success:
            logger.debug(f"Removed image {tag}")
        else:
            logger.debug(f"Image {tag} not removed: {result.stderr.strip()}")
