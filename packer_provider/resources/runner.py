"""Build runner for executing Packer builds.

This module handles:
- Composing the `packer build` argument list from a resource configuration
- Composing the build process environment
- Executing the build with subprocess and capturing its combined output
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from datetime import datetime, timezone

from packer_provider.config import Settings, get_settings
from packer_provider.errors import BUILD_ERROR, EXECUTION_ERROR
from packer_provider.executor import RUN_PACKER_ENV
from packer_provider.resources.schema import BuildConfig

logger = logging.getLogger(__name__)


class PackerBuildError(Exception):
    """Raised when a Packer build fails or cannot be started."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        output: str = "",
        code: str = BUILD_ERROR,
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output
        self.code = code


@dataclass
class BuildResult:
    """Result of a successful build execution.

    Attributes:
        command: The command that was executed.
        exit_code: Process exit code.
        output: Captured combined stdout/stderr.
        started_at: Build start time.
        finished_at: Build finish time.
    """

    command: str
    exit_code: int
    output: str
    started_at: datetime
    finished_at: datetime

    @property
    def duration(self) -> float:
        """Build duration in seconds."""
        return (self.finished_at - self.started_at).total_seconds()


def compose_build_command(config: BuildConfig) -> list[str]:
    """Compose the `packer build` arguments for a configuration.

    Args:
        config: Resource configuration.

    Returns:
        Arguments as list of strings, without the executable.
    """
    params = ["build"]

    for key, value in config.variables.items():
        params.extend(["-var", f"{key}={value}"])

    if config.force:
        params.append("-force")

    params.append(config.file)
    params.extend(config.additional_params)

    return params


def compose_build_environment(config: BuildConfig) -> dict[str, str]:
    """Compose the environment overrides for a build process.

    The executor marker is always set so that a re-invoked packer_provider
    acts as the build executor.

    Args:
        config: Resource configuration.

    Returns:
        Environment variables to overlay on the current environment.
    """
    env = dict(config.environment)
    env[RUN_PACKER_ENV] = "true"
    return env


def resolve_executable(settings: Settings | None = None) -> list[str]:
    """Resolve the command prefix used to run builds.

    Args:
        settings: Application settings.

    Returns:
        The configured executable, or this program re-invoked as
        ``python -m packer_provider``.
    """
    if settings is None:
        settings = get_settings()
    if settings.executable:
        return [settings.executable]
    return [sys.executable, "-m", "packer_provider"]


def run_packer_build(
    config: BuildConfig,
    settings: Settings | None = None,
) -> BuildResult:
    """Execute a Packer build for a configuration.

    Args:
        config: Resource configuration.
        settings: Application settings.

    Returns:
        BuildResult with execution details.

    Raises:
        PackerBuildError: If the build exits non-zero or fails to start.
    """
    cmd = resolve_executable(settings) + compose_build_command(config)
    env = dict(os.environ)
    env.update(compose_build_environment(config))
    cwd = config.directory or None

    cmd_str = shlex.join(cmd)
    logger.info("Executing build: %s", cmd_str)
    logger.info("Working directory: %s", cwd or os.getcwd())

    started_at = datetime.now(timezone.utc)

    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=env,
            check=False,
        )
    except OSError as e:
        message = f"could not run packer command: {e}"
        logger.error(message)
        raise PackerBuildError(message, code=EXECUTION_ERROR) from e

    output = (result.stdout or b"").decode("utf-8", errors="replace")
    if result.returncode != 0:
        logger.error("Build failed with exit code %d", result.returncode)
        raise PackerBuildError(
            f"could not run packer command; output: {output}",
            exit_code=result.returncode,
            output=output,
        )

    finished_at = datetime.now(timezone.utc)
    build = BuildResult(
        command=cmd_str,
        exit_code=result.returncode,
        output=output,
        started_at=started_at,
        finished_at=finished_at,
    )
    logger.info("Build finished in %.1fs", build.duration)
    return build


__all__ = [
    "BuildResult",
    "PackerBuildError",
    "compose_build_command",
    "compose_build_environment",
    "resolve_executable",
    "run_packer_build",
]
