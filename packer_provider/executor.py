"""Build executor role.

A build is run by re-invoking this program with the ``TPP_RUN_PACKER``
marker in its environment. On start, ``packer_provider.__main__`` checks for
the marker and, when present, forwards its arguments to the real Packer
binary instead of running the CLI.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from collections.abc import Mapping, Sequence

from packer_provider.config import Settings, get_settings

logger = logging.getLogger(__name__)

RUN_PACKER_ENV = "TPP_RUN_PACKER"

_FALSY = {"", "0", "false", "no", "off"}


def is_executor_mode(environ: Mapping[str, str] | None = None) -> bool:
    """Check whether this process was started as the build executor.

    Args:
        environ: Environment to inspect (defaults to ``os.environ``).

    Returns:
        True if the executor marker is set to a truthy value.
    """
    if environ is None:
        environ = os.environ
    value = environ.get(RUN_PACKER_ENV)
    return value is not None and value.strip().lower() not in _FALSY


def run_executor(argv: Sequence[str], settings: Settings | None = None) -> int:
    """Run the Packer binary with the given arguments.

    The marker is removed from the Packer process environment.

    Args:
        argv: Arguments for Packer (e.g. ``["build", "image.pkr.hcl"]``).
        settings: Application settings.

    Returns:
        Exit code of the Packer process, or 127 if it could not be started.
    """
    if settings is None:
        settings = get_settings()

    env = {k: v for k, v in os.environ.items() if k != RUN_PACKER_ENV}
    cmd = [settings.packer_bin, *argv]
    logger.debug("Executor running: %s", cmd)

    try:
        result = subprocess.run(cmd, env=env, check=False)
    except OSError as e:
        print(f"could not start {settings.packer_bin}: {e}", file=sys.stderr)
        return 127
    return result.returncode


__all__ = ["RUN_PACKER_ENV", "is_executor_mode", "run_executor"]
