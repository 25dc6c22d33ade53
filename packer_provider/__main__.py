"""Entry point for `python -m packer_provider` and the packer-provider script.

The process runs in one of two roles, chosen at start:
- build executor, when started by a build with ``TPP_RUN_PACKER`` set:
  arguments are forwarded to Packer and its exit code is returned
- CLI, otherwise
"""

import sys

from packer_provider.executor import is_executor_mode, run_executor


def main() -> None:
    """Dispatch to the build executor or the CLI."""
    if is_executor_mode():
        sys.exit(run_executor(sys.argv[1:]))

    from packer_provider.cli import app

    app()


if __name__ == "__main__":
    main()
