"""Packer Provider - drive `packer build` from a resource lifecycle.

This package maps Create/Read/Update/Delete onto a single Packer build
invocation and records a change-detection UUID for every successful build.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
