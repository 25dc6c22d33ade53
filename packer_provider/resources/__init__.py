"""packer_build resource.

This module handles:
- Resource schema and configuration binding
- Composing and running `packer build`
- The Create/Read/Update/Delete controller
- Stored resource state
"""

from packer_provider.resources.schema import BuildConfig, BuildRecord

__all__ = ["BuildConfig", "BuildRecord"]
