"""Registry proxy package for npm-style registries.

This package provides the mirror-racing client and the stream utilities
used to fetch package documents and tarballs from equivalent mirrors.
"""

from .providers import (
    MirrorRegistryClient,
    RegistryClient,
)
from .race import first_successful
from .streams import TarballStream, buffer_stream, gunzip_maybe
from .types import MirrorOutcome, RaceResult, RegistryConfig

__all__ = [
    # Protocol
    "RegistryClient",
    # Providers
    "MirrorRegistryClient",
    # Types
    "MirrorOutcome",
    "RaceResult",
    "RegistryConfig",
    # Utilities
    "first_successful",
    "buffer_stream",
    "gunzip_maybe",
    "TarballStream",
]
