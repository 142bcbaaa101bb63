"""
Error types raised by the reposx services.

Every failure is fatal for the running command: services raise, the command
dispatcher reports and exits non-zero. Nothing is retried.
"""

from __future__ import annotations


class ReposxError(Exception):
    """Base class for all reposx failures."""


class StoreError(ReposxError):
    """The local store could not be resolved or created."""


class TransportError(ReposxError):
    """An HTTP download failed."""

    def __init__(self, url: str, message: str):
        super().__init__(f"{url}: {message}")
        self.url = url


class IndexFormatError(ReposxError):
    """The index document could not be parsed."""


class ResolutionError(ReposxError):
    """A package could not be mapped to a download URL."""


class PackageNotFoundError(ResolutionError):
    def __init__(self, name: str):
        super().__init__(f"package {name} not found")
        self.name = name


class UnsupportedArchitectureError(ResolutionError):
    def __init__(self, machine: str):
        super().__init__(f"unsupported architecture: {machine}")
        self.machine = machine


class MissingArchitectureUrlError(ResolutionError):
    def __init__(self, name: str, family: str):
        super().__init__(f"package {name} has no {family} download url")
        self.name = name
        self.family = family


class ExtractionError(ReposxError):
    """An archive could not be unpacked or cleaned up."""
