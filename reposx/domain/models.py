"""
Pydantic models for the reposx client.

This module defines the data moved between the services:
- The package index and its entries
- Architecture families used to pick a download URL
- Per-entry archive extraction outcomes
- Index fetch status and install reports
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ArchitectureFamily(str, Enum):
    """
    URL slot selected for a host. Each family covers both the 32-bit and the
    64-bit variant of the processor line.
    """

    AMD = "amd"
    ARM = "arm"


# ---------------------------------------------------------------------------
# Index Models
# ---------------------------------------------------------------------------


class PackageEntry(BaseModel):
    """
    One <package> element of the index document.
    """

    name: str
    amd_url: str = Field(default="", description="Archive URL for x86 / x86_64 hosts.")
    arm_url: str = Field(default="", description="Archive URL for arm / arm64 hosts.")

    def url_for(self, family: ArchitectureFamily) -> str:
        if family is ArchitectureFamily.AMD:
            return self.amd_url
        return self.arm_url


class PackageIndex(BaseModel):
    """
    Ordered list of package entries, in document order.
    Persisted at: <ROOT>/index.xml
    """

    packages: List[PackageEntry] = Field(default_factory=list)

    def find(self, name: str) -> Optional[PackageEntry]:
        """
        Linear search by name. The first match wins; duplicate names are
        tolerated rather than rejected.
        """
        for entry in self.packages:
            if entry.name == name:
                return entry
        return None

    def __len__(self) -> int:
        return len(self.packages)


class IndexStatus(BaseModel):
    """Metadata about the last successful index download."""

    last_pulled: Optional[datetime] = Field(default=None, description="When the index was last downloaded")
    index_path: Optional[str] = Field(default=None, description="Path to the cached index file")
    source_url: Optional[str] = Field(default=None, description="URL the index was downloaded from")
    package_count: Optional[int] = Field(default=None, description="Number of packages in the downloaded index")


# ---------------------------------------------------------------------------
# Install Models
# ---------------------------------------------------------------------------


ExtractStatus = Literal["extracted", "skipped"]


class ExtractResult(BaseModel):
    """
    Outcome for a single tar member.

    Skipped members carry a human-readable reason so callers can tell an
    unsupported entry type apart from an unsafe path.
    """

    name: str
    status: ExtractStatus
    reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


class InstallReport(BaseModel):
    package: str
    url: str
    destination: str
    entries: List[ExtractResult] = Field(default_factory=list)

    @property
    def extracted_count(self) -> int:
        return sum(1 for e in self.entries if e.status == "extracted")

    @property
    def skipped(self) -> List[ExtractResult]:
        return [e for e in self.entries if e.skipped]
