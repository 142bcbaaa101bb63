import platform
from typing import Optional

from reposx.domain.errors import UnsupportedArchitectureError
from reposx.domain.models import ArchitectureFamily


# Machine names as reported by platform.machine() on Linux, macOS and Windows.
_MACHINE_FAMILIES = {
    "x86_64": ArchitectureFamily.AMD,
    "amd64": ArchitectureFamily.AMD,
    "x64": ArchitectureFamily.AMD,
    "i386": ArchitectureFamily.AMD,
    "i486": ArchitectureFamily.AMD,
    "i586": ArchitectureFamily.AMD,
    "i686": ArchitectureFamily.AMD,
    "x86": ArchitectureFamily.AMD,
    "386": ArchitectureFamily.AMD,
    "aarch64": ArchitectureFamily.ARM,
    "arm64": ArchitectureFamily.ARM,
    "armv6l": ArchitectureFamily.ARM,
    "armv7l": ArchitectureFamily.ARM,
    "armv8l": ArchitectureFamily.ARM,
    "arm": ArchitectureFamily.ARM,
}


def host_machine() -> str:
    return platform.machine()


def resolve_family(machine: Optional[str] = None) -> ArchitectureFamily:
    """
    Map a machine name (defaults to the running host) to its URL slot.

    Raises UnsupportedArchitectureError for anything outside the two families.
    """
    machine = machine if machine is not None else host_machine()
    family = _MACHINE_FAMILIES.get(machine.strip().lower())
    if family is None:
        raise UnsupportedArchitectureError(machine or "unknown")
    return family
