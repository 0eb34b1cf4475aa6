"""Platform strategies for locating the language server."""

import platform
from typing import Optional

from ...models.config import MonitorConfig
from .base import BaseProcessDiscovery, DiscoveryError, CommandResult, extract_security_token
from .unix import UnixProcessDiscovery
from .linux import LinuxProcessDiscovery
from .windows import WindowsProcessDiscovery


def create_process_discovery(
    system: Optional[str] = None,
    config: Optional[MonitorConfig] = None,
) -> BaseProcessDiscovery:
    """Pick the discovery strategy for a platform.

    `system` takes platform.system() values ("Windows", "Darwin", "Linux", ...)
    and defaults to the current platform. Unknown Unix flavours get the
    ps + lsof strategy.
    """
    system = system or platform.system()
    if system == "Windows":
        return WindowsProcessDiscovery(config)
    if system == "Linux":
        return LinuxProcessDiscovery(config)
    return UnixProcessDiscovery(config)


__all__ = [
    "BaseProcessDiscovery",
    "CommandResult",
    "DiscoveryError",
    "UnixProcessDiscovery",
    "LinuxProcessDiscovery",
    "WindowsProcessDiscovery",
    "create_process_discovery",
    "extract_security_token",
]
