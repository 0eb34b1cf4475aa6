"""Process discovery for Linux (ps + ss, lsof fallback)."""

import logging
import shutil

from .base import DiscoveryError
from .unix import UnixProcessDiscovery

logger = logging.getLogger(__name__)


def parse_ss_output(output: str, process_id: int) -> list[int]:
    """Extract listening ports owned by `process_id` from `ss -H -tlnp` output.

    Rows look like:
        LISTEN 0 4096 127.0.0.1:42100 0.0.0.0:* users:(("language_server",pid=1234,fd=9))
    """
    owner = f"pid={process_id},"
    ports = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) < 5 or fields[0] != "LISTEN" or owner not in line:
            continue
        _, _, port = fields[3].rpartition(":")
        if not port.isdigit():
            raise DiscoveryError("ss", f"unexpected local address {fields[3]!r}")
        ports.append(int(port))
    return ports


class LinuxProcessDiscovery(UnixProcessDiscovery):
    """Uses ss from iproute2 for the socket table; lsof when ss is missing."""

    platform_name = "linux"

    async def _listening_ports(self, process_id: int) -> list[int]:
        ss_path = shutil.which("ss")
        if not ss_path:
            logger.debug("ss not found, falling back to lsof")
            return await self._lsof_ports(process_id)

        result = await self._run_command(ss_path, "-H", "-t", "-l", "-n", "-p")
        if result.returncode != 0:
            raise DiscoveryError("ss", result.stderr.strip() or f"exit code {result.returncode}")
        return parse_ss_output(result.stdout, process_id)
