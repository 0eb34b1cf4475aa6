"""Process discovery for macOS and other Unix systems (ps + lsof)."""

import re
import shutil

from .base import BaseProcessDiscovery, DiscoveryError

_LSOF_LISTEN_RE = re.compile(r":(\d+)\s+\(LISTEN\)")


def parse_ps_output(output: str) -> list[tuple[int, str]]:
    """Parse `ps -ax -o pid= -o command=` output into (pid, command) pairs.

    Lines without a numeric PID are skipped.
    """
    processes = []
    for line in output.splitlines():
        parts = line.strip().split(None, 1)
        if len(parts) != 2 or not parts[0].isdigit():
            continue
        processes.append((int(parts[0]), parts[1]))
    return processes


def parse_lsof_output(output: str) -> list[int]:
    """Extract listening ports from `lsof -iTCP -sTCP:LISTEN` output."""
    return [int(port) for port in _LSOF_LISTEN_RE.findall(output)]


class UnixProcessDiscovery(BaseProcessDiscovery):
    """Finds the language server with ps and its sockets with lsof."""

    platform_name = "unix"

    PS_COMMAND = ("ps", "-ax", "-o", "pid=", "-o", "command=")

    async def _list_processes(self) -> list[tuple[int, str]]:
        result = await self._run_command(*self.PS_COMMAND)
        if result.returncode != 0:
            raise DiscoveryError("ps", result.stderr.strip() or f"exit code {result.returncode}")
        return parse_ps_output(result.stdout)

    def _is_self_match(self, command_line: str) -> bool:
        # Someone grepping for the server shows up in the listing too
        return "grep" in command_line

    async def _listening_ports(self, process_id: int) -> list[int]:
        return await self._lsof_ports(process_id)

    async def _lsof_ports(self, process_id: int) -> list[int]:
        lsof_path = shutil.which("lsof") or "lsof"
        result = await self._run_command(
            lsof_path, "-nP", "-a", "-p", str(process_id), "-iTCP", "-sTCP:LISTEN",
        )
        # lsof exits 1 when nothing matched, often with warnings on stderr
        if result.returncode not in (0, 1):
            raise DiscoveryError("lsof", result.stderr.strip() or f"exit code {result.returncode}")
        return parse_lsof_output(result.stdout)
