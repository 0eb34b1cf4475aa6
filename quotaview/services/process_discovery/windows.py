"""Process discovery for Windows (PowerShell CIM query + netstat)."""

import json
from typing import Union

from .base import BaseProcessDiscovery, DiscoveryError

# Appears in the PowerShell command line, which itself contains the marker
_ENUMERATION_SIGNATURE = "Win32_Process"


def parse_cim_processes(output: str) -> list[tuple[int, str]]:
    """Parse `ConvertTo-Json` output of Win32_Process rows.

    PowerShell emits a bare object for a single row, an array for several
    and nothing at all for none.
    """
    output = output.strip()
    if not output:
        return []
    try:
        data: Union[dict, list] = json.loads(output)
    except json.JSONDecodeError as e:
        raise DiscoveryError("powershell", f"unparsable process listing: {e}") from e

    rows = data if isinstance(data, list) else [data]
    processes = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        pid = row.get("ProcessId")
        command_line = row.get("CommandLine")
        if not isinstance(pid, int) or not command_line:
            continue
        processes.append((pid, command_line))
    return processes


def parse_netstat_output(output: str, process_id: int) -> list[int]:
    """Extract listening ports owned by `process_id` from `netstat -ano` output.

    Rows look like:
        TCP    127.0.0.1:42100    0.0.0.0:0    LISTENING    1234
    """
    ports = []
    for line in output.splitlines():
        fields = line.split()
        if len(fields) != 5 or fields[0].upper() != "TCP":
            continue
        _, local_address, _, state, owner = fields
        if state != "LISTENING" or owner != str(process_id):
            continue
        _, _, port = local_address.rpartition(":")
        if not port.isdigit():
            raise DiscoveryError("netstat", f"unexpected local address {local_address!r}")
        ports.append(int(port))
    return ports


class WindowsProcessDiscovery(BaseProcessDiscovery):
    """Finds the language server through CIM and its sockets through netstat."""

    platform_name = "windows"

    def _process_query(self) -> str:
        marker = self.config.process_marker.replace("'", "''")
        return (
            f"Get-CimInstance {_ENUMERATION_SIGNATURE} "
            f"-Filter \"CommandLine LIKE '%{marker}%'\" "
            "| Select-Object ProcessId, CommandLine "
            "| ConvertTo-Json -Compress"
        )

    async def _list_processes(self) -> list[tuple[int, str]]:
        result = await self._run_command(
            "powershell", "-NoProfile", "-NonInteractive", "-Command", self._process_query(),
        )
        if result.returncode != 0:
            raise DiscoveryError("powershell", result.stderr.strip() or f"exit code {result.returncode}")
        return parse_cim_processes(result.stdout)

    def _is_self_match(self, command_line: str) -> bool:
        return _ENUMERATION_SIGNATURE in command_line

    async def _listening_ports(self, process_id: int) -> list[int]:
        result = await self._run_command("netstat", "-ano", "-p", "TCP")
        if result.returncode != 0:
            raise DiscoveryError("netstat", result.stderr.strip() or f"exit code {result.returncode}")
        return parse_netstat_output(result.stdout, process_id)
