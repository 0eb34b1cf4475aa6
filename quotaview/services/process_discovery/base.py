"""
Base process discovery class.

WORKFLOW OVERVIEW:
==================
This module defines the interface every platform strategy implements. The
language server listens on a random loopback port and takes its CSRF token
as a command-line argument, so both have to be recovered from the operating
system on every refresh.

ARCHITECTURE:
- BaseProcessDiscovery: abstract base class with locate() and resolve()
- UnixProcessDiscovery: ps + lsof (macOS and other Unix systems)
- LinuxProcessDiscovery: ps + ss, falling back to lsof
- WindowsProcessDiscovery: PowerShell CIM query + netstat

WORKFLOW:
1. locate() lists processes and returns the first one whose command line
   contains the process marker, or None when there is none (or the process
   table cannot be read)
2. resolve() extracts the CSRF token from that command line and lists the
   TCP ports the process is listening on
3. The strategies hold no state between calls
"""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ...models.config import MonitorConfig
from ...models.discovery import ServiceHandle, ServiceEndpoint

logger = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """An OS inspection tool failed or produced output we cannot parse."""

    def __init__(self, tool: str, message: str):
        super().__init__(f"{tool}: {message}")
        self.tool = tool


@dataclass
class CommandResult:
    """Captured output of an inspection command."""
    returncode: int
    stdout: str
    stderr: str = ""


def extract_security_token(command_line: str, flag: str = "--csrf_token") -> str:
    """Extract the value of `flag` from a command line.

    The value may follow `=` or whitespace and may be quoted. Returns an
    empty string when the flag is absent or followed by another flag.
    """
    pattern = re.escape(flag) + r"""(?:=|\s+)["']?(?!-)([^\s"']+)"""
    match = re.search(pattern, command_line)
    return match.group(1) if match else ""


def dedupe_ports(ports) -> list[int]:
    """Deduplicate ports, keeping first-seen order."""
    seen: list[int] = []
    for port in ports:
        if port not in seen:
            seen.append(port)
    return seen


class BaseProcessDiscovery(ABC):
    """
    Platform strategy for finding the language server and its endpoint.

    Subclasses implement:
    - _list_processes(): (pid, command line) pairs in enumeration order
    - _is_self_match(command_line): True for our own inspection commands
    - _listening_ports(pid): listening TCP ports of a process
    """

    platform_name = "unknown"

    def __init__(self, config: Optional[MonitorConfig] = None):
        self.config = config or MonitorConfig()

    async def _run_command(self, *args: str) -> CommandResult:
        """Run an inspection command and capture its output.

        Raises FileNotFoundError when the tool is not installed and
        asyncio.TimeoutError when a command timeout is configured and hit.
        """
        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self.config.command_timeout_seconds
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise
        return CommandResult(
            returncode=process.returncode,
            stdout=stdout.decode(errors="replace"),
            stderr=stderr.decode(errors="replace"),
        )

    @abstractmethod
    async def _list_processes(self) -> list[tuple[int, str]]:
        """List running processes as (pid, command line) pairs."""

    @abstractmethod
    def _is_self_match(self, command_line: str) -> bool:
        """Whether a matching command line is one of our own tool invocations."""

    @abstractmethod
    async def _listening_ports(self, process_id: int) -> list[int]:
        """TCP ports the process listens on, in the order the OS reports them."""

    async def locate(self) -> Optional[ServiceHandle]:
        """Find the language server process.

        Returns None when no process matches or the process table cannot be
        read. With several matches the first in enumeration order wins.
        """
        try:
            processes = await self._list_processes()
        except (OSError, asyncio.TimeoutError, DiscoveryError) as e:
            logger.debug("Process listing failed on %s: %s", self.platform_name, e)
            return None

        marker = self.config.process_marker
        matches = [
            ServiceHandle(process_id=pid, command_line=command_line)
            for pid, command_line in processes
            if marker in command_line and not self._is_self_match(command_line)
        ]
        if not matches:
            logger.debug("No process matching %r", marker)
            return None
        if len(matches) > 1:
            logger.debug(
                "Found %d processes matching %r, using PID %d",
                len(matches), marker, matches[0].process_id,
            )
        return matches[0]

    async def resolve(self, handle: ServiceHandle) -> ServiceEndpoint:
        """Recover the security token and candidate ports for a process.

        Raises DiscoveryError when the socket table cannot be inspected.
        An empty port list is normal right after the server starts.
        """
        token = extract_security_token(handle.command_line, self.config.token_flag)
        try:
            ports = await self._listening_ports(handle.process_id)
        except FileNotFoundError as e:
            raise DiscoveryError(e.filename or "socket listing", "command not found") from e
        except asyncio.TimeoutError as e:
            raise DiscoveryError("socket listing", "timed out") from e
        except OSError as e:
            raise DiscoveryError("socket listing", str(e) or e.strerror or e.__class__.__name__) from e

        ports = dedupe_ports(ports)
        logger.debug(
            "PID %d: listening on %s, token %s",
            handle.process_id, ports, "present" if token else "absent",
        )
        return ServiceEndpoint(token=token, ports=ports)
