"""Discovery models for the local language server."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServiceHandle:
    """A located language server process.

    Only valid for the discovery pass that produced it; the server may
    restart on another PID and port at any time.
    """
    process_id: int
    command_line: str


@dataclass(frozen=True)
class ServiceEndpoint:
    """Security token and candidate ports recovered from a ServiceHandle."""
    token: str = ""  # empty means no token header
    ports: list[int] = field(default_factory=list)

    @property
    def has_ports(self) -> bool:
        return bool(self.ports)
