from unittest.mock import AsyncMock

import pytest

from quotaview.models import ServiceHandle
from quotaview.services.process_discovery import CommandResult, DiscoveryError, LinuxProcessDiscovery
from quotaview.services.process_discovery.linux import parse_ss_output

SS_OUTPUT = """\
LISTEN 0      4096       127.0.0.1:42100      0.0.0.0:*    users:(("language_server",pid=2210,fd=9))
LISTEN 0      4096       127.0.0.1:42107      0.0.0.0:*    users:(("language_server",pid=2210,fd=11))
LISTEN 0      128        0.0.0.0:22           0.0.0.0:*    users:(("sshd",pid=22100,fd=3))
LISTEN 0      4096           [::1]:42100         [::]:*    users:(("language_server",pid=2210,fd=12))
"""


def test_parse_ss_output_filters_by_pid():
    assert parse_ss_output(SS_OUTPUT, 2210) == [42100, 42107, 42100]
    assert parse_ss_output(SS_OUTPUT, 22100) == [22]


def test_parse_ss_output_pid_prefix_does_not_match():
    assert parse_ss_output(SS_OUTPUT, 221) == []


def test_parse_ss_output_rejects_garbled_address():
    with pytest.raises(DiscoveryError):
        parse_ss_output('LISTEN 0 10 nowhere 0.0.0.0:* users:(("x",pid=5,fd=1))', 5)


@pytest.mark.asyncio
async def test_resolve_uses_ss(monkeypatch):
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
    discovery = LinuxProcessDiscovery()
    discovery._run_command = AsyncMock(return_value=CommandResult(0, SS_OUTPUT))

    endpoint = await discovery.resolve(ServiceHandle(2210, "language_server_linux_x64 --csrf_token=k"))
    assert endpoint.ports == [42100, 42107]
    assert endpoint.token == "k"
    assert discovery._run_command.call_args.args[0] == "/usr/bin/ss"


@pytest.mark.asyncio
async def test_resolve_falls_back_to_lsof_without_ss(monkeypatch):
    monkeypatch.setattr("shutil.which", lambda name: None if name == "ss" else f"/usr/bin/{name}")
    discovery = LinuxProcessDiscovery()
    discovery._run_command = AsyncMock(
        return_value=CommandResult(0, "language_ 2210 dev 9u IPv4 0x0 0t0 TCP 127.0.0.1:42100 (LISTEN)\n")
    )

    endpoint = await discovery.resolve(ServiceHandle(2210, "language_server"))
    assert endpoint.ports == [42100]
    assert discovery._run_command.call_args.args[0] == "/usr/bin/lsof"


@pytest.mark.asyncio
async def test_resolve_surfaces_ss_failure(monkeypatch):
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
    discovery = LinuxProcessDiscovery()
    discovery._run_command = AsyncMock(return_value=CommandResult(1, "", "Cannot open netlink socket"))

    with pytest.raises(DiscoveryError, match="Cannot open netlink socket"):
        await discovery.resolve(ServiceHandle(2210, "language_server"))
