from unittest.mock import AsyncMock

import pytest

from quotaview.models import ServiceHandle
from quotaview.services.process_discovery import CommandResult, DiscoveryError, UnixProcessDiscovery
from quotaview.services.process_discovery.unix import parse_lsof_output, parse_ps_output

PS_OUTPUT = """\
    1 /sbin/launchd
  412 /Applications/Antigravity.app/Contents/MacOS/Electron
  733 grep --color=auto language_server
  901 /Applications/Antigravity.app/Contents/Resources/app/extensions/antigravity/bin/language_server_macos_arm --enable_lsp --csrf_token 7d1e-aa90 --random_port
  955 /Applications/Other.app/language_server --csrf_token=second
"""

LSOF_OUTPUT = """\
COMMAND     PID USER   FD   TYPE             DEVICE SIZE/OFF NODE NAME
language_ 901 dev   12u  IPv4 0x1d3c6a9f2e7b11d1      0t0  TCP 127.0.0.1:53412 (LISTEN)
language_ 901 dev   14u  IPv4 0x1d3c6a9f2e7b2a39      0t0  TCP 127.0.0.1:53418 (LISTEN)
language_ 901 dev   15u  IPv6 0x1d3c6a9f2e7b2a40      0t0  TCP [::1]:53412 (LISTEN)
"""


def make_discovery(*results):
    discovery = UnixProcessDiscovery()
    discovery._run_command = AsyncMock(side_effect=list(results))
    return discovery


def test_parse_ps_output_skips_garbage():
    processes = parse_ps_output("  PID COMMAND\n  12 /bin/zsh -l\n\n")
    assert processes == [(12, "/bin/zsh -l")]


def test_parse_lsof_output():
    assert parse_lsof_output(LSOF_OUTPUT) == [53412, 53418, 53412]


@pytest.mark.asyncio
async def test_locate_picks_first_match_and_skips_grep():
    discovery = make_discovery(CommandResult(0, PS_OUTPUT))
    handle = await discovery.locate()
    assert handle.process_id == 901
    assert "--csrf_token 7d1e-aa90" in handle.command_line


@pytest.mark.asyncio
async def test_locate_returns_none_without_match():
    discovery = make_discovery(CommandResult(0, "  1 /sbin/launchd\n"))
    assert await discovery.locate() is None


@pytest.mark.asyncio
async def test_locate_treats_missing_ps_as_not_found():
    discovery = UnixProcessDiscovery()
    discovery._run_command = AsyncMock(side_effect=FileNotFoundError(2, "No such file", "ps"))
    assert await discovery.locate() is None


@pytest.mark.asyncio
async def test_locate_treats_ps_failure_as_not_found():
    discovery = make_discovery(CommandResult(1, "", "ps: permission denied"))
    assert await discovery.locate() is None


@pytest.mark.asyncio
async def test_resolve_returns_token_and_deduplicated_ports():
    discovery = make_discovery(CommandResult(0, LSOF_OUTPUT))
    handle = ServiceHandle(901, "language_server --csrf_token 7d1e-aa90")
    endpoint = await discovery.resolve(handle)
    assert endpoint.token == "7d1e-aa90"
    assert endpoint.ports == [53412, 53418]

    args = discovery._run_command.call_args.args
    assert args[1:] == ("-nP", "-a", "-p", "901", "-iTCP", "-sTCP:LISTEN")


@pytest.mark.asyncio
async def test_resolve_without_listening_sockets_is_empty():
    discovery = make_discovery(CommandResult(1, "", "lsof: WARNING: can't stat() fuse"))
    endpoint = await discovery.resolve(ServiceHandle(901, "language_server"))
    assert endpoint.ports == []
    assert endpoint.token == ""


@pytest.mark.asyncio
async def test_resolve_raises_when_lsof_missing():
    discovery = UnixProcessDiscovery()
    discovery._run_command = AsyncMock(side_effect=FileNotFoundError(2, "No such file", "lsof"))
    with pytest.raises(DiscoveryError) as excinfo:
        await discovery.resolve(ServiceHandle(901, "language_server"))
    assert excinfo.value.tool == "lsof"
