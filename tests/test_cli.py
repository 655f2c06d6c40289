import socket

import pytest

from cli import bind_listener, build_parser
from domain.common.exceptions import ServerBindError


def test_server_defaults():
    args = build_parser().parse_args(["server"])
    assert args.address == "127.0.0.1"
    assert args.port == 12345
    assert args.dashboard is False


def test_server_overrides():
    args = build_parser().parse_args(["server", "-a", "0.0.0.0", "-p", "9000", "--tui"])
    assert (args.address, args.port, args.dashboard) == ("0.0.0.0", 9000, True)


def test_client_name_is_optional():
    assert build_parser().parse_args(["client"]).name is None
    assert build_parser().parse_args(["client", "Alice", "--port", "1"]).name == "Alice"


def test_bind_failure_is_reported():
    taken = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    taken.bind(("127.0.0.1", 0))
    taken.listen()
    port = taken.getsockname()[1]
    try:
        with pytest.raises(ServerBindError) as info:
            bind_listener("127.0.0.1", port)
        assert info.value.details["port"] == port
    finally:
        taken.close()


def test_bind_succeeds_on_free_port():
    sock = bind_listener("127.0.0.1", 0)
    try:
        assert sock.getsockname()[0] == "127.0.0.1"
    finally:
        sock.close()
