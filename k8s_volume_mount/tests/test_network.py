import socket
from unittest import mock

import pytest

from k8s_volume_mount.errors import NoFreePort
import k8s_volume_mount.network as network


@pytest.fixture
def listening_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(1)

    yield sock.getsockname()[1]

    sock.close()


@pytest.fixture
def closed_port():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()

    return port


def test_is_port_listening(listening_port, closed_port):
    assert network.is_port_listening("127.0.0.1", listening_port)
    assert not network.is_port_listening("127.0.0.1", closed_port)


def test_find_free_port_skips_ports_in_use():
    with mock.patch("k8s_volume_mount.network.is_port_listening") as mock_listening:
        mock_listening.side_effect = lambda host, port: port < 10002

        assert network.find_free_port(10000, 10100) == 10002


def test_find_free_port_range_is_inclusive():
    with mock.patch("k8s_volume_mount.network.is_port_listening") as mock_listening:
        mock_listening.side_effect = lambda host, port: port < 10100

        assert network.find_free_port(10000, 10100) == 10100


def test_find_free_port_exhausted(listening_port):
    with pytest.raises(NoFreePort):
        network.find_free_port(listening_port, listening_port)


def test_wait_reachable(listening_port):
    assert network.wait_reachable("127.0.0.1", listening_port, 1000)


def test_wait_reachable_timeout(closed_port):
    assert not network.wait_reachable("127.0.0.1", closed_port, 300)
