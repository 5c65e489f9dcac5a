"""Module for finding free local ports and probing whether ports are reachable."""

import socket
import time

import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import NoFreePort
from k8s_volume_mount.logger import log

# Timeout of a single connection attempt while waiting for a port
_CONNECT_TIMEOUT = 0.5

# Pause between connection attempts while waiting for a port
_RETRY_INTERVAL = 0.1


def is_port_listening(host: str, port: int, timeout: float = 1.0) -> bool:
    """Check if something accepts TCP connections on the given host and port."""
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def find_free_port(
    low: int, high: int, host: str = constants.LOCAL_HOSTNAME
) -> int:
    """
    Find the first port in the inclusive range that nothing is listening on.

    This is inherently racy since another process may start listening on the port
    before it is used. The port forward will fail loudly in that case.
    """
    for port in range(low, high + 1):
        if not is_port_listening(host, port):
            log.debug(f"found free port {port}")
            return port

    raise NoFreePort(f"no free port found in range {low}-{high}")


def wait_reachable(host: str, port: int, timeout_ms: int) -> bool:
    """Wait until the host and port accept a connection or the timeout expires."""
    deadline = time.monotonic() + timeout_ms / 1000

    while time.monotonic() < deadline:
        if is_port_listening(host, port, _CONNECT_TIMEOUT):
            return True

        time.sleep(_RETRY_INTERVAL)

    return False
