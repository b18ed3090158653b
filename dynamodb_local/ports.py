"""
Local port helpers for the emulator process.
"""

import socket
import logging
from typing import Union


logger = logging.getLogger(__name__)

LOCALHOST = "127.0.0.1"
MIN_PORT = 1
MAX_PORT = 65535


def normalize_port(port: Union[int, str]) -> int:
    """
    Coerce a port given as int or numeric string.

    Args:
        port: Port number or its decimal string form

    Returns:
        Port as int

    Raises:
        ValueError: If port is not a number in 1-65535
    """
    if isinstance(port, bool):
        raise ValueError(f"Invalid port: {port!r}")

    try:
        value = int(str(port).strip())
    except ValueError:
        raise ValueError(f"Invalid port: {port!r}") from None

    if not MIN_PORT <= value <= MAX_PORT:
        raise ValueError(
            f"Port {value} out of range {MIN_PORT}-{MAX_PORT}"
        )
    return value


def is_port_available(port: int, host: str = LOCALHOST) -> bool:
    """
    Check whether a TCP port can be bound.

    Args:
        port: Port to check
        host: Interface to bind on

    Returns:
        True if nothing is listening on the port
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, port))
            return True
    except OSError:
        return False


def find_free_port(host: str = LOCALHOST) -> int:
    """
    Ask the OS for an unused TCP port.

    The port is released before returning, so another process could
    grab it in the meantime.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        port = sock.getsockname()[1]

    logger.debug(f"Found free port {port}")
    return port
