"""
Pytest configuration and shared fixtures

Provides fake emulator processes, archives and HTTP sessions so the
lifecycle can be tested without Java or network access.
"""

import io
import sys
import textwrap
import zipfile
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock

import pytest

from dynamodb_local.config import DynamoDBLocalConfig, READINESS_MARKER
from dynamodb_local.server_wrapper import ServerConfig


pytest_plugins = ["pytester"]


MARKER_LINE = (
    f"{READINESS_MARKER}n:\n"
    "Port:\t8000\nInMemory:\ttrue\nDbPath:\tnull\nSharedDb:\ttrue"
)

# Fake emulator behaviours, each run with the current interpreter
CHILD_SCRIPTS = {
    # Announces readiness and runs until interrupted
    "ready": f"""
        import signal, sys, time
        signal.signal(signal.SIGINT, lambda *_: sys.exit(0))
        signal.signal(signal.SIGTERM, lambda *_: sys.exit(0))
        print("starting up", flush=True)
        print({MARKER_LINE!r}, flush=True)
        while True:
            time.sleep(0.1)
    """,
    # Ignores the graceful shutdown signal
    "stubborn": f"""
        import signal, time
        signal.signal(signal.SIGINT, signal.SIG_IGN)
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        print({MARKER_LINE!r}, flush=True)
        while True:
            time.sleep(0.1)
    """,
    # Never prints the marker
    "silent": """
        import signal, sys, time
        signal.signal(signal.SIGINT, lambda *_: sys.exit(0))
        print("still warming up", flush=True)
        while True:
            time.sleep(0.1)
    """,
    # Dies before becoming ready
    "crash": """
        import sys
        print("java.net.BindException: Address already in use", flush=True)
        sys.exit(3)
    """,
    # Ignores the interrupt and leaves a grandchild holding stdout;
    # the grandchild pid is written to the file named by argv[1]
    "orphaning": f"""
        import pathlib, signal, subprocess, sys, time
        signal.signal(signal.SIGINT, signal.SIG_IGN)
        signal.signal(signal.SIGTERM, signal.SIG_IGN)
        grandchild = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
        pathlib.Path(sys.argv[1]).write_text(str(grandchild.pid))
        print({MARKER_LINE!r}, flush=True)
        while True:
            time.sleep(0.1)
    """,
    # Becomes ready, then exits on its own
    "oneshot": f"""
        print({MARKER_LINE!r}, flush=True)
    """,
}


@pytest.fixture
def child_script(tmp_path) -> Callable[[str], Path]:
    """
    Factory writing a fake emulator script

    Returns:
        Function mapping a behaviour name to a script path
    """
    def _write(kind: str) -> Path:
        path = tmp_path / f"fake_{kind}.py"
        path.write_text(textwrap.dedent(CHILD_SCRIPTS[kind]))
        return path

    return _write


@pytest.fixture
def server_config(child_script) -> Callable[..., ServerConfig]:
    """
    Factory building a ServerConfig for a fake emulator

    Returns:
        Function taking a behaviour name and ServerConfig overrides
    """
    def _build(kind: str, **overrides) -> ServerConfig:
        params = dict(
            executable=sys.executable,
            args=[str(child_script(kind))],
            port=8000,
            readiness_marker=READINESS_MARKER,
            startup_timeout=10.0,
            graceful_shutdown_timeout=5.0,
        )
        params.update(overrides)
        return ServerConfig(**params)

    return _build


@pytest.fixture
def emulator_config(tmp_path) -> DynamoDBLocalConfig:
    """Emulator configuration rooted in a temporary install dir"""
    return DynamoDBLocalConfig(
        install_dir=tmp_path / "install",
        download_url="https://example.invalid/dynamodb_local_latest.zip",
    )


@pytest.fixture
def archive_bytes() -> bytes:
    """A minimal DynamoDB Local distribution zip"""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("DynamoDBLocal.jar", b"PK fake jar")
        archive.writestr("DynamoDBLocal_lib/libsqlite4java-linux-amd64.so", b"\x7fELF")
        archive.writestr("README.txt", "DynamoDB Local")
    return buffer.getvalue()


@pytest.fixture
def make_session() -> Callable[..., MagicMock]:
    """
    Factory for a fake requests.Session serving one payload

    Returns:
        Function taking the body and optional Content-Length override
    """
    def _build(body: bytes, content_length=None, chunk_size: int = 64) -> MagicMock:
        response = MagicMock()
        response.__enter__.return_value = response
        response.__exit__.return_value = False
        response.headers = {
            "Content-Length": str(len(body) if content_length is None else content_length)
        }
        response.iter_content.return_value = [
            body[i:i + chunk_size] for i in range(0, len(body), chunk_size)
        ]

        session = MagicMock()
        session.get.return_value = response
        return session

    return _build
