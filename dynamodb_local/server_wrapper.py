"""
Server process lifecycle management.

Provides a wrapper for a subprocess-based server with:
- Readiness detection from the child's stdout
- Graceful shutdown with fallback to force kill
- Context manager support
- A completion signal set once the child has exited
"""

import logging
import shutil
import signal
import subprocess
import sys
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .errors import JavaNotFoundError, ServerStartError, StartupTimeoutError


logger = logging.getLogger(__name__)


class ServerState(str, Enum):
    """Server process states"""
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


class ShutdownMethod(str, Enum):
    """Shutdown methods"""
    SIGINT = "sigint"
    SIGTERM = "sigterm"
    SIGKILL = "sigkill"


# Timeouts (seconds)
STARTUP_TIMEOUT = 10.0
GRACEFUL_SHUTDOWN_TIMEOUT = 10.0
FORCED_SHUTDOWN_TIMEOUT = 5.0


@dataclass
class ServerConfig:
    """
    Configuration for wrapped server.

    Attributes:
        executable: Server executable, a path or a name looked up on PATH
        args: Command line arguments
        port: Server port
        readiness_marker: Substring of a stdout line signalling readiness
        startup_timeout: Seconds to wait for the readiness marker
        graceful_shutdown_timeout: Seconds to wait after the shutdown signal
        shutdown_method: Signal used for graceful shutdown
        fail_on_startup_timeout: Raise instead of proceeding when not ready in time
        cwd: Working directory for the child
        env: Environment for the child, inherited if None
    """
    executable: str
    args: List[str]
    port: int
    readiness_marker: str
    startup_timeout: float = STARTUP_TIMEOUT
    graceful_shutdown_timeout: float = GRACEFUL_SHUTDOWN_TIMEOUT
    shutdown_method: ShutdownMethod = ShutdownMethod.SIGINT
    fail_on_startup_timeout: bool = False
    cwd: Optional[str] = None
    env: Optional[dict] = field(default=None, repr=False)


def resolve_executable(executable: str) -> str:
    """
    Resolve an executable name or path.

    Args:
        executable: Command name or path

    Returns:
        Absolute path of the executable

    Raises:
        JavaNotFoundError: If it cannot be found
    """
    resolved = shutil.which(executable)
    if resolved is None:
        raise JavaNotFoundError(
            f"Executable not found: {executable!r}. "
            f"DynamoDB Local needs a Java runtime on PATH"
        )
    return resolved


class WrappedServer:
    """
    Handle for one server subprocess.

    A background thread reads the child's stdout, logs every line and
    flags readiness when the configured marker appears. When stdout
    closes the same thread reaps the process and sets the completion
    signal. A handle runs at most one process; once the completion
    signal fires it cannot be restarted.

    Example:
        config = ServerConfig(
            executable="java",
            args=["-jar", "DynamoDBLocal.jar", "-port", "8000"],
            port=8000,
            readiness_marker="Initializing DynamoDB Local",
        )

        with WrappedServer(config) as server:
            # Server is running
            ...
        # Server stopped and reaped
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize wrapped server.

        Args:
            config: Server configuration
        """
        self.config = config
        self.process: Optional[subprocess.Popen] = None
        self.state: ServerState = ServerState.STOPPED
        self._ready = threading.Event()
        self._done = threading.Event()
        self._watcher: Optional[threading.Thread] = None
        self._exit_code: Optional[int] = None
        self._lock = threading.Lock()

    @property
    def port(self) -> int:
        return self.config.port

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    @property
    def exit_code(self) -> Optional[int]:
        """Exit code once the process has been reaped, else None"""
        return self._exit_code

    def start(self) -> "WrappedServer":
        """
        Start the server process and wait for it to become ready.

        Returns:
            self

        Raises:
            RuntimeError: If this handle was already started
            JavaNotFoundError: If executable not found
            ServerStartError: If the process fails to spawn or exits early
            StartupTimeoutError: If not ready in time and fail_on_startup_timeout is set
        """
        with self._lock:
            if self.state != ServerState.STOPPED or self.process is not None:
                raise RuntimeError(
                    f"Cannot start server in state {self.state.value}"
                )

            executable = resolve_executable(self.config.executable)
            command = [executable] + list(self.config.args)

            self.state = ServerState.STARTING
            logger.info(f"Starting server: {' '.join(command)}")

            try:
                self.process = subprocess.Popen(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=None,
                    stdin=subprocess.DEVNULL,
                    cwd=self.config.cwd,
                    env=self.config.env,
                    text=True,
                    bufsize=1,
                    errors="replace",
                )
            except OSError as e:
                self.state = ServerState.ERROR
                raise ServerStartError(f"Failed to start server: {e}") from e

            logger.info(f"Server process started (PID: {self.process.pid})")

            self._watcher = threading.Thread(
                target=self._watch,
                name=f"server-watch-{self.process.pid}",
                daemon=True,
            )
            self._watcher.start()

        if self.wait_for_ready(self.config.startup_timeout):
            self.state = ServerState.RUNNING
            logger.info(
                f"Server running on pid {self.process.pid}, port {self.config.port}"
            )
            return self

        if self._done.is_set():
            self.state = ServerState.ERROR
            raise ServerStartError(
                f"Server exited with code {self._exit_code} before it was ready",
                exit_code=self._exit_code,
            )

        logger.warning(
            f"Timeout waiting for server to start "
            f"({self.config.startup_timeout}s)"
        )

        if self.config.fail_on_startup_timeout:
            self.stop()
            self.state = ServerState.ERROR
            raise StartupTimeoutError(
                f"Server not ready after {self.config.startup_timeout}s",
                exit_code=self._exit_code,
            )

        self.state = ServerState.RUNNING
        return self

    def _watch(self) -> None:
        """Read child stdout until EOF, then reap the child"""
        process = self.process
        marker = self.config.readiness_marker

        try:
            for line in process.stdout:
                text = line.rstrip("\r\n")
                logger.info(text)
                if not self._ready.is_set() and marker in text:
                    self._ready.set()
        except (OSError, ValueError) as e:
            logger.debug(f"Stopped reading server output: {e}")
        finally:
            process.stdout.close()
            self._exit_code = process.wait()
            logger.info(f"Server process exited (exit code: {self._exit_code})")
            self._done.set()

    def wait_for_ready(self, timeout: float) -> bool:
        """
        Wait for the readiness marker.

        Returns early if the process exits first.

        Args:
            timeout: Seconds to wait

        Returns:
            True if the marker was seen within timeout
        """
        logger.info(f"Waiting for server to be ready (timeout: {timeout}s)")

        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if self._ready.wait(min(max(remaining, 0), 0.1)):
                return True
            if self._done.is_set():
                # Marker may have arrived on the last line
                return self._ready.is_set()
            if remaining <= 0:
                return False

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the process has exited.

        Args:
            timeout: Seconds to wait, forever if None

        Returns:
            True if the process has exited
        """
        if self.process is None:
            return True
        return self._done.wait(timeout)

    def stop(self, timeout: Optional[float] = None) -> Optional[int]:
        """
        Stop the server process.

        Sends the configured shutdown signal, then force kills if the
        process outlives the graceful timeout. Always returns only after
        the child has exited.

        Args:
            timeout: Seconds to wait for graceful shutdown

        Returns:
            Exit code of the process, None if it was never started
        """
        if self.process is None:
            self.state = ServerState.STOPPED
            return None

        if self._done.is_set():
            logger.debug("Server already exited")
            self.state = ServerState.STOPPED
            return self._exit_code

        if timeout is None:
            timeout = self.config.graceful_shutdown_timeout

        self.state = ServerState.STOPPING
        logger.info(f"Stopping server (PID: {self.process.pid})")

        try:
            self._send_shutdown_signal()
        except OSError as e:
            # Process went away between the check and the signal
            logger.debug(f"Could not signal process {self.process.pid}: {e}")

        if not self._done.wait(timeout):
            logger.warning(
                f"Server did not stop gracefully within {timeout}s, "
                f"force killing"
            )
            try:
                self.process.kill()
            except OSError as e:
                logger.debug(f"Could not kill process {self.process.pid}: {e}")

            if not self._done.wait(FORCED_SHUTDOWN_TIMEOUT):
                # stdout held open by a grandchild; reap directly
                self._exit_code = self.process.wait()
                self._done.set()

        self.state = ServerState.STOPPED
        logger.info(f"Server stopped (exit code: {self._exit_code})")
        return self._exit_code

    def _send_shutdown_signal(self) -> None:
        method = self.config.shutdown_method

        if method == ShutdownMethod.SIGKILL:
            self.process.kill()
        elif method == ShutdownMethod.SIGTERM or sys.platform == "win32":
            # SIGINT cannot be sent to a child on Windows
            self.process.terminate()
        else:
            self.process.send_signal(signal.SIGINT)

        logger.debug(f"Sent {method.value} to process {self.process.pid}")

    def is_running(self) -> bool:
        """
        Check if server process is running.

        Returns:
            True if process is alive
        """
        if self.process is None or self._done.is_set():
            return False

        poll_result = self.process.poll()
        is_alive = poll_result is None

        if not is_alive and self.state == ServerState.RUNNING:
            logger.warning(
                f"Server process died unexpectedly (exit code: {poll_result})"
            )
            self.state = ServerState.ERROR

        return is_alive

    def is_ready(self) -> bool:
        """True once the readiness marker has been seen"""
        return self._ready.is_set()

    def get_pid(self) -> Optional[int]:
        """
        Get server process ID.

        Returns:
            Process ID if started, None otherwise
        """
        return self.pid

    def get_state(self) -> ServerState:
        return self.state

    def __enter__(self):
        """Context manager entry"""
        if self.process is None:
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.stop()
        return False
