"""
DynamoDB Local emulator server.

Downloads the emulator on first use and runs it as a child process:

    server = start(8000)
    ...  # point boto3 at server.endpoint_url
    server.stop()
"""

import logging
from typing import List, Optional, Union

from .config import DynamoDBLocalConfig, DEFAULT_CONFIG
from .downloader import LocalLibDownloader
from .ports import find_free_port, normalize_port
from .server_wrapper import ServerConfig, WrappedServer, resolve_executable


logger = logging.getLogger(__name__)


def build_command(
    config: DynamoDBLocalConfig,
    port: int,
    java_path: Optional[str] = None
) -> List[str]:
    """
    Build the java command line for DynamoDB Local.

    Args:
        config: Emulator configuration
        port: Port to listen on
        java_path: Java executable, config.java_executable if None

    Returns:
        Full command as a list
    """
    command = [java_path or config.java_executable]
    command.extend(config.jvm_args)
    command.extend(["-jar", str(config.jar_path)])

    if config.shared_db:
        command.append("-sharedDb")

    if config.in_memory:
        command.append("-inMemory")
    elif config.db_path is not None:
        command.extend(["-dbPath", str(config.db_path)])

    command.extend(["-port", str(port)])
    command.extend(config.extra_args)
    return command


class DynamoDBLocalServer(WrappedServer):
    """
    Handle for a running DynamoDB Local process.

    Attributes:
        emulator_config: Configuration the server was started with
    """

    def __init__(self, config: ServerConfig, emulator_config: DynamoDBLocalConfig):
        super().__init__(config)
        self.emulator_config = emulator_config

    @property
    def endpoint_url(self) -> str:
        """URL to hand to DynamoDB clients"""
        return f"http://localhost:{self.port}"

    def stop(self, timeout: Optional[float] = None) -> Optional[int]:
        logger.info("Stopping DynamoDB local server")
        return super().stop(timeout)


def create_server(
    port: int,
    config: DynamoDBLocalConfig = DEFAULT_CONFIG
) -> DynamoDBLocalServer:
    """
    Build an unstarted server handle for an installed jar.

    Args:
        port: Port to listen on
        config: Emulator configuration

    Returns:
        DynamoDBLocalServer in the stopped state

    Raises:
        JavaNotFoundError: If java is not on PATH
    """
    java_path = resolve_executable(config.java_executable)
    command = build_command(config, port, java_path)

    server_config = ServerConfig(
        executable=command[0],
        args=command[1:],
        port=port,
        readiness_marker=config.readiness_marker,
        startup_timeout=config.startup_timeout,
        graceful_shutdown_timeout=config.graceful_shutdown_timeout,
        shutdown_method=config.shutdown_method,
        fail_on_startup_timeout=config.fail_on_startup_timeout,
        cwd=str(config.lib_dir),
    )
    return DynamoDBLocalServer(server_config, config)


def start(
    port: Union[int, str, None] = None,
    config: Optional[DynamoDBLocalConfig] = None
) -> DynamoDBLocalServer:
    """
    Start a local DynamoDB server.

    If no local jar is found, the distribution is downloaded from AWS
    first.

    Args:
        port: Port to listen on; a free port is picked if None
        config: Emulator configuration, DEFAULT_CONFIG if None

    Returns:
        Running DynamoDBLocalServer handle

    Raises:
        DownloadError: If the emulator cannot be downloaded
        JavaNotFoundError: If java is not on PATH
        ServerStartError: If the process fails to start
    """
    config = config or DEFAULT_CONFIG
    port = find_free_port() if port is None else normalize_port(port)

    LocalLibDownloader(config).ensure_installed()

    server = create_server(port, config)
    return server.start()
