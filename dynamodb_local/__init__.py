"""
Local DynamoDB emulator for tests.

Downloads Amazon's DynamoDB Local jar on first use, runs it as a child
process and gives test code start/stop control over it.
"""

from .config import (
    DynamoDBLocalConfig,
    DEFAULT_CONFIG,
    DEFAULT_PORT,
    READINESS_MARKER,
)

from .downloader import LocalLibDownloader

from .errors import (
    DynamoDBLocalError,
    DownloadError,
    JavaNotFoundError,
    ServerStartError,
    StartupTimeoutError,
)

from .server import (
    DynamoDBLocalServer,
    build_command,
    create_server,
    start,
)

from .server_wrapper import (
    WrappedServer,
    ServerConfig,
    ServerState,
    ShutdownMethod,
)

__version__ = "0.1.0"

__all__ = [
    # Entry point
    'start',
    'create_server',
    'build_command',
    'DynamoDBLocalServer',

    # Configuration
    'DynamoDBLocalConfig',
    'DEFAULT_CONFIG',
    'DEFAULT_PORT',
    'READINESS_MARKER',

    # Installation
    'LocalLibDownloader',

    # Process wrapper
    'WrappedServer',
    'ServerConfig',
    'ServerState',
    'ShutdownMethod',

    # Errors
    'DynamoDBLocalError',
    'DownloadError',
    'JavaNotFoundError',
    'ServerStartError',
    'StartupTimeoutError',
]
