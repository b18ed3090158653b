"""
Configuration for the DynamoDB Local emulator.

All locations are derived from an explicit install directory carried by
DynamoDBLocalConfig, so nothing depends on the caller's working directory.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .server_wrapper import ShutdownMethod


# Download source
DOWNLOAD_URL: str = (
    "https://s3-us-west-2.amazonaws.com/dynamodb-local/dynamodb_local_latest.zip"
)
ZIP_NAME: str = "dynamodb_local_latest.zip"
JAR_RELATIVE_PATH: str = "dynamodb-local/DynamoDBLocal.jar"

# Emulator startup log line that means it accepts connections
READINESS_MARKER: str = "Initializing DynamoDB Local with the following configuratio"

DEFAULT_PORT: int = 8000
DEFAULT_INSTALL_DIR: Path = Path(__file__).resolve().parent

# Timeouts (seconds)
STARTUP_TIMEOUT: float = 10.0
GRACEFUL_SHUTDOWN_TIMEOUT: float = 10.0
DOWNLOAD_TIMEOUT: float = 60.0

# Download progress is logged at most this often (seconds)
DOWNLOAD_PROGRESS_INTERVAL: float = 2.0
DOWNLOAD_CHUNK_SIZE: int = 1024 * 1024


@dataclass(frozen=True)
class DynamoDBLocalConfig:
    """
    DynamoDB Local emulator configuration.

    Attributes:
        install_dir: Directory holding the downloaded zip and extracted jar
        download_url: Archive URL
        zip_name: Archive file name inside install_dir
        jar_relative_path: Jar location relative to install_dir
        java_executable: Java command, resolved on PATH
        jvm_args: Extra JVM flags placed before -jar
        shared_db: Pass -sharedDb
        in_memory: Pass -inMemory
        db_path: Directory for database files when not in memory
        extra_args: Extra emulator flags appended after -port
        readiness_marker: Substring of the startup line that signals readiness
        startup_timeout: Seconds to wait for the readiness marker
        fail_on_startup_timeout: Raise instead of proceeding on timeout
        graceful_shutdown_timeout: Seconds to wait after the interrupt before killing
        shutdown_method: Signal used to ask the emulator to exit
        download_timeout: Connect/read timeout for the archive download
        download_chunk_size: Bytes per streamed chunk
    """
    install_dir: Path = DEFAULT_INSTALL_DIR
    download_url: str = DOWNLOAD_URL
    zip_name: str = ZIP_NAME
    jar_relative_path: str = JAR_RELATIVE_PATH
    java_executable: str = "java"
    jvm_args: Tuple[str, ...] = field(default_factory=tuple)
    shared_db: bool = True
    in_memory: bool = True
    db_path: Optional[Path] = None
    extra_args: Tuple[str, ...] = field(default_factory=tuple)
    readiness_marker: str = READINESS_MARKER
    startup_timeout: float = STARTUP_TIMEOUT
    fail_on_startup_timeout: bool = False
    graceful_shutdown_timeout: float = GRACEFUL_SHUTDOWN_TIMEOUT
    shutdown_method: ShutdownMethod = ShutdownMethod.SIGINT
    download_timeout: float = DOWNLOAD_TIMEOUT
    download_chunk_size: int = DOWNLOAD_CHUNK_SIZE

    def __post_init__(self):
        # Accept plain strings for paths
        object.__setattr__(self, "install_dir", Path(self.install_dir))
        if self.db_path is not None:
            object.__setattr__(self, "db_path", Path(self.db_path))
        object.__setattr__(self, "jvm_args", tuple(self.jvm_args))
        object.__setattr__(self, "extra_args", tuple(self.extra_args))

    @property
    def jar_path(self) -> Path:
        """Path of DynamoDBLocal.jar"""
        return self.install_dir / self.jar_relative_path

    @property
    def zip_path(self) -> Path:
        """Path of the cached archive"""
        return self.install_dir / self.zip_name

    @property
    def lib_dir(self) -> Path:
        """Directory the archive is extracted into"""
        return self.jar_path.parent


# Global default configuration instance
DEFAULT_CONFIG = DynamoDBLocalConfig()
