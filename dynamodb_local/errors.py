"""
Exception types raised by dynamodb_local.
"""

from typing import Optional


class DynamoDBLocalError(RuntimeError):
    """Base class for all dynamodb_local failures"""


class DownloadError(DynamoDBLocalError):
    """Fetching or extracting the DynamoDB Local archive failed"""


class JavaNotFoundError(DynamoDBLocalError, FileNotFoundError):
    """No java executable could be resolved"""


class ServerStartError(DynamoDBLocalError):
    """
    The emulator process could not be started.

    Attributes:
        exit_code: Exit code of the child if it already exited
    """

    def __init__(self, message: str, exit_code: Optional[int] = None):
        super().__init__(message)
        self.exit_code = exit_code


class StartupTimeoutError(ServerStartError):
    """Readiness marker not seen within the startup timeout"""
