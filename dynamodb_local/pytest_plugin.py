"""
Pytest plugin providing a session-wide DynamoDB Local server.

Registered through the ``pytest11`` entry point, so installing the package
makes the fixtures available:

    def test_put_item(dynamodb_local):
        client = boto3.client("dynamodb", endpoint_url=dynamodb_local.endpoint_url, ...)
"""

from dataclasses import replace
from pathlib import Path
from typing import Iterator, Optional

import pytest

from .config import DynamoDBLocalConfig, DEFAULT_CONFIG
from .server import DynamoDBLocalServer, start


def config_from_options(install_dir: Optional[str]) -> DynamoDBLocalConfig:
    """Apply the plugin's command-line options to the default config"""
    if install_dir:
        return replace(DEFAULT_CONFIG, install_dir=Path(install_dir))
    return DEFAULT_CONFIG


def pytest_addoption(parser):
    group = parser.getgroup("dynamodb-local")
    group.addoption(
        "--dynamodb-local-dir",
        action="store",
        default=None,
        help="Directory caching the DynamoDB Local download",
    )


@pytest.fixture(scope="session")
def dynamodb_local_config(request) -> DynamoDBLocalConfig:
    """
    Emulator configuration for the test session.

    Override this fixture in a conftest.py to customize the server.
    """
    return config_from_options(
        request.config.getoption("--dynamodb-local-dir")
    )


@pytest.fixture(scope="session")
def dynamodb_local(dynamodb_local_config) -> Iterator[DynamoDBLocalServer]:
    """Running DynamoDB Local server on a free port"""
    server = start(config=dynamodb_local_config)
    try:
        yield server
    finally:
        server.stop()
