"""
Shared fixtures for sdc_client tests.

TEST_KEY_PATH is the RSA key published with the HTTP Signatures draft test
vectors; its signatures over known messages are fixed.
"""
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

from sdc_client.api_client import SDCClient
from sdc_client.config import ClientConfig

TESTDATA_DIR = Path(__file__).parent / "_testdata"
TEST_KEY_PATH = TESTDATA_DIR / "id_rsa"
GARBLED_KEY_PATH = TESTDATA_DIR / "garbled_rsa"


@pytest.fixture
def test_config():
    """Client config pointing at the test key."""
    return ClientConfig(
        url="http://api.example.com",
        account="test",
        user="test",
        key_id="q",
        key_path=str(TEST_KEY_PATH),
    )


@pytest.fixture
def recorded_requests():
    """Requests seen by the mock transport, in order."""
    return []


@pytest.fixture
def make_client(test_config, recorded_requests):
    """
    Factory for a client whose transport is an httpx.MockTransport.

    The handler receives each request; every request is also appended to
    `recorded_requests`.
    """
    clients: List[SDCClient] = []

    def _make(handler: Callable[[httpx.Request], httpx.Response], config: ClientConfig = None) -> SDCClient:
        def _record(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            return handler(request)

        client = SDCClient(config or test_config, transport=httpx.MockTransport(_record))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def test_key_path() -> Path:
    return TEST_KEY_PATH


@pytest.fixture
def garbled_key_path() -> Path:
    return GARBLED_KEY_PATH
