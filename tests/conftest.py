"""Shared fixtures for nextid_sdk tests."""

from __future__ import annotations

import pytest
from aiohttp import web
from pytest_metadata.plugin import metadata_key

from nextid_sdk.crypto.keypair import Secp256k1KeyPair
from nextid_sdk.kv_service import KVServiceClient
from nextid_sdk.models.config import ClientConfig, Endpoint, Environment, ServiceKind
from nextid_sdk.proof_service import ProofServiceClient

from tests.fake_service import FakeNextIDService
from tests.mocks import MockTransport

# personal_sign vector: "Test123!" signed with TEST_SECRET
TEST_SECRET = "b5466835b2228927d8dc1194cf8e6f52ba4b4cdb49cc954f31565d0c30fd44c8"
TEST_MESSAGE = "Test123!"
TEST_SIGNATURE = (
    "bc14fed2a5ae2c5c7e793f2a45f4f9aad84c7caa56139ee4a802806c5bb1a9cf"
    "4baa0e2df71bf3d0a943fbfb177afc1bd9c17995a6f409928548f3318d3f9b6300"
)

# web3.eth.accounts.sign('Some data', WEB3_SECRET)
WEB3_SECRET = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
WEB3_ADDRESS = "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"
WEB3_SIGNATURE = (
    "b91467e570a6466aa9e9876cbcd013baba02900b8979d43fe208a4a4f339f5fd"
    "6007e74cd82e037b800186422fc2da167c747ef045e5d18a5f5d4300f8e1a0291c"
)


# ── Report metadata ──────────────────────────────────────────────


def pytest_configure(config):
    """Add service info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["ProofService"] = "in-process fake (aiohttp)"
    meta["KVService"] = "in-process fake (aiohttp)"


def make_test_config(**overrides) -> ClientConfig:
    """Build a ClientConfig suitable for testing."""
    defaults = dict(
        environment=Environment.CUSTOM,
        proof_url="http://127.0.0.1:1",
        kv_url="http://127.0.0.1:1",
        timeout=5.0,
        payload_ttl=3600,
        secret_key=TEST_SECRET,
    )
    defaults.update(overrides)
    return ClientConfig(**defaults)


@pytest.fixture
def test_config():
    """Default ClientConfig for tests."""
    return make_test_config()


@pytest.fixture
def keypair():
    """Avatar with a secret key (the signing vector key)."""
    return Secp256k1KeyPair.from_sk_hex(TEST_SECRET)


@pytest.fixture
def other_keypair():
    return Secp256k1KeyPair.generate()


@pytest.fixture
def proof_endpoint():
    return Endpoint.custom(ServiceKind.PROOF, "http://proof.test")


@pytest.fixture
def kv_endpoint():
    return Endpoint.custom(ServiceKind.KV, "http://kv.test")


@pytest.fixture
def mock_transport():
    return MockTransport()


@pytest.fixture
def mock_proof_client(proof_endpoint, mock_transport):
    """ProofServiceClient wired to a MockTransport."""
    return ProofServiceClient(proof_endpoint, mock_transport)


@pytest.fixture
def mock_kv_client(kv_endpoint, mock_transport):
    """KVServiceClient wired to a MockTransport."""
    return KVServiceClient(kv_endpoint, mock_transport)


# ── Fake NextID server ───────────────────────────────────────────


@pytest.fixture
async def nextid_server():
    """Local HTTP server speaking the ProofService and KVService v1 API.

    Binds an ephemeral port; ``service.base_url`` points at it.
    """
    service = FakeNextIDService()
    runner = web.AppRunner(service.app())
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    host, port = runner.addresses[0][:2]
    service.base_url = f"http://{host}:{port}"
    yield service
    await runner.cleanup()


@pytest.fixture
def server_config(nextid_server):
    """ClientConfig pointing both services at the fake server."""
    return make_test_config(proof_url=nextid_server.base_url, kv_url=nextid_server.base_url)


@pytest.fixture
def proof_client(server_config):
    return ProofServiceClient.from_config(server_config)


@pytest.fixture
def kv_client(server_config):
    return KVServiceClient.from_config(server_config)
