"""Shared pytest fixtures for all tests."""

import base64
import hashlib
import json

import pytest

from cli.config import Config
from credstore.memory import InMemoryStorage
from credstore.record_store import ChunkedRecordStore
from transport.channel import LoopbackChannel


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def make_sd_jwt(claims: dict, disclosed: dict = None) -> str:
    """
    Build an unsigned SD-JWT whose `disclosed` claims are selectively disclosable.

    Args:
        claims: Claims placed directly in the JWT payload
        disclosed: Claims carried as disclosures

    Returns:
        Compact SD-JWT string ending in '~'
    """
    disclosed = disclosed or {}
    disclosures = []
    digests = []
    for i, (name, value) in enumerate(disclosed.items()):
        encoded = b64url(json.dumps([f"salt{i}", name, value]).encode("utf-8"))
        disclosures.append(encoded)
        digests.append(b64url(hashlib.sha256(encoded.encode("ascii")).digest()))

    payload = dict(claims)
    if digests:
        payload["_sd"] = digests
        payload["_sd_alg"] = "sha-256"

    header = b64url(json.dumps({"alg": "ES256", "typ": "dc+sd-jwt"}).encode("utf-8"))
    body = b64url(json.dumps(payload).encode("utf-8"))
    issuer_jwt = f"{header}.{body}.c2lnbmF0dXJl"
    return "~".join([issuer_jwt, *disclosures]) + "~"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    """In-memory backend with a 2KB value cap."""
    return InMemoryStorage(max_value_size=2048)


@pytest.fixture
def store(storage):
    return ChunkedRecordStore(storage)


@pytest.fixture
def small_store(storage):
    """Record store whose chunks are tiny, forcing many chunk entries."""
    return ChunkedRecordStore(storage, max_chunk_size=16)


@pytest.fixture
def channel():
    return LoopbackChannel()


@pytest.fixture
def sd_jwt_factory():
    """Builder for SD-JWTs with custom claims."""
    return make_sd_jwt


@pytest.fixture
def alice_sd_jwt():
    return make_sd_jwt(
        {"iss": "https://issuer.example", "vct": "vct-1"},
        {"name": "Alice", "birthdate": "1990-01-01"},
    )


@pytest.fixture
def bob_sd_jwt():
    return make_sd_jwt(
        {"iss": "https://issuer.example", "vct": "vct-2"},
        {"name": "Bob"},
    )


@pytest.fixture
def temp_config_dir(tmp_path):
    """
    Create temporary config directory.

    Returns:
        Path to temporary .walletctl directory
    """
    config_dir = tmp_path / '.walletctl'
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def temp_config(temp_config_dir):
    """
    Create temporary config instance.

    Returns:
        Config instance with temp config file
    """
    return Config(temp_config_dir / 'config.json')
