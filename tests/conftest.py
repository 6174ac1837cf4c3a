from datetime import datetime, timedelta, timezone

import pytest

from dropkey_core.auth import Authenticator
from dropkey_core.boundary import Gateway
from dropkey_core.credentials import CredentialIssuer
from dropkey_core.crypto import Validator, ed25519_generate, ed25519_sign
from dropkey_core.identity import IdentityRegistry
from dropkey_core.pastes import ContentStore
from dropkey_core.storage import InMemoryStorage, SQLiteStorage
from dropkey_core.utils import b64e


class FrozenClock:
    """Test clock: returns a fixed UTC instant until advanced."""

    def __init__(self, start=None):
        self.now = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


class Keypair:
    def __init__(self):
        self.priv, self.pub = ed25519_generate()
        self.public_key = b64e(self.pub)

    def sign(self, data: bytes) -> str:
        return b64e(ed25519_sign(self.priv, data))


@pytest.fixture(params=["memory", "sqlite"])
def storage(request, tmp_path):
    if request.param == "memory":
        s = InMemoryStorage()
    else:
        s = SQLiteStorage(str(tmp_path / "dropkey.db"))
    yield s
    s.close()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def validator():
    return Validator()


@pytest.fixture
def registry(storage, validator):
    return IdentityRegistry(storage, validator)


@pytest.fixture
def authenticator(registry, validator):
    return Authenticator(registry, validator)


@pytest.fixture
def store(storage, registry, validator, clock):
    return ContentStore(storage, registry, validator, clock=clock)


@pytest.fixture
def issuer(clock):
    return CredentialIssuer("dropkey-test-secret-0123456789abcdef", ttl_seconds=3600, clock=clock)


@pytest.fixture
def gateway(registry, authenticator, store, issuer):
    return Gateway(registry, authenticator, store, issuer, base_url="https://paste.example")


@pytest.fixture
def make_keypair():
    return Keypair
