import base64
import uuid

import pytest

from dropkey_core.boundary import Gateway, build_gateway, status_for
from dropkey_core.config import Settings
from dropkey_core.errors import ErrorKind
from dropkey_core.storage import InMemoryStorage
from dropkey_core.utils import b64e

CHALLENGE = b64e(b"gateway-challenge")
CIPHERTEXT = "VGVzdA=="


def _login(gateway, kp):
    user_id = gateway.register({"public_key": kp.public_key}).body["id"]
    res = gateway.authenticate({
        "id": user_id,
        "signature": kp.sign(base64.b64decode(CHALLENGE)),
        "challenge": CHALLENGE,
    })
    assert res.status == 200
    return user_id, f"Bearer {res.body['token']}"


def _paste_body(kp, ct=CIPHERTEXT, ttl=3600):
    return {
        "ciphertext": ct,
        "signature": kp.sign(base64.b64decode(ct)),
        "public_key": kp.public_key,
        "expires_in": ttl,
    }


def test_register_authenticate_create_read(gateway, keypair):
    _, auth = _login(gateway, keypair)

    res = gateway.create_paste(auth, _paste_body(keypair))
    assert res.status == 201
    paste_id = res.body["id"]
    assert res.body["url"] == f"https://paste.example/paste/{paste_id}#{keypair.public_key}"

    got = gateway.get_paste(paste_id)
    assert got.ok
    assert got.body["ciphertext"] == CIPHERTEXT
    assert got.body["public_key"] == keypair.public_key
    assert got.body["expires_at"] == "2026-03-01T13:00:00Z"


def test_duplicate_registration_conflicts(gateway, keypair):
    assert gateway.register({"public_key": keypair.public_key}).status == 201
    res = gateway.register({"public_key": keypair.public_key})
    assert res.status == 409
    assert res.body["error"] == "duplicate_key"


def test_failed_login_is_401(gateway, keypair, make_keypair):
    user_id = gateway.register({"public_key": keypair.public_key}).body["id"]
    res = gateway.authenticate({
        "id": user_id,
        "signature": make_keypair().sign(base64.b64decode(CHALLENGE)),
        "challenge": CHALLENGE,
    })
    assert res.status == 401
    assert "token" not in res.body


def test_create_requires_credential(gateway, keypair):
    gateway.register({"public_key": keypair.public_key})
    for header in [None, "Bearer not-a-jwt", "Basic abc"]:
        res = gateway.create_paste(header, _paste_body(keypair))
        assert res.status == 401


def test_caller_must_own_the_key_on_create(gateway, keypair, make_keypair):
    # the core store would accept this paste; the gateway must not
    victim = make_keypair()
    gateway.register({"public_key": victim.public_key})
    _, attacker_auth = _login(gateway, keypair)

    res = gateway.create_paste(attacker_auth, _paste_body(victim))
    assert res.status == 401
    assert res.body["error"] == "unauthorized"
    assert gateway.list_pastes(victim.public_key).body == []


def test_core_store_does_not_check_caller(gateway, keypair, make_keypair):
    victim = make_keypair()
    gateway.register({"public_key": victim.public_key})
    body = _paste_body(victim)
    paste_id = gateway.pastes.create(body["ciphertext"], body["signature"], body["public_key"], 60)
    assert gateway.get_paste(paste_id).ok


def test_caller_must_own_the_key_on_update(gateway, keypair, make_keypair):
    _, owner_auth = _login(gateway, keypair)
    paste_id = gateway.create_paste(owner_auth, _paste_body(keypair)).body["id"]

    other = make_keypair()
    _, other_auth = _login(gateway, other)
    res = gateway.update_paste(other_auth, paste_id, _paste_body(other, ct=b64e(b"hijack")))
    assert res.status == 401
    assert gateway.get_paste(paste_id).body["ciphertext"] == CIPHERTEXT

    res = gateway.update_paste(owner_auth, paste_id, _paste_body(keypair, ct=b64e(b"v2")))
    assert res.status == 200
    assert gateway.get_paste(paste_id).body["ciphertext"] == b64e(b"v2")


def test_update_unknown_paste(gateway, keypair):
    _, auth = _login(gateway, keypair)
    res = gateway.update_paste(auth, str(uuid.uuid4()), _paste_body(keypair))
    assert res.status == 404


def test_expired_paste_is_gone(gateway, keypair, clock):
    _, auth = _login(gateway, keypair)
    paste_id = gateway.create_paste(auth, _paste_body(keypair, ttl=30)).body["id"]
    clock.advance(31)
    res = gateway.get_paste(paste_id)
    assert res.status == 410
    assert res.body["error"] == "expired"


@pytest.mark.parametrize("ttl, error", [(0, "already_expired"), (7 * 86400 + 1, "expiry_too_long"), ("1h", "validation_error")])
def test_create_bad_ttl(gateway, keypair, ttl, error):
    _, auth = _login(gateway, keypair)
    res = gateway.create_paste(auth, _paste_body(keypair, ttl=ttl))
    assert res.status == 400
    assert res.body["error"] == error


def test_bad_signature_on_create_is_400(gateway, keypair, make_keypair):
    _, auth = _login(gateway, keypair)
    body = _paste_body(keypair)
    body["signature"] = make_keypair().sign(base64.b64decode(CIPHERTEXT))
    res = gateway.create_paste(auth, body)
    assert res.status == 400
    assert res.body["error"] == "signature_verification_failed"


def test_list_pastes(gateway, keypair, clock):
    _, auth = _login(gateway, keypair)
    gateway.create_paste(auth, _paste_body(keypair, ttl=5))
    live = gateway.create_paste(auth, _paste_body(keypair, ct=b64e(b"live"))).body["id"]
    clock.advance(6)
    res = gateway.list_pastes(keypair.public_key)
    assert res.status == 200
    assert [p["id"] for p in res.body] == [live]


def test_list_for_unknown_owner(gateway, keypair):
    res = gateway.list_pastes(keypair.public_key)
    assert res.status == 401
    assert res.body["error"] == "owner_not_found"


def test_user_lookups(gateway, keypair):
    user_id = gateway.register({"public_key": keypair.public_key}).body["id"]
    assert gateway.get_user(user_id).body == {"user_id": user_id, "public_key": keypair.public_key}
    assert gateway.get_user("not-a-uuid").status == 400
    assert gateway.get_user(str(uuid.uuid4())).status == 404
    assert gateway.get_user_by_public_key(keypair.public_key).body["user_id"] == user_id


def test_public_key_lookup_has_no_existence_oracle(gateway, make_keypair):
    malformed = gateway.get_user_by_public_key("%%%")
    absent = gateway.get_user_by_public_key(make_keypair().public_key)
    assert malformed.status == absent.status == 404
    assert malformed.body == absent.body


def test_non_object_body(gateway):
    res = gateway.register(["not", "a", "dict"])
    assert res.status == 400


def test_storage_failures_are_opaque(gateway, keypair, monkeypatch):
    from dropkey_core.storage import StorageProviderError

    def boom(*args, **kwargs):
        raise StorageProviderError("connection reset")

    monkeypatch.setattr(gateway.registry.storage, "create", boom)
    res = gateway.register({"public_key": keypair.public_key})
    assert res.status == 500
    assert res.body == {"error": "internal_error", "message": "internal server error"}


def test_status_mapping_covers_every_kind():
    for kind in ErrorKind:
        assert status_for(kind) in {400, 401, 404, 409, 410, 500}
    assert status_for(ErrorKind.NOT_FOUND) == 404
    assert status_for(ErrorKind.EXPIRED) == 410
    assert status_for(ErrorKind.DUPLICATE_KEY) == 409
    assert status_for(ErrorKind.STORAGE_ERROR) == 500


def test_build_gateway_from_settings(keypair):
    settings = Settings.from_dict({
        "storage_provider": "memory",
        "credential_secret": "dropkey-wiring-secret-0123456789abcdef",
        "base_url": "https://drop.example",
    })
    gw = build_gateway(settings)
    assert isinstance(gw, Gateway)
    assert isinstance(gw.registry.storage, InMemoryStorage)
    _, auth = _login(gw, keypair)
    res = gw.create_paste(auth, _paste_body(keypair))
    assert res.body["url"].startswith("https://drop.example/paste/")


def test_build_gateway_requires_secret():
    with pytest.raises(ValueError):
        build_gateway(Settings(storage_provider="memory"))
